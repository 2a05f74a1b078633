from .errors import InvalidArgument, PBKDF2Error, UnsupportedAlgorithm
from .kdf import KDFParams, derive_block, derive_bytes, derive_key, new_salt, normalize_key
from .prf import PseudoRandomFunction, supported_algorithms

__all__ = [
    "InvalidArgument",
    "KDFParams",
    "PBKDF2Error",
    "PseudoRandomFunction",
    "UnsupportedAlgorithm",
    "derive_block",
    "derive_bytes",
    "derive_key",
    "new_salt",
    "normalize_key",
    "supported_algorithms",
]
