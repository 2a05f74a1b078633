from __future__ import annotations
import logging
import os
from dataclasses import dataclass

from .errors import InvalidArgument
from .prf import PseudoRandomFunction

logger = logging.getLogger(__name__)

# The block index is encoded in 4 bytes, which caps the number of blocks.
MAX_BLOCK_COUNT = 2**32 - 1

_BYTES_LIKE = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class KDFParams:
    algorithm: str = "SHA256"
    # Every round is a Python-level HMAC call, so high counts are slow.
    iterations: int = 310_000
    salt_len: int = 16
    key_len: int = 32


def new_salt(params: KDFParams = KDFParams()) -> bytes:
    return os.urandom(params.salt_len)


def block_count(output_length: int, digest_size: int) -> int:
    return -(-output_length // digest_size)


def normalize_key(password: bytes, digest_size: int, prf: PseudoRandomFunction) -> bytes:
    """Shorten an over-long password to ``digest_size`` with the plain hash.

    The threshold is the digest size, not the HMAC block size, and the
    reduction uses the unkeyed hash of the family. It is applied once; the
    result is never re-normalized.
    """
    if len(password) <= digest_size:
        return bytes(password)
    return prf.unkeyed_hash(password)


def _first_round_input(salt: bytes, block_index: int) -> bytes:
    return bytes(salt) + block_index.to_bytes(4, "big")


def derive_block(prf: PseudoRandomFunction, salt: bytes, block_index: int, iterations: int) -> bytes:
    """Compute one PBKDF2 block: U1 ^ U2 ^ ... ^ Uc.

    ``prf`` must already be keyed with the normalized password.
    ``block_index`` is 1-based.
    """
    if block_index < 1:
        raise InvalidArgument("Block index starts at 1.")
    if iterations < 1:
        raise InvalidArgument("Iterations must be >= 1.")

    previous = prf.keyed_hash(_first_round_input(salt, block_index))
    result = bytearray(previous)

    for _ in range(2, iterations + 1):
        current = prf.keyed_hash(previous)
        for j, b in enumerate(current):
            result[j] ^= b
        previous = current

    return bytes(result)


def _validate(algorithm: object, salt: object, password: object, iterations: object, output_length: object) -> None:
    if not isinstance(algorithm, str) or not algorithm:
        raise InvalidArgument("Algorithm name cannot be empty.")
    if salt is None:
        raise InvalidArgument("Salt is required (an empty byte string is allowed).")
    if not isinstance(salt, _BYTES_LIKE):
        raise InvalidArgument("Salt must be bytes.")
    if password is None:
        raise InvalidArgument("Password is required (an empty byte string is allowed).")
    if not isinstance(password, _BYTES_LIKE):
        raise InvalidArgument("Password must be bytes; encode text passwords first (e.g. UTF-8).")
    if not isinstance(iterations, int) or isinstance(iterations, bool) or iterations < 1:
        raise InvalidArgument("Iterations must be an integer >= 1.")
    if not isinstance(output_length, int) or isinstance(output_length, bool) or output_length < 1:
        raise InvalidArgument("Output length must be an integer >= 1.")


def derive_bytes(algorithm: str, salt: bytes, password: bytes, iterations: int, output_length: int) -> bytes:
    """Derive ``output_length`` bytes with PBKDF2-HMAC-``algorithm``.

    Raises :class:`InvalidArgument` for missing or out-of-range inputs and
    :class:`UnsupportedAlgorithm` when ``algorithm`` is not available. The
    caller's ``salt`` and ``password`` buffers are never modified.
    """
    _validate(algorithm, salt, password, iterations, output_length)

    # Immutable copies; the caller's buffers are never touched again.
    salt = bytes(salt)
    password = bytes(password)

    with PseudoRandomFunction(algorithm) as prf:
        size = prf.digest_size
        blocks = block_count(output_length, size)
        if blocks > MAX_BLOCK_COUNT:
            raise InvalidArgument("Derived key too long.")

        logger.debug(
            "deriving %d bytes with HMAC-%s, %d iterations, %d block(s)",
            output_length, prf.name, iterations, blocks,
        )

        prf.key(normalize_key(password, size, prf))

        output = bytearray(output_length)
        for block_index in range(1, blocks + 1):
            block = derive_block(prf, salt, block_index, iterations)
            offset = (block_index - 1) * size
            n = min(size, output_length - offset)
            output[offset:offset + n] = block[:n]

    return bytes(output)


def derive_key(password: str, salt: bytes, params: KDFParams = KDFParams()) -> bytes:
    if not isinstance(password, str):
        raise InvalidArgument("Password must be a string.")
    return derive_bytes(
        params.algorithm,
        salt,
        password.encode("utf-8"),
        params.iterations,
        params.key_len,
    )
