from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable

from Cryptodome.Hash import HMAC as _CryptodomeHMAC
from Cryptodome.Hash import RIPEMD160
from cryptography.exceptions import UnsupportedAlgorithm as _BackendUnsupported
from cryptography.hazmat.primitives import hashes, hmac

from .errors import PBKDF2Error, UnsupportedAlgorithm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HashFamily:
    """One registry entry: how to build the plain hash and the HMAC.

    ``new_hash()`` returns an object with ``update``/``digest``-style
    finalisation wrapped by ``finish``; ``new_hmac(key)`` returns a keyed
    context that supports ``copy``/``update`` and is finalised by ``finish``.
    """

    name: str
    digest_size: int
    new_hash: Callable[[], Any]
    new_hmac: Callable[[bytes], Any]
    finish: Callable[[Any], bytes]


def _cryptography_family(name: str, algorithm_cls: type[hashes.HashAlgorithm]) -> HashFamily:
    algorithm = algorithm_cls()
    return HashFamily(
        name=name,
        digest_size=algorithm.digest_size,
        new_hash=lambda: hashes.Hash(algorithm),
        new_hmac=lambda key: hmac.HMAC(key, algorithm),
        finish=lambda ctx: ctx.finalize(),
    )


def _cryptodome_family(name: str, module: Any) -> HashFamily:
    return HashFamily(
        name=name,
        digest_size=module.digest_size,
        new_hash=module.new,
        new_hmac=lambda key: _CryptodomeHMAC.new(key, digestmod=module),
        finish=lambda ctx: ctx.digest(),
    )


# Canonical name -> family. cryptography covers the SHA/MD5/SM3 families;
# RIPEMD160 comes from pycryptodome since cryptography has no RIPEMD.
HASH_FAMILIES: dict[str, HashFamily] = {
    name: _cryptography_family(name, cls)
    for name, cls in (
        ("MD5", hashes.MD5),
        ("SHA1", hashes.SHA1),
        ("SHA224", hashes.SHA224),
        ("SHA256", hashes.SHA256),
        ("SHA384", hashes.SHA384),
        ("SHA512", hashes.SHA512),
        ("SHA512_224", hashes.SHA512_224),
        ("SHA512_256", hashes.SHA512_256),
        ("SHA3_224", hashes.SHA3_224),
        ("SHA3_256", hashes.SHA3_256),
        ("SHA3_384", hashes.SHA3_384),
        ("SHA3_512", hashes.SHA3_512),
        ("SM3", hashes.SM3),
    )
}
HASH_FAMILIES["RIPEMD160"] = _cryptodome_family("RIPEMD160", RIPEMD160)


def _lookup_key(name: str) -> str:
    return name.upper().replace("-", "").replace("_", "")


_LOOKUP: dict[str, str] = {_lookup_key(name): name for name in HASH_FAMILIES}


def supported_algorithms() -> list[str]:
    return list(HASH_FAMILIES)


def canonical_name(name: str) -> str:
    """Map a user supplied identifier onto its registry name.

    Matching is case-insensitive and ignores ``-`` and ``_``, so ``sha-256``,
    ``SHA_256`` and ``Sha256`` all resolve to ``SHA256``. Anything that is not
    in the registry raises :class:`UnsupportedAlgorithm`; there is no fallback
    to whatever names the crypto backend happens to know.
    """
    canonical = _LOOKUP.get(_lookup_key(name))
    if canonical is None:
        raise UnsupportedAlgorithm(
            f"Unsupported hash algorithm: {name!r} "
            f"(supported: {', '.join(HASH_FAMILIES)})"
        )
    return canonical


class PseudoRandomFunction:
    """HMAC over one hash family, plus the plain hash of that family.

    The instance is keyed once with :meth:`key`; keying mutates it, so an
    instance belongs to a single derivation and must not be shared between
    threads. Use it as a context manager so it is closed on every exit path.
    """

    def __init__(self, name: str) -> None:
        self.name = canonical_name(name)
        self._family = HASH_FAMILIES[self.name]
        self._keyed: Any = None
        self._closed = False

        # A family the backend has disabled (e.g. MD5 under FIPS) must fail
        # here, not halfway through a derivation.
        try:
            self._family.new_hash()
            self._family.new_hmac(b"\x00")
        except _BackendUnsupported as e:
            raise UnsupportedAlgorithm(
                f"Backend cannot provide {self.name} hash/HMAC."
            ) from e
        logger.debug("opened PRF HMAC-%s (digest_size=%d)", self.name, self.digest_size)

    @property
    def digest_size(self) -> int:
        return self._family.digest_size

    def unkeyed_hash(self, data: bytes) -> bytes:
        self._ensure_open()
        digest = self._family.new_hash()
        digest.update(bytes(data))
        return self._family.finish(digest)

    def key(self, key: bytes) -> None:
        self._ensure_open()
        self._keyed = self._family.new_hmac(bytes(key))

    def keyed_hash(self, message: bytes) -> bytes:
        self._ensure_open()
        if self._keyed is None:
            raise PBKDF2Error("PRF used before a key was set.")
        # The keyed context is never finalized; each call works on a copy.
        h = self._keyed.copy()
        h.update(message)
        return self._family.finish(h)

    def close(self) -> None:
        self._keyed = None
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise PBKDF2Error("PRF has been closed.")

    def __enter__(self) -> PseudoRandomFunction:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PseudoRandomFunction({self.name!r})"
