import hashlib
import hmac as std_hmac

import pytest
from Cryptodome.Hash import HMAC as CryptodomeHMAC
from Cryptodome.Hash import RIPEMD160
from cryptography.exceptions import UnsupportedAlgorithm as BackendUnsupported

from pbkdf2_mod import PBKDF2Error, PseudoRandomFunction, UnsupportedAlgorithm, supported_algorithms
from pbkdf2_mod import prf as prf_module
from pbkdf2_mod.prf import canonical_name


@pytest.mark.parametrize("name", ["SHA256", "sha256", "Sha-256", "SHA_256", "sha_2_5_6"])
def test_canonical_name_spellings(name):
    assert canonical_name(name) == "SHA256"


def test_canonical_name_sha3_and_truncated_sha512():
    assert canonical_name("sha3-256") == "SHA3_256"
    assert canonical_name("SHA512-256") == "SHA512_256"


@pytest.mark.parametrize("name", ["", "WHIRLPOOL", "BLAKE2", "HMACSHA256"])
def test_unknown_names_rejected(name):
    with pytest.raises(UnsupportedAlgorithm):
        canonical_name(name)


def test_supported_algorithms_lists_canonical_names():
    names = supported_algorithms()
    assert "SHA1" in names
    assert "SHA512" in names
    assert all(canonical_name(n) == n for n in names)


@pytest.mark.parametrize("name, size", [("SHA1", 20), ("SHA256", 32), ("SHA384", 48), ("SHA512", 64)])
def test_digest_size(name, size):
    assert PseudoRandomFunction(name).digest_size == size


def test_keyed_hash_is_hmac():
    with PseudoRandomFunction("SHA256") as prf:
        prf.key(b"key")
        assert prf.keyed_hash(b"message") == std_hmac.new(b"key", b"message", hashlib.sha256).digest()
        # The keyed state survives repeated use.
        assert prf.keyed_hash(b"message") == prf.keyed_hash(b"message")


def test_unkeyed_hash_is_plain_hash():
    with PseudoRandomFunction("SHA1") as prf:
        assert prf.unkeyed_hash(b"abc") == hashlib.sha1(b"abc").digest()


def test_keyed_hash_requires_key():
    with PseudoRandomFunction("SHA1") as prf:
        with pytest.raises(PBKDF2Error):
            prf.keyed_hash(b"data")


def test_prf_closes_on_error():
    with pytest.raises(RuntimeError):
        with PseudoRandomFunction("SHA1") as prf:
            prf.key(b"k")
            raise RuntimeError("fail")
    with pytest.raises(PBKDF2Error):
        prf.keyed_hash(b"data")


def test_closed_prf_refuses_all_operations():
    with PseudoRandomFunction("SHA1") as prf:
        prf.key(b"k")
    with pytest.raises(PBKDF2Error):
        prf.key(b"k")
    with pytest.raises(PBKDF2Error):
        prf.unkeyed_hash(b"abc")


def test_backend_failure_surfaces_as_unsupported(monkeypatch):
    def refuse(*args, **kwargs):
        raise BackendUnsupported("disabled")

    monkeypatch.setattr(prf_module.hmac, "HMAC", refuse)
    with pytest.raises(UnsupportedAlgorithm) as excinfo:
        PseudoRandomFunction("MD5")
    assert isinstance(excinfo.value.__cause__, BackendUnsupported)


def test_ripemd160_family():
    with PseudoRandomFunction("ripemd-160") as prf:
        assert prf.name == "RIPEMD160"
        assert prf.digest_size == 20
        assert prf.unkeyed_hash(b"abc").hex() == "8eb208f7e05d987a9b044a8e98c6b087f15a0bfc"
        prf.key(b"key")
        assert prf.keyed_hash(b"message") == CryptodomeHMAC.new(b"key", b"message", digestmod=RIPEMD160).digest()


def test_sm3_family():
    try:
        prf = PseudoRandomFunction("SM3")
    except UnsupportedAlgorithm:
        pytest.skip("SM3 disabled in this OpenSSL build")
    with prf:
        assert prf.digest_size == 32
        # GB/T 32905-2016 example 1.
        assert prf.unkeyed_hash(b"abc").hex() == (
            "66c7f0f462eeedd9d1f2d46bdc10e4e24167c4875cf2f7a2297da02b8f4ba8e0"
        )
