import pytest

from fairshare_gateway.auth.passwords import (
    DEFAULT_ITERATIONS,
    SALT_BYTES,
    hash_password,
    split_verifier,
    verify_password,
)
from fairshare_gateway.errors import CorruptCredential


FAST = 1000


@pytest.mark.parametrize("password", ["secret123", "p", "ünïcødé pässwörd", "x" * 200])
def test_hash_then_verify_accepts_same_password(password):
    assert verify_password(password, hash_password(password, iterations=FAST), iterations=FAST)


def test_verify_rejects_different_password():
    verifier = hash_password("secret123", iterations=FAST)
    assert not verify_password("secret124", verifier, iterations=FAST)
    assert not verify_password("Secret123", verifier, iterations=FAST)


def test_two_hashes_of_same_password_differ_and_both_verify():
    a = hash_password("secret123", iterations=FAST)
    b = hash_password("secret123", iterations=FAST)
    assert a != b
    assert verify_password("secret123", a, iterations=FAST)
    assert verify_password("secret123", b, iterations=FAST)


def test_verifier_shape_is_salt_hex_colon_key_hex():
    salt_hex, key_hex = hash_password("secret123", iterations=FAST).split(":")
    assert len(bytes.fromhex(salt_hex)) == SALT_BYTES
    assert len(bytes.fromhex(key_hex)) == 32


def test_default_cost_matches_reference_verifier():
    # PBKDF2-HMAC-SHA256, 100k rounds, 32-byte key: the deployed worker's format.
    assert DEFAULT_ITERATIONS == 100_000
    salt = bytes(range(16))
    verifier = hash_password("secret123", salt=salt)
    assert verifier.startswith(salt.hex() + ":")
    assert verify_password("secret123", verifier)


def test_blank_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("")


@pytest.mark.parametrize(
    "verifier",
    ["", "abcdef", "aa:bb:cc", ":abcd", "abcd:", "zz:abcd", "abcd:not-hex"],
)
def test_malformed_verifier_is_corrupt(verifier):
    with pytest.raises(CorruptCredential):
        split_verifier(verifier)
    with pytest.raises(CorruptCredential):
        verify_password("secret123", verifier, iterations=FAST)
