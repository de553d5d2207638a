from __future__ import annotations

import hashlib
import hmac
import secrets

from fairshare_gateway.errors import CorruptCredential


SALT_BYTES = 16
KEY_BYTES = 32
DEFAULT_ITERATIONS = 100_000
_DELIM = ":"


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations), dklen=KEY_BYTES)


def hash_password(password: str, salt: bytes | None = None, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Return a `salt_hex:key_hex` verifier for the password.

    A fresh random salt is drawn unless one is supplied.
    """
    if not password:
        raise ValueError("password_blank")
    if salt is None:
        salt = secrets.token_bytes(SALT_BYTES)
    key = _derive(password, salt, iterations)
    return f"{salt.hex()}{_DELIM}{key.hex()}"


def split_verifier(verifier: str) -> tuple[bytes, bytes]:
    """Decode a stored verifier into (salt, derived_key).

    Raises CorruptCredential for any shape other than two non-empty hex parts.
    """
    parts = (verifier or "").split(_DELIM)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise CorruptCredential("Stored password verifier is corrupt")
    try:
        return bytes.fromhex(parts[0]), bytes.fromhex(parts[1])
    except ValueError as e:
        raise CorruptCredential("Stored password verifier is corrupt") from e


def verify_password(password: str, verifier: str, iterations: int = DEFAULT_ITERATIONS) -> bool:
    salt, expected = split_verifier(verifier)
    if not password:
        return False
    actual = _derive(password, salt, iterations)
    if len(actual) != len(expected):
        return False
    return hmac.compare_digest(actual, expected)
