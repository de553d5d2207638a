from __future__ import annotations

from typing import Any, Optional

from fairshare_gateway.config import Config
from fairshare_gateway.db import connect, is_unique_violation, translate_store_error
from fairshare_gateway.errors import CorruptCredential, GatewayError, UsernameTaken, ValidationError
from fairshare_gateway.models import CredentialRecord
from fairshare_gateway.util.time import utcnow_iso

from .passwords import hash_password, verify_password


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


# Verified against when the username does not exist, so a miss costs the
# same PBKDF2 work as a wrong password.
_DUMMY_VERIFIER = "00" * 16 + ":" + "00" * 32


def _record(row: Any) -> CredentialRecord:
    return CredentialRecord(
        id=int(row["id"]),
        username=str(row["username"]),
        password_verifier=str(row["password_hash"]),
    )


class CredentialStore:
    """Username-keyed credential table (find_by_username / insert)."""

    def __init__(self, db_dsn: str, *, timeout_seconds: float = 5.0):
        self.db_dsn = db_dsn
        self.timeout_seconds = timeout_seconds

    def find_by_username(self, username: str) -> Optional[CredentialRecord]:
        if not username:
            return None
        try:
            with connect(self.db_dsn, timeout_seconds=self.timeout_seconds) as conn:
                row = conn.execute(
                    "SELECT id, username, password_hash FROM users WHERE username=?",
                    (username,),
                ).fetchone()
        except GatewayError:
            raise
        except Exception as e:
            raise translate_store_error(e) from e
        return _record(row) if row is not None else None

    def insert(self, username: str, password_verifier: str) -> CredentialRecord:
        """Insert a credential; a UNIQUE conflict raises UsernameTaken."""
        try:
            with connect(self.db_dsn, timeout_seconds=self.timeout_seconds) as conn:
                conn.execute(
                    "INSERT INTO users (username, password_hash, created_at) VALUES (?,?,?)",
                    (username, password_verifier, utcnow_iso()),
                )
                row = conn.execute(
                    "SELECT id, username, password_hash FROM users WHERE username=?",
                    (username,),
                ).fetchone()
        except GatewayError:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise UsernameTaken() from e
            raise translate_store_error(e) from e
        assert row is not None
        return _record(row)


def register_user(store: CredentialStore, cfg: Config, *, username: str, password: str) -> CredentialRecord:
    """Create a credential record.

    The existence check answers the common case early; the store's UNIQUE
    constraint settles concurrent registrations of the same name.
    """
    if not username or not password:
        raise ValidationError("Missing credentials")

    if store.find_by_username(username) is not None:
        raise UsernameTaken()

    verifier = hash_password(password, iterations=cfg.PASSWORD_HASH_ITERATIONS)
    record = store.insert(username, verifier)
    _debug(f"Registered user id={record.id}")
    return record


def authenticate(store: CredentialStore, cfg: Config, *, username: str, password: str) -> Optional[CredentialRecord]:
    """Return the record when username/password match, else None.

    Unknown usernames, wrong passwords and corrupt stored verifiers are all
    reported the same way.
    """
    if not username or not password:
        return None

    record = store.find_by_username(username)
    if record is None:
        verify_password(password, _DUMMY_VERIFIER, iterations=cfg.PASSWORD_HASH_ITERATIONS)
        return None

    try:
        ok = verify_password(password, record.password_verifier, iterations=cfg.PASSWORD_HASH_ITERATIONS)
    except CorruptCredential:
        _debug(f"Corrupt password verifier for user id={record.id}; denying login")
        return None
    return record if ok else None
