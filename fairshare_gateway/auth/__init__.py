"""Authentication helpers.

Auth is minimal:

- Users table (username + PBKDF2-SHA256 password verifier)
- Self-contained HMAC-SHA256 signed tokens, 24h lifetime

Only `hashlib`/`hmac` primitives are used. There is no session table, so
logging out means the client discards its token.
"""

from .crud import CredentialStore, authenticate, register_user
from .deps import bearer_token, require_claims
from .passwords import hash_password, verify_password
from .tokens import issue_token, verify_token

__all__ = [
    "CredentialStore",
    "authenticate",
    "register_user",
    "bearer_token",
    "require_claims",
    "hash_password",
    "verify_password",
    "issue_token",
    "verify_token",
]
