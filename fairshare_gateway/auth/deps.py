from __future__ import annotations

from typing import Any, Dict, Mapping

from fairshare_gateway.config import Config
from fairshare_gateway.errors import AuthError

from .tokens import verify_token


def bearer_token(headers: Mapping[str, str]) -> str | None:
    """Pull the token out of `Authorization: Bearer <token>` (case-insensitive header name)."""
    raw = None
    for k, v in headers.items():
        if k.lower() == "authorization":
            raw = v
            break
    if not raw:
        return None
    scheme, _, token = raw.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def require_claims(headers: Mapping[str, str], cfg: Config) -> Dict[str, Any]:
    """Authenticate a protected request or raise AuthError."""
    token = bearer_token(headers)
    if not token:
        raise AuthError("No token provided")

    claims = verify_token(token, secret=cfg.AUTH_TOKEN_SECRET)
    if claims is None:
        raise AuthError("Invalid token")
    if claims.get("sub") is None:
        raise AuthError("Invalid token")
    return claims
