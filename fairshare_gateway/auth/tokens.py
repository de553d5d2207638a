from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from typing import Any, Dict, Optional

from fairshare_gateway.util.time import unix_now


TOKEN_ALG = "HMAC-SHA256"
TOKEN_TYP = "FST"  # FairShare session token
_HEADER: Dict[str, str] = {"alg": TOKEN_ALG, "typ": TOKEN_TYP}


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)


def _encode_json(obj: Dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _sign(signing_input: str, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def issue_token(
    claims: Dict[str, Any],
    *,
    secret: str,
    ttl_seconds: int,
    now: int | None = None,
) -> str:
    """Sign claims into a `header.payload.signature` token.

    `exp` is always set here from the configured TTL; a caller-supplied exp is overwritten.
    """
    if not secret:
        raise ValueError("token_secret_blank")
    issued_at = unix_now() if now is None else int(now)
    payload = dict(claims)
    payload["exp"] = issued_at + max(1, int(ttl_seconds))

    signing_input = f"{_encode_json(_HEADER)}.{_encode_json(payload)}"
    return f"{signing_input}.{_b64url_encode(_sign(signing_input, secret))}"


def verify_token(token: str, *, secret: str, now: int | None = None) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid, unexpired token, else None.

    Never raises: every parse, signature or expiry failure is reported as None.
    """
    if not token or not secret:
        return None
    try:
        segments = token.split(".")
        if len(segments) != 3:
            return None
        header_seg, payload_seg, sig_seg = segments

        # Compare encoded segments: a flipped padding bit in the last
        # character must not verify either.
        expected = _b64url_encode(_sign(f"{header_seg}.{payload_seg}", secret))
        if not hmac.compare_digest(expected, sig_seg):
            return None

        header = json.loads(_b64url_decode(header_seg))
        if not isinstance(header, dict) or header.get("alg") != TOKEN_ALG or header.get("typ") != TOKEN_TYP:
            return None

        claims = json.loads(_b64url_decode(payload_seg))
        if not isinstance(claims, dict):
            return None
        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int):
            return None
        current = unix_now() if now is None else int(now)
        if exp <= current:
            return None
        return claims
    except (ValueError, binascii.Error, UnicodeError, TypeError, AttributeError):
        # json.JSONDecodeError is a ValueError
        return None
