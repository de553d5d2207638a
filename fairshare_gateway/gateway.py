"""Per-request orchestration.

A request moves through

    received -> routed -> auth_checked (analyze only) -> provider_dispatched
             -> normalized -> responded

and stops at the first failure, which is turned into a `{"error": ...}`
response here. Nothing below this layer knows about HTTP status codes.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import pydantic
from pydantic import BaseModel

from fairshare_gateway.ai.prompt import EXTRACTION_PROMPT
from fairshare_gateway.ai.registry import AnalyzerRegistry
from fairshare_gateway.api.router import Route, route_request
from fairshare_gateway.auth.crud import CredentialStore, authenticate, register_user
from fairshare_gateway.auth.deps import require_claims
from fairshare_gateway.auth.tokens import issue_token
from fairshare_gateway.config import Config
from fairshare_gateway.errors import (
    AuthError,
    CorruptCredential,
    GatewayError,
    NotFoundError,
    ValidationError,
)


def _debug(msg: str) -> None:
    print(f"[gateway] {msg}")


CORS_HEADERS: Mapping[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,", re.IGNORECASE)


class RegisterRequest(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    # Missing fields are a failed login (401), not a validation error.
    username: Optional[str] = None
    password: Optional[str] = None


class AnalyzeRequest(BaseModel):
    image: str  # base64, normally without a data: prefix
    model: str  # provider id


@dataclass(frozen=True)
class GatewayRequest:
    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class GatewayResponse:
    status: int
    body: bytes
    media_type: Optional[str]
    headers: Mapping[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))


def decode_image(raw: str) -> Tuple[bytes, str]:
    """Return (image_bytes, mime_type) from a base64 string.

    A leading `data:<mime>;base64,` prefix is tolerated and its mime type kept.
    """
    s = (raw or "").strip()
    mime = "image/jpeg"
    m = _DATA_URI.match(s)
    if m:
        mime = m.group("mime").lower()
        s = s[m.end() :]
    s = "".join(s.split())
    if not s:
        raise ValidationError("Missing image")
    try:
        data = base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image is not valid base64") from e
    if not data:
        raise ValidationError("Missing image")
    return data, mime


class Gateway:
    def __init__(self, cfg: Config, store: CredentialStore, registry: AnalyzerRegistry):
        self.cfg = cfg
        self.store = store
        self.registry = registry

    # -----------------------------
    # Responses
    # -----------------------------

    @staticmethod
    def _json(status: int, payload: Any) -> GatewayResponse:
        return GatewayResponse(status=status, body=json.dumps(payload).encode("utf-8"), media_type="application/json")

    def _status_for(self, exc: GatewayError) -> int:
        if isinstance(exc, ValidationError):
            return int(self.cfg.VALIDATION_ERROR_STATUS)
        if isinstance(exc, (AuthError, CorruptCredential)):
            return 401
        if isinstance(exc, NotFoundError):
            return 404
        # ProviderError, MalformedProviderResponse, StoreError
        return 500

    def _trace(self, msg: str) -> None:
        if self.cfg.DEBUG_REQUESTS:
            _debug(msg)

    # -----------------------------
    # Entry point
    # -----------------------------

    def handle(self, req: GatewayRequest) -> GatewayResponse:
        """Answer one request; never raises."""
        route = route_request(req.path, req.method)
        self._trace(f"routed {req.method} {req.path} -> {route.value}")

        if route is Route.PREFLIGHT:
            return GatewayResponse(status=200, body=b"", media_type=None)

        try:
            if route is Route.REGISTER:
                payload = self._register(req)
            elif route is Route.LOGIN:
                payload = self._login(req)
            elif route is Route.ANALYZE:
                payload = self._analyze(req)
            else:
                raise NotFoundError()
        except NotFoundError as e:
            return GatewayResponse(status=404, body=e.message.encode("utf-8"), media_type="text/plain")
        except GatewayError as e:
            status = self._status_for(e)
            self._trace(f"{route.value} failed ({type(e).__name__}) -> {status}")
            return self._json(status, {"error": e.message})
        except Exception as e:
            _debug(f"Unhandled error on {route.value}: {type(e).__name__}: {e}")
            return self._json(500, {"error": str(e) or type(e).__name__})

        self._trace(f"{route.value} responded 200")
        return self._json(200, payload)

    # -----------------------------
    # Handlers
    # -----------------------------

    def _json_body(self, req: GatewayRequest) -> Dict[str, Any]:
        try:
            obj = json.loads(req.body or b"")
        except (ValueError, UnicodeDecodeError) as e:
            raise ValidationError("Request body must be JSON") from e
        if not isinstance(obj, dict):
            raise ValidationError("Request body must be a JSON object")
        return obj

    def _register(self, req: GatewayRequest) -> Dict[str, Any]:
        try:
            body = RegisterRequest.model_validate(self._json_body(req))
        except pydantic.ValidationError as e:
            raise ValidationError("Missing credentials") from e
        register_user(self.store, self.cfg, username=body.username, password=body.password)
        return {"success": True}

    def _login(self, req: GatewayRequest) -> Dict[str, Any]:
        try:
            body = LoginRequest.model_validate(self._json_body(req))
        except pydantic.ValidationError:
            raise AuthError("Invalid credentials")

        record = authenticate(self.store, self.cfg, username=body.username or "", password=body.password or "")
        if record is None:
            raise AuthError("Invalid credentials")

        token = issue_token(
            {"sub": record.id, "name": record.username},
            secret=self.cfg.AUTH_TOKEN_SECRET,
            ttl_seconds=self.cfg.AUTH_TOKEN_TTL_SECONDS,
        )
        return {"token": token}

    def _analyze(self, req: GatewayRequest) -> Dict[str, Any]:
        # Token first: nothing about the body or providers is touched unauthenticated.
        claims = require_claims(req.headers, self.cfg)
        self._trace(f"auth_checked sub={claims.get('sub')}")

        try:
            body = AnalyzeRequest.model_validate(self._json_body(req))
        except pydantic.ValidationError as e:
            missing = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ValidationError(f"Missing or invalid field(s): {', '.join(missing)}") from e

        analyzer = self.registry.get(body.model.strip())
        image, mime_type = decode_image(body.image)

        self._trace(f"provider_dispatched {analyzer.provider_id} ({len(image)} bytes)")
        result = analyzer.analyze(image, EXTRACTION_PROMPT, mime_type)
        self._trace(f"normalized {analyzer.provider_id} type={result.type.value} periods={len(result.periods)}")
        return result.to_dict()
