"""Small client for the gateway, mirroring what the FairShare web app does.

Usage:
    client = GatewayClient("https://fairshare-backend.example.workers.dev")
    client.register("alice", "secret123")
    client.login("alice", "secret123")
    result = client.analyze_bill(image_b64, model="gemini")

The session is held in memory only; logout just forgets the token (the
server keeps no session state).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from fairshare_gateway.ai.schema import normalize_bill_result
from fairshare_gateway.errors import MalformedProviderResponse
from fairshare_gateway.models import BillExtractionResult


def _debug(msg: str) -> None:
    print(f"[client] {msg}")


# Mirrors the server's default token lifetime; the client cannot read exp
# without trusting unverified token contents.
SESSION_TTL_SECONDS = 24 * 60 * 60


class GatewayClientError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass(frozen=True)
class UserSession:
    token: str
    username: str
    expires_at: float  # unix seconds


class GatewayClient:
    def __init__(self, base_url: str, *, timeout_seconds: float = 90, session_ttl_seconds: int = SESSION_TTL_SECONDS):
        self.base_url = (base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("base_url is required")
        self.timeout_seconds = timeout_seconds
        self.session_ttl_seconds = session_ttl_seconds
        self._session: Optional[UserSession] = None

    def _post(self, path: str, payload: Dict[str, Any], *, token: Optional[str] = None, action: str) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            r = requests.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise GatewayClientError(f"{action} failed: {e}") from e

        if not (200 <= r.status_code < 300):
            message = None
            try:
                data = r.json()
                if isinstance(data, dict):
                    message = data.get("error")
            except ValueError:
                pass
            raise GatewayClientError(message or f"{action} failed: HTTP {r.status_code}", status=r.status_code)

        try:
            return r.json()
        except ValueError as e:
            raise GatewayClientError(f"{action} failed: response is not JSON", status=r.status_code) from e

    # -----------------------------
    # Auth
    # -----------------------------

    def register(self, username: str, password: str) -> None:
        self._post("/api/auth/register", {"username": username, "password": password}, action="Registration")

    def login(self, username: str, password: str) -> UserSession:
        data = self._post("/api/auth/login", {"username": username, "password": password}, action="Login")
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise GatewayClientError("Login failed: no token in response")
        self._session = UserSession(
            token=str(token),
            username=username,
            expires_at=time.time() + self.session_ttl_seconds,
        )
        return self._session

    def logout(self) -> None:
        self._session = None

    @property
    def session(self) -> Optional[UserSession]:
        if self._session is not None and time.time() > self._session.expires_at:
            self._session = None
        return self._session

    # -----------------------------
    # AI
    # -----------------------------

    def analyze_bill(self, image_b64: str, model: str = "gemini") -> BillExtractionResult:
        session = self.session
        if session is None:
            raise GatewayClientError("Please log in to use AI features.")

        data = self._post(
            "/api/ai/analyze",
            {"image": image_b64, "model": model},
            token=session.token,
            action="AI request",
        )
        if not isinstance(data, dict):
            raise GatewayClientError("AI request failed: response is not an object")
        try:
            result = normalize_bill_result(model, data)
        except MalformedProviderResponse as e:
            raise GatewayClientError(f"AI request failed: {e.message}") from e
        _debug(f"Scanned {result.suggested_name or result.type.value} with {model}")
        return result
