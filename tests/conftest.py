import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
import requests

from fairshare_gateway.ai.registry import AnalyzerRegistry
from fairshare_gateway.auth.crud import CredentialStore
from fairshare_gateway.config import Config
from fairshare_gateway.db import init_db
from fairshare_gateway.gateway import Gateway, GatewayRequest
from fairshare_gateway.models import ProviderDescriptor


TEST_SECRET = "test-secret"


def _providers() -> tuple:
    return (
        ProviderDescriptor(
            provider_id="gemini",
            endpoint_url="https://gemini.test/v1beta",
            credential_ref="GEMINI_API_KEY",
            model_id="gemini-2.0-flash",
            request_shape="gemini",
            response_extractor="candidates.0.content.parts.0.text",
            api_key="gem-key",
        ),
        ProviderDescriptor(
            provider_id="chatgpt",
            endpoint_url="https://openai.test/v1/chat/completions",
            credential_ref="OPENAI_API_KEY",
            model_id="gpt-4o",
            request_shape="openai_chat",
            response_extractor="choices.0.message.content",
            api_key="oai-key",
        ),
        ProviderDescriptor(
            provider_id="deepseek",
            endpoint_url="https://deepseek.test/chat/completions",
            credential_ref="DEEPSEEK_API_KEY",
            model_id="deepseek-chat",
            request_shape="openai_chat",
            response_extractor="choices.0.message.content",
            api_key="ds-key",
        ),
        ProviderDescriptor(
            provider_id="grok",
            endpoint_url="https://grok.test/v1/chat/completions",
            credential_ref="GROK_API_KEY",
            model_id="grok-beta",
            request_shape="openai_chat",
            response_extractor="choices.0.message.content",
            api_key=None,
        ),
    )


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    # Low PBKDF2 cost keeps the suite fast; the default is covered in test_passwords.
    return Config(
        DB_DSN=str(tmp_path / "users.sqlite"),
        STORE_TIMEOUT_SECONDS=5,
        AUTH_TOKEN_SECRET=TEST_SECRET,
        AUTH_TOKEN_TTL_SECONDS=86400,
        PASSWORD_HASH_ITERATIONS=1000,
        PROVIDERS=_providers(),
        PROVIDER_TIMEOUT_SECONDS=5,
        VALIDATION_ERROR_STATUS=500,
        DEBUG_REQUESTS=False,
    )


@pytest.fixture()
def store(cfg: Config) -> CredentialStore:
    init_db(cfg.DB_DSN)
    return CredentialStore(cfg.DB_DSN, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)


@pytest.fixture()
def registry(cfg: Config) -> AnalyzerRegistry:
    return AnalyzerRegistry.from_config(cfg)


@pytest.fixture()
def gateway(cfg: Config, store: CredentialStore, registry: AnalyzerRegistry) -> Gateway:
    return Gateway(cfg, store, registry)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class Upstream:
    """Records outbound provider calls and replays queued answers (or exceptions)."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.answers: List[Any] = []

    def reply(self, answer: Any) -> None:
        self.answers.append(answer)

    def post(self, session: Any, url: str, json: Any = None, headers: Any = None, timeout: Any = None, **kw: Any):
        self.calls.append({"url": url, "json": json, "headers": headers or {}, "timeout": timeout})
        if not self.answers:
            raise AssertionError(f"unexpected upstream call to {url}")
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture()
def upstream(monkeypatch) -> Upstream:
    up = Upstream()
    monkeypatch.setattr(requests.Session, "post", lambda self, url, **kw: up.post(self, url, **kw))
    return up


def gemini_answer(inner: Dict[str, Any] | str) -> FakeResponse:
    text = inner if isinstance(inner, str) else json.dumps(inner)
    return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]})


def chat_answer(inner: Dict[str, Any] | str) -> FakeResponse:
    text = inner if isinstance(inner, str) else json.dumps(inner)
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": text}}]})


def post(gateway: Gateway, path: str, body: Any = None, headers: Dict[str, str] | None = None, method: str = "POST"):
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8") if body is not None else b""
    return gateway.handle(GatewayRequest(method=method, path=path, headers=headers or {}, body=raw))


def body_json(res) -> Any:
    return json.loads(res.body)
