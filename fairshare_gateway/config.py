import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from fairshare_gateway.models import ProviderDescriptor

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


def _provider(
    provider_id: str,
    *,
    endpoint_env: str,
    endpoint_default: str,
    credential_ref: str,
    model_env: str,
    model_default: str,
    request_shape: str,
) -> ProviderDescriptor:
    extractor = "candidates.0.content.parts.0.text" if request_shape == "gemini" else "choices.0.message.content"
    return ProviderDescriptor(
        provider_id=provider_id,
        endpoint_url=os.environ.get(endpoint_env, endpoint_default),
        credential_ref=credential_ref,
        model_id=os.environ.get(model_env, model_default),
        request_shape=request_shape,
        response_extractor=extractor,
        api_key=(os.environ.get(credential_ref) or "").strip() or None,
    )


def default_providers() -> Tuple[ProviderDescriptor, ...]:
    """The provider table, resolved from the environment once at startup."""
    return (
        _provider(
            "gemini",
            endpoint_env="GEMINI_BASE_URL",
            endpoint_default="https://generativelanguage.googleapis.com/v1beta",
            credential_ref="GEMINI_API_KEY",
            model_env="GEMINI_MODEL",
            model_default="gemini-2.0-flash",
            request_shape="gemini",
        ),
        _provider(
            "chatgpt",
            endpoint_env="OPENAI_CHAT_URL",
            endpoint_default="https://api.openai.com/v1/chat/completions",
            credential_ref="OPENAI_API_KEY",
            model_env="OPENAI_MODEL",
            model_default="gpt-4o",
            request_shape="openai_chat",
        ),
        _provider(
            "deepseek",
            endpoint_env="DEEPSEEK_CHAT_URL",
            endpoint_default="https://api.deepseek.com/chat/completions",
            credential_ref="DEEPSEEK_API_KEY",
            model_env="DEEPSEEK_MODEL",
            model_default="deepseek-chat",
            request_shape="openai_chat",
        ),
        _provider(
            "grok",
            endpoint_env="GROK_CHAT_URL",
            endpoint_default="https://api.x.ai/v1/chat/completions",
            credential_ref="GROK_API_KEY",
            model_env="GROK_MODEL",
            model_default="grok-beta",
            request_shape="openai_chat",
        ),
    )


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide the token secret and provider API keys via environment
    variables or a .env file. Do not hardcode secrets in source code.
    """

    # -----------------
    # Credential store
    # -----------------
    # SQLite path by default; a postgres:// URL switches to psycopg2.
    DB_DSN: str = (
        os.environ.get("FAIRSHARE_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("FAIRSHARE_DB_PATH", "./fairshare.sqlite")
    )
    STORE_TIMEOUT_SECONDS: float = float(os.environ.get("STORE_TIMEOUT_SECONDS", "5"))

    # -----------------
    # Auth
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_TOKEN_SECRET to a strong random value.
    AUTH_TOKEN_SECRET: str = field(
        default=os.environ.get("AUTH_TOKEN_SECRET") or os.environ.get("JWT_SECRET") or "dev_change_me",
        repr=False,
    )
    AUTH_TOKEN_TTL_SECONDS: int = int(os.environ.get("AUTH_TOKEN_TTL_SECONDS", "86400"))  # 24 hours
    PASSWORD_HASH_ITERATIONS: int = int(os.environ.get("PASSWORD_HASH_ITERATIONS", "100000"))

    # -----------------
    # AI providers
    # -----------------
    PROVIDERS: Tuple[ProviderDescriptor, ...] = field(default_factory=default_providers)
    PROVIDER_TIMEOUT_SECONDS: float = float(os.environ.get("PROVIDER_TIMEOUT_SECONDS", "60"))

    # -----------------
    # HTTP surface
    # -----------------
    # Missing/malformed fields answer 500 to match the deployed worker.
    # Set VALIDATION_ERROR_STATUS=400 for the more precise client-error code.
    VALIDATION_ERROR_STATUS: int = int(os.environ.get("VALIDATION_ERROR_STATUS", "500"))

    # Print one line per request state transition (never secrets or tokens).
    DEBUG_REQUESTS: bool = _env_bool("DEBUG_REQUESTS", False) is True

    def provider(self, provider_id: str) -> Optional[ProviderDescriptor]:
        for p in self.PROVIDERS:
            if p.provider_id == provider_id:
                return p
        return None


def load_config() -> Config:
    return Config()
