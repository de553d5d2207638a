"""Error taxonomy shared by the auth, store and provider layers.

Errors carry no HTTP status: the gateway owns the mapping to response codes.
"""

from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base for every error the gateway knows how to answer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Missing or malformed request fields."""


class UsernameTaken(ValidationError):
    def __init__(self, message: str = "Username taken"):
        super().__init__(message)


class UnknownProvider(ValidationError):
    def __init__(self, provider_id: str):
        super().__init__(f"Unknown model: {provider_id}")
        self.provider_id = provider_id


class AuthError(GatewayError):
    """Bad credentials or a missing/invalid/expired token."""


class NotFoundError(GatewayError):
    def __init__(self, message: str = "Not Found"):
        super().__init__(message)


class CorruptCredential(GatewayError):
    """A stored verifier does not have the salt:key shape."""


class StoreError(GatewayError):
    """The credential store failed."""


class StoreTimeout(StoreError):
    pass


class ProviderError(GatewayError):
    """An upstream AI provider answered with a failure (or could not be reached)."""

    def __init__(self, provider_id: str, status: Optional[int], body: str, message: str | None = None):
        super().__init__(message or f"Provider Error: {body}")
        self.provider_id = provider_id
        self.status = status
        self.body = body


class ProviderTimeout(ProviderError):
    def __init__(self, provider_id: str, timeout_seconds: float):
        super().__init__(
            provider_id,
            None,
            "",
            message=f"Provider Error: {provider_id} did not answer within {timeout_seconds:g}s",
        )
        self.timeout_seconds = timeout_seconds


class ProviderNotConfigured(ProviderError):
    def __init__(self, provider_id: str, credential_ref: str):
        super().__init__(
            provider_id,
            None,
            "",
            message=f"Provider Error: {provider_id} is not configured (missing {credential_ref})",
        )
        self.credential_ref = credential_ref


class MalformedProviderResponse(GatewayError):
    """The upstream answered 2xx but its embedded payload is not the expected JSON."""

    def __init__(self, provider_id: str, detail: str):
        super().__init__(f"Malformed response from {provider_id}: {detail}")
        self.provider_id = provider_id
        self.detail = detail
