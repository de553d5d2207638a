from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from fairshare_gateway.errors import MalformedProviderResponse, ProviderError, ProviderTimeout


# Upstream error bodies are echoed back to the client; keep them bounded.
MAX_ERROR_BODY_CHARS = 2000


def _debug(msg: str) -> None:
    print(f"[ai] {msg}")


def post_json(
    provider_id: str,
    url: str,
    payload: Dict[str, Any],
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout_seconds: float = 60,
) -> Dict[str, Any]:
    """POST a JSON body once and return the decoded JSON answer.

    - non-2xx            -> ProviderError(status, body)
    - timeout            -> ProviderTimeout
    - connection failure -> ProviderError(status=None)
    - 2xx but not JSON   -> MalformedProviderResponse

    No retries: the client decides whether to try again.
    """
    _debug(f"POST {provider_id} (timeout={timeout_seconds:g}s)")
    # A per-call session is closed on exit so the pooled connection is released
    # even when the request fails half way.
    with requests.Session() as session:
        try:
            r = session.post(url, json=payload, headers=headers or {}, timeout=timeout_seconds)
        except requests.Timeout as e:
            raise ProviderTimeout(provider_id, timeout_seconds) from e
        except requests.RequestException as e:
            # str(e) can carry the request URL and headers; answer with the type only.
            _debug(f"{provider_id} unreachable: {type(e).__name__}")
            raise ProviderError(provider_id, None, f"could not reach {provider_id}: {type(e).__name__}") from e

        if not (200 <= r.status_code < 300):
            body = (r.text or "")[:MAX_ERROR_BODY_CHARS]
            _debug(f"{provider_id} answered HTTP {r.status_code}")
            raise ProviderError(provider_id, r.status_code, body)

        try:
            data = r.json()
        except ValueError as e:
            raise MalformedProviderResponse(provider_id, "response body is not JSON") from e

    if not isinstance(data, dict):
        raise MalformedProviderResponse(provider_id, "response body is not a JSON object")
    return data
