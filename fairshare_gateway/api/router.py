from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class Route(str, Enum):
    PREFLIGHT = "preflight"
    REGISTER = "register"
    LOGIN = "login"
    ANALYZE = "analyze"
    UNMATCHED = "unmatched"


REGISTER_PATH = "/api/auth/register"
LOGIN_PATH = "/api/auth/login"
ANALYZE_PATH = "/api/ai/analyze"

_ROUTES: Dict[Tuple[str, str], Route] = {
    (REGISTER_PATH, "POST"): Route.REGISTER,
    (LOGIN_PATH, "POST"): Route.LOGIN,
    (ANALYZE_PATH, "POST"): Route.ANALYZE,
}


def route_request(path: str, method: str) -> Route:
    """Classify a request; no business logic happens here.

    OPTIONS on any path is a CORS preflight. Paths match exactly and a known
    path with another method is unmatched.
    """
    m = (method or "").upper()
    if m == "OPTIONS":
        return Route.PREFLIGHT
    return _ROUTES.get((path or "", m), Route.UNMATCHED)
