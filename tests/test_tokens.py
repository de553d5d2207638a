import base64
import json

import pytest

from fairshare_gateway.auth.tokens import TOKEN_ALG, issue_token, verify_token


SECRET = "s3cret"
NOW = 1_700_000_000


def _decode(segment: str):
    return json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))


def test_round_trip_returns_claims():
    token = issue_token({"sub": 7, "name": "alice"}, secret=SECRET, ttl_seconds=86400, now=NOW)
    claims = verify_token(token, secret=SECRET, now=NOW + 10)
    assert claims == {"sub": 7, "name": "alice", "exp": NOW + 86400}


def test_token_has_three_urlsafe_segments_and_named_header():
    token = issue_token({"sub": 1, "name": "a"}, secret=SECRET, ttl_seconds=60, now=NOW)
    segments = token.split(".")
    assert len(segments) == 3
    assert all("=" not in s and "+" not in s and "/" not in s for s in segments)
    header = _decode(segments[0])
    assert header["alg"] == TOKEN_ALG
    assert header["typ"] != "JWT"


def test_exp_is_set_from_ttl_not_from_claims():
    token = issue_token({"sub": 1, "name": "a", "exp": NOW + 10**9}, secret=SECRET, ttl_seconds=60, now=NOW)
    assert _decode(token.split(".")[1])["exp"] == NOW + 60


def test_every_single_character_change_is_rejected():
    token = issue_token({"sub": 1, "name": "alice"}, secret=SECRET, ttl_seconds=3600, now=NOW)
    for i, ch in enumerate(token):
        replacement = "A" if ch != "A" else "B"
        tampered = token[:i] + replacement + token[i + 1 :]
        assert verify_token(tampered, secret=SECRET, now=NOW) is None, f"position {i}"


def test_wrong_secret_is_rejected():
    token = issue_token({"sub": 1, "name": "alice"}, secret=SECRET, ttl_seconds=3600, now=NOW)
    assert verify_token(token, secret="other", now=NOW) is None


def test_expired_token_is_rejected():
    token = issue_token({"sub": 1, "name": "alice"}, secret=SECRET, ttl_seconds=60, now=NOW)
    assert verify_token(token, secret=SECRET, now=NOW + 59) is not None
    assert verify_token(token, secret=SECRET, now=NOW + 60) is None
    assert verify_token(token, secret=SECRET, now=NOW + 3600) is None


@pytest.mark.parametrize(
    "token",
    ["", "abc", "a.b", "a.b.c.d", "...", "not base64!.x.y", None, 12345],
)
def test_garbage_never_raises(token):
    assert verify_token(token, secret=SECRET, now=NOW) is None


def test_signed_payload_without_integer_exp_is_rejected():
    import hashlib
    import hmac

    def seg(obj):
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()

    header = seg({"alg": TOKEN_ALG, "typ": "FST"})
    payload = seg({"sub": 1, "exp": "tomorrow"})
    sig = hmac.new(SECRET.encode(), f"{header}.{payload}".encode(), hashlib.sha256).digest()
    token = f"{header}.{payload}.{base64.urlsafe_b64encode(sig).rstrip(b'=').decode()}"
    assert verify_token(token, secret=SECRET, now=NOW) is None


def test_blank_secret_refuses_to_issue():
    with pytest.raises(ValueError):
        issue_token({"sub": 1}, secret="", ttl_seconds=60)
