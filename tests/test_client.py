import pytest
import requests

from conftest import FakeResponse
from fairshare_gateway import client as client_mod
from fairshare_gateway.client import GatewayClient, GatewayClientError
from fairshare_gateway.models import BillType


class Recorder:
    def __init__(self):
        self.calls = []
        self.answers = []

    def __call__(self, url, json=None, headers=None, timeout=None, **kw):
        self.calls.append({"url": url, "json": json, "headers": headers or {}, "timeout": timeout})
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture()
def http(monkeypatch):
    rec = Recorder()
    monkeypatch.setattr(client_mod.requests, "post", rec)
    return rec


def test_login_then_analyze_sends_bearer(http):
    http.answers += [
        FakeResponse(200, {"token": "a.b.c"}),
        FakeResponse(200, {"type": "electricity", "supplyCost": "12.50", "suggestedName": "Jan"}),
    ]
    c = GatewayClient("https://gw.test/")
    session = c.login("alice", "secret123")
    assert session.token == "a.b.c"
    assert c.session is session

    result = c.analyze_bill("aGVsbG8=", model="deepseek")
    assert result.type is BillType.ELECTRICITY
    assert result.supply_cost == 12.5

    login_call, analyze_call = http.calls
    assert login_call["url"] == "https://gw.test/api/auth/login"
    assert analyze_call["url"] == "https://gw.test/api/ai/analyze"
    assert analyze_call["json"] == {"image": "aGVsbG8=", "model": "deepseek"}
    assert analyze_call["headers"]["Authorization"] == "Bearer a.b.c"


def test_analyze_requires_login(http):
    with pytest.raises(GatewayClientError) as exc:
        GatewayClient("https://gw.test").analyze_bill("aGVsbG8=")
    assert "log in" in exc.value.message
    assert http.calls == []


def test_server_error_message_is_surfaced(http):
    http.answers.append(FakeResponse(500, {"error": "Username taken"}))
    with pytest.raises(GatewayClientError) as exc:
        GatewayClient("https://gw.test").register("alice", "x")
    assert exc.value.message == "Username taken"
    assert exc.value.status == 500


def test_non_json_error_falls_back_to_status(http):
    http.answers.append(FakeResponse(404, text="Not Found"))
    with pytest.raises(GatewayClientError) as exc:
        GatewayClient("https://gw.test").login("alice", "x")
    assert exc.value.message == "Login failed: HTTP 404"


def test_network_failure(http):
    http.answers.append(requests.ConnectionError("refused"))
    with pytest.raises(GatewayClientError):
        GatewayClient("https://gw.test").login("alice", "x")


def test_expired_session_is_dropped(http, monkeypatch):
    http.answers.append(FakeResponse(200, {"token": "a.b.c"}))
    c = GatewayClient("https://gw.test", session_ttl_seconds=10)
    now = [1000.0]
    monkeypatch.setattr(client_mod.time, "time", lambda: now[0])
    c.login("alice", "x")
    assert c.session is not None
    now[0] += 11
    assert c.session is None


def test_logout_forgets_token(http):
    http.answers.append(FakeResponse(200, {"token": "a.b.c"}))
    c = GatewayClient("https://gw.test")
    c.login("alice", "x")
    c.logout()
    assert c.session is None


def test_bad_result_from_server_is_client_error(http):
    http.answers += [FakeResponse(200, {"token": "t"}), FakeResponse(200, {"type": "PHONE"})]
    c = GatewayClient("https://gw.test")
    c.login("alice", "x")
    with pytest.raises(GatewayClientError):
        c.analyze_bill("aGVsbG8=")
