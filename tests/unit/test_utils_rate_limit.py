from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from checkout_backend.utils.rate_limit import client_key, optional_rate_limit, rate_limit_health_info


def _make_app():
    app = FastAPI()

    @app.get("/limited", dependencies=[Depends(optional_rate_limit(times=2, seconds=60))])
    def limited():
        return {"ok": True}

    return app

def test_local_fallback_returns_429(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app())
    assert client.get("/limited").status_code == 200
    assert client.get("/limited").status_code == 200
    r = client.get("/limited")
    assert r.status_code == 429
    assert r.json()["detail"] == "Too many requests from this IP, please try again later."

def test_local_fallback_is_per_ip(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app())
    for _ in range(2):
        client.get("/limited", headers={"X-Forwarded-For": "1.1.1.1"})
    assert client.get("/limited", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429
    assert client.get("/limited", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 200

def test_disabled_flag_skips_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app()
    app.state.rate_limit_enabled = False
    client = TestClient(app)
    for _ in range(5):
        assert client.get("/limited").status_code == 200

def test_client_key_prefers_forwarded_for():
    class _Req:
        headers = {"x-forwarded-for": "9.9.9.9, 10.0.0.1"}
        client = None
        class url:
            path = "/api/v1/payments/verify"
    assert client_key(_Req()) == "ip:9.9.9.9:/api/v1/payments/verify"

def test_health_info_reports_fallback(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    class _Req:
        class app:
            class state:
                rate_limit_enabled = False
    info = rate_limit_health_info(_Req())
    assert info["enabled"] is False
    assert info["local_fallback"] is True

def test_local_fallback_drops_expired_keys(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    clock = {"now": 1000.0}

    class _FakeTime:
        @staticmethod
        def time():
            return clock["now"]

    monkeypatch.setattr("checkout_backend.utils.rate_limit.time", _FakeTime)
    app = _make_app()
    client = TestClient(app)
    client.get("/limited", headers={"X-Forwarded-For": "1.1.1.1"})
    assert "ip:1.1.1.1:/limited" in app.state._rl_store[60]

    clock["now"] += 61
    client.get("/limited", headers={"X-Forwarded-For": "2.2.2.2"})
    assert list(app.state._rl_store[60]) == ["ip:2.2.2.2:/limited"]
