import json

import pytest
from fastapi.testclient import TestClient

from app.main import create_app


@pytest.fixture
def customer_headers(client, admin_headers):
    lic = client.post("/admin/create-license", json={"days_valid": 30}, headers=admin_headers).json()
    client.post(
        "/admin/create-customer",
        json={"username": "alice", "password": "pw", "license_key": lic["license_key"]},
        headers=admin_headers,
    )
    token = client.post("/api/login", json={"username": "alice", "password": "pw"}).json()["token"]
    return lic["license_key"], {"Authorization": f"Bearer {token}"}


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}
    assert client.get("/health").json() == {"status": "healthy", "token_issuance": True}


def test_admin_routes_require_admin_secret(client):
    assert client.post("/admin/create-license", json={}).status_code == 401
    bad = {"Authorization": "Bearer nope"}
    assert client.post("/admin/create-license", json={}, headers=bad).status_code == 401


def test_verify_flow_binds_device(client, admin_headers):
    key = client.post("/admin/create-license", headers=admin_headers).json()["license_key"]

    first = client.post("/api/verify", json={"license_key": key, "hwid": "A"}).json()
    assert first["valid"] is True
    assert json.loads(first["payload"])["license_key"] == key
    assert "reason" not in first
    assert client.app.state.core.store.flush()

    other = client.post("/api/verify", json={"license_key": key, "hwid": "B"}).json()
    assert other == {"valid": False, "reason": "HWID_MISMATCH"}


def test_verify_rejections_are_structured(client):
    assert client.post("/api/verify", json={}).json() == {"valid": False, "reason": "MISSING_KEY"}
    response = client.post("/api/verify", json={"license_key": "GG-0000-0000"})
    assert response.status_code == 200
    assert response.json() == {"valid": False, "reason": "NOT_FOUND"}


def test_verify_without_signing_secret_is_unavailable(settings, store, clock, ids):
    settings.LICENSE_SIGNING_SECRET = ""
    with TestClient(create_app(settings=settings, store=store, clock=clock, ids=ids)) as c:
        response = c.post("/api/verify", json={"license_key": "GG-0000-0000"})
        assert response.status_code == 503
        assert response.json()["valid"] is False
        assert c.post("/api/heartbeat", json={"license_key": "K"}).json() == {"success": True}


def test_agent_and_console_round_trip(client, clock, customer_headers):
    key, headers = customer_headers

    hb = client.post(
        "/api/heartbeat",
        json={"license_key": key, "version": "1.2.0", "uptime": 42,
              "roster": [{"player_id": "7", "name": "bob", "ping": 33}]},
    )
    assert hb.json() == {"success": True}

    status = client.get(f"/console/{key}/status", headers=headers).json()
    assert status == {"online": True, "players": 1, "uptime": 42, "version": "1.2.0"}
    assert client.get(f"/console/{key}/players", headers=headers).json() == [
        {"player_id": "7", "name": "bob", "ping": 33}
    ]

    clock.advance_ms(30001)
    assert client.get(f"/console/{key}/status", headers=headers).json()["online"] is False

    client.post(f"/console/{key}/ban", json={"player": "bob"}, headers=headers)
    bans = client.get(f"/console/{key}/bans", headers=headers).json()
    assert [b["player"] for b in bans] == ["bob"]

    client.post("/api/logs", json={"license_key": key, "message": "first"})
    client.post("/api/logs", json={"license_key": key, "message": "second", "kind": "warn"})
    logs = client.get(f"/console/{key}/logs", headers=headers).json()
    assert [e["message"] for e in logs] == ["second", "first"]
    assert logs[1]["kind"] == "info"

    queued = client.post(f"/console/{key}/actions", json={"type": "kick", "payload": {"player": "bob"}}, headers=headers)
    assert queued.json() == {"id": "action-1"}
    polled = client.post("/api/actions/poll", json={"license_key": key}).json()
    assert [a["type"] for a in polled] == ["kick"]
    assert client.post("/api/actions/poll", json={"license_key": key}).json() == []


def test_console_rejects_other_license(client, customer_headers):
    _, headers = customer_headers
    assert client.get("/console/GG-OTHER/status", headers=headers).status_code == 403
    assert client.get("/console/GG-OTHER/status").status_code == 401


def test_console_validation_errors_are_400(client, customer_headers):
    key, headers = customer_headers
    response = client.post(f"/console/{key}/actions", json={"type": "  "}, headers=headers)
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_customer_dashboard_and_toggle(client, customer_headers):
    key, headers = customer_headers
    assert client.get("/customer/dashboard", headers=headers).json()["status"] == "ACTIVE"

    assert client.post("/customer/toggle", json={"status": "DISABLED"}, headers=headers).json() == {"success": True}
    assert client.post("/api/verify", json={"license_key": key}).json() == {"valid": False, "reason": "DISABLED"}


def test_login_failure_is_not_an_error(client):
    response = client.post("/api/login", json={"username": "ghost", "password": "x"})
    assert response.status_code == 200
    assert response.json() == {"success": False}


def test_duplicate_customer_is_409(client, admin_headers):
    body = {"username": "alice", "password": "pw", "license_key": "GG-X"}
    assert client.post("/admin/create-customer", json=body, headers=admin_headers).status_code == 200
    assert client.post("/admin/create-customer", json=body, headers=admin_headers).status_code == 409


def test_store_outage_returns_503_for_account_routes(settings, clock, ids, admin_headers):
    class DownStore:
        def __getattr__(self, name):
            def fail(*args, **kwargs):
                raise ConnectionError("db down")
            return fail

    with TestClient(create_app(settings=settings, store=DownStore(), clock=clock, ids=ids)) as c:
        response = c.post("/admin/create-license", headers=admin_headers)
        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "UPSTREAM_UNAVAILABLE"}
        assert c.post("/api/verify", json={"license_key": "K"}).json() == {
            "valid": False,
            "reason": "UPSTREAM_UNAVAILABLE",
        }
