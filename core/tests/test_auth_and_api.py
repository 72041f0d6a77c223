from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from dbweb_core.app import create_app
from dbweb_core.session import SESSION_COOKIE


def test_login_with_install_token_creates_admin_session(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        anon = client.get("/api/auth/session")
        assert anon.status_code == 200
        assert anon.json()["data"]["authenticated"] is False

        token = client.app.state.dbweb_config.auth.install_token
        assert isinstance(token, str)
        assert token

        r = client.post("/api/auth/login", json={"token": token})
        assert r.status_code == 200
        body = r.json()
        assert body["ok"] is True
        assert body["data"]["user"] == "admin"
        assert "admin" in body["data"]["permissions"]
        assert body["data"]["sign_in_state"] == "local"
        assert r.cookies.get(SESSION_COOKIE)

        me = client.get("/api/auth/session")
        assert me.json()["data"]["authenticated"] is True

        out = client.post("/api/auth/logout")
        assert out.status_code == 200
        assert out.json()["data"]["closed"] is True

        client.cookies.clear()
        after = client.get("/api/auth/session")
        assert after.json()["data"]["authenticated"] is False


def test_login_rejects_wrong_token(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        r = client.post("/api/auth/login", json={"token": "nope"})
        assert r.status_code == 401
        body = r.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "unauthorized"

        empty = client.post("/api/auth/login", json={"token": ""})
        assert empty.status_code == 422
        assert empty.json()["error"]["code"] == "validation_error"


def test_ping_and_system_info(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        r = client.get("/api/ping")
        assert r.status_code == 200
        assert r.json() == {"ok": True, "data": {"pong": True}, "error": None}

        info = client.get("/api/system/info")
        assert info.status_code == 200
        data = info.json()["data"]
        assert data["dbweb_home"]
        assert data["version"]
        assert data["configuration_mode"] is True
        assert data["paths"]["web_dir"].endswith("web")


def test_providers_lists_enabled_only(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        r = client.get("/api/auth/providers")
        assert r.status_code == 200
        items = r.json()["data"]["items"]
        assert [p["id"] for p in items] == ["local"]
        assert items[0]["configurable"] is False
        assert items[0]["federated"] is False


def test_docs_and_openapi_are_public(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))

    with TestClient(create_app()) as client:
        docs = client.get("/docs")
        assert docs.status_code == 200

        openapi = client.get("/openapi.json")
        assert openapi.status_code == 200
        schema = openapi.json()
        assert "/api/admin/users" in schema.get("paths", {})
        assert "/api/admin/roles/{role_name}/permissions" in schema.get("paths", {})
