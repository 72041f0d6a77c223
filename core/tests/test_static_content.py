from __future__ import annotations

import json
from pathlib import Path

from fastapi.testclient import TestClient

from dbweb_core.app import create_app
from dbweb_core.web.static import STATIC_CACHE_SECONDS, is_entry_request

INDEX_HTML = '<html><head><base href="{ROOT_URI}/"></head><body>{ROOT_URI}</body></html>'


def _prepare_home(tmp_path: Path, *, root_uri: str = "/app") -> Path:
    web_dir = tmp_path / "web"
    web_dir.mkdir(parents=True, exist_ok=True)
    (web_dir / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (web_dir / "sso.html").write_text('<a href="{ROOT_URI}/">back</a>', encoding="utf-8")
    (web_dir / "app.js").write_text("console.log('{ROOT_URI}');\n", encoding="utf-8")

    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "core.json").write_text(
        json.dumps({"server": {"root_uri": root_uri}}), encoding="utf-8"
    )
    return web_dir


def test_cache_seconds_is_three_days() -> None:
    assert STATIC_CACHE_SECONDS == 259200


def test_plain_asset_has_long_cache(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    _prepare_home(tmp_path)

    with TestClient(create_app()) as client:
        r = client.get("/app.js")
        assert r.status_code == 200
        assert r.headers["cache-control"] == "public, max-age=259200"
        # Only entry pages are templated.
        assert "{ROOT_URI}" in r.text


def test_index_is_patched_with_root_uri(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    web_dir = _prepare_home(tmp_path)
    original_size = (web_dir / "index.html").stat().st_size

    with TestClient(create_app()) as client:
        for path in ("/", "/index.html"):
            r = client.get(path)
            assert r.status_code == 200
            assert '<base href="/app/">' in r.text
            assert "{ROOT_URI}" not in r.text
            assert r.headers["content-type"].startswith("text/html")
            assert int(r.headers["content-length"]) == len(r.content)
            assert int(r.headers["content-length"]) != original_size


def test_sso_page_is_patched(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    _prepare_home(tmp_path, root_uri="/")

    with TestClient(create_app()) as client:
        r = client.get("/sso.html")
        assert r.status_code == 200
        assert r.text == '<a href="/">back</a>'


def test_entry_page_rewrite_follows_file_changes(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    web_dir = _prepare_home(tmp_path)

    with TestClient(create_app()) as client:
        assert '<base href="/app/">' in client.get("/").text

        (web_dir / "index.html").write_text("<p>{ROOT_URI}/v2</p>", encoding="utf-8")
        assert client.get("/").text == "<p>/app/v2</p>"


def test_missing_file_is_404(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    _prepare_home(tmp_path)

    with TestClient(create_app()) as client:
        r = client.get("/missing.css")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "not_found"


def test_custom_404_page_is_not_cached(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("DBWEB_HOME", str(tmp_path))
    web_dir = _prepare_home(tmp_path)
    (web_dir / "404.html").write_text("<p>gone</p>", encoding="utf-8")

    with TestClient(create_app()) as client:
        r = client.get("/missing.css")
        assert r.status_code == 404
        assert r.text == "<p>gone</p>"
        assert "cache-control" not in r.headers

        ok = client.get("/app.js")
        assert ok.headers["cache-control"] == f"public, max-age={STATIC_CACHE_SECONDS}"


def test_is_entry_request() -> None:
    def scope(path: str, query: bytes = b"") -> dict:
        return {"type": "http", "path": path, "root_path": "", "query_string": query}

    assert is_entry_request(scope("/"))
    assert is_entry_request(scope(""))
    assert is_entry_request(scope("/index.html"))
    assert not is_entry_request(scope("/", b"lang=en"))
    assert not is_entry_request(scope("/index.html", b"x"))
    assert not is_entry_request(scope("/sso.html"))
    assert not is_entry_request(scope("/app.js"))
