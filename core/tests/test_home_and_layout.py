from __future__ import annotations

from pathlib import Path

from dbweb_core.home import ensure_dbweb_layout, resolve_dbweb_home


def test_resolve_dbweb_home_from_env(tmp_path: Path) -> None:
    home = resolve_dbweb_home({"DBWEB_HOME": str(tmp_path)})
    assert home == tmp_path.resolve()


def test_resolve_dbweb_home_relative_is_under_user_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    home = resolve_dbweb_home({"DBWEB_HOME": "dbweb-data"})
    assert home == (tmp_path / "dbweb-data").resolve()


def test_ensure_dbweb_layout_creates_required_dirs(tmp_path: Path) -> None:
    paths = ensure_dbweb_layout(tmp_path)

    assert paths.home.exists()
    assert paths.db_dir.is_dir()
    assert paths.logs_dir.is_dir()
    assert paths.config_dir.is_dir()
    assert paths.web_dir.is_dir()
    assert paths.tmp_dir.is_dir()
    assert paths.core_config_path == tmp_path / "config" / "core.json"


def test_default_home_follows_xdg_data_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("sys.platform", "linux")
    home = resolve_dbweb_home({"XDG_DATA_HOME": str(tmp_path), "DBWEB_HOME": "  "})
    assert home == (tmp_path / "dbweb").resolve()


def test_layout_is_idempotent(tmp_path: Path) -> None:
    first = ensure_dbweb_layout(tmp_path / "ws")
    (first.web_dir / "index.html").write_text("x", encoding="utf-8")

    second = ensure_dbweb_layout(tmp_path / "ws")
    assert second == first
    assert sorted(p.name for p in second.directories()) == ["config", "db", "logs", "tmp", "web"]
    assert (second.web_dir / "index.html").read_text(encoding="utf-8") == "x"
