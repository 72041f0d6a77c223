"""Location and layout of the DBWeb workspace (``DBWEB_HOME``).

The workspace holds everything the server writes or serves::

    db/       identity store
    logs/     rolling server logs
    config/   core.json
    web/      web client bundle (content root for static files)
    tmp/      scratch space
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

HOME_ENV_VAR = "DBWEB_HOME"
CORE_CONFIG_FILENAME = "core.json"


@dataclass(frozen=True)
class DBWebPaths:
    home: Path
    db_dir: Path
    logs_dir: Path
    config_dir: Path
    web_dir: Path
    tmp_dir: Path

    @classmethod
    def under(cls, home: Path) -> DBWebPaths:
        return cls(
            home=home,
            db_dir=home / "db",
            logs_dir=home / "logs",
            config_dir=home / "config",
            web_dir=home / "web",
            tmp_dir=home / "tmp",
        )

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / CORE_CONFIG_FILENAME

    def directories(self) -> Iterator[Path]:
        yield from (self.db_dir, self.logs_dir, self.config_dir, self.web_dir, self.tmp_dir)


def _platform_default_home(env: Mapping[str, str]) -> Path:
    if sys.platform.startswith("win"):
        base = env.get("LOCALAPPDATA") or env.get("APPDATA")
        return Path(base) / "DBWeb" if base else Path.home() / "AppData" / "Local" / "DBWeb"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "DBWeb"
    xdg = env.get("XDG_DATA_HOME")
    return Path(xdg) / "dbweb" if xdg else Path.home() / ".local" / "share" / "dbweb"


def resolve_dbweb_home(environ: Mapping[str, str] | None = None) -> Path:
    """Return the workspace directory, honouring ``DBWEB_HOME`` when set."""

    env = os.environ if environ is None else environ

    raw = (env.get(HOME_ENV_VAR) or "").strip()
    if not raw:
        return _platform_default_home(env).resolve()

    candidate = Path(raw).expanduser()
    # Relative homes are anchored to the user's home, never to the CWD.
    if not candidate.is_absolute():
        candidate = Path.home() / candidate
    return candidate.resolve()


def ensure_dbweb_layout(home: Path) -> DBWebPaths:
    paths = DBWebPaths.under(home)
    home.mkdir(parents=True, exist_ok=True)
    for directory in paths.directories():
        directory.mkdir(parents=True, exist_ok=True)
    return paths
