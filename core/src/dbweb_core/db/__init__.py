from __future__ import annotations

from pathlib import Path

from dbweb_core.home import DBWebPaths

DEFAULT_DB_FILENAME = "identity.sqlite3"


def resolve_db_path(paths: DBWebPaths) -> Path:
    """Resolve the identity store SQLite database path under the configured ``db_dir``."""

    return paths.db_dir / DEFAULT_DB_FILENAME
