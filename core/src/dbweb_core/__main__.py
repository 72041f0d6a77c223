from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from dbweb_core.app import create_app
from dbweb_core.config import LOG_FORMAT, load_core_config, resolve_configured_paths
from dbweb_core.home import ensure_dbweb_layout, resolve_dbweb_home


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dbweb-core", description="Run the DBWeb Core server.")
    parser.add_argument("--host", help="Bind address (default: DBWEB_BIND or core.json)")
    parser.add_argument("--port", type=int, help="Listen port (default: DBWEB_PORT or core.json)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    paths = ensure_dbweb_layout(resolve_dbweb_home())
    config = load_core_config(paths)
    paths = resolve_configured_paths(paths, config)

    logging.basicConfig(
        level=config.logging.level,
        format=LOG_FORMAT,
        handlers=[
            config.logging.file_handler(paths.logs_dir / "core.log"),
            logging.StreamHandler(),
        ],
    )

    host = args.host or os.environ.get("DBWEB_BIND") or config.network.bind_host
    port = args.port or int(os.environ.get("DBWEB_PORT") or config.network.port)

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
