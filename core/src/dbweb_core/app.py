from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dbweb_core import __version__
from dbweb_core.api.models import ApiResponse, fail, fail_from_error
from dbweb_core.api.router import router as api_router
from dbweb_core.auth.providers import build_default_registry, check_provider_configurations
from dbweb_core.config import (
    CoreConfig,
    ensure_install_token,
    load_core_config,
    resolve_configured_paths,
)
from dbweb_core.db import resolve_db_path
from dbweb_core.db.migrate import apply_migrations
from dbweb_core.errors import DBWebError
from dbweb_core.home import DBWebPaths, ensure_dbweb_layout, resolve_dbweb_home
from dbweb_core.services.admin_sqlite import SqliteAdminService
from dbweb_core.session import SessionManager
from dbweb_core.web.static import EntryPageStaticFiles, StaticContentResponder

logger = logging.getLogger(__name__)

_ERROR_CODES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
}


def _error_code(status_code: int) -> str:
    if status_code in _ERROR_CODES:
        return _ERROR_CODES[status_code]
    return "client_error" if 400 <= status_code < 500 else "server_error"


def _envelope(status_code: int, body: ApiResponse[Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _attach_file_logging(paths: DBWebPaths, config: CoreConfig) -> None:
    root = logging.getLogger()
    root.setLevel(config.logging.level)
    # A reloaded app must not log every line twice.
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return
    root.addHandler(config.logging.file_handler(paths.logs_dir / "core.log"))


def install_error_handlers(app: FastAPI) -> None:
    """Render every error as the ``ApiResponse`` failure envelope."""

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _envelope(
            422,
            fail(
                code="validation_error",
                message="Request validation failed",
                details=exc.errors(),
            ),
        )

    @app.exception_handler(DBWebError)
    async def _domain_error(request: Request, exc: DBWebError) -> JSONResponse:
        return _envelope(exc.status_code, fail_from_error(exc))

    # Also catches fastapi.HTTPException, which subclasses the Starlette one.
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return _envelope(
            exc.status_code,
            fail(code=_error_code(exc.status_code), message=message),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _envelope(500, fail(code="internal_error", message="Internal server error"))


def create_app() -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_dbweb_home()
        paths = ensure_dbweb_layout(home)
        config = load_core_config(paths)
        paths = resolve_configured_paths(paths, config)
        config = ensure_install_token(paths, config)

        _attach_file_logging(paths, config)
        logger.info("DBWeb Core %s starting in %s", __version__, home)
        if config.server.configuration_mode:
            logger.info("Server is in configuration mode; automatic SSO is disabled")

        db_path = resolve_db_path(paths)
        apply_migrations(db_path)

        state = app.state
        state.dbweb_home = home
        state.dbweb_paths = paths
        state.dbweb_config = config
        state.db_path = db_path
        state.session_manager = SessionManager(
            idle_timeout_seconds=config.server.session_idle_minutes * 60
        )
        state.auth_registry = build_default_registry(lambda: state.dbweb_config)
        state.admin_service = SqliteAdminService(db_path)
        state.static_files = EntryPageStaticFiles(
            directory=paths.web_dir,
            root_uri=lambda: state.dbweb_config.server.root_uri,
        )

        for config_id, errors in check_provider_configurations(config, state.auth_registry).items():
            for err in errors:
                logger.warning("Auth configuration %s: %s", config_id, err["message"])
        if not (paths.web_dir / "index.html").is_file():
            logger.warning("Web client bundle has no index.html in %s", paths.web_dir)

        try:
            yield
        finally:
            logger.info("DBWeb Core shutting down")

    app = FastAPI(title="DBWeb Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    install_error_handlers(app)
    app.include_router(api_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    # Catch-all: must stay the last route so API paths take precedence.
    app.mount("/", StaticContentResponder(), name="static")

    return app
