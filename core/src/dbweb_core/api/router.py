from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from dbweb_core import __version__
from dbweb_core.api.admin import router as admin_router
from dbweb_core.api.models import ApiResponse, ok
from dbweb_core.api.session import router as session_router

router = APIRouter(prefix="/api", tags=["api"])

router.include_router(session_router)
router.include_router(admin_router)


class SystemInfo(BaseModel):
    version: str
    dbweb_home: str
    root_uri: str
    configuration_mode: bool
    paths: dict[str, str]


@router.get("/ping", response_model=ApiResponse[dict[str, bool]])
async def ping() -> ApiResponse[dict[str, bool]]:
    return ok({"pong": True})


@router.get("/system/info", response_model=ApiResponse[SystemInfo])
async def system_info(request: Request) -> ApiResponse[SystemInfo]:
    # Runtime identity and resolved paths only; no secrets.
    home = getattr(request.app.state, "dbweb_home", None)
    paths = getattr(request.app.state, "dbweb_paths", None)
    config = getattr(request.app.state, "dbweb_config", None)

    info = SystemInfo(
        version=__version__,
        dbweb_home=str(home) if home is not None else "",
        root_uri=config.server.root_uri if config is not None else "",
        configuration_mode=config.server.configuration_mode if config is not None else True,
        paths={
            "db_dir": str(paths.db_dir) if paths is not None else "",
            "logs_dir": str(paths.logs_dir) if paths is not None else "",
            "config_dir": str(paths.config_dir) if paths is not None else "",
            "web_dir": str(paths.web_dir) if paths is not None else "",
        },
    )
    return ok(info)
