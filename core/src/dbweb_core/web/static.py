from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Final

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response
from starlette.staticfiles import PathLike, StaticFiles
from starlette.types import Receive, Scope, Send

from dbweb_core.sso import attempt_sso_redirect

logger = logging.getLogger(__name__)

STATIC_CACHE_SECONDS: Final[int] = 60 * 60 * 24 * 3
STATIC_CACHE_CONTROL: Final[str] = f"public, max-age={STATIC_CACHE_SECONDS}"

ROOT_URI_TOKEN: Final[str] = "{ROOT_URI}"
ENTRY_PAGE_SUFFIXES: Final[tuple[str, ...]] = ("index.html", "sso.html")
ENTRY_PATHS: Final[frozenset[str]] = frozenset({"", "/", "/index.html"})


def route_path(scope: Scope) -> str:
    path: str = scope["path"]
    root_path: str = scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        return path[len(root_path) :]
    return path


def is_entry_request(scope: Scope) -> bool:
    """True for a plain request of the site root or the index page (no query)."""

    if scope.get("query_string"):
        return False
    return route_path(scope) in ENTRY_PATHS


class EntryPageStaticFiles(StaticFiles):
    """Static files with long-lived caching and entry page templating.

    Entry pages get ``{ROOT_URI}`` replaced with the configured root URI on
    every request; their Content-Length is that of the patched bytes.
    """

    def __init__(self, *, directory: PathLike, root_uri: Callable[[], str]) -> None:
        super().__init__(directory=directory, html=True, check_dir=False)
        self._root_uri = root_uri

    def file_response(
        self,
        full_path: PathLike,
        stat_result: os.stat_result,
        scope: Scope,
        status_code: int = 200,
    ) -> Response:
        if os.fspath(full_path).endswith(ENTRY_PAGE_SUFFIXES):
            response = self.entry_page_response(full_path, status_code)
        else:
            response = super().file_response(full_path, stat_result, scope, status_code)
        # Error pages such as 404.html must not be cached.
        if status_code == 200:
            response.headers["Cache-Control"] = STATIC_CACHE_CONTROL
        return response

    def entry_page_response(self, full_path: PathLike, status_code: int = 200) -> Response:
        with open(full_path, "rb") as f:
            text = f.read().decode("utf-8")
        body = text.replace(ROOT_URI_TOKEN, self._root_uri()).encode("utf-8")
        return Response(content=body, status_code=status_code, media_type="text/html")


class StaticContentResponder:
    """ASGI app serving the web client bundle.

    The files component lives on ``app.state.static_files`` because its
    content root is only known once configuration has been loaded.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        request = Request(scope, receive)
        if request.method == "GET" and is_entry_request(scope):
            redirect = await run_in_threadpool(attempt_sso_redirect, request)
            if redirect is not None:
                await redirect(scope, receive, send)
                return

        files: StaticFiles | None = getattr(request.app.state, "static_files", None)
        if files is None:
            logger.warning("Static content requested before startup completed: %s", scope["path"])
            await Response("Service unavailable", status_code=503)(scope, receive, send)
            return

        await files(scope, receive, send)
