from __future__ import annotations

import secrets
from typing import Final

from starlette.requests import Request

AUTHORIZATION_HEADER: Final[str] = "Authorization"
TOKEN_HEADER: Final[str] = "X-DBWeb-Token"


def extract_token_from_request(request: Request) -> str | None:
    header_token = request.headers.get(TOKEN_HEADER)
    if header_token:
        return header_token.strip() or None

    auth = request.headers.get(AUTHORIZATION_HEADER)
    if not auth:
        return None

    prefix = "Bearer "
    if auth.startswith(prefix):
        return auth[len(prefix) :].strip() or None
    return None


def expected_install_token(request: Request) -> str | None:
    config = getattr(request.app.state, "dbweb_config", None)
    token = getattr(getattr(config, "auth", None), "install_token", None)
    return str(token) if token else None


def token_matches(provided: str | None, expected: str | None) -> bool:
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
