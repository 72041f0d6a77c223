from __future__ import annotations

import secrets

from fastapi import HTTPException, Request

from dbweb_core.auth.tokens import expected_install_token, extract_token_from_request, token_matches
from dbweb_core.services.actions import PERMISSION_ADMIN
from dbweb_core.services.admin_sqlite import SqliteAdminService
from dbweb_core.session import SessionManager, WebSession


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(status_code=500, detail="Session manager not initialized")
    return manager


def get_admin_service(request: Request) -> SqliteAdminService:
    service = getattr(request.app.state, "admin_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Admin service not initialized")
    return service


def admin_permissions(request: Request, user_name: str) -> set[str]:
    """Permissions of the install-token administrator: admin plus anything granted by roles."""

    return {PERMISSION_ADMIN} | get_admin_service(request).effective_permissions(user_name)


def caller_session(request: Request) -> WebSession | None:
    """Resolve the session a request acts with.

    The session cookie wins; otherwise a valid install token in the request
    headers yields a transient administrator session that is never stored.
    """

    session = get_session_manager(request).get_web_session(request, create=False)
    if session is not None and session.user is not None:
        return session

    provided = extract_token_from_request(request)
    if provided is None:
        return session

    if not token_matches(provided, expected_install_token(request)):
        raise HTTPException(status_code=401, detail="Invalid token")

    admin_name = request.app.state.dbweb_config.auth.admin_name
    transient = WebSession(f"token-{secrets.token_hex(8)}")
    transient.authenticate(admin_name, admin_permissions(request, admin_name))
    return transient
