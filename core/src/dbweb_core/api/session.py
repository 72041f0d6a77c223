from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from dbweb_core.api.deps import admin_permissions, get_session_manager
from dbweb_core.api.models import ApiResponse, ok
from dbweb_core.auth.providers import check_provider_configurations
from dbweb_core.auth.tokens import expected_install_token, token_matches
from dbweb_core.session import SESSION_COOKIE, STATE_ATTR_SIGN_IN_STATE, SignInState, WebSession
from dbweb_core.sso import find_active_configuration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SessionInfo(BaseModel):
    authenticated: bool
    user: str | None = None
    permissions: list[str] = Field(default_factory=list)
    sign_in_state: str | None = None


def _session_info(session: WebSession | None) -> SessionInfo:
    if session is None:
        return SessionInfo(authenticated=False)
    state = session.get_attribute(STATE_ATTR_SIGN_IN_STATE)
    return SessionInfo(
        authenticated=session.user is not None,
        user=session.user,
        permissions=sorted(session.permissions),
        sign_in_state=str(state) if state is not None else None,
    )


class LoginRequest(BaseModel):
    token: str = Field(min_length=1)


@router.post("/login", response_model=ApiResponse[SessionInfo])
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
) -> ApiResponse[SessionInfo]:
    expected = expected_install_token(request)
    if not expected:
        raise HTTPException(status_code=500, detail="Server auth token not initialized")
    if not token_matches(payload.token.strip(), expected):
        client = request.client.host if request.client else "unknown"
        logger.warning("Rejected sign-in attempt from %s", client)
        raise HTTPException(status_code=401, detail="Invalid token")

    sessions = get_session_manager(request)
    session = sessions.get_web_session(request, create=True)
    admin_name = request.app.state.dbweb_config.auth.admin_name
    session.authenticate(admin_name, admin_permissions(request, admin_name))
    session.set_attribute(STATE_ATTR_SIGN_IN_STATE, SignInState.LOCAL)
    sessions.bind_to_response(response, session)

    logger.info("User %s signed in", admin_name)
    return ok(_session_info(session))


class LogoutResponse(BaseModel):
    closed: bool


@router.post("/logout", response_model=ApiResponse[LogoutResponse])
async def logout(request: Request, response: Response) -> ApiResponse[LogoutResponse]:
    sessions = get_session_manager(request)
    session = sessions.get_web_session(request, create=False)
    closed = sessions.close_session(session.session_id) if session is not None else False
    response.delete_cookie(SESSION_COOKIE)
    return ok(LogoutResponse(closed=closed))


@router.get("/session", response_model=ApiResponse[SessionInfo])
async def session_info(request: Request) -> ApiResponse[SessionInfo]:
    session = get_session_manager(request).get_web_session(request, create=False)
    return ok(_session_info(session))


class ProviderInfo(BaseModel):
    id: str
    label: str
    configurable: bool
    federated: bool
    active_configuration: str | None = None
    parameters_schema: dict[str, Any] | None = None
    configuration_errors: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


class ProviderListResponse(BaseModel):
    items: list[ProviderInfo]


@router.get("/providers", response_model=ApiResponse[ProviderListResponse])
async def providers(request: Request) -> ApiResponse[ProviderListResponse]:
    config = request.app.state.dbweb_config
    registry = request.app.state.auth_registry

    problems = check_provider_configurations(config, registry)
    items: list[ProviderInfo] = []
    for provider_id in config.auth.enabled_providers:
        descriptor = registry.get(provider_id)
        if descriptor is None:
            logger.warning("Enabled auth provider %s is not registered", provider_id)
            continue
        items.append(
            ProviderInfo(
                id=descriptor.id,
                label=descriptor.label,
                configurable=descriptor.configurable,
                federated=descriptor.federated,
                active_configuration=(
                    find_active_configuration(config, provider_id)
                    if descriptor.configurable
                    else None
                ),
                parameters_schema=descriptor.parameters_schema,
                configuration_errors={
                    config_id: errors
                    for config_id, errors in problems.items()
                    if config.auth.configurations[config_id].provider == provider_id
                },
            )
        )
    return ok(ProviderListResponse(items=items))
