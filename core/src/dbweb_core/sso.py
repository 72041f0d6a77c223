"""Single sign-on short-circuit for the web client entry page.

When the server has exactly one usable, federated auth provider, an
unauthenticated visitor opening the entry page is sent straight to that
provider's sign-in page instead of the login dialog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from dbweb_core.auth.providers import AuthProviderRegistry, FederatedAuthProvider
from dbweb_core.config import CoreConfig
from dbweb_core.session import STATE_ATTR_SIGN_IN_STATE, SessionManager, SignInState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SsoTarget:
    provider_id: str
    config_id: str
    provider: FederatedAuthProvider


def find_active_configuration(config: CoreConfig, provider_id: str) -> str | None:
    """Return the id of the only enabled configuration bound to ``provider_id``.

    Returns None when there is none, or when more than one would be ambiguous.
    """

    found: str | None = None
    for config_id, provider_config in config.auth.configurations.items():
        if provider_config.disabled or provider_config.provider != provider_id:
            continue
        if found is not None:
            return None
        found = config_id
    return found


def resolve_sso_target(config: CoreConfig, registry: AuthProviderRegistry) -> SsoTarget | None:
    if config.server.configuration_mode:
        return None

    enabled = config.auth.enabled_providers
    if len(enabled) != 1:
        return None
    provider_id = enabled[0]

    descriptor = registry.get(provider_id)
    if descriptor is None or not descriptor.configurable:
        return None

    config_id = find_active_configuration(config, provider_id)
    if config_id is None:
        return None

    provider = descriptor.get_instance()
    if not isinstance(provider, FederatedAuthProvider):
        return None

    return SsoTarget(provider_id=provider_id, config_id=config_id, provider=provider)


def attempt_sso_redirect(request: Request) -> Response | None:
    """Redirect an unauthenticated caller to the single federated provider.

    Returns None when no redirect applies. Errors are never surfaced to the
    client: the caller then serves the entry page as usual.
    """

    state = request.app.state
    try:
        target = resolve_sso_target(state.dbweb_config, state.auth_registry)
        if target is None:
            return None

        sessions: SessionManager = state.session_manager
        session = sessions.get_web_session(request, create=True)
        if session is None or session.user is not None:
            return None

        link = target.provider.get_sign_in_link(target.config_id, {})
        if not link:
            return None

        session.set_attribute(STATE_ATTR_SIGN_IN_STATE, SignInState.GLOBAL)
        response = RedirectResponse(url=link, status_code=302)
        sessions.bind_to_response(response, session)
        logger.info("Redirecting to %s sign-in (%s)", target.provider_id, target.config_id)
        return response
    except Exception:
        logger.debug("Error reading auth provider configuration", exc_info=True)
        return None
