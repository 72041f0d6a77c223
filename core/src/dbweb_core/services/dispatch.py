from __future__ import annotations

import logging
from typing import Any

from dbweb_core.errors import AccessDeniedError, SessionExpiredError
from dbweb_core.services.actions import required_permissions
from dbweb_core.session import WebSession

logger = logging.getLogger(__name__)


def check_action_access(contract: type, name: str, session: WebSession | None) -> None:
    """Enforce the permissions ``contract`` declares for action ``name``."""

    required = required_permissions(contract, name)
    if not required:
        return

    if session is None or session.user is None:
        raise SessionExpiredError("Not signed in or session has expired")

    missing = sorted(required - session.permissions)
    if missing:
        logger.warning("User %s denied %s.%s", session.user, contract.__name__, name)
        raise AccessDeniedError(
            f"Permission '{missing[0]}' is required",
            required_permission=missing[0],
        )


def invoke_action(
    contract: type,
    service: Any,
    name: str,
    session: WebSession | None,
    *args: Any,
    **kwargs: Any,
) -> Any:
    check_action_access(contract, name, session)
    return getattr(service, name)(session, *args, **kwargs)
