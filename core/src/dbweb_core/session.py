from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Iterable
from enum import StrEnum
from typing import Any, Final

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

SESSION_COOKIE: Final[str] = "dbweb-session-id"
STATE_ATTR_SIGN_IN_STATE: Final[str] = "sign-in-state"


class SignInState(StrEnum):
    # Sign-in was started by an automatic redirect to an external identity provider.
    GLOBAL = "global"
    LOCAL = "local"


class WebSession:
    """Identity and state of one client.

    A session may be shared by concurrent requests from the same client, so
    every read and write goes through the session lock.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self._lock = threading.RLock()
        self._user: str | None = None
        self._permissions: frozenset[str] = frozenset()
        self._attributes: dict[str, Any] = {}
        self._last_accessed = time.monotonic()

    @property
    def user(self) -> str | None:
        with self._lock:
            return self._user

    @property
    def permissions(self) -> frozenset[str]:
        with self._lock:
            return self._permissions

    @property
    def last_accessed(self) -> float:
        with self._lock:
            return self._last_accessed

    def touch(self) -> None:
        with self._lock:
            self._last_accessed = time.monotonic()

    def authenticate(self, user: str, permissions: Iterable[str]) -> None:
        with self._lock:
            self._user = user
            self._permissions = frozenset(permissions)

    def sign_out(self) -> None:
        with self._lock:
            self._user = None
            self._permissions = frozenset()
            self._attributes.clear()

    def has_permissions(self, required: Iterable[str]) -> bool:
        with self._lock:
            return set(required).issubset(self._permissions)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        with self._lock:
            return self._attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        with self._lock:
            self._attributes[name] = value


class SessionManager:
    """In-process session registry keyed by the session cookie."""

    def __init__(self, *, idle_timeout_seconds: float) -> None:
        self._idle_timeout = idle_timeout_seconds
        self._sessions: dict[str, WebSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _purge_expired(self) -> None:
        # Caller holds self._lock.
        now = time.monotonic()
        expired = [
            sid
            for sid, s in self._sessions.items()
            if now - s.last_accessed > self._idle_timeout
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Discarded %d idle sessions", len(expired))

    def find_session(self, session_id: str | None) -> WebSession | None:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if time.monotonic() - session.last_accessed > self._idle_timeout:
                del self._sessions[session_id]
                logger.info("Session %s expired", session_id[:8])
                return None
        session.touch()
        return session

    def get_web_session(self, request: Request, *, create: bool) -> WebSession | None:
        """Return the caller's session, creating one when ``create`` is set.

        A newly created session is only known to the client once it has been
        bound to the response with :meth:`bind_to_response`.
        """

        session = self.find_session(request.cookies.get(SESSION_COOKIE))
        if session is not None or not create:
            return session

        session = WebSession(secrets.token_urlsafe(32))
        with self._lock:
            self._purge_expired()
            self._sessions[session.session_id] = session
        logger.debug("Session %s created", session.session_id[:8])
        return session

    def bind_to_response(self, response: Response, session: WebSession) -> None:
        response.set_cookie(
            SESSION_COOKIE,
            session.session_id,
            max_age=int(self._idle_timeout),
            httponly=True,
            samesite="lax",
        )

    def close_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.sign_out()
        return True
