"""Domain errors raised by services and rendered by the API error handlers.

Each error carries a stable ``code`` and the HTTP status it maps to, so callers
can tell authorization failures apart from missing or conflicting entities.
"""

from __future__ import annotations

from typing import Any


class DBWebError(Exception):
    code = "server_error"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details or None,
        }


class SessionExpiredError(DBWebError):
    """No live session, or the session has no authenticated user."""

    code = "unauthorized"
    status_code = 401


class AccessDeniedError(DBWebError):
    """The session lacks a permission the operation requires."""

    code = "forbidden"
    status_code = 403

    def __init__(self, message: str, required_permission: str | None = None):
        details: dict[str, Any] = {}
        if required_permission:
            details["required_permission"] = required_permission
        super().__init__(message, details)


class NotFoundError(DBWebError):
    code = "not_found"
    status_code = 404

    def __init__(self, message: str, entity: str | None = None, name: str | None = None):
        details: dict[str, Any] = {}
        if entity:
            details["entity"] = entity
        if name is not None:
            details["name"] = name
        super().__init__(message, details)


class AlreadyExistsError(DBWebError):
    code = "conflict"
    status_code = 409

    def __init__(self, message: str, entity: str | None = None, name: str | None = None):
        details: dict[str, Any] = {}
        if entity:
            details["entity"] = entity
        if name is not None:
            details["name"] = name
        super().__init__(message, details)


class InvalidInputError(DBWebError):
    code = "validation_error"
    status_code = 422
