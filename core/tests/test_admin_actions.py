from __future__ import annotations

from typing import Any

import pytest

from dbweb_core.errors import AccessDeniedError, SessionExpiredError
from dbweb_core.services.actions import (
    PERMISSION_ADMIN,
    declared_actions,
    required_permissions,
    web_action,
)
from dbweb_core.services.admin import AdminService
from dbweb_core.services.dispatch import invoke_action
from dbweb_core.session import WebSession

ADMIN_OPERATIONS = {
    "list_users",
    "list_roles",
    "list_permissions",
    "create_user",
    "delete_user",
    "create_role",
    "delete_role",
    "grant_user_role",
    "revoke_user_role",
    "set_role_permissions",
}


def test_every_admin_operation_requires_admin() -> None:
    actions = declared_actions(AdminService)
    assert set(actions) == ADMIN_OPERATIONS
    for name in ADMIN_OPERATIONS:
        assert required_permissions(AdminService, name) == {PERMISSION_ADMIN}


def test_undeclared_action_is_a_lookup_error() -> None:
    with pytest.raises(LookupError):
        required_permissions(AdminService, "drop_database")


class RecordingAdmin:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str):
        def call(session: WebSession, *args: Any) -> bool:
            self.calls.append((name, args))
            return True

        return call


def test_dispatch_rejects_missing_session() -> None:
    impl = RecordingAdmin()
    with pytest.raises(SessionExpiredError):
        invoke_action(AdminService, impl, "delete_user", None, "bob")

    with pytest.raises(SessionExpiredError):
        invoke_action(AdminService, impl, "delete_user", WebSession("anon"), "bob")
    assert impl.calls == []


def test_dispatch_rejects_missing_permission() -> None:
    impl = RecordingAdmin()
    session = WebSession("s1")
    session.authenticate("bob", {"public"})

    with pytest.raises(AccessDeniedError) as excinfo:
        invoke_action(AdminService, impl, "create_role", session, "dba")
    assert excinfo.value.status_code == 403
    assert excinfo.value.details == {"required_permission": "admin"}
    assert impl.calls == []


def test_dispatch_calls_implementation() -> None:
    impl = RecordingAdmin()
    session = WebSession("s1")
    session.authenticate("root", {PERMISSION_ADMIN})

    assert invoke_action(AdminService, impl, "grant_user_role", session, "bob", "dba") is True
    assert impl.calls == [("grant_user_role", ("bob", "dba"))]


def test_action_without_permissions_is_open() -> None:
    class Contract:
        @web_action()
        def ping(self, session: WebSession | None) -> str: ...

    class Impl:
        def ping(self, session: WebSession | None) -> str:
            return "pong"

    assert declared_actions(Contract)["ping"].require_permissions == frozenset()
    assert invoke_action(Contract, Impl(), "ping", None) == "pong"
