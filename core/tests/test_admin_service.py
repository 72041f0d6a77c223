from __future__ import annotations

from pathlib import Path

import pytest

from dbweb_core.db.migrate import apply_migrations
from dbweb_core.errors import AlreadyExistsError, InvalidInputError, NotFoundError
from dbweb_core.services.admin_sqlite import SqliteAdminService
from dbweb_core.session import WebSession


@pytest.fixture
def service(tmp_path: Path) -> SqliteAdminService:
    db_path = tmp_path / "identity.sqlite3"
    apply_migrations(db_path)
    return SqliteAdminService(db_path)


@pytest.fixture
def session() -> WebSession:
    s = WebSession("test")
    s.authenticate("admin", {"admin"})
    return s


def test_create_and_list_users(service: SqliteAdminService, session: WebSession) -> None:
    created = service.create_user(session, "  bob ")
    assert created.user_id == "bob"
    assert created.granted_roles == []
    assert created.created_at

    service.create_user(session, "alice")

    assert [u.user_id for u in service.list_users(session)] == ["alice", "bob"]
    assert [u.user_id for u in service.list_users(session, "bob")] == ["bob"]
    assert service.list_users(session, "bo") == []


def test_create_user_twice_conflicts(service: SqliteAdminService, session: WebSession) -> None:
    service.create_user(session, "bob")
    with pytest.raises(AlreadyExistsError) as excinfo:
        service.create_user(session, "bob")
    assert excinfo.value.details == {"entity": "user", "name": "bob"}


def test_blank_names_are_rejected(service: SqliteAdminService, session: WebSession) -> None:
    with pytest.raises(InvalidInputError):
        service.create_user(session, "   ")
    with pytest.raises(InvalidInputError):
        service.create_role(session, "ops\x1fteam")


def test_delete_unknown_user_is_not_found(
    service: SqliteAdminService, session: WebSession
) -> None:
    with pytest.raises(NotFoundError):
        service.delete_user(session, "ghost")

    service.create_user(session, "bob")
    assert service.delete_user(session, "bob") is True
    with pytest.raises(NotFoundError):
        service.delete_user(session, "bob")


def test_roles_lifecycle(service: SqliteAdminService, session: WebSession) -> None:
    role = service.create_role(session, "dba", "Database administrators")
    assert role.role_id == "dba"
    assert role.description == "Database administrators"
    assert role.permissions == []

    with pytest.raises(AlreadyExistsError):
        service.create_role(session, "dba")

    assert [r.role_id for r in service.list_roles(session, "dba")] == ["dba"]
    assert service.delete_role(session, "dba") is True
    with pytest.raises(NotFoundError):
        service.delete_role(session, "dba")


def test_list_permissions(service: SqliteAdminService, session: WebSession) -> None:
    perms = service.list_permissions(session)
    assert [p.permission_id for p in perms] == ["admin", "public"]
    assert perms[0].label == "Administration"


def test_grant_and_revoke(service: SqliteAdminService, session: WebSession) -> None:
    service.create_user(session, "bob")
    service.create_role(session, "dba")
    service.create_role(session, "viewer")

    assert service.grant_user_role(session, "bob", "dba") is True
    assert service.grant_user_role(session, "bob", "dba") is True
    assert service.grant_user_role(session, "bob", "viewer") is True
    assert service.list_users(session, "bob")[0].granted_roles == ["dba", "viewer"]

    assert service.revoke_user_role(session, "bob", "viewer") is True
    # Revoking a role that is not granted is a no-op.
    assert service.revoke_user_role(session, "bob", "viewer") is True
    assert service.list_users(session, "bob")[0].granted_roles == ["dba"]


def test_grant_requires_known_user_and_role(
    service: SqliteAdminService, session: WebSession
) -> None:
    service.create_user(session, "bob")
    service.create_role(session, "dba")

    with pytest.raises(NotFoundError) as excinfo:
        service.grant_user_role(session, "ghost", "dba")
    assert excinfo.value.details["entity"] == "user"

    with pytest.raises(NotFoundError) as excinfo:
        service.grant_user_role(session, "bob", "ghost")
    assert excinfo.value.details["entity"] == "role"

    with pytest.raises(NotFoundError):
        service.revoke_user_role(session, "ghost", "dba")


def test_set_role_permissions_replaces(service: SqliteAdminService, session: WebSession) -> None:
    service.create_role(session, "dba")

    assert service.set_role_permissions(session, "dba", ["admin"]) is True
    assert service.list_roles(session, "dba")[0].permissions == ["admin"]

    assert service.set_role_permissions(session, "dba", ["public"]) is True
    assert service.list_roles(session, "dba")[0].permissions == ["public"]

    assert service.set_role_permissions(session, "dba", []) is True
    assert service.list_roles(session, "dba")[0].permissions == []


def test_set_role_permissions_validates(service: SqliteAdminService, session: WebSession) -> None:
    service.create_role(session, "dba")
    service.set_role_permissions(session, "dba", ["public"])

    with pytest.raises(NotFoundError) as excinfo:
        service.set_role_permissions(session, "dba", ["public", "launch-missiles"])
    assert excinfo.value.details == {"entity": "permission", "name": "launch-missiles"}
    # A rejected update leaves the previous set in place.
    assert service.list_roles(session, "dba")[0].permissions == ["public"]

    with pytest.raises(NotFoundError):
        service.set_role_permissions(session, "ghost", ["public"])


def test_deleting_role_drops_grants(service: SqliteAdminService, session: WebSession) -> None:
    service.create_user(session, "bob")
    service.create_role(session, "dba")
    service.set_role_permissions(session, "dba", ["admin"])
    service.grant_user_role(session, "bob", "dba")
    assert service.effective_permissions("bob") == {"admin"}

    service.delete_role(session, "dba")
    assert service.effective_permissions("bob") == set()
    assert service.list_users(session, "bob")[0].granted_roles == []
