from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel, Field

from dbweb_core.services.actions import PERMISSION_ADMIN, web_action
from dbweb_core.session import WebSession


class AdminUserInfo(BaseModel):
    user_id: str
    granted_roles: list[str] = Field(default_factory=list)
    created_at: str


class AdminRoleInfo(BaseModel):
    role_id: str
    description: str | None = None
    permissions: list[str] = Field(default_factory=list)
    created_at: str


class AdminPermissionInfo(BaseModel):
    permission_id: str
    label: str
    description: str | None = None


class AdminService(Protocol):
    """Administration of users, roles and permissions.

    Every operation requires the caller's session to hold the ``admin``
    permission; that is enforced by the dispatch layer, not here.

    Operations raise :class:`~dbweb_core.errors.NotFoundError` for unknown
    users, roles or permissions and
    :class:`~dbweb_core.errors.AlreadyExistsError` for duplicate names.
    """

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def list_users(
        self, session: WebSession, user_name: str | None = None
    ) -> list[AdminUserInfo]: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def list_roles(
        self, session: WebSession, role_name: str | None = None
    ) -> list[AdminRoleInfo]: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def list_permissions(self, session: WebSession) -> list[AdminPermissionInfo]: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def create_user(self, session: WebSession, user_name: str) -> AdminUserInfo: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def delete_user(self, session: WebSession, user_name: str) -> bool: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def create_role(
        self, session: WebSession, role_name: str, description: str | None = None
    ) -> AdminRoleInfo: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def delete_role(self, session: WebSession, role_name: str) -> bool: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def grant_user_role(self, session: WebSession, user: str, role: str) -> bool: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def revoke_user_role(self, session: WebSession, user: str, role: str) -> bool: ...

    @web_action(require_permissions=(PERMISSION_ADMIN,))
    def set_role_permissions(
        self, session: WebSession, role_id: str, permissions: Sequence[str]
    ) -> bool: ...
