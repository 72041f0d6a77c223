from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path

from dbweb_core.db import admin as store
from dbweb_core.errors import AlreadyExistsError, InvalidInputError, NotFoundError
from dbweb_core.services.admin import AdminPermissionInfo, AdminRoleInfo, AdminUserInfo
from dbweb_core.session import WebSession

logger = logging.getLogger(__name__)


def _clean_name(raw: str | None, *, what: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise InvalidInputError(f"{what} name must not be empty")
    if any(ord(c) < 32 for c in name):
        raise InvalidInputError(f"{what} name contains control characters")
    return name


def _to_user_info(row: store.UserRow) -> AdminUserInfo:
    return AdminUserInfo(
        user_id=row.user_id,
        granted_roles=list(row.granted_roles),
        created_at=row.created_at,
    )


def _to_role_info(row: store.RoleRow) -> AdminRoleInfo:
    return AdminRoleInfo(
        role_id=row.role_id,
        description=row.description,
        permissions=list(row.permissions),
        created_at=row.created_at,
    )


class SqliteAdminService:
    """AdminService backed by the SQLite identity store."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def _require_user(self, user_name: str) -> str:
        user_id = _clean_name(user_name, what="User")
        if store.get_user(self.db_path, user_id=user_id) is None:
            raise NotFoundError(f"User '{user_id}' not found", entity="user", name=user_id)
        return user_id

    def _require_role(self, role_name: str) -> str:
        role_id = _clean_name(role_name, what="Role")
        if store.get_role(self.db_path, role_id=role_id) is None:
            raise NotFoundError(f"Role '{role_id}' not found", entity="role", name=role_id)
        return role_id

    def list_users(self, session: WebSession, user_name: str | None = None) -> list[AdminUserInfo]:
        user_id = user_name.strip() if user_name and user_name.strip() else None
        return [_to_user_info(r) for r in store.list_users(self.db_path, user_id=user_id)]

    def list_roles(self, session: WebSession, role_name: str | None = None) -> list[AdminRoleInfo]:
        role_id = role_name.strip() if role_name and role_name.strip() else None
        return [_to_role_info(r) for r in store.list_roles(self.db_path, role_id=role_id)]

    def list_permissions(self, session: WebSession) -> list[AdminPermissionInfo]:
        return [
            AdminPermissionInfo(
                permission_id=p.permission_id,
                label=p.label,
                description=p.description,
            )
            for p in store.list_permissions(self.db_path)
        ]

    def create_user(self, session: WebSession, user_name: str) -> AdminUserInfo:
        user_id = _clean_name(user_name, what="User")
        try:
            row = store.create_user(self.db_path, user_id=user_id)
        except sqlite3.IntegrityError as err:
            raise AlreadyExistsError(
                f"User '{user_id}' already exists", entity="user", name=user_id
            ) from err

        logger.info("User %s created by %s", user_id, session.user)
        return _to_user_info(row)

    def delete_user(self, session: WebSession, user_name: str) -> bool:
        user_id = _clean_name(user_name, what="User")
        if not store.delete_user(self.db_path, user_id=user_id):
            raise NotFoundError(f"User '{user_id}' not found", entity="user", name=user_id)

        logger.info("User %s deleted by %s", user_id, session.user)
        return True

    def create_role(
        self, session: WebSession, role_name: str, description: str | None = None
    ) -> AdminRoleInfo:
        role_id = _clean_name(role_name, what="Role")
        try:
            row = store.create_role(self.db_path, role_id=role_id, description=description)
        except sqlite3.IntegrityError as err:
            raise AlreadyExistsError(
                f"Role '{role_id}' already exists", entity="role", name=role_id
            ) from err

        logger.info("Role %s created by %s", role_id, session.user)
        return _to_role_info(row)

    def delete_role(self, session: WebSession, role_name: str) -> bool:
        role_id = _clean_name(role_name, what="Role")
        if not store.delete_role(self.db_path, role_id=role_id):
            raise NotFoundError(f"Role '{role_id}' not found", entity="role", name=role_id)

        logger.info("Role %s deleted by %s", role_id, session.user)
        return True

    def grant_user_role(self, session: WebSession, user: str, role: str) -> bool:
        user_id = self._require_user(user)
        role_id = self._require_role(role)
        if store.grant_user_role(self.db_path, user_id=user_id, role_id=role_id):
            logger.info("Role %s granted to %s by %s", role_id, user_id, session.user)
        return True

    def revoke_user_role(self, session: WebSession, user: str, role: str) -> bool:
        user_id = self._require_user(user)
        role_id = self._require_role(role)
        if store.revoke_user_role(self.db_path, user_id=user_id, role_id=role_id):
            logger.info("Role %s revoked from %s by %s", role_id, user_id, session.user)
        return True

    def set_role_permissions(
        self, session: WebSession, role_id: str, permissions: Sequence[str]
    ) -> bool:
        role_id = self._require_role(role_id)

        known = {p.permission_id for p in store.list_permissions(self.db_path)}
        requested = {p.strip() for p in permissions if p and p.strip()}
        unknown = sorted(requested - known)
        if unknown:
            raise NotFoundError(
                f"Unknown permission '{unknown[0]}'", entity="permission", name=unknown[0]
            )

        store.set_role_permissions(self.db_path, role_id=role_id, permission_ids=requested)
        logger.info(
            "Permissions of role %s set to %s by %s",
            role_id,
            sorted(requested),
            session.user,
        )
        return True

    def effective_permissions(self, user_name: str) -> set[str]:
        return store.user_permissions(self.db_path, user_id=user_name)
