from __future__ import annotations

from dbweb_core.services.actions import (
    PERMISSION_ADMIN,
    WebAction,
    declared_actions,
    required_permissions,
    web_action,
)
from dbweb_core.services.admin import (
    AdminPermissionInfo,
    AdminRoleInfo,
    AdminService,
    AdminUserInfo,
)
from dbweb_core.services.admin_sqlite import SqliteAdminService
from dbweb_core.services.dispatch import check_action_access, invoke_action

__all__ = [
    "PERMISSION_ADMIN",
    "AdminPermissionInfo",
    "AdminRoleInfo",
    "AdminService",
    "AdminUserInfo",
    "SqliteAdminService",
    "WebAction",
    "check_action_access",
    "declared_actions",
    "invoke_action",
    "required_permissions",
    "web_action",
]
