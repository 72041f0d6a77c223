from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from dbweb_core.api.deps import caller_session, get_admin_service
from dbweb_core.api.models import ApiResponse, ok
from dbweb_core.services.admin import (
    AdminPermissionInfo,
    AdminRoleInfo,
    AdminService,
    AdminUserInfo,
)
from dbweb_core.services.dispatch import invoke_action

router = APIRouter(prefix="/admin", tags=["admin"])


def _dispatch(request: Request, name: str, *args: Any) -> Any:
    return invoke_action(
        AdminService,
        get_admin_service(request),
        name,
        caller_session(request),
        *args,
    )


class UserListResponse(BaseModel):
    items: list[AdminUserInfo]


class RoleListResponse(BaseModel):
    items: list[AdminRoleInfo]


class PermissionListResponse(BaseModel):
    items: list[AdminPermissionInfo]


class SuccessResponse(BaseModel):
    success: bool


@router.get("/users", response_model=ApiResponse[UserListResponse])
async def users_list(
    request: Request,
    user_name: str | None = Query(default=None, description="Optional exact user name"),
) -> ApiResponse[UserListResponse]:
    return ok(UserListResponse(items=_dispatch(request, "list_users", user_name)))


class UserCreateRequest(BaseModel):
    user_name: str = Field(min_length=1)


@router.post("/users", response_model=ApiResponse[AdminUserInfo])
async def users_create(request: Request, payload: UserCreateRequest) -> ApiResponse[AdminUserInfo]:
    return ok(_dispatch(request, "create_user", payload.user_name))


@router.delete("/users/{user_name}", response_model=ApiResponse[SuccessResponse])
async def users_delete(request: Request, user_name: str) -> ApiResponse[SuccessResponse]:
    return ok(SuccessResponse(success=_dispatch(request, "delete_user", user_name)))


@router.get("/roles", response_model=ApiResponse[RoleListResponse])
async def roles_list(
    request: Request,
    role_name: str | None = Query(default=None, description="Optional exact role name"),
) -> ApiResponse[RoleListResponse]:
    return ok(RoleListResponse(items=_dispatch(request, "list_roles", role_name)))


class RoleCreateRequest(BaseModel):
    role_name: str = Field(min_length=1)
    description: str | None = None


@router.post("/roles", response_model=ApiResponse[AdminRoleInfo])
async def roles_create(request: Request, payload: RoleCreateRequest) -> ApiResponse[AdminRoleInfo]:
    return ok(_dispatch(request, "create_role", payload.role_name, payload.description))


@router.delete("/roles/{role_name}", response_model=ApiResponse[SuccessResponse])
async def roles_delete(request: Request, role_name: str) -> ApiResponse[SuccessResponse]:
    return ok(SuccessResponse(success=_dispatch(request, "delete_role", role_name)))


@router.get("/permissions", response_model=ApiResponse[PermissionListResponse])
async def permissions_list(request: Request) -> ApiResponse[PermissionListResponse]:
    return ok(PermissionListResponse(items=_dispatch(request, "list_permissions")))


@router.put(
    "/users/{user_name}/roles/{role_name}",
    response_model=ApiResponse[SuccessResponse],
)
async def user_role_grant(
    request: Request, user_name: str, role_name: str
) -> ApiResponse[SuccessResponse]:
    return ok(SuccessResponse(success=_dispatch(request, "grant_user_role", user_name, role_name)))


@router.delete(
    "/users/{user_name}/roles/{role_name}",
    response_model=ApiResponse[SuccessResponse],
)
async def user_role_revoke(
    request: Request, user_name: str, role_name: str
) -> ApiResponse[SuccessResponse]:
    return ok(SuccessResponse(success=_dispatch(request, "revoke_user_role", user_name, role_name)))


class RolePermissionsRequest(BaseModel):
    permissions: list[str] = Field(default_factory=list)


@router.put("/roles/{role_name}/permissions", response_model=ApiResponse[SuccessResponse])
async def role_permissions_set(
    request: Request,
    role_name: str,
    payload: RolePermissionsRequest,
) -> ApiResponse[SuccessResponse]:
    success = _dispatch(request, "set_role_permissions", role_name, payload.permissions)
    return ok(SuccessResponse(success=success))
