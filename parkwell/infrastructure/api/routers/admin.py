from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from parkwell.application.repositories import ListQuery
from parkwell.application.services.audit_service import AuditService
from parkwell.application.services.user_admin_service import UserAdminService
from parkwell.domain.common import RoleName
from parkwell.infrastructure.api.dependencies import (
    CurrentUser,
    get_audit_service,
    get_user_admin_service,
    list_query,
    require_any_permission,
    require_permission,
    require_role,
)
from parkwell.infrastructure.api.schemas.admin import (
    AdminUserCreate,
    AdminUserUpdate,
    AuditLogResponse,
    PermissionResponse,
    RoleResponse,
)
from parkwell.infrastructure.api.schemas.auth import UserResponse
from parkwell.infrastructure.api.schemas.common import MessageResponse, PaginatedResponse, paginated

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_role(RoleName.ADMIN))])

manage_users = require_permission("manage_all_users")


@router.get("/users", response_model=PaginatedResponse[UserResponse], dependencies=[Depends(manage_users)])
async def list_users(
    query: ListQuery = Depends(list_query),
    role: Optional[str] = Query(None),
    service: UserAdminService = Depends(get_user_admin_service),
):
    page = await service.list_users(query, role_name=role)
    return paginated(page, UserResponse)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: AdminUserCreate,
    current_user: CurrentUser = Depends(manage_users),
    service: UserAdminService = Depends(get_user_admin_service),
):
    return await service.create_user(
        current_user.id,
        data.first_name,
        data.last_name,
        data.email,
        data.password,
        role_name=data.role_name,
        balance=data.balance,
    )


@router.get("/users/{user_id}", response_model=UserResponse, dependencies=[Depends(manage_users)])
async def get_user(user_id: int, service: UserAdminService = Depends(get_user_admin_service)):
    return await service.get_user(user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: AdminUserUpdate,
    current_user: CurrentUser = Depends(manage_users),
    service: UserAdminService = Depends(get_user_admin_service),
):
    if data.role_name is not None and not current_user.has_permission("assign_user_roles"):
        data.role_name = None
    return await service.update_user(current_user.id, user_id, **data.model_dump(exclude_unset=True))


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: CurrentUser = Depends(manage_users),
    service: UserAdminService = Depends(get_user_admin_service),
):
    await service.delete_user(current_user.id, user_id)
    return {"message": "User deleted successfully"}


@router.get(
    "/roles",
    response_model=List[RoleResponse],
    dependencies=[Depends(require_any_permission("manage_all_users", "assign_user_roles"))],
)
async def list_roles(service: UserAdminService = Depends(get_user_admin_service)):
    return await service.list_roles()


@router.get(
    "/permissions",
    response_model=List[PermissionResponse],
    dependencies=[Depends(require_any_permission("manage_all_users", "assign_user_roles"))],
)
async def list_permissions(service: UserAdminService = Depends(get_user_admin_service)):
    return await service.list_permissions()


@router.get(
    "/logs",
    response_model=PaginatedResponse[AuditLogResponse],
    dependencies=[Depends(require_permission("view_audit_logs"))],
)
async def list_audit_logs(
    query: ListQuery = Depends(list_query),
    user_id: Optional[int] = Query(None, alias="userId"),
    entity_type: Optional[str] = Query(None, alias="entityType"),
    entity_id: Optional[int] = Query(None, alias="entityId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    service: AuditService = Depends(get_audit_service),
):
    page = await service.list_logs(
        query,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        start_date=start_date,
        end_date=end_date,
    )
    return paginated(page, AuditLogResponse)
