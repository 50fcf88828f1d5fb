"""
API endpoints for the permission catalog.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from yqwork.core.database import get_db
from yqwork.core.dependencies import get_current_actor, require_permission
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.core.permissions import Actor, Perms, check_permission, is_admin
from yqwork.schemas.permission import (
    PermissionCreate,
    PermissionResponse,
    PermissionCheck,
    PermissionCheckResponse,
)
from yqwork.services import permission_service

router = APIRouter()


@router.get("", response_model=List[PermissionResponse])
@handle_endpoint_errors(operation_name="get_permission_list")
async def get_permissions_endpoint(
    actor: Actor = Depends(require_permission(Perms.PERMISSION_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    """Get the whole permission catalog."""
    permissions = await permission_service.get_permission_list(db)
    return [PermissionResponse.model_validate(p) for p in permissions]


@router.post("", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="add_permission")
async def add_permission_endpoint(
    data: PermissionCreate,
    actor: Actor = Depends(require_permission(Perms.PERMISSION_ADD)),
    db: AsyncSession = Depends(get_db),
):
    entry = await permission_service.add_permission(db, data.name, data.permission)
    return PermissionResponse.model_validate(entry)


@router.post("/check", response_model=PermissionCheckResponse)
@handle_endpoint_errors(operation_name="check_permission")
async def check_permission_endpoint(
    data: PermissionCheck,
    actor: Actor = Depends(get_current_actor),
):
    """Check if the current user holds a permission."""
    return PermissionCheckResponse(
        permission=data.permission,
        has_permission=check_permission(actor.permissions, data.permission),
        is_admin=is_admin(actor.permissions),
    )


@router.put("/{permission_id}", response_model=PermissionResponse)
@handle_endpoint_errors(operation_name="update_permission")
async def update_permission_endpoint(
    permission_id: int,
    data: PermissionCreate,
    actor: Actor = Depends(require_permission(Perms.PERMISSION_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    entry = await permission_service.update_permission(db, permission_id, data.name, data.permission)
    return PermissionResponse.model_validate(entry)


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="delete_permission")
async def delete_permission_endpoint(
    permission_id: int,
    actor: Actor = Depends(require_permission(Perms.PERMISSION_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    await permission_service.delete_permission(db, permission_id)
