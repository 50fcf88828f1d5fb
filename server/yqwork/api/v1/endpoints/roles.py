"""
API endpoints for roles and their permission links.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from yqwork.core.database import get_db
from yqwork.core.dependencies import require_permission
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.core.permissions import Actor, Perms
from yqwork.schemas.permission import RoleCreate, RoleResponse, PermissionResponse
from yqwork.services import permission_service

router = APIRouter()


async def _role_response(db: AsyncSession, role) -> RoleResponse:
    items = await permission_service.get_role_permissions(db, [role.id])
    return RoleResponse(
        id=role.id,
        name=role.name,
        permissions=[PermissionResponse(id=i.id, name=i.name, permission=i.permission) for i in items],
    )


@router.get("", response_model=List[RoleResponse])
@handle_endpoint_errors(operation_name="get_role_list")
async def get_roles_endpoint(
    actor: Actor = Depends(require_permission(Perms.ROLE_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    """Every role with its permissions."""
    roles = await permission_service.get_roles_with_permissions(db)
    return [
        RoleResponse(
            id=role["id"],
            name=role["name"],
            permissions=[
                PermissionResponse(id=i.id, name=i.name, permission=i.permission)
                for i in role["permissions"]
            ],
        )
        for role in roles
    ]


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="add_role")
async def add_role_endpoint(
    data: RoleCreate,
    actor: Actor = Depends(require_permission(Perms.ROLE_ADD)),
    db: AsyncSession = Depends(get_db),
):
    role = await permission_service.add_role(db, data.name, data.permission_ids)
    return await _role_response(db, role)


@router.put("/{role_id}", response_model=RoleResponse)
@handle_endpoint_errors(operation_name="update_role")
async def update_role_endpoint(
    role_id: int,
    data: RoleCreate,
    actor: Actor = Depends(require_permission(Perms.ROLE_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    """Rename a role and replace its permissions."""
    role = await permission_service.update_role(db, role_id, data.name, data.permission_ids)
    return await _role_response(db, role)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="delete_role")
async def delete_role_endpoint(
    role_id: int,
    actor: Actor = Depends(require_permission(Perms.ROLE_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    await permission_service.delete_role(db, role_id)
