from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.database import get_db
from yqwork.core.dependencies import get_current_user, get_current_actor, require_permission
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.core.permissions import Actor, Perms
from yqwork.models.user import User, UserStatus
from yqwork.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserListResponse,
    WhoAmIResponse,
    UserRolesUpdate,
    PasswordChange,
)
from yqwork.services import user_service

router = APIRouter()


@router.get("/whoami", response_model=WhoAmIResponse)
@handle_endpoint_errors(operation_name="whoami")
async def whoami_endpoint(
    current_user: User = Depends(get_current_user),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Current user with role names and effective permission strings."""
    info = await user_service.whoami(db, current_user, actor)
    return WhoAmIResponse(
        user=UserResponse.model_validate(info["user"]),
        roles=info["roles"],
        permissions=info["permissions"],
        is_admin=info["is_admin"],
    )


@router.put("/pwd", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="change_password")
async def change_password_endpoint(
    data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(db, current_user, data.old_password, data.new_password)


@router.get("", response_model=UserListResponse)
@handle_endpoint_errors(operation_name="get_users")
async def get_users_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    stu_id: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None),
    user_status: Optional[int] = Query(None, alias="status"),
    actor: Actor = Depends(require_permission(Perms.USER_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    """List users. Non-admins only see their own department."""
    if user_status is not None:
        try:
            user_status = UserStatus.parse(user_status)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    users, total = await user_service.list_users(
        db,
        actor,
        page=page,
        page_size=page_size,
        stu_id=stu_id,
        name=name,
        department_id=department_id,
        status=user_status,
    )
    return UserListResponse(rows=[UserResponse.model_validate(u) for u in users], count=total)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="create_user")
async def create_user_endpoint(
    data: UserCreate,
    actor: Actor = Depends(require_permission(Perms.USER_ADD)),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.create_user(db, data, actor)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
@handle_endpoint_errors(operation_name="get_user")
async def get_user_endpoint(
    user_id: int,
    actor: Actor = Depends(require_permission(Perms.USER_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_for_actor(db, user_id, actor)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
@handle_endpoint_errors(operation_name="update_user")
async def update_user_endpoint(
    user_id: int,
    data: UserUpdate,
    actor: Actor = Depends(require_permission(Perms.USER_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_user(db, user_id, data, actor)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="delete_user")
async def delete_user_endpoint(
    user_id: int,
    actor: Actor = Depends(require_permission(Perms.USER_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, user_id, actor)


@router.put("/{user_id}/roles", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="update_user_roles")
async def update_user_roles_endpoint(
    user_id: int,
    data: UserRolesUpdate,
    actor: Actor = Depends(require_permission(Perms.USER_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    """Replace the full role set of a user."""
    await user_service.set_user_roles(db, user_id, data.role_ids, actor)
