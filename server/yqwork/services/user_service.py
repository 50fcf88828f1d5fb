"""
User administration.

Non-admin actors only see and manage users of their own department;
administrators see everyone.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.exceptions import NotFound, Conflict, PermissionDenied
from yqwork.core.permissions import Actor
from yqwork.core.query_builder import get_paginated_results, page_to_offset, not_deleted, filter_equals, filter_contains
from yqwork.core.security import get_password_hash, verify_password, validate_password_strength
from yqwork.models.permission import UserRole
from yqwork.models.user import User, UserStatus
from yqwork.schemas.user import UserCreate, UserUpdate
from yqwork.services import department_service, permission_service

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id, User.deleted_at.is_(None)))
    return result.scalar_one_or_none()


async def get_user_by_stu_id(db: AsyncSession, stu_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.stu_id == stu_id, User.deleted_at.is_(None)))
    return result.scalar_one_or_none()


def _ensure_department_scope(actor: Actor, department_id: int) -> None:
    if not actor.is_admin and department_id != actor.department_id:
        logger.warning(f"User {actor.user_id} denied access to department {department_id}")
        raise PermissionDenied("Users of other departments are out of reach")


async def get_user_for_actor(db: AsyncSession, user_id: int, actor: Actor) -> User:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    _ensure_department_scope(actor, user.department_id)
    return user


async def list_users(
    db: AsyncSession,
    actor: Actor,
    page: int = 1,
    page_size: int = 20,
    stu_id: Optional[str] = None,
    name: Optional[str] = None,
    department_id: Optional[int] = None,
    status: Optional[UserStatus] = None,
) -> Tuple[List[User], int]:
    """Paginated user list; non-admins are pinned to their own department."""
    if not actor.is_admin:
        department_id = actor.department_id
    query = not_deleted(select(User), User)
    query = filter_equals(query, User, {"department_id": department_id, "status": status})
    query = filter_contains(query, User, {"stu_id": stu_id, "name": name})
    skip, limit = page_to_offset(page, page_size)
    return await get_paginated_results(db, query, skip, limit, order_by=User.id)


async def _ensure_stu_id_free(db: AsyncSession, stu_id: str, exclude_id: Optional[int] = None) -> None:
    # Soft-deleted users keep their student id, the column is unique
    query = select(User.id).where(User.stu_id == stu_id)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise Conflict(f"Student id {stu_id} is already registered")


def _check_password(password: str) -> None:
    is_valid, error_msg = validate_password_strength(password)
    if not is_valid:
        raise ValueError(error_msg)


async def create_user(db: AsyncSession, data: UserCreate, actor: Actor) -> User:
    _ensure_department_scope(actor, data.department_id)
    await department_service.require_department(db, data.department_id)
    await _ensure_stu_id_free(db, data.stu_id)
    _check_password(data.password)
    if data.role_ids:
        await permission_service.ensure_can_grant_roles(db, actor.user_id, actor.permissions, data.role_ids)

    user = User(
        name=data.name,
        stu_id=data.stu_id,
        username=data.username,
        email=data.email,
        college=data.college,
        position=data.position,
        status=data.status,
        department_id=data.department_id,
        password_hash=get_password_hash(data.password),
    )
    try:
        db.add(user)
        await db.flush()
        for role_id in dict.fromkeys(data.role_ids):
            db.add(UserRole(user_id=user.id, role_id=role_id))
        await db.commit()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "create_user", e)
    logger.info(f"User {user.id} ({user.stu_id}) created by {actor.user_id}")
    return user


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate, actor: Actor) -> User:
    user = await get_user_for_actor(db, user_id, actor)
    _ensure_department_scope(actor, data.department_id)
    if data.department_id != user.department_id:
        await department_service.require_department(db, data.department_id)
    if data.stu_id != user.stu_id:
        await _ensure_stu_id_free(db, data.stu_id, exclude_id=user_id)

    for field in ("name", "stu_id", "username", "email", "college", "position", "status", "department_id"):
        setattr(user, field, getattr(data, field))
    try:
        await db.commit()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_user", e)
    return user


async def delete_user(db: AsyncSession, user_id: int, actor: Actor) -> None:
    """Soft-delete a user and drop their role links."""
    if user_id == actor.user_id:
        raise ValueError("Cannot delete your own account")
    user = await get_user_for_actor(db, user_id, actor)
    try:
        user.deleted_at = datetime.now(timezone.utc)
        await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "delete_user", e)
    logger.info(f"User {user_id} deleted by {actor.user_id}")


async def set_user_roles(db: AsyncSession, user_id: int, role_ids: List[int], actor: Actor) -> None:
    await get_user_for_actor(db, user_id, actor)
    await permission_service.ensure_can_grant_roles(db, actor.user_id, actor.permissions, role_ids)
    await permission_service.update_user_roles(db, user_id, role_ids)
    logger.info(f"Roles of user {user_id} set to {sorted(set(role_ids))} by {actor.user_id}")


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.password_hash):
        raise ValueError("Current password is incorrect")
    _check_password(new_password)
    user.password_hash = get_password_hash(new_password)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "change_password", e)
    logger.info(f"User {user.id} changed their password")


async def whoami(db: AsyncSession, user: User, actor: Actor) -> Dict:
    roles = await permission_service.get_user_roles(db, user.id)
    return {
        "user": user,
        "roles": [role.name for role in roles],
        "permissions": sorted(actor.permissions.strings),
        "is_admin": actor.is_admin,
    }
