"""
Service for the permission catalog, roles and role assignments.
"""
from datetime import datetime, timezone
from typing import List, Dict, Iterable, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.exceptions import NotFound, Conflict, PermissionDenied
from yqwork.core.permissions import PermissionItem, PermissionSet
from yqwork.models.permission import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_item(permission: Permission) -> PermissionItem:
    return PermissionItem(id=permission.id, name=permission.name, permission=permission.permission)


async def get_user_roles(db: AsyncSession, user_id: int) -> List[Role]:
    """Live roles held by a user."""
    try:
        result = await db.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id, Role.deleted_at.is_(None))
            .order_by(Role.id)
        )
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "get_user_roles", e)
    return list(result.scalars().all())


async def get_role_permissions(db: AsyncSession, role_ids: Iterable[int]) -> List[PermissionItem]:
    """Distinct live catalog entries linked to any of the given roles."""
    role_ids = list(role_ids)
    if not role_ids:
        return []
    try:
        result = await db.execute(
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id.in_(role_ids), Permission.deleted_at.is_(None))
            .distinct()
            .order_by(Permission.id)
        )
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "get_role_permissions", e)
    return [to_item(p) for p in result.scalars().all()]


async def get_user_permission(db: AsyncSession, user_id: int) -> PermissionSet:
    """
    Build the PermissionSet of one user from the union of their roles.

    An empty role list yields an empty set. Storage failures propagate as
    InfrastructureError, never as an authorization decision.
    """
    roles = await get_user_roles(db, user_id)
    items = await get_role_permissions(db, [role.id for role in roles])
    return PermissionSet(items)


# Permission catalog

async def get_permission_list(db: AsyncSession) -> List[Permission]:
    result = await db.execute(
        select(Permission).where(Permission.deleted_at.is_(None)).order_by(Permission.id)
    )
    return list(result.scalars().all())


async def get_permission(db: AsyncSession, permission_id: int) -> Optional[Permission]:
    result = await db.execute(
        select(Permission).where(Permission.id == permission_id, Permission.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def _permission_string_taken(db: AsyncSession, permission: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Permission.id).where(
        Permission.permission == permission,
        Permission.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.where(Permission.id != exclude_id)
    result = await db.execute(query)
    return result.first() is not None


async def add_permission(db: AsyncSession, name: str, permission: str) -> Permission:
    if await _permission_string_taken(db, permission):
        raise Conflict(f"Permission '{permission}' already exists")
    entry = Permission(name=name, permission=permission)
    try:
        db.add(entry)
        await db.commit()
        await db.refresh(entry)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "add_permission", e)
    logger.info(f"Permission {entry.id} '{permission}' added")
    return entry


async def update_permission(db: AsyncSession, permission_id: int, name: str, permission: str) -> Permission:
    entry = await get_permission(db, permission_id)
    if entry is None:
        raise NotFound(f"Permission {permission_id} not found")
    if await _permission_string_taken(db, permission, exclude_id=permission_id):
        raise Conflict(f"Permission '{permission}' already exists")
    entry.name = name
    entry.permission = permission
    try:
        await db.commit()
        await db.refresh(entry)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_permission", e)
    return entry


async def delete_permission(db: AsyncSession, permission_id: int) -> None:
    """Soft-delete a catalog entry and drop its role links."""
    entry = await get_permission(db, permission_id)
    if entry is None:
        raise NotFound(f"Permission {permission_id} not found")
    try:
        entry.deleted_at = _now()
        await db.execute(delete(RolePermission).where(RolePermission.permission_id == permission_id))
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "delete_permission", e)
    logger.info(f"Permission {permission_id} deleted")


# Roles

async def get_role_list(db: AsyncSession) -> List[Role]:
    result = await db.execute(select(Role).where(Role.deleted_at.is_(None)).order_by(Role.id))
    return list(result.scalars().all())


async def get_role(db: AsyncSession, role_id: int) -> Optional[Role]:
    result = await db.execute(select(Role).where(Role.id == role_id, Role.deleted_at.is_(None)))
    return result.scalar_one_or_none()


async def get_roles_with_permissions(db: AsyncSession) -> List[Dict]:
    """Every live role together with its catalog entries."""
    roles = await get_role_list(db)
    return [
        {"id": role.id, "name": role.name, "permissions": await get_role_permissions(db, [role.id])}
        for role in roles
    ]


async def _ensure_permissions_exist(db: AsyncSession, permission_ids: List[int]) -> None:
    if not permission_ids:
        return
    result = await db.execute(
        select(Permission.id).where(Permission.id.in_(permission_ids), Permission.deleted_at.is_(None))
    )
    missing = set(permission_ids) - set(result.scalars().all())
    if missing:
        raise NotFound(f"Permissions not found: {sorted(missing)}")


async def add_role(db: AsyncSession, name: str, permission_ids: List[int]) -> Role:
    await _ensure_permissions_exist(db, permission_ids)
    role = Role(name=name)
    try:
        db.add(role)
        await db.flush()
        for permission_id in dict.fromkeys(permission_ids):
            db.add(RolePermission(role_id=role.id, permission_id=permission_id))
        await db.commit()
        await db.refresh(role)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "add_role", e)
    logger.info(f"Role {role.id} '{name}' added with {len(permission_ids)} permissions")
    return role


async def update_role(db: AsyncSession, role_id: int, name: str, permission_ids: List[int]) -> Role:
    """Rename a role and replace its permission links in one transaction."""
    role = await get_role(db, role_id)
    if role is None:
        raise NotFound(f"Role {role_id} not found")
    await _ensure_permissions_exist(db, permission_ids)
    try:
        role.name = name
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        for permission_id in dict.fromkeys(permission_ids):
            db.add(RolePermission(role_id=role_id, permission_id=permission_id))
        await db.commit()
        await db.refresh(role)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_role", e)
    return role


async def delete_role(db: AsyncSession, role_id: int) -> None:
    """Soft-delete a role; its permission and user links go in the same transaction."""
    role = await get_role(db, role_id)
    if role is None:
        raise NotFound(f"Role {role_id} not found")
    try:
        role.deleted_at = _now()
        await db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        await db.execute(delete(UserRole).where(UserRole.role_id == role_id))
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "delete_role", e)
    logger.info(f"Role {role_id} deleted")


# Role assignment

async def update_user_roles(db: AsyncSession, user_id: int, role_ids: List[int]) -> None:
    """Replace the full role set of a user."""
    role_ids = list(dict.fromkeys(role_ids))
    if role_ids:
        result = await db.execute(
            select(Role.id).where(Role.id.in_(role_ids), Role.deleted_at.is_(None))
        )
        missing = set(role_ids) - set(result.scalars().all())
        if missing:
            raise NotFound(f"Roles not found: {sorted(missing)}")
    try:
        await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
        for role_id in role_ids:
            db.add(UserRole(user_id=user_id, role_id=role_id))
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_user_roles", e)


async def ensure_can_grant_roles(
    db: AsyncSession,
    actor_user_id: int,
    actor_permissions: PermissionSet,
    role_ids: List[int],
) -> None:
    """Non-admins may only hand out roles they hold themselves."""
    if actor_permissions.is_admin():
        return
    held = {role.id for role in await get_user_roles(db, actor_user_id)}
    if not set(role_ids) <= held:
        logger.warning(f"User {actor_user_id} tried to grant roles outside their own: {sorted(set(role_ids) - held)}")
        raise PermissionDenied("Cannot grant roles you do not hold")
