from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.exceptions import NotFound, Conflict
from yqwork.models.department import Department
from yqwork.models.user import User

logger = logging.getLogger(__name__)


async def get_department_list(db: AsyncSession) -> List[Department]:
    result = await db.execute(
        select(Department).where(Department.deleted_at.is_(None)).order_by(Department.id)
    )
    return list(result.scalars().all())


async def get_department(db: AsyncSession, department_id: int) -> Optional[Department]:
    result = await db.execute(
        select(Department).where(Department.id == department_id, Department.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def require_department(db: AsyncSession, department_id: int) -> Department:
    department = await get_department(db, department_id)
    if department is None:
        raise NotFound(f"Department {department_id} not found")
    return department


async def add_department(db: AsyncSession, name: str, description: str = "") -> Department:
    department = Department(name=name, description=description or "")
    try:
        db.add(department)
        await db.commit()
        await db.refresh(department)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "add_department", e)
    logger.info(f"Department {department.id} '{name}' added")
    return department


async def update_department(db: AsyncSession, department_id: int, name: str, description: str = "") -> Department:
    department = await require_department(db, department_id)
    department.name = name
    department.description = description or ""
    try:
        await db.commit()
        await db.refresh(department)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_department", e)
    return department


async def delete_department(db: AsyncSession, department_id: int) -> None:
    """Soft-delete a department that no live user belongs to."""
    department = await require_department(db, department_id)
    result = await db.execute(
        select(User.id).where(User.department_id == department_id, User.deleted_at.is_(None)).limit(1)
    )
    if result.first() is not None:
        raise Conflict(f"Department {department_id} still has members")
    try:
        department.deleted_at = datetime.now(timezone.utc)
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "delete_department", e)
    logger.info(f"Department {department_id} deleted")
