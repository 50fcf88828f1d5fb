"""
Work-hour campaigns and the storage primitives for their records.

The record writers here are conditional on the stored status so that two
concurrent requests can never both move the same record; callers decide
what to do when a writer reports that nothing was changed.
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import select, update, null, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.exceptions import NotFound, InfrastructureError
from yqwork.core.query_builder import get_paginated_results, page_to_offset, not_deleted
from yqwork.models.user import User
from yqwork.models.work_hour import WorkHour, WorkHourStatus, WorkHourRecord, WorkHourRecordStatus

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Campaigns

async def get_work_hour_list(db: AsyncSession, page: int = 1, page_size: int = 20) -> Tuple[List[WorkHour], int]:
    skip, limit = page_to_offset(page, page_size)
    query = not_deleted(select(WorkHour), WorkHour)
    return await get_paginated_results(db, query, skip, limit, order_by=WorkHour.id.desc())


async def get_work_hour(db: AsyncSession, work_hour_id: int) -> Optional[WorkHour]:
    result = await db.execute(
        select(WorkHour).where(WorkHour.id == work_hour_id, WorkHour.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def require_work_hour(db: AsyncSession, work_hour_id: int) -> WorkHour:
    work_hour = await get_work_hour(db, work_hour_id)
    if work_hour is None:
        raise NotFound(f"Work hour campaign {work_hour_id} not found")
    return work_hour


async def add_work_hour(
    db: AsyncSession,
    name: str,
    end_time: datetime,
    status: WorkHourStatus = WorkHourStatus.PENDING,
    comment: Optional[str] = None,
) -> WorkHour:
    work_hour = WorkHour(name=name, end_time=end_time, status=status, comment=comment)
    try:
        db.add(work_hour)
        await db.commit()
        await db.refresh(work_hour)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "add_work_hour", e)
    logger.info(f"Work hour campaign {work_hour.id} '{name}' created")
    return work_hour


async def update_work_hour(
    db: AsyncSession,
    work_hour_id: int,
    name: str,
    end_time: datetime,
    status: WorkHourStatus,
    comment: Optional[str] = None,
) -> WorkHour:
    work_hour = await require_work_hour(db, work_hour_id)
    work_hour.name = name
    work_hour.end_time = end_time
    work_hour.status = status
    work_hour.comment = comment
    try:
        await db.commit()
        await db.refresh(work_hour)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "update_work_hour", e)
    return work_hour


async def delete_work_hour(db: AsyncSession, work_hour_id: int) -> None:
    work_hour = await require_work_hour(db, work_hour_id)
    try:
        work_hour.deleted_at = _now()
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "delete_work_hour", e)
    logger.info(f"Work hour campaign {work_hour_id} deleted")


# Record reads

async def get_record(db: AsyncSession, work_hour_id: int, user_id: int) -> Optional[WorkHourRecord]:
    result = await db.execute(
        select(WorkHourRecord).where(
            WorkHourRecord.work_hour_id == work_hour_id,
            WorkHourRecord.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_records_by_ids(db: AsyncSession, record_ids: Iterable[int]) -> Dict[int, WorkHourRecord]:
    record_ids = list(set(record_ids))
    if not record_ids:
        return {}
    result = await db.execute(select(WorkHourRecord).where(WorkHourRecord.id.in_(record_ids)))
    return {record.id: record for record in result.scalars().all()}


async def list_records_by_status(
    db: AsyncSession,
    work_hour_id: int,
    status: WorkHourRecordStatus,
) -> List[WorkHourRecord]:
    result = await db.execute(
        select(WorkHourRecord)
        .where(WorkHourRecord.work_hour_id == work_hour_id, WorkHourRecord.status == status)
        .order_by(WorkHourRecord.id)
    )
    return list(result.scalars().all())


async def get_finance_record_list(
    db: AsyncSession,
    work_hour_id: int,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[WorkHourRecord], int]:
    """Records that have cleared department approval."""
    skip, limit = page_to_offset(page, page_size)
    query = select(WorkHourRecord).where(
        WorkHourRecord.work_hour_id == work_hour_id,
        WorkHourRecord.status >= WorkHourRecordStatus.PENDING_FINANCE,
    )
    return await get_paginated_results(db, query, skip, limit, order_by=WorkHourRecord.id)


async def get_department_record_list(
    db: AsyncSession,
    work_hour_id: int,
    department_id: int,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[WorkHourRecord], int]:
    """Submitted records whose owners belong to ``department_id``."""
    skip, limit = page_to_offset(page, page_size)
    query = (
        select(WorkHourRecord)
        .join(User, User.id == WorkHourRecord.user_id)
        .where(
            WorkHourRecord.work_hour_id == work_hour_id,
            WorkHourRecord.status >= WorkHourRecordStatus.PENDING_APPROVAL,
            User.department_id == department_id,
        )
    )
    return await get_paginated_results(db, query, skip, limit, order_by=WorkHourRecord.id)


def record_to_dict(record: WorkHourRecord, user: Optional[User] = None) -> Dict:
    return {
        "id": record.id,
        "work_hour_id": record.work_hour_id,
        "user_id": record.user_id,
        "user_name": user.name if user else None,
        "stu_id": user.stu_id if user else None,
        "department_id": user.department_id if user else None,
        "work_descs": record.work_descs or [],
        "includes": record.includes,
        "comment": record.comment,
        "status": record.status,
    }


async def enrich_records(db: AsyncSession, records: List[WorkHourRecord]) -> List[Dict]:
    """Attach owner name, student id and department to each record."""
    user_ids = {record.user_id for record in records}
    users = {}
    if user_ids:
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        users = {user.id: user for user in result.scalars().all()}
    return [record_to_dict(record, users.get(record.user_id)) for record in records]


# Record writes. None of these commit; the calling workflow owns the transaction.

def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise InfrastructureError(f"Record upsert is not supported on {dialect}")
    return insert


async def upsert_submission(
    db: AsyncSession,
    work_hour_id: int,
    user_id: int,
    work_descs: List[Dict],
) -> Optional[int]:
    """
    Insert the user's record as PendingApproval, or overwrite an existing
    Unsubmitted one, as a single statement.

    Returns the record id, or None when a record exists in any other status
    and was left untouched.
    """
    insert = _insert_for(db)
    stmt = insert(WorkHourRecord).values(
        work_hour_id=work_hour_id,
        user_id=user_id,
        work_descs=work_descs,
        status=WorkHourRecordStatus.PENDING_APPROVAL,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[WorkHourRecord.work_hour_id, WorkHourRecord.user_id],
        set_={
            "work_descs": stmt.excluded.work_descs,
            "includes": null(),
            "comment": null(),
            "status": stmt.excluded.status,
            "updated_at": func.now(),
        },
        where=WorkHourRecord.status == WorkHourRecordStatus.UNSUBMITTED,
    ).returning(WorkHourRecord.id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def update_record_status(
    db: AsyncSession,
    record_id: int,
    from_status: WorkHourRecordStatus,
    to_status: WorkHourRecordStatus,
    comment: Optional[str] = None,
) -> bool:
    """Move one record from ``from_status`` to ``to_status``. False if it was not in ``from_status``."""
    result = await db.execute(
        update(WorkHourRecord)
        .where(WorkHourRecord.id == record_id, WorkHourRecord.status == from_status)
        .values(status=to_status, comment=comment, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def update_record_includes(
    db: AsyncSession,
    record_id: int,
    includes: List[Dict],
    expected_status: WorkHourRecordStatus,
) -> bool:
    """Replace a record's inclusion list while it is still in ``expected_status``."""
    result = await db.execute(
        update(WorkHourRecord)
        .where(WorkHourRecord.id == record_id, WorkHourRecord.status == expected_status)
        .values(includes=includes, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
