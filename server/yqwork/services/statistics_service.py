"""
Per-department totals for a work-hour campaign.
"""
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.models.department import Department
from yqwork.models.user import User
from yqwork.models.work_hour import WorkHourRecord
from yqwork.services import work_hour_service

logger = logging.getLogger(__name__)


def _sum_hours(entries: Optional[Iterable[Dict]]) -> int:
    return sum(int(entry.get("hour") or 0) for entry in entries or [])


def fold_by_department(rows: Iterable[Tuple[int, Optional[List[Dict]], Optional[List[Dict]]]]) -> Dict[int, Dict[str, int]]:
    """
    Fold ``(department_id, work_descs, includes)`` rows into per-department counters.

    ``total_hours`` counts declared hours only. Hours finance attached to a
    record through its inclusion list are reported as ``included_hours`` and
    are never added to ``total_hours``, since the included record's own
    declaration is already counted.
    """
    totals: Dict[int, Dict[str, int]] = {}
    for department_id, work_descs, includes in rows:
        entry = totals.setdefault(department_id, {"count": 0, "total_hours": 0, "included_hours": 0})
        entry["count"] += 1
        entry["total_hours"] += _sum_hours(work_descs)
        entry["included_hours"] += _sum_hours(includes)
    return totals


async def statistics(db: AsyncSession, work_hour_id: int) -> List[Dict]:
    """Totals for every record of the campaign, whatever its status, ordered by department id."""
    await work_hour_service.require_work_hour(db, work_hour_id)
    try:
        result = await db.execute(
            select(User.department_id, WorkHourRecord.work_descs, WorkHourRecord.includes)
            .join(User, User.id == WorkHourRecord.user_id)
            .where(WorkHourRecord.work_hour_id == work_hour_id)
        )
        totals = fold_by_department(result.all())

        names = {}
        if totals:
            result = await db.execute(
                select(Department.id, Department.name).where(Department.id.in_(totals.keys()))
            )
            names = dict(result.all())
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "statistics", e)

    return [
        {"department_id": department_id, "department_name": names.get(department_id), **totals[department_id]}
        for department_id in sorted(totals)
    ]
