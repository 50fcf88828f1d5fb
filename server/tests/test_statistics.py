import pytest

from yqwork.core.exceptions import NotFound
from yqwork.models.work_hour import WorkHourRecord, WorkHourRecordStatus
from yqwork.services.statistics_service import fold_by_department, statistics


def test_fold_counts_records_and_declared_hours():
    rows = [
        (1, [{"desc": "a", "hour": 2}, {"desc": "b", "hour": 3}], None),
        (1, [{"desc": "c", "hour": 4}], None),
        (2, [{"desc": "d", "hour": 1}], None),
    ]
    assert fold_by_department(rows) == {
        1: {"count": 2, "total_hours": 9, "included_hours": 0},
        2: {"count": 1, "total_hours": 1, "included_hours": 0},
    }


def test_fold_keeps_included_hours_out_of_total():
    rows = [
        (1, [{"desc": "a", "hour": 4}], None),
        (2, [{"desc": "b", "hour": 1}], [{"record_id": 1, "hour": 4}]),
    ]
    totals = fold_by_department(rows)
    assert totals[2] == {"count": 1, "total_hours": 1, "included_hours": 4}
    assert totals[1]["total_hours"] == 4


def test_fold_of_nothing_is_empty():
    assert fold_by_department([]) == {}


@pytest.mark.asyncio
async def test_statistics_cover_every_status(db, make_department, make_user, make_work_hour):
    tech = await make_department("Technology")
    design = await make_department("Design")
    work_hour = await make_work_hour()
    other = await make_work_hour("Other campaign")
    users = [await make_user(tech), await make_user(tech), await make_user(design)]

    records = [
        WorkHourRecord(work_hour_id=work_hour.id, user_id=users[0].id,
                       work_descs=[{"desc": "tutoring", "hour": 4}], status=WorkHourRecordStatus.CLOSED),
        WorkHourRecord(work_hour_id=work_hour.id, user_id=users[1].id,
                       work_descs=[{"desc": "posters", "hour": 2}], status=WorkHourRecordStatus.UNSUBMITTED),
        WorkHourRecord(work_hour_id=work_hour.id, user_id=users[2].id,
                       work_descs=[{"desc": "design", "hour": 5}], status=WorkHourRecordStatus.PENDING_APPROVAL),
        WorkHourRecord(work_hour_id=other.id, user_id=users[2].id,
                       work_descs=[{"desc": "ignored", "hour": 100}], status=WorkHourRecordStatus.CLOSED),
    ]
    db.add_all(records)
    await db.commit()

    rows = await statistics(db, work_hour.id)

    assert rows == [
        {"department_id": tech.id, "department_name": "Technology", "count": 2, "total_hours": 6, "included_hours": 0},
        {"department_id": design.id, "department_name": "Design", "count": 1, "total_hours": 5, "included_hours": 0},
    ]


@pytest.mark.asyncio
async def test_statistics_of_empty_campaign(db, make_work_hour):
    work_hour = await make_work_hour()
    assert await statistics(db, work_hour.id) == []


@pytest.mark.asyncio
async def test_statistics_unknown_campaign(db):
    with pytest.raises(NotFound):
        await statistics(db, 12345)
