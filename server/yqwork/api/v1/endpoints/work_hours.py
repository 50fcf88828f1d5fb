"""
API endpoints for work-hour campaigns, their records and statistics.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from yqwork.core.database import get_db
from yqwork.core.dependencies import get_current_actor, require_permission
from yqwork.core.error_handling import handle_endpoint_errors
from yqwork.core.permissions import Actor, Perms
from yqwork.models.work_hour import WorkHourRecord, WorkHourRecordStatus
from yqwork.schemas.work_hour import (
    WorkHourCreate,
    WorkHourUpdate,
    WorkHourResponse,
    WorkHourListResponse,
    WorkHourRecordResponse,
    WorkHourRecordListResponse,
    SubmitWorkHourRecord,
    SubmitWorkHourRecordResponse,
    WorkHourRecordStatusUpdate,
    SaveWorkHourTable,
    BulkTransitionResponse,
    StatisticsItem,
    StatisticsResponse,
)
from yqwork.services import work_hour_service, workflow_service, statistics_service

router = APIRouter()


async def _record_response(db: AsyncSession, record: WorkHourRecord) -> WorkHourRecordResponse:
    rows = await work_hour_service.enrich_records(db, [record])
    return WorkHourRecordResponse(**rows[0])


# Campaigns

@router.get("", response_model=WorkHourListResponse)
@handle_endpoint_errors(operation_name="get_work_hour_list")
async def get_work_hours_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    """List campaigns, newest first."""
    work_hours, total = await work_hour_service.get_work_hour_list(db, page, page_size)
    return WorkHourListResponse(
        rows=[WorkHourResponse.model_validate(w) for w in work_hours],
        count=total,
    )


@router.post("", response_model=WorkHourResponse, status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="add_work_hour")
async def add_work_hour_endpoint(
    data: WorkHourCreate,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_ADD)),
    db: AsyncSession = Depends(get_db),
):
    work_hour = await work_hour_service.add_work_hour(
        db, data.name, data.end_time, data.status, data.comment
    )
    return WorkHourResponse.model_validate(work_hour)


@router.get("/{work_hour_id}", response_model=WorkHourResponse)
@handle_endpoint_errors(operation_name="get_work_hour")
async def get_work_hour_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    work_hour = await work_hour_service.require_work_hour(db, work_hour_id)
    return WorkHourResponse.model_validate(work_hour)


@router.put("/{work_hour_id}", response_model=WorkHourResponse)
@handle_endpoint_errors(operation_name="update_work_hour")
async def update_work_hour_endpoint(
    work_hour_id: int,
    data: WorkHourUpdate,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_EDIT)),
    db: AsyncSession = Depends(get_db),
):
    work_hour = await work_hour_service.update_work_hour(
        db, work_hour_id, data.name, data.end_time, data.status, data.comment
    )
    return WorkHourResponse.model_validate(work_hour)


@router.delete("/{work_hour_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_endpoint_errors(operation_name="delete_work_hour")
async def delete_work_hour_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    await work_hour_service.delete_work_hour(db, work_hour_id)


@router.get("/{work_hour_id}/statistics", response_model=StatisticsResponse)
@handle_endpoint_errors(operation_name="get_work_hour_statistics")
async def get_statistics_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_STATISTICS)),
    db: AsyncSession = Depends(get_db),
):
    """Per-department record count and hours for a campaign."""
    rows = await statistics_service.statistics(db, work_hour_id)
    return StatisticsResponse(
        work_hour_id=work_hour_id,
        rows=[StatisticsItem(**row) for row in rows],
    )


# Records

@router.get("/{work_hour_id}/records", response_model=WorkHourRecordListResponse)
@handle_endpoint_errors(operation_name="get_finance_records")
async def get_finance_records_endpoint(
    work_hour_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_GENERATE_TABLE)),
    db: AsyncSession = Depends(get_db),
):
    """Records that have passed department approval."""
    await work_hour_service.require_work_hour(db, work_hour_id)
    records, total = await work_hour_service.get_finance_record_list(db, work_hour_id, page, page_size)
    rows = await work_hour_service.enrich_records(db, records)
    return WorkHourRecordListResponse(rows=[WorkHourRecordResponse(**r) for r in rows], count=total)


@router.get("/{work_hour_id}/records/department", response_model=WorkHourRecordListResponse)
@handle_endpoint_errors(operation_name="get_department_records")
async def get_department_records_endpoint(
    work_hour_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_CHECK_DEPARTMENT)),
    db: AsyncSession = Depends(get_db),
):
    """Submitted records from the caller's own department."""
    await work_hour_service.require_work_hour(db, work_hour_id)
    records, total = await work_hour_service.get_department_record_list(
        db, work_hour_id, actor.department_id, page, page_size
    )
    rows = await work_hour_service.enrich_records(db, records)
    return WorkHourRecordListResponse(rows=[WorkHourRecordResponse(**r) for r in rows], count=total)


@router.get("/{work_hour_id}/records/my", response_model=WorkHourRecordResponse)
@handle_endpoint_errors(operation_name="get_my_record")
async def get_my_record_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    await work_hour_service.require_work_hour(db, work_hour_id)
    record = await work_hour_service.get_record(db, work_hour_id, actor.user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No record submitted yet")
    return await _record_response(db, record)


@router.put("/{work_hour_id}/records/my", response_model=SubmitWorkHourRecordResponse)
@handle_endpoint_errors(operation_name="submit_work_hour_record")
async def submit_record_endpoint(
    work_hour_id: int,
    data: SubmitWorkHourRecord,
    actor: Actor = Depends(require_permission(Perms.WORK_HOURS_QUERY)),
    db: AsyncSession = Depends(get_db),
):
    """Submit, or resubmit after a return, the caller's declaration."""
    work_descs = [desc.model_dump() for desc in data.work_descs]
    record_id = await workflow_service.submit(db, work_hour_id, actor.user_id, work_descs)
    return SubmitWorkHourRecordResponse(id=record_id, status=WorkHourRecordStatus.PENDING_APPROVAL)


@router.put("/{work_hour_id}/records/table", response_model=BulkTransitionResponse)
@handle_endpoint_errors(operation_name="save_work_hour_table")
async def save_table_endpoint(
    work_hour_id: int,
    data: SaveWorkHourTable,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Replace the inclusion lists of several records awaiting finance."""
    await work_hour_service.require_work_hour(db, work_hour_id)
    updated = await workflow_service.save_table(
        db,
        [(item.id, [inc.model_dump() for inc in item.includes]) for item in data.data],
        actor,
        work_hour_id=work_hour_id,
    )
    return BulkTransitionResponse(updated=updated)


@router.post("/{work_hour_id}/records/accept-all", response_model=BulkTransitionResponse)
@handle_endpoint_errors(operation_name="accept_all_records")
async def accept_all_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    updated = await workflow_service.accept_all(db, work_hour_id, actor)
    return BulkTransitionResponse(updated=updated)


@router.post("/{work_hour_id}/records/close-all", response_model=BulkTransitionResponse)
@handle_endpoint_errors(operation_name="close_all_records")
async def close_all_endpoint(
    work_hour_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    updated = await workflow_service.close_all(db, work_hour_id, actor)
    return BulkTransitionResponse(updated=updated)


@router.put("/{work_hour_id}/records/{user_id}/status", response_model=WorkHourRecordResponse)
@handle_endpoint_errors(operation_name="update_record_status")
async def update_record_status_endpoint(
    work_hour_id: int,
    user_id: int,
    data: WorkHourRecordStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Approve, return or close one user's record."""
    await work_hour_service.require_work_hour(db, work_hour_id)
    record = await work_hour_service.get_record(db, work_hour_id, user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    record = await workflow_service.transition(db, record, data.status, actor, data.comment)
    return await _record_response(db, record)
