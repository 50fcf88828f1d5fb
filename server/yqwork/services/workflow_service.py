"""
Approval workflow for work-hour records.

A record moves Unsubmitted -> PendingApproval -> PendingFinance ->
PendingDistribution -> Closed. Department heads approve or return records
of their own department, finance approves, returns, writes the inclusion
table and marks records distributed. Every write is validated completely
before anything is stored, and each operation commits or rolls back as one
transaction.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from yqwork.core.error_handling import rollback_and_raise
from yqwork.core.exceptions import IllegalTransition, NotFound, PermissionDenied
from yqwork.core.permissions import Actor, Perms
from yqwork.models.audit_log import AuditLog
from yqwork.models.user import User
from yqwork.models.work_hour import WorkHourRecord, WorkHourRecordStatus
from yqwork.services import work_hour_service

logger = logging.getLogger(__name__)

S = WorkHourRecordStatus

SUBMIT = "submit"
APPROVE = "approve"
REJECT = "reject"
CLOSE = "close"


@dataclass(frozen=True)
class TransitionRule:
    kind: str
    permission: Optional[str] = None
    same_department: bool = False
    owner_only: bool = False


TRANSITIONS: Dict[Tuple[WorkHourRecordStatus, WorkHourRecordStatus], TransitionRule] = {
    (S.UNSUBMITTED, S.PENDING_APPROVAL): TransitionRule(SUBMIT, owner_only=True),
    (S.PENDING_APPROVAL, S.PENDING_FINANCE): TransitionRule(
        APPROVE, permission=Perms.WORK_HOURS_CHECK_DEPARTMENT, same_department=True
    ),
    (S.PENDING_APPROVAL, S.UNSUBMITTED): TransitionRule(
        REJECT, permission=Perms.WORK_HOURS_CHECK_DEPARTMENT, same_department=True
    ),
    (S.PENDING_FINANCE, S.PENDING_DISTRIBUTION): TransitionRule(APPROVE, permission=Perms.WORK_HOURS_GENERATE_TABLE),
    (S.PENDING_FINANCE, S.UNSUBMITTED): TransitionRule(REJECT, permission=Perms.WORK_HOURS_GENERATE_TABLE),
    (S.PENDING_DISTRIBUTION, S.CLOSED): TransitionRule(CLOSE, permission=Perms.WORK_HOURS_GENERATE_TABLE),
}


def rule_for(source: WorkHourRecordStatus, target: WorkHourRecordStatus) -> TransitionRule:
    rule = TRANSITIONS.get((source, target))
    if rule is None:
        raise IllegalTransition(f"Cannot move a record from {source.name} to {target.name}")
    return rule


def _clean_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    comment = comment.strip()
    return comment or None


def normalize_work_descs(work_descs: Iterable[Dict]) -> List[Dict]:
    descs = []
    for data in work_descs or []:
        desc = str(data.get("desc") or "").strip()
        hour = data.get("hour")
        if not desc:
            raise IllegalTransition("Work description must not be empty")
        if not isinstance(hour, int) or isinstance(hour, bool) or hour < 0:
            raise IllegalTransition("Work hours must be a non-negative integer")
        descs.append({"desc": desc, "hour": hour})
    if not descs:
        raise IllegalTransition("At least one work description is required")
    return descs


def normalize_includes(includes: Iterable[Dict]) -> List[Dict]:
    result = []
    for data in includes or []:
        record_id = data.get("record_id")
        hour = data.get("hour")
        if not isinstance(record_id, int) or isinstance(record_id, bool):
            raise IllegalTransition("Included record id must be an integer")
        if not isinstance(hour, int) or isinstance(hour, bool) or hour < 0:
            raise IllegalTransition("Included hours must be a non-negative integer")
        result.append({"record_id": record_id, "hour": hour})
    return result


def _audit(db: AsyncSession, actor_user_id: int, action: str, record_id: int, **metadata) -> None:
    db.add(AuditLog(
        actor_user_id=actor_user_id,
        action=action,
        entity_type="work_hour_record",
        entity_id=record_id,
        metadata_json=metadata,
    ))


def _require(actor: Actor, permission: str) -> None:
    if not actor.has(permission):
        logger.warning(f"User {actor.user_id} denied: missing {permission}")
        raise PermissionDenied(f"Missing permission {permission}")


async def _authorize(db: AsyncSession, rule: TransitionRule, record: WorkHourRecord, actor: Actor) -> None:
    if rule.owner_only and record.user_id != actor.user_id:
        raise PermissionDenied("Only the owner can submit this record")
    if rule.permission:
        _require(actor, rule.permission)
    if rule.same_department:
        owner = await db.get(User, record.user_id)
        if owner is None:
            raise NotFound(f"User {record.user_id} not found")
        if owner.department_id != actor.department_id:
            logger.warning(
                f"User {actor.user_id} denied: record {record.id} belongs to department {owner.department_id}"
            )
            raise PermissionDenied("Record belongs to another department")


async def submit(db: AsyncSession, work_hour_id: int, user_id: int, work_descs: Sequence[Dict]) -> int:
    """
    Create or resubmit the user's declaration for a campaign.

    The record lands in PendingApproval with inclusions and comment cleared.
    A record already past Unsubmitted is never overwritten.
    """
    descs = normalize_work_descs(work_descs)
    await work_hour_service.require_work_hour(db, work_hour_id)
    user = await db.get(User, user_id)
    if user is None or user.deleted_at is not None:
        raise NotFound(f"User {user_id} not found")

    try:
        record_id = await work_hour_service.upsert_submission(db, work_hour_id, user_id, descs)
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "submit", e)
    if record_id is None:
        # The conflicting row was left untouched, nothing to undo
        raise IllegalTransition("Record was already submitted; it can only be resubmitted after being returned")

    try:
        _audit(db, user_id, "work_hour_record.submit", record_id, work_hour_id=work_hour_id)
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "submit", e)
    logger.info(f"User {user_id} submitted record {record_id} for campaign {work_hour_id}")
    return record_id


async def transition(
    db: AsyncSession,
    record: WorkHourRecord,
    target: WorkHourRecordStatus,
    actor: Actor,
    comment: Optional[str] = None,
) -> WorkHourRecord:
    """
    Move a record to ``target`` on behalf of ``actor``.

    Checked in order: the transition is in the table, the comment suits the
    kind of transition (required when returning, refused otherwise), then
    the actor's permission and department. Approve and close clear the
    comment; work descriptions and inclusions are carried over.
    """
    source = record.status
    rule = rule_for(source, target)
    comment = _clean_comment(comment)
    if rule.kind == REJECT and comment is None:
        raise IllegalTransition("A comment is required when returning a record")
    if rule.kind != REJECT and comment is not None:
        raise IllegalTransition("Only returning a record takes a comment")
    if rule.kind == SUBMIT and not record.work_descs:
        raise IllegalTransition("Cannot submit a record without work descriptions")

    await _authorize(db, rule, record, actor)

    try:
        changed = await work_hour_service.update_record_status(db, record.id, source, target, comment)
        if not changed:
            raise IllegalTransition(f"Record {record.id} is no longer {source.name}")
        _audit(
            db, actor.user_id, f"work_hour_record.{rule.kind}", record.id,
            from_status=int(source), to_status=int(target), comment=comment,
        )
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "transition", e)

    if record in db:
        await db.refresh(record)
    logger.info(f"User {actor.user_id} moved record {record.id} {source.name} -> {target.name}")
    return record


async def save_table(
    db: AsyncSession,
    items: Sequence[Tuple[int, Sequence[Dict]]],
    actor: Actor,
    work_hour_id: Optional[int] = None,
) -> int:
    """
    Replace the inclusion lists of several PendingFinance records at once.

    ``items`` pairs a record id with its full inclusion list. Each included
    record must exist in the same campaign. When ``work_hour_id`` is given,
    every target record must belong to that campaign. Nothing is written
    unless every item is valid. Returns the number of records written.
    """
    _require(actor, Perms.WORK_HOURS_GENERATE_TABLE)

    prepared: List[Tuple[int, List[Dict]]] = []
    seen = set()
    for record_id, includes in items:
        if record_id in seen:
            raise IllegalTransition(f"Record {record_id} is listed more than once")
        seen.add(record_id)
        prepared.append((record_id, normalize_includes(includes)))

    targets = await work_hour_service.get_records_by_ids(db, seen)
    missing = seen - set(targets)
    if missing:
        raise NotFound(f"Records not found: {sorted(missing)}")
    if work_hour_id is not None:
        outside = sorted(r.id for r in targets.values() if r.work_hour_id != work_hour_id)
        if outside:
            raise NotFound(f"Records not found in campaign {work_hour_id}: {outside}")

    referenced = {inc["record_id"] for _, includes in prepared for inc in includes}
    sources = await work_hour_service.get_records_by_ids(db, referenced)
    missing = referenced - set(sources)
    if missing:
        raise NotFound(f"Included records not found: {sorted(missing)}")

    for record_id, includes in prepared:
        target = targets[record_id]
        if target.status != S.PENDING_FINANCE:
            raise IllegalTransition(f"Record {record_id} is not awaiting finance")
        for inc in includes:
            source = sources[inc["record_id"]]
            if source.id == record_id:
                raise IllegalTransition(f"Record {record_id} cannot include itself")
            if source.work_hour_id != target.work_hour_id:
                raise IllegalTransition(f"Record {source.id} belongs to another campaign")

    try:
        for record_id, includes in prepared:
            written = await work_hour_service.update_record_includes(db, record_id, includes, S.PENDING_FINANCE)
            if not written:
                await db.rollback()
                raise IllegalTransition(f"Record {record_id} is no longer awaiting finance")
            _audit(
                db, actor.user_id, "work_hour_record.save_table", record_id,
                included=[inc["record_id"] for inc in includes],
            )
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, "save_table", e)

    for target in targets.values():
        if target in db:
            await db.refresh(target)
    logger.info(f"User {actor.user_id} saved inclusion table for {len(prepared)} records")
    return len(prepared)


async def save_inclusions(db: AsyncSession, record_id: int, includes: Sequence[Dict], actor: Actor) -> int:
    """Replace one record's inclusion list."""
    return await save_table(db, [(record_id, includes)], actor)


async def _bulk_transition(
    db: AsyncSession,
    work_hour_id: int,
    actor: Actor,
    source: WorkHourRecordStatus,
    target: WorkHourRecordStatus,
) -> int:
    rule = rule_for(source, target)
    await work_hour_service.require_work_hour(db, work_hour_id)
    if rule.permission:
        _require(actor, rule.permission)

    records = await work_hour_service.list_records_by_status(db, work_hour_id, source)
    if not records:
        return 0

    try:
        for record in records:
            changed = await work_hour_service.update_record_status(db, record.id, source, target, None)
            if not changed:
                await db.rollback()
                raise IllegalTransition(f"Record {record.id} changed while the batch was running")
            _audit(
                db, actor.user_id, f"work_hour_record.{rule.kind}", record.id,
                from_status=int(source), to_status=int(target), bulk=True,
            )
        await db.commit()
    except SQLAlchemyError as e:
        await rollback_and_raise(db, f"{rule.kind}_all", e)

    for record in records:
        if record in db:
            await db.refresh(record)
    logger.info(
        f"User {actor.user_id} moved {len(records)} records of campaign {work_hour_id} "
        f"{source.name} -> {target.name}"
    )
    return len(records)


async def accept_all(db: AsyncSession, work_hour_id: int, actor: Actor) -> int:
    """Approve every PendingFinance record of the campaign. Returns the count moved."""
    return await _bulk_transition(db, work_hour_id, actor, S.PENDING_FINANCE, S.PENDING_DISTRIBUTION)


async def close_all(db: AsyncSession, work_hour_id: int, actor: Actor) -> int:
    """Close every PendingDistribution record of the campaign. Returns the count moved."""
    return await _bulk_transition(db, work_hour_id, actor, S.PENDING_DISTRIBUTION, S.CLOSED)
