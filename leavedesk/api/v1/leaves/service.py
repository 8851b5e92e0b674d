"""Leave lifecycle: create, review, revoke, update, delete, with audit entries and refund derivation."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.api.v1.system_config.service import ConfigProvider
from leavedesk.core.enums import LeaveAuditAction, LeaveStatus, ReviewDecision
from leavedesk.core.exceptions import (
    AlreadyPending,
    AlreadyReviewed,
    ApprovedImmutable,
    ApprovedRecordsProtected,
    RecordNotFound,
)
from leavedesk.core.models import LeaveAuditLog, LeaveRecord

from .refund import refund_fields
from .resolver import get_fee_standard, get_semester, get_student
from .rules import validate_leave
from .schemas import LeaveEdit, LeaveInput, LeaveRecordResponse, LeaveRestatus, LeaveStatsResponse


logger = logging.getLogger(__name__)


def _record_to_response(r: LeaveRecord) -> LeaveRecordResponse:
    return LeaveRecordResponse.model_validate(r)


async def _log_leave_audit(
    db: AsyncSession,
    leave_record_id: int,
    action: LeaveAuditAction,
    performed_by: Optional[int],
    remarks: Optional[str] = None,
) -> None:
    db.add(
        LeaveAuditLog(
            leave_record_id=leave_record_id,
            action=action.value,
            performed_by=performed_by,
            remarks=remarks,
        )
    )


async def _load_record(db: AsyncSession, leave_id: int) -> LeaveRecord:
    record = await db.get(LeaveRecord, leave_id)
    if not record:
        raise RecordNotFound()
    return record


async def _validated_refund(
    db: AsyncSession,
    config: ConfigProvider,
    payload: LeaveInput,
    exclude_id: Optional[int] = None,
    today: Optional[date] = None,
):
    """Validate payload against the current thresholds and return (is_refund, refund_amount)."""
    student = await get_student(db, payload.student_id)
    semester = await get_semester(db, payload.semester_id)
    await validate_leave(
        db,
        payload,
        semester,
        min_days=await config.min_leave_days(),
        exclude_id=exclude_id,
        retroactive_days=await config.retroactive_days(),
        today=today,
    )
    fee_standard = await get_fee_standard(db, student.class_id, payload.semester_id)
    return refund_fields(payload.leave_days, fee_standard, student.is_nutrition_meal)


async def get_leave(db: AsyncSession, leave_id: int) -> LeaveRecordResponse:
    return _record_to_response(await _load_record(db, leave_id))


async def build_leave(
    db: AsyncSession,
    config: ConfigProvider,
    payload: LeaveInput,
    applicant_id: int,
    today: Optional[date] = None,
) -> LeaveRecord:
    """Validate and build a new, unsaved LeaveRecord with refund and initial status filled in."""
    is_refund, refund_amount = await _validated_refund(db, config, payload, today=today)
    record = LeaveRecord(
        student_id=payload.student_id,
        semester_id=payload.semester_id,
        applicant_id=applicant_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        leave_days=payload.leave_days,
        reason=payload.reason.strip(),
        status=LeaveStatus.pending.value,
        is_refund=is_refund,
        refund_amount=refund_amount,
    )
    if not await config.approval_required():
        record.status = LeaveStatus.approved.value
        record.reviewer_id = applicant_id
        record.review_time = datetime.utcnow()
    return record


async def create_leave(
    db: AsyncSession,
    config: ConfigProvider,
    payload: LeaveInput,
    applicant_id: int,
    today: Optional[date] = None,
) -> LeaveRecordResponse:
    """Create a leave record. Approved immediately (reviewer = applicant) when approval is not required."""
    record = await build_leave(db, config, payload, applicant_id, today=today)
    db.add(record)
    await db.flush()
    await _log_leave_audit(db, record.id, LeaveAuditAction.CREATED, applicant_id)
    await db.commit()
    await db.refresh(record)
    logger.info(
        "Leave %s created for student %s by %s (status=%s, refund=%s)",
        record.id, record.student_id, applicant_id, record.status, record.refund_amount,
    )
    return _record_to_response(record)


async def review_leave(
    db: AsyncSession,
    leave_id: int,
    decision: ReviewDecision,
    reviewer_id: int,
    remark: Optional[str] = None,
) -> LeaveRecordResponse:
    record = await _load_record(db, leave_id)
    if record.status != LeaveStatus.pending.value:
        raise AlreadyReviewed()

    record.status = decision.value
    record.reviewer_id = reviewer_id
    record.review_time = datetime.utcnow()
    record.review_remark = remark or None
    action = LeaveAuditAction.APPROVED if decision == ReviewDecision.approved else LeaveAuditAction.REJECTED
    await _log_leave_audit(db, record.id, action, reviewer_id, remarks=remark)
    await db.commit()
    await db.refresh(record)
    logger.info("Leave %s %s by %s", record.id, record.status, reviewer_id)
    return _record_to_response(record)


async def revoke_leave(db: AsyncSession, leave_id: int, actor_id: int) -> LeaveRecordResponse:
    """Send a reviewed record back to pending. Prior review metadata is discarded, not resumed."""
    record = await _load_record(db, leave_id)
    if record.status == LeaveStatus.pending.value:
        raise AlreadyPending()

    previous = record.status
    record.status = LeaveStatus.pending.value
    record.clear_review()
    await _log_leave_audit(db, record.id, LeaveAuditAction.REVOKED, actor_id, remarks=f"was {previous}")
    await db.commit()
    await db.refresh(record)
    logger.info("Leave %s revoked from %s by %s", record.id, previous, actor_id)
    return _record_to_response(record)


async def update_leave(
    db: AsyncSession,
    config: ConfigProvider,
    leave_id: int,
    request: Union[LeaveEdit, LeaveRestatus],
    actor_id: Optional[int] = None,
    today: Optional[date] = None,
) -> LeaveRecordResponse:
    """
    Edit a record in place. A plain edit is refused for approved records; a restatus edit
    is allowed from any state and clears reviewer metadata. Both revalidate every rule
    (ignoring the record's own dates) and recompute the refund from current fee config.
    """
    record = await _load_record(db, leave_id)
    restatus = isinstance(request, LeaveRestatus)
    if record.status == LeaveStatus.approved.value and not restatus:
        raise ApprovedImmutable()

    is_refund, refund_amount = await _validated_refund(db, config, request, exclude_id=record.id, today=today)

    record.student_id = request.student_id
    record.semester_id = request.semester_id
    record.start_date = request.start_date
    record.end_date = request.end_date
    record.leave_days = request.leave_days
    record.reason = request.reason.strip()
    record.is_refund = is_refund
    record.refund_amount = refund_amount
    if restatus:
        record.status = request.status.value
        record.clear_review()
        await _log_leave_audit(db, record.id, LeaveAuditAction.RESTATUSED, actor_id, remarks=f"status={record.status}")
    else:
        await _log_leave_audit(db, record.id, LeaveAuditAction.UPDATED, actor_id)
    await db.commit()
    await db.refresh(record)
    logger.info("Leave %s updated by %s (status=%s)", record.id, actor_id, record.status)
    return _record_to_response(record)


async def delete_leave(db: AsyncSession, leave_id: int, actor_id: Optional[int] = None) -> None:
    record = await _load_record(db, leave_id)
    if record.status == LeaveStatus.approved.value:
        raise ApprovedRecordsProtected()

    await _log_leave_audit(db, record.id, LeaveAuditAction.DELETED, actor_id, remarks=f"status={record.status}")
    await db.delete(record)
    await db.commit()
    logger.info("Leave %s deleted by %s", leave_id, actor_id)


async def leave_stats(db: AsyncSession, semester_id: Optional[int] = None) -> LeaveStatsResponse:
    """Counts per status and the refund total over approved records."""
    q = select(
        func.count(LeaveRecord.id),
        func.sum(case((LeaveRecord.status == LeaveStatus.pending.value, 1), else_=0)),
        func.sum(case((LeaveRecord.status == LeaveStatus.approved.value, 1), else_=0)),
        func.sum(case((LeaveRecord.status == LeaveStatus.rejected.value, 1), else_=0)),
        func.sum(case((LeaveRecord.status == LeaveStatus.approved.value, LeaveRecord.refund_amount), else_=0)),
    )
    if semester_id is not None:
        q = q.where(LeaveRecord.semester_id == semester_id)
    total, pending, approved, rejected, refund_total = (await db.execute(q)).one()
    return LeaveStatsResponse(
        total=total or 0,
        pending=pending or 0,
        approved=approved or 0,
        rejected=rejected or 0,
        total_refund_amount=Decimal(str(refund_total or 0)).quantize(Decimal("0.01")),
    )
