"""Re-derive refund_amount for refundable leave records after fee configuration changes."""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.core.models import FeeConfig, LeaveRecord, Student

from .refund import compute_refund
from .schemas import RecalculationResult


logger = logging.getLogger(__name__)


async def recalculate_refunds(db: AsyncSession) -> RecalculationResult:
    """
    Recompute every is_refund record from the current fee config of (student's class, semester).

    Only records whose amount actually changes are written, each in its own commit, so a
    second run over unchanged config updates nothing and an interrupted run leaves no record
    half-applied. A record whose student has since been flagged nutrition-meal stops being
    refundable.
    """
    rows = (
        await db.execute(
            select(LeaveRecord.id, LeaveRecord.leave_days, LeaveRecord.refund_amount,
                   Student.is_nutrition_meal, FeeConfig.meal_fee_standard)
            .join(Student, LeaveRecord.student_id == Student.id)
            .outerjoin(
                FeeConfig,
                and_(
                    FeeConfig.class_id == Student.class_id,
                    FeeConfig.semester_id == LeaveRecord.semester_id,
                ),
            )
            .where(LeaveRecord.is_refund.is_(True))
            .order_by(LeaveRecord.id)
        )
    ).all()

    updated = 0
    total_change = Decimal("0")
    for leave_id, leave_days, old_amount, is_nutrition_meal, fee_standard in rows:
        new_amount = compute_refund(leave_days, fee_standard, is_nutrition_meal)
        if old_amount is not None and new_amount is not None and Decimal(str(old_amount)) == new_amount:
            continue
        record = await db.get(LeaveRecord, leave_id)
        if record is None:
            continue
        record.refund_amount = new_amount
        record.is_refund = new_amount is not None
        record.updated_at = datetime.utcnow()
        await db.commit()
        updated += 1
        total_change += (new_amount or Decimal("0")) - Decimal(str(old_amount or 0))
        logger.debug("Leave %s refund %s -> %s", leave_id, old_amount, new_amount)

    logger.info("Refund recalculation checked %d records, updated %d (net change %s)", len(rows), updated, total_change)
    return RecalculationResult(updated=updated, message=f"Updated refund amount on {updated} leave records")
