"""
Admissibility rules for a single leave record.

check_leave_rules() is a pure function of the input, the semester's school days and the
minimum-days threshold. validate_leave() adds the checks that need storage (overlap with
the student's other records) and the optional retroactive-start limit.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.core.exceptions import (
    BelowMinimum,
    DateOverlap,
    ExceedsNaturalSpan,
    ExceedsSemesterCap,
    InvalidRange,
    RetroactiveLimitExceeded,
)
from leavedesk.core.models import LeaveRecord, Semester

from .schemas import LeaveInput

OVERLAP_DETAIL_LIMIT = 3


def natural_span(start: date, end: date) -> int:
    """Inclusive calendar-day count between start and end."""
    return (end - start).days + 1


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive ranges overlap unless one ends strictly before the other starts."""
    return not (a_end < b_start or b_end < a_start)


def _overlap_query(
    student_id: int,
    semester_id: int,
    start: date,
    end: date,
    exclude_id: Optional[int] = None,
):
    q = select(LeaveRecord).where(
        LeaveRecord.student_id == student_id,
        LeaveRecord.semester_id == semester_id,
        LeaveRecord.start_date <= end,
        LeaveRecord.end_date >= start,
    )
    if exclude_id is not None:
        q = q.where(LeaveRecord.id != exclude_id)
    return q


async def has_overlap(
    db: AsyncSession,
    student_id: int,
    semester_id: int,
    start: date,
    end: date,
    exclude_id: Optional[int] = None,
) -> bool:
    """True if any other record of the student in the semester shares at least one day with [start, end]."""
    q = _overlap_query(student_id, semester_id, start, end, exclude_id).with_only_columns(LeaveRecord.id).limit(1)
    return (await db.execute(q)).scalar_one_or_none() is not None


async def find_overlapping(
    db: AsyncSession,
    student_id: int,
    semester_id: int,
    start: date,
    end: date,
    exclude_id: Optional[int] = None,
    limit: int = OVERLAP_DETAIL_LIMIT,
) -> List[LeaveRecord]:
    q = _overlap_query(student_id, semester_id, start, end, exclude_id).order_by(LeaveRecord.start_date).limit(limit)
    return list((await db.execute(q)).scalars().all())


def check_leave_rules(payload: LeaveInput, school_days: int, min_days: int) -> None:
    """Checks 1-4, first failure wins."""
    if payload.end_date < payload.start_date:
        raise InvalidRange()
    if payload.leave_days <= min_days:
        raise BelowMinimum(min_days)
    if payload.leave_days > school_days:
        raise ExceedsSemesterCap(school_days)
    span = natural_span(payload.start_date, payload.end_date)
    if payload.leave_days > span:
        raise ExceedsNaturalSpan(span)


def check_retroactive_limit(start: date, max_days: Optional[int], today: Optional[date] = None) -> None:
    """max_days None means unlimited; 0 forbids any start date before today."""
    if max_days is None:
        return
    today = today or date.today()
    days_back = (today - start).days
    if days_back > 0 and days_back > max_days:
        raise RetroactiveLimitExceeded(max_days)


async def validate_leave(
    db: AsyncSession,
    payload: LeaveInput,
    semester: Semester,
    min_days: int,
    exclude_id: Optional[int] = None,
    retroactive_days: Optional[int] = None,
    today: Optional[date] = None,
) -> None:
    """Run every admissibility rule for payload; raises the first LeaveValidationError found."""
    check_leave_rules(payload, semester.school_days, min_days)
    if await has_overlap(
        db, payload.student_id, payload.semester_id, payload.start_date, payload.end_date, exclude_id
    ):
        conflicts = await find_overlapping(
            db, payload.student_id, payload.semester_id, payload.start_date, payload.end_date, exclude_id
        )
        details = "; ".join(f"{r.start_date} to {r.end_date} ({r.status})" for r in conflicts)
        raise DateOverlap(details)
    check_retroactive_limit(payload.start_date, retroactive_days, today)
