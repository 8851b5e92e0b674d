from datetime import date
from decimal import Decimal

import pytest

from leavedesk.api.v1.leaves.refund import compute_refund, refund_fields
from leavedesk.api.v1.leaves.rules import (
    check_leave_rules,
    check_retroactive_limit,
    natural_span,
    ranges_overlap,
)
from leavedesk.api.v1.leaves.schemas import LeaveInput
from leavedesk.core.exceptions import (
    BelowMinimum,
    ExceedsNaturalSpan,
    ExceedsSemesterCap,
    InvalidRange,
    RetroactiveLimitExceeded,
)


def _leave(start: date, end: date, leave_days: int) -> LeaveInput:
    return LeaveInput(
        student_id=1,
        semester_id=1,
        start_date=start,
        end_date=end,
        leave_days=leave_days,
        reason="Family trip",
    )


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((date(2025, 3, 3), date(2025, 3, 7)), (date(2025, 3, 5), date(2025, 3, 10)), True),
        ((date(2025, 3, 3), date(2025, 3, 7)), (date(2025, 3, 7), date(2025, 3, 10)), True),
        ((date(2025, 3, 3), date(2025, 3, 7)), (date(2025, 3, 8), date(2025, 3, 10)), False),
        ((date(2025, 3, 3), date(2025, 3, 31)), (date(2025, 3, 10), date(2025, 3, 12)), True),
        ((date(2025, 3, 3), date(2025, 3, 3)), (date(2025, 3, 3), date(2025, 3, 3)), True),
    ],
)
def test_ranges_overlap_is_symmetric(a, b, expected) -> None:
    assert ranges_overlap(*a, *b) is expected
    assert ranges_overlap(*b, *a) is expected


def test_natural_span_is_inclusive() -> None:
    assert natural_span(date(2025, 3, 3), date(2025, 3, 7)) == 5
    assert natural_span(date(2025, 3, 3), date(2025, 3, 3)) == 1


def test_below_minimum_is_strict() -> None:
    with pytest.raises(BelowMinimum) as exc:
        check_leave_rules(_leave(date(2025, 3, 3), date(2025, 3, 7), 3), school_days=120, min_days=3)
    assert exc.value.threshold == 3
    assert exc.value.to_detail()["code"] == "below_minimum"

    check_leave_rules(_leave(date(2025, 3, 3), date(2025, 3, 7), 4), school_days=120, min_days=3)


def test_natural_span_boundary() -> None:
    check_leave_rules(_leave(date(2025, 3, 3), date(2025, 3, 7), 5), school_days=120, min_days=3)

    with pytest.raises(ExceedsNaturalSpan) as exc:
        check_leave_rules(_leave(date(2025, 3, 3), date(2025, 3, 7), 6), school_days=120, min_days=3)
    assert exc.value.span == 5


def test_semester_cap_boundary() -> None:
    check_leave_rules(_leave(date(2025, 3, 1), date(2025, 3, 31), 20), school_days=20, min_days=3)

    with pytest.raises(ExceedsSemesterCap) as exc:
        check_leave_rules(_leave(date(2025, 3, 1), date(2025, 3, 31), 21), school_days=20, min_days=3)
    assert exc.value.threshold == 20


def test_invalid_range_is_checked_first() -> None:
    # Would also fail the minimum-days rule
    with pytest.raises(InvalidRange):
        check_leave_rules(_leave(date(2025, 3, 7), date(2025, 3, 3), 1), school_days=120, min_days=3)


def test_semester_cap_is_checked_before_natural_span() -> None:
    with pytest.raises(ExceedsSemesterCap):
        check_leave_rules(_leave(date(2025, 3, 3), date(2025, 3, 5), 200), school_days=120, min_days=3)


def test_retroactive_limit() -> None:
    today = date(2025, 3, 10)
    check_retroactive_limit(date(2025, 3, 1), None, today=today)
    check_retroactive_limit(date(2025, 3, 1), 9, today=today)
    check_retroactive_limit(date(2025, 3, 12), 0, today=today)
    check_retroactive_limit(today, 0, today=today)

    with pytest.raises(RetroactiveLimitExceeded) as exc:
        check_retroactive_limit(date(2025, 3, 1), 8, today=today)
    assert exc.value.threshold == 8

    with pytest.raises(RetroactiveLimitExceeded):
        check_retroactive_limit(date(2025, 3, 9), 0, today=today)


def test_compute_refund_rounds_to_cents() -> None:
    assert compute_refund(5, Decimal("15.00"), False) == Decimal("75.00")
    assert compute_refund(3, Decimal("12.345"), False) == Decimal("37.04")
    assert compute_refund(4, "10.5", False) == Decimal("42.00")


def test_compute_refund_is_deterministic() -> None:
    results = {compute_refund(7, Decimal("13.33"), False) for _ in range(5)}
    assert results == {Decimal("93.31")}


def test_missing_fee_standard_refunds_zero() -> None:
    assert compute_refund(5, None, False) == Decimal("0.00")
    assert refund_fields(5, None, False) == (True, Decimal("0.00"))


def test_nutrition_meal_students_are_never_refunded() -> None:
    assert compute_refund(5, Decimal("15.00"), True) is None
    assert refund_fields(5, Decimal("15.00"), True) == (False, None)
