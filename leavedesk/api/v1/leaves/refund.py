"""Meal refund math. Pure functions; callers load the fee standard and student flag."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

CENT = Decimal("0.01")


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def compute_refund(leave_days: int, fee_standard, is_nutrition_meal: bool) -> Optional[Decimal]:
    """
    Refund for a leave record: leave_days * daily meal fee, rounded to cents.

    Nutrition-meal students are never refunded (None). A missing fee standard means the
    class has no fee config for the semester yet and yields 0.00, not an error.
    """
    if is_nutrition_meal:
        return None
    amount = Decimal(leave_days) * _to_decimal(fee_standard)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def refund_fields(leave_days: int, fee_standard, is_nutrition_meal: bool) -> Tuple[bool, Optional[Decimal]]:
    """(is_refund, refund_amount) for a record; refund_amount is non-null iff is_refund."""
    amount = compute_refund(leave_days, fee_standard, is_nutrition_meal)
    return amount is not None, amount
