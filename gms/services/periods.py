"""Membership period, end date and status calculations."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR
from typing import NamedTuple

from dateutil.relativedelta import relativedelta

from gms.models import MembershipStatus

DAYS_PER_MONTH = 30
_CENTS = Decimal("0.01")


class MembershipTerm(NamedTuple):
    """Length of a paid membership.

    Exactly one of ``months`` and ``days`` is non-zero, except for payments
    too small to buy a single day, where both are zero.
    """

    months: int
    days: int
    label: str
    end_date: date


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def calculate_membership(payment, start_date: date, monthly_price) -> MembershipTerm:
    """Work out the period label and end date for a payment.

    ``months = payment / monthly_price`` rounded half-up to two places.
    Below one month the fraction becomes ``floor(months * 30)`` days;
    otherwise the whole months are used with calendar month arithmetic.
    """
    payment = Decimal(str(payment))
    monthly_price = Decimal(str(monthly_price))
    if monthly_price <= 0:
        raise ValueError("monthly_price must be greater than zero")
    if payment < 0:
        raise ValueError("payment must not be negative")

    quotient = (payment / monthly_price).quantize(_CENTS, rounding=ROUND_HALF_UP)

    try:
        if quotient < 1:
            days = int((quotient * DAYS_PER_MONTH).to_integral_value(rounding=ROUND_FLOOR))
            return MembershipTerm(0, days, _plural(days, "day"), start_date + timedelta(days=days))

        months = int(quotient.to_integral_value(rounding=ROUND_FLOOR))
        return MembershipTerm(months, 0, _plural(months, "month"), start_date + relativedelta(months=months))
    except (OverflowError, ValueError) as e:
        raise ValueError(f"membership end date is out of range: {e}") from e


def membership_status(end_date: date | None, is_active: bool, today: date | None = None) -> MembershipStatus:
    today = today or date.today()
    if not is_active:
        return MembershipStatus.INACTIVE
    if end_date is None or end_date < today:
        return MembershipStatus.EXPIRED
    return MembershipStatus.ACTIVE


def days_remaining(end_date: date | None, today: date | None = None) -> int:
    """Days until ``end_date``; negative once it has passed."""
    if end_date is None:
        return 0
    today = today or date.today()
    return (end_date - today).days


def is_expiring_soon(end_date: date | None, today: date | None = None, threshold_days: int = 7) -> bool:
    today = today or date.today()
    if end_date is None or end_date < today:
        return False
    return days_remaining(end_date, today) <= threshold_days


def format_period_with_dates(term: MembershipTerm, start_date: date) -> str:
    return f"{term.label} ({start_date.isoformat()} to {term.end_date.isoformat()})"


__all__ = [
    "MembershipTerm",
    "calculate_membership",
    "membership_status",
    "days_remaining",
    "is_expiring_soon",
    "format_period_with_dates",
]
