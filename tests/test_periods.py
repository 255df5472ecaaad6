"""Tests for membership period, end date and status calculations."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from gms.models import MembershipStatus
from gms.services.periods import (
    calculate_membership,
    days_remaining,
    format_period_with_dates,
    is_expiring_soon,
    membership_status,
)

PRICE = Decimal('150.00')


class TestCalculateMembership:
    """Payment divided by the monthly price, rounded half-up to two places."""

    def test_exact_month(self):
        term = calculate_membership(Decimal('150'), date(2024, 3, 10), PRICE)
        assert term.months == 1
        assert term.days == 0
        assert term.label == '1 month'
        assert term.end_date == date(2024, 4, 10)

    def test_several_months(self):
        term = calculate_membership(450, date(2024, 1, 1), PRICE)
        assert term.label == '3 months'
        assert term.end_date == date(2024, 4, 1)

    def test_partial_month_is_truncated_to_whole_months(self):
        # 449 / 150 = 2.9933 -> 2.99 -> 2 months
        term = calculate_membership(449, date(2024, 1, 1), PRICE)
        assert term.months == 2
        assert term.end_date == date(2024, 3, 1)

    def test_rounding_can_reach_a_whole_month(self):
        # 149.5 / 150 = 0.99666 -> 1.00
        term = calculate_membership(Decimal('149.5'), date(2024, 1, 1), PRICE)
        assert term.label == '1 month'

    def test_half_month_in_days(self):
        term = calculate_membership(75, date(2024, 1, 1), PRICE)
        assert term.months == 0
        assert term.days == 15
        assert term.label == '15 days'
        assert term.end_date == date(2024, 1, 16)

    def test_days_are_floored(self):
        # 100 / 150 = 0.6667 -> 0.67 -> 20.1 days -> 20
        term = calculate_membership(100, date(2024, 1, 1), PRICE)
        assert term.days == 20

    def test_single_day_label(self):
        # 6 / 150 = 0.04 -> 1.2 days -> 1
        term = calculate_membership(6, date(2024, 1, 1), PRICE)
        assert term.label == '1 day'
        assert term.end_date == date(2024, 1, 2)

    def test_too_small_payment_buys_nothing(self):
        term = calculate_membership(Decimal('0.50'), date(2024, 1, 1), PRICE)
        assert (term.months, term.days) == (0, 0)
        assert term.end_date == date(2024, 1, 1)

    def test_month_end_clamps_to_shorter_month(self):
        term = calculate_membership(150, date(2024, 1, 31), PRICE)
        assert term.end_date == date(2024, 2, 29)

    def test_crosses_year_boundary(self):
        term = calculate_membership(300, date(2023, 12, 15), PRICE)
        assert term.end_date == date(2024, 2, 15)

    def test_rejects_bad_price_and_payment(self):
        with pytest.raises(ValueError):
            calculate_membership(100, date(2024, 1, 1), 0)
        with pytest.raises(ValueError):
            calculate_membership(-1, date(2024, 1, 1), PRICE)

    def test_format_period_with_dates(self):
        term = calculate_membership(150, date(2024, 3, 10), PRICE)
        assert format_period_with_dates(term, date(2024, 3, 10)) == '1 month (2024-03-10 to 2024-04-10)'


    @pytest.mark.parametrize('start', [
        date(2024, 1, 31), date(2024, 2, 29), date(2023, 2, 28), date(2024, 3, 31),
        date(2024, 6, 15), date(2024, 12, 31), date(2023, 11, 30),
    ])
    @pytest.mark.parametrize('payment', [
        '1', '5', '6', '74.99', '75', '100', '149', '149.25', '149.5', '150', '151',
        '299.99', '450', '1000', '1799.99', '1800', '4500',
    ])
    def test_label_agrees_with_end_date(self, start, payment):
        term = calculate_membership(Decimal(payment), start, PRICE)
        count, unit = term.label.split()
        count = int(count)
        assert unit == ('month' if count == 1 else 'months') or unit == ('day' if count == 1 else 'days')
        if unit.startswith('month'):
            assert term.days == 0
            assert term.months == count >= 1
            assert start + relativedelta(months=count) == term.end_date
        else:
            assert term.months == 0
            assert term.days == count < 30
            assert start + timedelta(days=count) == term.end_date
        assert term.end_date >= start

    def test_end_date_beyond_calendar_raises_value_error(self):
        with pytest.raises(ValueError):
            calculate_membership(Decimal('99999999.99'), date(2024, 1, 1), PRICE)
        with pytest.raises(ValueError):
            calculate_membership(150, date(9999, 12, 15), PRICE)


class TestStatus:
    today = date(2024, 6, 15)

    def test_inactive_wins(self):
        assert membership_status(date(2030, 1, 1), False, self.today) is MembershipStatus.INACTIVE

    def test_expired(self):
        assert membership_status(date(2024, 6, 14), True, self.today) is MembershipStatus.EXPIRED
        assert membership_status(None, True, self.today) is MembershipStatus.EXPIRED

    def test_active_through_end_date(self):
        assert membership_status(date(2024, 6, 15), True, self.today) is MembershipStatus.ACTIVE

    def test_days_remaining(self):
        assert days_remaining(date(2024, 6, 20), self.today) == 5
        assert days_remaining(date(2024, 6, 10), self.today) == -5
        assert days_remaining(None, self.today) == 0

    def test_expiring_soon(self):
        assert is_expiring_soon(date(2024, 6, 22), self.today, 7)
        assert not is_expiring_soon(date(2024, 6, 23), self.today, 7)
        assert not is_expiring_soon(date(2024, 6, 14), self.today, 7)
        assert is_expiring_soon(date(2024, 6, 15), self.today, 7)
