"""Tests for calendar period windows."""

from datetime import datetime
from decimal import Decimal

import pytest

from models.budget import Budget, BudgetPeriod
from tests.helpers import NOW
from tools.periods import (
    budget_window,
    month_start,
    period_end,
    period_start,
    previous_month_start,
    week_start,
    year_start,
)


def _budget(period, start_date=datetime(2024, 6, 1)):
    return Budget(
        id=1,
        user_id="alice",
        category="Food",
        limit=Decimal("100"),
        period=period,
        start_date=start_date,
    )


class TestWeekStart:
    """Tests for week_start function."""

    def test_midweek(self):
        """Test a Wednesday maps back to the previous Sunday."""
        assert week_start(NOW) == datetime(2025, 1, 12)

    def test_sunday_is_its_own_start(self):
        """Test a Sunday maps to midnight of the same day."""
        assert week_start(datetime(2025, 1, 12, 18, 30)) == datetime(2025, 1, 12)

    def test_saturday(self):
        """Test a Saturday is the last day of the week."""
        assert week_start(datetime(2025, 1, 18, 23, 59)) == datetime(2025, 1, 12)

    def test_crosses_year_boundary(self):
        """Test the week containing New Year starts in December."""
        assert week_start(datetime(2025, 1, 2)) == datetime(2024, 12, 29)


class TestPeriodStart:
    """Tests for period_start and period_end functions."""

    def test_month_and_year_start(self):
        """Test month and year starts are at midnight."""
        assert month_start(NOW) == datetime(2025, 1, 1)
        assert year_start(datetime(2025, 8, 20, 9)) == datetime(2025, 1, 1)

    def test_previous_month_start(self):
        """Test the previous month wraps to December."""
        assert previous_month_start(NOW) == datetime(2024, 12, 1)
        assert previous_month_start(datetime(2025, 3, 31)) == datetime(2025, 2, 1)

    @pytest.mark.parametrize(
        "period, start, end",
        [
            (BudgetPeriod.WEEKLY, datetime(2025, 1, 12), datetime(2025, 1, 19)),
            (BudgetPeriod.MONTHLY, datetime(2025, 1, 1), datetime(2025, 2, 1)),
            (BudgetPeriod.YEARLY, datetime(2025, 1, 1), datetime(2026, 1, 1)),
        ],
    )
    def test_windows(self, period, start, end):
        """Test each period kind yields a half-open window around now."""
        assert period_start(period, NOW) == start
        assert period_end(period, NOW) == end

    def test_month_end_in_december(self):
        """Test the month after December is January of the next year."""
        assert period_end(BudgetPeriod.MONTHLY, datetime(2024, 12, 31)) == datetime(2025, 1, 1)

    def test_unknown_period(self):
        """Test an unknown period kind raises ValueError."""
        with pytest.raises(ValueError):
            period_start("daily", NOW)


class TestBudgetWindow:
    """Tests for budget_window function."""

    def test_known_period(self):
        """Test a monthly budget uses the calendar month."""
        assert budget_window(_budget(BudgetPeriod.MONTHLY), NOW) == (
            datetime(2025, 1, 1),
            datetime(2025, 2, 1),
        )

    def test_unknown_period_falls_back_to_start_date(self):
        """Test an unknown period spans from the budget start date to now."""
        budget = _budget("daily", start_date=datetime(2024, 11, 3))

        assert budget_window(budget, NOW) == (datetime(2024, 11, 3), NOW)
