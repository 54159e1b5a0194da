"""Tests for budget status and analytics calculations."""

from datetime import datetime
from decimal import Decimal

import pytest

from models.budget import Budget, BudgetPeriod
from models.transaction import Transaction, TransactionType
from tests.helpers import NOW
from tools.budgets import (
    BudgetHealth,
    budget_analytics,
    budget_status,
    days_until,
    health_for,
)


def _budget(limit, period=BudgetPeriod.MONTHLY, is_active=True, category="Food"):
    return Budget(
        id=1,
        user_id="alice",
        category=category,
        limit=Decimal(limit),
        period=period,
        start_date=datetime(2024, 6, 1),
        is_active=is_active,
    )


def _expense(amount, when=NOW, type=TransactionType.EXPENSE):
    return Transaction(
        id=1,
        user_id="alice",
        amount=Decimal(amount),
        description="test",
        category="Food",
        type=type,
        date=when,
    )


class TestHealthFor:
    """Tests for health_for function."""

    @pytest.mark.parametrize(
        "percentage, expected",
        [
            (0, BudgetHealth.GOOD),
            (50, BudgetHealth.GOOD),
            (70, BudgetHealth.GOOD),
            (70.01, BudgetHealth.CAUTION),
            (90, BudgetHealth.CAUTION),
            (95, BudgetHealth.WARNING),
            (100, BudgetHealth.WARNING),
            (100.5, BudgetHealth.EXCEEDED),
            (250, BudgetHealth.EXCEEDED),
        ],
    )
    def test_thresholds(self, percentage, expected):
        """Test thresholds are strict and checked from the top down."""
        assert health_for(percentage) == expected


class TestDaysUntil:
    """Tests for days_until function."""

    def test_rounds_partial_days_up(self):
        """Test a partial day counts as a whole day."""
        assert days_until(datetime(2025, 2, 1), NOW) == 17

    def test_exact_days(self):
        """Test whole days are not rounded."""
        assert days_until(datetime(2025, 1, 17, 12), NOW) == 2

    def test_same_instant(self):
        """Test no days remain at the end of the window."""
        assert days_until(NOW, NOW) == 0


class TestBudgetStatus:
    """Tests for budget_status function."""

    def test_status_fields(self):
        """Test remaining, percentage and label for a partly spent budget."""
        status = budget_status(_budget("400"), Decimal("300"), NOW)

        assert status.spent == Decimal("300")
        assert status.remaining == Decimal("100")
        assert status.percentage == pytest.approx(75.0)
        assert status.status == BudgetHealth.CAUTION
        assert status.period_start == datetime(2025, 1, 1)
        assert status.period_end == datetime(2025, 2, 1)

    def test_nothing_spent(self):
        """Test an untouched budget is good with its full limit remaining."""
        status = budget_status(_budget("50"), Decimal("0"), NOW)

        assert status.remaining == Decimal("50")
        assert status.percentage == 0
        assert status.status == BudgetHealth.GOOD

    def test_yearly_days_remaining(self):
        """Test days remaining runs to the start of next year."""
        status = budget_status(_budget("50", BudgetPeriod.YEARLY), Decimal("0"), NOW)

        assert status.days_remaining == 351


class TestBudgetAnalytics:
    """Tests for budget_analytics function."""

    def test_only_active_limits_count(self):
        """Test inactive budgets are counted but their limits are not."""
        budgets = [
            _budget("100"),
            _budget("300", category="Rent"),
            _budget("1000", is_active=False, category="Fun"),
        ]
        transactions = [
            _expense("40"),
            _expense("60", when=datetime(2025, 1, 1)),
            _expense("500", when=datetime(2024, 12, 31)),
            _expense("900", type=TransactionType.INCOME),
        ]

        analytics = budget_analytics(budgets, transactions, NOW)

        assert analytics.total_budgets == 3
        assert analytics.active_budgets == 2
        assert analytics.total_budget_limit == Decimal("400")
        assert analytics.monthly_expenses == Decimal("100")
        assert analytics.budget_utilization == pytest.approx(25.0)
        assert analytics.remaining_budget == Decimal("300")

    def test_overspent_remaining_floors_at_zero(self):
        """Test remaining budget never goes negative."""
        analytics = budget_analytics([_budget("100")], [_expense("150")], NOW)

        assert analytics.budget_utilization == pytest.approx(150.0)
        assert analytics.remaining_budget == Decimal("0")

    def test_no_budgets(self):
        """Test utilization is 0 without any active limit."""
        analytics = budget_analytics([], [_expense("10")], NOW)

        assert analytics.total_budgets == 0
        assert analytics.budget_utilization == 0
