import sqlite3
from datetime import datetime
from decimal import Decimal

import pytest

from errors import (
    AuthenticationRequired,
    ConflictActiveBudgetExists,
    NotFoundOrForbidden,
    ValidationFailed,
)
from models.budget import BudgetPeriod
from tests.helpers import NOW
from tools.budgets import BudgetHealth


def _spend(services, amount, category="Food", when=NOW, user="alice"):
    services.transactions.create(
        user, amount, f"{category} purchase", category, "expense", now=when
    )


class TestBudgetService:
    """Tests for BudgetService."""

    def test_create_budget(self, services):
        """Test creating an active budget."""
        budget = services.budgets.create("alice", "Food", "400", "monthly", now=NOW)

        assert budget.id is not None
        assert budget.user_id == "alice"
        assert budget.category == "Food"
        assert budget.limit == Decimal("400.00")
        assert budget.period == BudgetPeriod.MONTHLY
        assert budget.start_date == NOW
        assert budget.is_active is True

    def test_create_rounds_limit(self, services):
        """Test the limit is rounded to cents."""
        budget = services.budgets.create("alice", "Food", "99.995", "weekly", now=NOW)

        assert budget.limit == Decimal("100.00")

    def test_create_rejects_non_positive_limit(self, services):
        """Test a zero limit is rejected."""
        with pytest.raises(ValidationFailed, match="Budget limit must be greater than zero"):
            services.budgets.create("alice", "Food", 0, "monthly", now=NOW)

    def test_create_rejects_unknown_period(self, services):
        """Test only weekly, monthly and yearly budgets can be created."""
        with pytest.raises(ValidationFailed) as exc_info:
            services.budgets.create("alice", "Food", 100, "daily", now=NOW)

        assert exc_info.value.field == "period"

    def test_create_requires_user(self, services):
        """Test creating a budget without a caller identity fails."""
        with pytest.raises(AuthenticationRequired):
            services.budgets.create(None, "Food", 100, "monthly", now=NOW)

    def test_create_conflicting_active_budget(self, services):
        """Test a second active budget for a category is rejected."""
        services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        with pytest.raises(
            ConflictActiveBudgetExists,
            match="Active budget already exists for category: Food",
        ):
            services.budgets.create("alice", "Food", 100, "weekly", now=NOW)

        assert len(services.budgets.list("alice")) == 1

    def test_create_same_category_for_other_user(self, services):
        """Test the active budget rule is per user."""
        services.budgets.create("alice", "Food", 400, "monthly", now=NOW)
        budget = services.budgets.create("bob", "Food", 100, "monthly", now=NOW)

        assert budget.user_id == "bob"

    def test_create_after_deactivating(self, services):
        """Test a new budget can be created once the old one is deactivated."""
        old = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)
        services.budgets.update("alice", old.id, is_active=False)

        new = services.budgets.create("alice", "Food", 300, "monthly", now=NOW)

        assert new.is_active is True
        assert [b.id for b in services.budgets.list("alice")] == [new.id]

    def test_reactivating_conflicts(self, services):
        """Test an old budget cannot be reactivated while another is active."""
        old = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)
        services.budgets.update("alice", old.id, is_active=False)
        services.budgets.create("alice", "Food", 300, "monthly", now=NOW)

        with pytest.raises(ConflictActiveBudgetExists):
            services.budgets.update("alice", old.id, is_active=True)

        assert services.budgets.find(old.id).is_active is False

    def test_database_rejects_second_active_budget(self, services):
        """Test the storage layer also enforces one active budget per category."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        with services.db_manager.connect() as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    """
                    INSERT INTO budgets (user_id, category, budget_limit, period,
                        start_date, is_active)
                    VALUES (?, ?, ?, ?, ?, 1)
                    """,
                    ("alice", "Food", 50.0, "weekly", NOW.isoformat()),
                )
            conn.rollback()

        assert [b.id for b in services.budgets.list("alice")] == [budget.id]

    def test_list_budgets(self, services):
        """Test listing returns active budgets newest first."""
        food = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)
        fun = services.budgets.create("alice", "Fun", 100, "weekly", now=NOW)
        services.budgets.update("alice", food.id, is_active=False)

        active = services.budgets.list("alice")
        everything = services.budgets.list("alice", include_inactive=True)

        assert [b.id for b in active] == [fun.id]
        assert [b.id for b in everything] == [fun.id, food.id]

    def test_list_unauthenticated_is_empty(self, services):
        """Test an unauthenticated caller gets no budgets."""
        services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        assert services.budgets.list(None) == []

    def test_update_budget(self, services):
        """Test changing the limit and period."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        updated = services.budgets.update(
            "alice", budget.id, limit="250.555", period="weekly"
        )

        assert updated.limit == Decimal("250.56")
        assert updated.period == BudgetPeriod.WEEKLY
        assert updated.category == "Food"

    def test_update_rejects_category_change(self, services):
        """Test the category of a budget cannot be changed."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        with pytest.raises(ValidationFailed):
            services.budgets.update("alice", budget.id, category="Fun")

    def test_update_other_users_budget(self, services):
        """Test another user's budget cannot be updated."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        with pytest.raises(NotFoundOrForbidden, match="Budget not found or access denied"):
            services.budgets.update("bob", budget.id, limit=1)

    def test_delete_budget(self, services):
        """Test deleting a budget."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        services.budgets.delete("alice", budget.id)

        assert services.budgets.find(budget.id) is None

    def test_delete_other_users_budget(self, services):
        """Test a user cannot delete another user's budget."""
        budget = services.budgets.create("alice", "Food", 400, "monthly", now=NOW)

        with pytest.raises(NotFoundOrForbidden):
            services.budgets.delete("bob", budget.id)

        assert services.budgets.find(budget.id) is not None


class TestBudgetStatus:
    """Tests for BudgetService.get_status."""

    @pytest.mark.parametrize(
        "spent, expected",
        [
            (50, BudgetHealth.GOOD),
            (70, BudgetHealth.GOOD),
            (71, BudgetHealth.CAUTION),
            (95, BudgetHealth.WARNING),
            (100, BudgetHealth.WARNING),
            (101, BudgetHealth.EXCEEDED),
        ],
    )
    def test_health_thresholds(self, services, spent, expected):
        """Test the health label for a 100 limit."""
        services.budgets.create("alice", "Food", 100, "monthly", now=NOW)
        _spend(services, spent)

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.spent == Decimal(spent)
        assert status.percentage == pytest.approx(spent)
        assert status.status == expected

    def test_monthly_window(self, services):
        """Test a monthly budget only counts this month's expenses."""
        services.budgets.create("alice", "Food", 400, "monthly", now=NOW)
        _spend(services, 100)
        _spend(services, 50, when=datetime(2025, 1, 1))
        _spend(services, 70, when=datetime(2024, 12, 31, 23, 59))
        _spend(services, 30, category="Transport")

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.spent == Decimal("150")
        assert status.remaining == Decimal("250")
        assert status.period_start == datetime(2025, 1, 1)
        assert status.period_end == datetime(2025, 2, 1)
        assert status.days_remaining == 17

    def test_weekly_window_starts_sunday(self, services):
        """Test a weekly budget window runs from Sunday."""
        services.budgets.create("alice", "Food", 100, "weekly", now=NOW)
        _spend(services, 20, when=datetime(2025, 1, 12))
        _spend(services, 40, when=datetime(2025, 1, 11, 23, 59))

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.spent == Decimal("20")
        assert status.period_start == datetime(2025, 1, 12)
        assert status.period_end == datetime(2025, 1, 19)
        assert status.days_remaining == 4

    def test_overspent_budget_has_negative_remaining(self, services):
        """Test remaining goes negative once the limit is exceeded."""
        services.budgets.create("alice", "Food", 100, "monthly", now=NOW)
        _spend(services, 130)

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.remaining == Decimal("-30")
        assert status.status == BudgetHealth.EXCEEDED

    def test_ignores_other_users_spending(self, services):
        """Test another user's expenses do not count against a budget."""
        services.budgets.create("alice", "Food", 100, "monthly", now=NOW)
        _spend(services, 90, user="bob")

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.spent == Decimal("0")
        assert status.status == BudgetHealth.GOOD

    def test_unknown_stored_period_falls_back(self, services):
        """Test a budget with an unrecognized period spans its start date to now."""
        budget = services.budgets.create(
            "alice", "Food", 100, "monthly", now=datetime(2024, 11, 1)
        )
        with services.db_manager.connect() as conn:
            conn.execute("UPDATE budgets SET period = 'daily' WHERE id = ?", (budget.id,))
            conn.commit()
        _spend(services, 25, when=datetime(2024, 12, 15))
        _spend(services, 10, when=datetime(2024, 10, 15))

        [status] = services.budgets.get_status("alice", now=NOW)

        assert status.budget.period == "daily"
        assert status.period_start == datetime(2024, 11, 1)
        assert status.period_end == NOW
        assert status.spent == Decimal("25")
        assert status.days_remaining == 0

    def test_skips_inactive_budgets(self, services):
        """Test only active budgets get a status."""
        budget = services.budgets.create("alice", "Food", 100, "monthly", now=NOW)
        services.budgets.update("alice", budget.id, is_active=False)

        assert services.budgets.get_status("alice", now=NOW) == []

    def test_unauthenticated(self, services):
        """Test an unauthenticated caller gets no statuses."""
        assert services.budgets.get_status(None, now=NOW) == []


class TestBudgetAnalytics:
    """Tests for BudgetService.get_analytics."""

    def test_analytics(self, services):
        """Test limits are compared with all of this month's expenses."""
        services.budgets.create("alice", "Food", 100, "monthly", now=NOW)
        services.budgets.create("alice", "Transport", 100, "weekly", now=NOW)
        old = services.budgets.create("alice", "Fun", 500, "monthly", now=NOW)
        services.budgets.update("alice", old.id, is_active=False)
        _spend(services, 30)
        _spend(services, 20, category="Gifts")
        _spend(services, 80, when=datetime(2024, 12, 20))

        analytics = services.budgets.get_analytics("alice", now=NOW)

        assert analytics.total_budgets == 3
        assert analytics.active_budgets == 2
        assert analytics.total_budget_limit == Decimal("200")
        assert analytics.monthly_expenses == Decimal("50")
        assert analytics.budget_utilization == pytest.approx(25.0)
        assert analytics.remaining_budget == Decimal("150")

    def test_analytics_without_budgets(self, services):
        """Test utilization is 0 when there are no active budgets."""
        _spend(services, 30)

        analytics = services.budgets.get_analytics("alice", now=NOW)

        assert analytics.total_budget_limit == Decimal("0")
        assert analytics.budget_utilization == 0
        assert analytics.remaining_budget == Decimal("0")

    def test_analytics_unauthenticated(self, services):
        """Test analytics are unavailable without a caller identity."""
        assert services.budgets.get_analytics(None, now=NOW) is None
