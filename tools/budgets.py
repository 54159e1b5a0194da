"""Budget status and analytics calculations."""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List

from models.budget import Budget
from models.transaction import Transaction
from tools.periods import budget_window, month_start

_SECONDS_PER_DAY = 86400


class BudgetHealth(str, Enum):
    GOOD = "good"
    CAUTION = "caution"
    WARNING = "warning"
    EXCEEDED = "exceeded"


# Checked in order, first match wins
_HEALTH_THRESHOLDS = (
    (100, BudgetHealth.EXCEEDED),
    (90, BudgetHealth.WARNING),
    (70, BudgetHealth.CAUTION),
)


@dataclass
class BudgetStatus:
    """Spending of one budget within its current period."""

    budget: Budget
    period_start: datetime
    period_end: datetime
    spent: Decimal
    remaining: Decimal  # negative once the limit is exceeded
    percentage: float
    days_remaining: int
    status: BudgetHealth


@dataclass
class BudgetAnalytics:
    """Portfolio-level view across all of a user's budgets."""

    total_budgets: int
    active_budgets: int
    total_budget_limit: Decimal
    monthly_expenses: Decimal
    budget_utilization: float
    remaining_budget: Decimal


def health_for(percentage: float) -> BudgetHealth:
    """Map a spent percentage to a health label."""
    for threshold, health in _HEALTH_THRESHOLDS:
        if percentage > threshold:
            return health
    return BudgetHealth.GOOD


def days_until(end: datetime, now: datetime) -> int:
    """Whole days from `now` until `end`, rounded up."""
    return math.ceil((end - now).total_seconds() / _SECONDS_PER_DAY)


def budget_status(budget: Budget, spent: Decimal, now: datetime) -> BudgetStatus:
    """Compute the status of a budget given what was spent in its window.

    Args:
        budget: The budget (limit is always positive).
        spent: Sum of expenses in the budget's category within its window.
        now: Reference instant.

    Returns:
        BudgetStatus for the current period.
    """
    start, end = budget_window(budget, now)
    percentage = float(spent * 100 / budget.limit)

    return BudgetStatus(
        budget=budget,
        period_start=start,
        period_end=end,
        spent=spent,
        remaining=budget.limit - spent,
        percentage=percentage,
        days_remaining=days_until(end, now),
        status=health_for(percentage),
    )


def budget_analytics(
    budgets: List[Budget], transactions: Iterable[Transaction], now: datetime
) -> BudgetAnalytics:
    """Aggregate limits of active budgets against this month's expenses.

    Args:
        budgets: All budgets of one user, active or not.
        transactions: Transactions of the same user.
        now: Reference instant.

    Returns:
        BudgetAnalytics. Utilization is 0 when there is no active limit.
    """
    active = [b for b in budgets if b.is_active]
    total_limit = sum((b.limit for b in active), Decimal("0"))

    since = month_start(now)
    monthly_expenses = sum(
        (t.amount for t in transactions if t.is_expense and t.date >= since),
        Decimal("0"),
    )

    utilization = float(monthly_expenses * 100 / total_limit) if total_limit > 0 else 0.0

    return BudgetAnalytics(
        total_budgets=len(budgets),
        active_budgets=len(active),
        total_budget_limit=total_limit,
        monthly_expenses=monthly_expenses,
        budget_utilization=utilization,
        remaining_budget=max(Decimal("0"), total_limit - monthly_expenses),
    )
