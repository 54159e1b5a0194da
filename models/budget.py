"""Budget model for per-category spending limits."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class Budget:
    """Represents a recurring spending limit for one category.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Owner of the budget.
        category: Category the limit applies to (matched against transactions).
        limit: Spending limit per period, always positive.
        period: Recurrence of the limit.
        start_date: When the budget was created.
        is_active: Only active budgets are tracked; at most one per category.
    """

    id: int
    user_id: str
    category: str
    limit: Decimal
    period: BudgetPeriod
    start_date: datetime
    is_active: bool = True

    @property
    def period_name(self) -> str:
        # Periods read from storage that are not a known BudgetPeriod stay raw strings
        if isinstance(self.period, BudgetPeriod):
            return self.period.value
        return str(self.period)
