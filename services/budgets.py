"""Budget service for database operations."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from errors import ConflictActiveBudgetExists, NotFoundOrForbidden
from logger import get_logger
from models.budget import Budget, BudgetPeriod
from services.base import require_user
from tools.budgets import BudgetAnalytics, BudgetStatus, budget_analytics, budget_status
from tools.periods import budget_window
from validation import BudgetCreate, BudgetUpdate, validate

logger = get_logger()

_BUDGET_SELECT_FIELDS = "id, user_id, category, budget_limit, period, start_date, is_active"

_UPDATABLE_COLUMNS = {
    "limit": "budget_limit",
    "period": "period",
    "is_active": "is_active",
}


def _db_value(field: str, value):
    if field == "limit":
        return float(value)
    if field == "period":
        return value.value
    if field == "is_active":
        return int(value)
    return value


class BudgetService:
    """Service for managing budgets.

    Spending is never stored on a budget; it is derived from the owner's
    expense transactions in the budget's category and current period.
    """

    def __init__(self, db_manager, transactions):
        """Initialize the budget service.

        Args:
            db_manager: Database manager instance for database operations.
            transactions: TransactionService used to compute spending.
        """
        self.db_manager = db_manager
        self.transactions = transactions

    def find(self, budget_id: int) -> Optional[Budget]:
        """Get a single budget by ID, regardless of owner."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_BUDGET_SELECT_FIELDS} FROM budgets WHERE id = ?",
                (budget_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_budget(row)
            return None

    def find_owned(self, user_id: str, budget_id: int) -> Budget:
        """Get a budget that belongs to the given user.

        Raises:
            NotFoundOrForbidden: If the budget is missing or owned by someone else.
        """
        budget = self.find(budget_id)
        if budget is None or budget.user_id != user_id:
            raise NotFoundOrForbidden("Budget")
        return budget

    def find_active_by_category(self, user_id: str, category: str) -> Optional[Budget]:
        """Get the active budget of a user for a category, if any."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_BUDGET_SELECT_FIELDS}
                FROM budgets
                WHERE user_id = ? AND category = ? AND is_active = 1
                """,
                (user_id, category),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_budget(row)
            return None

    def list(
        self, user_id: Optional[str], include_inactive: bool = False
    ) -> List[Budget]:
        """List a user's budgets.

        Args:
            user_id: Caller identity; an unauthenticated caller gets an empty list.
            include_inactive: Also return deactivated budgets.

        Returns:
            List of Budget objects, newest first.
        """
        if not user_id:
            return []

        query = f"SELECT {_BUDGET_SELECT_FIELDS} FROM budgets WHERE user_id = ?"
        if not include_inactive:
            query += " AND is_active = 1"
        query += " ORDER BY id DESC"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, (user_id,))
            return [self._row_to_budget(row) for row in cursor.fetchall()]

    def create(
        self,
        user_id: Optional[str],
        category: str,
        limit,
        period: BudgetPeriod,
        now: Optional[datetime] = None,
    ) -> Budget:
        """Create an active budget for a category.

        Args:
            user_id: Caller identity.
            category: Non-empty category name.
            limit: Positive spending limit per period; rounded to cents.
            period: "weekly", "monthly" or "yearly".
            now: Start date to record (defaults to the current time).

        Returns:
            The created Budget.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            ValidationFailed: If any field is invalid.
            ConflictActiveBudgetExists: If the category already has an active budget.
        """
        user_id = require_user(user_id)
        now = now or datetime.now()
        data = validate(
            BudgetCreate, {"category": category, "limit": limit, "period": period}
        )

        if self.find_active_by_category(user_id, data.category):
            logger.warning(
                f"Rejected budget for '{data.category}': an active budget exists"
            )
            raise ConflictActiveBudgetExists(data.category)

        with self.db_manager.connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO budgets (user_id, category, budget_limit, period,
                        start_date, is_active)
                    VALUES (?, ?, ?, ?, ?, 1)
                    """,
                    (
                        user_id,
                        data.category,
                        float(data.limit),
                        data.period.value,
                        now.isoformat(timespec="microseconds"),
                    ),
                )
            except sqlite3.IntegrityError as e:
                # Another budget became active between the check and the insert
                raise ConflictActiveBudgetExists(data.category) from e
            conn.commit()
            budget_id = cursor.lastrowid

        logger.info(
            f"Created {data.period.value} budget {budget_id} of {data.limit} "
            f"for '{data.category}'"
        )

        return Budget(
            id=budget_id,
            user_id=user_id,
            category=data.category,
            limit=data.limit,
            period=data.period,
            start_date=now,
            is_active=True,
        )

    def update(self, user_id: Optional[str], budget_id: int, **fields) -> Budget:
        """Update the limit, period or active flag of a budget.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the budget is missing or not owned.
            ValidationFailed: If any field is invalid or not updatable.
            ConflictActiveBudgetExists: If reactivating would leave two active
                budgets for the same category.
        """
        user_id = require_user(user_id)
        budget = self.find_owned(user_id, budget_id)
        changes = validate(BudgetUpdate, fields).changes()

        if not changes:
            return budget

        if changes.get("is_active") and not budget.is_active:
            if self.find_active_by_category(user_id, budget.category):
                raise ConflictActiveBudgetExists(budget.category)

        set_clause = ", ".join(f"{_UPDATABLE_COLUMNS[f]} = ?" for f in changes)
        params = [_db_value(f, value) for f, value in changes.items()]
        params.append(budget_id)

        with self.db_manager.connect() as conn:
            try:
                conn.execute(f"UPDATE budgets SET {set_clause} WHERE id = ?", params)
            except sqlite3.IntegrityError as e:
                raise ConflictActiveBudgetExists(budget.category) from e
            conn.commit()

        logger.info(f"Updated budget {budget_id}: {', '.join(sorted(changes))}")
        return self.find(budget_id)

    def delete(self, user_id: Optional[str], budget_id: int) -> None:
        """Delete a budget.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the budget is missing or not owned.
        """
        user_id = require_user(user_id)
        self.find_owned(user_id, budget_id)

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
            conn.commit()

        logger.info(f"Deleted budget {budget_id}")

    def get_status(
        self, user_id: Optional[str], now: Optional[datetime] = None
    ) -> List[BudgetStatus]:
        """Get spending against each active budget for its current period.

        Returns:
            One BudgetStatus per active budget. Empty for an unauthenticated caller.
        """
        if not user_id:
            return []
        now = now or datetime.now()

        statuses = []
        for budget in self.list(user_id):
            start, _ = budget_window(budget, now)
            spent = self.transactions.sum_expenses(user_id, budget.category, start, now)
            statuses.append(budget_status(budget, spent, now))
        return statuses

    def get_analytics(
        self, user_id: Optional[str], now: Optional[datetime] = None
    ) -> Optional[BudgetAnalytics]:
        """Get total limits versus this month's expenses across all budgets.

        Returns:
            BudgetAnalytics, or None for an unauthenticated caller.
        """
        if not user_id:
            return None
        return budget_analytics(
            self.list(user_id, include_inactive=True),
            self.transactions.find_by_user(user_id),
            now or datetime.now(),
        )

    def _row_to_budget(self, row: tuple) -> Budget:
        """Convert a database row to a Budget object.

        Unknown period values are kept as plain strings; the period window
        calculation falls back to the budget's start date for them.
        """
        try:
            period = BudgetPeriod(row[4])
        except ValueError:
            period = row[4]

        return Budget(
            id=row[0],
            user_id=row[1],
            category=row[2],
            limit=Decimal(str(row[3])),
            period=period,
            start_date=datetime.fromisoformat(row[5]),
            is_active=bool(row[6]),
        )
