"""Transaction service for database operations."""

import json
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from errors import NotFoundOrForbidden, ValidationFailed
from logger import get_logger
from models.transaction import Transaction, TransactionType
from services.base import require_user
from tools.transactions import (
    BreakdownPeriod,
    CategoryTotal,
    TransactionStats,
    category_breakdown,
    compute_stats,
)
from validation import TransactionCreate, TransactionUpdate, validate

logger = get_logger()

DEFAULT_LIST_LIMIT = 50

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """id, user_id, amount, description, category,
       transaction_type, transaction_date, tags, notes"""

# Patchable fields mapped to their column names
_UPDATABLE_COLUMNS = {
    "amount": "amount",
    "description": "description",
    "category": "category",
    "tags": "tags",
    "notes": "notes",
}


def _db_datetime(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _db_value(field: str, value):
    if field == "amount":
        return float(value)
    if field == "tags":
        return json.dumps(value) if value else None
    return value


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID, regardless of owner.

        Args:
            transaction_id: The transaction ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE id = ?
                """,
                (transaction_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_transaction(row)
            return None

    def find_owned(self, user_id: str, transaction_id: int) -> Transaction:
        """Get a transaction that belongs to the given user.

        Raises:
            NotFoundOrForbidden: If the transaction is missing or owned by
                someone else.
        """
        transaction = self.find(transaction_id)
        if transaction is None or transaction.user_id != user_id:
            raise NotFoundOrForbidden("Transaction")
        return transaction

    def list(
        self,
        user_id: Optional[str],
        limit: Optional[int] = None,
        category: Optional[str] = None,
        type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        """List a user's most recent transactions.

        Args:
            user_id: Caller identity; an unauthenticated caller gets an empty list.
            limit: Maximum number of transactions, at least 1 (default 50).
            category: Optional exact category filter.
            type: Optional income/expense filter.

        Returns:
            List of Transaction objects ordered by date (newest first).

        Raises:
            ValidationFailed: If limit is below 1.
        """
        if limit is None:
            limit = DEFAULT_LIST_LIMIT
        elif limit < 1:
            raise ValidationFailed("limit: Limit must be at least 1", field="limit")

        if not user_id:
            return []

        query = f"""
            SELECT {_TRANSACTION_SELECT_FIELDS}
            FROM transactions
            WHERE user_id = ?
        """
        params = [user_id]

        if category:
            query += " AND category = ?"
            params.append(category)

        if type is not None:
            query += " AND transaction_type = ?"
            params.append(TransactionType(type).value)

        query += " ORDER BY transaction_date DESC, id DESC LIMIT ?"
        params.append(limit)

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def find_by_user(self, user_id: str) -> List[Transaction]:
        """Get all transactions of a user.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE user_id = ?
                ORDER BY transaction_date DESC, id DESC
                """,
                (user_id,),
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def get_transactions_by_date_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        category: Optional[str] = None,
        type: Optional[TransactionType] = None,
    ) -> List[Transaction]:
        """Get a user's transactions within [start, end).

        Args:
            user_id: Owner of the transactions.
            start: Inclusive lower bound.
            end: Exclusive upper bound.
            category: Optional category to filter by.
            type: Optional income/expense filter.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        query = f"""
            SELECT {_TRANSACTION_SELECT_FIELDS}
            FROM transactions
            WHERE user_id = ? AND transaction_date >= ? AND transaction_date < ?
        """
        params = [user_id, _db_datetime(start), _db_datetime(end)]

        if category is not None:
            query += " AND category = ?"
            params.append(category)

        if type is not None:
            query += " AND transaction_type = ?"
            params.append(TransactionType(type).value)

        query += " ORDER BY transaction_date DESC, id DESC"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def get_transactions_by_month(
        self, user_id: str, year: int, month: int
    ) -> List[Transaction]:
        """Get a user's transactions for a specific month.

        Args:
            user_id: Owner of the transactions.
            year: Year (e.g., 2025).
            month: Month (1-12).

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        start = datetime(year, month, 1)
        return self.get_transactions_by_date_range(
            user_id, start, start + relativedelta(months=1)
        )

    def sum_expenses(
        self, user_id: str, category: str, start: datetime, end: datetime
    ) -> Decimal:
        """Sum a user's expenses in one category with start <= date <= end."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                SELECT amount
                FROM transactions
                WHERE user_id = ?
                  AND category = ?
                  AND transaction_type = ?
                  AND transaction_date >= ?
                  AND transaction_date <= ?
                """,
                (
                    user_id,
                    category,
                    TransactionType.EXPENSE.value,
                    _db_datetime(start),
                    _db_datetime(end),
                ),
            )
            return sum(
                (Decimal(str(row[0])) for row in cursor.fetchall()), Decimal("0")
            )

    def create(
        self,
        user_id: Optional[str],
        amount,
        description: str,
        category: str,
        type: TransactionType,
        tags: Optional[List[str]] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Transaction:
        """Record a new transaction dated at the current instant.

        Args:
            user_id: Caller identity.
            amount: Positive amount, at most 1,000,000; rounded to cents.
            description: 1 to 100 characters after trimming.
            category: Non-empty category name.
            type: "income" or "expense".
            tags: Optional list of tags; blank tags are dropped.
            notes: Optional free-text notes.
            now: Timestamp to record (defaults to the current time).

        Returns:
            The created Transaction with its id populated.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            ValidationFailed: If any field is invalid.
        """
        user_id = require_user(user_id)
        now = now or datetime.now()
        data = validate(
            TransactionCreate,
            {
                "amount": amount,
                "description": description,
                "category": category,
                "type": type,
                "tags": tags,
                "notes": notes,
            },
            now=now,
        )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO transactions (user_id, amount, description, category,
                    transaction_type, transaction_date, tags, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    float(data.amount),
                    data.description,
                    data.category,
                    data.type.value,
                    _db_datetime(now),
                    _db_value("tags", data.tags),
                    data.notes,
                ),
            )
            conn.commit()
            transaction_id = cursor.lastrowid

        logger.info(
            f"Recorded {data.type.value} {transaction_id} of {data.amount} "
            f"in '{data.category}' for user {user_id}"
        )

        return Transaction(
            id=transaction_id,
            user_id=user_id,
            amount=data.amount,
            description=data.description,
            category=data.category,
            type=data.type,
            date=now,
            tags=data.tags,
            notes=data.notes,
        )

    def update(
        self, user_id: Optional[str], transaction_id: int, **fields
    ) -> Transaction:
        """Update some fields of a transaction.

        Args:
            user_id: Caller identity.
            transaction_id: The transaction to update.
            **fields: Any of amount, description, category, tags, notes.

        Returns:
            The updated Transaction.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the transaction is missing or not owned.
            ValidationFailed: If any field is invalid or not updatable.
        """
        user_id = require_user(user_id)
        transaction = self.find_owned(user_id, transaction_id)
        changes = validate(TransactionUpdate, fields).changes()

        if not changes:
            return transaction

        set_clause = ", ".join(f"{_UPDATABLE_COLUMNS[f]} = ?" for f in changes)
        params = [_db_value(f, value) for f, value in changes.items()]
        params.append(transaction_id)

        with self.db_manager.connect() as conn:
            conn.execute(f"UPDATE transactions SET {set_clause} WHERE id = ?", params)
            conn.commit()

        logger.info(
            f"Updated transaction {transaction_id}: {', '.join(sorted(changes))}"
        )
        return self.find(transaction_id)

    def delete(self, user_id: Optional[str], transaction_id: int) -> None:
        """Delete a transaction.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the transaction is missing or not owned.
        """
        user_id = require_user(user_id)
        self.find_owned(user_id, transaction_id)

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            conn.commit()

        logger.info(f"Deleted transaction {transaction_id}")

    def get_stats(
        self, user_id: Optional[str], now: Optional[datetime] = None
    ) -> Optional[TransactionStats]:
        """Get income/expense totals and month-over-month growth.

        Returns:
            TransactionStats, or None for an unauthenticated caller.
        """
        if not user_id:
            return None
        return compute_stats(self.find_by_user(user_id), now or datetime.now())

    def get_category_breakdown(
        self,
        user_id: Optional[str],
        period: BreakdownPeriod = BreakdownPeriod.ALL,
        now: Optional[datetime] = None,
    ) -> List[CategoryTotal]:
        """Get expenses grouped by category for the month, year or all time.

        Returns:
            CategoryTotal list, largest first. Empty for an unauthenticated
            caller or when there are no expenses.
        """
        if not user_id:
            return []
        return category_breakdown(
            self.find_by_user(user_id),
            BreakdownPeriod(period or BreakdownPeriod.ALL),
            now or datetime.now(),
        )

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            user_id=row[1],
            amount=Decimal(str(row[2])),
            description=row[3],
            category=row[4],
            type=TransactionType(row[5]),
            date=datetime.fromisoformat(row[6]),
            tags=json.loads(row[7]) if row[7] else None,
            notes=row[8],
        )
