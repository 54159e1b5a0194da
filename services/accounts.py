"""Account service for database operations."""

from decimal import Decimal
from typing import List, Optional

from errors import NotFoundOrForbidden
from logger import get_logger
from models.account import Account, AccountType
from services.base import require_user
from validation import AccountCreate, AccountUpdate, validate

logger = get_logger()

_ACCOUNT_SELECT_FIELDS = """id, user_id, name, account_type, balance, currency,
       is_active, institution, account_number"""

_UPDATABLE_COLUMNS = {
    "name": "name",
    "type": "account_type",
    "balance": "balance",
    "currency": "currency",
    "is_active": "is_active",
    "institution": "institution",
    "account_number": "account_number",
}


def _db_value(field: str, value):
    if value is None:
        return None
    if field == "balance":
        return float(value)
    if field == "type":
        return value.value
    if field == "is_active":
        return int(value)
    return value


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db_manager):
        """Initialize the account service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find(self, account_id: int) -> Optional[Account]:
        """Get a single account by ID, regardless of owner.

        Args:
            account_id: The account ID to find.

        Returns:
            Account object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_ACCOUNT_SELECT_FIELDS} FROM accounts WHERE id = ?",
                (account_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_account(row)
            return None

    def find_owned(self, user_id: str, account_id: int) -> Account:
        """Get an account that belongs to the given user.

        Raises:
            NotFoundOrForbidden: If the account is missing or owned by someone else.
        """
        account = self.find(account_id)
        if account is None or account.user_id != user_id:
            raise NotFoundOrForbidden("Account")
        return account

    def list(
        self, user_id: Optional[str], include_inactive: bool = False
    ) -> List[Account]:
        """List a user's accounts, ordered by id.

        Args:
            user_id: Caller identity; an unauthenticated caller gets an empty list.
            include_inactive: Also return closed accounts.
        """
        if not user_id:
            return []

        query = f"SELECT {_ACCOUNT_SELECT_FIELDS} FROM accounts WHERE user_id = ?"
        if not include_inactive:
            query += " AND is_active = 1"
        query += " ORDER BY id"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, (user_id,))
            return [self._row_to_account(row) for row in cursor.fetchall()]

    def create(
        self,
        user_id: Optional[str],
        name: str,
        account_type: AccountType,
        balance=Decimal("0"),
        currency: str = "USD",
        institution: Optional[str] = None,
        account_number: Optional[str] = None,
    ) -> Account:
        """Create a new account.

        Args:
            user_id: Caller identity.
            name: Non-empty display name.
            account_type: "checking", "savings", "credit" or "investment".
            balance: Opening balance; rounded to cents.
            currency: 3-letter currency code.
            institution: Optional bank or broker name.
            account_number: Optional account number.

        Returns:
            The created Account object with id populated.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            ValidationFailed: If any field is invalid.
        """
        user_id = require_user(user_id)
        data = validate(
            AccountCreate,
            {
                "name": name,
                "type": account_type,
                "balance": balance,
                "currency": currency,
                "institution": institution,
                "account_number": account_number,
            },
        )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO accounts (user_id, name, account_type, balance, currency,
                    is_active, institution, account_number)
                VALUES (?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    user_id,
                    data.name,
                    data.type.value,
                    float(data.balance),
                    data.currency,
                    data.institution,
                    data.account_number,
                ),
            )
            conn.commit()
            account_id = cursor.lastrowid

        logger.info(f"Created {data.type.value} account {account_id} '{data.name}'")

        return Account(
            id=account_id,
            user_id=user_id,
            name=data.name,
            type=data.type,
            balance=data.balance,
            currency=data.currency,
            is_active=True,
            institution=data.institution,
            account_number=data.account_number,
        )

    def update(self, user_id: Optional[str], account_id: int, **fields) -> Account:
        """Update some fields of an account.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the account is missing or not owned.
            ValidationFailed: If any field is invalid or not updatable.
        """
        user_id = require_user(user_id)
        account = self.find_owned(user_id, account_id)
        changes = validate(AccountUpdate, fields).changes()

        if not changes:
            return account

        set_clause = ", ".join(f"{_UPDATABLE_COLUMNS[f]} = ?" for f in changes)
        params = [_db_value(f, value) for f, value in changes.items()]
        params.append(account_id)

        with self.db_manager.connect() as conn:
            conn.execute(f"UPDATE accounts SET {set_clause} WHERE id = ?", params)
            conn.commit()

        logger.info(f"Updated account {account_id}: {', '.join(sorted(changes))}")
        return self.find(account_id)

    def delete(self, user_id: Optional[str], account_id: int) -> None:
        """Delete an account.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the account is missing or not owned.
        """
        user_id = require_user(user_id)
        self.find_owned(user_id, account_id)

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            conn.commit()

        logger.info(f"Deleted account {account_id}")

    def _row_to_account(self, row: tuple) -> Account:
        """Convert a database row to an Account object."""
        return Account(
            id=row[0],
            user_id=row[1],
            name=row[2],
            type=AccountType(row[3]),
            balance=Decimal(str(row[4])),
            currency=row[5],
            is_active=bool(row[6]),
            institution=row[7],
            account_number=row[8],
        )
