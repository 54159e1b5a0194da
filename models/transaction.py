from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass
class Transaction:
    id: int
    user_id: str  # owner, never changes after creation
    amount: Decimal  # always positive, rounded to cents
    description: str
    category: str
    type: TransactionType
    date: datetime  # assigned when the transaction is recorded
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_dict(self) -> dict:
        """Convert transaction to a plain dictionary for display or export."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "tags": list(self.tags) if self.tags else [],
            "notes": self.notes,
        }
