from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"


@dataclass
class Account:
    id: int
    user_id: str
    name: str  # human readable, e.g., "Everyday Checking"
    type: AccountType
    balance: Decimal  # may be negative for credit accounts
    currency: str  # ISO 4217 code, e.g., "USD"
    is_active: bool = True
    institution: Optional[str] = None
    account_number: Optional[str] = None
