"""Input validation for every mutating operation.

Each operation has a pydantic model describing the accepted fields. Free text
is trimmed, amounts are checked and rounded to cents, and any violation is
reported as a ValidationFailed naming the offending field.
"""

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, ClassVar, List, Optional, Type, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from errors import ValidationFailed
from models.account import AccountType
from models.budget import BudgetPeriod
from models.goal import GoalPriority
from models.transaction import TransactionType

MAX_TRANSACTION_AMOUNT = Decimal("1000000")
MAX_GOAL_TARGET = Decimal("10000000")
MAX_DESCRIPTION_LENGTH = 100

_CENT = Decimal("0.01")
_WHOLE = Decimal("1")


def round_money(value) -> Decimal:
    """Round a monetary value to 2 decimal places, halves away from zero.

    Floats are scaled to cents in binary before rounding, the same as
    round(value * 100) / 100, so 1.005 (stored as 1.00499...) becomes 1.00.
    Strings, ints and Decimals round exactly.

    Raises:
        ValueError: If the value is not a number or has too many digits.
    """
    try:
        if isinstance(value, float):
            cents = Decimal(str(value * 100)).quantize(_WHOLE, rounding=ROUND_HALF_UP)
            return (cents / 100).quantize(_CENT)
        return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value}") from e


def _to_decimal(value):
    # Non-finite floats are left for pydantic to reject
    if isinstance(value, float) and math.isfinite(value):
        return round_money(value)
    return value


def _required_text(label: str):
    def check(value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{label} cannot be empty")
        return value

    return check


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _money(label: str, ceiling: Optional[Decimal] = None):
    def check(value: Decimal) -> Decimal:
        rounded = round_money(value)
        if rounded <= 0:
            raise ValueError(f"{label} must be greater than zero")
        if ceiling is not None and value > ceiling:
            raise ValueError(f"{label} cannot exceed ${ceiling:,.0f}")
        return rounded

    return check


def _description(value: str) -> str:
    value = _required_text("Description")(value)
    if len(value) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(
            f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less"
        )
    return value


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags if tag.strip()]
    return cleaned or None


def _currency(value: str) -> str:
    value = value.strip().upper()
    if len(value) != 3 or not value.isalpha():
        raise ValueError("Currency must be a 3-letter code")
    return value


Money = Annotated[Decimal, BeforeValidator(_to_decimal)]
TransactionAmount = Annotated[
    Money, AfterValidator(_money("Amount", MAX_TRANSACTION_AMOUNT))
]
BudgetLimit = Annotated[Money, AfterValidator(_money("Budget limit"))]
GoalTarget = Annotated[Money, AfterValidator(_money("Target amount", MAX_GOAL_TARGET))]
ProgressAmount = Annotated[Money, AfterValidator(_money("Progress amount"))]
Balance = Annotated[Money, AfterValidator(round_money)]

Description = Annotated[str, AfterValidator(_description)]
Category = Annotated[str, AfterValidator(_required_text("Category"))]
Title = Annotated[str, AfterValidator(_required_text("Goal title"))]
AccountName = Annotated[str, AfterValidator(_required_text("Account name"))]
Currency = Annotated[str, AfterValidator(_currency)]
Tags = Annotated[Optional[List[str]], AfterValidator(_clean_tags)]
OptionalText = Annotated[Optional[str], AfterValidator(_optional_text)]


class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class _Patch(_Input):
    """Partial update: only explicitly supplied fields are applied."""

    nullable_fields: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in sorted(self.model_fields_set):
            if getattr(self, name) is None and name not in self.nullable_fields:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Return the supplied fields and their validated values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


def _check_deadline(value: Optional[datetime], info: ValidationInfo):
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    now = (info.context or {}).get("now") or datetime.now()
    if value <= now:
        raise ValueError("Deadline must be in the future")
    return value


class TransactionCreate(_Input):
    amount: TransactionAmount
    description: Description
    category: Category
    type: TransactionType
    tags: Tags = None
    notes: OptionalText = None


class TransactionUpdate(_Patch):
    nullable_fields: ClassVar[frozenset] = frozenset({"tags", "notes"})

    amount: Optional[TransactionAmount] = None
    description: Optional[Description] = None
    category: Optional[Category] = None
    tags: Tags = None
    notes: OptionalText = None


class BudgetCreate(_Input):
    category: Category
    limit: BudgetLimit
    period: BudgetPeriod


class BudgetUpdate(_Patch):
    limit: Optional[BudgetLimit] = None
    period: Optional[BudgetPeriod] = None
    is_active: Optional[bool] = None


class GoalCreate(_Input):
    title: Title
    target_amount: GoalTarget
    category: Category
    priority: GoalPriority
    deadline: Optional[datetime] = None
    description: OptionalText = None

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, value, info: ValidationInfo):
        return _check_deadline(value, info)


class GoalUpdate(_Patch):
    nullable_fields: ClassVar[frozenset] = frozenset({"deadline", "description"})

    title: Optional[Title] = None
    target_amount: Optional[GoalTarget] = None
    category: Optional[Category] = None
    priority: Optional[GoalPriority] = None
    deadline: Optional[datetime] = None
    description: OptionalText = None

    @field_validator("deadline")
    @classmethod
    def deadline_in_future(cls, value, info: ValidationInfo):
        return _check_deadline(value, info)


class ProgressUpdate(_Input):
    amount: ProgressAmount


class AccountCreate(_Input):
    name: AccountName
    type: AccountType
    balance: Balance = Decimal("0.00")
    currency: Currency = "USD"
    institution: OptionalText = None
    account_number: OptionalText = None


class AccountUpdate(_Patch):
    nullable_fields: ClassVar[frozenset] = frozenset({"institution", "account_number"})

    name: Optional[AccountName] = None
    type: Optional[AccountType] = None
    balance: Optional[Balance] = None
    currency: Optional[Currency] = None
    is_active: Optional[bool] = None
    institution: OptionalText = None
    account_number: OptionalText = None


InputModel = TypeVar("InputModel", bound=BaseModel)


def validate(
    model_cls: Type[InputModel], data: dict, now: Optional[datetime] = None
) -> InputModel:
    """Validate raw input against an operation model.

    Args:
        model_cls: One of the input models in this module.
        data: Raw field values supplied by the caller.
        now: Reference instant for deadline checks (defaults to the current time).

    Returns:
        The validated model instance, with text trimmed and amounts rounded.

    Raises:
        ValidationFailed: If any field violates its constraints. Only the
            first violation is reported.
    """
    try:
        return model_cls.model_validate(data, context={"now": now or datetime.now()})
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        if field:
            message = f"{field}: {message}"
        raise ValidationFailed(message, field=field) from e
