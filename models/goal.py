"""Goal model for savings targets."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Goal:
    """Represents a savings goal.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Owner of the goal.
        title: Short name of the goal.
        target_amount: Amount to reach, between 0 (exclusive) and 10,000,000.
        current_amount: Amount saved so far, never negative.
        deadline: Optional date by which the goal should be reached.
        category: Free-text grouping.
        priority: Relative importance.
        is_completed: True once current_amount reaches target_amount.
        description: Optional longer description.
    """

    id: int
    user_id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: Optional[datetime]
    category: str
    priority: GoalPriority
    is_completed: bool = False
    description: Optional[str] = None
