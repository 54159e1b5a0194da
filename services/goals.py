"""Goal service for database operations."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from errors import InvalidState, NotFoundOrForbidden
from logger import get_logger
from models.goal import Goal, GoalPriority
from services.base import require_user
from tools.goals import GoalStats, goal_progress, goal_remaining, goal_stats
from validation import GoalCreate, GoalUpdate, ProgressUpdate, round_money, validate

logger = get_logger()

_GOAL_SELECT_FIELDS = """id, user_id, title, target_amount, current_amount, deadline,
       category, priority, is_completed, description"""

_UPDATABLE_COLUMNS = {
    "title": "title",
    "target_amount": "target_amount",
    "category": "category",
    "priority": "priority",
    "deadline": "deadline",
    "description": "description",
    "is_completed": "is_completed",
}


def _db_value(field: str, value):
    if value is None:
        return None
    if field == "target_amount":
        return float(value)
    if field == "priority":
        return value.value
    if field == "deadline":
        return value.isoformat(timespec="microseconds")
    if field == "is_completed":
        return int(value)
    return value


@dataclass
class ProgressResult:
    """Outcome of adding money to a goal."""

    goal: Goal
    is_completed: bool
    progress: float
    remaining: Decimal


class GoalService:
    """Service for managing savings goals."""

    def __init__(self, db_manager):
        """Initialize the goal service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find(self, goal_id: int) -> Optional[Goal]:
        """Get a single goal by ID, regardless of owner."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_GOAL_SELECT_FIELDS} FROM goals WHERE id = ?", (goal_id,)
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_goal(row)
            return None

    def find_owned(self, user_id: str, goal_id: int) -> Goal:
        """Get a goal that belongs to the given user.

        Raises:
            NotFoundOrForbidden: If the goal is missing or owned by someone else.
        """
        goal = self.find(goal_id)
        if goal is None or goal.user_id != user_id:
            raise NotFoundOrForbidden("Goal")
        return goal

    def list(
        self, user_id: Optional[str], include_completed: bool = False
    ) -> List[Goal]:
        """List a user's goals, newest first.

        Args:
            user_id: Caller identity; an unauthenticated caller gets an empty list.
            include_completed: Also return completed goals.
        """
        if not user_id:
            return []

        query = f"SELECT {_GOAL_SELECT_FIELDS} FROM goals WHERE user_id = ?"
        if not include_completed:
            query += " AND is_completed = 0"
        query += " ORDER BY id DESC"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, (user_id,))
            return [self._row_to_goal(row) for row in cursor.fetchall()]

    def create(
        self,
        user_id: Optional[str],
        title: str,
        target_amount,
        category: str,
        priority: GoalPriority,
        deadline: Optional[datetime] = None,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Goal:
        """Create a goal with nothing saved yet.

        Args:
            user_id: Caller identity.
            title: Non-empty title.
            target_amount: Between 0 (exclusive) and 10,000,000; rounded to cents.
            category: Non-empty category name.
            priority: "low", "medium" or "high".
            deadline: Optional deadline, strictly after `now`.
            description: Optional description.
            now: Reference instant for the deadline check.

        Returns:
            The created Goal.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            ValidationFailed: If any field is invalid.
        """
        user_id = require_user(user_id)
        data = validate(
            GoalCreate,
            {
                "title": title,
                "target_amount": target_amount,
                "category": category,
                "priority": priority,
                "deadline": deadline,
                "description": description,
            },
            now=now,
        )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO goals (user_id, title, target_amount, current_amount,
                    deadline, category, priority, is_completed, description)
                VALUES (?, ?, ?, 0, ?, ?, ?, 0, ?)
                """,
                (
                    user_id,
                    data.title,
                    float(data.target_amount),
                    _db_value("deadline", data.deadline),
                    data.category,
                    data.priority.value,
                    data.description,
                ),
            )
            conn.commit()
            goal_id = cursor.lastrowid

        logger.info(f"Created goal {goal_id} '{data.title}' of {data.target_amount}")

        return Goal(
            id=goal_id,
            user_id=user_id,
            title=data.title,
            target_amount=data.target_amount,
            current_amount=Decimal("0.00"),
            deadline=data.deadline,
            category=data.category,
            priority=data.priority,
            is_completed=False,
            description=data.description,
        )

    def update_progress(
        self, user_id: Optional[str], goal_id: int, amount
    ) -> ProgressResult:
        """Add a positive amount to the money saved towards a goal.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the goal is missing or not owned.
            InvalidState: If the goal is already completed.
            ValidationFailed: If the amount is not positive.
        """
        user_id = require_user(user_id)
        goal = self.find_owned(user_id, goal_id)

        if goal.is_completed:
            logger.warning(f"Rejected progress on completed goal {goal_id}")
            raise InvalidState("Cannot update progress on completed goal")

        data = validate(ProgressUpdate, {"amount": amount})

        goal.current_amount = round_money(goal.current_amount + data.amount)
        goal.is_completed = goal.current_amount >= goal.target_amount

        with self.db_manager.connect() as conn:
            conn.execute(
                "UPDATE goals SET current_amount = ?, is_completed = ? WHERE id = ?",
                (float(goal.current_amount), int(goal.is_completed), goal_id),
            )
            conn.commit()

        logger.info(
            f"Added {data.amount} to goal {goal_id}, now {goal.current_amount} "
            f"of {goal.target_amount}"
        )

        return ProgressResult(
            goal=goal,
            is_completed=goal.is_completed,
            progress=goal_progress(goal),
            remaining=goal_remaining(goal),
        )

    def update(
        self,
        user_id: Optional[str],
        goal_id: int,
        now: Optional[datetime] = None,
        **fields,
    ) -> Goal:
        """Update goal details.

        Changing the target recomputes whether the goal is completed. Passing
        deadline=None clears the deadline.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the goal is missing or not owned.
            ValidationFailed: If any field is invalid or not updatable.
        """
        user_id = require_user(user_id)
        goal = self.find_owned(user_id, goal_id)
        changes = validate(GoalUpdate, fields, now=now).changes()

        if not changes:
            return goal

        if "target_amount" in changes:
            changes["is_completed"] = goal.current_amount >= changes["target_amount"]

        set_clause = ", ".join(f"{_UPDATABLE_COLUMNS[f]} = ?" for f in changes)
        params = [_db_value(f, value) for f, value in changes.items()]
        params.append(goal_id)

        with self.db_manager.connect() as conn:
            conn.execute(f"UPDATE goals SET {set_clause} WHERE id = ?", params)
            conn.commit()

        logger.info(f"Updated goal {goal_id}: {', '.join(sorted(changes))}")
        return self.find(goal_id)

    def delete(self, user_id: Optional[str], goal_id: int) -> None:
        """Delete a goal.

        Raises:
            AuthenticationRequired: If there is no caller identity.
            NotFoundOrForbidden: If the goal is missing or not owned.
        """
        user_id = require_user(user_id)
        self.find_owned(user_id, goal_id)

        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
            conn.commit()

        logger.info(f"Deleted goal {goal_id}")

    def get_stats(self, user_id: Optional[str]) -> Optional[GoalStats]:
        """Get goal counts, overall progress and upcoming deadlines.

        Returns:
            GoalStats, or None for an unauthenticated caller.
        """
        if not user_id:
            return None
        return goal_stats(self.list(user_id, include_completed=True))

    def _row_to_goal(self, row: tuple) -> Goal:
        """Convert a database row to a Goal object."""
        return Goal(
            id=row[0],
            user_id=row[1],
            title=row[2],
            target_amount=Decimal(str(row[3])),
            current_amount=Decimal(str(row[4])),
            deadline=datetime.fromisoformat(row[5]) if row[5] else None,
            category=row[6],
            priority=GoalPriority(row[7]),
            is_completed=bool(row[8]),
            description=row[9],
        )
