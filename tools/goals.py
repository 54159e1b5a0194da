"""Savings goal progress calculations."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from models.goal import Goal

UPCOMING_DEADLINES_LIMIT = 3


@dataclass
class GoalStats:
    total_goals: int
    active_goals: int
    completed_goals: int
    overall_progress: float
    total_target_amount: Decimal
    total_current_amount: Decimal
    upcoming_deadlines: List[Goal] = field(default_factory=list)


def goal_progress(goal: Goal) -> float:
    """Percentage of the target reached (may exceed 100)."""
    return float(goal.current_amount * 100 / goal.target_amount)


def goal_remaining(goal: Goal) -> Decimal:
    return max(Decimal("0"), goal.target_amount - goal.current_amount)


def goal_stats(goals: List[Goal]) -> GoalStats:
    """Summarize a user's goals.

    Totals and overall progress only consider active (not completed) goals.
    Upcoming deadlines are the active goals with a deadline, nearest first,
    capped at UPCOMING_DEADLINES_LIMIT.
    """
    active = [g for g in goals if not g.is_completed]
    completed = [g for g in goals if g.is_completed]

    total_target = sum((g.target_amount for g in active), Decimal("0"))
    total_current = sum((g.current_amount for g in active), Decimal("0"))
    overall = float(total_current * 100 / total_target) if total_target > 0 else 0.0

    upcoming = sorted(
        (g for g in active if g.deadline is not None), key=lambda g: g.deadline
    )[:UPCOMING_DEADLINES_LIMIT]

    return GoalStats(
        total_goals=len(goals),
        active_goals=len(active),
        completed_goals=len(completed),
        overall_progress=overall,
        total_target_amount=total_target,
        total_current_amount=total_current,
        upcoming_deadlines=upcoming,
    )
