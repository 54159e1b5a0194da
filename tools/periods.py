"""Calendar period windows used by budget and statistics calculations.

All functions take the reference instant explicitly and work on naive local
datetimes. A window is half-open: [start, end).
"""

from datetime import datetime, timedelta
from typing import Tuple

from dateutil.relativedelta import relativedelta

from models.budget import Budget, BudgetPeriod

_MIDNIGHT = {"hour": 0, "minute": 0, "second": 0, "microsecond": 0}


def day_start(now: datetime) -> datetime:
    return now.replace(**_MIDNIGHT)


def week_start(now: datetime) -> datetime:
    """Most recent Sunday at 00:00 (today if today is Sunday)."""
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    return day_start(now) - timedelta(days=days_since_sunday)


def month_start(now: datetime) -> datetime:
    return day_start(now).replace(day=1)


def previous_month_start(now: datetime) -> datetime:
    return month_start(now) - relativedelta(months=1)


def year_start(now: datetime) -> datetime:
    return day_start(now).replace(month=1, day=1)


def period_start(period: BudgetPeriod, now: datetime) -> datetime:
    """Start of the calendar period of the given kind containing `now`.

    Raises:
        ValueError: If the period kind is not recognized.
    """
    if period == BudgetPeriod.WEEKLY:
        return week_start(now)
    if period == BudgetPeriod.MONTHLY:
        return month_start(now)
    if period == BudgetPeriod.YEARLY:
        return year_start(now)
    raise ValueError(f"Unknown budget period: {period}")


def period_end(period: BudgetPeriod, now: datetime) -> datetime:
    """Start of the calendar period following the one containing `now`."""
    start = period_start(period, now)
    if period == BudgetPeriod.WEEKLY:
        return start + relativedelta(weeks=1)
    if period == BudgetPeriod.MONTHLY:
        return start + relativedelta(months=1)
    return start + relativedelta(years=1)


def budget_window(budget: Budget, now: datetime) -> Tuple[datetime, datetime]:
    """Get the current period window for a budget.

    Budgets whose period kind is not recognized fall back to the window
    [budget.start_date, now].

    Args:
        budget: Budget whose period kind determines the window.
        now: Reference instant.

    Returns:
        Tuple of (start, end) datetimes.
    """
    try:
        return period_start(budget.period, now), period_end(budget.period, now)
    except ValueError:
        return budget.start_date, now
