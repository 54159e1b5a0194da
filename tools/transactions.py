"""Transaction analysis tools."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List

from dateutil.relativedelta import relativedelta

from models.transaction import Transaction, TransactionType
from tools.periods import month_start, previous_month_start, year_start


class BreakdownPeriod(str, Enum):
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


@dataclass
class TransactionStats:
    """Income and expense totals with month-over-month growth."""

    total_income: Decimal
    total_expenses: Decimal
    net_worth: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_net: Decimal
    income_growth: float
    expense_growth: float


@dataclass
class CategoryTotal:
    category: str
    amount: Decimal
    percentage: float


def _total(transactions: Iterable[Transaction], type: TransactionType) -> Decimal:
    return sum((t.amount for t in transactions if t.type == type), Decimal("0"))


def growth_rate(current: Decimal, previous: Decimal) -> float:
    """Percentage change from `previous` to `current`, 0 when previous is 0."""
    if previous > 0:
        return float((current - previous) * 100 / previous)
    return 0.0


def compute_stats(transactions: List[Transaction], now: datetime) -> TransactionStats:
    """Compute overall and current-month statistics.

    Monthly figures cover transactions on or after the 1st of the current
    month. Growth compares them with the whole previous calendar month.

    Args:
        transactions: All transactions of one user.
        now: Reference instant.

    Returns:
        TransactionStats for the user.
    """
    this_month = month_start(now)
    last_month = previous_month_start(now)

    monthly = [t for t in transactions if t.date >= this_month]
    previous = [t for t in transactions if last_month <= t.date < this_month]

    total_income = _total(transactions, TransactionType.INCOME)
    total_expenses = _total(transactions, TransactionType.EXPENSE)
    monthly_income = _total(monthly, TransactionType.INCOME)
    monthly_expenses = _total(monthly, TransactionType.EXPENSE)

    return TransactionStats(
        total_income=total_income,
        total_expenses=total_expenses,
        net_worth=total_income - total_expenses,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_net=monthly_income - monthly_expenses,
        income_growth=growth_rate(
            monthly_income, _total(previous, TransactionType.INCOME)
        ),
        expense_growth=growth_rate(
            monthly_expenses, _total(previous, TransactionType.EXPENSE)
        ),
    )


def filter_by_period(
    transactions: List[Transaction], period: BreakdownPeriod, now: datetime
) -> List[Transaction]:
    """Keep transactions of the current month or year, or all of them."""
    if period == BreakdownPeriod.MONTH:
        since = month_start(now)
    elif period == BreakdownPeriod.YEAR:
        since = year_start(now)
    else:
        return list(transactions)
    return [t for t in transactions if t.date >= since]


def category_breakdown(
    transactions: List[Transaction], period: BreakdownPeriod, now: datetime
) -> List[CategoryTotal]:
    """Group expenses by category.

    Args:
        transactions: All transactions of one user.
        period: Time filter applied before grouping.
        now: Reference instant.

    Returns:
        CategoryTotal list sorted by amount (largest first). Percentages are
        relative to the total expenses of the filtered set. An empty list is
        returned when there are no expenses in the period.
    """
    expenses = [
        t for t in filter_by_period(transactions, period, now) if t.is_expense
    ]

    by_category: Dict[str, Decimal] = {}
    for t in expenses:
        by_category[t.category] = by_category.get(t.category, Decimal("0")) + t.amount

    total = sum(by_category.values(), Decimal("0"))

    breakdown = [
        CategoryTotal(
            category=category,
            amount=amount,
            percentage=float(amount * 100 / total) if total > 0 else 0.0,
        )
        for category, amount in by_category.items()
    ]
    breakdown.sort(key=lambda item: item.amount, reverse=True)
    return breakdown


def get_period_transactions(
    services,
    user_id: str,
    start_month: date,
    end_month: date,
) -> Dict[str, List[Transaction]]:
    """Get a user's transactions for a period, organized by month.

    Args:
        services: Services container with transaction service.
        user_id: Owner of the transactions.
        start_month: Start of period (date object, day component ignored).
        end_month: End of period (date object, day component ignored).

    Returns:
        Dictionary mapping month keys (format: "YYYY/MM") to transaction lists.
        Every month of the range is present, even when it has no transactions.
    """
    result = {}

    current = date(start_month.year, start_month.month, 1)
    last = date(end_month.year, end_month.month, 1)

    while current <= last:
        result[current.strftime("%Y/%m")] = (
            services.transactions.get_transactions_by_month(
                user_id, current.year, current.month
            )
        )
        current += relativedelta(months=1)

    return result


def get_period_summary(
    services,
    user_id: str,
    start_month: date,
    end_month: date,
) -> Dict[str, Dict]:
    """Get summarized transaction data for a period, organized by month.

    Args:
        services: Services container with transaction service.
        user_id: Owner of the transactions.
        start_month: Start of period (date object, day component ignored).
        end_month: End of period (date object, day component ignored).

    Returns:
        Dictionary mapping month keys (format: "YYYY/MM") to summaries:
        - "income_total": Total income for the month (Decimal)
        - "expense_total": Total expenses for the month (Decimal)
        - "net": Net amount (income - expenses) (Decimal)
        - "expenses_by_category": Dict mapping category name to expense amount

    Example:
        {
            "2024/01": {
                "income_total": Decimal("1000.00"),
                "expense_total": Decimal("500.00"),
                "net": Decimal("500.00"),
                "expenses_by_category": {
                    "Food": Decimal("200.00"),
                    "Transport": Decimal("300.00"),
                },
            },
            "2024/02": {...},
        }
    """
    transactions_data = get_period_transactions(
        services, user_id, start_month, end_month
    )

    result = {}
    for month_key, transactions in transactions_data.items():
        income_total = Decimal("0")
        expense_total = Decimal("0")
        expenses_by_category: Dict[str, Decimal] = {}

        for transaction in transactions:
            if transaction.is_income:
                income_total += transaction.amount
            else:
                expense_total += transaction.amount
                expenses_by_category[transaction.category] = (
                    expenses_by_category.get(transaction.category, Decimal("0"))
                    + transaction.amount
                )

        result[month_key] = {
            "income_total": income_total,
            "expense_total": expense_total,
            "net": income_total - expense_total,
            "expenses_by_category": expenses_by_category,
        }

    return result
