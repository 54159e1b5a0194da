#!/usr/bin/env python3

import sys
import csv
from datetime import date
from pathlib import Path

from errors import FinanceError
from logger import get_logger
from models.transaction import TransactionType
from tools.transactions import BreakdownPeriod, get_period_summary

logger = get_logger()


def _parse_month(value: str) -> date:
    """Parse a YYYY/MM month argument."""
    year, month = value.split("/")
    month = int(month)
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12")
    return date(int(year), month, 1)


def cmd_list(args, services):
    """List recent transactions."""
    try:
        transactions = services.transactions.list(
            args.user, limit=args.limit, category=args.category, type=args.type
        )
    except FinanceError as e:
        logger.error(f"Error listing transactions: {e}")
        sys.exit(1)

    if not transactions:
        logger.info("No transactions found.")
        return

    for t in transactions:
        sign = "+" if t.is_income else "-"
        tags = f" [{', '.join(t.tags)}]" if t.tags else ""
        logger.info(
            f"{t.id:>5}  {t.date:%Y-%m-%d %H:%M}  {sign}${t.amount:>11,.2f}  "
            f"{t.category:<15} {t.description}{tags}"
        )

    logger.info(f"\nTotal transactions: {len(transactions)}")


def cmd_add(args, services):
    """Record a new transaction."""
    try:
        transaction = services.transactions.create(
            args.user,
            amount=args.amount,
            description=args.description,
            category=args.category,
            type=args.type,
            tags=args.tag,
            notes=args.notes,
        )
    except FinanceError as e:
        logger.error(f"Error recording transaction: {e}")
        sys.exit(1)

    logger.info(f"✓ Transaction recorded with ID: {transaction.id}")
    logger.info(f"  {transaction.type.value}: ${transaction.amount:,.2f}")
    logger.info(f"  Category: {transaction.category}")


def cmd_update(args, services):
    """Update fields of an existing transaction."""
    fields = {
        name: value
        for name, value in (
            ("amount", args.amount),
            ("description", args.description),
            ("category", args.category),
            ("tags", args.tag),
            ("notes", args.notes),
        )
        if value is not None
    }

    if not fields:
        logger.error("Nothing to update.")
        sys.exit(1)

    try:
        transaction = services.transactions.update(args.user, args.transaction_id, **fields)
    except FinanceError as e:
        logger.error(f"Error updating transaction: {e}")
        sys.exit(1)

    logger.info(f"✓ Transaction {transaction.id} updated")


def cmd_delete(args, services):
    """Delete a transaction."""
    try:
        services.transactions.delete(args.user, args.transaction_id)
    except FinanceError as e:
        logger.error(f"Error deleting transaction: {e}")
        sys.exit(1)

    logger.info(f"✓ Transaction {args.transaction_id} deleted")


def cmd_stats(args, services):
    """Show income/expense totals and growth."""
    stats = services.transactions.get_stats(args.user)
    if stats is None:
        logger.info("No user specified.")
        return

    logger.info("All time:")
    logger.info(f"  Income:   ${stats.total_income:,.2f}")
    logger.info(f"  Expenses: ${stats.total_expenses:,.2f}")
    logger.info(f"  Net:      ${stats.net_worth:,.2f}")
    logger.info("This month:")
    logger.info(
        f"  Income:   ${stats.monthly_income:,.2f} ({stats.income_growth:+.1f}%)"
    )
    logger.info(
        f"  Expenses: ${stats.monthly_expenses:,.2f} ({stats.expense_growth:+.1f}%)"
    )
    logger.info(f"  Net:      ${stats.monthly_net:,.2f}")


def cmd_breakdown(args, services):
    """Show expenses by category."""
    breakdown = services.transactions.get_category_breakdown(args.user, args.period)

    if not breakdown:
        logger.info("No expenses found for this period.")
        return

    for item in breakdown:
        logger.info(
            f"{item.category:<20} ${item.amount:>11,.2f}  {item.percentage:5.1f}%"
        )


def cmd_summary(args, services):
    """Show month-by-month income, expenses and net."""
    try:
        start_month = _parse_month(args.start)
        end_month = _parse_month(args.end or args.start)
    except ValueError as e:
        logger.error(f"Invalid month: {e}")
        logger.error("Use YYYY/MM format for --start and --end")
        sys.exit(1)

    if not args.user:
        logger.info("No user specified.")
        return

    summary = get_period_summary(services, args.user, start_month, end_month)

    for month_key, month in summary.items():
        logger.info(
            f"{month_key}  income ${month['income_total']:,.2f}  "
            f"expenses ${month['expense_total']:,.2f}  net ${month['net']:,.2f}"
        )
        for category, amount in sorted(
            month["expenses_by_category"].items(), key=lambda item: -item[1]
        ):
            logger.info(f"    {category:<20} ${amount:,.2f}")


def cmd_export(args, services):
    """Export a month of transactions to CSV."""
    try:
        month = _parse_month(args.month)
    except ValueError as e:
        logger.error(f"Invalid month: {e}")
        sys.exit(1)

    if not args.user:
        logger.error("No user specified.")
        sys.exit(1)

    transactions = services.transactions.get_transactions_by_month(
        args.user, month.year, month.month
    )

    if not transactions:
        logger.info("No transactions found for the specified month.")
        return

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(
            ["id", "date", "type", "amount", "category", "description", "tags", "notes"]
        )
        for t in transactions:
            writer.writerow(
                [
                    t.id,
                    t.date.isoformat(),
                    t.type.value,
                    f"{t.amount:.2f}",
                    t.category,
                    t.description,
                    ";".join(t.tags or []),
                    t.notes or "",
                ]
            )

    logger.info(f"✓ Exported {len(transactions)} transaction(s) to: {output_path}")


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Record and analyze transactions",
        description="Record income and expenses and analyze spending",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    # transactions list
    list_parser = transactions_subparsers.add_parser(
        "list", help="List recent transactions"
    )
    list_parser.add_argument("--limit", type=int, default=50)
    list_parser.add_argument("--category", help="Only this category")
    list_parser.add_argument(
        "--type", choices=[t.value for t in TransactionType], help="income or expense"
    )
    list_parser.set_defaults(func=cmd_list)

    # transactions add
    add_parser = transactions_subparsers.add_parser(
        "add",
        help="Record a transaction",
        epilog="""
Examples:
  python -m cli transactions add 1200 "Paycheck" Salary --type income
  python -m cli transactions add 45.20 "Groceries" Food --tag weekly --notes "Market"
        """,
    )
    add_parser.add_argument("amount", help="Positive amount")
    add_parser.add_argument("description")
    add_parser.add_argument("category")
    add_parser.add_argument(
        "--type",
        choices=[t.value for t in TransactionType],
        default=TransactionType.EXPENSE.value,
    )
    add_parser.add_argument(
        "--tag", action="append", help="Tag (may be given several times)"
    )
    add_parser.add_argument("--notes")
    add_parser.set_defaults(func=cmd_add)

    # transactions update
    update_parser = transactions_subparsers.add_parser(
        "update", help="Update a transaction"
    )
    update_parser.add_argument("transaction_id", type=int)
    update_parser.add_argument("--amount")
    update_parser.add_argument("--description")
    update_parser.add_argument("--category")
    update_parser.add_argument(
        "--tag", action="append", help="Replace tags (may be given several times)"
    )
    update_parser.add_argument("--notes")
    update_parser.set_defaults(func=cmd_update)

    # transactions delete
    delete_parser = transactions_subparsers.add_parser(
        "delete", help="Delete a transaction"
    )
    delete_parser.add_argument("transaction_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)

    # transactions stats
    stats_parser = transactions_subparsers.add_parser(
        "stats", help="Show totals and month-over-month growth"
    )
    stats_parser.set_defaults(func=cmd_stats)

    # transactions breakdown
    breakdown_parser = transactions_subparsers.add_parser(
        "breakdown", help="Show expenses by category"
    )
    breakdown_parser.add_argument(
        "--period",
        choices=[p.value for p in BreakdownPeriod],
        default=BreakdownPeriod.ALL.value,
    )
    breakdown_parser.set_defaults(func=cmd_breakdown)

    # transactions summary
    summary_parser = transactions_subparsers.add_parser(
        "summary", help="Show monthly income, expenses and net"
    )
    summary_parser.add_argument(
        "--start", required=True, help="First month in YYYY/MM format"
    )
    summary_parser.add_argument(
        "--end", help="Last month in YYYY/MM format (defaults to --start)"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # transactions export
    export_parser = transactions_subparsers.add_parser(
        "export", help="Export a month of transactions to CSV"
    )
    export_parser.add_argument(
        "--month", required=True, help="Month to export in YYYY/MM format"
    )
    export_parser.add_argument("--output", required=True, help="Output CSV file path")
    export_parser.set_defaults(func=cmd_export)
