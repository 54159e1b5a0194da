#!/usr/bin/env python3

import sys

from errors import FinanceError
from logger import get_logger
from models.budget import BudgetPeriod

logger = get_logger()

_STATUS_MARKERS = {
    "good": "✓",
    "caution": "~",
    "warning": "!",
    "exceeded": "✗",
}


def cmd_list(args, services):
    """List budgets."""
    budgets = services.budgets.list(args.user, include_inactive=args.all)

    if not budgets:
        logger.info("No budgets found.")
        return

    for budget in budgets:
        state = "" if budget.is_active else "  (inactive)"
        logger.info(
            f"{budget.id:>5}  {budget.category:<20} ${budget.limit:>11,.2f} {budget.period_name}{state}"
        )


def cmd_create(args, services):
    """Create a budget for a category."""
    try:
        budget = services.budgets.create(
            args.user, category=args.category, limit=args.limit, period=args.period
        )
    except FinanceError as e:
        logger.error(f"Error creating budget: {e}")
        sys.exit(1)

    logger.info(f"✓ Budget created with ID: {budget.id}")
    logger.info(f"  {budget.category}: ${budget.limit:,.2f} {budget.period.value}")


def cmd_update(args, services):
    """Update the limit, period or active flag of a budget."""
    fields = {}
    if args.limit is not None:
        fields["limit"] = args.limit
    if args.period is not None:
        fields["period"] = args.period
    if args.activate:
        fields["is_active"] = True
    if args.deactivate:
        fields["is_active"] = False

    if not fields:
        logger.error("Nothing to update.")
        sys.exit(1)

    try:
        services.budgets.update(args.user, args.budget_id, **fields)
    except FinanceError as e:
        logger.error(f"Error updating budget: {e}")
        sys.exit(1)

    logger.info(f"✓ Budget {args.budget_id} updated")


def cmd_delete(args, services):
    """Delete a budget."""
    try:
        services.budgets.delete(args.user, args.budget_id)
    except FinanceError as e:
        logger.error(f"Error deleting budget: {e}")
        sys.exit(1)

    logger.info(f"✓ Budget {args.budget_id} deleted")


def cmd_status(args, services):
    """Show spending against each active budget."""
    statuses = services.budgets.get_status(args.user)

    if not statuses:
        logger.info("No active budgets.")
        return

    for s in statuses:
        marker = _STATUS_MARKERS[s.status.value]
        logger.info(
            f"{marker} {s.budget.category:<20} ${s.spent:,.2f} of ${s.budget.limit:,.2f} "
            f"({s.percentage:.0f}%, {s.status.value})"
        )
        logger.info(
            f"    ${s.remaining:,.2f} remaining, {s.days_remaining} day(s) left "
            f"in {s.budget.period_name} period"
        )


def cmd_analytics(args, services):
    """Show totals across all budgets."""
    analytics = services.budgets.get_analytics(args.user)
    if analytics is None:
        logger.info("No user specified.")
        return

    logger.info(
        f"Budgets: {analytics.active_budgets} active of {analytics.total_budgets}"
    )
    logger.info(f"Total limit:      ${analytics.total_budget_limit:,.2f}")
    logger.info(f"Spent this month: ${analytics.monthly_expenses:,.2f}")
    logger.info(f"Utilization:      {analytics.budget_utilization:.1f}%")
    logger.info(f"Remaining:        ${analytics.remaining_budget:,.2f}")


def setup_parser(subparsers):
    """Setup budgets subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "budgets",
        help="Manage budgets",
        description="Create category budgets and track spending against them",
    )

    budgets_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available budget commands",
        dest="subcommand",
        required=True,
    )

    periods = [p.value for p in BudgetPeriod]

    # budgets list
    list_parser = budgets_subparsers.add_parser("list", help="List budgets")
    list_parser.add_argument(
        "--all", action="store_true", help="Include inactive budgets"
    )
    list_parser.set_defaults(func=cmd_list)

    # budgets create
    create_parser = budgets_subparsers.add_parser(
        "create",
        help="Create a budget",
        epilog="""
Examples:
  python -m cli budgets create Food 400
  python -m cli budgets create Travel 3000 --period yearly
        """,
    )
    create_parser.add_argument("category")
    create_parser.add_argument("limit", help="Positive spending limit per period")
    create_parser.add_argument(
        "--period", choices=periods, default=BudgetPeriod.MONTHLY.value
    )
    create_parser.set_defaults(func=cmd_create)

    # budgets update
    update_parser = budgets_subparsers.add_parser("update", help="Update a budget")
    update_parser.add_argument("budget_id", type=int)
    update_parser.add_argument("--limit")
    update_parser.add_argument("--period", choices=periods)
    active_group = update_parser.add_mutually_exclusive_group()
    active_group.add_argument("--activate", action="store_true")
    active_group.add_argument("--deactivate", action="store_true")
    update_parser.set_defaults(func=cmd_update)

    # budgets delete
    delete_parser = budgets_subparsers.add_parser("delete", help="Delete a budget")
    delete_parser.add_argument("budget_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)

    # budgets status
    status_parser = budgets_subparsers.add_parser(
        "status", help="Show spending for the current period of each budget"
    )
    status_parser.set_defaults(func=cmd_status)

    # budgets analytics
    analytics_parser = budgets_subparsers.add_parser(
        "analytics", help="Show totals across all budgets"
    )
    analytics_parser.set_defaults(func=cmd_analytics)
