#!/usr/bin/env python3

import sys
from datetime import datetime

from errors import FinanceError
from logger import get_logger
from models.goal import GoalPriority
from tools.goals import goal_progress

logger = get_logger()


def _parse_deadline(value: str) -> datetime:
    """Parse a YYYY-MM-DD (or full ISO) deadline argument."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.error(f"Invalid deadline '{value}'. Use YYYY-MM-DD format.")
        sys.exit(1)


def cmd_list(args, services):
    """List goals."""
    goals = services.goals.list(args.user, include_completed=args.all)

    if not goals:
        logger.info("No goals found.")
        return

    for goal in goals:
        deadline = f", due {goal.deadline:%Y-%m-%d}" if goal.deadline else ""
        done = "  ✓ completed" if goal.is_completed else ""
        logger.info(
            f"{goal.id:>5}  {goal.title:<25} ${goal.current_amount:,.2f} "
            f"of ${goal.target_amount:,.2f} ({goal_progress(goal):.1f}%)"
            f"  [{goal.priority.value}{deadline}]{done}"
        )


def cmd_create(args, services):
    """Create a savings goal."""
    deadline = _parse_deadline(args.deadline) if args.deadline else None

    try:
        goal = services.goals.create(
            args.user,
            title=args.title,
            target_amount=args.target,
            category=args.category,
            priority=args.priority,
            deadline=deadline,
            description=args.description,
        )
    except FinanceError as e:
        logger.error(f"Error creating goal: {e}")
        sys.exit(1)

    logger.info(f"✓ Goal created with ID: {goal.id}")
    logger.info(f"  {goal.title}: ${goal.target_amount:,.2f}")


def cmd_update(args, services):
    """Update goal details."""
    fields = {}
    for name in ("title", "category", "priority", "description"):
        if getattr(args, name) is not None:
            fields[name] = getattr(args, name)
    if args.target is not None:
        fields["target_amount"] = args.target
    if args.deadline is not None:
        fields["deadline"] = _parse_deadline(args.deadline)
    if args.clear_deadline:
        fields["deadline"] = None

    if not fields:
        logger.error("Nothing to update.")
        sys.exit(1)

    try:
        services.goals.update(args.user, args.goal_id, **fields)
    except FinanceError as e:
        logger.error(f"Error updating goal: {e}")
        sys.exit(1)

    logger.info(f"✓ Goal {args.goal_id} updated")


def cmd_progress(args, services):
    """Add money to a goal."""
    try:
        result = services.goals.update_progress(args.user, args.goal_id, args.amount)
    except FinanceError as e:
        logger.error(f"Error updating goal progress: {e}")
        sys.exit(1)

    logger.info(f"✓ {result.goal.title}: {result.progress:.1f}% complete")
    if result.is_completed:
        logger.info("  Goal reached!")
    else:
        logger.info(f"  ${result.remaining:,.2f} to go")


def cmd_delete(args, services):
    """Delete a goal."""
    try:
        services.goals.delete(args.user, args.goal_id)
    except FinanceError as e:
        logger.error(f"Error deleting goal: {e}")
        sys.exit(1)

    logger.info(f"✓ Goal {args.goal_id} deleted")


def cmd_stats(args, services):
    """Show goal counts, overall progress and upcoming deadlines."""
    stats = services.goals.get_stats(args.user)
    if stats is None:
        logger.info("No user specified.")
        return

    logger.info(
        f"Goals: {stats.total_goals} total, {stats.active_goals} active, "
        f"{stats.completed_goals} completed"
    )
    logger.info(
        f"Saved ${stats.total_current_amount:,.2f} of "
        f"${stats.total_target_amount:,.2f} ({stats.overall_progress:.1f}%)"
    )

    if stats.upcoming_deadlines:
        logger.info("Upcoming deadlines:")
        for goal in stats.upcoming_deadlines:
            logger.info(f"  {goal.deadline:%Y-%m-%d}  {goal.title}")


def setup_parser(subparsers):
    """Setup goals subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "goals",
        help="Manage savings goals",
        description="Create savings goals and record progress",
    )

    goals_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available goal commands",
        dest="subcommand",
        required=True,
    )

    priorities = [p.value for p in GoalPriority]

    # goals list
    list_parser = goals_subparsers.add_parser("list", help="List goals")
    list_parser.add_argument(
        "--all", action="store_true", help="Include completed goals"
    )
    list_parser.set_defaults(func=cmd_list)

    # goals create
    create_parser = goals_subparsers.add_parser(
        "create",
        help="Create a goal",
        epilog="""
Examples:
  python -m cli goals create "Emergency fund" 5000 Savings --priority high
  python -m cli goals create "New bike" 1200 Leisure --deadline 2026-06-01
        """,
    )
    create_parser.add_argument("title")
    create_parser.add_argument("target", help="Target amount")
    create_parser.add_argument("category")
    create_parser.add_argument(
        "--priority", choices=priorities, default=GoalPriority.MEDIUM.value
    )
    create_parser.add_argument("--deadline", help="Deadline in YYYY-MM-DD format")
    create_parser.add_argument("--description")
    create_parser.set_defaults(func=cmd_create)

    # goals update
    update_parser = goals_subparsers.add_parser("update", help="Update a goal")
    update_parser.add_argument("goal_id", type=int)
    update_parser.add_argument("--title")
    update_parser.add_argument("--target", help="New target amount")
    update_parser.add_argument("--category")
    update_parser.add_argument("--priority", choices=priorities)
    update_parser.add_argument("--description")
    deadline_group = update_parser.add_mutually_exclusive_group()
    deadline_group.add_argument("--deadline", help="Deadline in YYYY-MM-DD format")
    deadline_group.add_argument("--clear-deadline", action="store_true")
    update_parser.set_defaults(func=cmd_update)

    # goals progress
    progress_parser = goals_subparsers.add_parser(
        "progress", help="Add money saved towards a goal"
    )
    progress_parser.add_argument("goal_id", type=int)
    progress_parser.add_argument("amount", help="Positive amount to add")
    progress_parser.set_defaults(func=cmd_progress)

    # goals delete
    delete_parser = goals_subparsers.add_parser("delete", help="Delete a goal")
    delete_parser.add_argument("goal_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)

    # goals stats
    stats_parser = goals_subparsers.add_parser(
        "stats", help="Show progress across all goals"
    )
    stats_parser.set_defaults(func=cmd_stats)
