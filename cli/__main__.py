#!/usr/bin/env python3
"""
Pocketbook CLI - Command-line interface for tracking transactions, budgets and goals.

Usage:
    python -m cli [--user USER] <command> <subcommand> [options]

Commands:
    transactions Record and analyze income and expenses
    budgets      Manage category budgets
    goals        Manage savings goals
    accounts     Manage financial accounts
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli --user alice transactions add 12.50 "Lunch" Food --type expense
    python -m cli --user alice budgets create Food 400 --period monthly
    python -m cli --user alice budgets status
    python -m cli --user alice goals progress 3 250
"""

import sys
import argparse
from cli import accounts, budgets, goals, migrate, transactions
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Pocketbook - Personal finance tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--user",
        help="User to act as (defaults to auth.user in ~/.config/pocketbook.toml)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    transactions.setup_parser(subparsers)
    budgets.setup_parser(subparsers)
    goals.setup_parser(subparsers)
    accounts.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            if args.command == "migrate":
                # Migrate commands need db_manager for raw database operations
                args.func(args, DatabaseManager(config))
            else:
                args.user = args.user or config.user
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
