#!/usr/bin/env python3

import sys

from errors import FinanceError
from logger import get_logger
from models.account import AccountType

logger = get_logger()


def cmd_list(args, services):
    """List accounts."""
    accounts = services.accounts.list(args.user, include_inactive=args.all)

    if not accounts:
        logger.info("No accounts found.")
        return

    logger.info("\nAccounts:")
    logger.info("=" * 80)
    for account in accounts:
        logger.info(f"ID: {account.id}")
        logger.info(f"Name: {account.name}")
        logger.info(f"Type: {account.type.value}")
        logger.info(f"Balance: {account.balance:,.2f} {account.currency}")
        if account.institution:
            logger.info(f"Institution: {account.institution}")
        if not account.is_active:
            logger.info("Status: inactive")
        logger.info("-" * 80)

    logger.info(f"\nTotal accounts: {len(accounts)}")


def cmd_create(args, services):
    """Create a new account."""
    try:
        account = services.accounts.create(
            args.user,
            name=args.name,
            account_type=args.type,
            balance=args.balance,
            currency=args.currency,
            institution=args.institution,
            account_number=args.account_number,
        )
    except FinanceError as e:
        logger.error(f"Error creating account: {e}")
        sys.exit(1)

    logger.info(f"\n✓ Account created successfully with ID: {account.id}")
    logger.info(f"  Name: {account.name}")
    logger.info(f"  Type: {account.type.value}")
    logger.info(f"  Balance: {account.balance:,.2f} {account.currency}")


def cmd_update(args, services):
    """Update an account."""
    fields = {}
    for name in ("name", "type", "balance", "currency", "institution", "account_number"):
        if getattr(args, name) is not None:
            fields[name] = getattr(args, name)
    if args.close:
        fields["is_active"] = False
    if args.reopen:
        fields["is_active"] = True

    if not fields:
        logger.error("Nothing to update.")
        sys.exit(1)

    try:
        services.accounts.update(args.user, args.account_id, **fields)
    except FinanceError as e:
        logger.error(f"Error updating account: {e}")
        sys.exit(1)

    logger.info(f"✓ Account {args.account_id} updated")


def cmd_delete(args, services):
    """Delete an account."""
    try:
        services.accounts.delete(args.user, args.account_id)
    except FinanceError as e:
        logger.error(f"Error deleting account: {e}")
        sys.exit(1)

    logger.info(f"✓ Account {args.account_id} deleted")


def setup_parser(subparsers):
    """Setup accounts subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "accounts",
        help="Manage accounts",
        description="Create and list financial accounts",
    )

    accounts_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available account commands",
        dest="subcommand",
        required=True,
    )

    types = [t.value for t in AccountType]

    # accounts list
    list_parser = accounts_subparsers.add_parser("list", help="List accounts")
    list_parser.add_argument(
        "--all", action="store_true", help="Include closed accounts"
    )
    list_parser.set_defaults(func=cmd_list)

    # accounts create
    create_parser = accounts_subparsers.add_parser("create", help="Create an account")
    create_parser.add_argument("name")
    create_parser.add_argument("--type", choices=types, required=True)
    create_parser.add_argument("--balance", default="0")
    create_parser.add_argument("--currency", default="USD")
    create_parser.add_argument("--institution")
    create_parser.add_argument("--account-number")
    create_parser.set_defaults(func=cmd_create)

    # accounts update
    update_parser = accounts_subparsers.add_parser("update", help="Update an account")
    update_parser.add_argument("account_id", type=int)
    update_parser.add_argument("--name")
    update_parser.add_argument("--type", choices=types)
    update_parser.add_argument("--balance")
    update_parser.add_argument("--currency")
    update_parser.add_argument("--institution")
    update_parser.add_argument("--account-number")
    status_group = update_parser.add_mutually_exclusive_group()
    status_group.add_argument("--close", action="store_true")
    status_group.add_argument("--reopen", action="store_true")
    update_parser.set_defaults(func=cmd_update)

    # accounts delete
    delete_parser = accounts_subparsers.add_parser("delete", help="Delete an account")
    delete_parser.add_argument("account_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)
