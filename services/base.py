"""Base services container for dependency injection."""

from typing import Optional

from config import Config
from db.manager import DatabaseManager
from errors import AuthenticationRequired


def require_user(user_id: Optional[str]) -> str:
    """Resolve the caller identity for a mutation.

    Args:
        user_id: Identity supplied by the authentication layer, or None.

    Returns:
        The user id.

    Raises:
        AuthenticationRequired: If there is no caller identity.
    """
    if not user_id:
        raise AuthenticationRequired()
    return user_id


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.accounts import AccountService
        from services.transactions import TransactionService
        from services.budgets import BudgetService
        from services.goals import GoalService

        self.accounts = AccountService(self.db_manager)
        self.transactions = TransactionService(self.db_manager)
        self.budgets = BudgetService(self.db_manager, self.transactions)
        self.goals = GoalService(self.db_manager)
