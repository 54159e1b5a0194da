"""Error kinds raised by the service layer.

All errors carry a human-readable message that is surfaced verbatim to the
caller.
"""

from typing import Optional


class FinanceError(Exception):
    """Base class for all application errors."""


class AuthenticationRequired(FinanceError):
    """Raised when a mutation is attempted without a caller identity."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFoundOrForbidden(FinanceError):
    """Raised when a record is missing or owned by another user.

    Both cases share one error so callers cannot probe for record existence.
    """

    def __init__(self, kind: str):
        super().__init__(f"{kind} not found or access denied")
        self.kind = kind


class ValidationFailed(FinanceError, ValueError):
    """Raised when an input field violates a constraint."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictActiveBudgetExists(FinanceError):
    """Raised when a second active budget is created for the same category."""

    def __init__(self, category: str):
        super().__init__(f"Active budget already exists for category: {category}")
        self.category = category


class InvalidState(FinanceError):
    """Raised when an operation is not allowed in the record's current state."""
