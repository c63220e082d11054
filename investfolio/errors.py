"""Exceptions raised by ledger operations.

Only validation and lookup failures are raised to callers of mutating
operations. Quote and classification problems degrade the result instead.
"""


class InvestfolioError(Exception):
    """Base exception for portfolio engine errors."""

    pass


class ValidationError(InvestfolioError):
    """Raised when user input is malformed or out of range."""

    pass


class NotFoundError(InvestfolioError):
    """Raised when an operation references an unknown position id."""

    pass


class PersistenceError(InvestfolioError):
    """Raised when durable storage rejects a mutation.

    The in-memory ledger is left in its pre-mutation state.
    """

    pass
