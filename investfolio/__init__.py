"""Asset classification and portfolio valuation engine.

Classifies free-text tickers into asset categories, keeps a per-user ledger of
positions and revalues it from cached market quotes.
"""

from investfolio.categories import Category
from investfolio.errors import (
    InvestfolioError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from investfolio.position import Position, PositionDraft

__all__ = [
    "Category",
    "InvestfolioError",
    "NotFoundError",
    "PersistenceError",
    "Position",
    "PositionDraft",
    "ValidationError",
]

__version__ = "0.1.0"
