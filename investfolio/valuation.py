"""Quote-driven revaluation of positions.

Only listed assets with a quantity are revalued from quotes. Crypto, fixed
income and other positions keep their manually entered values until edited.
"""

from dataclasses import dataclass
from typing import Mapping, Sequence

from investfolio.categories import Category
from investfolio.position import Position
from investfolio.quotes import Quote, normalize_symbol

# Whether a category's current value follows exchange quotes
QUOTE_DRIVEN: dict[Category, bool] = {
    Category.EQUITY: True,
    Category.REIT: True,
    Category.CRYPTO: False,
    Category.FIXED_INCOME: False,
    Category.OTHER: False,
}

if set(QUOTE_DRIVEN) != set(Category):
    raise RuntimeError("QUOTE_DRIVEN must cover every Category")


@dataclass(frozen=True)
class ValuationResult:
    updated_positions: list[Position]
    touched_ids: list[str]


def quote_symbols(positions: Sequence[Position]) -> list[str]:
    """Symbols worth fetching quotes for, in first-occurrence order."""
    symbols = (
        normalize_symbol(p.asset_name) for p in positions if QUOTE_DRIVEN[p.category]
    )
    return list(dict.fromkeys(s for s in symbols if s))


def revalue(
    positions: Sequence[Position], quotes: Mapping[str, Quote]
) -> ValuationResult:
    """Recompute current value and performance from quotes.

    A position is revalued when its category is quote driven, a quote exists
    for its asset name and it has a positive quantity. All other positions are
    returned unchanged. A missing quote never affects other positions.

    Args:
        positions: Positions in display order
        quotes: Quotes keyed by upper-cased symbol

    Returns:
        ValuationResult with every position (same order) and the ids that
        were revalued
    """
    updated = []
    touched = []

    for position in positions:
        quote = quotes.get(normalize_symbol(position.asset_name))
        if (
            QUOTE_DRIVEN[position.category]
            and quote is not None
            and position.quantity is not None
            and position.quantity > 0
        ):
            position = position.revalued(position.quantity * quote.price)
            touched.append(position.id)
        updated.append(position)

    return ValuationResult(updated_positions=updated, touched_ids=touched)
