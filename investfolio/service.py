"""Portfolio service: composes classifier, ledger, quote cache and valuation.

This is the entry point a UI or CLI drives. Each method is one user action or
timer tick.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from investfolio.allocation import (
    AllocationSlice,
    PortfolioTotals,
    aggregate,
    project_growth,
    totals,
)
from investfolio.catalog import KnownAssetCatalog
from investfolio.categories import Category
from investfolio.classifier import (
    MIN_INPUT_LENGTH,
    Classification,
    classify_detailed,
    normalize_input,
)
from investfolio.errors import PersistenceError
from investfolio.known_assets import POPULAR_STOCKS, KnownAsset, KnownAssetSource
from investfolio.ledger import PortfolioLedger
from investfolio.position import Position, PositionDraft
from investfolio.quote_cache import QuoteCache
from investfolio.quotes import Quote, QuoteProvider, utcnow
from investfolio.valuation import quote_symbols, revalue

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_LIMIT = 8


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of one quote refresh.

    ``unavailable`` lists symbols with no quote this cycle; their positions
    kept their previous values. ``rewardable`` is True for manual refreshes
    that revalued at least one position.
    """

    manual: bool
    quotes: dict[str, Quote] = field(default_factory=dict)
    touched_ids: list[str] = field(default_factory=list)
    unavailable: list[str] = field(default_factory=list)
    persisted: bool = False
    refreshed_at: Optional[datetime] = None

    @property
    def rewardable(self) -> bool:
        return self.manual and bool(self.touched_ids)


class PortfolioService:
    def __init__(
        self,
        ledger: PortfolioLedger,
        cache: QuoteCache,
        provider: QuoteProvider,
        catalog: Optional[KnownAssetCatalog] = None,
        suggestions: Optional[KnownAssetSource] = None,
    ):
        """Compose the engine.

        Args:
            ledger: The user's ledger
            cache: Quote cache shared by every refresh
            provider: Market-data provider
            catalog: Known-asset catalog used for classification
            suggestions: Autocomplete source; defaults to the catalog
        """
        self.ledger = ledger
        self.cache = cache
        self.provider = provider
        self.catalog = catalog
        self.suggestions = suggestions or catalog
        self.quotes: dict[str, Quote] = {}
        self.last_updated: Optional[datetime] = None
        self._quotes_lock = threading.Lock()

    def suggest(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[KnownAsset]:
        """Autocomplete suggestions; empty for inputs shorter than 2 chars."""
        if self.suggestions is None or len(normalize_input(query)) < MIN_INPUT_LENGTH:
            return []
        return self.suggestions.search(query, limit)

    def classify(self, name: str) -> Classification:
        known = self.catalog.all() if self.catalog is not None else None
        return classify_detailed(name, known)

    def add_asset(
        self,
        name: str,
        amount_invested: Any,
        quantity: Any = None,
        category: Category | str | None = None,
    ) -> Position:
        """Add a position, classifying the name when no category is given.

        Raises:
            ValidationError: If the amounts are invalid
            PersistenceError: If the position can't be stored
        """
        if category is None:
            classification = self.classify(name)
            category = classification.category
            if classification.ambiguous:
                logger.warning(
                    f"Could not classify {normalize_input(name)!r}; "
                    f"filed under {category.label}"
                )
        else:
            category = Category.parse(category)

        return self.ledger.add(PositionDraft(name, amount_invested, quantity, category))

    def edit_asset(self, position_id: str, amount_invested: Any, quantity: Any = None) -> Position:
        """Edit a position's cost basis, then revalue it from a cached quote.

        The edit resets valuation to the new amount invested. When a fresh
        quote for the asset is cached, the position is revalued right away
        without a network call.

        Raises:
            NotFoundError: If the id is unknown
            ValidationError: If the new values are invalid
            PersistenceError: If the edit can't be stored
        """
        updated = self.ledger.edit(position_id, amount_invested, quantity)

        quote = self.cache.get(updated.asset_name)
        if quote is None:
            return updated

        result = revalue([updated], {quote.symbol: quote})
        try:
            self.ledger.apply_valuation(result, persist=True)
        except PersistenceError as e:
            logger.warning(f"Edited {position_id} but could not store its valuation: {e}")
        return self.ledger.get(position_id)

    def remove_asset(self, position_id: str) -> None:
        self.ledger.remove(position_id)

    def refresh_quotes(self, manual: bool = False) -> RefreshOutcome:
        """Fetch quotes for listed positions and revalue them.

        Automatic refreshes (on load) update the ledger in memory only;
        manual refreshes also persist the new values.

        Raises:
            PersistenceError: If a manual refresh can't store new values
        """
        positions = self.ledger.list()
        symbols = quote_symbols(positions)
        if not symbols:
            return RefreshOutcome(manual=manual)

        quotes = self.cache.get_or_fetch_many(symbols, self.provider.fetch_quotes)
        refreshed_at = utcnow()
        with self._quotes_lock:
            self.quotes.update(quotes)
            self.last_updated = refreshed_at

        unavailable = [s for s in symbols if s not in quotes]
        if unavailable:
            logger.info(f"Valuation unavailable this cycle for: {', '.join(unavailable)}")

        result = revalue(positions, quotes)
        applied = self.ledger.apply_valuation(result, persist=manual)

        logger.info(
            f"Refreshed {len(quotes)}/{len(symbols)} quotes, "
            f"revalued {len(applied)} positions"
        )
        return RefreshOutcome(
            manual=manual,
            quotes=quotes,
            touched_ids=[p.id for p in applied],
            unavailable=unavailable,
            persisted=manual and bool(applied),
            refreshed_at=refreshed_at,
        )

    def market_movers(self) -> list[Quote]:
        """Quotes for popular B3 stocks, best daily change first."""
        symbols = [asset.symbol for asset in POPULAR_STOCKS]
        quotes = self.cache.get_or_fetch_many(symbols, self.provider.fetch_quotes)
        return sorted(quotes.values(), key=lambda q: q.change_percent, reverse=True)

    def allocation(self) -> list[AllocationSlice]:
        return aggregate(self.ledger.list())

    def totals(self) -> PortfolioTotals:
        return totals(self.ledger.list())

    def project_growth(
        self, monthly_contribution: Any, annual_rate_pct: Any, years: Any
    ) -> Decimal:
        """Project the current portfolio value ``years`` ahead.

        Raises:
            ValidationError: If an input is not a number or is out of range
        """
        return project_growth(
            self.totals().current_value, monthly_contribution, annual_rate_pct, years
        )
