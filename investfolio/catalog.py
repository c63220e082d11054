"""Known-asset catalog backed by the ``known_assets`` table.

Active assets are loaded once and kept for a few minutes. Lookup failures
are logged and treated as "no match" so they never block classification.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from investfolio.categories import Category
from investfolio.classifier import Classification, classify_detailed, normalize_input
from investfolio.database import Database, DatabaseError, SQLiteError
from investfolio.known_assets import KnownAsset
from investfolio.models.active_model import ActiveModelError
from investfolio.models.known_asset import KnownAssetRecord

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_TTL_SECONDS = 300.0


class KnownAssetCatalog:
    def __init__(
        self,
        database: Database,
        ttl: float = DEFAULT_CATALOG_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.database = database
        self.ttl = ttl
        self._clock = clock
        self._assets: Optional[list[KnownAsset]] = None
        self._loaded_at = 0.0

    def all(self) -> list[KnownAsset]:
        """Active known assets ordered by symbol; empty on failure."""
        if self._assets is not None and self._clock() - self._loaded_at < self.ttl:
            return self._assets

        try:
            records = KnownAssetRecord.active(self.database)
        except (DatabaseError, SQLiteError, ValueError) as e:
            logger.error(f"Error fetching known assets: {e}")
            return []

        self._assets = [record.to_known_asset() for record in records]
        self._loaded_at = self._clock()
        logger.debug(f"Loaded {len(self._assets)} known assets")
        return self._assets

    def search(self, query: str, limit: int = 10) -> list[KnownAsset]:
        """Assets whose symbol or name contains the query (autocomplete)."""
        needle = normalize_input(query)
        if not needle:
            return []

        matches = [
            asset
            for asset in self.all()
            if needle in asset.symbol.upper() or needle in asset.display_name.upper()
        ]
        return matches[:limit]

    def validate(self, symbol: str) -> Optional[KnownAsset]:
        """Exact symbol or name match, or None."""
        needle = normalize_input(symbol)
        if not needle:
            return None
        for asset in self.all():
            if needle in (asset.symbol.upper(), asset.display_name.upper()):
                return asset
        return None

    def by_category(self, category: Category) -> list[KnownAsset]:
        return [asset for asset in self.all() if asset.category is category]

    def detect(self, ticker: str) -> Classification:
        """Classify a ticker using the catalog as the knowledge source."""
        return classify_detailed(ticker, self.all())

    def add_many(self, assets: Iterable[KnownAsset]) -> int:
        """Insert assets whose symbol is not present yet.

        Returns:
            Number of assets inserted
        """
        inserted = 0
        for asset in assets:
            symbol = normalize_input(asset.symbol)
            try:
                if KnownAssetRecord.find_by(self.database, symbol=symbol):
                    continue
                KnownAssetRecord.from_known_asset(self.database, asset).save()
            except ActiveModelError as e:
                logger.warning(f"Skipping invalid known asset {asset.symbol!r}: {e}")
                continue
            inserted += 1

        if inserted:
            self.clear_cache()
        return inserted

    def clear_cache(self) -> None:
        self._assets = None
        self._loaded_at = 0.0
