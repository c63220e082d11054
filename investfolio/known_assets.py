"""Known-asset reference records.

Known assets improve classification accuracy and drive autocomplete. They are
read-only from the engine's point of view.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from investfolio.categories import Category


@dataclass(frozen=True)
class KnownAsset:
    symbol: str
    display_name: str
    category: Category
    sector: Optional[str] = None
    logo_url: Optional[str] = None


class KnownAssetSource(Protocol):
    """Anything that can suggest known assets for a query.

    Implementations return an empty list on no match or on their own failure.
    """

    def search(self, query: str, limit: int = 10) -> list[KnownAsset]: ...


POPULAR_STOCKS = (
    KnownAsset("PETR4", "Petrobras PN", Category.EQUITY),
    KnownAsset("VALE3", "Vale ON", Category.EQUITY),
    KnownAsset("ITUB4", "Itaú Unibanco PN", Category.EQUITY),
    KnownAsset("BBDC4", "Bradesco PN", Category.EQUITY),
    KnownAsset("BBAS3", "Banco do Brasil ON", Category.EQUITY),
    KnownAsset("WEGE3", "WEG ON", Category.EQUITY),
    KnownAsset("ABEV3", "Ambev ON", Category.EQUITY),
    KnownAsset("MGLU3", "Magazine Luiza ON", Category.EQUITY),
    KnownAsset("RENT3", "Localiza ON", Category.EQUITY),
    KnownAsset("B3SA3", "B3 ON", Category.EQUITY),
)

POPULAR_CRYPTOS = (
    KnownAsset("BTC", "Bitcoin", Category.CRYPTO),
    KnownAsset("ETH", "Ethereum", Category.CRYPTO),
    KnownAsset("BNB", "Binance Coin", Category.CRYPTO),
    KnownAsset("SOL", "Solana", Category.CRYPTO),
    KnownAsset("XRP", "Ripple", Category.CRYPTO),
    KnownAsset("USDT", "Tether", Category.CRYPTO),
)
