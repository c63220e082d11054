"""Market quote value objects and the provider interface."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol, Sequence


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_symbol(symbol: str | None) -> str:
    return (symbol or "").strip().upper()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so quote timestamps stay comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Quote:
    """Price snapshot for one symbol.

    A naive ``as_of`` is taken to be UTC.
    """

    symbol: str
    price: Decimal
    change_percent: Decimal = Decimal("0")
    as_of: datetime = field(default_factory=utcnow)
    short_name: Optional[str] = None
    long_name: Optional[str] = None
    currency: str = "BRL"
    logo_url: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "as_of", as_utc(self.as_of))


class QuoteProvider(Protocol):
    """External market-data source.

    May return fewer quotes than requested. Raises a QuoteProviderError
    subclass on failure; rate limiting is a RateLimitedError.
    """

    def fetch_quotes(self, symbols: Sequence[str]) -> list[Quote]: ...
