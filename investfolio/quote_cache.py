"""Time-bounded cache of market quotes.

Keeps the last known quote per symbol so repeated valuations don't hit the
rate-limited provider. Concurrent requests for the same symbols share one
in-flight fetch.
"""

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from investfolio.api_client import QuoteProviderError, RateLimitedError
from investfolio.quotes import Quote, normalize_symbol

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_WAIT_TIMEOUT_SECONDS = 30.0

Fetcher = Callable[[Sequence[str]], Iterable[Quote]]


@dataclass(frozen=True)
class _Entry:
    quote: Quote
    inserted_at: float


class QuoteCache:
    """Quote cache with an injectable TTL and clock.

    Entries older than ``ttl`` seconds are not returned by ``get`` but are
    kept so they can be served when a refetch fails.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT_SECONDS,
    ):
        """Initialize the cache.

        Args:
            ttl: Seconds a quote stays fresh
            clock: Monotonic time source in seconds
            wait_timeout: Max seconds to wait on another caller's fetch when
                there is no cached quote to serve meanwhile
        """
        self.ttl = ttl
        self.wait_timeout = wait_timeout
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._in_flight: dict[str, Future] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, symbol: str) -> Optional[Quote]:
        """Return the cached quote if it is still fresh, else None."""
        with self._lock:
            return self._fresh(normalize_symbol(symbol))

    def put(self, symbol: str, quote: Quote) -> bool:
        """Cache a quote.

        Returns:
            False if a quote with a newer ``as_of`` is already cached and the
            write was skipped
        """
        with self._lock:
            return self._store(normalize_symbol(symbol), quote)

    def invalidate(self, symbol: str) -> None:
        with self._lock:
            self._entries.pop(normalize_symbol(symbol), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_fetch_many(
        self, symbols: Iterable[str], fetcher: Fetcher
    ) -> dict[str, Quote]:
        """Return quotes for symbols, fetching stale or missing ones in one call.

        Fresh entries are served without a network call. The rest are passed
        to ``fetcher`` in a single batch, unless another caller is already
        fetching them; in that case a stale entry is served immediately, or
        the call waits for that fetch when nothing is cached.

        Never raises on fetch failure: stale entries are served and symbols
        with no cached quote are omitted from the result.

        Args:
            symbols: Symbols to resolve
            fetcher: Callable taking a list of symbols and returning Quotes

        Returns:
            Mapping of upper-cased symbol to Quote, in request order
        """
        wanted = [s for s in dict.fromkeys(normalize_symbol(s) for s in symbols) if s]
        found: dict[str, Quote] = {}
        to_fetch: list[str] = []
        pending: dict[str, Future] = {}
        own_future: Future | None = None
        started_at = 0.0

        with self._lock:
            for symbol in wanted:
                quote = self._fresh(symbol)
                if quote is not None:
                    found[symbol] = quote
                elif symbol in self._in_flight:
                    pending[symbol] = self._in_flight[symbol]
                else:
                    to_fetch.append(symbol)

            if to_fetch:
                own_future = Future()
                started_at = self._clock()
                for symbol in to_fetch:
                    self._in_flight[symbol] = own_future

        if to_fetch:
            logger.debug(
                f"Quote cache: {len(found)} fresh, fetching {len(to_fetch)}: "
                f"{', '.join(to_fetch)}"
            )
            self._fetch(to_fetch, fetcher, own_future, started_at)
            with self._lock:
                for symbol in to_fetch:
                    entry = self._entries.get(symbol)
                    if entry is not None:
                        found[symbol] = entry.quote

        for symbol, future in pending.items():
            entry = self._peek(symbol)
            if entry is None:
                try:
                    future.result(timeout=self.wait_timeout)
                except FutureTimeoutError:
                    logger.warning(
                        f"Timed out waiting for in-flight quote fetch of {symbol}"
                    )
                entry = self._peek(symbol)
            if entry is not None:
                found[symbol] = entry.quote

        return {symbol: found[symbol] for symbol in wanted if symbol in found}

    def _fetch(
        self,
        symbols: list[str],
        fetcher: Fetcher,
        future: Future,
        started_at: float,
    ) -> None:
        try:
            quotes = list(fetcher(symbols) or [])
        except RateLimitedError as e:
            logger.warning(f"Quote provider rate limited, serving cached quotes: {e}")
        except QuoteProviderError as e:
            logger.warning(f"Quote fetch failed, serving cached quotes: {e}")
        except Exception as e:
            logger.error(f"Unexpected error fetching quotes: {str(e)}", exc_info=True)
        else:
            self._store_fetched(symbols, quotes, started_at)
        finally:
            with self._lock:
                for symbol in symbols:
                    if self._in_flight.get(symbol) is future:
                        del self._in_flight[symbol]
            future.set_result(None)

    def _store_fetched(self, symbols: list[str], quotes: list, started_at: float) -> None:
        returned = set()
        with self._lock:
            for quote in quotes:
                try:
                    symbol = normalize_symbol(quote.symbol)
                    self._store(symbol, quote, started_at)
                except Exception as e:
                    logger.error(f"Discarding unusable quote {quote!r}: {str(e)}", exc_info=True)
                    continue
                returned.add(symbol)
        missing = [s for s in symbols if s not in returned]
        if missing:
            logger.info(f"No quotes returned for: {', '.join(missing)}")

    def _peek(self, symbol: str) -> Optional[_Entry]:
        with self._lock:
            return self._entries.get(symbol)

    def _fresh(self, symbol: str) -> Optional[Quote]:
        entry = self._entries.get(symbol)
        if entry is None:
            return None
        if self._clock() - entry.inserted_at >= self.ttl:
            return None
        return entry.quote

    def _store(self, symbol: str, quote: Quote, started_at: float | None = None) -> bool:
        existing = self._entries.get(symbol)
        if existing is not None:
            if existing.quote.as_of > quote.as_of:
                logger.debug(f"Skipping older quote for {symbol}")
                return False
            if started_at is not None and existing.inserted_at > started_at:
                logger.debug(f"Skipping superseded quote for {symbol}")
                return False
        self._entries[symbol] = _Entry(quote, self._clock())
        return True
