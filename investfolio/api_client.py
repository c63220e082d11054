"""BRAPI (brapi.dev) market-data client.

Fetches B3 quotes and ticker suggestions over HTTPS. Free-tier data is
delayed by about 15 minutes and requests are rate limited, so 429 responses
are expected and retried with backoff.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

import requests
from tenacity import (
    Retrying,
    after_log,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from investfolio.categories import Category
from investfolio.known_assets import KnownAsset
from investfolio.quotes import Quote, as_utc, normalize_symbol, utcnow

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://brapi.dev/api"

# BRAPI "type" field of /quote/list entries
_LIST_TYPE_CATEGORIES = {
    "stock": Category.EQUITY,
    "bdr": Category.EQUITY,
    "fund": Category.REIT,
}


class QuoteProviderError(Exception):
    """Base exception for market-data provider errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(QuoteProviderError):
    """Raised when the API token is missing, invalid or lacks permission."""

    pass


class NetworkError(QuoteProviderError):
    """Raised when network/connectivity errors occur."""

    pass


class APIError(QuoteProviderError):
    """Raised when API returns a retryable error response (5xx)."""

    pass


class RateLimitedError(APIError):
    """Raised on HTTP 429. Retryable, and never fatal to callers."""

    pass


class ClientError(QuoteProviderError):
    """Raised when API returns a non-retryable client error (400, 404, etc.)."""

    pass


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    if not value:
        return default
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return default
    return as_utc(parsed)


def parse_quote(item: dict[str, Any], fetched_at: datetime | None = None) -> Quote | None:
    """Convert one entry of a /quote response into a Quote.

    Returns None for entries without a symbol or a usable price.
    """
    fetched_at = fetched_at or utcnow()
    symbol = normalize_symbol(item.get("symbol"))
    price = _to_decimal(item.get("regularMarketPrice"))
    if not symbol or price is None or price < 0:
        return None

    return Quote(
        symbol=symbol,
        price=price,
        change_percent=_to_decimal(item.get("regularMarketChangePercent"))
        or Decimal("0"),
        as_of=_parse_timestamp(item.get("regularMarketTime"), fetched_at),
        short_name=item.get("shortName"),
        long_name=item.get("longName"),
        currency=item.get("currency") or "BRL",
        logo_url=item.get("logourl"),
    )


class BrapiClient:
    """Client for the BRAPI REST API.

    Handles token injection, status mapping and retry logic. Retries cover
    network failures, 5xx responses and rate limiting; client errors are
    raised immediately.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: int = 30,
        max_attempts: int = 3,
        backoff_multiplier: float = 1,
        max_backoff: float = 30,
    ):
        """Initialize API client.

        Args:
            base_url: Base URL for API (default: https://brapi.dev/api)
            token: BRAPI access token (optional on the free tier)
            timeout: Request timeout in seconds (default: 30)
            max_attempts: Attempts per request including the first one
            backoff_multiplier: Exponential backoff multiplier in seconds
            max_backoff: Upper bound for a single backoff wait in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.max_attempts = max_attempts

        self.session = requests.Session()

        self._retrying = Retrying(
            retry=retry_if_exception_type((NetworkError, APIError)),
            # ClientError and AuthenticationError are NOT retried
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=backoff_multiplier, min=0, max=max_backoff),
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            after=after_log(logger, logging.DEBUG),
        )

    def fetch_quotes(self, symbols: Sequence[str]) -> list[Quote]:
        """Fetch quotes for several symbols in one request.

        Args:
            symbols: Tickers to fetch (e.g., ["PETR4", "HGLG11"])

        Returns:
            Quotes for the symbols BRAPI knows about; may be fewer than
            requested. Unknown tickers (404) yield an empty list.

        Raises:
            AuthenticationError: If the token is rejected (401/403)
            RateLimitedError: If still rate limited after retries (429)
            NetworkError: If the API is not reachable
            APIError: For server errors after retries (5xx)
        """
        wanted = [s for s in dict.fromkeys(normalize_symbol(s) for s in symbols) if s]
        if not wanted:
            return []

        endpoint = f"/quote/{','.join(wanted)}"
        try:
            data = self._get(endpoint, params={"fundamental": "true"})
        except ClientError as e:
            if e.status_code == 404:
                logger.info(f"No quotes found for {', '.join(wanted)}")
                return []
            raise

        fetched_at = utcnow()
        quotes = []
        for item in (data or {}).get("results") or []:
            quote = parse_quote(item, fetched_at)
            if quote is not None:
                quotes.append(quote)

        logger.debug(f"Received {len(quotes)}/{len(wanted)} quotes from {endpoint}")
        return quotes

    def search(self, query: str, limit: int = 10) -> list[KnownAsset]:
        """Search tickers by symbol or company name.

        Never raises: provider failures are logged and yield an empty list,
        so suggestions can't block classification.
        """
        query = (query or "").strip()
        if not query:
            return []

        try:
            data = self._get("/quote/list", params={"search": query, "limit": limit})
        except QuoteProviderError as e:
            logger.warning(f"Ticker search failed for {query!r}: {e}")
            return []

        assets = []
        for stock in (data or {}).get("stocks") or []:
            symbol = normalize_symbol(stock.get("stock"))
            if not symbol:
                continue
            category = _LIST_TYPE_CATEGORIES.get(
                str(stock.get("type") or "").lower(), Category.OTHER
            )
            assets.append(
                KnownAsset(
                    symbol=symbol,
                    display_name=stock.get("name") or symbol,
                    category=category,
                    sector=stock.get("sector"),
                    logo_url=stock.get("logo"),
                )
            )
        return assets[:limit]

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request with retry logic."""
        return self._retrying(self._get_once, endpoint, params)

    def _get_once(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Make a single GET request and map the response status.

        Args:
            endpoint: API endpoint path (e.g., "/quote/PETR4")
            params: Optional query parameters

        Returns:
            Response JSON data

        Raises:
            AuthenticationError: If token is rejected (401/403)
            RateLimitedError: If rate limited (429)
            APIError: For server errors (5xx)
            ClientError: For other client errors or invalid JSON
            NetworkError: If the API is not reachable
        """
        url = f"{self.base_url}{endpoint}"

        query = dict(params or {})
        if self.token:
            query["token"] = self.token

        logger.info(f"Making API request: GET {endpoint}")
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise NetworkError(
                f"Request timeout for {endpoint} after {self.timeout}s"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"BRAPI not reachable at {self.base_url}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error for {endpoint}: {str(e)}") from e

        status = response.status_code
        logger.debug(f"Response status: {status} for {endpoint}")

        if status == 401:
            raise AuthenticationError(
                "BRAPI token missing or invalid. Set BRAPI_TOKEN and retry.", status
            )
        elif status == 403:
            raise AuthenticationError(
                f"BRAPI token not allowed to access {endpoint}.", status
            )
        elif status == 404:
            raise ClientError(f"Not found: {endpoint}", status)
        elif status == 429:
            raise RateLimitedError(
                f"Rate limit exceeded for {endpoint}. Retrying with backoff...", status
            )
        elif status >= 500:
            logger.warning(
                f"Server error {status} for {endpoint}. "
                "Will retry with exponential backoff..."
            )
            raise APIError(f"Server error {status} for {endpoint}", status)
        elif status >= 400:
            raise ClientError(
                f"Client error {status} for {endpoint}: {response.text[:200]}", status
            )

        try:
            return response.json()
        except ValueError as e:
            # Invalid JSON is a client error - don't retry
            logger.error(f"Invalid JSON response from {endpoint}: {str(e)}")
            raise ClientError(f"Invalid JSON response from {endpoint}: {str(e)}") from e
