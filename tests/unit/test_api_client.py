"""Unit tests for the BRAPI client."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import requests
import requests_mock

from investfolio.api_client import (
    APIError,
    AuthenticationError,
    BrapiClient,
    ClientError,
    NetworkError,
    RateLimitedError,
    parse_quote,
)
from investfolio.categories import Category
from tests.fixtures.sample_responses import (
    sample_list_response,
    sample_quote_response,
    sample_quote_response_with_bad_entries,
)

BASE = "https://brapi.dev/api"


@pytest.fixture
def client():
    """Client that gives up after the first attempt."""
    return BrapiClient(max_attempts=1)


class TestBrapiClientInit:
    def test_init_defaults(self):
        client = BrapiClient()
        assert client.base_url == BASE
        assert client.token is None
        assert client.timeout == 30
        assert client.max_attempts == 3

    def test_init_strips_trailing_slash(self):
        client = BrapiClient(base_url="https://example.com/api/", timeout=5)
        assert client.base_url == "https://example.com/api"
        assert client.timeout == 5


class TestFetchQuotes:
    """Test quote fetching and parsing."""

    def test_fetch_quotes_success(self, client):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, json=sample_quote_response())
            quotes = client.fetch_quotes(["petr4", "HGLG11", "PETR4"])

            assert "/api/quote/PETR4,HGLG11?" in m.last_request.url
            assert m.last_request.qs["fundamental"] == ["true"]

        assert [q.symbol for q in quotes] == ["PETR4", "HGLG11"]
        petr4 = quotes[0]
        assert petr4.price == Decimal("38.5")
        assert petr4.change_percent == Decimal("1.24")
        assert petr4.as_of == datetime(2026, 10, 16, 20, 7, tzinfo=timezone.utc)
        assert petr4.currency == "BRL"
        assert petr4.logo_url.endswith("PETR4.svg")

    def test_token_is_sent_as_query_param(self):
        client = BrapiClient(token="abc123", max_attempts=1)
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, json={"results": []})
            client.fetch_quotes(["PETR4"])
            assert m.last_request.qs["token"] == ["abc123"]

    def test_entries_without_price_are_skipped(self, client):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, json=sample_quote_response_with_bad_entries())
            quotes = client.fetch_quotes(["VALE3", "XPTO3", "ABEV3"])
        assert [q.symbol for q in quotes] == ["VALE3"]

    def test_empty_symbols_make_no_request(self, client):
        with requests_mock.Mocker() as m:
            assert client.fetch_quotes(["", "  "]) == []
            assert m.call_count == 0

    def test_unknown_tickers_return_empty(self, client):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, status_code=404)
            assert client.fetch_quotes(["XPTO3"]) == []


class TestErrorMapping:
    """HTTP failures map onto the client's exception types."""

    @pytest.mark.parametrize(
        "status, error, message",
        [
            (401, AuthenticationError, "token missing or invalid"),
            (403, AuthenticationError, "not allowed"),
            (429, RateLimitedError, "Rate limit exceeded"),
            (500, APIError, "Server error 500"),
            (400, ClientError, "Client error 400"),
        ],
    )
    def test_status_codes(self, client, status, error, message):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, status_code=status, text="nope")
            with pytest.raises(error, match=message) as exc_info:
                client.fetch_quotes(["PETR4"])
        assert exc_info.value.status_code == status

    def test_rate_limit_is_an_api_error(self):
        assert issubclass(RateLimitedError, APIError)

    def test_connection_error_raises_network_error(self, client):
        with requests_mock.Mocker() as m:
            m.get(
                requests_mock.ANY,
                exc=requests.exceptions.ConnectionError("Connection refused"),
            )
            with pytest.raises(NetworkError, match="BRAPI not reachable"):
                client.fetch_quotes(["PETR4"])

    def test_timeout_raises_network_error(self, client):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, exc=requests.exceptions.Timeout("timed out"))
            with pytest.raises(NetworkError, match="Request timeout"):
                client.fetch_quotes(["PETR4"])

    def test_invalid_json_raises_client_error(self, client):
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, text="<html>maintenance</html>")
            with pytest.raises(ClientError, match="Invalid JSON"):
                client.fetch_quotes(["PETR4"])


class TestRetries:
    """Retryable failures are retried, client errors are not."""

    def test_server_error_then_success(self):
        client = BrapiClient(max_attempts=3, backoff_multiplier=0)
        with requests_mock.Mocker() as m:
            m.get(
                requests_mock.ANY,
                [
                    {"status_code": 503},
                    {"status_code": 429},
                    {"json": sample_quote_response(), "status_code": 200},
                ],
            )
            quotes = client.fetch_quotes(["PETR4", "HGLG11"])
            assert m.call_count == 3
        assert len(quotes) == 2

    def test_gives_up_after_max_attempts(self):
        client = BrapiClient(max_attempts=2, backoff_multiplier=0)
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, status_code=429)
            with pytest.raises(RateLimitedError):
                client.fetch_quotes(["PETR4"])
            assert m.call_count == 2

    def test_client_errors_are_not_retried(self):
        client = BrapiClient(max_attempts=3, backoff_multiplier=0)
        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, status_code=401)
            with pytest.raises(AuthenticationError):
                client.fetch_quotes(["PETR4"])
            assert m.call_count == 1


class TestSearch:
    """Ticker suggestions from /quote/list."""

    def test_search_maps_types_to_categories(self, client):
        with requests_mock.Mocker() as m:
            m.get(f"{BASE}/quote/list", json=sample_list_response())
            assets = client.search("petr")
            assert m.last_request.qs["search"] == ["petr"]
            assert m.last_request.qs["limit"] == ["10"]

        assert [(a.symbol, a.category) for a in assets] == [
            ("PETR4", Category.EQUITY),
            ("PETR3", Category.EQUITY),
            ("HGLG11", Category.REIT),
            ("P2ET34", Category.EQUITY),
        ]
        assert assets[0].display_name == "PETROBRAS PN"
        assert assets[0].sector == "Energy Minerals"

    def test_search_respects_limit(self, client):
        with requests_mock.Mocker() as m:
            m.get(f"{BASE}/quote/list", json=sample_list_response())
            assert len(client.search("petr", limit=2)) == 2

    def test_search_failure_returns_empty(self, client):
        with requests_mock.Mocker() as m:
            m.get(f"{BASE}/quote/list", status_code=500)
            assert client.search("petr") == []

    def test_blank_query_makes_no_request(self, client):
        with requests_mock.Mocker() as m:
            assert client.search("  ") == []
            assert m.call_count == 0


class TestParseQuote:
    def test_missing_timestamp_uses_fetch_time(self):
        fetched_at = datetime(2026, 1, 2, tzinfo=timezone.utc)
        quote = parse_quote({"symbol": "vale3", "regularMarketPrice": 62}, fetched_at)
        assert quote.symbol == "VALE3"
        assert quote.as_of == fetched_at
        assert quote.change_percent == Decimal("0")

    @pytest.mark.parametrize(
        "item",
        [
            {"symbol": "VALE3"},
            {"symbol": "VALE3", "regularMarketPrice": -1},
            {"symbol": "VALE3", "regularMarketPrice": True},
            {"regularMarketPrice": 10},
        ],
    )
    def test_unusable_entries(self, item):
        assert parse_quote(item) is None
