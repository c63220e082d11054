"""Unit tests for quote value objects."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from investfolio.quotes import Quote, as_utc, normalize_symbol


class TestQuote:
    def test_naive_as_of_is_treated_as_utc(self):
        quote = Quote("PETR4", Decimal("38.50"), as_of=datetime(2030, 1, 1))
        assert quote.as_of.tzinfo is timezone.utc
        assert quote.as_of > datetime(2029, 12, 31, tzinfo=timezone.utc)

    def test_aware_as_of_is_kept(self):
        brt = timezone(timedelta(hours=-3))
        as_of = datetime(2026, 10, 16, 17, 0, tzinfo=brt)
        assert Quote("PETR4", Decimal("38.50"), as_of=as_of).as_of is as_of

    def test_default_as_of_is_aware(self):
        assert Quote("PETR4", Decimal("38.50")).as_of.tzinfo is not None


def test_as_utc_leaves_aware_values_alone():
    value = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert as_utc(value) is value


def test_normalize_symbol():
    assert normalize_symbol(" petr4 ") == "PETR4"
    assert normalize_symbol(None) == ""
