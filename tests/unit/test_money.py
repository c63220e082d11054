"""Unit tests for money parsing and fixed-point conversion."""

from decimal import Decimal

import pytest

from investfolio.errors import ValidationError
from investfolio.money import (
    from_micros,
    parse_decimal,
    parse_optional_decimal,
    performance_pct,
    to_micros,
)


class TestParseDecimal:
    """Test user-typed number parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1000", Decimal("1000")),
            ("12,5", Decimal("12.5")),
            ("12.5", Decimal("12.5")),
            ("1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            ("1.234.567", Decimal("1234567")),
            ("R$ 1.500,00", Decimal("1500.00")),
            ("  42 ", Decimal("42")),
            ("-3,5", Decimal("-3.5")),
        ],
    )
    def test_parses_pt_br_and_en_us_formats(self, text, expected):
        assert parse_decimal(text) == expected

    def test_accepts_numbers(self):
        assert parse_decimal(10) == Decimal("10")
        assert parse_decimal(0.1) == Decimal("0.1")
        assert parse_decimal(Decimal("2.50")) == Decimal("2.50")

    @pytest.mark.parametrize("value", ["", "   ", None, True])
    def test_missing_values_are_required(self, value):
        with pytest.raises(ValidationError, match="is required"):
            parse_decimal(value, "amount_invested")

    @pytest.mark.parametrize("value", ["abc", "1e5", "1.2.3,4,5", "--1", "1 000x"])
    def test_rejects_non_numeric_text(self, value):
        with pytest.raises(ValidationError, match="not a valid number"):
            parse_decimal(value)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("Infinity")])
    def test_rejects_non_finite(self, value):
        with pytest.raises(ValidationError, match="finite"):
            parse_decimal(value)

    def test_rejects_unsupported_type(self):
        with pytest.raises(ValidationError, match="unsupported type"):
            parse_decimal([1])


class TestParseOptionalDecimal:
    def test_blank_means_absent(self):
        assert parse_optional_decimal(None) is None
        assert parse_optional_decimal("  ") is None

    def test_value_is_parsed(self):
        assert parse_optional_decimal("0,5") == Decimal("0.5")


class TestMicros:
    def test_round_trip(self):
        assert to_micros(Decimal("38.123456")) == 38_123_456
        assert from_micros(38_123_456) == Decimal("38.123456")

    def test_none_stays_none(self):
        assert from_micros(None) is None


class TestPerformancePct:
    def test_gain_and_loss(self):
        assert performance_pct(Decimal("1100"), Decimal("1000")) == Decimal("10")
        assert performance_pct(Decimal("900"), Decimal("1000")) == Decimal("-10")

    def test_zero_invested_is_zero(self):
        assert performance_pct(Decimal("50"), Decimal("0")) == Decimal("0")
