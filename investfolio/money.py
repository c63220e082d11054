"""Money and numeric input handling.

User-typed amounts arrive as strings with either "," or "." as the decimal
separator. Amounts are kept as Decimal inside the engine and stored as
fixed-point integers (micro-reais) in the database.
"""

import re
from decimal import Decimal, InvalidOperation

from investfolio.errors import ValidationError

# 6 decimal places, enough for sub-centavo unit prices
MICROS = 1_000_000

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def _normalize_separators(text: str) -> str:
    """Turn a pt-BR or en-US formatted number into a plain decimal string.

    When both separators appear, the last one is the decimal separator and the
    other one groups thousands. A single occurrence of either is a decimal
    separator ("12,5" and "12.5" are both 12.5). Repeated occurrences of only
    one kind are thousands groups ("1.234.567").
    """
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")

    for sep in (",", "."):
        count = text.count(sep)
        if count == 1:
            return text.replace(sep, ".")
        if count > 1:
            return text.replace(sep, "")

    return text


def parse_decimal(value, field: str = "value") -> Decimal:
    """Parse a user-supplied number into a finite Decimal.

    Args:
        value: str, int, float or Decimal
        field: Field name used in error messages

    Returns:
        Parsed Decimal

    Raises:
        ValidationError: If the value is empty, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.replace("R$", "").replace(" ", "").replace(" ", "")
        if not text:
            raise ValidationError(f"{field} is required")
        text = _normalize_separators(text)
        if not _NUMBER_RE.match(text):
            raise ValidationError(f"{field} is not a valid number: {value!r}")
        try:
            result = Decimal(text)
        except InvalidOperation as e:
            raise ValidationError(f"{field} is not a valid number: {value!r}") from e
    else:
        raise ValidationError(f"{field} has unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number, got {value!r}")

    return result


def parse_optional_decimal(value, field: str = "value") -> Decimal | None:
    """Like parse_decimal, but blank input means "not provided"."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_decimal(value, field)


def to_micros(amount: Decimal) -> int:
    """Convert a Decimal amount to fixed-point micro-reais."""
    return int(amount * MICROS)


def from_micros(value: int | None) -> Decimal | None:
    """Convert stored micro-reais back to a Decimal amount."""
    if value is None:
        return None
    return Decimal(int(value)) / MICROS


def performance_pct(current_value: Decimal, amount_invested: Decimal) -> Decimal:
    """Signed gain/loss percentage, 0 when nothing was invested."""
    if amount_invested == 0:
        return Decimal("0")
    return (current_value - amount_invested) / amount_invested * 100
