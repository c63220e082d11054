"""Boundary formatting for BRL amounts and percentages."""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def format_brl(value: Decimal | float | int) -> str:
    """Format an amount as Brazilian Real, e.g. ``R$ 1.234,56``."""
    amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    # Build en-US grouping, then swap separators to pt-BR
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {text}"


def format_percent_change(value: Decimal | float | int) -> str:
    """Signed percentage with two decimals, e.g. ``+1.24%``."""
    pct = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if pct == 0:
        pct = abs(pct)
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct}%"
