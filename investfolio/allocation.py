"""Allocation breakdown, portfolio totals and growth projection."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from investfolio.categories import CATEGORY_COLORS, Category
from investfolio.errors import ValidationError
from investfolio.money import parse_decimal, performance_pct
from investfolio.position import Position

MAX_PROJECTION_YEARS = 100
MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class AllocationSlice:
    category: Category
    total_value: Decimal
    weight_pct: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        return self.category.label

    @property
    def color(self) -> str:
        return CATEGORY_COLORS[self.category]


@dataclass(frozen=True)
class PortfolioTotals:
    invested: Decimal
    current_value: Decimal
    gain_loss: Decimal
    gain_loss_pct: Decimal


def aggregate(positions: Sequence[Position]) -> list[AllocationSlice]:
    """Sum current value per category.

    Groups keep the order in which their category first appears; groups
    whose total is zero are dropped. Sort the result for display if needed.
    """
    sums: dict[Category, Decimal] = {}
    for position in positions:
        sums[position.category] = sums.get(position.category, Decimal("0")) + (
            position.current_value
        )

    grand_total = sum((v for v in sums.values() if v > 0), Decimal("0"))

    slices = []
    for category, total in sums.items():
        if total <= 0:
            continue
        weight = total / grand_total * 100 if grand_total else Decimal("0")
        slices.append(AllocationSlice(category, total, weight))
    return slices


def totals(positions: Sequence[Position]) -> PortfolioTotals:
    invested = sum((p.amount_invested for p in positions), Decimal("0"))
    current = sum((p.current_value for p in positions), Decimal("0"))
    return PortfolioTotals(
        invested=invested,
        current_value=current,
        gain_loss=current - invested,
        gain_loss_pct=performance_pct(current, invested),
    )


def project_growth(
    start: Any, monthly_contribution: Any, annual_rate_pct: Any, years: Any
) -> Decimal:
    """Project a portfolio value with yearly compounding.

    Each year the running value grows by the annual rate, then a year of
    monthly contributions is added. Contributions themselves only start
    compounding the following year.

    Args:
        start: Current portfolio value in BRL
        monthly_contribution: BRL added every month
        annual_rate_pct: Yearly return in percent, e.g. "10" or "8,5"
        years: Whole number of years to project

    Returns:
        Projected value, not rounded

    Raises:
        ValidationError: If an input is not a number or is out of range
    """
    current = parse_decimal(start, "current value")
    monthly = parse_decimal(monthly_contribution, "monthly contribution")
    rate = parse_decimal(annual_rate_pct, "annual rate")
    year_count = parse_decimal(years, "years")

    if current < 0:
        raise ValidationError("current value must not be negative")
    if monthly < 0:
        raise ValidationError("monthly contribution must not be negative")
    if rate < -100:
        raise ValidationError("annual rate must be at least -100%")
    if year_count != year_count.to_integral_value() or not (
        0 <= year_count <= MAX_PROJECTION_YEARS
    ):
        raise ValidationError(
            f"years must be a whole number between 0 and {MAX_PROJECTION_YEARS}"
        )

    growth = 1 + rate / 100
    yearly_contribution = monthly * MONTHS_PER_YEAR
    for _ in range(int(year_count)):
        current = current * growth + yearly_contribution
    return current
