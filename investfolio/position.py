"""Position value objects.

Attributes of a Position:
- id: Unique identifier assigned at creation
- asset_name: Ticker or name, upper-cased
- category: Asset category (never None)
- quantity: Units held, optional, > 0 when present
- unit_cost: amount_invested / quantity at the last cost-basis checkpoint
- amount_invested: Cost basis, > 0
- current_value: Latest valuation, >= 0
- performance_pct: Gain/loss percentage relative to amount_invested
"""

import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from investfolio.categories import Category
from investfolio.errors import ValidationError
from investfolio.money import parse_decimal, parse_optional_decimal, performance_pct


def new_position_id() -> str:
    return uuid.uuid4().hex


def normalize_asset_name(name: str | None) -> str:
    return (name or "").strip().upper()


def _validated_amounts(
    amount_invested: Any, quantity: Any
) -> tuple[Decimal, Decimal | None, Decimal | None]:
    """Parse and validate the user-editable numbers of a position.

    Returns:
        (amount_invested, quantity, unit_cost)

    Raises:
        ValidationError: If the amount is not positive or the quantity is not
            positive when provided
    """
    errors = []

    try:
        invested = parse_decimal(amount_invested, "amount_invested")
    except ValidationError as e:
        errors.append(str(e))
        invested = None

    try:
        qty = parse_optional_decimal(quantity, "quantity")
    except ValidationError as e:
        errors.append(str(e))
        qty = None

    if invested is not None and invested <= 0:
        errors.append(f"amount_invested must be greater than 0, got {invested}")
    if qty is not None and qty <= 0:
        errors.append(f"quantity must be greater than 0, got {qty}")

    if errors:
        raise ValidationError(f"Validation failed: {', '.join(errors)}")

    unit_cost = invested / qty if qty is not None else None
    return invested, qty, unit_cost


@dataclass
class PositionDraft:
    """User-submitted data for a new position, before validation."""

    asset_name: str
    amount_invested: Any
    quantity: Any = None
    category: Category | None = None


@dataclass(frozen=True)
class Position:
    id: str
    asset_name: str
    category: Category
    amount_invested: Decimal
    current_value: Decimal
    performance_pct: Decimal = Decimal("0")
    quantity: Decimal | None = None
    unit_cost: Decimal | None = None

    @classmethod
    def from_draft(cls, draft: PositionDraft, position_id: str | None = None) -> "Position":
        """Build a validated position from a draft.

        current_value starts equal to the amount invested and performance at 0.

        Raises:
            ValidationError: If the draft is invalid
        """
        asset_name = normalize_asset_name(draft.asset_name)
        if not asset_name:
            raise ValidationError("Validation failed: asset_name is required")

        invested, qty, unit_cost = _validated_amounts(
            draft.amount_invested, draft.quantity
        )

        return cls(
            id=position_id or new_position_id(),
            asset_name=asset_name,
            category=Category.parse(draft.category),
            amount_invested=invested,
            current_value=invested,
            performance_pct=Decimal("0"),
            quantity=qty,
            unit_cost=unit_cost,
        )

    def rebased(self, amount_invested: Any, quantity: Any = None) -> "Position":
        """Return a copy with a new cost basis.

        Valuation is reset: current_value becomes the new amount invested and
        performance goes back to 0.

        Raises:
            ValidationError: If the new numbers are invalid
        """
        invested, qty, unit_cost = _validated_amounts(amount_invested, quantity)
        return replace(
            self,
            amount_invested=invested,
            quantity=qty,
            unit_cost=unit_cost,
            current_value=invested,
            performance_pct=Decimal("0"),
        )

    def revalued(self, current_value: Decimal) -> "Position":
        """Return a copy valued at current_value with performance recomputed."""
        if current_value < 0:
            current_value = Decimal("0")
        return replace(
            self,
            current_value=current_value,
            performance_pct=performance_pct(current_value, self.amount_invested),
        )
