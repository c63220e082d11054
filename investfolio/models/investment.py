"""Investment model class

This model represents one stored position of a user.

Attributes:
- id: Position id (uuid hex)
- user_id: Owner of the position
- asset_name: Upper-cased ticker or name
- category: Category label ("Ações", "Cripto", "Renda Fixa", "FIIs", "Outros")
- quantity: Units held (nullable)
- purchase_price: Unit cost in micro-reais (nullable)
- amount_invested: Cost basis in micro-reais
- current_value: Latest valuation in micro-reais
- performance: Gain/loss percentage
- created_at: The timestamp of the record creation
- updated_at: The timestamp of the last record update
"""

from decimal import Decimal

from investfolio.categories import Category
from investfolio.database import Database
from investfolio.models.active_model import ActiveModel, ActiveModelError
from investfolio.money import from_micros, performance_pct, to_micros
from investfolio.position import Position


class InvestmentRecord(ActiveModel):
    table_name = "investments"
    primary_key = "id"
    primary_key_type = "TEXT"

    _allowed_fields = frozenset(
        {
            "id",
            "user_id",
            "asset_name",
            "category",
            "quantity",
            "purchase_price",
            "amount_invested",
            "current_value",
            "performance",
            "created_at",
            "updated_at",
        }
    )

    def __repr__(self):
        return (
            f"InvestmentRecord(id={self.id}, asset_name={self.asset_name}, "
            f"category={self.category})"
        )

    def _before_save(self):
        self.validate()

    def validate(self):
        """Validate the record against the table's business rules."""
        errors = []

        if not getattr(self, "id", None):
            errors.append("id is required")
        if not getattr(self, "user_id", None):
            errors.append("user_id is required")
        if not getattr(self, "asset_name", None):
            errors.append("asset_name is required")

        labels = {c.label for c in Category}
        if getattr(self, "category", None) not in labels:
            errors.append(f"category must be one of {sorted(labels)}")

        amount = getattr(self, "amount_invested", None)
        if amount is None or amount <= 0:
            errors.append(f"amount_invested must be positive, got {amount}")

        current = getattr(self, "current_value", None)
        if current is None or current < 0:
            errors.append(f"current_value must be non-negative, got {current}")

        quantity = getattr(self, "quantity", None)
        if quantity is not None and quantity <= 0:
            errors.append(f"quantity must be positive when set, got {quantity}")

        if errors:
            raise ActiveModelError(f"Validation failed: {', '.join(errors)}")

    @classmethod
    def from_position(
        cls, database: Database, user_id: str, position: Position
    ) -> "InvestmentRecord":
        return cls(
            database,
            id=position.id,
            user_id=user_id,
            asset_name=position.asset_name,
            category=position.category.label,
            quantity=float(position.quantity) if position.quantity is not None else None,
            purchase_price=(
                to_micros(position.unit_cost) if position.unit_cost is not None else None
            ),
            amount_invested=to_micros(position.amount_invested),
            current_value=to_micros(position.current_value),
            performance=float(position.performance_pct),
        )

    def to_position(self) -> Position:
        """Convert the stored row back into a Position.

        Performance is recomputed from the stored amounts rather than trusted.
        """
        invested = from_micros(self.amount_invested)
        current = from_micros(self.current_value)
        quantity = Decimal(str(self.quantity)) if self.quantity is not None else None

        return Position(
            id=self.id,
            asset_name=self.asset_name,
            category=Category.parse(self.category),
            amount_invested=invested,
            current_value=current,
            performance_pct=performance_pct(current, invested),
            quantity=quantity,
            unit_cost=from_micros(self.purchase_price),
        )

    def apply(self, position: Position) -> None:
        """Copy a position's mutable values onto this record."""
        fresh = self.from_position(self._database, self.user_id, position)
        for field in (
            "asset_name",
            "category",
            "quantity",
            "purchase_price",
            "amount_invested",
            "current_value",
            "performance",
        ):
            setattr(self, field, getattr(fresh, field))

    @classmethod
    def for_user(cls, database: Database, user_id: str) -> list["InvestmentRecord"]:
        """All of a user's investments in insertion order."""
        return cls.where(database, user_id=user_id)
