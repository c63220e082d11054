"""Known asset model class

Reference list of tradable assets used for classification and autocomplete.

Attributes:
- id: Auto-increment id
- symbol: Upper-cased ticker, unique
- name: Display name
- category: Category label
- sector: Optional sector
- logo_url: Optional logo URL
- is_active: 1 when the asset should be offered, 0 otherwise
"""

from investfolio.categories import Category
from investfolio.database import Database
from investfolio.known_assets import KnownAsset
from investfolio.models.active_model import ActiveModel, ActiveModelError


class KnownAssetRecord(ActiveModel):
    table_name = "known_assets"
    primary_key = "id"
    primary_key_type = "INTEGER"

    _allowed_fields = frozenset(
        {
            "id",
            "symbol",
            "name",
            "category",
            "sector",
            "logo_url",
            "is_active",
            "created_at",
            "updated_at",
        }
    )

    def __repr__(self):
        return f"KnownAssetRecord(symbol={self.symbol}, category={self.category})"

    def _before_save(self):
        self.symbol = (getattr(self, "symbol", None) or "").strip().upper()
        if getattr(self, "is_active", None) is None:
            self.is_active = 1
        self.validate()

    def validate(self):
        errors = []

        if not self.symbol:
            errors.append("symbol is required")
        if not getattr(self, "name", None):
            errors.append("name is required")

        labels = {c.label for c in Category}
        if getattr(self, "category", None) not in labels:
            errors.append(f"category must be one of {sorted(labels)}")

        if errors:
            raise ActiveModelError(f"Validation failed: {', '.join(errors)}")

    @classmethod
    def from_known_asset(cls, database: Database, asset: KnownAsset) -> "KnownAssetRecord":
        return cls(
            database,
            symbol=asset.symbol,
            name=asset.display_name,
            category=asset.category.label,
            sector=asset.sector,
            logo_url=asset.logo_url,
            is_active=1,
        )

    def to_known_asset(self) -> KnownAsset:
        return KnownAsset(
            symbol=self.symbol,
            display_name=self.name,
            category=Category.parse(self.category),
            sector=getattr(self, "sector", None),
            logo_url=getattr(self, "logo_url", None),
        )

    @classmethod
    def active(cls, database: Database) -> list["KnownAssetRecord"]:
        return cls.where(database, is_active=1, _order_by="symbol")
