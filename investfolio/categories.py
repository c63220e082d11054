"""Closed set of asset categories.

Member values are the Portuguese labels stored in the ``category`` columns
and shown to users.
"""

from enum import Enum


class Category(Enum):
    EQUITY = "Ações"
    CRYPTO = "Cripto"
    FIXED_INCOME = "Renda Fixa"
    REIT = "FIIs"
    OTHER = "Outros"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> "Category":
        """Parse an enum name or a stored label, case-insensitively.

        Unknown or empty values map to OTHER rather than raising, matching how
        untyped rows were displayed.
        """
        if isinstance(value, Category):
            return value
        if not value:
            return cls.OTHER

        text = str(value).strip().lower()
        for member in cls:
            if text in (member.name.lower(), member.value.lower()):
                return member
        return cls.OTHER


# Chart palette used by the allocation view
CATEGORY_COLORS: dict[Category, str] = {
    Category.EQUITY: "#a78bfa",
    Category.CRYPTO: "#f59e0b",
    Category.FIXED_INCOME: "#34d399",
    Category.REIT: "#60a5fa",
    Category.OTHER: "#f472b6",
}

DEFAULT_COLOR = "#9ca3af"

if set(CATEGORY_COLORS) != set(Category):
    raise RuntimeError("CATEGORY_COLORS must cover every Category")


def color_for_category(value) -> str:
    """Return the chart color for a category or stored label."""
    if not value:
        return DEFAULT_COLOR
    if isinstance(value, Category):
        return CATEGORY_COLORS[value]

    text = str(value).strip().lower()
    for member in Category:
        if text in (member.name.lower(), member.value.lower()):
            return CATEGORY_COLORS[member]
    return DEFAULT_COLOR
