"""Initial schema

Revision ID: 5c2e8a41d9b7
Revises:
Create Date: 2026-10-17 10:02:13.518240

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e8a41d9b7"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

CATEGORY_LABELS = "('Ações', 'Cripto', 'Renda Fixa', 'FIIs', 'Outros')"


def upgrade() -> None:
    """Upgrade schema."""
    # Table: investments (amounts in micro-reais)
    op.create_table(
        "investments",
        sa.Column("id", sa.Text(), nullable=False, primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("asset_name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("quantity", sa.REAL(), nullable=True),
        sa.Column("purchase_price", sa.Integer(), nullable=True),
        sa.Column("amount_invested", sa.Integer(), nullable=False),
        sa.Column("current_value", sa.Integer(), nullable=False),
        sa.Column("performance", sa.REAL(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.CheckConstraint(
            f"category IN {CATEGORY_LABELS}", name="check_investment_category"
        ),
        sa.CheckConstraint("amount_invested > 0", name="check_amount_invested_positive"),
        sa.CheckConstraint("current_value >= 0", name="check_current_value_non_negative"),
        sa.CheckConstraint(
            "quantity IS NULL OR quantity > 0", name="check_quantity_positive"
        ),
    )
    op.create_index("ix_investments_user_id", "investments", ["user_id"])

    # Table: known_assets
    op.create_table(
        "known_assets",
        sa.Column(
            "id", sa.Integer(), nullable=False, primary_key=True, autoincrement=True
        ),
        sa.Column("symbol", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("sector", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.CheckConstraint(
            f"category IN {CATEGORY_LABELS}", name="check_known_asset_category"
        ),
    )
    op.create_index("ix_known_assets_category", "known_assets", ["category"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_known_assets_category", table_name="known_assets")
    op.drop_table("known_assets")
    op.drop_index("ix_investments_user_id", table_name="investments")
    op.drop_table("investments")
