"""inventory ledger tables: items / size_variants / stock_movements

Revision ID: 0001_inventory_ledger
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_inventory_ledger"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("education_level", sa.String(length=32), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("reorder_point", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_items_name_level", "items", ["name", "education_level"])

    op.create_table(
        "size_variants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("size", sa.String(length=64), nullable=False),
        sa.Column("beginning_inventory", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("purchases", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("released", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("returns", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reorder_point", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("period_no", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("period_started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("item_id", "size", name="uq_size_variants_item_size"),
    )
    op.create_index("ix_size_variants_item_id", "size_variants", ["item_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "variant_id",
            sa.Integer(),
            sa.ForeignKey("size_variants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("period_no", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("ending_before", sa.Integer(), nullable=False),
        sa.Column("ending_after", sa.Integer(), nullable=False),
        sa.Column("note", sa.String(length=255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_stock_movements_item_id", "stock_movements", ["item_id"])
    op.create_index("ix_stock_movements_variant_id", "stock_movements", ["variant_id"])
    op.create_index("ix_stock_movements_variant_period", "stock_movements", ["variant_id", "period_no"])


def downgrade() -> None:
    op.drop_index("ix_stock_movements_variant_period", table_name="stock_movements")
    op.drop_index("ix_stock_movements_variant_id", table_name="stock_movements")
    op.drop_index("ix_stock_movements_item_id", table_name="stock_movements")
    op.drop_table("stock_movements")
    op.drop_index("ix_size_variants_item_id", table_name="size_variants")
    op.drop_table("size_variants")
    op.drop_index("ix_items_name_level", table_name="items")
    op.drop_table("items")
