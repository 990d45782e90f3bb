"""create_products_and_store_availability

Revision ID: 3e7b2c91a4d0
Revises:
Create Date: 2026-01-24
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3e7b2c91a4d0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.String(length=100), nullable=False),
        sa.Column("brand", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("zara_product_id", sa.String(length=50), nullable=True),
        sa.Column("in_stock_at_fixed_store", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("last_checked_at_fixed_store", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_brand"), "products", ["brand"], unique=False)
    op.create_index(
        op.f("ix_products_in_stock_at_fixed_store"),
        "products",
        ["in_stock_at_fixed_store"],
        unique=False,
    )

    op.create_table(
        "store_availability",
        sa.Column("product_id", sa.String(length=100), nullable=False),
        sa.Column("store_id", sa.Text(), nullable=False),
        sa.Column("store_name", sa.Text(), nullable=False),
        sa.Column("store_address", sa.Text(), nullable=True),
        sa.Column("in_stock", sa.Boolean(), nullable=False),
        sa.Column("distance", sa.Float(), nullable=True),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("product_id", "store_id"),
    )
    # Freshness query: WHERE product_id = ? AND expires_at > now()
    op.create_index(
        "ix_store_availability_product_expires",
        "store_availability",
        ["product_id", "expires_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_store_availability_product_expires", table_name="store_availability")
    op.drop_table("store_availability")
    op.drop_index(op.f("ix_products_in_stock_at_fixed_store"), table_name="products")
    op.drop_index(op.f("ix_products_brand"), table_name="products")
    op.drop_table("products")
