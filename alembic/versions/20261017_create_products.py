"""Create products table.

Revision ID: 20261017_create_products
Revises:
Create Date: 2026-10-17 12:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "20261017_create_products"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("category", sa.String(length=150), nullable=False),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint("length(name) > 0", name="ck_products_name_not_empty"),
        if_not_exists=True,
    )
    op.create_index("ix_products_category", "products", ["category"], if_not_exists=True)
    op.create_index("ix_products_created_at", "products", ["created_at"], if_not_exists=True)


def downgrade():
    op.drop_index("ix_products_created_at", table_name="products")
    op.drop_index("ix_products_category", table_name="products")
    op.drop_table("products")
