"""Initial schema for canonical name registries and simple expenses.

Revision ID: 0001_initial_schema
Revises: None
Create Date: 2026-09-14
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "supplier",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_supplier_name", "supplier", ["name"])

    op.create_table(
        "material",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("branch", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_material_name", "material", ["name"])
    op.create_index("ix_material_branch", "material", ["branch"])

    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_product_name", "product", ["name"])

    op.create_table(
        "simple_expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("supplier", sa.Text()),
        sa.Column("category", sa.Text(), nullable=False, server_default="other"),
        sa.Column("sub_category", sa.Text()),
        sa.Column("payment_method", sa.Text(), nullable=False, server_default="card"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), server_default="1"),
        sa.Column("unit_price", sa.Numeric(), server_default="0"),
        sa.Column("amount", sa.Numeric(), server_default="0"),
        sa.Column("branch_id", sa.Text(), nullable=False),
        sa.Column("branch_name", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_simple_expense_branch_id", "simple_expense", ["branch_id"])


def downgrade() -> None:
    op.drop_index("ix_simple_expense_branch_id", table_name="simple_expense")
    op.drop_table("simple_expense")
    op.drop_index("ix_product_name", table_name="product")
    op.drop_table("product")
    op.drop_index("ix_material_branch", table_name="material")
    op.drop_index("ix_material_name", table_name="material")
    op.drop_table("material")
    op.drop_index("ix_supplier_name", table_name="supplier")
    op.drop_table("supplier")
