"""Create orders and statements tables

Revision ID: 7c2d4e9a1f30
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c2d4e9a1f30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "statements",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("order_id", sa.String(length=32), nullable=False),
        sa.Column("product", sa.String(length=128), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("profit", sa.Numeric(14, 2), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_statements_order_id", "statements", ["order_id"], unique=True)
    op.create_index("ix_statements_timestamp", "statements", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_statements_timestamp", table_name="statements")
    op.drop_index("ix_statements_order_id", table_name="statements")
    op.drop_table("statements")
    op.drop_table("orders")
