"""Create products and transfers tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the export catalog (`products`) and the import ledger
       (`transfers`). transfers.product_id has no foreign key: import
       records outlive the product they were drawn from.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Public identifier, rendered as a string in the API",
        ),
        sa.Column("owner_id", sa.String(128), nullable=True, comment="User who listed the product"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image", sa.Text(), nullable=False),
        sa.Column("origin_country", sa.String(128), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column(
            "quantity",
            sa.Integer(),
            nullable=False,
            comment="Units currently available for import",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            comment="When the product was listed (UTC)",
        ),
        sa.PrimaryKeyConstraint("pk"),
        sa.UniqueConstraint("id"),
        sa.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
    op.create_index("idx_products_created_at", "products", ["created_at"])
    op.create_index("ix_products_owner_id", "products", ["owner_id"])

    op.create_table(
        "transfers",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("image", sa.Text(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("origin_country", sa.String(128), nullable=False),
        sa.PrimaryKeyConstraint("pk"),
        sa.UniqueConstraint("id"),
        sa.CheckConstraint("quantity > 0", name="ck_transfers_quantity_positive"),
    )
    op.create_index("ix_transfers_product_id", "transfers", ["product_id"])
    op.create_index("ix_transfers_user_id", "transfers", ["user_id"])
    op.create_index("idx_transfers_product_user", "transfers", ["product_id", "user_id"])


def downgrade() -> None:
    """Drops both tables; all catalog and ledger data is lost."""
    op.drop_index("idx_transfers_product_user", table_name="transfers")
    op.drop_index("ix_transfers_user_id", table_name="transfers")
    op.drop_index("ix_transfers_product_id", table_name="transfers")
    op.drop_table("transfers")
    op.drop_index("ix_products_owner_id", table_name="products")
    op.drop_index("idx_products_created_at", table_name="products")
    op.drop_table("products")
