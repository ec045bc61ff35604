"""
Import-Export Backend — Product SQLAlchemy Model
=================================================

What:  ORM model for the `products` table (the export catalog).
Who:   Used by ProductService for CRUD, by ImportService for the stock
       decrement, and by Alembic for schema management.

Table Design:
    - pk: integer surrogate key; also the insertion order used to break
      created_at ties in "latest products"
    - id: UUID exposed to clients as a string
    - quantity: units still available for import, CHECK (quantity >= 0)
    - created_at: UTC, set once on insert
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from importexport.database import Base


class Product(Base):
    """
    A product listed for export.

    Lifecycle:
        1. Created by POST /add-exports
        2. Descriptive fields edited by PATCH /my-exports/{id}
        3. quantity decremented by each import
        4. Deleted permanently by DELETE /my-exports/{id}; the import ledger
           keeps its snapshots
    """

    __tablename__ = "products"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        default=uuid.uuid4,
        comment="Public identifier, rendered as a string in the API",
    )

    owner_id: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        index=True,
        comment="User who listed the product",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    origin_country: Mapped[str] = mapped_column(String(128), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Units currently available for import",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When the product was listed (UTC)",
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("idx_products_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', quantity={self.quantity})>"
