"""
Import-Export Backend — Transfer (Import Ledger) Model
=======================================================

What:  ORM model for the `transfers` table: one row per import event.

The product reference is deliberately not a foreign key. Deleting a
product leaves its ledger rows in place, and each row carries a snapshot
of the product's descriptive fields so it stays readable afterwards.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TIMESTAMP

from importexport.database import Base


class Transfer(Base):
    """A committed import of `quantity` units of a product by a user."""

    __tablename__ = "transfers"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        default=uuid.uuid4,
    )

    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Snapshot of the product at import time ────────────────────────────
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False)
    origin_country: Mapped[str] = mapped_column(String(128), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transfers_quantity_positive"),
        Index("idx_transfers_product_user", "product_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transfer(id={self.id}, product_id={self.product_id}, "
            f"user_id='{self.user_id}', quantity={self.quantity})>"
        )
