"""
Import-Export Backend — Import Service (Stock Transfers)
=========================================================

What:  Importing units of a product, listing import records, and removing
       them.
Who:   Called by routes/imports.py and by ProductService consumers that need
       per-product history.

Import Flow (POST /import/{userId}):
    ┌────────────┐    ┌──────────────────────────────┐    ┌──────────────┐
    │  Check     │───▶│ UPDATE products              │───▶│ INSERT       │
    │  quantity  │    │   SET quantity = quantity - q│    │  transfers   │
    │  (q > 0)   │    │ WHERE id = :id               │    │  (snapshot)  │
    └────────────┘    │   AND quantity >= q          │    └──────┬───────┘
                      └──────────────┬───────────────┘           │
                                     │ 0 rows                    ▼
                                     ▼                         COMMIT
                      product missing → NotFoundError
                      otherwise       → InsufficientStockError

    The stock check and the decrement are one statement, so two concurrent
    imports cannot both pass the check. The ledger insert shares the
    transaction; if it fails the decrement is rolled back with it.

Removal Policy:
    Deleting an import record does not give the units back to the product.
    Setting REPLENISH_ON_IMPORT_REMOVAL=true restores them (when the
    product still exists) in the same transaction.
"""

import logging
import uuid
from typing import Annotated, Any, List, Optional, Sequence, Tuple

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from importexport.database import parse_identifier, store_errors
from importexport.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    ValidationError,
)
from importexport.models.product import Product
from importexport.models.transfer import Transfer
from importexport.schemas.common import MAX_QUANTITY, DeleteResult
from importexport.schemas.transfer import ImportResult, TransferResponse

logger = logging.getLogger(__name__)

_import_quantity = TypeAdapter(Annotated[int, Field(gt=0, le=MAX_QUANTITY)])


def coerce_import_quantity(value: Any) -> int:
    """
    Accept 3, "3" or 3.0; reject 0, negatives, fractions, booleans, null,
    non-numeric text and anything past the column range with
    InvalidArgumentError.
    """
    if value is None or isinstance(value, bool):
        raise InvalidArgumentError(argument="importQuantity", context={"value": repr(value)})
    try:
        return _import_quantity.validate_python(value)
    except PydanticValidationError:
        raise InvalidArgumentError(argument="importQuantity", context={"value": repr(value)})


class ImportService:
    """
    Operations on the import ledger (`transfers` table).

    Responsibilities:
        - import_product(): conditional stock decrement + ledger insert
        - list_by_user() / list_by_product(): ledger reads
        - remove_import() / remove_user_imports(): ledger deletes
    """

    def __init__(self, replenish_on_removal: bool = False):
        self.replenish_on_removal = replenish_on_removal

    async def import_product(
        self,
        db: AsyncSession,
        product_id: Optional[str],
        user_id: str,
        requested_quantity: Any,
    ) -> ImportResult:
        """
        Move `requested_quantity` units of a product to `user_id`.

        Checks, in order:
            1. quantity is a positive integer   → else InvalidArgumentError
            2. a product id was given           → else ValidationError
            3. the product exists               → else NotFoundError
            4. quantity <= the product's stock  → else InsufficientStockError

        Any failure after the decrement (e.g. the ledger insert) rolls the
        whole transaction back, so stock and ledger never disagree.

        Returns:
            ImportResult with the new record's id and the remaining stock.
        """
        quantity = coerce_import_quantity(requested_quantity)
        if not product_id or not product_id.strip():
            raise ValidationError(message="All fields are required", field="productId")
        pid = parse_identifier(product_id, "product")

        with store_errors("import product", product_id=product_id, user_id=user_id):
            try:
                product, transfer = await self._decrement_and_record(db, pid, user_id, quantity)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "User %s imported %d of product %s (remaining=%d, transfer=%s)",
            user_id, quantity, product_id, product.quantity, transfer.id,
        )
        return ImportResult(transfer_id=str(transfer.id), remaining_quantity=product.quantity)

    async def _decrement_and_record(
        self, db: AsyncSession, pid: uuid.UUID, user_id: str, quantity: int
    ) -> Tuple[Product, Transfer]:
        result = await db.execute(
            update(Product)
            .where(Product.id == pid, Product.quantity >= quantity)
            .values(quantity=Product.quantity - quantity)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            current = await db.execute(select(Product.quantity).where(Product.id == pid))
            available = current.scalar_one_or_none()
            if available is None:
                raise NotFoundError(resource="product", resource_id=str(pid))
            logger.info(
                "Import rejected: %s requested %d of product %s, %d available",
                user_id, quantity, pid, available,
            )
            raise InsufficientStockError(requested=quantity, available=available)

        # Row is locked by our UPDATE; this read sees the decremented state
        product = (
            await db.execute(
                select(Product)
                .where(Product.id == pid)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()

        transfer = Transfer(
            product_id=pid,
            user_id=user_id,
            quantity=quantity,
            name=product.name,
            image=product.image,
            price=product.price,
            rating=product.rating,
            origin_country=product.origin_country,
        )
        db.add(transfer)
        await db.flush()
        return product, transfer

    async def list_by_user(self, db: AsyncSession, user_id: str) -> List[TransferResponse]:
        """Every import made by a user, oldest first."""
        with store_errors("list user imports", user_id=user_id):
            result = await db.execute(
                select(Transfer).where(Transfer.user_id == user_id).order_by(Transfer.pk)
            )
            transfers = result.scalars().all()
        return [TransferResponse.from_model(t) for t in transfers]

    async def list_by_product(self, db: AsyncSession, product_id: str) -> List[TransferResponse]:
        """
        Every import drawn from a product, oldest first. Works for products
        that have since been deleted.
        """
        pid = parse_identifier(product_id, "product")
        with store_errors("list product imports", product_id=product_id):
            result = await db.execute(
                select(Transfer).where(Transfer.product_id == pid).order_by(Transfer.pk)
            )
            transfers = result.scalars().all()
        return [TransferResponse.from_model(t) for t in transfers]

    async def remove_import(self, db: AsyncSession, transfer_id: str) -> DeleteResult:
        """
        Delete one import record.

        Raises:
            NotFoundError: unknown or malformed transfer id
        """
        tid = parse_identifier(transfer_id, "import")
        with store_errors("remove import", transfer_id=transfer_id):
            result = await db.execute(select(Transfer).where(Transfer.id == tid))
            transfer = result.scalar_one_or_none()
            if transfer is None:
                raise NotFoundError(resource="import", resource_id=transfer_id)
            deleted = await self._delete(db, [transfer])

        logger.info("Import %s removed", transfer_id)
        return DeleteResult(deleted_count=deleted)

    async def remove_user_imports(
        self, db: AsyncSession, product_id: str, user_id: str
    ) -> DeleteResult:
        """
        Delete every import `user_id` made from `product_id`.

        Raises:
            NotFoundError: the user has no imports of that product
        """
        pid = parse_identifier(product_id, "product")
        with store_errors("remove user imports", product_id=product_id, user_id=user_id):
            result = await db.execute(
                select(Transfer).where(Transfer.product_id == pid, Transfer.user_id == user_id)
            )
            transfers = result.scalars().all()
            if not transfers:
                raise NotFoundError(
                    resource="import",
                    context={"product_id": product_id, "user_id": user_id},
                )
            deleted = await self._delete(db, transfers)

        logger.info("Removed %d imports of product %s by %s", deleted, product_id, user_id)
        return DeleteResult(deleted_count=deleted)

    async def _delete(self, db: AsyncSession, transfers: Sequence[Transfer]) -> int:
        """Delete ledger rows (and optionally restock) in one transaction."""
        if self.replenish_on_removal:
            for transfer in transfers:
                await db.execute(
                    update(Product)
                    .where(Product.id == transfer.product_id)
                    .values(quantity=Product.quantity + transfer.quantity)
                    .execution_options(synchronize_session=False)
                )

        result = await db.execute(
            delete(Transfer)
            .where(Transfer.pk.in_([t.pk for t in transfers]))
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount
