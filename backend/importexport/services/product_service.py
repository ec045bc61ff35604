"""
Import-Export Backend — Product Service (Catalog Operations)
=============================================================

What:  Listing, searching, creating, editing and deleting export products.
Who:   Called by the catalog route handlers in routes/products.py.
How:   Every method receives the request's AsyncSession. Reads run inside
       store_errors() so driver failures surface as StoreUnavailableError /
       DatabaseError; writes commit before returning so the response never
       reports an uncommitted change.

Policies:
    - update/delete of an unknown id raise NotFoundError
    - deleting a product keeps its import records (they carry a snapshot)
"""

import logging
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from importexport.database import parse_identifier, store_errors
from importexport.exceptions import NotFoundError, ValidationError
from importexport.models.product import Product
from importexport.models.transfer import Transfer
from importexport.schemas.common import DeleteResult, UpdateResult
from importexport.schemas.product import (
    CreateProductResponse,
    ProductCreate,
    ProductDetailResponse,
    ProductResponse,
    ProductUpdate,
)
from importexport.schemas.transfer import TransferResponse

logger = logging.getLogger(__name__)


def select_products():
    # Bulk UPDATEs (imports, edits) bypass the identity map; reload rows
    return select(Product).execution_options(populate_existing=True)


def validation_error_from(exc: PydanticValidationError) -> ValidationError:
    """Convert the first pydantic error into the API's ValidationError."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    if first.get("type") == "missing":
        message = "All fields are required"
    elif field is None:
        message = str(first.get("msg"))
    else:
        message = f"Invalid value for '{field}': {first.get('msg')}"
    return ValidationError(
        message=message,
        field=field,
        context={"errors": [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]},
    )


class ProductService:
    """
    Catalog operations over the `products` table.

    Responsibilities:
        - list_all() / list_latest() / search() / list_by_owner()
        - get_product(): single product plus its import history
        - create_product() / update_product() / delete_product()
    """

    def __init__(self, latest_limit: int = 6):
        self.latest_limit = latest_limit

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_all(self, db: AsyncSession) -> List[ProductResponse]:
        with store_errors("list products"):
            result = await db.execute(select_products().order_by(Product.pk))
            products = result.scalars().all()
        return [ProductResponse.from_model(p) for p in products]

    async def list_latest(self, db: AsyncSession, limit: Optional[int] = None) -> List[ProductResponse]:
        """
        The `limit` most recently created products, newest first.

        Ties on created_at go to the later insert (higher pk).
        """
        n = limit if limit is not None else self.latest_limit
        with store_errors("list latest products", limit=n):
            result = await db.execute(
                select_products()
                .order_by(Product.created_at.desc(), Product.pk.desc())
                .limit(n)
            )
            products = result.scalars().all()
        return [ProductResponse.from_model(p) for p in products]

    async def search(self, db: AsyncSession, text: Optional[str]) -> List[ProductResponse]:
        """Case-insensitive substring match on name; blank text lists everything."""
        query = select_products().order_by(Product.pk)
        if text and text.strip():
            # autoescape: % and _ in user input match literally
            query = query.where(Product.name.icontains(text.strip(), autoescape=True))
        with store_errors("search products", text=text):
            result = await db.execute(query)
            products = result.scalars().all()
        return [ProductResponse.from_model(p) for p in products]

    async def list_by_owner(self, db: AsyncSession, owner_id: str) -> List[ProductResponse]:
        with store_errors("list owner products", owner_id=owner_id):
            result = await db.execute(
                select_products().where(Product.owner_id == owner_id).order_by(Product.pk)
            )
            products = result.scalars().all()
        return [ProductResponse.from_model(p) for p in products]

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductDetailResponse:
        """
        Retrieve one product with its import records (oldest first).

        Raises:
            NotFoundError: unknown or malformed id (→ 404)
        """
        pid = parse_identifier(product_id, "product")
        with store_errors("retrieve product", product_id=product_id):
            result = await db.execute(select_products().where(Product.id == pid))
            product = result.scalar_one_or_none()
            if product is None:
                raise NotFoundError(resource="product", resource_id=product_id)

            transfers = await db.execute(
                select(Transfer).where(Transfer.product_id == pid).order_by(Transfer.pk)
            )
            history = [TransferResponse.from_model(t) for t in transfers.scalars().all()]

        return ProductDetailResponse(
            **ProductResponse.from_model(product).model_dump(),
            transfers=history,
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_product(self, db: AsyncSession, fields: Mapping[str, Any]) -> CreateProductResponse:
        """
        Validate and insert a new product.

        Raises:
            ValidationError: a required field is missing, empty, or not numeric
                             where a number is expected. Nothing is written.
        """
        try:
            data = ProductCreate.model_validate(dict(fields))
        except PydanticValidationError as e:
            raise validation_error_from(e) from e

        product = Product(
            owner_id=data.owner_id,
            name=data.name,
            image=data.image,
            price=data.price,
            origin_country=data.origin_country,
            rating=data.rating,
            quantity=data.quantity,
        )
        with store_errors("create product"):
            db.add(product)
            await db.flush()
            await db.commit()

        logger.info("Product %s listed by %s (quantity=%d)", product.id, product.owner_id, product.quantity)
        return CreateProductResponse(
            inserted_id=str(product.id),
            product=ProductResponse.from_model(product),
        )

    async def update_product(
        self, db: AsyncSession, product_id: str, fields: Mapping[str, Any]
    ) -> UpdateResult:
        """
        Merge the supplied editable fields into an existing product.

        Raises:
            ValidationError: a supplied field has an invalid value or is null
            NotFoundError:   unknown or malformed id
        """
        try:
            changes = ProductUpdate.model_validate(dict(fields)).changes()
        except PydanticValidationError as e:
            raise validation_error_from(e) from e

        pid = parse_identifier(product_id, "product")
        with store_errors("update product", product_id=product_id):
            if changes:
                result = await db.execute(
                    update(Product)
                    .where(Product.id == pid)
                    .values(**changes)
                    .execution_options(synchronize_session=False)
                )
                matched = result.rowcount
            else:
                result = await db.execute(select(Product.pk).where(Product.id == pid))
                matched = 1 if result.scalar_one_or_none() is not None else 0

            if matched == 0:
                raise NotFoundError(resource="product", resource_id=product_id)
            await db.commit()

        logger.info("Product %s updated: %s", product_id, sorted(changes))
        return UpdateResult(matched_count=matched, modified_count=1 if changes else 0)

    async def delete_product(self, db: AsyncSession, product_id: str) -> DeleteResult:
        """
        Permanently delete a product. Import records are kept.

        Raises:
            NotFoundError: unknown or malformed id
        """
        pid = parse_identifier(product_id, "product")
        with store_errors("delete product", product_id=product_id):
            result = await db.execute(
                delete(Product)
                .where(Product.id == pid)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="product", resource_id=product_id)
            await db.commit()

        logger.info("Product %s deleted", product_id)
        return DeleteResult(deleted_count=result.rowcount)
