"""
Import-Export Backend — Product Schemas
========================================

What:  Input validation for listing/editing products and the product
       representations returned by the catalog endpoints.
How:   ProductService validates raw request bodies against ProductCreate /
       ProductUpdate and turns pydantic errors into ValidationError (400).
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, model_validator

from importexport.models.product import Product
from importexport.schemas.common import MAX_QUANTITY, CamelModel
from importexport.schemas.transfer import TransferResponse

# Fields a PATCH may change. id, ownerId and createdAt are fixed; quantity
# only moves through imports.
EDITABLE_FIELDS = ("name", "image", "price", "origin_country", "rating")


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class ProductCreate(CamelModel):
    """
    Body of POST /add-exports.

    Numeric fields accept numbers or numeric strings ("12.5"); everything
    listed here except owner_id is required.
    """
    owner_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ownerId", "userId", "owner_id"),
    )
    name: str = Field(min_length=1, max_length=255)
    image: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    origin_country: str = Field(min_length=1, max_length=128)
    rating: float = Field(allow_inf_nan=False)
    quantity: int = Field(ge=0, le=MAX_QUANTITY)


class ProductUpdate(CamelModel):
    """
    Body of PATCH /my-exports/{id}. Only the keys present are applied;
    unknown keys are ignored, and so is quantity (stock changes only
    through imports, which keeps the ledger consistent with it).
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    image: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    origin_country: Optional[str] = Field(default=None, min_length=1, max_length=128)
    rating: Optional[float] = Field(default=None, allow_inf_nan=False)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "ProductUpdate":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """The supplied fields, keyed by model attribute name."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if key in EDITABLE_FIELDS
        }


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ProductResponse(CamelModel):
    """A catalog entry as returned by the list and search endpoints."""
    id: str = Field(description="Opaque product identifier")
    owner_id: Optional[str] = None
    name: str
    image: str
    price: float
    origin_country: str
    rating: float
    quantity: int = Field(description="Units currently available for import")
    created_at: datetime

    @classmethod
    def from_model(cls, product: Product) -> "ProductResponse":
        return cls(
            id=str(product.id),
            owner_id=product.owner_id,
            name=product.name,
            image=product.image,
            price=product.price,
            origin_country=product.origin_country,
            rating=product.rating,
            quantity=product.quantity,
            created_at=product.created_at,
        )


class ProductDetailResponse(ProductResponse):
    """Single product plus its import history (GET /data/{id})."""
    transfers: List[TransferResponse] = Field(default_factory=list)


class CreateProductResponse(CamelModel):
    success: bool = True
    inserted_id: str
    product: ProductResponse
