"""
Import-Export Backend — Import (Transfer) Schemas
==================================================

What:  Request body for POST /import/{userId} and the ledger record shape
       returned by GET /my-imports/{userId} and GET /data/{id}/imports.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field

from importexport.models.transfer import Transfer
from importexport.schemas.common import CamelModel


class ImportRequest(CamelModel):
    """
    Body of POST /import/{userId}.

    Both fields are left loose here. ImportService checks the quantity
    first (invalid_argument) and then the product id (validation_error), so
    the order of errors does not depend on which keys the body carries.
    """
    product_id: Optional[str] = Field(default=None, description="Product to import from")
    import_quantity: Any = Field(
        default=None,
        validation_alias=AliasChoices("importQuantity", "quantity", "import_quantity"),
        description="Units to import (positive integer)",
    )


class ImportResult(CamelModel):
    success: bool = True
    message: str = "Imported successfully"
    transfer_id: str = Field(description="Identifier of the new import record")
    remaining_quantity: int = Field(description="Product quantity after the import")


class TransferResponse(CamelModel):
    """One import record, including the product snapshot taken at import time."""
    id: str
    product_id: str
    user_id: str
    quantity: int
    timestamp: datetime
    name: str
    image: str
    price: float
    rating: float
    origin_country: str

    @classmethod
    def from_model(cls, transfer: Transfer) -> "TransferResponse":
        return cls(
            id=str(transfer.id),
            product_id=str(transfer.product_id),
            user_id=transfer.user_id,
            quantity=transfer.quantity,
            timestamp=transfer.timestamp,
            name=transfer.name,
            image=transfer.image,
            price=transfer.price,
            rating=transfer.rating,
            origin_country=transfer.origin_country,
        )
