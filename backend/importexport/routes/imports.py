"""
Import-Export Backend — Import Route Handlers
==============================================

Routes:
    POST   /import/{user_id}                      import units of a product
    GET    /my-imports/{user_id}                  a user's import records
    GET    /data/{product_id}/imports             a product's import records
    DELETE /my-imports/{transfer_id}              remove one record
    DELETE /my-imports/{product_id}/{user_id}     remove a user's records for a product

Removing records does not restock the product unless
REPLENISH_ON_IMPORT_REMOVAL is enabled.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from importexport.dependencies import get_db_session, get_import_service
from importexport.schemas.common import DeleteResult, ErrorResponse
from importexport.schemas.transfer import ImportRequest, ImportResult, TransferResponse
from importexport.services.import_service import ImportService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Imports"])


@router.post(
    "/import/{user_id}",
    response_model=ImportResult,
    responses={
        400: {"description": "Quantity is not a positive integer", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
        409: {"description": "Not enough stock", "model": ErrorResponse},
        503: {"description": "Database unavailable, safe to retry", "model": ErrorResponse},
    },
    summary="Import units of a product",
)
async def import_product(
    user_id: str,
    payload: ImportRequest,
    db: AsyncSession = Depends(get_db_session),
    service: ImportService = Depends(get_import_service),
) -> ImportResult:
    """
    Decrement the product's stock and record the import in one transaction.
    A request that loses a race for the last units gets 409.
    """
    return await service.import_product(
        db,
        product_id=payload.product_id,
        user_id=user_id,
        requested_quantity=payload.import_quantity,
    )


@router.get(
    "/my-imports/{user_id}",
    response_model=List[TransferResponse],
    summary="Import records of a user",
)
async def my_imports(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ImportService = Depends(get_import_service),
) -> List[TransferResponse]:
    return await service.list_by_user(db, user_id)


@router.get(
    "/data/{product_id}/imports",
    response_model=List[TransferResponse],
    responses={404: {"description": "Malformed product id", "model": ErrorResponse}},
    summary="Import records of a product",
)
async def product_imports(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ImportService = Depends(get_import_service),
) -> List[TransferResponse]:
    return await service.list_by_product(db, product_id)


@router.delete(
    "/my-imports/{transfer_id}",
    response_model=DeleteResult,
    responses={404: {"description": "Import record not found", "model": ErrorResponse}},
    summary="Remove one import record",
)
async def remove_import(
    transfer_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ImportService = Depends(get_import_service),
) -> DeleteResult:
    return await service.remove_import(db, transfer_id)


@router.delete(
    "/my-imports/{product_id}/{user_id}",
    response_model=DeleteResult,
    responses={404: {"description": "No matching import records", "model": ErrorResponse}},
    summary="Remove a user's import records for a product",
)
async def remove_user_imports(
    product_id: str,
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ImportService = Depends(get_import_service),
) -> DeleteResult:
    return await service.remove_user_imports(db, product_id, user_id)
