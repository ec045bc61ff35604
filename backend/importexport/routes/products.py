"""
Import-Export Backend — Catalog Route Handlers
===============================================

What:  Product listing, search, detail, and the owner's "my exports" CRUD.
How:   Extracts path/query/body values, delegates to ProductService,
       returns JSON. Errors are formatted by the handlers in main.py.

Routes:
    GET    /data                  all products
    GET    /latestProducts        newest products (LATEST_PRODUCTS_LIMIT)
    GET    /data/{product_id}     one product with its import history
    GET    /search?search=text    name search
    POST   /add-exports           list a product
    GET    /my-exports/{user_id}  products listed by a user
    PATCH  /my-exports/{product_id}
    DELETE /my-exports/{product_id}
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from importexport.dependencies import get_db_session, get_product_service
from importexport.schemas.common import DeleteResult, ErrorResponse, UpdateResult
from importexport.schemas.product import (
    CreateProductResponse,
    ProductDetailResponse,
    ProductResponse,
)
from importexport.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Products"])

NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}
BAD_REQUEST = {400: {"description": "Invalid product fields", "model": ErrorResponse}}


@router.get("/data", response_model=List[ProductResponse], summary="List every product")
async def list_products(
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    return await service.list_all(db)


@router.get(
    "/latestProducts",
    response_model=List[ProductResponse],
    summary="Most recently listed products",
)
async def latest_products(
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    return await service.list_latest(db)


@router.get(
    "/data/{product_id}",
    response_model=ProductDetailResponse,
    responses=NOT_FOUND,
    summary="Get a single product with its import history",
)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    return await service.get_product(db, product_id)


@router.get(
    "/search",
    response_model=List[ProductResponse],
    summary="Search products by name",
    description="Case-insensitive substring match on the product name. "
                "An empty or missing search term returns every product.",
)
async def search_products(
    search: Optional[str] = Query(default=None, description="Text to look for in product names"),
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    return await service.search(db, search)


@router.post(
    "/add-exports",
    status_code=201,
    response_model=CreateProductResponse,
    responses=BAD_REQUEST,
    summary="List a product for export",
)
async def add_export(
    payload: Dict[str, Any] = Body(..., description="name, image, price, originCountry, rating, quantity, ownerId"),
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> CreateProductResponse:
    # Raw body: ProductService reports missing fields as validation_error
    return await service.create_product(db, payload)


@router.get(
    "/my-exports/{user_id}",
    response_model=List[ProductResponse],
    summary="Products listed by a user",
)
async def my_exports(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> List[ProductResponse]:
    return await service.list_by_owner(db, user_id)


@router.patch(
    "/my-exports/{product_id}",
    response_model=UpdateResult,
    responses={**NOT_FOUND, **BAD_REQUEST},
    summary="Edit some fields of a product",
)
async def update_export(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> UpdateResult:
    return await service.update_product(db, product_id, payload)


@router.delete(
    "/my-exports/{product_id}",
    response_model=DeleteResult,
    responses=NOT_FOUND,
    summary="Delete a product",
)
async def delete_export(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: ProductService = Depends(get_product_service),
) -> DeleteResult:
    return await service.delete_product(db, product_id)
