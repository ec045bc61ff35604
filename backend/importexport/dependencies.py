"""
FastAPI dependencies resolving the collaborators that create_app() puts on
`app.state`.
"""

from fastapi import Request

from importexport.database import Database, get_db_session
from importexport.services.import_service import ImportService
from importexport.services.product_service import ProductService

__all__ = ["get_database", "get_db_session", "get_import_service", "get_product_service"]


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_import_service(request: Request) -> ImportService:
    return request.app.state.import_service
