"""
Import-Export Backend — FastAPI Application Factory
====================================================

What:  Builds the FastAPI application: collaborators, middleware, error
       handlers and routes.
How:   create_app(settings) is the composition root. It creates the
       Database and the services, stores them on `app.state`, and the
       lifespan handler connects/disconnects the Database.
Who:   uvicorn (uvicorn importexport.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Access Log → GZip → CORS  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /data ...    │ │ /import ...  │ │ /health     │  │
    │  │ /my-exports  │ │ /my-imports  │ │ /           │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  app.state: settings, database,                     │
    │             product_service, import_service         │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  setup logging → database.connect() (retries, then fails)
    Shutdown: database.disconnect()
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from importexport import __version__
from importexport.config import Settings, settings as default_settings
from importexport.database import Database
from importexport.exceptions import (
    DatabaseError,
    ImportExportError,
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from importexport.middleware.logging import RequestLoggingMiddleware
from importexport.middleware.request_id import RequestIDMiddleware, request_id_var
from importexport.routes import health, imports, products
from importexport.services.import_service import ImportService
from importexport.services.product_service import ProductService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once per process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: connect the Database (StoreUnavailableError aborts startup).
    Shutdown: dispose the connection pool.
    """
    config: Settings = app.state.settings
    database: Database = app.state.database

    setup_logging(config.log_level)
    logger.info("Import-Export backend %s starting up...", __version__)

    await database.connect()
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

    yield

    logger.info("Import-Export backend shutting down...")
    await database.disconnect()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler table:
        ValidationError / RequestValidationError → 400 validation_error
        InvalidArgumentError                     → 400 invalid_argument
        NotFoundError                            → 404 not_found
        InsufficientStockError                   → 409 insufficient_stock
        StoreUnavailableError                    → 503 store_unavailable
        DatabaseError / ImportExportError        → 500 server_error
        Exception                                → 500 internal_server_error

    Server-side errors never echo internal details; they are logged.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
            for err in exc.errors()
        ]
        message = "All fields are required"
        if errors and not any(err.get("type") == "missing" for err in exc.errors()):
            message = f"Invalid value for '{errors[0]['field']}': {errors[0]['message']}"
        return error_response(400, "validation_error", message, {"errors": errors})

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(request: Request, exc: InvalidArgumentError):
        return error_response(400, "invalid_argument", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(InsufficientStockError)
    async def handle_insufficient_stock(request: Request, exc: InsufficientStockError):
        return error_response(409, "insufficient_stock", exc.message, exc.context)

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error("[%s] Store unavailable: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(
            503,
            "store_unavailable",
            exc.message,
            {"retry_after": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(ImportExportError)
    async def handle_app_error(request: Request, exc: ImportExportError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the environment-driven
                  module singleton.

    The returned app owns a not-yet-connected Database; the lifespan handler
    (or a test fixture) calls connect().
    """
    config = settings or default_settings

    app = FastAPI(
        title="Import-Export API",
        description="List products for export, import them, and track who imported what.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    app.state.settings = config
    app.state.database = Database(config)
    app.state.product_service = ProductService(latest_limit=config.latest_products_limit)
    app.state.import_service = ImportService(replenish_on_removal=config.replenish_on_import_removal)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(imports.router)

    return app


app = create_app()
