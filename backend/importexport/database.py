"""
Import-Export Backend — Database Lifecycle and Sessions
=========================================================

What:  Async SQLAlchemy engine ownership, session scopes, FastAPI dependency
       and translation of driver errors into application exceptions.
How:   A `Database` instance is created by the application factory and kept
       on `app.state.database`. The lifespan handler calls `connect()` on
       startup and `disconnect()` on shutdown; every request borrows a
       session through `get_db_session`.

Connection Pooling Strategy (non-SQLite URLs):
    pool_size:        Persistent connections for normal load
    max_overflow:     Temporary connections for traffic spikes
    pool_pre_ping:    Validates connections before use
    pool_recycle=3600: Recycles connections every hour
"""

import logging
import uuid
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Dict, Iterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from importexport.config import Settings
from importexport.exceptions import (
    DatabaseError,
    NotFoundError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

# Errors that mean "the store is not reachable right now" rather than
# "this statement is wrong"
CONNECTIVITY_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    OSError,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object between the models, `Database.create_all`
    and Alembic's autogenerate.
    """
    pass


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Lifecycle:
        Database(settings)  → not connected; sessions raise StoreUnavailableError
        await connect()     → engine created, probed with retries
        await disconnect()  → pool disposed; may connect() again later
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StoreUnavailableError(message="The database is not connected")
        return self._engine

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.settings.log_level == "DEBUG"}
        # SQLite's pools reject the sizing arguments
        if not self.settings.is_sqlite:
            options.update(
                pool_size=self.settings.db_pool_size,
                max_overflow=self.settings.db_max_overflow,
                pool_pre_ping=self.settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return options

    async def connect(self) -> None:
        """
        Create the engine and wait until the database answers.

        The probe runs under tenacity with exponential backoff. When every
        attempt fails the engine is disposed again and StoreUnavailableError
        is raised, so the application refuses to start half-connected.
        """
        if self._engine is not None:
            return

        self._engine = create_async_engine(self.settings.database_url, **self._engine_options())
        # expire_on_commit=False: attributes stay readable after commit
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        try:
            await self._wait_until_ready()
        except CONNECTIVITY_ERRORS as e:
            logger.error(
                "Database unreachable after %d attempts: %s",
                self.settings.db_connect_attempts,
                str(e),
            )
            await self.disconnect()
            raise StoreUnavailableError(
                message="Could not connect to the database",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Database connected (%s)", self._engine.url.render_as_string(hide_password=True))

        if self.settings.db_auto_create:
            await self.create_all()

    async def _wait_until_ready(self) -> None:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(CONNECTIVITY_ERRORS),
            stop=stop_after_attempt(self.settings.db_connect_attempts),
            wait=wait_exponential(
                min=self.settings.db_connect_min_wait,
                max=self.settings.db_connect_max_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self.ping()

    async def ping(self) -> None:
        """Run SELECT 1; raises the driver error if the store is down."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create any missing tables from the ORM metadata."""
        # Models register themselves on Base.metadata when imported
        from importexport.models import product, transfer  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def disconnect(self) -> None:
        """Close every pooled connection. Safe to call when not connected."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit-of-work scope: commit on success, roll back on any error.

        Services commit their own writes; the commit here finalizes whatever
        is still pending (a no-op for read-only requests).
        """
        if self._session_factory is None:
            raise StoreUnavailableError(message="The database is not connected")

        async with self._session_factory() as session:
            try:
                yield session
                with store_errors("commit transaction"):
                    await session.commit()
            except Exception:
                await session.rollback()
                raise


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The Database comes from `request.app.state.database`, which the
    application factory sets.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


# ── Error Translation ─────────────────────────────────────────────────────
@contextmanager
def store_errors(action: str, **context: Any) -> Iterator[None]:
    """
    Translate SQLAlchemy/driver failures raised inside the block.

    Connectivity failures become StoreUnavailableError (retryable);
    anything else SQLAlchemy raises becomes DatabaseError. Application
    exceptions pass through untouched.

    Usage:
        with store_errors("import product", product_id=product_id):
            await db.execute(...)
    """
    try:
        yield
    except CONNECTIVITY_ERRORS as e:
        logger.error("Store unavailable during %s: %s | Context: %s", action, str(e), context)
        raise StoreUnavailableError(
            context={**context, "error_type": type(e).__name__},
        ) from e
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s | Context: %s", action, str(e), context, exc_info=True)
        raise DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={**context, "error_type": type(e).__name__},
        ) from e


def parse_identifier(value: str, resource: str) -> uuid.UUID:
    """
    Convert a boundary identifier (opaque string) to the storage UUID.

    A value that is not a UUID cannot name an existing record, so it is
    reported as NotFoundError like any other unknown id.
    """
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError(resource=resource, resource_id=str(value))
