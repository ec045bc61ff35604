"""
Import-Export Backend — Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite file (sqlite+aiosqlite) under pytest's
       tmp_path, so service tests run real SQL, including the conditional
       stock UPDATE, without a PostgreSQL server.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings pointing at a temp SQLite file
    ├── database: connected Database with tables created
    ├── db_session: one session from that Database
    ├── product_service / import_service: service instances
    ├── make_product: coroutine factory that lists a product
    ├── mock_db_session: AsyncMock session for error-path unit tests
    └── test_client: HTTPX AsyncClient bound to a connected app
"""

import os
from typing import Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Keep the module-level settings from reading a developer's .env database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from importexport.config import Settings  # noqa: E402
from importexport.database import Database  # noqa: E402
from importexport.services.import_service import ImportService  # noqa: E402
from importexport.services.product_service import ProductService  # noqa: E402


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        db_auto_create=True,
        db_connect_attempts=1,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    db = Database(test_settings)
    await db.connect()
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def product_service() -> ProductService:
    return ProductService(latest_limit=6)


@pytest.fixture
def import_service() -> ImportService:
    return ImportService()


@pytest.fixture
def sample_product_fields() -> Dict[str, Any]:
    """A valid POST /add-exports body, camelCase like the frontend sends."""
    return {
        "name": "Darjeeling Tea",
        "image": "https://example.com/tea.jpg",
        "price": 12.5,
        "originCountry": "India",
        "rating": 4.6,
        "quantity": 5,
        "ownerId": "seller-1",
    }


@pytest.fixture
def make_product(database, product_service, sample_product_fields):
    """
    Coroutine factory: `await make_product(name="X", quantity=3)` lists a
    product in its own session and returns its string id.
    """

    async def _make(**overrides: Any) -> str:
        fields = {**sample_product_fields, **overrides}
        async with database.session() as session:
            created = await product_service.create_product(session, fields)
        return created.inserted_id

    return _make


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that stands in for AsyncSession.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_app(test_settings):
    """
    A FastAPI app with its Database connected.

    ASGITransport does not run lifespan events, so the fixture connects
    and disconnects the Database itself.
    """
    from importexport.main import create_app

    app = create_app(test_settings)
    await app.state.database.connect()
    yield app
    await app.state.database.disconnect()


@pytest_asyncio.fixture
async def test_client(test_app):
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
