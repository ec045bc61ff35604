"""
Import-Export Backend — Application Package
============================================

What: HTTP service for listing products for export and importing them.
Who:  Used by uvicorn (importexport.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (ProductService,          │  ← validation, stock rules
    │            ImportService)           │
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │    Database (connect/disconnect)    │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The Database object is created by the application factory and handed to
    routes through FastAPI dependencies; nothing holds a module-level
    connection.
"""

__version__ = "1.0.0"
