"""
Import-Export Backend — Shared Pydantic Schemas
================================================

What:  Base model with the API's camelCase convention, write-result
       envelopes, and the error/health response shapes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest quantity the products/transfers INTEGER columns can hold
MAX_QUANTITY = 2**31 - 1


class CamelModel(BaseModel):
    """
    Base for every API schema.

    Python attributes are snake_case; JSON keys are camelCase
    (originCountry, createdAt, productId). Either spelling is accepted
    on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class UpdateResult(CamelModel):
    """Returned by PATCH /my-exports/{id}."""
    success: bool = True
    matched_count: int = Field(description="Products matched by id (always 1 on success)")
    modified_count: int = Field(description="Products changed (0 when no editable field was sent)")


class DeleteResult(CamelModel):
    """Returned by the DELETE endpoints."""
    success: bool = True
    deleted_count: int = Field(description="Records removed")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "insufficient_stock",
            "message": "Import quantity exceeds available quantity",
            "details": {"requested": 7, "available": 5},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
