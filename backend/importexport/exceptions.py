"""
Import-Export Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services and the Database lifecycle; caught by handlers.

Exception Hierarchy:
    ImportExportError (base)
    ├── ValidationError          → 400 Bad Request (missing/malformed field)
    ├── InvalidArgumentError     → 400 Bad Request (bad import quantity)
    ├── NotFoundError            → 404 Not Found
    ├── InsufficientStockError   → 409 Conflict
    ├── StoreUnavailableError    → 503 Service Unavailable (caller may retry)
    └── DatabaseError            → 500 Internal Server Error

Only StoreUnavailableError is worth retrying; every other error is final
for the request that raised it.
"""

from typing import Any, Dict, Optional


class ImportExportError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only for client errors)

    Subclasses pass their structured fields as keyword details; any that are
    not None are merged into `context`.
    """

    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        **details: Any,
    ):
        self.message = message or self.default_message
        self.context = dict(context or {})
        self.context.update({k: v for k, v in details.items() if v is not None})
        super().__init__(self.message)


class ValidationError(ImportExportError):
    """
    A request body is missing a required field or a field cannot be coerced
    to its type. 400, e.g. {"error": "validation_error",
    "message": "All fields are required", "details": {"field": "price"}}
    """

    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, field=field)
        self.field = field


class InvalidArgumentError(ImportExportError):
    """An import quantity that is not a positive integer (400)."""

    default_message = "Import quantity must be a positive integer"

    def __init__(self, message: Optional[str] = None, argument: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, argument=argument)
        self.argument = argument


class NotFoundError(ImportExportError):
    """
    A referenced product or import record does not exist (404).

    Malformed identifiers raise this too; callers never see the storage id
    format.
    """

    def __init__(self, resource: str = "resource", resource_id: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        else:
            message = f"The requested {resource} was not found"
        super().__init__(message, context, resource=resource, resource_id=resource_id)


class InsufficientStockError(ImportExportError):
    """
    An import asks for more units than the product has left (409).
    Also what the losing side of two concurrent imports observes.
    """

    default_message = "Import quantity exceeds available quantity"

    def __init__(self, requested: int, available: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(None, context, requested=requested, available=available)
        self.requested = requested
        self.available = available


class StoreUnavailableError(ImportExportError):
    """
    The database cannot be reached: startup probe exhausted, connection
    dropped mid-request, pool timeout, or the Database was never connected.
    503 with a Retry-After header.
    """

    default_message = "The data store is temporarily unavailable. Please try again shortly."

    def __init__(self, message: Optional[str] = None, retry_after: int = 5,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, retry_after=retry_after)
        self.retry_after = retry_after


class DatabaseError(ImportExportError):
    """
    A database operation failed for a reason other than connectivity
    (constraint violation, bad SQL, driver bug). 500; the client only ever
    sees a generic message.
    """

    default_message = "A database error occurred. Please try again later."
