"""
PawCare Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each failure category.
Why:   Lets services raise meaningful errors while global handlers (main.py)
       translate them into the `{success: false, error, message}` envelope
       with the right HTTP status.
How:   Each exception carries a user-facing `message` and a `context` dict.
       The context is logged server-side and never returned to the client.

Exception Hierarchy:
    PawCareError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── ConstraintError          → 400 Bad Request (unique key already taken)
    ├── AuthError                → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── StorageError             → 500 Internal Server Error (generic message)
"""

from typing import Any, Dict, Optional

# Client-facing text for failures outside the PawCareError hierarchy
UNEXPECTED_ERROR = "An unexpected error occurred. Please try again or contact support."


class PawCareError(Exception):
    """
    Base exception for all PawCare application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PawCareError):
    """
    Raised when client input fails a business rule.

    Examples: weak password, rating outside 1..5, unknown booking status,
    missing required feedback fields.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConstraintError(PawCareError):
    """
    Raised when a write violates a uniqueness or integrity rule.

    The storage adapter converts the driver's IntegrityError into this;
    services also raise it directly for pre-checked duplicates such as
    "Email already registered".
    """

    status_code = 400
    error_code = "constraint_error"

    def __init__(
        self,
        message: str = "The record conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthError(PawCareError):
    """Missing identity, wrong credentials, or wrong current password."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PawCareError):
    """
    Raised when a requested resource does not exist.

    The adapter returns None for missing rows; services convert that into
    NotFoundError so the route stays free of status-code logic.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(PawCareError):
    """
    Raised when the storage backend fails for a reason other than a
    constraint violation (connection lost, syntax error, deadlock).

    The client always receives a generic message; the driver error and the
    failing operation are kept in `context` for the server log.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PawCareError):
    """Raised when a client exceeds one of the per-IP request windows."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = "Too many requests from this IP, please try again later."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
