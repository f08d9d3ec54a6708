"""
PawCare Backend — Shared Response Schemas
===========================================

What:  The response envelope used by every endpoint, plus error and health shapes.

Envelope:
    success  → {"success": true, "data": ..., "message": "..."}   (data/message optional)
    failure  → {"success": false, "error": "<code>", "message": "...", "request_id": "..."}

`data` and `message` are left out of the JSON when they are None, so a
logout answers `{"success": true, "message": "..."}` with no `data: null`.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = Field(default=True, description="Always true for 2xx responses")
    data: Optional[DataT] = Field(default=None, description="Payload, when the endpoint returns one")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler: SerializerFunctionWrapHandler):
        return {key: value for key, value in handler(self).items() if value is not None}


class ErrorResponse(BaseModel):
    """
    Standardized error body for all 4xx/5xx responses.

    Example:
        {
            "success": false,
            "error": "validation_error",
            "message": "Rating must be between 1 and 5",
            "request_id": "3f9a1c2b"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Correlation ID for server logs")


class HealthResponse(BaseModel):
    status: str = Field(description="ok when storage answers, degraded otherwise")
    message: str = Field(description="Human-readable status line")
    version: str = Field(description="Backend version")
    database: str = Field(description="Active storage backend and its state")
    notifications_sent: int = Field(description="Notifications delivered since start")
    notification_failures: int = Field(description="Notifications that failed since start")
    uptime_seconds: float = Field(description="Seconds since process start")
