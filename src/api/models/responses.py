"""Pydantic response models for API endpoints."""

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class Envelope(BaseModel):
    """Standard success response."""

    code: int
    message: str
    data: Any = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    code: int
    message: str
    error: Any = None


class ErrorCodes:
    """Error code constants."""

    INTERNAL_ERROR = "INTERNAL_ERROR"


def ok(message: str, data: Any = None) -> dict:
    """Body of a 200 response."""
    return Envelope(code=200, message=message, data=data).model_dump(mode="json")
