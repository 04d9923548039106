"""API Pydantic models."""

from .responses import Envelope, ErrorCodes, ErrorResponse, HealthResponse, ok

__all__ = ["Envelope", "HealthResponse", "ErrorResponse", "ErrorCodes", "ok"]
