"""
Exception hierarchy for the booking calendar.

Each error knows the HTTP status and error code it is rendered with, so the
API layer can turn any of them into the standard ``{code, message, error}``
envelope without a per-route mapping.
"""

from typing import Any


class CalendarError(Exception):
    """Base class for errors that reach the request boundary."""

    status_code = 500
    error_code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class Unauthenticated(CalendarError):
    """No Credential Record in the session; the caller must log in."""

    status_code = 401
    error_code = "UNAUTHENTICATED"
    message = "Not authenticated with Zoho. Please log in."


class SessionExpired(CalendarError):
    """Refresh failed or was impossible; the Credential Record was destroyed."""

    status_code = 401
    error_code = "SESSION_EXPIRED"
    message = "Session expired, please re-authenticate."


class UpstreamUnavailable(CalendarError):
    """A primary call to the Zoho API failed.

    An upstream 401 means the token was rejected, so it surfaces as 401 and
    the caller re-authenticates. Anything else is a 500.
    """

    error_code = "UPSTREAM_UNAVAILABLE"
    message = "Failed to fetch data from Zoho CRM."

    def __init__(
        self,
        detail: str | None = None,
        upstream_status: int | None = None,
        payload: Any = None,
    ):
        super().__init__(detail)
        self.upstream_status = upstream_status
        self.payload = payload
        if upstream_status == 401:
            self.status_code = 401
            self.error_code = "UPSTREAM_UNAUTHORIZED"


class TaskCreationFailed(CalendarError):
    """Zoho did not accept the change-summary task."""

    status_code = 404
    error_code = "TASK_NOT_CREATED"
    message = "Task to update could not be created in Zoho CRM"


class ValidationFailure(CalendarError):
    """A local record is missing required fields or is inconsistent."""

    status_code = 500
    error_code = "VALIDATION_ERROR"
    message = "Local record validation failed"


class NotFound(CalendarError):
    """No local event or status with the requested id."""

    status_code = 404
    error_code = "NOT_FOUND"
    message = "Record not found"


class InvalidRequest(CalendarError):
    """Malformed query parameters."""

    status_code = 400
    error_code = "INVALID_REQUEST"
    message = "Invalid request"


class TokenExchangeError(Exception):
    """Token exchange, refresh or revocation failed at the accounts server."""
