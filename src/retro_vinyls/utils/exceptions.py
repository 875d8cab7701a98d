"""Exception classes for the RetroVinyls API.

Every error carries the HTTP status it maps to and renders to the JSON error shape
returned by the API (`success`, `error`, `message` and optional `details`).
"""

from typing import Any, Dict, Optional


class RetroVinylsError(Exception):
    """Base exception class for the RetroVinyls API."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str, error: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if error is not None:
            self.error = error
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to the API error body (without timestamp).

        Returns:
            A dictionary representation of the error.
        """
        body: Dict[str, Any] = {"success": False, "error": self.error, "message": self.message}
        body.update(self.details)
        return body


class ConfigurationError(RetroVinylsError):
    """Required configuration is missing."""

    status_code = 503
    error = "Database not configured"


class DatabaseConnectionError(RetroVinylsError):
    """The server could not be reached or rejected the connection."""

    status_code = 503
    error = "Database connection failed"


class ConnectionTimeoutError(DatabaseConnectionError):
    """The connect attempt exceeded the overall connect timeout."""

    error = "Database connection timed out"


class ServiceUnavailableError(RetroVinylsError):
    """The connection manager could not produce a connected handle."""

    status_code = 503
    error = "Database not connected"

    def __init__(self, message: str, reason: Optional[str] = None, attempts: Optional[int] = None):
        details: Dict[str, Any] = {}
        if reason is not None:
            details["reason"] = reason
        if attempts:
            details["attempts"] = attempts
        super().__init__(message, details=details)
        self.reason = reason
        self.attempts = attempts


class ValidationError(RetroVinylsError):
    """A request payload failed validation."""

    status_code = 400
    error = "Validation failed"

    def __init__(self, message: str, field: Optional[str] = None, error: Optional[str] = None, **details: Any):
        if field is not None:
            details["field"] = field
        super().__init__(message, error=error, details=details)
        self.field = field


class InvalidIdError(ValidationError):
    """A path identifier is not a valid ObjectId."""

    error = "Invalid ID format"

    def __init__(self, item_id: str):
        super().__init__("The provided ID is not a valid MongoDB ObjectId", field="id")
        self.item_id = item_id


class NotFoundError(RetroVinylsError):
    """Lookup miss."""

    status_code = 404
    error = "Item not found"


class ForbiddenError(RetroVinylsError):
    """The operation is not permitted in the current deployment mode."""

    status_code = 403
    error = "Forbidden"
