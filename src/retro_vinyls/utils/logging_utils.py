"""
# Logging Utilities

Helpers shared by the application entry point and the route layer:

- `RequestLoggingMiddleware`: one log line per HTTP request with method, path, status and duration.
- `log_application_lifecycle()`: structured startup/shutdown events.
- `log_error_with_context()`: error logging with the operation context that produced it.
"""

import time
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from retro_vinyls.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status code and processing time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.time() - start_time
            request_logger.error("%s %s failed after %.3fs", request.method, request.url.path, duration)
            raise

        duration = time.time() - start_time
        request_logger.info(
            "%s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, duration
        )
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an application lifecycle event.

    Args:
        event (str): Event name, e.g. `"startup_initiated"` or `"database_connected"`.
        details (Optional[Dict[str, Any]]): Extra key/value pairs to include.
    """
    if details:
        rendered = ", ".join(f"{key}={value}" for key, value in details.items())
        lifecycle_logger.info("%s: %s", event, rendered)
    else:
        lifecycle_logger.info("%s", event)


def log_error_with_context(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an exception together with the operation that raised it.

    Args:
        error (BaseException): The exception to log.
        context (Optional[Dict[str, Any]]): Operation details (e.g. `{"operation": "seed"}`).
    """
    rendered = ", ".join(f"{key}={value}" for key, value in (context or {}).items())
    error_logger.error(
        "%s: %s [%s]", type(error).__name__, error, rendered, exc_info=(type(error), error, error.__traceback__)
    )
