"""
# Route Dependencies

FastAPI dependencies and helpers shared by the route modules.

- `get_db_manager`: returns the `DatabaseManager` stored on `app.state` by the application
  factory. It performs no I/O, so handlers can finish input validation before asking for a
  connection.
- `parse_object_id`: converts a path identifier into an `ObjectId` or raises `InvalidIdError`.
- `database_operation`: maps lost connections during a handler's query to a 503.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from pymongo.errors import ConnectionFailure

from retro_vinyls.config import Settings
from retro_vinyls.database.manager import DatabaseManager
from retro_vinyls.utils.exceptions import InvalidIdError, ServiceUnavailableError
from retro_vinyls.utils.logging_utils import log_error_with_context


def get_db_manager(request: Request) -> DatabaseManager:
    """Return the connection manager created at application startup."""
    return request.app.state.db_manager


def get_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""
    return request.app.state.settings


def parse_object_id(item_id: str) -> ObjectId:
    """
    Convert a path identifier to an `ObjectId`.

    Args:
        item_id (str): The identifier from the URL path.

    Returns:
        ObjectId: The parsed identifier.

    Raises:
        InvalidIdError: If `item_id` is not a 24-character hex ObjectId.
    """
    try:
        return ObjectId(item_id)
    except (InvalidId, TypeError) as e:
        raise InvalidIdError(item_id) from e


@asynccontextmanager
async def database_operation(manager: DatabaseManager, action: str) -> AsyncIterator[None]:
    """
    Convert connection-level driver errors raised inside the block into a 503.

    The manager is reset so the next request performs a full reconnect instead of
    reusing a handle that has just failed.

    Args:
        manager (DatabaseManager): The connection manager that produced the handle.
        action (str): What the handler was doing, used in the error message (e.g. `"fetch items"`).

    Raises:
        ServiceUnavailableError: If the driver raised a `ConnectionFailure`.
    """
    try:
        yield
    except ConnectionFailure as e:
        manager.mark_unhealthy(e)
        log_error_with_context(e, {"operation": action})
        raise ServiceUnavailableError(f"Cannot {action}: database connection lost", reason="unreachable") from e
