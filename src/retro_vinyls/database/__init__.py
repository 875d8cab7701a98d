"""
# Database Package

The `retro_vinyls.database` package provides the **persistence layer** for the API, built on
**Motor** (async MongoDB driver).

## Core Components

- **`manager`**: `DatabaseManager`, which owns the single MongoDB client, verifies it with
  liveness probes, and retries failed connection attempts with a bounded budget.

## Design Pattern

**Explicit Context Object:**
The manager is constructed once by the application factory and stored on `app.state`.
Route handlers receive it through the `get_db_manager` dependency instead of importing
a module-level global, which keeps a single shared connection while letting tests inject
their own manager.

## Connection Lifecycle

1.  **Instantiation** (app factory): manager created, no I/O.
2.  **Connection** (startup, or first request): `connect()` establishes and probes the client.
3.  **Operations** (runtime): `require_database()` returns the cached handle.
4.  **Disconnection** (shutdown): `disconnect()` closes the client.
"""

from retro_vinyls.database.manager import ConnectionResult, ConnectionState, DatabaseManager, FailureReason

__all__ = ["ConnectionResult", "ConnectionState", "DatabaseManager", "FailureReason"]
