"""
# Database Management Module

This module provides the **MongoDB connection lifecycle manager** for the RetroVinyls API.
It implements the `DatabaseManager` class, which owns the single Motor client used by the
process, verifies it with liveness probes, retries failed connection attempts with a fixed
backoff, and hands a ready-to-use database handle to route handlers.

## Architecture Overview

```
┌─────────────────────────────────────────────────────────────┐
│                  Connection Lifecycle                        │
├─────────────────────────────────────────────────────────────┤
│                                                              │
│   ┌──────────────┐   ensure_connection()   ┌──────────────┐  │
│   │ Route        │────────────────────────▶│ Database     │  │
│   │ Handlers     │◀────────────────────────│ Manager      │  │
│   └──────────────┘   ConnectionResult      └──────┬───────┘  │
│                                                   │          │
│            DISCONNECTED ──▶ CONNECTING ──▶ CONNECTED         │
│                 ▲                │              │            │
│                 └────────────────┴──────────────┘            │
│                 (terminal failure / probe failure)           │
└─────────────────────────────────────────────────────────────┘
```

## Key Features

### 1. Single In-Flight Attempt
Concurrent callers that arrive while a connection attempt is running attach to the same
`asyncio.Task` and all observe its outcome. At most one attempt exists at any time.

### 2. Bounded Retries With Fixed Backoff
An attempt is an explicit loop of up to `MONGODB_MAX_RETRIES` tries separated by
`MONGODB_RETRY_DELAY` seconds. The result is a typed `ConnectionResult` rather than an
exception, so callers can tell a missing configuration, an unreachable server, a timeout
and an exhausted retry budget apart.

### 3. Connect Timeout Race
The handshake is raced against `MONGODB_CONNECT_TIMEOUT` with `asyncio.wait_for`. When the
timer wins, the half-open client is **closed** (its pool and monitor threads are released)
rather than abandoned, and the try counts as a `TIMEOUT` failure.

### 4. Probe-Verified Handles
A handle is only cached after a `ping` against the target database succeeds. Any later
probe failure resets the manager to `DISCONNECTED` before a reconnect is attempted.

## Usage Examples

```python
manager = DatabaseManager(settings)

result = await manager.ensure_connection()
if result.ok:
    items = await result.database["vinyls"].find({}).to_list(length=None)

# Or raise ServiceUnavailableError / ConfigurationError on failure
database = await manager.require_database()
```

## Thread Safety

The `DatabaseManager` is designed for **asyncio** and is **not thread-safe**. All methods
must be called from the same event loop.

## Module Attributes

Attributes:
    db_logger (Logger): Logger for connection transitions (`[DATABASE]`).
    perf_logger (Logger): Logger for timing metrics (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for probes (`[DB_HEALTH]`).
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
import time
from typing import Any, Callable, Dict, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from retro_vinyls.config import Settings
from retro_vinyls.managers.logging_manager import get_logger
from retro_vinyls.utils.exceptions import (
    ConfigurationError,
    ConnectionTimeoutError,
    DatabaseConnectionError,
    ServiceUnavailableError,
)

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class ConnectionState(str, Enum):
    """Lifecycle states of the connection manager."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class FailureReason(str, Enum):
    """Why a connection attempt did not produce a handle."""

    CONFIGURATION = "configuration"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ConnectionResult:
    """
    Outcome of `connect()` / `ensure_connection()`.

    Attributes:
        ok (bool): Whether a probe-verified handle is available.
        database (Optional[AsyncIOMotorDatabase]): The handle when `ok` is `True`.
        reason (Optional[FailureReason]): Failure category when `ok` is `False`.
        last_reason (Optional[FailureReason]): For `EXHAUSTED`, the reason of the final try.
        attempts (int): Number of tries made by the attempt that produced this result.
        message (str): Human-readable description of the failure.
    """

    ok: bool
    database: Optional[AsyncIOMotorDatabase] = None
    reason: Optional[FailureReason] = None
    last_reason: Optional[FailureReason] = None
    attempts: int = 0
    message: str = ""

    @classmethod
    def success(cls, database: AsyncIOMotorDatabase, attempts: int = 0) -> "ConnectionResult":
        return cls(ok=True, database=database, attempts=attempts)

    @classmethod
    def failure(
        cls,
        reason: FailureReason,
        message: str,
        last_reason: Optional[FailureReason] = None,
        attempts: int = 0,
    ) -> "ConnectionResult":
        return cls(ok=False, reason=reason, last_reason=last_reason, attempts=attempts, message=message)

    def unwrap(self) -> AsyncIOMotorDatabase:
        """
        Return the database handle or raise the matching request-level error.

        Raises:
            ConfigurationError: If the failure was caused by missing configuration.
            ServiceUnavailableError: For any other failure.
        """
        if self.ok:
            return self.database
        if self.reason is FailureReason.CONFIGURATION:
            raise ConfigurationError(self.message)
        raise ServiceUnavailableError(
            self.message or "Database connection unavailable",
            reason=self.reason.value if self.reason else None,
            attempts=self.attempts,
        )


class DatabaseManager:
    """
    Owns the process-wide MongoDB client and its connection lifecycle.

    **Lifecycle:**
    1. **Instantiation**: Created once by the application factory and stored on `app.state`
       (no network I/O; state is `DISCONNECTED`).
    2. **Connection**: `connect()` runs at startup and again whenever a request finds the
       manager disconnected.
    3. **Operations**: Route handlers call `require_database()` or `get_collection()`.
    4. **Failure**: A failed probe or a driver error reported through `mark_unhealthy()` resets
       the manager so the next request reconnects.
    5. **Shutdown**: `disconnect()` closes the client.

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): The Motor client, `None` unless connected.
        database (`Optional[AsyncIOMotorDatabase]`): The selected database, same lifetime as `client`.
        state (`ConnectionState`): Current lifecycle state.
        retry_count (`int`): Failed tries in the attempt currently running.
        max_retries (`int`): Maximum tries per attempt.
        retry_delay (`float`): Fixed backoff between tries, in seconds.
        connect_timeout (`float`): Overall handshake timeout, in seconds.
        last_error (`Optional[str]`): Message of the most recent failure.

    Note:
        The client factory is injectable so tests can exercise the state machine
        without a MongoDB server.
    """

    def __init__(
        self,
        config: Settings,
        client_factory: Optional[Callable[..., AsyncIOMotorClient]] = None,
    ):
        self.settings = config
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.state = ConnectionState.DISCONNECTED
        self.retry_count = 0
        self.max_retries = config.MONGODB_MAX_RETRIES
        self.retry_delay = config.MONGODB_RETRY_DELAY
        self.connect_timeout = config.MONGODB_CONNECT_TIMEOUT / 1000
        self.last_error: Optional[str] = None
        self.connected_at: Optional[float] = None
        self._client_factory = client_factory or AsyncIOMotorClient
        self._attempt: Optional["asyncio.Task[ConnectionResult]"] = None
        self._had_connection = False
        self._sleep = asyncio.sleep

    @property
    def is_connected(self) -> bool:
        """`True` when the last probe succeeded and the handles are cached."""
        return self.state is ConnectionState.CONNECTED and self.client is not None and self.database is not None

    @property
    def attempt_in_flight(self) -> bool:
        return self._attempt is not None and not self._attempt.done()

    @property
    def status(self) -> str:
        """
        Database status as reported by the health endpoint.

        Returns:
            `str`: One of `connected`, `connecting`, `connection_lost`, `disconnected`.
        """
        if self.is_connected:
            return "connected"
        if self.attempt_in_flight:
            return "connecting"
        if self._had_connection:
            return "connection_lost"
        return "disconnected"

    async def connect(self) -> ConnectionResult:
        """
        Return a probe-verified database handle, connecting if necessary.

        **Behavior:**
        - **Not configured**: returns a `CONFIGURATION` failure immediately; never retried.
        - **Connected**: pings the target database. On success the cached handle is returned;
          on failure the manager resets to `DISCONNECTED` and reconnects.
        - **Attempt in flight**: awaits the running attempt instead of starting another.
        - **Otherwise**: starts a new attempt (see `_run_attempt()`).

        The shared attempt is awaited through `asyncio.shield()`, so a caller whose request
        is cancelled does not cancel the attempt other callers are waiting on.

        Returns:
            `ConnectionResult`: Success with the database handle, or a failure whose `reason`
                is `CONFIGURATION` or `EXHAUSTED` (with `last_reason` set to `UNREACHABLE`
                or `TIMEOUT`).
        """
        if not self.settings.MONGODB_URI:
            db_logger.error("MONGODB_URI is not configured; cannot connect to MongoDB")
            return ConnectionResult.failure(
                FailureReason.CONFIGURATION, "MONGODB_URI environment variable is required"
            )

        if self.is_connected:
            client, database = self.client, self.database
            if await self._probe(database):
                if self.client is client:
                    return ConnectionResult.success(database)
            else:
                health_logger.warning("Liveness probe failed on cached connection, reconnecting")
                self._reset_if_current(client)

        if self.is_connected:
            # Another caller reconnected while this one was probing
            return ConnectionResult.success(self.database)

        if not self.attempt_in_flight:
            self._attempt = asyncio.ensure_future(self._run_attempt())
        else:
            db_logger.debug("Connection attempt already in progress, awaiting its outcome")
        return await asyncio.shield(self._attempt)

    async def ensure_connection(self) -> ConnectionResult:
        """
        Return the cached handle without probing, or delegate to `connect()`.

        This is the cheap path used on every request. Liveness is only re-verified
        lazily: by `health_check()`, by `connect()`, or after a handler reports a
        driver error through `mark_unhealthy()`.

        Returns:
            `ConnectionResult`: See `connect()`.
        """
        if self.is_connected:
            return ConnectionResult.success(self.database)
        return await self.connect()

    async def require_database(self) -> AsyncIOMotorDatabase:
        """
        Return a connected database handle or raise a request-level error.

        Raises:
            ConfigurationError: If `MONGODB_URI` is not configured.
            ServiceUnavailableError: If no connection could be established.
        """
        result = await self.ensure_connection()
        return result.unwrap()

    async def _run_attempt(self) -> ConnectionResult:
        """
        Run one connection attempt: a bounded loop of tries with a fixed backoff.

        Each try builds a new client, races the handshake against the connect timeout,
        and probes the target database. A failed try closes and discards its client and
        increments `retry_count`; if the count is still below `max_retries` the loop sleeps
        `retry_delay` seconds and tries again. When the budget is spent the attempt returns
        an `EXHAUSTED` failure naming the number of tries, and a later call starts again
        from zero.
        """
        start_time = time.time()
        self.state = ConnectionState.CONNECTING
        self.retry_count = 0
        last_reason: Optional[FailureReason] = None
        last_message = ""
        db_logger.info("Starting MongoDB connection process")

        try:
            while True:
                attempt_number = self.retry_count + 1
                attempt_start = time.time()
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt_number, self.max_retries)

                try:
                    client, database = await self._open()
                except ConfigurationError as e:
                    self.last_error = e.message
                    db_logger.error("Invalid MongoDB configuration: %s", e.message)
                    return ConnectionResult.failure(
                        FailureReason.CONFIGURATION, e.message, attempts=attempt_number
                    )
                except ConnectionTimeoutError as e:
                    last_reason, last_message = FailureReason.TIMEOUT, e.message
                except DatabaseConnectionError as e:
                    last_reason, last_message = FailureReason.UNREACHABLE, e.message
                else:
                    self.client = client
                    self.database = database
                    self.state = ConnectionState.CONNECTED
                    self.retry_count = 0
                    self.last_error = None
                    self.connected_at = time.time()
                    self._had_connection = True
                    perf_logger.info("MongoDB connection established in %.3fs", time.time() - start_time)
                    db_logger.info("Successfully connected to MongoDB database: %s", self.settings.MONGODB_DATABASE)
                    return ConnectionResult.success(database, attempts=attempt_number)

                self.retry_count += 1
                self.last_error = last_message
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt_number, time.time() - attempt_start)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s",
                    attempt_number,
                    self.max_retries,
                    last_message,
                )
                if self.retry_count >= self.max_retries:
                    break

                db_logger.info("Waiting %.1fs before retry", self.retry_delay)
                await self._sleep(self.retry_delay)

            attempts = self.retry_count
            db_logger.error("All %d connection attempts failed after %.3fs", attempts, time.time() - start_time)
            return ConnectionResult.failure(
                FailureReason.EXHAUSTED,
                f"Failed to connect to MongoDB after {attempts} attempts: {last_message}",
                last_reason=last_reason,
                attempts=attempts,
            )
        finally:
            if self.state is ConnectionState.CONNECTING:
                self.state = ConnectionState.DISCONNECTED
            self.retry_count = 0
            self._attempt = None

    async def _open(self) -> Tuple[AsyncIOMotorClient, AsyncIOMotorDatabase]:
        """
        Build a client, complete the handshake within the connect timeout, and probe.

        Raises:
            ConfigurationError: If the driver rejects the URI or options.
            ConnectionTimeoutError: If the handshake did not finish within `connect_timeout`.
            DatabaseConnectionError: If the handshake or the probe failed.
        """
        try:
            client = self._create_client()
        except PyMongoConfigurationError as e:
            raise ConfigurationError(f"Invalid MongoDB configuration: {e}") from e

        try:
            await asyncio.wait_for(client.admin.command("hello"), timeout=self.connect_timeout)
            database = client[self.settings.MONGODB_DATABASE]
            ping_start = time.time()
            await database.command("ping")
            perf_logger.debug("Probe succeeded in %.3fs", time.time() - ping_start)
        except asyncio.TimeoutError as e:
            self._close_client(client)
            raise ConnectionTimeoutError(
                f"Connection to MongoDB timed out after {self.connect_timeout:.1f}s"
            ) from e
        except PyMongoError as e:
            self._close_client(client)
            raise DatabaseConnectionError(f"Could not reach MongoDB: {e}") from e
        except asyncio.CancelledError:
            self._close_client(client)
            raise
        return client, database

    def _create_client(self) -> AsyncIOMotorClient:
        db_logger.info(
            "MongoDB connection config - Database: %s, MaxPool: %d, ServerTimeout: %dms, SocketTimeout: %dms, ConnectTimeout: %dms",
            self.settings.MONGODB_DATABASE,
            self.settings.MONGODB_MAX_POOL_SIZE,
            self.settings.MONGODB_SERVER_SELECTION_TIMEOUT,
            self.settings.MONGODB_SOCKET_TIMEOUT,
            self.settings.MONGODB_CONNECT_TIMEOUT,
        )
        return self._client_factory(
            self.settings.MONGODB_URI,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            maxPoolSize=self.settings.MONGODB_MAX_POOL_SIZE,
            serverSelectionTimeoutMS=self.settings.MONGODB_SERVER_SELECTION_TIMEOUT,
            socketTimeoutMS=self.settings.MONGODB_SOCKET_TIMEOUT,
        )

    async def _probe(self, database: Optional[AsyncIOMotorDatabase]) -> bool:
        if database is None:
            return False
        start_time = time.time()
        try:
            await database.command("ping")
        except PyMongoError as e:
            health_logger.error("Database ping failed after %.3fs: %s", time.time() - start_time, e)
            self.last_error = str(e)
            return False
        perf_logger.debug("Database ping completed in %.3fs", time.time() - start_time)
        return True

    async def health_check(self) -> bool:
        """
        Verify the cached connection with a `ping`.

        Returns `False` without raising when no connection is cached or the probe fails;
        a failed probe also resets the manager so the next request reconnects.

        Returns:
            `bool`: `True` if the database answered the probe.
        """
        if not self.is_connected:
            health_logger.debug("Health check skipped: no active connection")
            return False

        client = self.client
        if await self._probe(self.database):
            health_logger.debug("Database health check passed")
            return True
        self._reset_if_current(client)
        return False

    def mark_unhealthy(self, error: BaseException) -> None:
        """
        Record a driver error raised while serving a request and reset the connection.

        Args:
            error (BaseException): The error raised by the driver.
        """
        db_logger.warning("Database operation failed, resetting connection: %s", error)
        self.last_error = str(error)
        self._reset_if_current(self.client)

    def _reset_if_current(self, client: Optional[AsyncIOMotorClient]) -> None:
        # A reconnect may already have replaced the client that failed
        if client is not None and self.client is client:
            self.reset()

    def reset(self) -> None:
        """Close the cached client and return to `DISCONNECTED`."""
        if self.attempt_in_flight:
            db_logger.debug("Reset ignored while a connection attempt is in progress")
            return
        if self.client is not None:
            self._close_client(self.client)
        self.client = None
        self.database = None
        self.connected_at = None
        self.state = ConnectionState.DISCONNECTED
        db_logger.info("Connection state reset to %s", self.state.value)

    def _close_client(self, client: AsyncIOMotorClient) -> None:
        try:
            client.close()
        except Exception as e:
            db_logger.warning("Error closing MongoDB client: %s", e)

    async def disconnect(self) -> None:
        """
        Gracefully disconnect from MongoDB.

        Cancels a connection attempt that is still running, then closes the client.
        Safe to call when not connected.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        attempt = self._attempt
        if attempt is not None and not attempt.done():
            attempt.cancel()
            try:
                await attempt
            except asyncio.CancelledError:
                db_logger.info("Cancelled in-flight connection attempt")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.reset()
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    def get_collection(self, collection_name: Optional[str] = None) -> AsyncIOMotorCollection:
        """
        Retrieve a collection from the connected database.

        Args:
            collection_name (`Optional[str]`): Collection name. Defaults to `MONGODB_COLLECTION`.

        Returns:
            `AsyncIOMotorCollection`: The Motor collection.

        Raises:
            `ServiceUnavailableError`: If no connection is cached.
        """
        name = collection_name or self.settings.MONGODB_COLLECTION
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", name)
            raise ServiceUnavailableError("Database not connected")
        return self.database[name]

    def describe(self) -> Dict[str, Any]:
        """Connection details for the health endpoint."""
        details: Dict[str, Any] = {"status": self.status, "connected": self.is_connected}
        if self.is_connected:
            details["name"] = self.settings.MONGODB_DATABASE
            details["provider"] = "MongoDB"
        elif self.last_error:
            details["lastError"] = self.last_error
        return details
