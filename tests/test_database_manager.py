import asyncio
from unittest.mock import call

from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
import pytest

from retro_vinyls.database.manager import ConnectionState, DatabaseManager, FailureReason
from retro_vinyls.utils.exceptions import ConfigurationError, ServiceUnavailableError

from .conftest import FakeClientFactory, make_settings


# ============================================================================
# connect()
# ============================================================================


@pytest.mark.asyncio
async def test_connect_success_caches_probe_verified_handle(manager, client_factory):
    result = await manager.connect()

    assert result.ok is True
    assert result.attempts == 1
    assert manager.state is ConnectionState.CONNECTED
    assert manager.is_connected
    assert manager.database is result.database
    assert manager.retry_count == 0

    client = client_factory.clients[0]
    assert client.options["maxPoolSize"] == 10
    assert client.options["serverSelectionTimeoutMS"] == 5000
    assert client.options["socketTimeoutMS"] == 45000
    assert client.handshake_calls == 1
    result.database.command.assert_awaited_with("ping")


@pytest.mark.asyncio
async def test_connect_when_connected_probes_and_reuses_client(manager, client_factory):
    first = await manager.connect()
    second = await manager.connect()

    assert second.ok is True
    assert second.database is first.database
    assert client_factory.call_count == 1
    assert first.database.command.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_connects_share_a_single_attempt(manager, client_factory):
    client_factory.handshake_delay = 0.01

    results = await asyncio.gather(*(manager.connect() for _ in range(5)))

    assert client_factory.call_count == 1
    assert all(result.ok for result in results)
    assert len({id(result.database) for result in results}) == 1
    assert manager.attempt_in_flight is False


@pytest.mark.asyncio
async def test_concurrent_ensure_connection_calls_share_a_single_attempt(manager, client_factory):
    client_factory.handshake_delay = 0.01

    results = await asyncio.gather(*(manager.ensure_connection() for _ in range(5)))

    assert client_factory.call_count == 1
    assert all(result.ok for result in results)
    assert len({id(result.database) for result in results}) == 1
    assert manager.database is results[0].database


@pytest.mark.asyncio
async def test_concurrent_failures_are_observed_by_every_caller(manager, client_factory):
    client_factory.handshake_errors = [ServerSelectionTimeoutError("no servers")] * 3

    results = await asyncio.gather(*(manager.connect() for _ in range(4)))

    assert client_factory.call_count == 3
    assert all(result.reason is FailureReason.EXHAUSTED for result in results)


@pytest.mark.asyncio
async def test_connect_exhausts_retry_budget(manager, client_factory):
    client_factory.handshake_errors = [ServerSelectionTimeoutError("no servers")] * 3

    result = await manager.connect()

    assert result.ok is False
    assert result.reason is FailureReason.EXHAUSTED
    assert result.last_reason is FailureReason.UNREACHABLE
    assert result.attempts == 3
    assert "after 3 attempts" in result.message
    assert manager._sleep.await_args_list == [call(2.0), call(2.0)]
    assert all(client.closed for client in client_factory.clients)
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.retry_count == 0
    assert manager.client is None


@pytest.mark.asyncio
async def test_connect_after_exhaustion_starts_a_fresh_attempt(manager, client_factory):
    client_factory.handshake_errors = [AutoReconnect("down")] * 3
    assert (await manager.connect()).ok is False

    result = await manager.connect()

    assert result.ok is True
    assert client_factory.call_count == 4


@pytest.mark.asyncio
async def test_connect_succeeds_after_transient_failure(manager, client_factory):
    client_factory.handshake_errors = [AutoReconnect("refused"), None]

    result = await manager.connect()

    assert result.ok is True
    assert result.attempts == 2
    assert client_factory.clients[0].closed is True
    assert client_factory.clients[1].closed is False
    manager._sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_connect_timeout_closes_half_open_client():
    config = make_settings(MONGODB_CONNECT_TIMEOUT=10, MONGODB_MAX_RETRIES=1)
    factory = FakeClientFactory()
    factory.handshake_delay = 1.0
    manager = DatabaseManager(config, client_factory=factory)

    result = await manager.connect()

    assert result.ok is False
    assert result.reason is FailureReason.EXHAUSTED
    assert result.last_reason is FailureReason.TIMEOUT
    assert result.attempts == 1
    assert "timed out" in result.message
    assert factory.clients[0].closed is True
    assert manager.client is None


@pytest.mark.asyncio
async def test_connect_without_uri_is_a_configuration_failure(client_factory):
    manager = DatabaseManager(make_settings(MONGODB_URI=""), client_factory=client_factory)

    result = await manager.connect()

    assert result.ok is False
    assert result.reason is FailureReason.CONFIGURATION
    assert client_factory.call_count == 0
    with pytest.raises(ConfigurationError):
        result.unwrap()


@pytest.mark.asyncio
async def test_connect_with_rejected_uri_is_not_retried(manager, client_factory):
    client_factory.error = PyMongoConfigurationError("invalid URI scheme")

    result = await manager.connect()

    assert result.reason is FailureReason.CONFIGURATION
    assert result.attempts == 1
    manager._sleep.assert_not_awaited()
    assert manager.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_failed_probe_on_connect_reconnects(manager, client_factory):
    first = await manager.connect()
    first.database.command.side_effect = AutoReconnect("connection reset")

    second = await manager.connect()

    assert second.ok is True
    assert client_factory.call_count == 2
    assert client_factory.clients[0].closed is True
    assert manager.client is client_factory.clients[1]


# ============================================================================
# ensure_connection() / require_database()
# ============================================================================


@pytest.mark.asyncio
async def test_ensure_connection_skips_probe_when_cached(manager):
    first = await manager.ensure_connection()
    pings = first.database.command.await_count

    second = await manager.ensure_connection()

    assert second.database is first.database
    assert first.database.command.await_count == pings


@pytest.mark.asyncio
async def test_severed_handle_forces_reconnect(manager, client_factory):
    await manager.connect()
    manager.client = None

    result = await manager.ensure_connection()

    assert result.ok is True
    assert client_factory.call_count == 2


@pytest.mark.asyncio
async def test_require_database_raises_when_unreachable(manager, client_factory):
    client_factory.handshake_errors = [AutoReconnect("down")] * 3

    with pytest.raises(ServiceUnavailableError) as exc_info:
        await manager.require_database()

    assert exc_info.value.status_code == 503
    assert exc_info.value.reason == "exhausted"
    assert exc_info.value.attempts == 3


# ============================================================================
# health_check() / mark_unhealthy() / disconnect()
# ============================================================================


@pytest.mark.asyncio
async def test_health_check_without_connection_does_not_connect(manager, client_factory):
    assert await manager.health_check() is False
    assert client_factory.call_count == 0
    assert manager.status == "disconnected"


@pytest.mark.asyncio
async def test_health_check_failure_resets_connection(manager, client_factory):
    result = await manager.connect()
    assert await manager.health_check() is True

    result.database.command.side_effect = AutoReconnect("socket closed")

    assert await manager.health_check() is False
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.client is None
    assert client_factory.clients[0].closed is True
    assert manager.status == "connection_lost"
    assert manager.describe() == {"status": "connection_lost", "connected": False, "lastError": "socket closed"}


@pytest.mark.asyncio
async def test_mark_unhealthy_resets_current_client(manager, client_factory):
    await manager.connect()

    manager.mark_unhealthy(AutoReconnect("broken pipe"))

    assert manager.is_connected is False
    assert manager.last_error == "broken pipe"
    assert client_factory.clients[0].closed is True


@pytest.mark.asyncio
async def test_describe_connected(manager):
    await manager.connect()

    assert manager.describe() == {
        "status": "connected",
        "connected": True,
        "name": "retrovinyls_test",
        "provider": "MongoDB",
    }


@pytest.mark.asyncio
async def test_disconnect_closes_client(manager, client_factory):
    await manager.connect()

    await manager.disconnect()

    assert client_factory.clients[0].closed is True
    assert manager.state is ConnectionState.DISCONNECTED
    with pytest.raises(ServiceUnavailableError):
        manager.get_collection()


@pytest.mark.asyncio
async def test_disconnect_without_connection_is_a_no_op(manager):
    await manager.disconnect()

    assert manager.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_disconnect_cancels_in_flight_attempt(manager, client_factory):
    client_factory.handshake_delay = 1.0
    pending = asyncio.ensure_future(manager.connect())
    await asyncio.sleep(0.05)
    assert manager.status == "connecting"

    await manager.disconnect()

    with pytest.raises(asyncio.CancelledError):
        await pending
    assert client_factory.clients[0].closed is True
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.attempt_in_flight is False


@pytest.mark.asyncio
async def test_get_collection_defaults_to_configured_collection(manager):
    result = await manager.connect()

    assert manager.get_collection() is result.database["vinyls"]
    assert manager.get_collection("archive") is result.database["archive"]
