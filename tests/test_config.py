from pydantic import ValidationError
import pytest

from retro_vinyls.config import Settings
from retro_vinyls.utils.exceptions import ConfigurationError

ENV_VARS = (
    "MONGODB_URI",
    "MONGODB_URL",
    "DB_NAME",
    "MONGODB_DATABASE",
    "ENVIRONMENT",
    "NODE_ENV",
    "SERVERLESS",
    "LOG_LEVEL",
    "PORT",
    "CORS_ORIGINS",
    "MONGODB_CONNECT_TIMEOUT",
    "MONGODB_MAX_RETRIES",
    "MONGODB_RETRY_DELAY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def load(**values):
    return Settings(_env_file=None, **values)


def test_defaults(clean_env):
    config = load()

    assert config.PORT == 5000
    assert config.MONGODB_URI is None
    assert config.MONGODB_DATABASE == "retrovinyls"
    assert config.MONGODB_COLLECTION == "vinyls"
    assert config.MONGODB_MAX_POOL_SIZE == 10
    assert config.MONGODB_SERVER_SELECTION_TIMEOUT == 5000
    assert config.MONGODB_SOCKET_TIMEOUT == 45000
    assert config.MONGODB_CONNECT_TIMEOUT == 10000
    assert config.MONGODB_MAX_RETRIES == 3
    assert config.MONGODB_RETRY_DELAY == 2.0
    assert config.is_production is False
    assert config.effective_log_level == "DEBUG"


def test_reads_environment_variables(clean_env):
    clean_env.setenv("MONGODB_URI", "mongodb+srv://cluster.example.net")
    clean_env.setenv("DB_NAME", "catalogue")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("ENVIRONMENT", "Production")

    config = load()

    assert config.MONGODB_URI == "mongodb+srv://cluster.example.net"
    assert config.MONGODB_DATABASE == "catalogue"
    assert config.PORT == 8080
    assert config.is_production is True
    assert config.seeding_allowed is False
    assert config.effective_log_level == "INFO"


def test_node_env_alias(clean_env):
    clean_env.setenv("NODE_ENV", "production")

    assert load().is_production is True


def test_blank_uri_is_treated_as_unset(clean_env):
    clean_env.setenv("MONGODB_URI", "   ")

    assert load().MONGODB_URI is None


@pytest.mark.parametrize(
    "values, required",
    [
        ({}, True),
        ({"ENVIRONMENT": "production"}, False),
        ({"SERVERLESS": True}, False),
        ({"MONGODB_URI": "mongodb://localhost:27017"}, False),
    ],
)
def test_require_startup_config(clean_env, values, required):
    config = load(**values)

    if required:
        with pytest.raises(ConfigurationError, match="MONGODB_URI environment variable is required"):
            config.require_startup_config()
    else:
        config.require_startup_config()


@pytest.mark.parametrize(
    "values",
    [
        {"MONGODB_CONNECT_TIMEOUT": 0},
        {"MONGODB_SOCKET_TIMEOUT": 400000},
        {"MONGODB_MAX_RETRIES": 0},
        {"MONGODB_MAX_POOL_SIZE": -1},
        {"MONGODB_RETRY_DELAY": -0.5},
    ],
)
def test_rejects_invalid_connection_policy(clean_env, values):
    with pytest.raises(ValidationError):
        load(**values)


def test_cors_origins_list(clean_env):
    config = load(CORS_ORIGINS="https://retrovinyls.shop, http://localhost:3000,,")

    assert config.cors_origins_list == ["https://retrovinyls.shop", "http://localhost:3000"]


def test_log_level_override(clean_env):
    assert load(LOG_LEVEL="warning", ENVIRONMENT="production").effective_log_level == "WARNING"
