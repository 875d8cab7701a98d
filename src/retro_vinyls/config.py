"""
# Configuration Management Module

This module provides the **environment-driven configuration** for the RetroVinyls API.
Built on **Pydantic Settings**, it loads values from environment variables or an optional
config file, validates them at startup, and exposes a single `settings` object used
throughout the application.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│         Configuration Loading Hierarchy                     │
│  (Higher layers override lower layers)                      │
├─────────────────────────────────────────────────────────────┤
│  1. Environment Variables (HIGHEST PRIORITY)                │
│  2. RETRO_VINYLS_CONFIG_PATH (custom config file)           │
│  3. .env File (Project Root)                                │
│  4. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

## Deployment Modes

The `ENVIRONMENT` and `SERVERLESS` settings decide how strictly configuration is enforced:

| Mode | Missing `MONGODB_URI` | Seeding | Error details |
|------|-----------------------|---------|---------------|
| development | fatal at startup (exit 1) | allowed | shown |
| production | deferred to first request (503) | forbidden (403) | hidden |
| serverless | deferred to first request (503) | per environment | per environment |

## Configuration Groups

### Server
```python
HOST: str = "0.0.0.0"
PORT: int = 5000
ENVIRONMENT: str = "development"
```

### MongoDB
```python
MONGODB_URI: Optional[str]            # Connection string (REQUIRED)
MONGODB_DATABASE: str = "retrovinyls"  # also read from DB_NAME
MONGODB_MAX_POOL_SIZE: int = 10
MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000   # ms
MONGODB_SOCKET_TIMEOUT: int = 45000            # ms
MONGODB_CONNECT_TIMEOUT: int = 10000           # ms, overall connect race
MONGODB_MAX_RETRIES: int = 3
MONGODB_RETRY_DELAY: float = 2.0               # seconds
```

## Module Attributes

Attributes:
    CONFIG_ENV_VAR (str): Environment variable naming a custom config file.
    PROJECT_ROOT (Path): Repository root, used to locate the `.env` file.
    CONFIG_PATH (Optional[str]): The config file that was loaded, if any.
    settings (Settings): Global settings instance created at import time.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from retro_vinyls.utils.exceptions import ConfigurationError

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "RETRO_VINYLS_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent
PRODUCTION_ENVIRONMENTS = ("production", "prod")


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path.

    Checks, in order, the `RETRO_VINYLS_CONFIG_PATH` environment variable and a `.env`
    file in the project root. Returns `None` when neither exists, in which case only
    environment variables are used.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, environment mode, serverless flag.
    *   **Database**: MongoDB URI, database/collection names, pool and timeout bounds.
    *   **Connection policy**: Retry count and fixed backoff delay.
    *   **HTTP**: Allowed CORS origins.

    **Validation:**
    Pool sizes and retry counts must be positive; millisecond timeouts must fall within
    1-300000. An empty `MONGODB_URI` is normalised to `None` so the failure can be
    reported at startup or on first use depending on the deployment mode.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    ENVIRONMENT: str = Field(default="development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"))
    SERVERLESS: bool = False
    LOG_LEVEL: Optional[str] = None

    # MongoDB configuration
    MONGODB_URI: Optional[str] = Field(default=None, validation_alias=AliasChoices("MONGODB_URI", "MONGODB_URL"))
    MONGODB_DATABASE: str = Field(default="retrovinyls", validation_alias=AliasChoices("DB_NAME", "MONGODB_DATABASE"))
    MONGODB_COLLECTION: str = "vinyls"
    MONGODB_MAX_POOL_SIZE: int = 10
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_SOCKET_TIMEOUT: int = 45000
    MONGODB_CONNECT_TIMEOUT: int = 10000

    # Connection retry policy
    MONGODB_MAX_RETRIES: int = 3
    MONGODB_RETRY_DELAY: float = 2.0

    # CORS configuration
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Prometheus instrumentation at /metrics
    METRICS_ENABLED: bool = True

    @field_validator("MONGODB_URI", mode="before")
    @classmethod
    def empty_uri_is_unset(cls, v: Any) -> Any:
        """
        Treats an empty or whitespace-only URI as not configured.

        Args:
            v (Any): The raw URI value.

        Returns:
            Any: The stripped URI, or `None` when empty.
        """
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator("MONGODB_MAX_POOL_SIZE", "MONGODB_MAX_RETRIES", "PORT", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """
        Validates that numeric settings are positive integers.

        Raises:
            ValueError: If the value is not a positive integer.
        """
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator(
        "MONGODB_SERVER_SELECTION_TIMEOUT",
        "MONGODB_SOCKET_TIMEOUT",
        "MONGODB_CONNECT_TIMEOUT",
        mode="before",
    )
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> int:
        """
        Validates that millisecond timeouts are within 1-300000.

        Raises:
            ValueError: If the timeout is out of range.
        """
        timeout = int(v)
        if timeout < 1 or timeout > 300000:
            raise ValueError(f"{info.field_name} must be between 1 and 300000 milliseconds")
        return timeout

    @field_validator("MONGODB_RETRY_DELAY", mode="before")
    @classmethod
    def validate_retry_delay(cls, v: Any) -> float:
        """
        Validates that the retry delay is not negative.

        Raises:
            ValueError: If the delay is negative.
        """
        delay = float(v)
        if delay < 0:
            raise ValueError("MONGODB_RETRY_DELAY must not be negative")
        return delay

    @property
    def is_production(self) -> bool:
        """
        Determine if the application is running in production mode.

        Production mode suppresses error details in responses, forbids the seeding
        endpoint and defers a missing `MONGODB_URI` to request time.

        Returns:
            `bool`: `True` if `ENVIRONMENT` is `production` (case-insensitive).
        """
        return self.ENVIRONMENT.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def is_permissive(self) -> bool:
        """Whether a missing URI is deferred to first use instead of failing startup."""
        return self.is_production or self.SERVERLESS

    @property
    def seeding_allowed(self) -> bool:
        return not self.is_production

    @property
    def effective_log_level(self) -> str:
        """Log level from `LOG_LEVEL`, otherwise DEBUG outside production and INFO in it."""
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "INFO" if self.is_production else "DEBUG"

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse `CORS_ORIGINS` into a list of origins.

        Returns:
            `List[str]`: Non-empty, stripped origins.
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def require_startup_config(self) -> None:
        """
        Fail fast when required configuration is missing in a non-permissive mode.

        Raises:
            ConfigurationError: If `MONGODB_URI` is unset and the deployment is neither
                production nor serverless.
        """
        if not self.MONGODB_URI and not self.is_permissive:
            raise ConfigurationError("MONGODB_URI environment variable is required")


settings = Settings()
