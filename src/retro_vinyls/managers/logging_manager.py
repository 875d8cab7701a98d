"""
# Logging Manager

Central access point for application loggers. All modules obtain their logger through
`get_logger()` so that output shares one format and level, and so that subsystem
loggers can carry a short prefix that makes grep-friendly log lines:

```python
from retro_vinyls.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")

db_logger.info("Connection attempt %d/%d", 1, 3)
# 2025-01-01 12:00:00,000 - RetroVinyls - INFO - [DATABASE] Connection attempt 1/3
```

`setup_logging()` is called once by the application factory; loggers created before
that call pick up the configuration because they all propagate to the root handler.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

DEFAULT_LOGGER_NAME = "RetroVinyls"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str):
        super().__init__(logger, {"prefix": prefix})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"{self.prefix} {msg}", kwargs


def setup_logging(level: str = "INFO", force: bool = False) -> None:
    """
    Configure the root handler for the application.

    Args:
        level (str): Log level name (e.g. `"DEBUG"`, `"INFO"`).
        force (bool): Reconfigure even if logging was already set up.
    """
    global _configured
    if _configured and not force:
        logging.getLogger().setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    if force:
        for existing in list(root.handlers):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Driver heartbeat chatter is noise at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str = DEFAULT_LOGGER_NAME, prefix: Optional[str] = None):
    """
    Return an application logger, optionally prefixed.

    Args:
        name (str): Logger name. Defaults to the application logger.
        prefix (Optional[str]): Text prepended to every message, e.g. `"[DATABASE]"`.

    Returns:
        `logging.Logger` or `PrefixedLoggerAdapter` when a prefix is given.
    """
    logger = logging.getLogger(name)
    if prefix:
        return PrefixedLoggerAdapter(logger, prefix)
    return logger
