"""
# Main Routes

Service information and health endpoints.

## Endpoints

### `GET /`
Static service information. Always 200.

### `GET /health`
Reports the connection manager's state. The cached connection is probed with a `ping`;
a failed probe resets the manager so the next request reconnects.

- **200**: the database answered the probe
- **503**: no connection, or the probe failed

```yaml
livenessProbe:
  httpGet:
    path: /
    port: 5000
readinessProbe:
  httpGet:
    path: /health
    port: 5000
```
"""

import platform
import time

from fastapi import APIRouter, Depends, Request

from retro_vinyls import __version__
from retro_vinyls.config import Settings
from retro_vinyls.database.manager import DatabaseManager
from retro_vinyls.routes.dependencies import get_db_manager, get_settings
from retro_vinyls.utils.responses import json_response

router = APIRouter(tags=["System"])

AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /health",
    "GET /api/items",
    "GET /api/items/:id",
    "POST /api/items",
    "POST /api/seed",
]


def format_uptime(seconds: int) -> str:
    """Render an uptime in seconds as `Xh Ym Zs`."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"


@router.get("/")
async def root():
    """Confirm the RetroVinyls API is running."""
    return json_response(
        {
            "message": "RetroVinyls API is running",
            "description": "Premium platform for vintage music enthusiasts",
            "version": __version__,
            "status": "active",
            "endpoints": {
                "health": "/health",
                "items": "/api/items",
                "seed": "/api/seed",
                "documentation": "/docs",
            },
        }
    )


@router.get("/health")
async def health(
    request: Request,
    manager: DatabaseManager = Depends(get_db_manager),
    config: Settings = Depends(get_settings),
):
    """Report server uptime and database connection status."""
    healthy = await manager.health_check()
    uptime = int(time.time() - request.app.state.started_at)

    return json_response(
        {
            "status": "active",
            "database": manager.describe(),
            "server": {
                "uptime": format_uptime(uptime),
                "uptimeSeconds": uptime,
                "environment": config.ENVIRONMENT,
                "port": config.PORT,
                "pythonVersion": platform.python_version(),
            },
        },
        status_code=200 if healthy else 503,
    )
