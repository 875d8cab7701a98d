"""
# RetroVinyls API Entry Point

This module builds the FastAPI application and runs it under uvicorn.

## Application Factory

`create_app()` wires together:

1. **Logging**: root handler configured from `settings.effective_log_level`.
2. **Connection manager**: one `DatabaseManager` stored on `app.state.db_manager`.
3. **Middleware**: CORS and per-request logging.
4. **Exception handlers**: API errors, request validation (400), unmatched routes (404)
   and unexpected errors (500), all rendered as JSON with a `timestamp`.
5. **Routers**: system, items and seeding endpoints.
6. **Metrics**: Prometheus instrumentation at `/metrics`.

## Lifespan

**Startup:** in non-permissive mode a missing `MONGODB_URI` aborts startup. Otherwise the
manager connects eagerly; if that fails the server still starts and requests retry the
connection on demand. In serverless mode the connection is made lazily by the first request.

**Shutdown:** the manager closes the MongoDB client.

## Running

```bash
retro-vinyls                       # console script
python -m retro_vinyls.main        # module
uvicorn retro_vinyls.main:app      # ASGI server directly
```

The process exits with status 1 when required configuration is missing in a
non-permissive deployment, or when startup raises an unrecovered exception.
"""

import asyncio
from contextlib import asynccontextmanager
import sys
import time
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from retro_vinyls import __version__
from retro_vinyls.config import Settings, settings
from retro_vinyls.database.manager import DatabaseManager
from retro_vinyls.managers.logging_manager import get_logger, setup_logging
from retro_vinyls.routes import items_router, main_router, seed_router
from retro_vinyls.routes.main import AVAILABLE_ENDPOINTS
from retro_vinyls.utils.exceptions import ConfigurationError, RetroVinylsError, ValidationError
from retro_vinyls.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)
from retro_vinyls.utils.responses import json_response

logger = get_logger()

LoopExceptionHandler = Callable[[asyncio.AbstractEventLoop, Dict[str, Any]], None]


def loop_exception_handler(
    manager: DatabaseManager, previous: Optional[LoopExceptionHandler] = None
) -> LoopExceptionHandler:
    """
    Build an event-loop exception handler for errors no task retrieved.

    An unhandled exception is logged and the MongoDB client is closed; the next
    request reconnects. Contexts without an exception are passed on unchanged.

    Args:
        manager (DatabaseManager): The connection manager to reset.
        previous (Optional[LoopExceptionHandler]): Handler that was installed before, if any.
    """

    def handle(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        error = context.get("exception")
        if error is not None:
            log_error_with_context(error, {"operation": "unhandled_exception", "message": context.get("message")})
            manager.reset()
        if previous is not None:
            previous(loop, context)
        elif error is None:
            loop.default_exception_handler(context)

    return handle


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    **Startup Phase:**
    1.  **Configuration**: Fails fast when `MONGODB_URI` is missing outside production/serverless.
    2.  **Database**: Connects the manager unless running serverless; a failed connection is
        logged and the server keeps starting.
    3.  **Loop errors**: Installs `loop_exception_handler()` for exceptions no task retrieved.

    **Shutdown Phase:**
    1.  **Loop errors**: Restores the previous exception handler.
    2.  **Database**: Disconnects the manager.

    Args:
        _app (FastAPI): The FastAPI application instance.

    Raises:
        ConfigurationError: If required configuration is missing in a non-permissive mode.
    """
    config: Settings = _app.state.settings
    manager: DatabaseManager = _app.state.db_manager
    startup_start_time = time.time()

    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": "RetroVinyls API",
            "version": __version__,
            "environment": config.ENVIRONMENT,
            "serverless": config.SERVERLESS,
        },
    )

    config.require_startup_config()

    if config.SERVERLESS:
        logger.info("Serverless mode: database connection deferred to first request")
    elif not config.MONGODB_URI:
        logger.warning("MONGODB_URI is not set; database endpoints will return 503")
    else:
        db_connect_start = time.time()
        logger.info("Initiating database connection...")
        result = await manager.connect()
        if result.ok:
            log_application_lifecycle(
                "database_connected",
                {
                    "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                    "database_name": config.MONGODB_DATABASE,
                },
            )
        else:
            logger.warning("Server starting without database connection: %s", result.message)
            logger.warning("Database features will be unavailable until connection is restored")

    log_application_lifecycle("startup_completed", {"startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    loop = asyncio.get_running_loop()
    previous_handler = loop.get_exception_handler()
    loop.set_exception_handler(loop_exception_handler(manager, previous_handler))

    try:
        yield
    finally:
        loop.set_exception_handler(previous_handler)

    shutdown_start_time = time.time()
    logger.info("Gracefully shutting down server...")
    try:
        await manager.disconnect()
        log_application_lifecycle("database_disconnected")
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnection"})

    logger.info("RetroVinyls API shutdown completed in %.3fs", time.time() - shutdown_start_time)


def _error_body(error: str, message: str, **details: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "message": message}
    body.update(details)
    return body


def _validation_error(exc: RequestValidationError) -> ValidationError:
    """Convert FastAPI's validation errors into a single field-specific `ValidationError`."""
    errors = exc.errors()
    missing = [
        str(err["loc"][-1]) for err in errors if err.get("type") == "missing" and len(err.get("loc", ())) > 1
    ]
    if missing:
        return ValidationError(
            f"The following fields are required: {', '.join(missing)}",
            error="Missing required fields",
            missingFields=missing,
        )

    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        return ValidationError("Request body must be valid JSON", error="Invalid JSON")

    loc = first.get("loc", ())
    if len(loc) > 1:
        field = str(loc[-1])
        return ValidationError(first.get("msg", "Invalid value"), field=field, error=f"Invalid {field}")
    return ValidationError(first.get("msg", "Invalid request"), error="Invalid request body")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as the API's JSON error shape."""

    @app.exception_handler(RetroVinylsError)
    async def handle_api_error(request: Request, exc: RetroVinylsError):
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return json_response(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = _validation_error(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, error.message)
        return json_response(error.to_dict(), status_code=error.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return json_response(
                _error_body(
                    "Route not found",
                    f"The requested endpoint {request.method} {request.url.path} does not exist",
                    availableEndpoints=AVAILABLE_ENDPOINTS,
                ),
                status_code=404,
            )
        return json_response(_error_body("HTTP Error", str(exc.detail)), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        config: Settings = request.app.state.settings
        log_error_with_context(exc, {"method": request.method, "path": request.url.path})
        message = "Something went wrong" if config.is_production else str(exc)
        return json_response(_error_body("Internal Server Error", message), status_code=500)


def create_app(config: Optional[Settings] = None, manager: Optional[DatabaseManager] = None) -> FastAPI:
    """
    Build the RetroVinyls FastAPI application.

    Args:
        config (Optional[Settings]): Settings to use; defaults to the global `settings`.
        manager (Optional[DatabaseManager]): Connection manager to inject; a new one is
            created from `config` when omitted.

    Returns:
        FastAPI: The configured application.
    """
    config = config or settings
    setup_logging(config.effective_log_level)

    app = FastAPI(
        title="RetroVinyls API",
        description="Premium platform for vintage music enthusiasts: a catalogue of collectible vinyl records.",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
        openapi_tags=[
            {"name": "System", "description": "Service information and health checks"},
            {"name": "Items", "description": "Vinyl record catalogue"},
            {"name": "Development", "description": "Development-only data seeding"},
        ],
    )
    app.state.settings = config
    app.state.db_manager = manager or DatabaseManager(config)
    app.state.started_at = time.time()

    cors_origins = config.cors_origins_list
    logger.info("Configuring CORS with origins: %s", cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    for router in (main_router, items_router, seed_router):
        app.include_router(router)

    if config.METRICS_ENABLED:
        try:
            Instrumentator(
                should_group_status_codes=True,
                should_ignore_untemplated=True,
                should_respect_env_var=False,
            ).instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
            log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
        except Exception as e:
            # Metrics are optional
            log_error_with_context(e, {"operation": "prometheus_setup"})

    return app


app = create_app()


def run() -> None:
    """Console entry point: validate configuration and serve the app with uvicorn."""
    try:
        settings.require_startup_config()
    except ConfigurationError as e:
        logger.error("%s", e.message)
        sys.exit(1)

    try:
        uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.effective_log_level.lower())
    except Exception as e:
        log_error_with_context(e, {"operation": "server_startup"})
        sys.exit(1)


if __name__ == "__main__":
    run()
