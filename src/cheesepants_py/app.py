"""Main Litestar application for cheesepants-py.

This module provides the application factory and the configured app instance
for running cheesepants-py as a standalone server.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from advanced_alchemy.extensions.litestar import AlembicAsyncConfig, SQLAlchemyPlugin
from advanced_alchemy.extensions.litestar.plugins.init.config.asyncio import SQLAlchemyAsyncConfig
from litestar import Litestar

from cheesepants_py import CheesePantsConfig, CheesePantsPlugin, __version__
from cheesepants_py.cli import CheesePantsCLIPlugin
from cheesepants_py.core.error_handling import get_exception_handlers
from cheesepants_py.core.logging import CorrelationIdMiddleware, RequestLoggingMiddleware, configure_logging
from cheesepants_py.core.openapi import create_openapi_config
from cheesepants_py.core.rate_limit import get_rate_limit_config
from cheesepants_py.storage.db.setup import DatabaseManager, get_database_url
from cheesepants_py.storage.db.storage import DatabaseStorage
from cheesepants_py.storage.memory import InMemoryStorage
from cheesepants_py.web.health import HealthController

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from cheesepants_py.storage.base import StorageProtocol

logger = structlog.get_logger(__name__)

STORAGE_BACKENDS = ("memory", "database")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def _create_lifespan(db_manager: DatabaseManager | None) -> Callable[[Litestar], AsyncGenerator[None, None]]:
    """Build the lifespan handler owning the database connection."""

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
        """Initialize the database on startup and close it on shutdown."""
        app.state.db_manager = db_manager
        if db_manager is not None:
            await db_manager.init()
            logger.info("Database initialized", url=db_manager.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            if db_manager is not None:
                await db_manager.close()

    return lifespan


# SQLAlchemy configuration for the `litestar database` CLI commands
sqlalchemy_config = SQLAlchemyAsyncConfig(
    connection_string=get_database_url(),
    alembic_config=AlembicAsyncConfig(
        script_location="src/cheesepants_py/storage/db/migrations",
        version_table_name="alembic_version",
    ),
)

sqlalchemy_plugin = SQLAlchemyPlugin(config=sqlalchemy_config)


def create_app(
    *,
    storage_backend: str = "database",
    enable_api: bool = True,
    enable_websocket: bool = True,
    debug: bool = False,
    json_logs: bool = False,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        storage_backend: "database" for durable SQL storage or "memory" for
            an ephemeral in-process store.
        enable_api: Whether to enable the REST API routes.
        enable_websocket: Whether to enable the game WebSocket endpoint.
        debug: Whether to enable debug mode.
        json_logs: Whether to output logs as JSON (for production).

    Returns:
        Configured Litestar application instance.

    Raises:
        ValueError: If ``storage_backend`` is not a known backend.
    """
    configure_logging(debug=debug, json_logs=json_logs)

    if storage_backend not in STORAGE_BACKENDS:
        msg = f"Unknown storage backend: {storage_backend!r} (expected one of {', '.join(STORAGE_BACKENDS)})"
        raise ValueError(msg)

    db_manager: DatabaseManager | None = None
    storage: StorageProtocol
    if storage_backend == "database":
        db_manager = DatabaseManager()
        storage = DatabaseStorage(db_manager)
    else:
        storage = InMemoryStorage()
    logger.info("Storage configured", backend=storage_backend)

    plugins: list = [
        sqlalchemy_plugin,
        CheesePantsCLIPlugin(),
        CheesePantsPlugin(
            CheesePantsConfig(
                storage=storage,
                enable_api=enable_api,
                enable_websocket=enable_websocket,
                api_path="/api",
                ws_path="/ws",
            )
        ),
    ]

    middleware: list = [CorrelationIdMiddleware, RequestLoggingMiddleware]
    rate_limit_config = get_rate_limit_config()
    if rate_limit_config:
        middleware.append(rate_limit_config.middleware)

    return Litestar(
        route_handlers=[HealthController],
        plugins=plugins,
        debug=debug,
        lifespan=[_create_lifespan(db_manager)],
        middleware=middleware,
        exception_handlers=get_exception_handlers(),
        openapi_config=create_openapi_config(__version__),
    )


# Default application instance for uvicorn
# Use CHEESEPANTS_DEBUG=true for dev mode, defaults to False (production)
app = create_app(
    storage_backend=os.environ.get("CHEESEPANTS_STORAGE", "database").lower(),
    debug=_env_flag("CHEESEPANTS_DEBUG"),
    json_logs=_env_flag("CHEESEPANTS_JSON_LOGS"),
)
