"""Litestar plugin for cheesepants-py integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from cheesepants_py.game.validator import DEFAULT_REQUIRED_WORDS
from cheesepants_py.realtime.manager import ConnectionManager
from cheesepants_py.services.game import GameService
from cheesepants_py.storage.memory import InMemoryStorage
from cheesepants_py.web.router import create_router

if TYPE_CHECKING:
    from litestar import Litestar
    from litestar.config.app import AppConfig

    from cheesepants_py.realtime.game_handler import GameWebSocketHandler
    from cheesepants_py.storage.base import StorageProtocol


@dataclass
class CheesePantsConfig:
    """Configuration for the CheesePants plugin.

    Attributes:
        storage: Storage backend for game rooms. If None, InMemoryStorage
            will be used by default.
        enable_api: Whether to mount the read-only REST API routes.
            Defaults to True.
        enable_websocket: Whether to mount the game WebSocket endpoint.
            Defaults to True.
        api_path: Base path for mounting API routes. Defaults to "/api".
        ws_path: Base path for WebSocket routes. Defaults to "/ws".
        dependency_key: Dependency injection key for GameService.
            Defaults to "game_service".
        connection_manager: Optional pre-configured ConnectionManager. If
            None, a new one will be created.
        default_required_words: Words a room must contain when it is created
            without a usable list of its own.

    Example:
        >>> from cheesepants_py.storage.memory import InMemoryStorage
        >>> config = CheesePantsConfig(storage=InMemoryStorage(), ws_path="/live")
    """

    storage: StorageProtocol | None = None
    enable_api: bool = True
    enable_websocket: bool = True
    api_path: str = "/api"
    ws_path: str = "/ws"
    dependency_key: str = "game_service"
    connection_manager: ConnectionManager | None = field(default=None)
    default_required_words: list[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_WORDS))


class CheesePantsPlugin(InitPluginProtocol):
    """Litestar plugin for cheesepants-py integration.

    Sets up the storage backend and GameService, registers them for
    dependency injection, and mounts the REST API and the game WebSocket
    endpoint. On shutdown every open game socket is closed.

    Example:
        >>> from litestar import Litestar
        >>> from cheesepants_py import CheesePantsPlugin, CheesePantsConfig
        >>>
        >>> app = Litestar(
        ...     plugins=[CheesePantsPlugin(CheesePantsConfig())],
        ... )

        Accessing the service in route handlers:

        >>> from litestar import get
        >>> from cheesepants_py.services.game import GameService
        >>>
        >>> @get("/count")
        ... async def count_games(game_service: GameService) -> dict:
        ...     return {"count": len(await game_service.list_games())}

    Attributes:
        _config: The plugin configuration.
        _storage: The initialized storage backend (None until on_app_init).
        _game_service: The initialized GameService (None until on_app_init).
        _connection_manager: The WebSocket connection manager (None until on_app_init).
    """

    def __init__(self, config: CheesePantsConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, CheesePantsConfig with
                default values will be used.
        """
        self._config = config or CheesePantsConfig()
        self._storage: StorageProtocol | None = None
        self._game_service: GameService | None = None
        self._connection_manager: ConnectionManager | None = None
        self._game_ws_handler: GameWebSocketHandler | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin during application startup.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        self._storage = self._config.storage or InMemoryStorage()
        self._game_service = GameService(
            self._storage,
            default_required_words=self._config.default_required_words,
        )
        self._connection_manager = self._config.connection_manager or ConnectionManager()

        def provide_game_service() -> GameService:
            """Dependency provider for GameService.

            Returns:
                The initialized GameService instance.
            """
            if self._game_service is None:
                msg = "Game service not initialized"
                raise RuntimeError(msg)
            return self._game_service

        def provide_connection_manager() -> ConnectionManager:
            """Dependency provider for ConnectionManager.

            Returns:
                The initialized ConnectionManager instance.
            """
            if self._connection_manager is None:
                msg = "Connection manager not initialized"
                raise RuntimeError(msg)
            return self._connection_manager

        app_config.dependencies[self._config.dependency_key] = Provide(
            provide_game_service,
            sync_to_thread=False,
        )
        app_config.dependencies["connection_manager"] = Provide(
            provide_connection_manager,
            sync_to_thread=False,
        )

        if self._config.enable_api:
            app_config.route_handlers.append(create_router(path=self._config.api_path))

        if self._config.enable_websocket:
            from cheesepants_py.realtime.game_handler import create_game_websocket_handler

            game_ws_router, self._game_ws_handler = create_game_websocket_handler(
                path=self._config.ws_path,
                game_service=self._game_service,
                connection_manager=self._connection_manager,
            )
            app_config.route_handlers.append(game_ws_router)

        app_config.on_startup.append(self._publish_state)
        app_config.on_shutdown.append(self._close_connections)
        return app_config

    def _publish_state(self, app: Litestar) -> None:
        """Expose the connection manager on ``app.state`` for health checks."""
        app.state.connection_manager = self._connection_manager

    async def _close_connections(self) -> None:
        """Close every open game socket."""
        if self._connection_manager is not None:
            await self._connection_manager.close_all()

    @property
    def storage(self) -> StorageProtocol:
        """Get the initialized storage backend.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._storage is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._storage

    @property
    def game_service(self) -> GameService:
        """Get the initialized game service.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._game_service is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._game_service

    @property
    def connection_manager(self) -> ConnectionManager:
        """Get the initialized connection manager.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.

        Example:
            >>> plugin = CheesePantsPlugin(CheesePantsConfig())
            >>> # After app initialization
            >>> manager = plugin.connection_manager
            >>> active = manager.active_games
        """
        if self._connection_manager is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._connection_manager

    @property
    def game_ws_handler(self) -> GameWebSocketHandler:
        """Get the game WebSocket handler.

        Raises:
            RuntimeError: If the plugin has not been initialized yet or the
                WebSocket endpoint is disabled.
        """
        if self._game_ws_handler is None:
            msg = "Game WebSocket handler not available."
            raise RuntimeError(msg)
        return self._game_ws_handler
