"""WebSocket handler for sentence game real-time communication."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from cheesepants_py.exceptions import StorageError
from cheesepants_py.game.exceptions import GameActionError
from cheesepants_py.realtime.manager import ConnectionManager
from cheesepants_py.realtime.messages import (
    AddWordMessage,
    ChangeTurnMessage,
    ConnectionParams,
    DeleteWordMessage,
    GameCompleteMessage,
    GameStateMessage,
    GetGameStateMessage,
    InvalidConnectionError,
    InvalidMessageError,
    JoinMessage,
    PongMessage,
    QuitMessage,
    RelayMessage,
    RemovePlayerMessage,
    StartGameMessage,
    TestConnectionMessage,
    TextMessage,
    UpdateTurnTimeLimitMessage,
    parse_inbound,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from litestar import Router, WebSocket

    from cheesepants_py.game.models import GameState
    from cheesepants_py.game.session import GameSession
    from cheesepants_py.realtime.manager import ConnectedPlayer
    from cheesepants_py.realtime.messages import InboundMessage
    from cheesepants_py.services.game import GameService

    MessageHandler = Callable[[ConnectedPlayer, GameSession, Any], Awaitable[None]]

logger = structlog.get_logger(__name__)

INVALID_PARAMS_CLOSE_CODE = 4400

INVALID_JSON_MESSAGE = "Invalid message format."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."
STORAGE_ERROR_MESSAGE = "Could not save the game. Please try again."
PUNCTUATION_HINT = "All required words have been used! End the sentence with punctuation (. ! ?) to finish."
TIMEOUT_NOTICE = "Time's up! Your turn was skipped."
REMOVED_NOTICE = "You have been removed from the game."


class GameWebSocketHandler:
    """Handler for game WebSocket connections.

    Each inbound frame is processed while holding its room's lock: the
    lazy turn-timeout check runs first, then the action is applied,
    persisted and broadcast. Every reply carries the full room state.
    """

    def __init__(
        self,
        game_service: GameService,
        connection_manager: ConnectionManager | None = None,
    ) -> None:
        """Initialize the game WebSocket handler.

        Args:
            game_service: The game service instance.
            connection_manager: Optional shared connection manager.
        """
        self._service = game_service
        self._manager = connection_manager or ConnectionManager()
        self._handlers: dict[type[InboundMessage], MessageHandler] = {
            JoinMessage: self._handle_join,
            GetGameStateMessage: self._handle_get_game_state,
            StartGameMessage: self._handle_start_game,
            AddWordMessage: self._handle_add_word,
            DeleteWordMessage: self._handle_delete_word,
            ChangeTurnMessage: self._handle_change_turn,
            UpdateTurnTimeLimitMessage: self._handle_update_turn_time_limit,
            RemovePlayerMessage: self._handle_remove_player,
            TestConnectionMessage: self._handle_test_connection,
            RelayMessage: self._handle_relay,
        }

    @property
    def connection_manager(self) -> ConnectionManager:
        """The connection manager used for broadcasts."""
        return self._manager

    @property
    def handlers(self) -> dict[type[InboundMessage], MessageHandler]:
        """Dispatch table from inbound message class to handler."""
        return dict(self._handlers)

    # Connection lifecycle

    async def handle_connection(self, socket: WebSocket) -> None:
        """Serve one game WebSocket from handshake to close.

        Args:
            socket: The WebSocket connection.
        """
        try:
            params = ConnectionParams.from_query(socket.query_params)
        except InvalidConnectionError as e:
            logger.warning("Rejected game connection", reason=str(e))
            await socket.close(code=INVALID_PARAMS_CLOSE_CODE, reason=str(e))
            return

        await socket.accept()

        with structlog.contextvars.bound_contextvars(game_id=params.game_id, player_id=params.player_id):
            connection = await self.open_connection(socket, params)
            if connection is None:
                await socket.close()
                return
            try:
                await self._receive_loop(connection)
            except Exception:
                logger.exception("WebSocket error", game_id=params.game_id)
            finally:
                await self.close_connection(connection)

    async def open_connection(self, socket: WebSocket, params: ConnectionParams) -> ConnectedPlayer | None:
        """Register an accepted socket and bring the player into the room.

        The room is created on first connection. With a player name the
        player joins right away; a returning member is marked connected.

        Args:
            socket: The accepted WebSocket.
            params: The validated connection parameters.

        Returns:
            The registered connection, or None if the room could not be
            opened.
        """
        async with self._service.lock(params.game_id):
            try:
                state = await self._service.open_game(
                    params.game_id,
                    required_words=params.required_words,
                    turn_time_limit=params.turn_time_limit,
                )
            except StorageError:
                logger.exception("Failed to open game", game_id=params.game_id)
                await socket.send_text(json.dumps(TextMessage(STORAGE_ERROR_MESSAGE).to_dict()))
                return None

            connection = await self._manager.connect(
                socket,
                game_id=params.game_id,
                player_id=params.player_id,
                player_name=params.player_name,
            )
            logger.debug(
                "WebSocket connection accepted",
                game_id=params.game_id,
                player_id=params.player_id,
                auto_join=params.player_name is not None,
            )

            if params.player_name is not None:
                await self._run(connection, state, JoinMessage(player_name=params.player_name))
            else:
                await self._run(connection, state, TestConnectionMessage(), reply_pong=False)
            return connection

    async def close_connection(self, connection: ConnectedPlayer) -> None:
        """Handle a closed socket.

        The player stays seated; only ``connectedPlayers`` changes, unless a
        newer connection for the same player has taken over. A room left
        without connections is dropped from memory.

        Args:
            connection: The connection that closed.
        """
        if not await self._manager.disconnect(connection):
            return

        async with self._service.lock(connection.game_id):
            await self._record_disconnect(connection)
            if not await self._manager.get_connections(connection.game_id):
                self._service.evict(connection.game_id)

    async def _record_disconnect(self, connection: ConnectedPlayer) -> None:
        """Persist and broadcast a player leaving ``connectedPlayers``.

        Callers hold the room's lock.
        """
        state = await self._service.load_game(connection.game_id)
        snapshot = state.to_dict()
        session = self._service.session(state)
        if not session.mark_disconnected(connection.player_id):
            return
        try:
            await self._service.save(state)
        except StorageError:
            logger.exception("Failed to save disconnect", game_id=connection.game_id)
            self._service.restore(snapshot)
            return
        await self._broadcast_state(state)

    async def _receive_loop(self, connection: ConnectedPlayer) -> None:
        """Main receive loop for WebSocket messages.

        Args:
            connection: The tagged connection.
        """
        async for raw in connection.socket.iter_data():
            try:
                await self.handle_frame(connection, raw)
            except Exception:
                logger.exception(
                    "Error handling message",
                    game_id=connection.game_id,
                    player_id=connection.player_id,
                )
                await self._reply(connection, INTERNAL_ERROR_MESSAGE)

    async def handle_frame(self, connection: ConnectedPlayer, raw: str | bytes) -> None:
        """Decode, validate and process one inbound frame.

        Args:
            connection: The connection the frame arrived on.
            raw: The frame as received.
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            await self._reply(connection, INVALID_JSON_MESSAGE)
            return

        try:
            message = parse_inbound(data)
        except InvalidMessageError as e:
            logger.warning(
                "Invalid message",
                game_id=connection.game_id,
                player_id=connection.player_id,
                error=str(e),
            )
            await self._reply(connection, str(e))
            return

        async with self._service.lock(connection.game_id):
            state = await self._service.load_game(connection.game_id)
            state = await self._check_turn_timeout(state)
            if state is None:
                await self._reply(connection, STORAGE_ERROR_MESSAGE)
                return
            await self._run(connection, state, message)

    async def _run(
        self,
        connection: ConnectedPlayer,
        state: GameState,
        message: InboundMessage,
        **kwargs: Any,
    ) -> None:
        """Dispatch a message, rolling the room back if it cannot be saved.

        Callers hold the room's lock.
        """
        handler = self._handlers[type(message)]
        snapshot = state.to_dict()
        session = self._service.session(state)
        try:
            await handler(connection, session, message, **kwargs)
        except GameActionError as e:
            logger.warning(
                "Action rejected",
                game_id=connection.game_id,
                player_id=connection.player_id,
                action=type(message).__name__,
                reason=str(e),
            )
            await self._reply(connection, str(e))
        except StorageError:
            logger.exception("Failed to save game", game_id=connection.game_id)
            self._service.restore(snapshot)
            await self._reply(connection, STORAGE_ERROR_MESSAGE)

    async def _check_turn_timeout(self, state: GameState) -> GameState | None:
        """Skip an expired turn before the triggering message is handled.

        Returns:
            The room state to continue with, or None if the skipped turn
            could not be saved.
        """
        snapshot = state.to_dict()
        session = self._service.session(state)
        timed_out = session.check_turn_timeout()
        if timed_out is None:
            return state

        try:
            await self._service.save(state)
        except StorageError:
            logger.exception("Failed to save turn timeout", game_id=state.game_id)
            self._service.restore(snapshot)
            return None

        await self._manager.send_to_player(state.game_id, timed_out.id, TextMessage(TIMEOUT_NOTICE).to_dict())
        await self._manager.broadcast(
            state.game_id,
            TextMessage(f"{timed_out.name} ran out of time.").to_dict(),
            exclude_player=timed_out.id,
        )
        await self._broadcast_state(state)
        return state

    # Message handlers

    async def _handle_join(self, connection: ConnectedPlayer, session: GameSession, message: JoinMessage) -> None:
        result = session.join(connection.player_id, message.player_name or connection.player_name)
        if result.is_new:
            connection.player_name = result.player.name
        if not await self._manager.is_registered(connection):
            await self._manager.register(connection)

        if result.state_changed:
            await self._service.save(session.state)
            await self._broadcast_state(session.state)
        else:
            await self._send_state(connection, session.state)

    async def _handle_get_game_state(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: GetGameStateMessage,
    ) -> None:
        await self._send_state(connection, session.state)

    async def _handle_start_game(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: StartGameMessage,
    ) -> None:
        session.start_game(connection.player_id)
        await self._service.save(session.state)
        await self._broadcast_state(session.state)

    async def _handle_add_word(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: AddWordMessage,
    ) -> None:
        result = session.add_word(connection.player_id, message.word)
        await self._service.save(session.state)

        if result.completed:
            await self._manager.broadcast(session.game_id, GameCompleteMessage(session.state.sentence).to_dict())
        await self._broadcast_state(session.state)
        if result.needs_punctuation:
            await self._reply(connection, PUNCTUATION_HINT)

    async def _handle_delete_word(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: DeleteWordMessage,
    ) -> None:
        session.delete_word(connection.player_id, message.index)
        await self._service.save(session.state)
        await self._broadcast_state(session.state)

    async def _handle_change_turn(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: ChangeTurnMessage,
    ) -> None:
        session.change_turn(connection.player_id, message.new_current_player_id)
        await self._service.save(session.state)
        await self._broadcast_state(session.state)

    async def _handle_update_turn_time_limit(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: UpdateTurnTimeLimitMessage,
    ) -> None:
        limit = session.update_turn_time_limit(connection.player_id, message.new_time_limit)
        await self._service.save(session.state)

        notice = f"Turn time limit set to {limit} seconds." if limit else "Turn time limit removed."
        await self._manager.broadcast(session.game_id, TextMessage(notice).to_dict())
        await self._broadcast_state(session.state)

    async def _handle_remove_player(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: RemovePlayerMessage,
    ) -> None:
        removed = session.remove_player(connection.player_id, message.player_id_to_remove)
        await self._service.save(session.state)

        await self._manager.broadcast(
            session.game_id,
            TextMessage(f"{removed.name} was removed from the game.").to_dict(),
            exclude_player=removed.id,
        )
        target = await self._manager.get_connection(session.game_id, removed.id)
        if target is not None:
            await self._manager.send(target, TextMessage(REMOVED_NOTICE).to_dict())
            await self._manager.send(target, QuitMessage(session.game_id).to_dict())
            await self._manager.disconnect(target)
        await self._broadcast_state(session.state)

    async def _handle_test_connection(
        self,
        connection: ConnectedPlayer,
        session: GameSession,
        message: TestConnectionMessage,
        *,
        reply_pong: bool = True,
    ) -> None:
        if session.mark_connected(connection.player_id):
            await self._service.save(session.state)
            await self._broadcast_state(session.state, exclude_player=connection.player_id)
        if reply_pong:
            await self._manager.send(connection, PongMessage().to_dict())
        await self._send_state(connection, session.state)

    async def _handle_relay(self, connection: ConnectedPlayer, session: GameSession, message: RelayMessage) -> None:
        await self._manager.broadcast(session.game_id, message.payload, exclude_player=connection.player_id)

    # Helpers

    async def _reply(self, connection: ConnectedPlayer, text: str) -> None:
        await self._manager.send(connection, TextMessage(text).to_dict())

    async def _send_state(self, connection: ConnectedPlayer, state: GameState) -> None:
        await self._manager.send(connection, GameStateMessage(state.to_dict()).to_dict())

    async def _broadcast_state(self, state: GameState, exclude_player: str | None = None) -> None:
        await self._manager.broadcast(
            state.game_id,
            GameStateMessage(state.to_dict()).to_dict(),
            exclude_player=exclude_player,
        )


def create_game_websocket_handler(
    path: str,
    game_service: GameService,
    connection_manager: ConnectionManager | None = None,
) -> tuple[Router, GameWebSocketHandler]:
    """Create a WebSocket router for game real-time communication.

    Args:
        path: Base path for WebSocket routes.
        game_service: The game service instance.
        connection_manager: Optional connection manager.

    Returns:
        A tuple of (Litestar Router, GameWebSocketHandler instance).
    """
    from litestar import Router, websocket

    handler = GameWebSocketHandler(game_service, connection_manager)

    @websocket(path="/game")
    async def game_websocket(socket: WebSocket) -> None:
        """WebSocket endpoint for a game room.

        Query parameters: ``gameId``, ``playerId``, ``playerName``,
        ``requiredWords`` and ``turnTimeLimit``.

        Args:
            socket: The WebSocket connection.
        """
        await handler.handle_connection(socket)

    router = Router(
        path=path,
        route_handlers=[game_websocket],
        tags=["Game WebSocket"],
    )
    return router, handler
