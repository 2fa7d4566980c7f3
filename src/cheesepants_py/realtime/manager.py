"""Connection manager for game WebSocket sessions."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from litestar import WebSocket

logger = structlog.get_logger(__name__)


@dataclass
class ConnectedPlayer:
    """An open connection, tagged with the room and player it belongs to.

    The tag is fixed when the socket is accepted and identifies the actor
    of every message received on it.
    """

    socket: WebSocket
    game_id: str
    player_id: str
    player_name: str | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "gameId": self.game_id,
            "playerId": self.player_id,
            "playerName": self.player_name,
            "connectedAt": self.connected_at.isoformat(),
        }


class ConnectionManager:
    """Manages WebSocket connections for game rooms.

    Holds at most one connection per player and room; a newer connection
    for the same player replaces the older one. Broadcasts are serialized
    once and sent to every registered connection of a room.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self._connections: dict[str, dict[str, ConnectedPlayer]] = {}
        self._lock = asyncio.Lock()

    async def connect(
        self,
        socket: WebSocket,
        game_id: str,
        player_id: str,
        player_name: str | None = None,
    ) -> ConnectedPlayer:
        """Register a new WebSocket connection.

        Args:
            socket: The accepted WebSocket.
            game_id: The room being joined.
            player_id: The connecting player.
            player_name: Display name, if known.

        Returns:
            The ConnectedPlayer instance.
        """
        connection = ConnectedPlayer(
            socket=socket,
            game_id=game_id,
            player_id=player_id,
            player_name=player_name,
        )
        await self.register(connection)
        return connection

    async def register(self, connection: ConnectedPlayer) -> None:
        """Make ``connection`` the player's active connection in its room."""
        async with self._lock:
            room = self._connections.setdefault(connection.game_id, {})
            previous = room.get(connection.player_id)
            room[connection.player_id] = connection

            logger.info(
                "Player connected",
                game_id=connection.game_id,
                player_id=connection.player_id,
                replaced=previous is not None and previous is not connection,
                total_connections=len(room),
            )

    async def disconnect(self, connection: ConnectedPlayer) -> bool:
        """Remove a connection if it is still the player's active one.

        Args:
            connection: The connection to remove.

        Returns:
            True if the connection was registered and has been removed,
            False if it had already been replaced or detached.
        """
        async with self._lock:
            room = self._connections.get(connection.game_id)
            if room is None or room.get(connection.player_id) is not connection:
                return False

            del room[connection.player_id]
            logger.info(
                "Player disconnected",
                game_id=connection.game_id,
                player_id=connection.player_id,
                remaining_connections=len(room),
            )

            if not room:
                del self._connections[connection.game_id]
                logger.info("Game session closed", game_id=connection.game_id)
            return True

    async def get_connections(self, game_id: str) -> list[ConnectedPlayer]:
        """Get every connection of a room.

        Args:
            game_id: The room to query.

        Returns:
            List of connections.
        """
        async with self._lock:
            return list(self._connections.get(game_id, {}).values())

    async def get_connection(self, game_id: str, player_id: str) -> ConnectedPlayer | None:
        """Get a player's active connection.

        Args:
            game_id: The room to query.
            player_id: The player's identifier.

        Returns:
            The ConnectedPlayer or None if not connected.
        """
        async with self._lock:
            return self._connections.get(game_id, {}).get(player_id)

    async def is_registered(self, connection: ConnectedPlayer) -> bool:
        """Whether ``connection`` is its player's active connection."""
        return await self.get_connection(connection.game_id, connection.player_id) is connection

    async def broadcast(
        self,
        game_id: str,
        message: dict[str, Any],
        exclude_player: str | None = None,
    ) -> None:
        """Broadcast a message to every connection of a room.

        Args:
            game_id: The room to broadcast to.
            message: The message to send.
            exclude_player: Optional player ID to exclude from broadcast.
        """
        connections = await self.get_connections(game_id)
        json_message = json.dumps(message)

        tasks = [
            self._send(connection, json_message)
            for connection in connections
            if not (exclude_player and connection.player_id == exclude_player)
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def send_to_player(self, game_id: str, player_id: str, message: dict[str, Any]) -> bool:
        """Send a message to one player's active connection.

        Args:
            game_id: The room.
            player_id: The target player.
            message: The message to send.

        Returns:
            True if sent successfully, False otherwise.
        """
        connection = await self.get_connection(game_id, player_id)
        if connection is None:
            return False
        return await self._send(connection, json.dumps(message))

    async def send(self, connection: ConnectedPlayer, message: dict[str, Any]) -> bool:
        """Send a message on a specific connection, registered or not."""
        return await self._send(connection, json.dumps(message))

    async def _send(self, connection: ConnectedPlayer, json_message: str) -> bool:
        try:
            await connection.socket.send_text(json_message)
        except Exception:
            logger.exception(
                "Failed to send message",
                game_id=connection.game_id,
                player_id=connection.player_id,
            )
            return False
        return True

    async def close_all(self) -> int:
        """Close every open connection.

        Returns:
            The number of connections that were closed.
        """
        async with self._lock:
            connections = [c for room in self._connections.values() for c in room.values()]
            self._connections.clear()

        for connection in connections:
            try:
                await connection.socket.close()
            except Exception:
                logger.exception(
                    "Failed to close connection",
                    game_id=connection.game_id,
                    player_id=connection.player_id,
                )

        if connections:
            logger.info("Closed all game connections", count=len(connections))
        return len(connections)

    @property
    def active_games(self) -> list[str]:
        """IDs of rooms with at least one connection."""
        return list(self._connections)

    @property
    def total_connections(self) -> int:
        """Number of open connections across all rooms."""
        return sum(len(room) for room in self._connections.values())
