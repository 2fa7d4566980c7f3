"""Real-time WebSocket module for cheesepants-py.

This module provides the game WebSocket endpoint, connection management and
the JSON message codecs exchanged with clients.
"""

from __future__ import annotations

from cheesepants_py.realtime.game_handler import GameWebSocketHandler, create_game_websocket_handler
from cheesepants_py.realtime.manager import ConnectedPlayer, ConnectionManager
from cheesepants_py.realtime.messages import (
    ConnectionParams,
    GameCompleteMessage,
    GameStateMessage,
    MessageType,
    PongMessage,
    QuitMessage,
    TextMessage,
    parse_inbound,
)

__all__ = [
    "ConnectedPlayer",
    "ConnectionManager",
    "ConnectionParams",
    "GameCompleteMessage",
    "GameStateMessage",
    "GameWebSocketHandler",
    "MessageType",
    "PongMessage",
    "QuitMessage",
    "TextMessage",
    "create_game_websocket_handler",
    "parse_inbound",
]
