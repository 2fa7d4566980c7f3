"""Cheesepants-py: a Litestar-based server for a collaborative sentence game.

Players take turns adding one word at a time to a shared sentence. The game
ends when the sentence contains every required word (by default "cheese"
and "pants") and its last word ends with terminal punctuation.

Key Components:
    - Game: GameState, GameSession (rules), word validation and turn timer
    - Storage: InMemoryStorage, DatabaseStorage, StorageProtocol
    - Services: GameService (room registry, per-room locking, persistence)
    - Realtime: game WebSocket handler and connection manager
    - Web: read-only REST API and health checks
    - Plugin: CheesePantsPlugin for Litestar integration

Quick Start:
    >>> from litestar import Litestar
    >>> from cheesepants_py import CheesePantsPlugin, CheesePantsConfig
    >>>
    >>> app = Litestar(
    ...     plugins=[CheesePantsPlugin(CheesePantsConfig())],
    ... )
"""

from __future__ import annotations

from cheesepants_py.exceptions import CheesePantsError, GameNotFoundError, StorageError
from cheesepants_py.game import GameActionError, GamePhase, GameSession, GameState, Player, WordInfo
from cheesepants_py.plugin import CheesePantsConfig, CheesePantsPlugin
from cheesepants_py.realtime import ConnectionManager, GameWebSocketHandler, MessageType
from cheesepants_py.services import GameService
from cheesepants_py.storage import InMemoryStorage, StorageProtocol

__all__ = [
    "CheesePantsConfig",
    "CheesePantsError",
    "CheesePantsPlugin",
    "ConnectionManager",
    "GameActionError",
    "GameNotFoundError",
    "GamePhase",
    "GameService",
    "GameSession",
    "GameState",
    "GameWebSocketHandler",
    "InMemoryStorage",
    "MessageType",
    "Player",
    "StorageError",
    "StorageProtocol",
    "WordInfo",
]

__version__ = "0.1.0"
