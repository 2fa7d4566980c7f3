"""In-memory storage implementation for cheesepants-py."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from cheesepants_py.game.models import GameState


class InMemoryStorage:
    """In-memory storage implementation.

    Records are kept in their serialized form, so every load returns a fresh
    copy and callers can never modify the stored record through a reference.

    Note:
        All data is lost when the application stops. This storage is suitable
        for development, testing, or ephemeral sessions.

    Attributes:
        _records: Internal dictionary mapping game IDs to serialized states.
        _lock: Asyncio lock guarding the dictionary.
    """

    def __init__(self) -> None:
        """Initialize the in-memory storage with no records."""
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get_game(self, game_id: str) -> GameState | None:
        """Load a room's state.

        Args:
            game_id: The room identifier.

        Returns:
            A copy of the stored state, or None.
        """
        async with self._lock:
            record = self._records.get(game_id)
            return GameState.from_dict(record) if record is not None else None

    async def save_game(self, state: GameState) -> None:
        """Store a room's full state.

        Args:
            state: The state to store.
        """
        async with self._lock:
            self._records[state.game_id] = state.to_dict()

    async def list_games(self) -> list[GameState]:
        """List every stored room, most recently opened first."""
        async with self._lock:
            games = [GameState.from_dict(record) for record in self._records.values()]
        return sorted(games, key=lambda g: g.started_at, reverse=True)

    def get_record(self, game_id: str) -> dict[str, Any] | None:
        """Get a copy of the raw serialized record for a room."""
        record = self._records.get(game_id)
        return copy.deepcopy(record) if record is not None else None
