"""Game service for managing sentence game rooms."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

from cheesepants_py.exceptions import GameNotFoundError
from cheesepants_py.game.models import GameState
from cheesepants_py.game.session import GameSession, utcnow
from cheesepants_py.game.stats import GameStats, calculate_game_stats
from cheesepants_py.game.validator import DEFAULT_REQUIRED_WORDS, parse_required_words

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence
    from datetime import datetime

    from cheesepants_py.storage.base import StorageProtocol

logger = structlog.get_logger(__name__)


class GameService:
    """Service owning every open room.

    Provides:
    - Creating rooms on first connection and loading them from storage
    - A lock per room so that actions on one room run one at a time
    - Persisting a room after each accepted action
    - Evicting rooms nobody is connected to
    - Read-only views (state, stats) for the REST API

    The in-memory copy of a room is authoritative while the process runs;
    storage holds the durable copy and is read only when a room is not
    cached yet or has been evicted.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        clock: Callable[[], datetime] = utcnow,
        default_required_words: Sequence[str] = DEFAULT_REQUIRED_WORDS,
    ) -> None:
        """Initialize the game service.

        Args:
            storage: Backend holding the durable copy of each room.
            clock: Callable returning the current time.
            default_required_words: Words used when a room is created without
                a usable list of its own.
        """
        self._storage = storage
        self._clock = clock
        self._default_required_words = list(default_required_words)
        self._games: dict[str, GameState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # coroutines holding or waiting for each room lock
        self._lock_users: dict[str, int] = {}

    @property
    def storage(self) -> StorageProtocol:
        """The storage backend."""
        return self._storage

    @property
    def clock(self) -> Callable[[], datetime]:
        """The clock used for timestamps and turn timers."""
        return self._clock

    @property
    def active_games(self) -> list[str]:
        """IDs of rooms currently held in memory."""
        return list(self._games)

    @property
    def active_locks(self) -> list[str]:
        """IDs of rooms with a lock currently allocated."""
        return list(self._locks)

    @asynccontextmanager
    async def lock(self, game_id: str) -> AsyncIterator[None]:
        """Hold the lock serializing actions on a room.

        The lock is created on first use and dropped once nobody holds or
        waits for it and the room is no longer cached.

        Args:
            game_id: The room identifier.
        """
        lock = self._locks.get(game_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[game_id] = lock
        self._lock_users[game_id] = self._lock_users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[game_id] -= 1
            if not self._lock_users[game_id]:
                del self._lock_users[game_id]
                if game_id not in self._games:
                    self._locks.pop(game_id, None)

    def evict(self, game_id: str) -> bool:
        """Drop a room from memory; storage keeps the durable copy.

        Callers should hold the room's lock. The lock itself is released
        from the lock map when its last user leaves.

        Args:
            game_id: The room identifier.

        Returns:
            True if the room was cached.
        """
        if self._games.pop(game_id, None) is None:
            return False
        logger.debug("Game evicted from memory", game_id=game_id)
        return True

    # Room Management

    async def open_game(
        self,
        game_id: str,
        required_words: str | Sequence[str] | None = None,
        turn_time_limit: int = 0,
    ) -> GameState:
        """Get a room, loading or creating it as needed.

        Creation parameters only apply when the room does not exist yet; an
        existing room keeps its own settings. Callers should hold the room's
        lock.

        Args:
            game_id: The room identifier.
            required_words: Words the sentence must contain.
            turn_time_limit: Seconds allowed per turn, 0 for unlimited.

        Returns:
            The room's state.

        Raises:
            StorageError: If the room cannot be loaded or saved.
        """
        state = self._games.get(game_id)
        if state is not None:
            return state

        state = await self._storage.get_game(game_id)
        if state is not None:
            logger.info("Game loaded from storage", game_id=game_id, phase=state.phase.value)
        else:
            state = GameState(
                game_id=game_id,
                started_at=self._clock(),
                required_words=parse_required_words(required_words, self._default_required_words),
                turn_time_limit=max(0, turn_time_limit),
            )
            await self._storage.save_game(state)
            logger.info(
                "Game created",
                game_id=game_id,
                required_words=state.required_words,
                turn_time_limit=state.turn_time_limit,
            )

        return self._games.setdefault(game_id, state)

    async def load_game(self, game_id: str) -> GameState:
        """Get an existing room without creating it.

        Args:
            game_id: The room identifier.

        Returns:
            The room's state.

        Raises:
            GameNotFoundError: If the room does not exist.
        """
        state = self._games.get(game_id)
        if state is not None:
            return state
        state = await self._storage.get_game(game_id)
        if state is None:
            raise GameNotFoundError(game_id)
        # another coroutine may have cached the room while storage was read
        return self._games.setdefault(game_id, state)

    def session(self, state: GameState) -> GameSession:
        """Create a session driving ``state`` with the service clock."""
        return GameSession(state, clock=self._clock)

    async def save(self, state: GameState) -> None:
        """Persist a room's full state.

        Raises:
            StorageError: If the write fails.
        """
        await self._storage.save_game(state)
        logger.debug("Game saved", game_id=state.game_id, phase=state.phase.value, words=len(state.words))

    def restore(self, snapshot: dict[str, Any]) -> GameState:
        """Replace the cached room with a serialized snapshot.

        Used to roll back an action whose result could not be persisted.

        Args:
            snapshot: Output of ``GameState.to_dict`` taken before the action.

        Returns:
            The restored state.
        """
        state = GameState.from_dict(snapshot)
        self._games[state.game_id] = state
        logger.warning("Game state rolled back", game_id=state.game_id)
        return state

    # Queries

    async def get_game(self, game_id: str) -> GameState:
        """Get a room's state for read-only use.

        Returns the live copy when the room is cached. Otherwise the stored
        copy is returned without caching it, so reads never replace or keep
        alive a room.

        Raises:
            GameNotFoundError: If the room does not exist.
        """
        state = self._games.get(game_id)
        if state is not None:
            return state
        state = await self._storage.get_game(game_id)
        if state is None:
            raise GameNotFoundError(game_id)
        return state

    async def get_game_stats(self, game_id: str) -> GameStats:
        """Calculate statistics and achievements for a room.

        Raises:
            GameNotFoundError: If the room does not exist.
        """
        state = await self.get_game(game_id)
        return calculate_game_stats(state, self._clock())

    async def list_games(self) -> list[GameState]:
        """List every stored room."""
        return await self._storage.list_games()
