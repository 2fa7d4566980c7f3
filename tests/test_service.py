"""Tests for the game service."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from cheesepants_py.exceptions import GameNotFoundError
from cheesepants_py.game.models import GamePhase, GameState
from cheesepants_py.services.game import GameService
from cheesepants_py.storage.memory import InMemoryStorage

if TYPE_CHECKING:
    from tests.conftest import FakeClock


class SlowStorage(InMemoryStorage):
    """In-memory storage whose first read waits until released."""

    def __init__(self) -> None:
        super().__init__()
        self.reading = asyncio.Event()
        self.release = asyncio.Event()
        self._held = False

    async def get_game(self, game_id: str) -> GameState | None:
        state = await super().get_game(game_id)
        if not self._held:
            self._held = True
            self.reading.set()
            await self.release.wait()
        return state


class TestOpenGame:
    """Tests for opening rooms."""

    async def test_creates_and_persists(
        self, game_service: GameService, storage: InMemoryStorage, clock: FakeClock
    ) -> None:
        """Test the first open creates a lobby and saves it."""
        state = await game_service.open_game("room-1")

        assert state.phase == GamePhase.LOBBY
        assert state.required_words == ["cheese", "pants"]
        assert state.started_at == clock()
        assert storage.get_record("room-1") == state.to_dict()
        assert game_service.active_games == ["room-1"]

    async def test_creation_parameters(self, game_service: GameService) -> None:
        """Test custom required words and limits apply on creation."""
        state = await game_service.open_game("room-1", required_words="foo, bar", turn_time_limit=-3)

        assert state.required_words == ["foo", "bar"]
        assert state.has_required_words == [False, False]
        assert state.turn_time_limit == 0

    async def test_too_few_words_fall_back(self, game_service: GameService) -> None:
        """Test a single custom word falls back to the defaults."""
        state = await game_service.open_game("room-1", required_words="foo")
        assert state.required_words == ["cheese", "pants"]

    async def test_configured_defaults(self, storage: InMemoryStorage, clock: FakeClock) -> None:
        """Test the service level default word list."""
        service = GameService(storage, clock=clock, default_required_words=("ham", "eggs"))
        state = await service.open_game("room-1")
        assert state.required_words == ["ham", "eggs"]

    async def test_existing_room_ignores_parameters(self, game_service: GameService) -> None:
        """Test reopening a room keeps its original settings."""
        first = await game_service.open_game("room-1", required_words="foo,bar", turn_time_limit=10)
        again = await game_service.open_game("room-1", required_words="x,y", turn_time_limit=99)

        assert again is first
        assert again.required_words == ["foo", "bar"]
        assert again.turn_time_limit == 10

    async def test_loads_from_storage(self, storage: InMemoryStorage, clock: FakeClock) -> None:
        """Test a fresh service picks up rooms saved by an earlier one."""
        first = GameService(storage, clock=clock)
        state = await first.open_game("room-1", turn_time_limit=20)
        first.session(state).join("a", "A")
        await first.save(state)

        second = GameService(storage, clock=clock)
        loaded = await second.open_game("room-1")

        assert loaded.turn_time_limit == 20
        assert [p.id for p in loaded.players] == ["a"]


class TestLoadGame:
    """Tests for loading existing rooms."""

    async def test_missing(self, game_service: GameService) -> None:
        """Test unknown rooms raise GameNotFoundError."""
        with pytest.raises(GameNotFoundError, match="Game not found: nope"):
            await game_service.load_game("nope")

    async def test_cached(self, game_service: GameService) -> None:
        """Test loading returns the in-memory copy."""
        state = await game_service.open_game("room-1")
        assert await game_service.load_game("room-1") is state
        assert await game_service.get_game("room-1") is state

    @pytest.mark.parametrize("method", ["load_game", "get_game"])
    async def test_slow_read_keeps_live_state(self, clock: FakeClock, method: str) -> None:
        """Test a read finishing after the room was cached leaves the live copy in place."""
        storage = SlowStorage()
        await storage.save_game(GameState(game_id="room-1", started_at=clock()))
        service = GameService(storage, clock=clock)

        read = asyncio.create_task(getattr(service, method)("room-1"))
        await storage.reading.wait()
        async with service.lock("room-1"):
            live = await service.open_game("room-1")
            service.session(live).join("a", "Ann")
        storage.release.set()
        await read

        state = await service.load_game("room-1")
        assert state is live
        assert [p.id for p in state.players] == ["a"]

    async def test_read_only_query_does_not_cache(self, game_service: GameService, storage: InMemoryStorage) -> None:
        """Test REST reads of an uncached room leave the cache untouched."""
        await storage.save_game(GameState(game_id="room-1"))

        state = await game_service.get_game("room-1")
        await game_service.get_game_stats("room-1")

        assert state.game_id == "room-1"
        assert game_service.active_games == []


class TestRestore:
    """Tests for rolling back a room."""

    async def test_restore_replaces_cached_state(self, game_service: GameService) -> None:
        """Test restoring a snapshot replaces the cached room."""
        state = await game_service.open_game("room-1")
        snapshot = state.to_dict()
        game_service.session(state).join("a", "A")

        restored = game_service.restore(snapshot)

        assert restored.players == []
        assert await game_service.load_game("room-1") is restored


class TestLocksAndQueries:
    """Tests for room locks and read-only queries."""

    async def test_lock_serializes_room(self, game_service: GameService) -> None:
        """Test holders of one room's lock run one at a time."""
        order: list[str] = []

        async def act(name: str) -> None:
            async with game_service.lock("a"):
                order.append(f"{name} in")
                await asyncio.sleep(0)
                order.append(f"{name} out")

        await asyncio.gather(act("x"), act("y"))

        assert order == ["x in", "x out", "y in", "y out"]

    async def test_other_rooms_not_blocked(self, game_service: GameService) -> None:
        """Test a held lock does not block another room."""
        async with game_service.lock("a"), game_service.lock("b"):
            assert sorted(game_service.active_locks) == ["a", "b"]

    async def test_unused_lock_released(self, game_service: GameService) -> None:
        """Test a lock for an uncached room is dropped after use."""
        async with game_service.lock("a"):
            assert game_service.active_locks == ["a"]

        assert game_service.active_locks == []

    async def test_lock_kept_while_cached(self, game_service: GameService) -> None:
        """Test a cached room keeps its lock until evicted."""
        async with game_service.lock("room-1"):
            await game_service.open_game("room-1")
        assert game_service.active_locks == ["room-1"]

        async with game_service.lock("room-1"):
            assert game_service.evict("room-1")
            assert game_service.active_locks == ["room-1"]

        assert game_service.active_locks == []
        assert game_service.active_games == []

    async def test_stats(self, game_service: GameService, clock: FakeClock) -> None:
        """Test stats are computed with the service clock."""
        state = await game_service.open_game("room-1")
        session = game_service.session(state)
        session.join("a", "A")
        session.start_game("a")
        session.add_word("a", "Hello")
        clock.advance(12)

        stats = await game_service.get_game_stats("room-1")

        assert stats.completion_seconds == 12
        assert stats.players[0].words_added == 1

    async def test_list_games(self, game_service: GameService) -> None:
        """Test listing reads every stored room."""
        await game_service.open_game("room-1")
        await game_service.open_game("room-2")

        games = await game_service.list_games()

        assert {g.game_id for g in games} == {"room-1", "room-2"}
