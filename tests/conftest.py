"""Pytest configuration and fixtures for cheesepants-py tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from litestar import Litestar
from litestar.testing import TestClient

from cheesepants_py.game.models import GameState
from cheesepants_py.game.session import GameSession
from cheesepants_py.plugin import CheesePantsConfig, CheesePantsPlugin
from cheesepants_py.realtime.game_handler import GameWebSocketHandler
from cheesepants_py.realtime.manager import ConnectionManager
from cheesepants_py.services.game import GameService
from cheesepants_py.storage.memory import InMemoryStorage


class FakeClock:
    """Controllable clock for turn timer tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock frozen at a fixed instant."""
    return FakeClock()


# Game fixtures


@pytest.fixture
def state(clock: FakeClock) -> GameState:
    """Create an empty room with the default required words."""
    return GameState(game_id="room-1", started_at=clock())


@pytest.fixture
def session(state: GameState, clock: FakeClock) -> GameSession:
    """Create a session over an empty room."""
    return GameSession(state, clock=clock)


@pytest.fixture
def playing_session(session: GameSession) -> GameSession:
    """Create a started game with Alice (admin), Bob and Carol."""
    session.join("alice", "Alice")
    session.join("bob", "Bob")
    session.join("carol", "Carol")
    session.start_game("alice")
    return session


# Storage and service fixtures


@pytest.fixture
def storage() -> InMemoryStorage:
    """Create a fresh InMemoryStorage instance for each test."""
    return InMemoryStorage()


@pytest.fixture
def game_service(storage: InMemoryStorage, clock: FakeClock) -> GameService:
    """Create a GameService over in-memory storage and the fake clock."""
    return GameService(storage, clock=clock)


@pytest.fixture
def connection_manager() -> ConnectionManager:
    """Create an empty connection manager."""
    return ConnectionManager()


@pytest.fixture
def handler(game_service: GameService, connection_manager: ConnectionManager) -> GameWebSocketHandler:
    """Create a game WebSocket handler sharing the service and manager."""
    return GameWebSocketHandler(game_service, connection_manager)


@pytest.fixture
def make_socket() -> Callable[..., MagicMock]:
    """Create mock WebSockets with async send/accept/close."""

    def factory(**query: str) -> MagicMock:
        socket = MagicMock()
        socket.query_params = dict(query)
        socket.accept = AsyncMock()
        socket.close = AsyncMock()
        socket.send_text = AsyncMock()
        return socket

    return factory


# App and client fixtures


@pytest.fixture
def app() -> Litestar:
    """Create a Litestar app with CheesePantsPlugin for testing."""
    return Litestar(plugins=[CheesePantsPlugin(CheesePantsConfig())])


@pytest.fixture
def client(app: Litestar) -> TestClient[Litestar]:
    """Create a test client for the app."""
    return TestClient(app=app)
