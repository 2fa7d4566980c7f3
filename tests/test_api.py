"""Tests for API endpoints and the application factory."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from litestar import Litestar
from litestar.exceptions import WebSocketDisconnect
from litestar.testing import TestClient

from cheesepants_py.app import create_app
from cheesepants_py.plugin import CheesePantsConfig, CheesePantsPlugin
from cheesepants_py.storage.db.setup import DatabaseManager
from cheesepants_py.storage.memory import InMemoryStorage


@pytest.fixture
def api_app() -> Litestar:
    """Create the full application over in-memory storage."""
    return create_app(storage_backend="memory")


@pytest.fixture
def api_client(api_app: Litestar) -> Iterator[TestClient[Litestar]]:
    """Create a test client that runs the app's startup and shutdown hooks."""
    with TestClient(app=api_app) as client:
        yield client


def _join(client: TestClient[Litestar], game_id: str = "room", player_id: str = "a", name: str = "Ann") -> None:
    """Join a room over the WebSocket and wait for the first state."""
    with client.websocket_connect(f"/ws/game?gameId={game_id}&playerId={player_id}&playerName={name}") as ws:
        message = ws.receive_json()
        assert message["type"] == "get-game-state-response"


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, api_client: TestClient[Litestar]) -> None:
        """Test the liveness probe reports the application and sockets."""
        response = api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        names = [c["name"] for c in data["components"]]
        assert names == ["application", "websocket"]
        assert data["components"][1]["details"] == {"active_games": 0, "connections": 0}

    def test_ready(self, api_client: TestClient[Litestar]) -> None:
        """Test the readiness probe without a database."""
        response = api_client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True
        assert response.json()["checks"] == {"application": True}

    def test_database_not_initialized(self, api_client: TestClient[Litestar], api_app: Litestar) -> None:
        """Test an unopened database is reported without touching it."""
        api_app.state.db_manager = DatabaseManager("sqlite+aiosqlite:///unused.db")

        health = api_client.get("/health").json()
        assert health["status"] == "unhealthy"
        assert health["components"][-1]["name"] == "database"
        assert health["components"][-1]["message"] == "Database not initialized"

        ready = api_client.get("/ready").json()
        assert ready["ready"] is False
        assert ready["checks"]["database"] is False


class TestGameAPI:
    """Tests for the read-only game endpoints."""

    def test_list_empty(self, api_client: TestClient[Litestar]) -> None:
        """Test listing rooms when none exist."""
        response = api_client.get("/api/games")
        assert response.status_code == 200
        assert response.json() == []

    def test_get_missing_game(self, api_client: TestClient[Litestar]) -> None:
        """Test unknown rooms return a structured 404."""
        response = api_client.get("/api/games/nope")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "game_not_found"
        assert data["message"] == "Game not found: nope"

    def test_missing_game_stats(self, api_client: TestClient[Litestar]) -> None:
        """Test stats for unknown rooms return 404."""
        assert api_client.get("/api/games/nope/stats").status_code == 404

    def test_game_created_over_websocket(self, api_client: TestClient[Litestar]) -> None:
        """Test rooms opened by the WebSocket are visible over HTTP."""
        _join(api_client)

        response = api_client.get("/api/games/room")
        assert response.status_code == 200
        data = response.json()
        assert data["gameId"] == "room"
        assert data["startedById"] == "a"
        assert data["players"] == [{"id": "a", "name": "Ann", "isCurrentTurn": True}]
        assert data["connectedPlayers"] == []

        listing = api_client.get("/api/games").json()
        assert listing == [
            {
                "gameId": "room",
                "phase": "lobby",
                "playerCount": 1,
                "wordCount": 0,
                "startedAt": data["startedAt"],
            }
        ]

    def test_stats(self, api_client: TestClient[Litestar]) -> None:
        """Test stats for a played room."""
        with api_client.websocket_connect("/ws/game?gameId=room&playerId=a&playerName=Ann") as ws:
            ws.receive_json()
            ws.send_json({"type": "start-game"})
            ws.receive_json()
            ws.send_json({"type": "add-word", "word": "cheese"})
            ws.receive_json()
            ws.send_json({"type": "add-word", "word": "pants!"})
            assert ws.receive_json() == {"type": "game-complete", "sentence": ["cheese", "pants!"]}
            assert ws.receive_json()["gameState"]["phase"] == "complete"

        response = api_client.get("/api/games/room/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "complete"
        assert data["totalWords"] == 2
        assert data["players"][0]["wordsAdded"] == 2
        assert {"title": "Sentence Finisher", "player": "Ann"} in data["achievements"]


class TestGameWebSocket:
    """Tests for the game WebSocket endpoint."""

    def test_rejects_missing_params(self, api_client: TestClient[Litestar]) -> None:
        """Test a handshake without IDs is refused."""
        with pytest.raises(WebSocketDisconnect) as exc_info, api_client.websocket_connect("/ws/game?gameId=room"):
            pass

        assert exc_info.value.code == 4400

    def test_two_players(self, api_client: TestClient[Litestar]) -> None:
        """Test a second player sees the room and keepalives are answered."""
        with api_client.websocket_connect("/ws/game?gameId=room&playerId=a&playerName=Ann") as first:
            first.receive_json()
            with api_client.websocket_connect("/ws/game?gameId=room&playerId=b&playerName=Ben") as second:
                state = second.receive_json()["gameState"]
                assert [p["id"] for p in state["players"]] == ["a", "b"]
                assert [p["id"] for p in first.receive_json()["gameState"]["players"]] == ["a", "b"]

                second.send_json({"type": "test-connection"})
                assert second.receive_json() == {"type": "pong"}
                assert second.receive_json()["type"] == "get-game-state-response"

                second.send_json({"type": "start-game"})
                assert second.receive_json() == {
                    "type": "message",
                    "data": "Only the game admin can start the game.",
                }


class TestPlugin:
    """Tests for the Litestar plugin."""

    def test_properties_before_init(self) -> None:
        """Test accessors fail until the plugin is registered."""
        plugin = CheesePantsPlugin()

        with pytest.raises(RuntimeError):
            _ = plugin.game_service
        with pytest.raises(RuntimeError):
            _ = plugin.game_ws_handler

    def test_uses_configured_storage(self) -> None:
        """Test the plugin wires the given storage into the service."""
        storage = InMemoryStorage()
        plugin = CheesePantsPlugin(CheesePantsConfig(storage=storage, default_required_words=["ham", "eggs"]))
        Litestar(plugins=[plugin])

        assert plugin.storage is storage
        assert plugin.game_service.storage is storage
        assert plugin.game_ws_handler.connection_manager is plugin.connection_manager

    def test_websocket_can_be_disabled(self) -> None:
        """Test the WebSocket endpoint is optional."""
        plugin = CheesePantsPlugin(CheesePantsConfig(enable_websocket=False))
        app = Litestar(plugins=[plugin])

        paths = {route.path for route in app.routes}
        assert "/ws/game" not in paths
        assert "/api/games" in paths
        with pytest.raises(RuntimeError):
            _ = plugin.game_ws_handler

    def test_plugin_only_app(self, client: TestClient[Litestar]) -> None:
        """Test the plugin alone serves the game API."""
        assert client.get("/api/games").json() == []


class TestCreateApp:
    """Tests for the application factory."""

    def test_unknown_backend(self) -> None:
        """Test an unknown storage backend is rejected."""
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_app(storage_backend="redis")

    def test_routes(self, api_app: Litestar) -> None:
        """Test every endpoint is mounted."""
        paths = {route.path for route in api_app.routes}
        assert {"/health", "/ready", "/api/games", "/ws/game"} <= paths
