"""Read-only REST endpoints for game rooms."""

from __future__ import annotations

from typing import Any, ClassVar

from litestar import Controller, get

from cheesepants_py.services.game import GameService


class GameController(Controller):
    """Controller exposing persisted game rooms.

    Rooms are created and changed only over the game WebSocket; these
    endpoints let dashboards and the end-of-game screen read them.
    """

    path = "/games"
    tags: ClassVar[list[str]] = ["Games"]

    @get("/")
    async def list_games(self, game_service: GameService) -> list[dict[str, Any]]:
        """List every stored room.

        Args:
            game_service: The game service instance (injected).

        Returns:
            A summary of each room, most recent first.
        """
        games = await game_service.list_games()
        return [
            {
                "gameId": g.game_id,
                "phase": g.phase.value,
                "playerCount": len(g.players),
                "wordCount": len(g.words),
                "startedAt": g.started_at.isoformat(),
            }
            for g in games
        ]

    @get("/{game_id:str}")
    async def get_game(self, game_id: str, game_service: GameService) -> dict[str, Any]:
        """Get a room's full state.

        Args:
            game_id: The room identifier.
            game_service: The game service instance (injected).

        Returns:
            The room state in wire format.

        Raises:
            GameNotFoundError: If the room does not exist.
        """
        state = await game_service.get_game(game_id)
        return state.to_dict()

    @get("/{game_id:str}/stats")
    async def get_game_stats(self, game_id: str, game_service: GameService) -> dict[str, Any]:
        """Get a room's statistics and achievements.

        Args:
            game_id: The room identifier.
            game_service: The game service instance (injected).

        Returns:
            Completion time, word counts, per-player rankings and achievements.

        Raises:
            GameNotFoundError: If the room does not exist.
        """
        stats = await game_service.get_game_stats(game_id)
        return stats.to_dict()
