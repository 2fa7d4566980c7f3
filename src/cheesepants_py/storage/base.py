"""Storage protocol definition for cheesepants-py."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cheesepants_py.game.models import GameState


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol defining the storage interface for cheesepants-py.

    Each room is stored as one durable record keyed by its game ID, holding
    the serialized game state verbatim.
    """

    async def get_game(self, game_id: str) -> GameState | None:
        """Load a room's state.

        Args:
            game_id: The room identifier.

        Returns:
            The stored state, or None if the room has never been saved.

        Raises:
            StorageError: If the record cannot be read.
        """
        ...

    async def save_game(self, state: GameState) -> None:
        """Durably store a room's full state, replacing any previous record.

        Args:
            state: The state to store.

        Raises:
            StorageError: If the record cannot be written.
        """
        ...

    async def list_games(self) -> list[GameState]:
        """List every stored room.

        Returns:
            All stored states, most recently opened first.
        """
        ...
