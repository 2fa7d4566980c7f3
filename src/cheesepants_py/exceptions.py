"""Exception classes for cheesepants-py."""

from __future__ import annotations


class CheesePantsError(Exception):
    """Base exception for all cheesepants-py errors."""


class GameNotFoundError(CheesePantsError):
    """Raised when a game room is not found in storage."""

    def __init__(self, game_id: str) -> None:
        """Initialize the exception.

        Args:
            game_id: The ID of the room that was not found.
        """
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class StorageError(CheesePantsError):
    """Raised when a storage operation fails."""
