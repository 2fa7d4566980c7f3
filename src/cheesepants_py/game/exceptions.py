"""Exception classes for game actions.

Every rejected action raises a subclass of :class:`GameActionError` before
any state is touched. The exception message is the advisory text sent back
to the player who made the request.
"""

from __future__ import annotations


class GameActionError(Exception):
    """Base exception for rejected game actions."""


class NotAdminError(GameActionError):
    """Raised when a non-admin attempts an admin-only action."""

    def __init__(self, action: str) -> None:
        """Initialize the exception.

        Args:
            action: Human readable name of the attempted action.
        """
        super().__init__(f"Only the game admin can {action}.")
        self.action = action


class NotYourTurnError(GameActionError):
    """Raised when a player submits a word out of turn."""

    def __init__(self) -> None:
        super().__init__("Not your turn!")


class PhaseError(GameActionError):
    """Raised when an action is not legal in the current phase."""


class InvalidReferenceError(GameActionError):
    """Raised when an action references a word or player that does not exist."""


class InvalidInputError(GameActionError):
    """Raised when an action carries unusable input (empty word, missing name)."""
