"""Business logic services for cheesepants-py."""

from cheesepants_py.services.game import GameService

__all__ = ["GameService"]
