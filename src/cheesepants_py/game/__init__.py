"""Sentence game logic for cheesepants-py.

This package contains the room data models, word validation, turn rotation
and the per-room session state machine.
"""

from __future__ import annotations

__all__ = [
    "AddWordResult",
    "GameActionError",
    "GamePhase",
    "GameSession",
    "GameState",
    "JoinResult",
    "Player",
    "WordInfo",
]

from cheesepants_py.game.exceptions import GameActionError
from cheesepants_py.game.models import GamePhase, GameState, Player, WordInfo
from cheesepants_py.game.session import AddWordResult, GameSession, JoinResult
