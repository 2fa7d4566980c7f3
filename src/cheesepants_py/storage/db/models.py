"""SQLAlchemy models for cheesepants-py database storage."""

from __future__ import annotations

from typing import Any

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cheesepants_py.game.models import GameState


class GameRecordModel(UUIDAuditBase):
    """SQLAlchemy model holding one game room.

    The full game state is stored verbatim as JSON; ``phase`` is copied out
    of it so rooms can be filtered without decoding the blob.

    Attributes:
        id: UUID primary key (from UUIDAuditBase).
        game_id: The room's opaque identifier.
        phase: Phase of the room at the last save.
        state: Serialized GameState.
        created_at: Creation timestamp (from UUIDAuditBase).
        updated_at: Last update timestamp (from UUIDAuditBase).
    """

    __tablename__ = "game_records"

    game_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    phase: Mapped[str] = mapped_column(String(20), default="lobby", index=True)
    state: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)


def game_to_model(state: GameState) -> GameRecordModel:
    """Convert a domain GameState to a GameRecordModel.

    Args:
        state: Domain GameState instance.

    Returns:
        GameRecordModel instance ready for database insertion.
    """
    return GameRecordModel(
        game_id=state.game_id,
        phase=state.phase.value,
        state=state.to_dict(),
    )


def game_from_model(model: GameRecordModel) -> GameState:
    """Convert a GameRecordModel to a domain GameState.

    Args:
        model: SQLAlchemy GameRecordModel instance.

    Returns:
        Domain GameState instance.
    """
    return GameState.from_dict(model.state)
