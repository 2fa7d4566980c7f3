"""Database storage implementation for cheesepants-py."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from cheesepants_py.exceptions import StorageError
from cheesepants_py.storage.db.models import GameRecordModel, game_from_model, game_to_model

if TYPE_CHECKING:
    from cheesepants_py.game.models import GameState
    from cheesepants_py.storage.db.setup import DatabaseManager


class DatabaseStorage:
    """Async database storage implementation using SQLAlchemy.

    Every call opens its own session from the database manager and commits
    before returning, so a completed ``save_game`` is durable.

    Attributes:
        _db: Database manager providing sessions.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        """Initialize the database storage.

        Args:
            db_manager: Manager providing transactional sessions.
        """
        self._db = db_manager

    async def get_game(self, game_id: str) -> GameState | None:
        """Load a room's state.

        Args:
            game_id: The room identifier.

        Returns:
            The stored state, or None.

        Raises:
            StorageError: If the query fails.
        """
        try:
            async with self._db.session() as session:
                stmt = select(GameRecordModel).where(GameRecordModel.game_id == game_id)
                result = await session.execute(stmt)
                model = result.scalar_one_or_none()
                if model is None:
                    return None
                return game_from_model(model)
        except SQLAlchemyError as e:
            msg = f"Failed to load game {game_id}"
            raise StorageError(msg) from e

    async def save_game(self, state: GameState) -> None:
        """Insert or replace a room's record.

        Args:
            state: The state to store.

        Raises:
            StorageError: If the write fails.
        """
        try:
            async with self._db.session() as session:
                stmt = select(GameRecordModel).where(GameRecordModel.game_id == state.game_id)
                result = await session.execute(stmt)
                model = result.scalar_one_or_none()
                if model is None:
                    session.add(game_to_model(state))
                else:
                    model.phase = state.phase.value
                    model.state = state.to_dict()
                    model.updated_at = datetime.now(UTC)
                await session.flush()
        except SQLAlchemyError as e:
            msg = f"Failed to save game {state.game_id}"
            raise StorageError(msg) from e

    async def list_games(self) -> list[GameState]:
        """List every stored room, most recently created first."""
        try:
            async with self._db.session() as session:
                stmt = select(GameRecordModel).order_by(GameRecordModel.created_at.desc())
                result = await session.execute(stmt)
                return [game_from_model(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            msg = "Failed to list games"
            raise StorageError(msg) from e
