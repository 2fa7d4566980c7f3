"""Database storage backend for cheesepants-py.

This module provides SQLAlchemy-based persistent storage; one row per room.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cheesepants_py.storage.db.models import GameRecordModel
    from cheesepants_py.storage.db.setup import DatabaseManager
    from cheesepants_py.storage.db.storage import DatabaseStorage

__all__ = [
    "DatabaseManager",
    "DatabaseStorage",
    "GameRecordModel",
]


def __getattr__(name: str) -> object:
    """Lazy import database components so SQLAlchemy loads only when used."""
    if name == "DatabaseStorage":
        from cheesepants_py.storage.db.storage import DatabaseStorage

        return DatabaseStorage
    if name == "GameRecordModel":
        from cheesepants_py.storage.db.models import GameRecordModel

        return GameRecordModel
    if name == "DatabaseManager":
        from cheesepants_py.storage.db.setup import DatabaseManager

        return DatabaseManager
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
