"""Storage backends for cheesepants-py."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cheesepants_py.storage.base import StorageProtocol
from cheesepants_py.storage.memory import InMemoryStorage

if TYPE_CHECKING:
    from cheesepants_py.storage.db import DatabaseStorage

__all__ = ["DatabaseStorage", "InMemoryStorage", "StorageProtocol"]


def __getattr__(name: str) -> object:
    """Lazy import DatabaseStorage so SQLAlchemy loads only when used."""
    if name == "DatabaseStorage":
        from cheesepants_py.storage.db import DatabaseStorage

        return DatabaseStorage
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
