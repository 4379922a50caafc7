from typing import Any

from monopoly_core.storage.base import GameStorage
from monopoly_core.storage.memory import MemoryGameStorage
from monopoly_core.storage.sql import SqlGameStorage


def create_storage(database_url: str = "memory://", **engine_kwargs: Any) -> GameStorage:
    """Build the store named by a URL: ``memory://`` or any async SQLAlchemy URL."""
    if database_url.startswith("memory://"):
        return MemoryGameStorage()
    return SqlGameStorage.from_url(database_url, **engine_kwargs)


__all__ = [
    "GameStorage",
    "MemoryGameStorage",
    "SqlGameStorage",
    "create_storage",
]
