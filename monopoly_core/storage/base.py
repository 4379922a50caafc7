"""
Storage contract for game states.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from monopoly_core.state import GameState


class GameStorage(ABC):
    """
    Keyed store of game states.

    Each game is persisted as one self-contained document. Reads always
    return a fresh GameState that shares nothing with earlier reads.
    """

    @abstractmethod
    async def get_game(self, game_id: str) -> Optional[GameState]:
        """Load a game, or None if no game has that id."""

    @abstractmethod
    async def save_game(self, state: GameState) -> None:
        """Insert or replace the stored document for ``state.game_id``."""

    @abstractmethod
    async def list_games(self) -> List[str]:
        """Stored game ids in insertion order."""

    @abstractmethod
    async def delete_game(self, game_id: str) -> bool:
        """Delete a game. Returns False if it did not exist."""

    async def close(self) -> None:
        """Release any resources held by the store."""
