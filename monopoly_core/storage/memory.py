"""
In-process game store.

Documents are kept as JSON text, so every read decodes a new copy and
callers can never mutate what is stored.
"""

import json
import logging
from typing import Dict, List, Optional

from monopoly_core.serialization import state_from_document, state_to_document
from monopoly_core.state import GameState
from monopoly_core.storage.base import GameStorage

logger = logging.getLogger(__name__)


class MemoryGameStorage(GameStorage):
    """Insertion-ordered in-memory store."""

    def __init__(self):
        self._documents: Dict[str, str] = {}

    async def get_game(self, game_id: str) -> Optional[GameState]:
        raw = self._documents.get(game_id)
        if raw is None:
            return None
        return state_from_document(json.loads(raw))

    async def save_game(self, state: GameState) -> None:
        # Replacing a key keeps its original insertion position
        self._documents[state.game_id] = json.dumps(state_to_document(state))
        logger.debug(f"Saved game {state.game_id} at version {state.version}")

    async def list_games(self) -> List[str]:
        return list(self._documents)

    async def delete_game(self, game_id: str) -> bool:
        return self._documents.pop(game_id, None) is not None
