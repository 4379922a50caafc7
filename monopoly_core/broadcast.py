"""
Per-game fan-out of state updates to subscribers.

Each subscriber owns an asyncio.Queue. Messages carry the game's state
version as ``sequence``, so a subscriber sees a monotonically increasing
series of snapshots for each game.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

GAME_UPDATE = "gameUpdate"
GAME_ACTION = "gameAction"
PLAYER_JOINED = "playerJoined"
PLAYER_LEFT = "playerLeft"
GAME_CLOSED = "gameClosed"


class GameBroadcaster:
    """Routes messages to the subscribers of each game."""

    def __init__(self, max_queue_size: int = 256):
        self.max_queue_size = max_queue_size
        self._clients: Dict[str, Set[asyncio.Queue]] = {}

    def subscribe(self, game_id: str, initial: Optional[Dict[str, Any]] = None) -> asyncio.Queue:
        """Register a subscriber; ``initial`` is queued first if given."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._clients.setdefault(game_id, set()).add(q)
        if initial is not None:
            q.put_nowait(initial)
        return q

    def unsubscribe(self, game_id: str, q: asyncio.Queue) -> None:
        clients = self._clients.get(game_id)
        if clients is None:
            return
        clients.discard(q)
        if not clients:
            del self._clients[game_id]

    def subscriber_count(self, game_id: str) -> int:
        return len(self._clients.get(game_id, ()))

    def publish(self, game_id: str, event_type: str, sequence: int, data: Dict[str, Any]) -> int:
        """Queue a message for every subscriber of a game. Returns how many got it."""
        message = {"type": event_type, "game_id": game_id, "sequence": sequence, "data": data}
        delivered = 0
        for q in list(self._clients.get(game_id, ())):
            # Best-effort; don't block if client is slow
            try:
                q.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                # Drop client if it cannot keep up
                logger.warning(f"Dropping slow subscriber of game {game_id}")
                self.unsubscribe(game_id, q)
        return delivered

    def close_game(self, game_id: str) -> List[asyncio.Queue]:
        """Forget every subscriber of a deleted game, leaving each a final gameClosed message."""
        queues = list(self._clients.pop(game_id, ()))
        message = {"type": GAME_CLOSED, "game_id": game_id, "sequence": None, "data": {}}
        for q in queues:
            if q.full():
                # The closing message replaces the oldest undelivered one
                q.get_nowait()
            q.put_nowait(message)
        return queues
