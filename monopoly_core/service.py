"""
GameService orchestrates the turn engine with persistence and broadcast.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Union

from monopoly_core.broadcast import GAME_ACTION, GAME_UPDATE, PLAYER_JOINED, PLAYER_LEFT, GameBroadcaster
from monopoly_core.engine import Action, ActionType, TransitionResult, TurnEngine
from monopoly_core.exceptions import NotFoundError, RuleViolation, StorageError
from monopoly_core.rules import get_legal_actions
from monopoly_core.serialization import state_to_document
from monopoly_core.state import GameState, NewPlayer
from monopoly_core.storage.base import GameStorage

logger = logging.getLogger(__name__)


class GameService:
    """
    Use-case service for creating and playing games.

    Actions on one game are serialized by a per-game asyncio.Lock held
    from load to save, so the engine never sees interleaved writes.
    Different games proceed independently.
    """

    def __init__(
        self,
        engine: TurnEngine,
        storage: GameStorage,
        broadcaster: Optional[GameBroadcaster] = None,
    ):
        self.engine = engine
        self.storage = storage
        self.broadcaster = broadcaster or GameBroadcaster()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _lock(self, game_id: str) -> AsyncIterator[None]:
        """Hold a game's lock. Entries live only while a caller holds or awaits them."""
        lock = self._locks.get(game_id)
        if lock is None:
            lock = self._locks[game_id] = asyncio.Lock()
        self._lock_users[game_id] = self._lock_users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[game_id] -= 1
            if not self._lock_users[game_id]:
                del self._lock_users[game_id]
                del self._locks[game_id]

    async def _load(self, game_id: str) -> GameState:
        state = await self.storage.get_game(game_id)
        if state is None:
            raise NotFoundError(f"Game {game_id!r} not found")
        return state

    async def _save(self, state: GameState) -> None:
        try:
            await self.storage.save_game(state)
        except StorageError:
            logger.exception(f"Failed to persist game {state.game_id} at version {state.version}")
            raise

    def _publish_state(self, state: GameState) -> None:
        self.broadcaster.publish(state.game_id, GAME_UPDATE, state.version, state_to_document(state))

    async def create_game(self, players: Sequence[NewPlayer], game_id: Optional[str] = None) -> str:
        """Create and persist a new game. Returns its id."""
        game_id = game_id or uuid.uuid4().hex[:12]
        async with self._lock(game_id):
            if await self.storage.get_game(game_id) is not None:
                raise RuleViolation(f"Game {game_id!r} already exists")
            state = self.engine.new_game(game_id, players)
            await self._save(state)
        logger.info(f"Created game {game_id} with {len(players)} players")
        return game_id

    async def process_action(self, game_id: str, action: Union[Action, Mapping[str, Any]]) -> GameState:
        """
        Validate and apply one action, persist the result, then broadcast it.

        Engine errors propagate unchanged and leave the stored game as it was.
        """
        if not isinstance(action, Action):
            action = Action.from_dict(action)

        async with self._lock(game_id):
            state = await self._load(game_id)
            result: TransitionResult = self.engine.apply(state, action)
            await self._save(result.state)

            action_data = action.to_dict()
            action_data["events"] = [event.to_dict() for event in result.events]
            self.broadcaster.publish(game_id, GAME_ACTION, result.state.version, action_data)
            self._publish_state(result.state)

        for event in result.events:
            logger.debug(f"Game {game_id}: {event!r}")
        if result.state.is_over and not state.is_over:
            logger.info(f"Game {game_id} ended, winner {result.state.winner}")
        return result.state

    async def get_game(self, game_id: str) -> GameState:
        return await self._load(game_id)

    async def list_games(self) -> List[str]:
        return await self.storage.list_games()

    async def delete_game(self, game_id: str) -> None:
        async with self._lock(game_id):
            if not await self.storage.delete_game(game_id):
                raise NotFoundError(f"Game {game_id!r} not found")
            self.broadcaster.close_game(game_id)
        logger.info(f"Deleted game {game_id}")

    async def add_player(self, game_id: str, player: NewPlayer) -> GameState:
        """Seat a player in a game that has not started yet."""
        async with self._lock(game_id):
            state = self.engine.add_player(await self._load(game_id), player)
            await self._save(state)
            self.broadcaster.publish(game_id, PLAYER_JOINED, state.version, {"playerId": player.player_id})
            self._publish_state(state)
        logger.info(f"Player {player.player_id} joined game {game_id}")
        return state

    async def add_spectator(self, game_id: str, spectator_id: str) -> GameState:
        async with self._lock(game_id):
            state = self.engine.add_spectator(await self._load(game_id), spectator_id)
            await self._save(state)
            self._publish_state(state)
        return state

    async def remove_spectator(self, game_id: str, spectator_id: str) -> GameState:
        async with self._lock(game_id):
            state = self.engine.remove_spectator(await self._load(game_id), spectator_id)
            await self._save(state)
            self.broadcaster.publish(game_id, PLAYER_LEFT, state.version, {"spectatorId": spectator_id})
            self._publish_state(state)
        return state

    async def legal_actions(self, game_id: str, player_id: str) -> List[ActionType]:
        state = await self._load(game_id)
        return get_legal_actions(self.engine, state, player_id)

    async def subscribe(self, game_id: str) -> asyncio.Queue:
        """Subscribe to a game's messages, starting with its current state."""
        async with self._lock(game_id):
            state = await self._load(game_id)
            initial = {
                "type": GAME_UPDATE,
                "game_id": game_id,
                "sequence": state.version,
                "data": state_to_document(state),
            }
            return self.broadcaster.subscribe(game_id, initial)

    def unsubscribe(self, game_id: str, q: asyncio.Queue) -> None:
        self.broadcaster.unsubscribe(game_id, q)
