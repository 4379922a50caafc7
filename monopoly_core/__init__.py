"""
Monopoly Rules Engine

A deterministic implementation of classic Monopoly rules, plus the
service layer that persists and broadcasts games.
"""

from .board import Board
from .config import GameConfig
from .engine import Action, ActionType, TransitionResult, TurnEngine
from .exceptions import MonopolyError, NotFoundError, RuleViolation, StateError, StorageError, ValidationError
from .service import GameService
from .state import GamePhase, GameState, NewPlayer, PlayerState, PropertyState

__all__ = [
    "Action",
    "ActionType",
    "Board",
    "GameConfig",
    "GamePhase",
    "GameService",
    "GameState",
    "MonopolyError",
    "NewPlayer",
    "NotFoundError",
    "PlayerState",
    "PropertyState",
    "RuleViolation",
    "StateError",
    "StorageError",
    "TransitionResult",
    "TurnEngine",
    "ValidationError",
]
