"""
Custom exception hierarchy for the Monopoly engine and services.

Provides typed errors that can be handled consistently across
the core engine, the game service, and the HTTP layer.
"""


class MonopolyError(Exception):
    """Base exception for all game-related errors."""


class ValidationError(MonopolyError):
    """Malformed action shape or unknown action type."""


class NotFoundError(MonopolyError):
    """Unknown game id or space id."""


class RuleViolation(MonopolyError):
    """Action breaks a game rule (funds, ownership, phase, building state)."""


class StateError(MonopolyError):
    """An engine invariant would be broken. Should not occur under valid input."""


class StorageError(MonopolyError):
    """A persisted game document could not be read or written."""
