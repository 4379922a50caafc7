"""Shared test fixtures for the Monopoly engine and service tests."""

import random

import pytest

from monopoly_core import GameConfig, NewPlayer, TurnEngine
from monopoly_core.board import Board, standard_spaces
from monopoly_core.engine import Action, ActionType
from monopoly_core.service import GameService
from monopoly_core.spaces import property_space
from monopoly_core.storage import MemoryGameStorage


class FixedDice:
    """Dice that return queued rolls in order."""

    def __init__(self, *rolls):
        self.rolls = list(rolls)

    def queue(self, *rolls):
        self.rolls.extend(rolls)

    def roll(self):
        if not self.rolls:
            raise AssertionError("FixedDice ran out of rolls")
        return self.rolls.pop(0)


def act(engine, state, action_type, player_id, **data):
    """Apply one action and return the resulting state."""
    return engine.apply(state, Action(ActionType(action_type), player_id, data)).state


def stack_deck(deck, card_id):
    """Move a card to the top of a deck so the next draw returns it."""
    deck.order.remove(card_id)
    deck.order.insert(0, card_id)


def scenario_board():
    """Standard board with space 7 turned into a $100 street."""
    spaces = standard_spaces()
    spaces[7] = property_space(7, "Test Avenue", "light_blue", 100, (6, 30, 90, 270, 400, 550), 50)
    return Board(spaces)


@pytest.fixture
def game_config():
    """Default game configuration."""
    return GameConfig()


@pytest.fixture
def dice():
    return FixedDice()


@pytest.fixture
def engine(game_config, dice):
    """Engine with scripted dice and a fixed seed for deck order."""
    return TurnEngine(game_config, rng=random.Random(42), dice=dice)


@pytest.fixture
def make_engine(dice):
    """Factory for engines with config overrides, sharing the scripted dice."""

    def _make(board=None, **overrides):
        return TurnEngine(GameConfig(**overrides), board=board, rng=random.Random(42), dice=dice)

    return _make


@pytest.fixture
def two_players():
    """Two test players."""
    return [NewPlayer("alice", "Alice"), NewPlayer("bob", "Bob")]


@pytest.fixture
def three_players():
    return [NewPlayer("alice", "Alice"), NewPlayer("bob", "Bob"), NewPlayer("carol", "Carol")]


@pytest.fixture
def basic_game(engine, two_players):
    """Two-player game that has not started yet."""
    return engine.new_game("g1", two_players)


@pytest.fixture
def three_player_game(engine, three_players):
    return engine.new_game("g3", three_players)


@pytest.fixture
def storage():
    return MemoryGameStorage()


@pytest.fixture
def service(engine, storage):
    """Service over the scripted engine and an in-memory store."""
    return GameService(engine, storage)
