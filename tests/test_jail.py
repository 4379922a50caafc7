"""
Tests specifically for jail mechanics.
"""

import pytest

from monopoly_core.events import EventType
from monopoly_core.engine import Action, ActionType
from monopoly_core.exceptions import RuleViolation
from monopoly_core.state import GamePhase

from conftest import act


def _jail(state, player_index=0, turns=0):
    player = state.players[player_index]
    player.position = 10
    player.in_jail = True
    player.jail_turns = turns
    state.phase = GamePhase.ROLLING


def test_three_doubles_sends_to_jail(engine, dice, basic_game):
    """
    Rule: 'If you throw doubles three times in succession, move your token
    immediately to the space marked In Jail'
    """
    dice.queue((5, 5), (3, 3), (6, 6))

    state = act(engine, basic_game, "ROLL_DICE", "alice")
    assert state.find_player("alice").position == 10
    state = act(engine, state, "ROLL_DICE", "alice")
    assert state.phase == GamePhase.BUYING
    state = act(engine, state, "DECLINE_PURCHASE", "alice")

    result = engine.apply(state, Action(ActionType.ROLL_DICE, "alice"))

    alice = result.state.find_player("alice")
    assert alice.in_jail
    assert alice.position == 10
    assert result.state.current_player.player_id == "bob"
    assert result.state.doubles_count == 0
    assert any(e.event_type == EventType.GO_TO_JAIL for e in result.events)


def test_go_to_jail_space(engine, dice, basic_game):
    """
    Rule: 'Go to Jail: move your token directly to the space marked In Jail'
    """
    basic_game.players[0].position = 26
    dice.queue((1, 3))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    alice = state.find_player("alice")
    assert alice.in_jail
    assert alice.position == 10
    assert alice.cash == 1500
    assert state.current_player.player_id == "bob"


def test_failed_jail_roll_ends_turn(engine, dice, basic_game):
    _jail(basic_game)
    dice.queue((1, 2))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    alice = state.find_player("alice")
    assert alice.in_jail
    assert alice.jail_turns == 1
    assert alice.position == 10
    assert state.current_player.player_id == "bob"


def test_doubles_release_without_extra_roll(engine, dice, basic_game):
    _jail(basic_game)
    dice.queue((2, 2))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    alice = state.find_player("alice")
    assert not alice.in_jail
    assert alice.position == 14
    assert state.phase == GamePhase.BUYING
    assert not state.roll_pending


def test_jail_forced_payment_after_three_turns(engine, dice, basic_game):
    """
    Rule: 'After you have waited three turns, you must move out of Jail and pay $50'
    """
    _jail(basic_game, turns=2)
    dice.queue((1, 2))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    alice = state.find_player("alice")
    assert not alice.in_jail
    assert alice.cash == 1450
    assert alice.position == 13


def test_jail_pay_fine(engine, basic_game):
    """
    Rule: 'pay a fine of $50 and continue on your next turn'
    """
    _jail(basic_game)

    state = act(engine, basic_game, "PAY_JAIL_FEE", "alice")

    alice = state.find_player("alice")
    assert not alice.in_jail
    assert alice.cash == 1450
    assert state.roll_pending


def test_pay_fine_when_not_in_jail(engine, basic_game):
    with pytest.raises(RuleViolation):
        act(engine, basic_game, "PAY_JAIL_FEE", "alice")


def test_jail_use_card(engine, basic_game):
    """
    Rule: 'use a "Get Out Of Jail Free" card if you have one'
    """
    _jail(basic_game)
    basic_game.players[0].jail_cards = ["ch7"]
    basic_game.chance.order.remove("ch7")

    state = act(engine, basic_game, "USE_GET_OUT_OF_JAIL_CARD", "alice")

    alice = state.find_player("alice")
    assert not alice.in_jail
    assert alice.jail_cards == []
    assert alice.cash == 1500


def test_use_card_without_card(engine, basic_game):
    _jail(basic_game)

    with pytest.raises(RuleViolation):
        act(engine, basic_game, "USE_GET_OUT_OF_JAIL_CARD", "alice")


def test_jail_turns_survive_other_players_turns(engine, dice, basic_game):
    """A jailed player's attempt count is kept while the others play."""
    _jail(basic_game, player_index=1, turns=1)
    dice.queue((4, 6))

    state = act(engine, basic_game, "ROLL_DICE", "alice")
    state = act(engine, state, "END_TURN", "alice")

    bob = state.find_player("bob")
    assert state.current_player.player_id == "bob"
    assert bob.in_jail
    assert bob.jail_turns == 1
