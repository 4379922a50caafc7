"""
Tests for legal action detection.
"""

from monopoly_core.engine import ActionType
from monopoly_core.rules import get_legal_actions

from conftest import act


def test_basic_turn_flow(engine, basic_game):
    actions = get_legal_actions(engine, basic_game, "alice")

    assert ActionType.ROLL_DICE in actions
    assert ActionType.END_TURN not in actions
    assert get_legal_actions(engine, basic_game, "bob") == []


def test_unknown_player_has_no_actions(engine, basic_game):
    assert get_legal_actions(engine, basic_game, "mallory") == []


def test_buying_phase_actions(engine, dice, basic_game):
    dice.queue((2, 3))
    state = act(engine, basic_game, "ROLL_DICE", "alice")

    actions = get_legal_actions(engine, state, "alice")

    assert ActionType.BUY_PROPERTY in actions
    assert ActionType.DECLINE_PURCHASE in actions
    assert ActionType.ROLL_DICE not in actions


def test_end_turn_after_roll(engine, dice, basic_game):
    dice.queue((4, 6))
    state = act(engine, basic_game, "ROLL_DICE", "alice")

    actions = get_legal_actions(engine, state, "alice")

    assert ActionType.END_TURN in actions
    assert ActionType.ROLL_DICE not in actions


def test_jail_options(engine, basic_game):
    alice = basic_game.players[0]
    alice.in_jail = True
    alice.position = 10
    alice.jail_cards = ["cc4"]

    actions = get_legal_actions(engine, basic_game, "alice")

    assert ActionType.PAY_JAIL_FEE in actions
    assert ActionType.USE_GET_OUT_OF_JAIL_CARD in actions


def test_property_management_out_of_turn(engine, basic_game):
    basic_game.properties[1].owner = "bob"
    basic_game.properties[3].owner = "bob"

    actions = get_legal_actions(engine, basic_game, "bob")

    assert actions == [ActionType.MORTGAGE_PROPERTY, ActionType.BUILD_HOUSE]


def test_trading_phase_actions(engine, basic_game):
    state = act(engine, basic_game, "TRADE_OFFER", "alice", recipientId="bob", offer={"cash": 10})

    assert get_legal_actions(engine, state, "bob") == [ActionType.TRADE_ACCEPT, ActionType.TRADE_REJECT]
    assert ActionType.TRADE_REJECT in get_legal_actions(engine, state, "alice")
    assert ActionType.TRADE_ACCEPT not in get_legal_actions(engine, state, "alice")


def test_no_actions_after_game_over(engine, basic_game):
    state = act(engine, basic_game, "DECLARE_BANKRUPTCY", "alice")

    assert get_legal_actions(engine, state, "bob") == []
