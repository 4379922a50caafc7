"""
Tests for rent calculation on all property types.
"""

import pytest

from monopoly_core.board import Board
from monopoly_core.exceptions import RuleViolation
from monopoly_core.properties import PropertyLedger
from monopoly_core.state import GamePhase, PropertyState

from conftest import act


def _ledger(**owners):
    """Ledger over a fresh board; keyword args map 's<id>' to an owner."""
    board = Board()
    properties = [PropertyState(space.space_id) for space in board.spaces]
    for key, owner in owners.items():
        properties[int(key[1:])].owner = owner
    return PropertyLedger(board, properties)


def test_basic_property_rent():
    """
    Rule: 'The amount payable is shown on the Title Deed'
    """
    ledger = _ledger(s1="alice")

    assert ledger.rent_due(1, 7) == 2


def test_full_color_group_doubles_rent():
    """
    Rule: 'If all Sites within a colour-group are owned by a player, the
    rent payable is doubled on any Site of that group not yet built on.'
    """
    ledger = _ledger(s1="alice", s3="alice")

    assert ledger.rent_due(1, 7) == 4
    assert ledger.rent_due(3, 7) == 8


def test_mortgaged_member_keeps_group_doubling():
    ledger = _ledger(s1="alice", s3="alice")
    ledger.state(3).mortgaged = True

    assert ledger.rent_due(1, 7) == 4
    assert ledger.rent_due(3, 7) == 0


def test_rent_with_houses_and_hotel():
    ledger = _ledger(s1="alice", s3="alice")
    ledger.state(1).houses = 2
    ledger.state(3).hotels = 1

    assert ledger.rent_due(1, 7) == 30
    assert ledger.rent_due(3, 7) == 450


def test_railroad_rent_by_count():
    ledger = _ledger(s5="alice", s15="alice", s25="alice")

    assert ledger.rent_due(5, 7) == 100
    assert ledger.rent_due(5, 7, multiplier=2) == 200


def test_utility_rent():
    """
    Rule: 'If one Utility is owned, rent is 4 times amount shown on dice.
    If both Utilities are owned rent is 10 times amount shown on dice.'
    """
    one = _ledger(s12="alice")
    both = _ledger(s12="alice", s28="alice")

    assert one.rent_due(12, 7) == 28
    assert both.rent_due(12, 7) == 70
    assert one.rent_due(12, 7, multiplier=10) == 70


def test_no_rent_when_unowned_or_mortgaged():
    ledger = _ledger(s6="alice")
    ledger.state(6).mortgaged = True

    assert ledger.rent_due(8, 7) == 0
    assert ledger.rent_due(6, 7) == 0
    assert ledger.rent_due(0, 7) == 0


def test_rent_charged_on_landing(engine, dice, basic_game):
    basic_game.properties[5].owner = "bob"
    dice.queue((2, 3))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    assert state.find_player("alice").cash == 1475
    assert state.find_player("bob").cash == 1525
    assert state.phase == GamePhase.ROLLING


def test_no_rent_on_own_property(engine, dice, basic_game):
    basic_game.properties[5].owner = "alice"
    dice.queue((2, 3))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    assert state.find_player("alice").cash == 1500


def test_no_rent_on_mortgaged_property(engine, dice, basic_game):
    basic_game.properties[15].owner = "bob"
    basic_game.properties[15].mortgaged = True
    basic_game.players[0].position = 10
    dice.queue((2, 3))

    state = act(engine, basic_game, "ROLL_DICE", "alice")

    assert state.find_player("alice").position == 15
    assert state.find_player("alice").cash == 1500
    assert state.find_player("bob").cash == 1500


def test_manual_rent_must_be_paid(make_engine, dice, two_players):
    """With automatic rent off, rent is left pending until PAY_RENT."""
    engine = make_engine(auto_pay_rent=False)
    state = engine.new_game("g1", two_players)
    state.properties[5].owner = "bob"
    dice.queue((2, 3))

    state = act(engine, state, "ROLL_DICE", "alice")
    assert state.pending_rent is not None
    assert state.find_player("alice").cash == 1500
    with pytest.raises(RuleViolation):
        act(engine, state, "END_TURN", "alice")

    state = act(engine, state, "PAY_RENT", "alice")
    assert state.pending_rent is None
    assert state.find_player("alice").cash == 1475
    assert state.find_player("bob").cash == 1525
