"""
Tests for building houses and hotels, and for selling them back.
"""

import pytest

from monopoly_core.board import Board
from monopoly_core.exceptions import RuleViolation
from monopoly_core.properties import PropertyLedger
from monopoly_core.state import PropertyState

from conftest import act


def _light_blue_ledger(houses=(0, 0, 0)):
    board = Board()
    properties = [PropertyState(space.space_id) for space in board.spaces]
    for space_id, count in zip((6, 8, 9), houses):
        properties[space_id].owner = "alice"
        properties[space_id].houses = count
    return PropertyLedger(board, properties)


def test_build_requires_full_group():
    """
    Rule: 'When you own all the Sites in a colour-group you may buy Houses'
    """
    ledger = _light_blue_ledger()
    ledger.state(9).owner = "bob"

    assert not ledger.can_build_house(6)
    with pytest.raises(RuleViolation):
        ledger.build_house(6)


def test_even_building_rule():
    """
    Rule: 'you cannot build a second House on any one Site of a
    colour-group until you have built one on every Site of that group'
    """
    ledger = _light_blue_ledger((1, 1, 0))

    with pytest.raises(RuleViolation):
        ledger.build_house(6)

    ledger.build_house(9)
    assert [ledger.state(i).houses for i in (6, 8, 9)] == [1, 1, 1]
    ledger.build_house(6)
    assert ledger.state(6).houses == 2


def test_cannot_build_with_mortgaged_member():
    ledger = _light_blue_ledger()
    ledger.state(8).mortgaged = True

    with pytest.raises(RuleViolation):
        ledger.build_house(6)


def test_cannot_build_on_railroad():
    ledger = _light_blue_ledger()
    ledger.state(5).owner = "alice"

    with pytest.raises(RuleViolation):
        ledger.build_house(5)


def test_hotel_needs_four_houses_everywhere():
    ledger = _light_blue_ledger((4, 4, 3))

    with pytest.raises(RuleViolation):
        ledger.build_hotel(6)

    ledger.build_house(9)
    ledger.build_hotel(6)
    assert ledger.state(6).hotels == 1
    assert ledger.state(6).houses == 0


def test_fifth_house_is_refused():
    ledger = _light_blue_ledger((4, 4, 4))

    with pytest.raises(RuleViolation):
        ledger.build_house(6)


def test_even_selling_rule():
    ledger = _light_blue_ledger((2, 2, 1))

    with pytest.raises(RuleViolation):
        ledger.remove_house(9)

    ledger.remove_house(6)
    assert ledger.state(6).houses == 1


def test_selling_hotel_returns_four_houses():
    ledger = _light_blue_ledger((4, 4, 4))
    ledger.build_hotel(8)

    ledger.remove_hotel(8)

    assert ledger.state(8).hotels == 0
    assert ledger.state(8).houses == 4
    with pytest.raises(RuleViolation):
        ledger.remove_hotel(8)


def test_build_and_sell_house_actions(engine, basic_game):
    """Building costs the house price; selling refunds half of it."""
    basic_game.properties[1].owner = "alice"
    basic_game.properties[3].owner = "alice"

    state = act(engine, basic_game, "BUILD_HOUSE", "alice", propertyId=1)
    assert state.properties[1].houses == 1
    assert state.find_player("alice").cash == 1450

    with pytest.raises(RuleViolation):
        act(engine, state, "BUILD_HOUSE", "alice", propertyId=1)

    state = act(engine, state, "SELL_HOUSE", "alice", propertyId=1)
    assert state.properties[1].houses == 0
    assert state.find_player("alice").cash == 1475


def test_build_hotel_action(engine, basic_game):
    basic_game.properties[37].owner = "alice"
    basic_game.properties[39].owner = "alice"
    basic_game.properties[37].houses = 4
    basic_game.properties[39].houses = 4

    state = act(engine, basic_game, "BUILD_HOTEL", "alice", propertyId=39)

    assert state.properties[39].hotels == 1
    assert state.find_player("alice").cash == 1300

    state = act(engine, state, "SELL_HOTEL", "alice", propertyId=39)
    assert state.properties[39].houses == 4
    assert state.find_player("alice").cash == 1400


def test_build_out_of_turn_is_allowed(engine, basic_game):
    basic_game.properties[1].owner = "bob"
    basic_game.properties[3].owner = "bob"

    state = act(engine, basic_game, "BUILD_HOUSE", "bob", propertyId=3)

    assert state.properties[3].houses == 1


def test_cannot_build_on_someone_elses_property(engine, basic_game):
    basic_game.properties[1].owner = "bob"
    basic_game.properties[3].owner = "bob"

    with pytest.raises(RuleViolation):
        act(engine, basic_game, "BUILD_HOUSE", "alice", propertyId=1)
