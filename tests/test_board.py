"""
Tests for the board layout and space lookups.
"""

import pytest

from monopoly_core import GameConfig, TurnEngine
from monopoly_core.board import Board, standard_spaces
from monopoly_core.exceptions import NotFoundError
from monopoly_core.spaces import SpaceKind, SpecialRole


def test_standard_board_layout():
    board = Board()

    assert board.size == 40
    assert board.space_at(0).role == SpecialRole.GO
    assert board.space_at(10).role == SpecialRole.JAIL
    assert board.space_at(30).role == SpecialRole.GO_TO_JAIL
    assert board.space_at(39).name == "Boardwalk"
    assert [s.space_id for s in board.spaces_of_kind(SpaceKind.RAILROAD)] == [5, 15, 25, 35]
    assert [s.space_id for s in board.spaces_of_kind(SpaceKind.UTILITY)] == [12, 28]
    assert [s.space_id for s in board.spaces_with_role(SpecialRole.CHANCE)] == [7, 22, 36]


def test_space_lookup_out_of_range():
    board = Board()

    with pytest.raises(NotFoundError):
        board.space_at(40)
    with pytest.raises(NotFoundError):
        board.space_at(-1)


def test_color_groups():
    board = Board()

    assert board.color_group("brown") == (1, 3)
    assert board.color_group("light_blue") == (6, 8, 9)
    assert board.color_group("dark_blue") == (37, 39)
    assert board.color_group("purple") == ()
    assert len(board.color_groups) == 8


def test_mortgage_value_is_half_price():
    board = Board()

    for space in board.spaces:
        if space.is_ownable:
            assert space.mortgage_value == space.price // 2


def test_nearest_of_kind_ahead():
    """Nearest railroad or utility is found strictly ahead, wrapping past GO."""
    board = Board()

    assert board.nearest_of_kind_ahead(7, SpaceKind.RAILROAD).space_id == 15
    assert board.nearest_of_kind_ahead(35, SpaceKind.RAILROAD).space_id == 5
    assert board.nearest_of_kind_ahead(36, SpaceKind.RAILROAD).space_id == 5
    assert board.nearest_of_kind_ahead(22, SpaceKind.UTILITY).space_id == 28
    assert board.nearest_of_kind_ahead(36, SpaceKind.UTILITY).space_id == 12


def test_custom_board_must_be_indexed_by_id():
    spaces = standard_spaces()
    spaces[3], spaces[4] = spaces[4], spaces[3]

    with pytest.raises(ValueError):
        Board(spaces)


def test_engine_rejects_jail_position_off_the_jail():
    with pytest.raises(ValueError):
        TurnEngine(GameConfig(jail_position=5))

    assert TurnEngine(GameConfig(jail_position=10)).config.jail_position == 10
