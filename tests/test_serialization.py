"""
Tests for game state cloning and the stored document form.
"""

import json

import pytest

from monopoly_core.exceptions import StorageError
from monopoly_core.serialization import state_from_document, state_to_document
from monopoly_core.state import GamePhase

from conftest import act


def test_clone_shares_no_mutable_state(basic_game):
    copy = basic_game.clone()

    copy.players[0].cash = 1
    copy.players[0].jail_cards.append("cc4")
    copy.properties[1].owner = "bob"
    copy.chance.order.pop()
    copy.spectators.append("eve")

    assert basic_game.players[0].cash == 1500
    assert basic_game.players[0].jail_cards == []
    assert basic_game.properties[1].owner is None
    assert len(basic_game.chance) == 16
    assert basic_game.spectators == []


def test_document_is_plain_json(basic_game):
    document = state_to_document(basic_game)

    assert json.loads(json.dumps(document)) == document
    assert document["id"] == "g1"
    assert document["phase"] == "waiting"
    assert document["current_player_id"] == "alice"
    assert len(document["decks"]["chance"]) == 16


def test_document_restores_mid_game_state(make_engine, dice, two_players):
    """A stored game resumes exactly, including an open auction and deck order."""
    engine = make_engine(auction_enabled=True)
    state = engine.new_game("g1", two_players)
    state.players[1].jail_cards = ["ch7"]
    state.chance.order.remove("ch7")
    state.spectators.append("eve")
    dice.queue((2, 3))
    state = act(engine, state, "ROLL_DICE", "alice")
    state = act(engine, state, "DECLINE_PURCHASE", "alice")
    state = act(engine, state, "AUCTION_BID", "bob", amount=30)

    restored = state_from_document(json.loads(json.dumps(state_to_document(state))))

    assert restored == state
    assert restored.phase == GamePhase.AUCTION
    assert restored.auction.high_bidder == "bob"


def test_document_restores_pending_trade(engine, basic_game):
    basic_game.properties[6].owner = "bob"
    state = act(engine, basic_game, "TRADE_OFFER", "alice", recipientId="bob", offer={"cash": 5}, request={"properties": [6]})

    restored = state_from_document(state_to_document(state))

    assert restored == state
    assert restored.pending_trade.recipient_offer.properties == [6]


def test_malformed_document_raises_storage_error(basic_game):
    document = state_to_document(basic_game)
    del document["players"]

    with pytest.raises(StorageError):
        state_from_document(document)
    with pytest.raises(StorageError):
        state_from_document({"format": 99})
    with pytest.raises(StorageError):
        state_from_document("not a document")
