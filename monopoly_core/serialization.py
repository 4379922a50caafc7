"""
JSON document form of GameState.

A document is self-contained: both decks are stored in draw order, so a
stored game resumes exactly where it stopped. Only built-in JSON types
are used.
"""

from typing import Any, Dict, Optional

from monopoly_core.auction import Auction
from monopoly_core.cards import Deck, DeckKind
from monopoly_core.exceptions import StorageError
from monopoly_core.state import GamePhase, GameState, PendingRent, PlayerState, PropertyState
from monopoly_core.trade import Trade, TradeOffer

DOCUMENT_FORMAT = 1


def _player_to_dict(player: PlayerState) -> Dict[str, Any]:
    return {
        "id": player.player_id,
        "name": player.name,
        "color": player.color,
        "avatar": player.avatar,
        "position": player.position,
        "cash": player.cash,
        "in_jail": player.in_jail,
        "jail_turns": player.jail_turns,
        "is_active": player.is_active,
        "jail_cards": list(player.jail_cards),
    }


def _trade_to_dict(trade: Optional[Trade]) -> Optional[Dict[str, Any]]:
    if trade is None:
        return None
    return {
        "trade_id": trade.trade_id,
        "proposer_id": trade.proposer_id,
        "recipient_id": trade.recipient_id,
        "offer": trade.proposer_offer.to_dict(),
        "request": trade.recipient_offer.to_dict(),
    }


def state_to_document(state: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a JSON-compatible dict."""
    auction = None
    if state.auction is not None:
        auction = {
            "space_id": state.auction.space_id,
            "bidders": list(state.auction.bidders),
            "current_bid": state.auction.current_bid,
            "high_bidder": state.auction.high_bidder,
        }

    pending_rent = None
    if state.pending_rent is not None:
        pending_rent = {"space_id": state.pending_rent.space_id, "multiplier": state.pending_rent.multiplier}

    return {
        "format": DOCUMENT_FORMAT,
        "id": state.game_id,
        "version": state.version,
        "turn_number": state.turn_number,
        "phase": state.phase.value,
        "current_player_index": state.current_player_index,
        "current_player_id": state.current_player.player_id if state.players else None,
        "players": [_player_to_dict(p) for p in state.players],
        "properties": [
            {
                "id": prop.space_id,
                "owner": prop.owner,
                "mortgaged": prop.mortgaged,
                "houses": prop.houses,
                "hotels": prop.hotels,
            }
            for prop in state.properties
        ],
        "dice": list(state.dice) if state.dice is not None else None,
        "last_roll": state.last_roll,
        "doubles_count": state.doubles_count,
        "roll_pending": state.roll_pending,
        "pending_rent": pending_rent,
        "decks": {
            DeckKind.COMMUNITY_CHEST.value: list(state.community_chest.order),
            DeckKind.CHANCE.value: list(state.chance.order),
        },
        "free_parking": state.free_parking,
        "winner": state.winner,
        "spectators": list(state.spectators),
        "pending_trade": _trade_to_dict(state.pending_trade),
        "next_trade_id": state.next_trade_id,
        "resume_phase": state.resume_phase.value if state.resume_phase else None,
        "auction": auction,
    }


def state_from_document(document: Dict[str, Any]) -> GameState:
    """Rebuild a GameState from its document. Raises StorageError if malformed."""
    try:
        if document.get("format") != DOCUMENT_FORMAT:
            raise StorageError(f"Unsupported document format {document.get('format')!r}")

        players = [
            PlayerState(
                player_id=p["id"],
                name=p["name"],
                cash=p["cash"],
                color=p.get("color"),
                avatar=p.get("avatar"),
                position=p["position"],
                in_jail=p["in_jail"],
                jail_turns=p["jail_turns"],
                is_active=p["is_active"],
                jail_cards=list(p.get("jail_cards", [])),
            )
            for p in document["players"]
        ]
        properties = [
            PropertyState(prop["id"], prop.get("owner"), prop["mortgaged"], prop["houses"], prop["hotels"])
            for prop in document["properties"]
        ]

        pending_trade = None
        raw_trade = document.get("pending_trade")
        if raw_trade is not None:
            pending_trade = Trade(
                raw_trade["trade_id"],
                raw_trade["proposer_id"],
                raw_trade["recipient_id"],
                TradeOffer.from_dict(raw_trade["offer"]),
                TradeOffer.from_dict(raw_trade["request"]),
            )

        auction = None
        raw_auction = document.get("auction")
        if raw_auction is not None:
            auction = Auction(
                raw_auction["space_id"],
                list(raw_auction["bidders"]),
                raw_auction["current_bid"],
                raw_auction.get("high_bidder"),
            )

        pending_rent = None
        raw_rent = document.get("pending_rent")
        if raw_rent is not None:
            pending_rent = PendingRent(raw_rent["space_id"], raw_rent.get("multiplier"))

        decks = document["decks"]
        dice = document.get("dice")
        resume_phase = document.get("resume_phase")

        return GameState(
            game_id=document["id"],
            players=players,
            properties=properties,
            community_chest=Deck(DeckKind.COMMUNITY_CHEST, list(decks[DeckKind.COMMUNITY_CHEST.value])),
            chance=Deck(DeckKind.CHANCE, list(decks[DeckKind.CHANCE.value])),
            current_player_index=document["current_player_index"],
            phase=GamePhase(document["phase"]),
            dice=(dice[0], dice[1]) if dice is not None else None,
            last_roll=document.get("last_roll"),
            doubles_count=document["doubles_count"],
            free_parking=document["free_parking"],
            winner=document.get("winner"),
            spectators=list(document.get("spectators", [])),
            roll_pending=document["roll_pending"],
            pending_rent=pending_rent,
            turn_number=document["turn_number"],
            version=document["version"],
            pending_trade=pending_trade,
            next_trade_id=document.get("next_trade_id", 1),
            resume_phase=GamePhase(resume_phase) if resume_phase else None,
            auction=auction,
        )
    except (AttributeError, KeyError, TypeError, ValueError, IndexError) as exc:
        raise StorageError(f"Malformed game document: {exc!r}") from exc
