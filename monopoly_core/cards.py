"""
Chance and Community Chest card system.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Dict, List, Optional, Tuple

from monopoly_core.exceptions import NotFoundError, StateError
from monopoly_core.spaces import SpaceKind


class DeckKind(Enum):
    """The two card decks."""

    COMMUNITY_CHEST = "community"
    CHANCE = "chance"


class CardEffect(Enum):
    """Types of card effects."""

    COLLECT = "collect"
    PAY = "pay"
    COLLECT_FROM_PLAYERS = "collect_from_players"
    PAY_TO_PLAYERS = "pay_to_players"
    MOVE_BACK = "move_back"
    ADVANCE_TO = "advance_to"
    ADVANCE_TO_NEAREST = "advance_to_nearest"
    GO_TO_JAIL = "go_to_jail"
    GET_OUT_OF_JAIL = "get_out_of_jail"
    REPAIRS = "repairs"


@dataclass(frozen=True)
class Card:
    """Represents a Chance or Community Chest card."""

    card_id: str
    deck: DeckKind
    title: str
    effect: CardEffect
    description: str = ""
    amount: int = 0
    position: Optional[int] = None
    target_kind: Optional[SpaceKind] = None
    per_house: int = 0
    per_hotel: int = 0

    def __repr__(self) -> str:
        return f"Card('{self.card_id}', '{self.title}')"


def _cc(card_id: str, title: str, effect: CardEffect, description: str = "", **kwargs) -> Card:
    return Card(card_id, DeckKind.COMMUNITY_CHEST, title, effect, description, **kwargs)


def _ch(card_id: str, title: str, effect: CardEffect, description: str = "", **kwargs) -> Card:
    return Card(card_id, DeckKind.CHANCE, title, effect, description, **kwargs)


COMMUNITY_CHEST_CARDS: Tuple[Card, ...] = (
    _cc("cc1", "Bank error in your favor", CardEffect.COLLECT, "Collect $200", amount=200),
    _cc("cc2", "Doctor's fee", CardEffect.PAY, "Pay $50", amount=50),
    _cc("cc3", "From sale of stock", CardEffect.COLLECT, "You get $50", amount=50),
    _cc(
        "cc4",
        "Get Out of Jail Free",
        CardEffect.GET_OUT_OF_JAIL,
        "This card may be kept until needed or sold",
    ),
    _cc(
        "cc5",
        "Go to Jail",
        CardEffect.GO_TO_JAIL,
        "Go directly to Jail, do not pass Go, do not collect $200",
    ),
    _cc(
        "cc6",
        "Grand Opera Night",
        CardEffect.COLLECT_FROM_PLAYERS,
        "Collect $50 from every player for opening night seats",
        amount=50,
    ),
    _cc("cc7", "Holiday Fund matures", CardEffect.COLLECT, "Collect $100", amount=100),
    _cc("cc8", "Income tax refund", CardEffect.COLLECT, "Collect $20", amount=20),
    _cc(
        "cc9",
        "It's your birthday",
        CardEffect.COLLECT_FROM_PLAYERS,
        "Collect $10 from every player",
        amount=10,
    ),
    _cc("cc10", "Life insurance matures", CardEffect.COLLECT, "Collect $100", amount=100),
    _cc("cc11", "Hospital fees", CardEffect.PAY, "Pay $50", amount=50),
    _cc("cc12", "School fees", CardEffect.PAY, "Pay $50", amount=50),
    _cc("cc13", "Receive consultancy fee", CardEffect.COLLECT, "Collect $25", amount=25),
    _cc(
        "cc14",
        "You are assessed for street repairs",
        CardEffect.REPAIRS,
        "$40 per house, $115 per hotel",
        per_house=40,
        per_hotel=115,
    ),
    _cc(
        "cc15",
        "You have won second prize in a beauty contest",
        CardEffect.COLLECT,
        "Collect $10",
        amount=10,
    ),
    _cc("cc16", "You inherit", CardEffect.COLLECT, "Collect $100", amount=100),
)

CHANCE_CARDS: Tuple[Card, ...] = (
    _ch("ch1", "Advance to Go", CardEffect.ADVANCE_TO, "Collect $200", position=0),
    _ch(
        "ch2",
        "Advance to Illinois Avenue",
        CardEffect.ADVANCE_TO,
        "If you pass Go, collect $200",
        position=24,
    ),
    _ch(
        "ch3",
        "Advance to St. Charles Place",
        CardEffect.ADVANCE_TO,
        "If you pass Go, collect $200",
        position=11,
    ),
    _ch(
        "ch4",
        "Advance to nearest Utility",
        CardEffect.ADVANCE_TO_NEAREST,
        "If unowned, you may buy it from the Bank. If owned, pay owner ten times the dice roll.",
        target_kind=SpaceKind.UTILITY,
    ),
    _ch(
        "ch5",
        "Advance to nearest Railroad",
        CardEffect.ADVANCE_TO_NEAREST,
        "If unowned, you may buy it from the Bank. "
        "If owned, pay owner twice the rental to which they are otherwise entitled.",
        target_kind=SpaceKind.RAILROAD,
    ),
    _ch("ch6", "Bank pays you dividend", CardEffect.COLLECT, "Collect $50", amount=50),
    _ch(
        "ch7",
        "Get Out of Jail Free",
        CardEffect.GET_OUT_OF_JAIL,
        "This card may be kept until needed or sold",
    ),
    _ch("ch8", "Go back 3 spaces", CardEffect.MOVE_BACK, amount=3),
    _ch(
        "ch9",
        "Go to Jail",
        CardEffect.GO_TO_JAIL,
        "Go directly to Jail, do not pass Go, do not collect $200",
    ),
    _ch(
        "ch10",
        "Make general repairs on all your property",
        CardEffect.REPAIRS,
        "$25 per house, $100 per hotel",
        per_house=25,
        per_hotel=100,
    ),
    _ch("ch11", "Speeding fine", CardEffect.PAY, "Pay $15", amount=15),
    _ch(
        "ch12",
        "Take a trip to Reading Railroad",
        CardEffect.ADVANCE_TO,
        "If you pass Go, collect $200",
        position=5,
    ),
    _ch("ch13", "Take a walk on the Boardwalk", CardEffect.ADVANCE_TO, position=39),
    _ch(
        "ch14",
        "You have been elected Chairman of the Board",
        CardEffect.PAY_TO_PLAYERS,
        "Pay each player $50",
        amount=50,
    ),
    _ch("ch15", "Your building loan matures", CardEffect.COLLECT, "Collect $150", amount=150),
    _ch(
        "ch16",
        "You have won a crossword competition",
        CardEffect.COLLECT,
        "Collect $100",
        amount=100,
    ),
)

CARDS: Dict[str, Card] = {card.card_id: card for card in COMMUNITY_CHEST_CARDS + CHANCE_CARDS}


def get_card(card_id: str) -> Card:
    """Look up a card definition by id."""
    try:
        return CARDS[card_id]
    except KeyError:
        raise NotFoundError(f"Unknown card {card_id!r}") from None


def deck_card_ids(kind: DeckKind) -> List[str]:
    """All card ids belonging to a deck, in printed order."""
    cards = COMMUNITY_CHEST_CARDS if kind == DeckKind.COMMUNITY_CHEST else CHANCE_CARDS
    return [card.card_id for card in cards]


@dataclass
class Deck:
    """
    A deck of cards in current draw order.

    Only card ids are stored so the deck serializes as part of the game
    state. Drawn cards are not kept in a discard pile: once the deck runs
    out it is refilled from its full card set, minus any Get Out of Jail
    Free card a player is still holding.
    """

    kind: DeckKind
    order: List[str] = field(default_factory=list)

    @classmethod
    def new(cls, kind: DeckKind, rng: random.Random) -> "Deck":
        deck = cls(kind, deck_card_ids(kind))
        deck.shuffle(rng)
        return deck

    def shuffle(self, rng: random.Random) -> None:
        """Shuffle the deck in place."""
        rng.shuffle(self.order)

    def draw(self, rng: random.Random, held: Collection[str] = ()) -> Card:
        """
        Draw the front card.

        If the deck becomes empty it is reshuffled straight away. ``held``
        names the card ids players are still holding; those stay out.
        """
        if not self.order:
            raise StateError(f"{self.kind.value} deck is empty")

        card = get_card(self.order.pop(0))

        if not self.order:
            excluded = set(held)
            if card.effect == CardEffect.GET_OUT_OF_JAIL:
                excluded.add(card.card_id)
            self.order = [cid for cid in deck_card_ids(self.kind) if cid not in excluded]
            self.shuffle(rng)

        return card

    def clone(self) -> "Deck":
        return Deck(self.kind, list(self.order))

    def __len__(self) -> int:
        return len(self.order)
