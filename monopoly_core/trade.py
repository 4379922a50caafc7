"""
Trade offers between two players.

Only bookkeeping lives here: an offer is staged, then accepted or
rejected. Validation against the live game happens in the engine when
the offer is made and again when it is accepted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class TradeOffer:
    """Items one side of a trade gives up."""

    cash: int = 0
    properties: List[int] = field(default_factory=list)
    jail_cards: int = 0

    def is_empty(self) -> bool:
        """Check if offer contains anything."""
        return self.cash == 0 and not self.properties and self.jail_cards == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeOffer":
        return cls(
            cash=int(data.get("cash", 0)),
            properties=[int(p) for p in data.get("properties", [])],
            jail_cards=int(data.get("jail_cards", data.get("jailCards", 0))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"cash": self.cash, "properties": list(self.properties), "jail_cards": self.jail_cards}

    def clone(self) -> "TradeOffer":
        return TradeOffer(self.cash, list(self.properties), self.jail_cards)

    def __repr__(self) -> str:
        items = []
        if self.cash > 0:
            items.append(f"${self.cash}")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        if self.jail_cards > 0:
            items.append(f"{self.jail_cards} GOOJF cards")
        return " + ".join(items) if items else "nothing"


@dataclass
class Trade:
    """
    A staged trade between two players.

    Trade flow:
    1. Proposer stages the trade with their offer and request
    2. Recipient accepts or rejects (the proposer may withdraw by rejecting)
    3. If accepted, items are transferred atomically
    """

    trade_id: int
    proposer_id: str
    recipient_id: str
    proposer_offer: TradeOffer = field(default_factory=TradeOffer)
    recipient_offer: TradeOffer = field(default_factory=TradeOffer)

    def involves(self, player_id: str) -> bool:
        return player_id in (self.proposer_id, self.recipient_id)

    def clone(self) -> "Trade":
        return Trade(
            self.trade_id,
            self.proposer_id,
            self.recipient_id,
            self.proposer_offer.clone(),
            self.recipient_offer.clone(),
        )
