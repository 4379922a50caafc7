"""
Auction system for properties.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from monopoly_core.exceptions import RuleViolation


@dataclass
class Auction:
    """
    An auction for a declined property.

    Players bid until all but one have passed. Bidders are kept in
    player order so the state serializes deterministically.
    """

    space_id: int
    bidders: List[str] = field(default_factory=list)
    current_bid: int = 0
    high_bidder: Optional[str] = None

    def place_bid(self, player_id: str, amount: int, cash: int) -> None:
        """Place a bid for a player. Raises RuleViolation if invalid."""
        if self.is_complete:
            raise RuleViolation("Auction is already complete")
        if player_id not in self.bidders:
            raise RuleViolation(f"Player {player_id} is not bidding in this auction")
        if amount <= self.current_bid:
            raise RuleViolation(f"Bid must exceed the current bid of {self.current_bid}")
        if amount > cash:
            raise RuleViolation(f"Bid of {amount} exceeds available cash {cash}")

        self.current_bid = amount
        self.high_bidder = player_id

    def pass_turn(self, player_id: str) -> None:
        """Player drops out of the bidding."""
        if player_id not in self.bidders:
            raise RuleViolation(f"Player {player_id} is not bidding in this auction")
        if player_id == self.high_bidder:
            raise RuleViolation("The high bidder cannot pass")
        self.bidders.remove(player_id)

    def drop_bidder(self, player_id: str) -> None:
        """Remove a player who left the game; a standing high bid is voided."""
        if player_id in self.bidders:
            self.bidders.remove(player_id)
        if self.high_bidder == player_id:
            self.high_bidder = None
            self.current_bid = 0

    @property
    def is_complete(self) -> bool:
        """Complete once only one bidder remains, or none."""
        if not self.bidders:
            return True
        return len(self.bidders) == 1 and self.high_bidder in self.bidders

    @property
    def winner(self) -> Optional[str]:
        """Winning player id, or None if incomplete or nobody bid."""
        if not self.is_complete:
            return None
        return self.high_bidder

    def clone(self) -> "Auction":
        return Auction(self.space_id, list(self.bidders), self.current_bid, self.high_bidder)
