"""
Game state data model.

GameState is the single unit of persistence and broadcast. The engine
never mutates a state it was handed: it clones it, applies one action to
the clone and returns the clone.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from monopoly_core.auction import Auction
from monopoly_core.cards import Deck
from monopoly_core.trade import Trade


class GamePhase(Enum):
    """Turn phases of the engine state machine."""

    WAITING = "waiting"
    ROLLING = "rolling"
    MOVING = "moving"
    BUYING = "buying"
    TRADING = "trading"
    AUCTION = "auction"
    ENDED = "ended"


@dataclass(frozen=True)
class NewPlayer:
    """A player joining a game."""

    player_id: str
    name: str
    color: Optional[str] = None
    avatar: Optional[str] = None


@dataclass
class PlayerState:
    """Mutable state for a player during the game."""

    player_id: str
    name: str
    cash: int
    color: Optional[str] = None
    avatar: Optional[str] = None
    position: int = 0
    in_jail: bool = False
    jail_turns: int = 0
    is_active: bool = True
    # Held Get Out of Jail Free cards, by card id
    jail_cards: List[str] = field(default_factory=list)

    def clone(self) -> "PlayerState":
        return PlayerState(
            player_id=self.player_id,
            name=self.name,
            cash=self.cash,
            color=self.color,
            avatar=self.avatar,
            position=self.position,
            in_jail=self.in_jail,
            jail_turns=self.jail_turns,
            is_active=self.is_active,
            jail_cards=list(self.jail_cards),
        )

    def __repr__(self) -> str:
        status = "BANKRUPT" if not self.is_active else f"${self.cash}"
        jail = " [JAIL]" if self.in_jail else ""
        return f"Player({self.player_id}, {self.name}, {status}, pos={self.position}{jail})"


@dataclass
class PropertyState:
    """Ownership and improvement state of one board space."""

    space_id: int
    owner: Optional[str] = None
    mortgaged: bool = False
    houses: int = 0
    hotels: int = 0

    @property
    def has_buildings(self) -> bool:
        return self.houses > 0 or self.hotels > 0

    def clone(self) -> "PropertyState":
        return PropertyState(self.space_id, self.owner, self.mortgaged, self.houses, self.hotels)


@dataclass
class PendingRent:
    """Rent owed for the current landing but not yet settled."""

    space_id: int
    multiplier: Optional[int] = None

    def clone(self) -> "PendingRent":
        return PendingRent(self.space_id, self.multiplier)


@dataclass
class GameState:
    """
    Represents the complete state of a Monopoly game.

    Everything needed to continue a game lives here, including both card
    decks in their current draw order, so a stored state resumes exactly.
    """

    game_id: str
    players: List[PlayerState]
    properties: List[PropertyState]
    community_chest: Deck
    chance: Deck
    current_player_index: int = 0
    phase: GamePhase = GamePhase.WAITING
    dice: Optional[Tuple[int, int]] = None
    last_roll: Optional[int] = None
    doubles_count: int = 0
    free_parking: int = 0
    winner: Optional[str] = None
    spectators: List[str] = field(default_factory=list)

    roll_pending: bool = True
    pending_rent: Optional[PendingRent] = None
    turn_number: int = 0
    version: int = 0
    pending_trade: Optional[Trade] = None
    next_trade_id: int = 1
    resume_phase: Optional[GamePhase] = None
    auction: Optional[Auction] = None

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def active_players(self) -> List[PlayerState]:
        """Get all players still in the game."""
        return [p for p in self.players if p.is_active]

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.ENDED

    def find_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def held_jail_cards(self) -> List[str]:
        """Card ids of every Get Out of Jail Free card held by any player."""
        return [card_id for p in self.players for card_id in p.jail_cards]

    def clone(self) -> "GameState":
        """Structural copy sharing no mutable substructure with the original."""
        return GameState(
            game_id=self.game_id,
            players=[p.clone() for p in self.players],
            properties=[p.clone() for p in self.properties],
            community_chest=self.community_chest.clone(),
            chance=self.chance.clone(),
            current_player_index=self.current_player_index,
            phase=self.phase,
            dice=self.dice,
            last_roll=self.last_roll,
            doubles_count=self.doubles_count,
            free_parking=self.free_parking,
            winner=self.winner,
            spectators=list(self.spectators),
            roll_pending=self.roll_pending,
            pending_rent=self.pending_rent.clone() if self.pending_rent else None,
            turn_number=self.turn_number,
            version=self.version,
            pending_trade=self.pending_trade.clone() if self.pending_trade else None,
            next_trade_id=self.next_trade_id,
            resume_phase=self.resume_phase,
            auction=self.auction.clone() if self.auction else None,
        )
