"""
Turn engine: the Monopoly rule state machine.

``TurnEngine.apply`` takes a GameState and one Action and returns the next
GameState together with the events that happened. The input state is
never modified; a rejected action raises and leaves it as it was.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from monopoly_core.auction import Auction
from monopoly_core.board import Board
from monopoly_core.cards import Card, CardEffect, Deck, DeckKind
from monopoly_core.config import GameConfig
from monopoly_core.dice import Dice
from monopoly_core.events import EventLog, EventType, GameEvent
from monopoly_core.exceptions import MonopolyError, NotFoundError, RuleViolation, StateError, ValidationError
from monopoly_core.players import PlayerLedger
from monopoly_core.properties import PropertyLedger
from monopoly_core.spaces import Space, SpaceKind, SpecialRole
from monopoly_core.state import GamePhase, GameState, NewPlayer, PendingRent, PlayerState, PropertyState
from monopoly_core.trade import Trade, TradeOffer

logger = logging.getLogger(__name__)

# Rent multipliers applied after an "advance to nearest" card
NEAREST_RAILROAD_MULTIPLIER = 2
NEAREST_UTILITY_MULTIPLIER = 10


class ActionType(Enum):
    """Types of actions a player can take."""

    ROLL_DICE = "ROLL_DICE"
    BUY_PROPERTY = "BUY_PROPERTY"
    DECLINE_PURCHASE = "DECLINE_PURCHASE"
    AUCTION_BID = "AUCTION_BID"
    AUCTION_PASS = "AUCTION_PASS"
    PAY_RENT = "PAY_RENT"
    MORTGAGE_PROPERTY = "MORTGAGE_PROPERTY"
    UNMORTGAGE_PROPERTY = "UNMORTGAGE_PROPERTY"
    BUILD_HOUSE = "BUILD_HOUSE"
    BUILD_HOTEL = "BUILD_HOTEL"
    SELL_HOUSE = "SELL_HOUSE"
    SELL_HOTEL = "SELL_HOTEL"
    USE_GET_OUT_OF_JAIL_CARD = "USE_GET_OUT_OF_JAIL_CARD"
    PAY_JAIL_FEE = "PAY_JAIL_FEE"
    TRADE_OFFER = "TRADE_OFFER"
    TRADE_ACCEPT = "TRADE_ACCEPT"
    TRADE_REJECT = "TRADE_REJECT"
    DECLARE_BANKRUPTCY = "DECLARE_BANKRUPTCY"
    END_TURN = "END_TURN"


# Actions any active player may send, not only the one whose turn it is
OUT_OF_TURN_ACTIONS = frozenset(
    {
        ActionType.AUCTION_BID,
        ActionType.AUCTION_PASS,
        ActionType.TRADE_ACCEPT,
        ActionType.TRADE_REJECT,
        ActionType.MORTGAGE_PROPERTY,
        ActionType.UNMORTGAGE_PROPERTY,
        ActionType.BUILD_HOUSE,
        ActionType.BUILD_HOTEL,
        ActionType.SELL_HOUSE,
        ActionType.SELL_HOTEL,
    }
)

_MANAGEMENT_PHASES = frozenset({GamePhase.WAITING, GamePhase.ROLLING, GamePhase.BUYING})

ALLOWED_PHASES: Dict[ActionType, frozenset] = {
    ActionType.ROLL_DICE: frozenset({GamePhase.WAITING, GamePhase.ROLLING}),
    ActionType.BUY_PROPERTY: frozenset({GamePhase.BUYING}),
    ActionType.DECLINE_PURCHASE: frozenset({GamePhase.BUYING}),
    ActionType.AUCTION_BID: frozenset({GamePhase.AUCTION}),
    ActionType.AUCTION_PASS: frozenset({GamePhase.AUCTION}),
    ActionType.PAY_RENT: frozenset({GamePhase.ROLLING}),
    ActionType.MORTGAGE_PROPERTY: _MANAGEMENT_PHASES,
    ActionType.UNMORTGAGE_PROPERTY: _MANAGEMENT_PHASES,
    ActionType.BUILD_HOUSE: _MANAGEMENT_PHASES,
    ActionType.BUILD_HOTEL: _MANAGEMENT_PHASES,
    ActionType.SELL_HOUSE: _MANAGEMENT_PHASES,
    ActionType.SELL_HOTEL: _MANAGEMENT_PHASES,
    ActionType.USE_GET_OUT_OF_JAIL_CARD: frozenset({GamePhase.WAITING, GamePhase.ROLLING}),
    ActionType.PAY_JAIL_FEE: frozenset({GamePhase.WAITING, GamePhase.ROLLING}),
    ActionType.TRADE_OFFER: _MANAGEMENT_PHASES,
    ActionType.TRADE_ACCEPT: frozenset({GamePhase.TRADING}),
    ActionType.TRADE_REJECT: frozenset({GamePhase.TRADING}),
    ActionType.DECLARE_BANKRUPTCY: frozenset(
        {GamePhase.WAITING, GamePhase.ROLLING, GamePhase.BUYING, GamePhase.TRADING, GamePhase.AUCTION}
    ),
    ActionType.END_TURN: frozenset({GamePhase.ROLLING}),
}


@dataclass
class Action:
    """A single request from a player: ``{type, playerId, data, timestamp}``."""

    type: ActionType
    player_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "Action":
        """Parse a wire action. Raises ValidationError for a malformed shape."""
        if not isinstance(payload, Mapping):
            raise ValidationError("Action must be an object")

        raw_type = payload.get("type")
        try:
            action_type = ActionType(raw_type)
        except ValueError:
            raise ValidationError(f"Unknown action type {raw_type!r}") from None

        player_id = payload.get("playerId", payload.get("player_id"))
        if not isinstance(player_id, str) or not player_id:
            raise ValidationError("Action requires a playerId")

        data = payload.get("data") or {}
        if not isinstance(data, Mapping):
            raise ValidationError("Action data must be an object")

        timestamp = payload.get("timestamp")
        if timestamp is not None and (isinstance(timestamp, bool) or not isinstance(timestamp, (int, float))):
            raise ValidationError("Action timestamp must be a number")

        return cls(action_type, player_id, dict(data), timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "playerId": self.player_id,
            "data": dict(self.data),
            "timestamp": self.timestamp,
        }


@dataclass
class TransitionResult:
    """The state after an accepted action and what happened on the way."""

    state: GameState
    events: List[GameEvent]


class _Transition:
    """Working set for one action: the cloned state plus its ledgers."""

    def __init__(self, engine: "TurnEngine", state: GameState):
        self.state = state
        self.events = EventLog()
        self.properties = PropertyLedger(engine.board, state.properties)
        self.players = PlayerLedger(engine.board, state, engine.config.jail_position)


def _int_field(data: Mapping[str, Any], *keys: str) -> int:
    for key in keys:
        value = data.get(key)
        if value is not None:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{key} must be an integer")
            return value
    raise ValidationError(f"Action data requires {keys[0]}")


class TurnEngine:
    """
    Applies actions to game states.

    The engine is stateless between calls apart from its random source,
    so one instance serves every game in the process.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        board: Optional[Board] = None,
        rng: Optional[random.Random] = None,
        dice: Optional[Dice] = None,
    ):
        self.config = config or GameConfig()
        self.board = board or Board()
        if self.board.size != self.config.board_size:
            raise ValueError(f"Board has {self.board.size} spaces, config expects {self.config.board_size}")
        jail = self.board.space_at(self.config.jail_position)
        if jail.role != SpecialRole.JAIL:
            raise ValueError(f"Space {jail.space_id} ({jail.name}) is not the jail")
        self.rng = rng or random.Random()
        self.dice = dice or Dice(self.rng)

        self._handlers: Dict[ActionType, Callable[[_Transition, PlayerState, Action], None]] = {
            ActionType.ROLL_DICE: self._roll_dice,
            ActionType.BUY_PROPERTY: self._buy_property,
            ActionType.DECLINE_PURCHASE: self._decline_purchase,
            ActionType.AUCTION_BID: self._auction_bid,
            ActionType.AUCTION_PASS: self._auction_pass,
            ActionType.PAY_RENT: self._pay_rent,
            ActionType.MORTGAGE_PROPERTY: self._mortgage,
            ActionType.UNMORTGAGE_PROPERTY: self._unmortgage,
            ActionType.BUILD_HOUSE: self._build_house,
            ActionType.BUILD_HOTEL: self._build_hotel,
            ActionType.SELL_HOUSE: self._sell_house,
            ActionType.SELL_HOTEL: self._sell_hotel,
            ActionType.USE_GET_OUT_OF_JAIL_CARD: self._use_jail_card,
            ActionType.PAY_JAIL_FEE: self._pay_jail_fee,
            ActionType.TRADE_OFFER: self._trade_offer,
            ActionType.TRADE_ACCEPT: self._trade_accept,
            ActionType.TRADE_REJECT: self._trade_reject,
            ActionType.DECLARE_BANKRUPTCY: self._declare_bankruptcy,
            ActionType.END_TURN: self._end_turn,
        }

    # === GAME SETUP ===

    def _new_player_state(self, player: NewPlayer) -> PlayerState:
        return PlayerState(
            player_id=player.player_id,
            name=player.name,
            cash=self.config.starting_cash,
            color=player.color,
            avatar=player.avatar,
        )

    def new_game(self, game_id: str, players: Sequence[NewPlayer]) -> GameState:
        """
        Create a new game with the configured starting cash for each player.

        Games may start short of players; more can join until the first roll.
        """
        if not players:
            raise ValidationError("Game requires at least 1 player")
        if len(players) > self.config.max_players:
            raise ValidationError(f"Game allows at most {self.config.max_players} players")
        ids = [p.player_id for p in players]
        if len(set(ids)) != len(ids):
            raise ValidationError("Player ids must be unique")

        state = GameState(
            game_id=game_id,
            players=[self._new_player_state(p) for p in players],
            properties=[PropertyState(space.space_id) for space in self.board.spaces],
            community_chest=Deck.new(DeckKind.COMMUNITY_CHEST, self.rng),
            chance=Deck.new(DeckKind.CHANCE, self.rng),
            free_parking=self.config.free_parking_starting_amount if self.config.free_parking_pool else 0,
            turn_number=1,
        )
        logger.debug(f"Created game {game_id} with players {ids}")
        return state

    def add_player(self, state: GameState, player: NewPlayer) -> GameState:
        """Seat another player. Only allowed before the first roll."""
        if state.phase != GamePhase.WAITING:
            raise RuleViolation("Players can only join before the first roll")
        if len(state.players) >= self.config.max_players:
            raise RuleViolation(f"Game is full ({self.config.max_players} players)")
        if state.find_player(player.player_id) is not None:
            raise RuleViolation(f"Player {player.player_id} already joined")

        new_state = state.clone()
        new_state.players.append(self._new_player_state(player))
        new_state.version += 1
        return new_state

    def add_spectator(self, state: GameState, spectator_id: str) -> GameState:
        new_state = state.clone()
        if spectator_id not in new_state.spectators:
            new_state.spectators.append(spectator_id)
        new_state.version += 1
        return new_state

    def remove_spectator(self, state: GameState, spectator_id: str) -> GameState:
        if spectator_id not in state.spectators:
            raise NotFoundError(f"Spectator {spectator_id!r} is not watching game {state.game_id}")
        new_state = state.clone()
        new_state.spectators.remove(spectator_id)
        new_state.version += 1
        return new_state

    # === ACTION DISPATCH ===

    def apply(self, state: GameState, action: Action) -> TransitionResult:
        """
        Apply one action and return the next state.

        Raises RuleViolation, ValidationError, NotFoundError or StateError;
        ``state`` itself is never modified.
        """
        try:
            transition = _Transition(self, state.clone())
            actor = self._check_actor(transition.state, action)
            self._handlers[action.type](transition, actor, action)
        except MonopolyError as exc:
            logger.info(f"Rejected {action.type.value} from {action.player_id} in game {state.game_id}: {exc}")
            raise

        new_state = transition.state
        self._check_invariants(new_state)
        new_state.version += 1
        logger.debug(
            f"Game {state.game_id}: {action.type.value} by {action.player_id} accepted "
            f"(version {new_state.version}, phase {new_state.phase.value})"
        )
        return TransitionResult(new_state, transition.events.get_events())

    def _check_actor(self, state: GameState, action: Action) -> PlayerState:
        if state.phase == GamePhase.ENDED:
            raise RuleViolation("Game is over")

        actor = state.find_player(action.player_id)
        if actor is None:
            raise NotFoundError(f"No player {action.player_id!r} in game {state.game_id}")
        if not actor.is_active:
            raise RuleViolation(f"Player {actor.player_id} is bankrupt")

        if state.phase not in ALLOWED_PHASES[action.type]:
            raise RuleViolation(f"{action.type.value} is not allowed during {state.phase.value}")
        if action.type not in OUT_OF_TURN_ACTIONS and state.current_player.player_id != actor.player_id:
            raise RuleViolation(f"It is not {actor.player_id}'s turn")
        return actor

    def _check_invariants(self, state: GameState) -> None:
        for player in state.active_players:
            if player.cash < 0:
                raise StateError(f"Player {player.player_id} left with negative cash {player.cash}")
        for prop in state.properties:
            if prop.houses > 0 and prop.hotels > 0:
                raise StateError(f"Space {prop.space_id} holds houses and a hotel")
            if prop.has_buildings and (prop.owner is None or prop.mortgaged):
                raise StateError(f"Space {prop.space_id} has buildings but is unowned or mortgaged")

    # === DICE AND MOVEMENT ===

    def _roll_dice(self, t: _Transition, player: PlayerState, action: Action) -> None:
        """
        Roll and move.
        Rule: 'If you throw doubles three times in succession, move your
        token immediately to the space marked In Jail.'
        """
        state = t.state
        if not state.roll_pending:
            raise RuleViolation("Dice already rolled this turn")
        if state.pending_rent is not None:
            raise RuleViolation("Rent must be paid before rolling")
        if state.phase == GamePhase.WAITING and len(state.active_players) < self.config.min_players:
            raise RuleViolation(f"Need at least {self.config.min_players} players to start")

        die1, die2 = self.dice.roll()
        total = die1 + die2
        is_doubles = die1 == die2
        state.dice = (die1, die2)
        state.last_roll = total
        state.phase = GamePhase.MOVING
        t.events.log(EventType.DICE_ROLL, player.player_id, die1=die1, die2=die2, total=total, doubles=is_doubles)

        if player.in_jail:
            state.roll_pending = False
            state.doubles_count = 0
            if is_doubles:
                t.players.release_from_jail(player.player_id)
                t.events.log(EventType.JAIL_RELEASE, player.player_id, method="doubles")
            else:
                player.jail_turns += 1
                t.events.log(EventType.JAIL_ATTEMPT, player.player_id, attempt=player.jail_turns)
                if player.jail_turns < self.config.max_jail_turns:
                    self._advance_turn(t)
                    return
                # Rule: 'After you have waited three turns, you must move out of Jail and pay'
                if not self._charge(t, player, self.config.jail_fee, creditor_id=None, to_pool=True):
                    return
                t.players.release_from_jail(player.player_id)
                t.events.log(EventType.JAIL_RELEASE, player.player_id, method="forced_fee", amount=self.config.jail_fee)
        elif is_doubles:
            state.doubles_count += 1
            if state.doubles_count >= self.config.max_consecutive_doubles:
                state.doubles_count = 0
                state.roll_pending = False
                self._jail(t, player)
                return
            state.roll_pending = True
        else:
            state.doubles_count = 0
            state.roll_pending = False

        self._move_by(t, player, total)
        if state.phase == GamePhase.MOVING:
            state.phase = GamePhase.ROLLING

    def _move_by(self, t: _Transition, player: PlayerState, steps: int) -> None:
        """Move forward, collecting GO salary on a wrap, then resolve the landing."""
        old_position = player.position
        new_position = (old_position + steps) % self.board.size
        if new_position < old_position:
            self._collect_go(t, player)
        player.position = new_position
        t.events.log(EventType.MOVE, player.player_id, **{"from": old_position, "to": new_position, "spaces": steps})
        self._resolve_landing(t, player)

    def _move_to(self, t: _Transition, player: PlayerState, position: int, rent_multiplier: Optional[int] = None) -> None:
        """Move directly to a space, collecting GO salary if it lies behind."""
        old_position = player.position
        if position < old_position:
            self._collect_go(t, player)
        player.position = position
        t.events.log(EventType.MOVE, player.player_id, **{"from": old_position, "to": position, "direct": True})
        self._resolve_landing(t, player, rent_multiplier)

    def _move_back(self, t: _Transition, player: PlayerState, steps: int) -> None:
        old_position = player.position
        player.position = (old_position - steps) % self.board.size
        t.events.log(EventType.MOVE, player.player_id, **{"from": old_position, "to": player.position, "spaces": -steps})
        self._resolve_landing(t, player)

    def _collect_go(self, t: _Transition, player: PlayerState) -> None:
        player.cash += self.config.go_salary
        t.events.log(EventType.PASS_GO, player.player_id, amount=self.config.go_salary, new_balance=player.cash)

    def _jail(self, t: _Transition, player: PlayerState) -> None:
        """Send to jail and end the turn."""
        t.players.send_to_jail(player.player_id)
        t.events.log(EventType.GO_TO_JAIL, player.player_id)
        self._advance_turn(t)

    # === LANDING ===

    def _resolve_landing(self, t: _Transition, player: PlayerState, rent_multiplier: Optional[int] = None) -> None:
        state = t.state
        space = self.board.space_at(player.position)
        t.events.log(EventType.LAND, player.player_id, space_id=space.space_id, space=space.name)

        if space.is_ownable:
            prop = state.properties[space.space_id]
            if prop.owner is None:
                state.phase = GamePhase.BUYING
                return
            if prop.owner == player.player_id or prop.mortgaged:
                return
            if self.config.auto_pay_rent:
                self._collect_rent(t, player, space.space_id, rent_multiplier)
            else:
                state.pending_rent = PendingRent(space.space_id, rent_multiplier)
            return

        if space.role == SpecialRole.TAX:
            if self._charge(t, player, space.tax_amount, creditor_id=None, to_pool=True):
                t.events.log(EventType.TAX_PAYMENT, player.player_id, amount=space.tax_amount, new_balance=player.cash)
        elif space.role == SpecialRole.CHANCE:
            self._draw_card(t, player, state.chance)
        elif space.role == SpecialRole.COMMUNITY_CHEST:
            self._draw_card(t, player, state.community_chest)
        elif space.role == SpecialRole.GO_TO_JAIL:
            self._jail(t, player)
        elif space.role == SpecialRole.FREE_PARKING:
            if self.config.free_parking_pool and state.free_parking > 0:
                amount = state.free_parking
                player.cash += amount
                state.free_parking = 0
                t.events.log(EventType.FREE_PARKING, player.player_id, amount=amount, new_balance=player.cash)
        # GO and Just Visiting: nothing happens

    def _collect_rent(self, t: _Transition, player: PlayerState, space_id: int, multiplier: Optional[int]) -> None:
        state = t.state
        owner_id = state.properties[space_id].owner
        amount = t.properties.rent_due(space_id, state.last_roll or 0, multiplier)
        state.pending_rent = None
        if self._charge(t, player, amount, creditor_id=owner_id):
            t.events.log(
                EventType.RENT_PAYMENT,
                player.player_id,
                owner=owner_id,
                space_id=space_id,
                amount=amount,
                payer_balance=player.cash,
            )

    # === CARDS ===

    def _draw_card(self, t: _Transition, player: PlayerState, deck: Deck) -> None:
        card = deck.draw(self.rng, held=t.state.held_jail_cards())
        t.events.log(EventType.CARD_DRAW, player.player_id, deck=deck.kind.value, card_id=card.card_id, title=card.title)
        self._apply_card(t, player, card)

    def _apply_card(self, t: _Transition, player: PlayerState, card: Card) -> None:
        """Execute the effect of a drawn card."""
        state = t.state
        t.events.log(EventType.CARD_EFFECT, player.player_id, card_id=card.card_id, effect=card.effect.value)

        if card.effect == CardEffect.COLLECT:
            player.cash += card.amount

        elif card.effect == CardEffect.PAY:
            self._charge(t, player, card.amount, creditor_id=None, to_pool=True)

        elif card.effect == CardEffect.COLLECT_FROM_PLAYERS:
            for other in list(state.active_players):
                if other.player_id == player.player_id:
                    continue
                self._charge(t, other, card.amount, creditor_id=player.player_id)
                if state.phase == GamePhase.ENDED:
                    return

        elif card.effect == CardEffect.PAY_TO_PLAYERS:
            others = [p for p in state.active_players if p.player_id != player.player_id]
            if not self._ensure_funds(t, player, card.amount * len(others), creditor_id=None):
                return
            for other in others:
                player.cash -= card.amount
                other.cash += card.amount

        elif card.effect == CardEffect.MOVE_BACK:
            self._move_back(t, player, card.amount)

        elif card.effect == CardEffect.ADVANCE_TO:
            self._move_to(t, player, card.position)

        elif card.effect == CardEffect.ADVANCE_TO_NEAREST:
            target = self.board.nearest_of_kind_ahead(player.position, card.target_kind)
            multiplier = (
                NEAREST_RAILROAD_MULTIPLIER if card.target_kind == SpaceKind.RAILROAD else NEAREST_UTILITY_MULTIPLIER
            )
            self._move_to(t, player, target.space_id, rent_multiplier=multiplier)

        elif card.effect == CardEffect.GO_TO_JAIL:
            self._jail(t, player)

        elif card.effect == CardEffect.GET_OUT_OF_JAIL:
            player.jail_cards.append(card.card_id)

        elif card.effect == CardEffect.REPAIRS:
            total = sum(
                prop.houses * card.per_house + prop.hotels * card.per_hotel
                for prop in t.players.held_properties(player.player_id)
            )
            self._charge(t, player, total, creditor_id=None, to_pool=True)

        else:
            raise StateError(f"Unhandled card effect {card.effect}")

    # === PAYMENTS AND BANKRUPTCY ===

    def _ensure_funds(self, t: _Transition, payer: PlayerState, amount: int, creditor_id: Optional[str]) -> bool:
        """
        Make sure the payer holds ``amount`` in cash.

        Liquidates holdings when that covers the debt. Otherwise the payer
        goes bankrupt to the creditor (None for the bank) and False is returned.
        """
        if payer.cash >= amount:
            return True
        if t.players.can_cover(payer.player_id, amount):
            t.players.raise_funds(payer.player_id, amount, t.events)
            if payer.cash < amount:
                raise StateError(f"Player {payer.player_id} could not raise {amount}")
            return True
        self._bankrupt(t, payer, creditor_id, owed=amount)
        return False

    def _charge(
        self,
        t: _Transition,
        payer: PlayerState,
        amount: int,
        creditor_id: Optional[str],
        to_pool: bool = False,
    ) -> bool:
        """Take a payment, running the bankruptcy check first. Returns False if the payer went bankrupt."""
        if amount <= 0:
            return True
        if not self._ensure_funds(t, payer, amount, creditor_id):
            return False

        payer.cash -= amount
        if creditor_id is not None:
            t.players.adjust_cash(creditor_id, amount)
        elif to_pool and self.config.free_parking_pool:
            t.state.free_parking += amount
        return True

    def _bankrupt(self, t: _Transition, debtor: PlayerState, creditor_id: Optional[str], owed: int = 0) -> None:
        """
        Eliminate a player.

        Rule: 'Houses and Hotels are sold to the Bank at half their
        original cost and that player receives any cash'
        A player creditor takes the remaining cash, every property with its
        mortgage state and any held jail cards. The bank takes cash and
        returns properties to the market; jail cards go back to their decks.
        """
        state = t.state
        creditor = state.find_player(creditor_id) if creditor_id is not None else None
        if creditor is not None and not creditor.is_active:
            creditor = None

        building_cash = t.players.sell_all_buildings(debtor.player_id, t.events)
        held = [prop.space_id for prop in t.players.held_properties(debtor.player_id)]

        if creditor is not None:
            creditor.cash += max(debtor.cash, 0)
            for space_id in held:
                t.properties.reassign(space_id, creditor.player_id)
            creditor.jail_cards.extend(debtor.jail_cards)
        else:
            for space_id in held:
                t.properties.release(space_id)

        debtor.cash = 0
        debtor.jail_cards = []
        debtor.in_jail = False
        debtor.jail_turns = 0
        debtor.is_active = False

        t.events.log(
            EventType.BANKRUPTCY,
            debtor.player_id,
            creditor=creditor.player_id if creditor else None,
            owed=owed,
            properties=held,
            building_cash=building_cash,
        )
        logger.info(f"Player {debtor.player_id} bankrupt in game {state.game_id}")

        if state.pending_trade is not None and state.pending_trade.involves(debtor.player_id):
            state.pending_trade = None
            self._resume(state)
        if state.auction is not None:
            state.auction.drop_bidder(debtor.player_id)

        remaining = state.active_players
        if len(remaining) <= 1:
            # A lone seat that goes bankrupt ends the game with no winner
            state.winner = remaining[0].player_id if remaining else None
            state.phase = GamePhase.ENDED
            state.auction = None
            state.pending_rent = None
            t.events.log(EventType.GAME_END, state.winner, winner=remaining[0].name if remaining else None)
            logger.info(f"Game {state.game_id} won by {state.winner}")
            return

        if state.auction is not None and state.auction.is_complete:
            self._finish_auction(t)
        if state.current_player.player_id == debtor.player_id:
            self._advance_turn(t)

    def _declare_bankruptcy(self, t: _Transition, player: PlayerState, action: Action) -> None:
        creditor_id = action.data.get("creditorId", action.data.get("creditor_id"))
        if creditor_id is not None:
            creditor = t.state.find_player(creditor_id)
            if creditor is None:
                raise NotFoundError(f"No player {creditor_id!r} in game {t.state.game_id}")
            if creditor_id == player.player_id or not creditor.is_active:
                raise RuleViolation(f"{creditor_id} cannot be the creditor")
        self._bankrupt(t, player, creditor_id)

    # === TURN ORDER ===

    def _advance_turn(self, t: _Transition) -> None:
        """Pass the turn to the next active player in seat order."""
        state = t.state
        state.dice = None
        state.last_roll = None
        state.doubles_count = 0
        state.roll_pending = True
        state.pending_rent = None

        count = len(state.players)
        for step in range(1, count + 1):
            index = (state.current_player_index + step) % count
            if state.players[index].is_active:
                state.current_player_index = index
                break
        else:
            raise StateError("No active player to take the turn")

        if state.auction is not None:
            # The auction outlives the turn of the player who declined
            state.phase = GamePhase.AUCTION
            state.resume_phase = GamePhase.ROLLING
        else:
            state.phase = GamePhase.ROLLING
        state.turn_number += 1
        t.events.log(EventType.TURN_START, state.current_player.player_id, turn=state.turn_number)

    def _end_turn(self, t: _Transition, player: PlayerState, action: Action) -> None:
        if t.state.roll_pending:
            raise RuleViolation("Must roll before ending the turn")
        if t.state.pending_rent is not None:
            raise RuleViolation("Rent must be paid before ending the turn")
        self._advance_turn(t)

    def _resume(self, state: GameState) -> None:
        state.phase = state.resume_phase or GamePhase.ROLLING
        state.resume_phase = None

    # === BUYING AND AUCTIONS ===

    def _buy_property(self, t: _Transition, player: PlayerState, action: Action) -> None:
        state = t.state
        space = self.board.space_at(player.position)
        requested = action.data.get("propertyId", action.data.get("property_id"))
        if requested is not None and requested != space.space_id:
            raise RuleViolation(f"Can only buy the occupied space {space.space_id}")
        if not space.is_ownable:
            raise RuleViolation(f"{space.name} is not for sale")
        if state.properties[space.space_id].owner is not None:
            raise RuleViolation(f"{space.name} is already owned")
        if player.cash < space.price:
            raise RuleViolation(f"Insufficient cash: has ${player.cash}, needs ${space.price}")

        t.properties.transfer_ownership(space.space_id, player.player_id)
        player.cash -= space.price
        t.events.log(
            EventType.PURCHASE,
            player.player_id,
            space_id=space.space_id,
            property=space.name,
            price=space.price,
            new_balance=player.cash,
        )
        state.phase = GamePhase.ROLLING

    def _decline_purchase(self, t: _Transition, player: PlayerState, action: Action) -> None:
        state = t.state
        space_id = player.position
        t.events.log(EventType.PURCHASE_DECLINED, player.player_id, space_id=space_id)
        if not self.config.auction_enabled:
            state.phase = GamePhase.ROLLING
            return

        state.auction = Auction(space_id, [p.player_id for p in state.active_players])
        state.resume_phase = GamePhase.ROLLING
        state.phase = GamePhase.AUCTION
        t.events.log(EventType.AUCTION_START, None, space_id=space_id, bidders=list(state.auction.bidders))

    def _auction_bid(self, t: _Transition, player: PlayerState, action: Action) -> None:
        auction = self._require_auction(t.state)
        amount = _int_field(action.data, "amount")
        auction.place_bid(player.player_id, amount, player.cash)
        t.events.log(EventType.AUCTION_BID, player.player_id, space_id=auction.space_id, amount=amount)
        if auction.is_complete:
            self._finish_auction(t)

    def _auction_pass(self, t: _Transition, player: PlayerState, action: Action) -> None:
        auction = self._require_auction(t.state)
        auction.pass_turn(player.player_id)
        t.events.log(EventType.AUCTION_PASS, player.player_id, space_id=auction.space_id)
        if auction.is_complete:
            self._finish_auction(t)

    def _require_auction(self, state: GameState) -> Auction:
        if state.auction is None:
            raise StateError("Auction phase without an auction")
        return state.auction

    def _finish_auction(self, t: _Transition) -> None:
        """
        Finalize an auction by transferring property and money.
        Winner pays the bid amount (not the board price).
        """
        state = t.state
        auction = self._require_auction(state)
        winner = state.find_player(auction.winner) if auction.winner else None
        if winner is not None:
            winner.cash -= auction.current_bid
            t.properties.transfer_ownership(auction.space_id, winner.player_id)
        t.events.log(
            EventType.AUCTION_END,
            winner.player_id if winner else None,
            space_id=auction.space_id,
            amount=auction.current_bid if winner else 0,
        )
        state.auction = None
        self._resume(state)

    def _pay_rent(self, t: _Transition, player: PlayerState, action: Action) -> None:
        pending = t.state.pending_rent
        if pending is None:
            raise RuleViolation("No rent is owed")
        self._collect_rent(t, player, pending.space_id, pending.multiplier)

    # === PROPERTY MANAGEMENT ===

    def _owned_space(self, t: _Transition, player: PlayerState, action: Action) -> Space:
        space_id = _int_field(action.data, "propertyId", "property_id")
        space = self.board.space_at(space_id)
        if t.state.properties[space_id].owner != player.player_id:
            raise RuleViolation(f"{player.player_id} does not own {space.name}")
        return space

    def _mortgage(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        t.properties.set_mortgaged(space.space_id, True)
        player.cash += space.mortgage_value
        t.events.log(
            EventType.MORTGAGE,
            player.player_id,
            space_id=space.space_id,
            amount=space.mortgage_value,
            new_balance=player.cash,
        )

    def _unmortgage(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        if player.cash < space.mortgage_value:
            raise RuleViolation(f"Insufficient cash: has ${player.cash}, needs ${space.mortgage_value}")
        t.properties.set_mortgaged(space.space_id, False)
        player.cash -= space.mortgage_value
        t.events.log(
            EventType.UNMORTGAGE,
            player.player_id,
            space_id=space.space_id,
            amount=space.mortgage_value,
            new_balance=player.cash,
        )

    def _build_house(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        if player.cash < space.house_cost:
            raise RuleViolation(f"Insufficient cash: has ${player.cash}, needs ${space.house_cost}")
        t.properties.build_house(space.space_id)
        player.cash -= space.house_cost
        t.events.log(
            EventType.BUILD_HOUSE,
            player.player_id,
            space_id=space.space_id,
            cost=space.house_cost,
            houses=t.state.properties[space.space_id].houses,
            new_balance=player.cash,
        )

    def _build_hotel(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        if player.cash < space.hotel_cost:
            raise RuleViolation(f"Insufficient cash: has ${player.cash}, needs ${space.hotel_cost}")
        t.properties.build_hotel(space.space_id)
        player.cash -= space.hotel_cost
        t.events.log(
            EventType.BUILD_HOTEL,
            player.player_id,
            space_id=space.space_id,
            cost=space.hotel_cost,
            new_balance=player.cash,
        )

    def _sell_house(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        t.properties.remove_house(space.space_id)
        refund = space.house_cost // 2
        player.cash += refund
        t.events.log(EventType.SELL_HOUSE, player.player_id, space_id=space.space_id, refund=refund, new_balance=player.cash)

    def _sell_hotel(self, t: _Transition, player: PlayerState, action: Action) -> None:
        space = self._owned_space(t, player, action)
        t.properties.remove_hotel(space.space_id)
        refund = space.hotel_cost // 2
        player.cash += refund
        t.events.log(EventType.SELL_HOTEL, player.player_id, space_id=space.space_id, refund=refund, new_balance=player.cash)

    # === JAIL ===

    def _check_jail_exit(self, state: GameState, player: PlayerState) -> None:
        if not player.in_jail:
            raise RuleViolation(f"Player {player.player_id} is not in jail")
        if not state.roll_pending:
            raise RuleViolation("Jail can only be left before rolling")

    def _use_jail_card(self, t: _Transition, player: PlayerState, action: Action) -> None:
        """
        Use a Get Out of Jail Free card. The card goes back to its own deck.
        """
        self._check_jail_exit(t.state, player)
        if not player.jail_cards:
            raise RuleViolation(f"Player {player.player_id} holds no Get Out of Jail Free card")
        card_id = player.jail_cards.pop(0)
        t.players.release_from_jail(player.player_id)
        t.events.log(EventType.JAIL_RELEASE, player.player_id, method="card", card_id=card_id)

    def _pay_jail_fee(self, t: _Transition, player: PlayerState, action: Action) -> None:
        self._check_jail_exit(t.state, player)
        if not self._charge(t, player, self.config.jail_fee, creditor_id=None, to_pool=True):
            return
        t.players.release_from_jail(player.player_id)
        t.events.log(EventType.JAIL_RELEASE, player.player_id, method="fee", amount=self.config.jail_fee)

    # === TRADING ===

    def _validate_trade_side(self, t: _Transition, player: PlayerState, offer: TradeOffer) -> None:
        """Check a player can give everything on their side of a trade."""
        if offer.cash < 0 or offer.jail_cards < 0:
            raise ValidationError("Trade amounts cannot be negative")
        if offer.cash > player.cash:
            raise RuleViolation(f"Insufficient cash: {player.player_id} has ${player.cash}, offering ${offer.cash}")
        if offer.jail_cards > len(player.jail_cards):
            raise RuleViolation(
                f"Insufficient jail cards: {player.player_id} has {len(player.jail_cards)}, offering {offer.jail_cards}"
            )
        if len(set(offer.properties)) != len(offer.properties):
            raise ValidationError("Trade lists a property twice")
        for space_id in offer.properties:
            space = self.board.space_at(space_id)
            if not t.properties.can_trade(space_id, player.player_id):
                raise RuleViolation(f"Cannot trade {space.name}: not owned by {player.player_id} or group has buildings")

    def _parse_offer(self, data: Any) -> TradeOffer:
        if data is None:
            return TradeOffer()
        if not isinstance(data, Mapping):
            raise ValidationError("Trade offer must be an object")
        try:
            return TradeOffer.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed trade offer: {exc}") from exc

    def _trade_offer(self, t: _Transition, player: PlayerState, action: Action) -> None:
        state = t.state
        if state.pending_trade is not None:
            raise RuleViolation("A trade is already pending")

        recipient_id = action.data.get("recipientId", action.data.get("recipient_id"))
        if not isinstance(recipient_id, str):
            raise ValidationError("Trade requires a recipientId")
        recipient = state.find_player(recipient_id)
        if recipient is None:
            raise NotFoundError(f"No player {recipient_id!r} in game {state.game_id}")
        if recipient_id == player.player_id or not recipient.is_active:
            raise RuleViolation(f"Cannot trade with {recipient_id}")

        offer = self._parse_offer(action.data.get("offer"))
        request = self._parse_offer(action.data.get("request"))
        if offer.is_empty() and request.is_empty():
            raise ValidationError("Trade must contain at least one item")
        self._validate_trade_side(t, player, offer)
        self._validate_trade_side(t, recipient, request)

        trade = Trade(state.next_trade_id, player.player_id, recipient_id, offer, request)
        state.next_trade_id += 1
        state.pending_trade = trade
        state.resume_phase = state.phase
        state.phase = GamePhase.TRADING
        t.events.log(
            EventType.TRADE_PROPOSED,
            player.player_id,
            trade_id=trade.trade_id,
            recipient=recipient_id,
            offering=repr(offer),
            requesting=repr(request),
        )

    def _trade_accept(self, t: _Transition, player: PlayerState, action: Action) -> None:
        """Execute the pending trade, transferring all items atomically."""
        state = t.state
        trade = state.pending_trade
        if trade is None:
            raise StateError("Trading phase without a pending trade")
        if player.player_id != trade.recipient_id:
            raise RuleViolation("Only the recipient can accept a trade")

        proposer = t.players.get(trade.proposer_id)
        recipient = t.players.get(trade.recipient_id)
        # Final validation (state might have changed)
        self._validate_trade_side(t, proposer, trade.proposer_offer)
        self._validate_trade_side(t, recipient, trade.recipient_offer)

        self._transfer_side(t, proposer, recipient, trade.proposer_offer)
        self._transfer_side(t, recipient, proposer, trade.recipient_offer)

        state.pending_trade = None
        self._resume(state)
        t.events.log(
            EventType.TRADE_ACCEPTED,
            player.player_id,
            trade_id=trade.trade_id,
            proposer=trade.proposer_id,
            recipient=trade.recipient_id,
            proposer_gave=repr(trade.proposer_offer),
            recipient_gave=repr(trade.recipient_offer),
        )

    def _transfer_side(self, t: _Transition, giver: PlayerState, receiver: PlayerState, offer: TradeOffer) -> None:
        giver.cash -= offer.cash
        receiver.cash += offer.cash
        for space_id in offer.properties:
            t.properties.reassign(space_id, receiver.player_id)
        cards = giver.jail_cards[: offer.jail_cards]
        del giver.jail_cards[: offer.jail_cards]
        receiver.jail_cards.extend(cards)

    def _trade_reject(self, t: _Transition, player: PlayerState, action: Action) -> None:
        state = t.state
        trade = state.pending_trade
        if trade is None:
            raise StateError("Trading phase without a pending trade")
        if not trade.involves(player.player_id):
            raise RuleViolation(f"Player {player.player_id} is not part of this trade")
        state.pending_trade = None
        self._resume(state)
        t.events.log(EventType.TRADE_REJECTED, player.player_id, trade_id=trade.trade_id)
