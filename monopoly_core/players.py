"""
Player ledger: cash, jail status and solvency.

Held properties are not stored on the player. They are always derived
from the property ledger's owner field.
"""

import logging
from typing import List, Optional

from monopoly_core.board import Board
from monopoly_core.events import EventLog, EventType
from monopoly_core.exceptions import NotFoundError
from monopoly_core.properties import PropertyLedger, building_level
from monopoly_core.spaces import SpaceKind
from monopoly_core.state import GameState, PlayerState, PropertyState

logger = logging.getLogger(__name__)


class PlayerLedger:
    """Cash and status operations over the players of a GameState."""

    def __init__(self, board: Board, state: GameState, jail_position: int):
        self.board = board
        self.state = state
        self.jail_position = jail_position
        self.properties = PropertyLedger(board, state.properties)

    def get(self, player_id: str) -> PlayerState:
        player = self.state.find_player(player_id)
        if player is None:
            raise NotFoundError(f"No player {player_id!r} in game {self.state.game_id}")
        return player

    def adjust_cash(self, player_id: str, delta: int) -> int:
        """
        Add (or with a negative delta, remove) cash.

        Never refuses: a negative balance is resolved by the caller's
        bankruptcy check.
        """
        player = self.get(player_id)
        player.cash += delta
        return player.cash

    def held_properties(self, player_id: str) -> List[PropertyState]:
        return self.properties.owned_by(player_id)

    def net_worth(self, player_id: str) -> int:
        """Calculate a player's total net worth (cash + property values)."""
        player = self.get(player_id)
        worth = player.cash
        for prop in self.held_properties(player_id):
            space = self.board.space_at(prop.space_id)
            worth += space.mortgage_value if prop.mortgaged else space.price
            worth += prop.houses * space.house_cost + prop.hotels * space.hotel_cost
        return worth

    def mortgage_capacity(self, player_id: str) -> int:
        """Sum of mortgage values of every unmortgaged space the player owns."""
        return sum(
            self.board.space_at(prop.space_id).mortgage_value
            for prop in self.held_properties(player_id)
            if not prop.mortgaged
        )

    def can_cover(self, player_id: str, amount: int) -> bool:
        """True if cash, plus whatever mortgaging would raise, meets the amount."""
        player = self.get(player_id)
        if player.cash >= amount:
            return True
        return player.cash + self.mortgage_capacity(player_id) >= amount

    def send_to_jail(self, player_id: str) -> None:
        """Send a player to jail. Never passes GO."""
        player = self.get(player_id)
        player.position = self.jail_position
        player.in_jail = True
        player.jail_turns = 0

    def release_from_jail(self, player_id: str) -> None:
        player = self.get(player_id)
        player.in_jail = False
        player.jail_turns = 0

    def raise_funds(self, player_id: str, amount: int, events: Optional[EventLog] = None) -> int:
        """
        Liquidate holdings until the player's cash reaches ``amount``.

        Unbuilt spaces are mortgaged first, in board order. After that
        buildings are sold back to the bank at half cost, highest first
        within each group, and each group is mortgaged once it is bare.
        Returns the cash raised.
        """
        player = self.get(player_id)
        start = player.cash

        for prop in self.held_properties(player_id):
            if player.cash >= amount:
                break
            space = self.board.space_at(prop.space_id)
            if not prop.mortgaged and not self.properties.group_has_buildings(space):
                self._mortgage(player, prop.space_id, events)

        for prop in self.held_properties(player_id):
            if player.cash >= amount:
                break
            space = self.board.space_at(prop.space_id)
            if space.kind != SpaceKind.PROPERTY or not self.properties.group_has_buildings(space):
                continue
            group = [self.state.properties[pos] for pos in self.board.color_group(space.color_group)]
            while player.cash < amount and any(p.has_buildings for p in group):
                self._sell_one_building(player, max(group, key=building_level), events)
            for member in group:
                if player.cash >= amount:
                    break
                if not member.mortgaged:
                    self._mortgage(player, member.space_id, events)

        raised = player.cash - start
        if raised:
            logger.debug(f"Player {player_id} raised {raised} towards {amount}")
        return raised

    def _mortgage(self, player: PlayerState, space_id: int, events: Optional[EventLog]) -> None:
        space = self.board.space_at(space_id)
        self.properties.set_mortgaged(space_id, True)
        player.cash += space.mortgage_value
        if events is not None:
            events.log(
                EventType.MORTGAGE,
                player.player_id,
                space_id=space_id,
                amount=space.mortgage_value,
                new_balance=player.cash,
            )

    def _sell_one_building(self, player: PlayerState, prop: PropertyState, events: Optional[EventLog]) -> None:
        refund = self.properties.building_sale_value(prop.space_id)
        if prop.hotels > 0:
            self.properties.remove_hotel(prop.space_id)
            event_type = EventType.SELL_HOTEL
        else:
            self.properties.remove_house(prop.space_id)
            event_type = EventType.SELL_HOUSE
        player.cash += refund
        if events is not None:
            events.log(event_type, player.player_id, space_id=prop.space_id, refund=refund, new_balance=player.cash)

    def sell_all_buildings(self, player_id: str, events: Optional[EventLog] = None) -> int:
        """Sell every building a player owns at half cost. Returns the proceeds."""
        player = self.get(player_id)
        start = player.cash
        for prop in self.held_properties(player_id):
            while prop.has_buildings:
                space = self.board.space_at(prop.space_id)
                group = [self.state.properties[pos] for pos in self.board.color_group(space.color_group)]
                self._sell_one_building(player, max(group, key=building_level), events)
        return player.cash - start
