"""
Property ledger: ownership, mortgages, buildings and rent.

The ledger works over the property list of a GameState in place. It
enforces the rules that concern the board itself; cash movements and
turn checks belong to the engine.
"""

from typing import List, Optional

from monopoly_core.board import Board
from monopoly_core.exceptions import RuleViolation
from monopoly_core.spaces import Space, SpaceKind
from monopoly_core.state import PropertyState

MAX_HOUSES = 4
HOTEL_LEVEL = MAX_HOUSES + 1


def building_level(prop: PropertyState) -> int:
    """Houses on a space, with a hotel counting as one level above four houses."""
    return HOTEL_LEVEL if prop.hotels > 0 else prop.houses


class PropertyLedger:
    """Rule-checked view over the per-space ownership records."""

    def __init__(self, board: Board, properties: List[PropertyState]):
        self.board = board
        self.properties = properties

    def state(self, space_id: int) -> PropertyState:
        """Get the ownership record for a space (NotFoundError for a bad id)."""
        self.board.space_at(space_id)
        return self.properties[space_id]

    def owned_by(self, player_id: str) -> List[PropertyState]:
        """Records owned by a player, in board order."""
        return [p for p in self.properties if p.owner == player_id]

    def count_owned(self, player_id: str, kind: SpaceKind) -> int:
        return sum(
            1 for space in self.board.spaces_of_kind(kind) if self.properties[space.space_id].owner == player_id
        )

    def owns_group(self, player_id: str, color_group: str) -> bool:
        """Check if a player owns every property in a color group."""
        group = self.board.color_group(color_group)
        return bool(group) and all(self.properties[pos].owner == player_id for pos in group)

    def group_has_buildings(self, space: Space) -> bool:
        if space.kind != SpaceKind.PROPERTY or not space.color_group:
            return self.properties[space.space_id].has_buildings
        return any(self.properties[pos].has_buildings for pos in self.board.color_group(space.color_group))

    def _group_levels(self, space: Space) -> List[int]:
        return [building_level(self.properties[pos]) for pos in self.board.color_group(space.color_group)]

    # Rent

    def rent_due(self, space_id: int, dice_total: int, multiplier: Optional[int] = None) -> int:
        """
        Calculate the rent owed for landing on a space.

        ``multiplier`` overrides the normal rule: railroad rent is multiplied
        by it, and utility rent becomes dice total times it.
        Rule: 'it is an advantage to hold all the Sites in a colour-group
        because the owner may then charge double rent for unimproved Sites'
        """
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        if not space.is_ownable or prop.owner is None or prop.mortgaged:
            return 0

        if space.kind == SpaceKind.PROPERTY:
            if prop.hotels > 0:
                return space.rent[HOTEL_LEVEL]
            if prop.houses > 0:
                return space.rent[prop.houses]
            rent = space.rent[0]
            if self.owns_group(prop.owner, space.color_group) and not self.group_has_buildings(space):
                rent *= 2
            return rent

        if space.kind == SpaceKind.RAILROAD:
            owned = self.count_owned(prop.owner, SpaceKind.RAILROAD)
            rent = space.rent[min(owned, len(space.rent)) - 1]
            return rent * multiplier if multiplier is not None else rent

        # Utility
        if multiplier is not None:
            return dice_total * multiplier
        owned = self.count_owned(prop.owner, SpaceKind.UTILITY)
        return dice_total * (space.rent[0] if owned == 1 else space.rent[1])

    # Ownership

    def transfer_ownership(self, space_id: int, player_id: str) -> None:
        """Give an unowned space to a player."""
        space = self.board.space_at(space_id)
        if not space.is_ownable:
            raise RuleViolation(f"{space.name} cannot be owned")
        prop = self.properties[space_id]
        if prop.owner is not None:
            raise RuleViolation(f"{space.name} is already owned by {prop.owner}")
        prop.owner = player_id

    def reassign(self, space_id: int, player_id: str) -> None:
        """Move an owned space to another player, keeping its mortgage state."""
        prop = self.state(space_id)
        if prop.has_buildings:
            raise RuleViolation(f"{self.board.space_at(space_id).name} still carries buildings")
        prop.owner = player_id

    def release(self, space_id: int) -> None:
        """Return a space to the bank: unowned, unmortgaged, unbuilt."""
        prop = self.state(space_id)
        prop.owner = None
        prop.mortgaged = False
        prop.houses = 0
        prop.hotels = 0

    # Mortgage

    def set_mortgaged(self, space_id: int, mortgaged: bool) -> None:
        """
        Mortgage or unmortgage a space.

        Rule: 'All buildings on a colour-group must be sold back to the
        Bank before any Site in that group can be mortgaged.'
        """
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        if prop.owner is None:
            raise RuleViolation(f"{space.name} is not owned")
        if self.group_has_buildings(space):
            raise RuleViolation(f"Buildings stand on the {space.color_group or space.name} group")
        if mortgaged and prop.mortgaged:
            raise RuleViolation(f"{space.name} is already mortgaged")
        if not mortgaged and not prop.mortgaged:
            raise RuleViolation(f"{space.name} is not mortgaged")
        prop.mortgaged = mortgaged

    # Buildings

    def _check_buildable(self, space: Space, owner: Optional[str]) -> None:
        if space.kind != SpaceKind.PROPERTY:
            raise RuleViolation(f"Cannot build on {space.name}")
        if owner is None or not self.owns_group(owner, space.color_group):
            raise RuleViolation(f"Must own the whole {space.color_group} group to build")
        if any(self.properties[pos].mortgaged for pos in self.board.color_group(space.color_group)):
            raise RuleViolation(f"A property in the {space.color_group} group is mortgaged")

    def can_build_house(self, space_id: int) -> bool:
        try:
            self._validate_house(space_id)
        except RuleViolation:
            return False
        return True

    def _validate_house(self, space_id: int) -> None:
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        self._check_buildable(space, prop.owner)
        if prop.hotels > 0 or prop.houses >= MAX_HOUSES:
            raise RuleViolation(f"{space.name} cannot take another house")
        if prop.houses > min(self._group_levels(space)):
            raise RuleViolation(f"Must build evenly across the {space.color_group} group")

    def build_house(self, space_id: int) -> None:
        """
        Add one house to a property.
        Rule: 'You must build evenly... you cannot build a second House
        on any one Site of a colour-group until you have built one on every Site'
        """
        self._validate_house(space_id)
        self.properties[space_id].houses += 1

    def can_build_hotel(self, space_id: int) -> bool:
        try:
            self._validate_hotel(space_id)
        except RuleViolation:
            return False
        return True

    def _validate_hotel(self, space_id: int) -> None:
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        self._check_buildable(space, prop.owner)
        if prop.houses != MAX_HOUSES:
            raise RuleViolation(f"{space.name} needs {MAX_HOUSES} houses before a hotel")
        if min(self._group_levels(space)) < MAX_HOUSES:
            raise RuleViolation(f"Every property in the {space.color_group} group needs {MAX_HOUSES} houses")

    def build_hotel(self, space_id: int) -> None:
        """Replace four houses with a hotel."""
        self._validate_hotel(space_id)
        prop = self.properties[space_id]
        prop.houses = 0
        prop.hotels = 1

    def remove_house(self, space_id: int) -> None:
        """Sell one house, keeping the group even."""
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        if space.kind != SpaceKind.PROPERTY or prop.houses == 0:
            raise RuleViolation(f"No house to sell on {space.name}")
        if prop.houses < max(self._group_levels(space)):
            raise RuleViolation(f"Must sell evenly across the {space.color_group} group")
        prop.houses -= 1

    def remove_hotel(self, space_id: int) -> None:
        """Sell a hotel; the space reverts to four houses."""
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        if space.kind != SpaceKind.PROPERTY or prop.hotels == 0:
            raise RuleViolation(f"No hotel to sell on {space.name}")
        prop.hotels = 0
        prop.houses = MAX_HOUSES

    def building_sale_value(self, space_id: int) -> int:
        """Cash the bank pays for one building on a space (half its cost)."""
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        cost = space.hotel_cost if prop.hotels > 0 else space.house_cost
        return cost // 2

    def can_trade(self, space_id: int, player_id: str) -> bool:
        """
        Check if a space can change hands in a trade.

        Rules:
        - Player must own it
        - No buildings on it or anywhere in its color group
        """
        space = self.board.space_at(space_id)
        prop = self.properties[space_id]
        if prop.owner != player_id:
            return False
        return not self.group_has_buildings(space)
