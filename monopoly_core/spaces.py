"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SpaceKind(Enum):
    """Kinds of spaces on the board."""

    PROPERTY = "property"
    RAILROAD = "railroad"
    UTILITY = "utility"
    SPECIAL = "special"


class SpecialRole(Enum):
    """What a special (non-ownable) space does when landed on."""

    GO = "go"
    JAIL = "jail"
    FREE_PARKING = "free_parking"
    GO_TO_JAIL = "go_to_jail"
    TAX = "tax"
    COMMUNITY_CHEST = "community_chest"
    CHANCE = "chance"


OWNABLE_KINDS = (SpaceKind.PROPERTY, SpaceKind.RAILROAD, SpaceKind.UTILITY)


@dataclass(frozen=True)
class Space:
    """
    A single board space.

    The rent table is indexed by improvement level for properties
    (base, 1-4 houses, hotel) and by owned count for railroads.
    """

    space_id: int
    name: str
    kind: SpaceKind
    role: Optional[SpecialRole] = None
    color_group: Optional[str] = None
    price: int = 0
    rent: Tuple[int, ...] = ()
    mortgage_value: int = 0
    house_cost: int = 0
    hotel_cost: int = 0
    tax_amount: int = 0

    @property
    def is_ownable(self) -> bool:
        return self.kind in OWNABLE_KINDS

    def __repr__(self) -> str:
        return f"Space(id={self.space_id}, name='{self.name}', kind={self.kind.value})"


def property_space(
    space_id: int,
    name: str,
    color_group: str,
    price: int,
    rent: Tuple[int, int, int, int, int, int],
    house_cost: int,
    mortgage_value: Optional[int] = None,
) -> Space:
    """Create a colored street. Hotels cost the same as houses."""
    return Space(
        space_id=space_id,
        name=name,
        kind=SpaceKind.PROPERTY,
        color_group=color_group,
        price=price,
        rent=tuple(rent),
        mortgage_value=price // 2 if mortgage_value is None else mortgage_value,
        house_cost=house_cost,
        hotel_cost=house_cost,
    )


def railroad_space(space_id: int, name: str, price: int = 200) -> Space:
    return Space(
        space_id=space_id,
        name=name,
        kind=SpaceKind.RAILROAD,
        price=price,
        rent=(25, 50, 100, 200),
        mortgage_value=price // 2,
    )


def utility_space(space_id: int, name: str, price: int = 150) -> Space:
    return Space(
        space_id=space_id,
        name=name,
        kind=SpaceKind.UTILITY,
        price=price,
        rent=(4, 10),
        mortgage_value=price // 2,
    )


def special_space(space_id: int, name: str, role: SpecialRole, tax_amount: int = 0) -> Space:
    return Space(
        space_id=space_id,
        name=name,
        kind=SpaceKind.SPECIAL,
        role=role,
        tax_amount=tax_amount,
    )
