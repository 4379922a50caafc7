from typing import Dict, List, Optional, Sequence, Tuple

from monopoly_core.exceptions import NotFoundError
from monopoly_core.spaces import (
    Space,
    SpaceKind,
    SpecialRole,
    property_space,
    railroad_space,
    special_space,
    utility_space,
)


def standard_spaces() -> List[Space]:
    """Create the standard 40-space Monopoly board."""
    return [
        # Bottom row (0-10)
        special_space(0, "GO", SpecialRole.GO),
        property_space(1, "Mediterranean Avenue", "brown", 60, (2, 10, 30, 90, 160, 250), 50),
        special_space(2, "Community Chest", SpecialRole.COMMUNITY_CHEST),
        property_space(3, "Baltic Avenue", "brown", 60, (4, 20, 60, 180, 320, 450), 50),
        special_space(4, "Income Tax", SpecialRole.TAX, tax_amount=200),
        railroad_space(5, "Reading Railroad"),
        property_space(6, "Oriental Avenue", "light_blue", 100, (6, 30, 90, 270, 400, 550), 50),
        special_space(7, "Chance", SpecialRole.CHANCE),
        property_space(8, "Vermont Avenue", "light_blue", 100, (6, 30, 90, 270, 400, 550), 50),
        property_space(9, "Connecticut Avenue", "light_blue", 120, (8, 40, 100, 300, 450, 600), 50),
        special_space(10, "Jail", SpecialRole.JAIL),
        # Left side (11-20)
        property_space(11, "St. Charles Place", "pink", 140, (10, 50, 150, 450, 625, 750), 100),
        utility_space(12, "Electric Company"),
        property_space(13, "States Avenue", "pink", 140, (10, 50, 150, 450, 625, 750), 100),
        property_space(14, "Virginia Avenue", "pink", 160, (12, 60, 180, 500, 700, 900), 100),
        railroad_space(15, "Pennsylvania Railroad"),
        property_space(16, "St. James Place", "orange", 180, (14, 70, 200, 550, 750, 950), 100),
        special_space(17, "Community Chest", SpecialRole.COMMUNITY_CHEST),
        property_space(18, "Tennessee Avenue", "orange", 180, (14, 70, 200, 550, 750, 950), 100),
        property_space(19, "New York Avenue", "orange", 200, (16, 80, 220, 600, 800, 1000), 100),
        special_space(20, "Free Parking", SpecialRole.FREE_PARKING),
        # Top row (21-30)
        property_space(21, "Kentucky Avenue", "red", 220, (18, 90, 250, 700, 875, 1050), 150),
        special_space(22, "Chance", SpecialRole.CHANCE),
        property_space(23, "Indiana Avenue", "red", 220, (18, 90, 250, 700, 875, 1050), 150),
        property_space(24, "Illinois Avenue", "red", 240, (20, 100, 300, 750, 925, 1100), 150),
        railroad_space(25, "B. & O. Railroad"),
        property_space(26, "Atlantic Avenue", "yellow", 260, (22, 110, 330, 800, 975, 1150), 150),
        property_space(27, "Ventnor Avenue", "yellow", 260, (22, 110, 330, 800, 975, 1150), 150),
        utility_space(28, "Water Works"),
        property_space(29, "Marvin Gardens", "yellow", 280, (24, 120, 360, 850, 1025, 1200), 150),
        special_space(30, "Go To Jail", SpecialRole.GO_TO_JAIL),
        # Right side (31-39)
        property_space(31, "Pacific Avenue", "green", 300, (26, 130, 390, 900, 1100, 1275), 200),
        property_space(32, "North Carolina Avenue", "green", 300, (26, 130, 390, 900, 1100, 1275), 200),
        special_space(33, "Community Chest", SpecialRole.COMMUNITY_CHEST),
        property_space(34, "Pennsylvania Avenue", "green", 320, (28, 150, 450, 1000, 1200, 1400), 200),
        railroad_space(35, "Short Line"),
        special_space(36, "Chance", SpecialRole.CHANCE),
        property_space(37, "Park Place", "dark_blue", 350, (35, 175, 500, 1100, 1300, 1500), 200),
        special_space(38, "Luxury Tax", SpecialRole.TAX, tax_amount=100),
        property_space(39, "Boardwalk", "dark_blue", 400, (50, 200, 600, 1400, 1700, 2000), 200),
    ]


class Board:
    """
    The Monopoly game board.

    Read-only. Defaults to the standard layout; a custom layout of the
    same size may be supplied for variants and tests.
    """

    def __init__(self, spaces: Optional[Sequence[Space]] = None):
        self.spaces: Tuple[Space, ...] = tuple(spaces if spaces is not None else standard_spaces())
        for index, space in enumerate(self.spaces):
            if space.space_id != index:
                raise ValueError(f"Space at index {index} has id {space.space_id}")
        self.color_groups: Dict[str, Tuple[int, ...]] = self._build_color_groups()

    def _build_color_groups(self) -> Dict[str, Tuple[int, ...]]:
        """Build a mapping of color groups to property positions."""
        groups: Dict[str, List[int]] = {}
        for space in self.spaces:
            if space.kind == SpaceKind.PROPERTY and space.color_group:
                groups.setdefault(space.color_group, []).append(space.space_id)
        return {color: tuple(ids) for color, ids in groups.items()}

    @property
    def size(self) -> int:
        return len(self.spaces)

    def space_at(self, space_id: int) -> Space:
        """Get the space with the given id."""
        if not isinstance(space_id, int) or not 0 <= space_id < len(self.spaces):
            raise NotFoundError(f"No space with id {space_id!r}")
        return self.spaces[space_id]

    def spaces_of_kind(self, kind: SpaceKind) -> Tuple[Space, ...]:
        """All spaces of a kind, in board order."""
        return tuple(s for s in self.spaces if s.kind == kind)

    def spaces_with_role(self, role: SpecialRole) -> Tuple[Space, ...]:
        return tuple(s for s in self.spaces if s.role == role)

    def color_group(self, color: str) -> Tuple[int, ...]:
        """Get all property positions in a color group."""
        return self.color_groups.get(color, ())

    def nearest_of_kind_ahead(self, from_position: int, kind: SpaceKind) -> Space:
        """
        Find the first space of a kind strictly ahead of a position.

        Scans forward, wrapping past the last space at most once.
        """
        size = len(self.spaces)
        for offset in range(1, size + 1):
            space = self.spaces[(from_position + offset) % size]
            if space.kind == kind:
                return space
        raise NotFoundError(f"Board has no {kind.value} spaces")
