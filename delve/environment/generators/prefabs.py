"""Hand-authored ASCII templates.

A template is a fixed-size block of text, one character per tile. Lines
shorter than the template width are padded with spaces (floor); a line longer
than the width is an authoring error.

Glyph table:
    " "  floor                 "g"  Goblin on floor
    "#"  wall                  "o"  Orc on floor
    ">"  down stairs           "^"  Bear Trap on floor
    "@"  starting position     "%"  Rations on floor
                               "!"  Health Potion on floor
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from delve.environment.tile_types import TileTypeID

# Glyphs that only set terrain
GLYPH_TILES: dict[str, TileTypeID] = {
    " ": TileTypeID.FLOOR,
    "#": TileTypeID.WALL,
    ">": TileTypeID.DOWN_STAIRS,
}

# Glyphs that put an entity on a floor tile
GLYPH_SPAWNS: dict[str, str] = {
    "g": "Goblin",
    "o": "Orc",
    "^": "Bear Trap",
    "%": "Rations",
    "!": "Health Potion",
}

START_GLYPH = "@"


class HorizontalPlacement(Enum):
    LEFT = auto()
    CENTER = auto()
    RIGHT = auto()


class VerticalPlacement(Enum):
    TOP = auto()
    CENTER = auto()
    BOTTOM = auto()


@dataclass(frozen=True)
class PrefabTemplate:
    """Common base: a named block of glyph rows with fixed dimensions."""

    name: str
    width: int
    height: int
    rows: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Prefab {self.name!r} must have a positive size")
        if len(self.rows) > self.height:
            raise ValueError(
                f"Prefab {self.name!r} has {len(self.rows)} rows, "
                f"more than its height {self.height}"
            )
        for row in self.rows:
            if len(row) > self.width:
                raise ValueError(
                    f"Prefab {self.name!r} row {row!r} is wider than {self.width}"
                )

    def glyph_grid(self) -> list[str]:
        """Rows padded with floor to exactly width x height."""
        padded = [row.ljust(self.width) for row in self.rows]
        padded.extend(" " * self.width for _ in range(self.height - len(padded)))
        return padded


@dataclass(frozen=True)
class PrefabLevel(PrefabTemplate):
    """A whole level loaded at the map origin."""


@dataclass(frozen=True)
class PrefabSection(PrefabTemplate):
    """A large chunk stamped over an existing level at a fixed anchor."""

    horizontal: HorizontalPlacement = HorizontalPlacement.CENTER
    vertical: VerticalPlacement = VerticalPlacement.CENTER


@dataclass(frozen=True)
class PrefabRoom(PrefabTemplate):
    """A small vault placed on open floor, valid for a window of depths."""

    first_depth: int = 0
    last_depth: int = 100

    def allowed_at(self, depth: int) -> bool:
        return self.first_depth <= depth <= self.last_depth


# =============================================================================
# LEVELS
# =============================================================================

ABANDONED_CELLBLOCK = PrefabLevel(
    name="abandoned_cellblock",
    width=40,
    height=20,
    rows=(
        "########################################",
        "#@     #          #         #         o#",
        "#      #   g      #    %    #          #",
        "#      ####  ######         ####  ######",
        "#                  #   ^          #    #",
        "####  ####         #####   ####   #  ! #",
        "#  #  #  #   o         #   #  #        #",
        "#  #  #  #         #   #   #  ####  ####",
        "#        ####  ####    ^      #       g#",
        "####  ####        #   ####    #  ###   #",
        "#         #  !    #      #       # #   #",
        "#   g     #       ####   ######  # #   #",
        "#         ####                   #^#   #",
        "#####        #   ^^^   ####          %##",
        "#   #   %    #   ^!^   #  #   #####    #",
        "#   #####    #   ^^^   #  #   #   #    #",
        "#                         #   #   #  o #",
        "#   ######   #######   ####       #    #",
        "#        #         #      #   #   #   >#",
        "########################################",
    ),
)

# =============================================================================
# SECTIONS
# =============================================================================

UNDERGROUND_FORT = PrefabSection(
    name="underground_fort",
    width=15,
    height=43,
    horizontal=HorizontalPlacement.RIGHT,
    vertical=VerticalPlacement.CENTER,
    rows=(
        "     #",
        "  #######",
        "  #     #",
        "  #     #######",
        "  #  g        #",
        "  #     #######",
        "  #     #",
        "  ### ###",
        "    # #",
        "    # #",
        "    # ##",
        "    ^",
        "    ^",
        "    # ##",
        "    # #",
        "    # #",
        "    # #",
        "    # #",
        "  ### ###",
        "  #     #",
        "  #     #",
        "  #  g  #",
        "  #     #",
        "  #     #",
        "  ### ###",
        "    # #",
        "    # #",
        "    # #",
        "    # ##",
        "    ^",
        "    ^",
        "    # ##",
        "    # #",
        "    # #",
        "    # #",
        "  ### ###",
        "  #     #",
        "  #     #######",
        "  #  g        #",
        "  #     #######",
        "  #     #",
        "  #######",
        "     #",
    ),
)

# =============================================================================
# VAULTS
# =============================================================================

TOTALLY_NOT_A_TRAP = PrefabRoom(
    name="totally_not_a_trap",
    width=5,
    height=5,
    rows=(
        "     ",
        " ^^^ ",
        " ^!^ ",
        " ^^^ ",
        "     ",
    ),
)

SILLY_SMILE = PrefabRoom(
    name="silly_smile",
    width=6,
    height=6,
    rows=(
        "      ",
        " ^  ^ ",
        "  ##  ",
        "      ",
        " #### ",
        "      ",
    ),
)

CHECKERBOARD = PrefabRoom(
    name="checkerboard",
    width=6,
    height=6,
    rows=(
        "      ",
        " #^#  ",
        " g#%# ",
        " #!#  ",
        " ^# # ",
        "      ",
    ),
)
