"""Meta builders that work from the context's room list.

All of them need a room-style initial builder earlier in the chain.
"""

from __future__ import annotations

import logging
import math
from enum import Enum, auto
from typing import TYPE_CHECKING

from delve.environment.generators.catalog import PrefabCatalog, default_catalog
from delve.environment.generators.errors import PlacementError
from delve.environment.generators.pipeline.common import (
    Symmetry,
    apply_room_to_map,
    paint,
    revert_markers,
    stagger,
)
from delve.environment.generators.pipeline.layer import ROOMS, START, MetaBuilder
from delve.environment.generators.spawner import spawn_room
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import distance
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.environment.map import GameMap
    from delve.util.coordinates import Rect
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

EXPLODER_LIFETIME = 20


class RoomSort(Enum):
    LEFTMOST = auto()
    RIGHTMOST = auto()
    TOPMOST = auto()
    BOTTOMMOST = auto()
    CENTRAL = auto()


# =============================================================================
# ORDERING AND DRAWING
# =============================================================================


class RoomSorter(MetaBuilder):
    """Reorder the rooms so corridors and room-based placement follow an axis."""

    requires = frozenset({ROOMS})

    def __init__(self, sort_by: RoomSort) -> None:
        self.sort_by = sort_by

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        match self.sort_by:
            case RoomSort.LEFTMOST:
                rooms.sort(key=lambda room: room.x1)
            case RoomSort.RIGHTMOST:
                rooms.sort(key=lambda room: room.x2, reverse=True)
            case RoomSort.TOPMOST:
                rooms.sort(key=lambda room: room.y1)
            case RoomSort.BOTTOMMOST:
                rooms.sort(key=lambda room: room.y2, reverse=True)
            case RoomSort.CENTRAL:
                map_center = (ctx.width // 2, ctx.height // 2)
                rooms.sort(key=lambda room: distance(room.center(), map_center))


class RoomDrawer(MetaBuilder):
    """Rasterise each room, one in four as a circle, the rest as rectangles."""

    requires = frozenset({ROOMS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        for room in ctx.require_rooms(self.name):
            if roll_dice(rng, 1, 4) == 1:
                self._circle(ctx.game_map, room)
            else:
                apply_room_to_map(ctx.game_map, room)
            ctx.take_snapshot()

    @staticmethod
    def _circle(game_map: GameMap, room: Rect) -> None:
        radius = min(room.width, room.height) / 2.0
        center_x, center_y = room.center()
        for y in range(room.y1, room.y2 + 1):
            for x in range(room.x1, room.x2 + 1):
                if (
                    game_map.in_bounds(x, y)
                    and math.hypot(x - center_x, y - center_y) <= radius
                ):
                    game_map.tiles[x, y] = TileTypeID.FLOOR


# =============================================================================
# COSMETIC MODIFIERS
# =============================================================================


class RoomExploder(MetaBuilder):
    """Send 1d20-5 short drunken walks out of every room centre."""

    requires = frozenset({ROOMS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        for room in ctx.require_rooms(self.name):
            start_x, start_y = room.center()
            for _ in range(roll_dice(rng, 1, 20) - 5):
                x, y = start_x, start_y
                did_something = False
                for _ in range(EXPLODER_LIFETIME):
                    if ctx.game_map.tiles[x, y] == TileTypeID.WALL:
                        did_something = True
                    paint(ctx.game_map, Symmetry.NONE, 1, x, y)
                    ctx.game_map.tiles[x, y] = TileTypeID.DOWN_STAIRS
                    x, y = stagger(rng, x, y, ctx.width, ctx.height)
                if did_something:
                    ctx.take_snapshot()
                revert_markers(ctx.game_map)


class RoomCornerRounder(MetaBuilder):
    """Wall in inner room corners that have exactly two wall neighbours."""

    requires = frozenset({ROOMS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        for room in ctx.require_rooms(self.name):
            for x, y in (
                (room.x1 + 1, room.y1 + 1),
                (room.x2, room.y1 + 1),
                (room.x1 + 1, room.y2),
                (room.x2, room.y2),
            ):
                if ctx.game_map.in_bounds(x, y):
                    self._fill_if_corner(ctx.game_map, x, y)
            ctx.take_snapshot()

        # Corridor spawns can sit on a corner that was just filled
        walkable = ctx.game_map.walkable_map()
        ctx.retain_spawns(lambda idx, _name: walkable[ctx.game_map.index_to_xy(idx)])

    @staticmethod
    def _fill_if_corner(game_map: GameMap, x: int, y: int) -> None:
        tiles = game_map.tiles
        wall = TileTypeID.WALL
        neighbor_walls = sum(
            (
                x > 0 and tiles[x - 1, y] == wall,
                y > 0 and tiles[x, y - 1] == wall,
                x < game_map.width - 2 and tiles[x + 1, y] == wall,
                y < game_map.height - 2 and tiles[x, y + 1] == wall,
            )
        )
        if neighbor_walls == 2:
            tiles[x, y] = wall


# =============================================================================
# PLACEMENT
# =============================================================================


class RoomBasedStartingPosition(MetaBuilder):
    requires = frozenset({ROOMS})
    provides = frozenset({START})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        if not rooms:
            raise PlacementError(f"{self.name} found no rooms", stage=self.name)
        ctx.starting_position = rooms[0].center()


class RoomBasedStairs(MetaBuilder):
    """The only down stairs go in the centre of the last room."""

    requires = frozenset({ROOMS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        if not rooms:
            raise PlacementError(f"{self.name} found no rooms", stage=self.name)
        revert_markers(ctx.game_map)
        x, y = rooms[-1].center()
        ctx.game_map.tiles[x, y] = TileTypeID.DOWN_STAIRS
        ctx.take_snapshot()


class RoomBasedSpawner(MetaBuilder):
    """Spawn into every room except the first, where the player starts."""

    requires = frozenset({ROOMS})

    def __init__(self, catalog: PrefabCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        for room in ctx.require_rooms(self.name)[1:]:
            spawn_room(
                ctx.game_map, rng, room, ctx.depth, ctx.spawn_list, self.catalog
            )
        logger.debug(f"Room spawner left {len(ctx.spawn_list)} spawns")

