"""Corridor strategies for joining a room list, plus corridor spawning.

Every strategy records the tiles it newly opened, one list per corridor, so
DoorPlacement and CorridorSpawner can work from them later.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delve.environment.generators.catalog import PrefabCatalog, default_catalog
from delve.environment.generators.pipeline.common import (
    carve_dogleg,
    draw_corridor,
    random_floor_point_in,
)
from delve.environment.generators.pipeline.layer import CORRIDORS, ROOMS, MetaBuilder
from delve.environment.generators.spawner import spawn_region
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import distance
from delve.util.pathfinding import bresenham_line

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.types import TileIndex
    from delve.util.coordinates import Rect
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


def _nearest_unconnected(rooms: list[Rect], i: int, connected: set[int]) -> int | None:
    """Index of the room closest to rooms[i] that has not yet been joined."""
    center = rooms[i].center()
    candidates = [
        (distance(center, other.center()), j)
        for j, other in enumerate(rooms)
        if j != i and j not in connected
    ]
    if not candidates:
        return None
    return min(candidates)[1]


class DoglegCorridors(MetaBuilder):
    """L-shaped corridors between consecutive room centres."""

    requires = frozenset({ROOMS})
    provides = frozenset({CORRIDORS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        corridors: list[list[TileIndex]] = []
        for prev, room in zip(rooms, rooms[1:], strict=False):
            corridors.append(
                carve_dogleg(ctx.game_map, rng, prev.center(), room.center())
            )
            ctx.take_snapshot()
        ctx.corridors = corridors


class BspCorridors(MetaBuilder):
    """Join consecutive rooms between random floor tiles inside each."""

    requires = frozenset({ROOMS})
    provides = frozenset({CORRIDORS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        corridors: list[list[TileIndex]] = []
        for room, next_room in zip(rooms, rooms[1:], strict=False):
            start_x, start_y = random_floor_point_in(rng, room)
            end_x, end_y = random_floor_point_in(rng, next_room)
            corridors.append(
                draw_corridor(ctx.game_map, start_x, start_y, end_x, end_y)
            )
            ctx.take_snapshot()
        ctx.corridors = corridors


class NearestCorridors(MetaBuilder):
    """Join each room to its nearest room that is not already connected."""

    requires = frozenset({ROOMS})
    provides = frozenset({CORRIDORS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        connected: set[int] = set()
        corridors: list[list[TileIndex]] = []
        for i, room in enumerate(rooms):
            target = _nearest_unconnected(rooms, i, connected)
            if target is None:
                continue
            (x1, y1), (x2, y2) = room.center(), rooms[target].center()
            corridors.append(draw_corridor(ctx.game_map, x1, y1, x2, y2))
            connected.add(i)
            ctx.take_snapshot()
        ctx.corridors = corridors


class StraightLineCorridors(MetaBuilder):
    """Like NearestCorridors, but with Bresenham lines between the centres."""

    requires = frozenset({ROOMS})
    provides = frozenset({CORRIDORS})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = ctx.require_rooms(self.name)
        game_map = ctx.game_map
        connected: set[int] = set()
        corridors: list[list[TileIndex]] = []
        for i, room in enumerate(rooms):
            target = _nearest_unconnected(rooms, i, connected)
            if target is None:
                continue
            corridor: list[TileIndex] = []
            for x, y in bresenham_line(room.center(), rooms[target].center()):
                if game_map.tiles[x, y] != TileTypeID.FLOOR:
                    game_map.tiles[x, y] = TileTypeID.FLOOR
                    corridor.append(game_map.tile_index(x, y))
            corridors.append(corridor)
            connected.add(i)
            ctx.take_snapshot()
        ctx.corridors = corridors


class CorridorSpawner(MetaBuilder):
    """Treat every recorded corridor as a spawn region."""

    requires = frozenset({CORRIDORS})

    def __init__(self, catalog: PrefabCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        for corridor in ctx.require_corridors(self.name):
            spawn_region(
                ctx.game_map, rng, corridor, ctx.depth, ctx.spawn_list, self.catalog
            )
        logger.debug(f"Corridor spawner left {len(ctx.spawn_list)} spawns")
