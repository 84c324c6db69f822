"""Room-based initial builders.

- SimpleMapBuilder: random non-overlapping rooms, optionally joined by L tunnels.
- BspDungeonBuilder: rooms proposed inside a growing set of quartered rects.
- BspInteriorBuilder: the whole map bisected into touching leaf rooms.

The first two take `carve=False` to only record their rooms, leaving the
rasterising and connecting to RoomDrawer and a corridor builder.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delve import config
from delve.environment.generators.pipeline.common import (
    apply_room_to_map,
    carve_dogleg,
    draw_corridor,
    random_point_in,
)
from delve.environment.generators.pipeline.layer import (
    CORRIDORS,
    ROOMS,
    InitialBuilder,
)
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import Rect
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.environment.map import GameMap
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


def _connect_centers(game_map: GameMap, rng: RNG, rooms: list[Rect]) -> None:
    for prev, room in zip(rooms, rooms[1:], strict=False):
        carve_dogleg(game_map, rng, prev.center(), room.center())


# =============================================================================
# SIMPLE ROOMS
# =============================================================================


class SimpleMapBuilder(InitialBuilder):
    """Scatter up to `max_rooms` rooms, rejecting any that touch an earlier one."""

    provides = frozenset({ROOMS})

    def __init__(
        self,
        max_rooms: int = config.SIMPLE_MAP_MAX_ROOMS,
        carve: bool = True,
    ) -> None:
        self.max_rooms = max_rooms
        self.carve = carve

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms: list[Rect] = []
        for _ in range(self.max_rooms):
            w = rng.randrange(
                config.SIMPLE_MAP_MIN_ROOM_SIZE, config.SIMPLE_MAP_MAX_ROOM_SIZE
            )
            h = rng.randrange(
                config.SIMPLE_MAP_MIN_ROOM_SIZE, config.SIMPLE_MAP_MAX_ROOM_SIZE
            )
            if w >= ctx.width - 1 or h >= ctx.height - 1:
                continue
            x = roll_dice(rng, 1, ctx.width - w - 1) - 1
            y = roll_dice(rng, 1, ctx.height - h - 1) - 1
            new_room = Rect(x, y, w, h)
            if any(new_room.intersects(room) for room in rooms):
                continue

            if self.carve:
                apply_room_to_map(ctx.game_map, new_room)
                if rooms:
                    carve_dogleg(
                        ctx.game_map, rng, rooms[-1].center(), new_room.center()
                    )
            rooms.append(new_room)
            ctx.take_snapshot()

        logger.debug(f"Simple map placed {len(rooms)} of {self.max_rooms} rooms")
        ctx.rooms = rooms


# =============================================================================
# BSP DUNGEON
# =============================================================================


class BspDungeonBuilder(InitialBuilder):
    """Binary space partition dungeon.

    A pool of candidate rects starts as the quarters of the map. Each attempt
    picks a rect, proposes a small room somewhere inside it and keeps the room
    when it is clear of the border and every earlier room by two tiles; a
    kept room's rect is quartered again, refining the pool near busy areas.
    """

    provides = frozenset({ROOMS})

    def __init__(
        self,
        attempts: int = config.BSP_DUNGEON_ROOM_ATTEMPTS,
        carve: bool = True,
    ) -> None:
        self.attempts = attempts
        self.carve = carve
        self._rects: list[Rect] = []

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms: list[Rect] = []
        self._rects = [Rect(2, 2, ctx.width - 5, ctx.height - 5)]
        self._add_subrects(self._rects[0])

        for _ in range(self.attempts):
            rect = self._random_rect(rng)
            candidate = self._random_sub_rect(rng, rect)
            if self._is_possible(ctx, candidate, rooms):
                if self.carve:
                    apply_room_to_map(ctx.game_map, candidate)
                rooms.append(candidate)
                self._add_subrects(rect)
                ctx.take_snapshot()

        rooms.sort(key=lambda room: room.x1)
        if self.carve:
            _connect_centers(ctx.game_map, rng, rooms)
            ctx.take_snapshot()

        logger.debug(f"BSP dungeon kept {len(rooms)} rooms from {self.attempts} tries")
        ctx.rooms = rooms

    def _add_subrects(self, rect: Rect) -> None:
        half_width = max(rect.width // 2, 1)
        half_height = max(rect.height // 2, 1)
        self._rects.extend(
            [
                Rect(rect.x1, rect.y1, half_width, half_height),
                Rect(rect.x1, rect.y1 + half_height, half_width, half_height),
                Rect(rect.x1 + half_width, rect.y1, half_width, half_height),
                Rect(
                    rect.x1 + half_width, rect.y1 + half_height, half_width, half_height
                ),
            ]
        )

    def _random_rect(self, rng: RNG) -> Rect:
        if len(self._rects) == 1:
            return self._rects[0]
        return self._rects[roll_dice(rng, 1, len(self._rects)) - 1]

    @staticmethod
    def _random_sub_rect(rng: RNG, rect: Rect) -> Rect:
        max_size = config.BSP_DUNGEON_MAX_ROOM_SIZE
        w = max(3, roll_dice(rng, 1, min(rect.width, max_size)) - 1) + 1
        h = max(3, roll_dice(rng, 1, min(rect.height, max_size)) - 1) + 1
        x = rect.x1 + roll_dice(rng, 1, 6) - 1
        y = rect.y1 + roll_dice(rng, 1, 6) - 1
        return Rect(x, y, w, h)

    @staticmethod
    def _is_possible(ctx: GenerationContext, rect: Rect, rooms: list[Rect]) -> bool:
        """Room plus a two tile margin stays inside the map on untouched wall."""
        if any(room.intersects(rect) for room in rooms):
            return False

        margin = rect.expanded(2)
        if (
            margin.x1 < 1
            or margin.y1 < 1
            or margin.x2 > ctx.width - 2
            or margin.y2 > ctx.height - 2
        ):
            return False
        area = ctx.game_map.tiles[margin.x1 : margin.x2 + 1, margin.y1 : margin.y2 + 1]
        return bool((area == TileTypeID.WALL).all())


# =============================================================================
# BSP INTERIOR
# =============================================================================


class BspInteriorBuilder(InitialBuilder):
    """Split the whole map into touching rooms, like the inside of a building.

    Every leaf of the partition becomes a room, so this builder always carves
    and connects; it provides both rooms and corridors.
    """

    provides = frozenset({ROOMS, CORRIDORS})

    def __init__(self, min_room_size: int = config.BSP_INTERIOR_MIN_ROOM_SIZE) -> None:
        self.min_room_size = min_room_size

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        rooms = self._partition(rng, Rect(1, 1, ctx.width - 2, ctx.height - 2))

        for room in rooms:
            x_slice = slice(max(room.x1, 0), min(room.x2, ctx.width - 1))
            y_slice = slice(max(room.y1, 0), min(room.y2, ctx.height - 1))
            ctx.game_map.tiles[x_slice, y_slice] = TileTypeID.FLOOR
            ctx.take_snapshot()

        corridors = []
        for room, next_room in zip(rooms, rooms[1:], strict=False):
            start_x, start_y = random_point_in(rng, room)
            end_x, end_y = random_point_in(rng, next_room)
            corridors.append(
                draw_corridor(ctx.game_map, start_x, start_y, end_x, end_y)
            )
            ctx.take_snapshot()

        logger.debug(f"BSP interior produced {len(rooms)} rooms")
        ctx.rooms = rooms
        ctx.corridors = corridors

    def _partition(self, rng: RNG, root: Rect) -> list[Rect]:
        """Leaf rects in depth-first order, using an explicit work stack."""
        leaves: list[Rect] = []
        stack: list[tuple[Rect, bool]] = [(root, True)]
        while stack:
            rect, split = stack.pop()
            if not split or rect.width < 2 or rect.height < 2:
                leaves.append(rect)
                continue

            half_width = rect.width // 2
            half_height = rect.height // 2
            if roll_dice(rng, 1, 4) <= 2:
                first = Rect(rect.x1, rect.y1, max(half_width - 1, 1), rect.height)
                second = Rect(rect.x1 + half_width, rect.y1, half_width, rect.height)
                split_children = half_width > self.min_room_size
            else:
                first = Rect(rect.x1, rect.y1, rect.width, max(half_height - 1, 1))
                second = Rect(rect.x1, rect.y1 + half_height, rect.width, half_height)
                split_children = half_height > self.min_room_size

            stack.append((second, split_children))
            stack.append((first, split_children))
        return leaves
