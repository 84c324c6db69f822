"""Meta builders that pick the start, guarantee connectivity and place exits.

CullUnreachable is the step that makes a level playable: it must run once the
terrain is final and before the exit is chosen, so the exit search only sees
tiles the player can actually reach.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from delve.environment.generators.errors import PlacementError
from delve.environment.generators.pipeline.common import (
    get_central_starting_position,
    revert_markers,
)
from delve.environment.generators.pipeline.layer import START, MetaBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice
from delve.util.pathfinding import cost_distance_map

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.environment.map import GameMap
    from delve.types import TileIndex
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


class XStart(Enum):
    LEFT = auto()
    CENTER = auto()
    RIGHT = auto()


class YStart(Enum):
    TOP = auto()
    CENTER = auto()
    BOTTOM = auto()


def _reachable_distances(ctx: GenerationContext, stage: str) -> np.ndarray:
    start = ctx.require_start(stage)
    ctx.game_map.recompute_blocked()
    return cost_distance_map(ctx.game_map, start)


# =============================================================================
# STARTING POSITIONS
# =============================================================================


class AreaStartingPosition(MetaBuilder):
    """Start on the floor tile nearest a coarse anchor such as top-left."""

    provides = frozenset({START})

    def __init__(self, x: XStart, y: YStart) -> None:
        self.x = x
        self.y = y

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        seed_x = {
            XStart.LEFT: 1,
            XStart.CENTER: ctx.width // 2,
            XStart.RIGHT: ctx.width - 2,
        }[self.x]
        seed_y = {
            YStart.TOP: 1,
            YStart.CENTER: ctx.height // 2,
            YStart.BOTTOM: ctx.height - 2,
        }[self.y]

        floor = ctx.game_map.tiles == TileTypeID.FLOOR
        if not floor.any():
            raise PlacementError("No floor tile to start on", stage=self.name)

        xs, ys = np.indices((ctx.width, ctx.height))
        dist = (xs - seed_x) ** 2 + (ys - seed_y) ** 2
        dist = np.where(floor, dist, np.iinfo(np.int64).max)
        # Fortran-order argmin breaks ties on the lowest row-major index
        flat = int(np.argmin(dist.flatten(order="F")))
        ctx.starting_position = ctx.game_map.index_to_xy(flat)
        logger.debug(
            f"Start near ({seed_x}, {seed_y}) is {ctx.starting_position}"
        )


class CentralStartingPosition(MetaBuilder):
    """Start on the first floor tile left of the map centre."""

    provides = frozenset({START})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        ctx.starting_position = get_central_starting_position(ctx.game_map)


# =============================================================================
# CONNECTIVITY AND EXITS
# =============================================================================


class CullUnreachable(MetaBuilder):
    """Wall off every floor tile the start cannot reach.

    Spawns left on walls are dropped, and so are rooms whose centre was walled.
    """

    requires = frozenset({START})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        distances = _reachable_distances(ctx, self.name)
        game_map = ctx.game_map
        unreachable = (game_map.tiles == TileTypeID.FLOOR) & np.isinf(distances)
        game_map.tiles[unreachable] = TileTypeID.WALL

        walkable = game_map.walkable_map()
        ctx.retain_spawns(lambda idx, _name: walkable[game_map.index_to_xy(idx)])
        if ctx.rooms is not None:
            # Room placement only uses rooms the start can still reach
            ctx.rooms[:] = [room for room in ctx.rooms if walkable[room.center()]]
        ctx.take_snapshot()
        logger.debug(f"Culled {int(unreachable.sum())} unreachable floor tiles")


class DistantExit(MetaBuilder):
    """Put the only down stairs on the reachable floor tile farthest from the start.

    Raises:
        PlacementError: If no floor tile is reachable.
    """

    requires = frozenset({START})

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        revert_markers(ctx.game_map)
        distances = _reachable_distances(ctx, self.name)
        candidates = (ctx.game_map.tiles == TileTypeID.FLOOR) & np.isfinite(distances)
        if not candidates.any():
            raise PlacementError("No reachable floor for the exit", stage=self.name)

        scored = np.where(candidates, distances, -1.0)
        exit_idx = int(np.argmax(scored.flatten(order="F")))
        ctx.game_map.set_tile(exit_idx, TileTypeID.DOWN_STAIRS)
        ctx.take_snapshot()
        logger.debug(
            f"Exit at {ctx.game_map.index_to_xy(exit_idx)}, "
            f"distance {float(distances.flatten(order='F')[exit_idx]):.1f}"
        )


# =============================================================================
# DOORS
# =============================================================================


class DoorPlacement(MetaBuilder):
    """Spawn doors at doorway-shaped floor tiles.

    A doorway is a floor tile that continues floor on one axis and is pinched
    by walls on the other. With corridors recorded only each corridor's first
    tile is tried; otherwise every floor tile is, with a 1 in 3 chance.
    """

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        game_map = ctx.game_map
        occupied = ctx.spawn_indices()
        doors: list[TileIndex] = []
        if ctx.corridors is not None:
            for hall in ctx.corridors:
                if len(hall) > 2 and _door_possible(game_map, occupied, hall[0]):
                    doors.append(hall[0])
                    occupied.add(hall[0])
        else:
            for idx in game_map.indices_of(TileTypeID.FLOOR):
                if (
                    _door_possible(game_map, occupied, idx)
                    and roll_dice(rng, 1, 3) == 1
                ):
                    doors.append(idx)
                    occupied.add(idx)

        ctx.spawn_list.extend((idx, "Door") for idx in doors)
        logger.debug(f"Placed {len(doors)} doors")


def _door_possible(game_map: GameMap, occupied: set[TileIndex], idx: TileIndex) -> bool:
    if idx in occupied:
        return False
    x, y = game_map.index_to_xy(idx)
    if not (1 < x < game_map.width - 2 and 1 < y < game_map.height - 2):
        return False
    tiles = game_map.tiles
    if tiles[x, y] != TileTypeID.FLOOR:
        return False

    floor, wall = TileTypeID.FLOOR, TileTypeID.WALL
    left, right = tiles[x - 1, y], tiles[x + 1, y]
    up, down = tiles[x, y - 1], tiles[x, y + 1]
    east_west = left == floor and right == floor and up == wall and down == wall
    north_south = left == wall and right == wall and up == floor and down == floor
    return bool(east_west or north_south)
