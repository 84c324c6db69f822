"""Map fixtures and level assertions shared by the generator tests."""

from __future__ import annotations

from collections.abc import Sequence
from random import Random

import numpy as np

from delve.environment.generators.base import GeneratedLevel
from delve.environment.generators.pipeline.context import GenerationContext
from delve.environment.map import GameMap
from delve.environment.tile_types import TileTypeID
from delve.types import WorldTilePos
from delve.util.pathfinding import cost_distance_map

GLYPHS: dict[str, TileTypeID] = {
    "#": TileTypeID.WALL,
    ".": TileTypeID.FLOOR,
    ">": TileTypeID.DOWN_STAIRS,
    "=": TileTypeID.ROAD,
    '"': TileTypeID.GRASS,
    "~": TileTypeID.SHALLOW_WATER,
    "w": TileTypeID.DEEP_WATER,
    "_": TileTypeID.WOOD_FLOOR,
}


class LowRoller(Random):
    """Every die comes up 1."""

    def randint(self, a: int, b: int) -> int:
        return a


class HighRoller(Random):
    """Every die comes up at its maximum."""

    def randint(self, a: int, b: int) -> int:
        return b


def map_from_rows(rows: Sequence[str], depth: int = 1) -> GameMap:
    """Build a GameMap from ASCII rows, one string per y."""
    game_map = GameMap(depth, len(rows[0]), len(rows))
    for y, row in enumerate(rows):
        for x, glyph in enumerate(row):
            game_map.tiles[x, y] = GLYPHS[glyph]
    return game_map


def context_from_rows(rows: Sequence[str], depth: int = 1) -> GenerationContext:
    return GenerationContext(game_map=map_from_rows(rows, depth))


def open_context(width: int, height: int, depth: int = 1) -> GenerationContext:
    """A context whose map is floor everywhere except the outer ring."""
    ctx = GenerationContext.create(depth, width, height)
    ctx.game_map.tiles[1:-1, 1:-1] = TileTypeID.FLOOR
    return ctx


def reachable_from(game_map: GameMap, start: WorldTilePos) -> np.ndarray:
    """Boolean map of tiles with a finite cost-distance from `start`."""
    game_map.recompute_blocked()
    return np.isfinite(cost_distance_map(game_map, start))


def border_is_wall(game_map: GameMap) -> bool:
    tiles = game_map.tiles
    return bool(
        (tiles[0, :] == TileTypeID.WALL).all()
        and (tiles[-1, :] == TileTypeID.WALL).all()
        and (tiles[:, 0] == TileTypeID.WALL).all()
        and (tiles[:, -1] == TileTypeID.WALL).all()
    )


def assert_valid_level(level: GeneratedLevel) -> None:
    """Start, exit and spawn list satisfy the finished-level contract."""
    game_map = level.game_map
    walkable = game_map.walkable_map()

    sx, sy = level.starting_position
    assert game_map.in_bounds(sx, sy)
    assert walkable[sx, sy], f"start {level.starting_position} is not walkable"

    assert len(level.exit_positions) == 1, f"exits: {level.exit_positions}"

    for idx, name in level.spawn_list:
        assert 0 <= idx < game_map.tile_count, f"{name} at {idx} is off the map"
        assert walkable[game_map.index_to_xy(idx)], f"{name} at {idx} is in a wall"


def assert_exit_reachable(level: GeneratedLevel) -> None:
    reachable = reachable_from(level.game_map, level.starting_position)
    (ex, ey) = level.exit_positions[0]
    assert reachable[ex, ey]
