"""Cost-weighted search and line primitives used by the level builders.

Thin wrappers around tcod so builders can speak in terms of a `GameMap`:
- `cost_distance_map()`: Dijkstra flood fill from one tile (reachability
  culling, distant exit placement).
- `find_path()`: A* between two tiles (town road routing).
- `bresenham_line()`: straight tile lines (corridors, central attractor walks).

tcod works on integer costs, so terrain costs are scaled by
config.PATH_COST_SCALE before searching and distances are scaled back after.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import tcod.los
import tcod.path

from delve import config
from delve.environment import tile_types
from delve.types import WorldTilePos

if TYPE_CHECKING:
    from delve.environment.map import GameMap


def _scaled_cost(game_map: GameMap) -> np.ndarray:
    """Integer cost array; 0 marks an impassable tile as tcod expects."""
    scaled = np.rint(tile_types.get_cost_map(game_map.tiles) * config.PATH_COST_SCALE)
    return np.where(game_map.blocked, 0, scaled).astype(np.int32, order="F")


def cost_distance_map(game_map: GameMap, start: WorldTilePos) -> np.ndarray:
    """
    Calculates the cost-distance from `start` to every tile.

    Uses the map's `blocked` array, so the caller must run
    `game_map.recompute_blocked()` after editing terrain.

    Args:
        game_map: The map to search.
        start: The (x, y) source tile.

    Returns:
        A float array of shape (width, height). Unreachable tiles hold `np.inf`.
    """
    cost = _scaled_cost(game_map)
    distance = tcod.path.maxarray((game_map.width, game_map.height), dtype=np.int32)
    distance[start] = 0
    cardinal = config.PATH_COST_SCALE
    diagonal = round(config.PATH_COST_SCALE * config.DIAGONAL_COST_MULTIPLIER)
    tcod.path.dijkstra2d(distance, cost, cardinal, diagonal, out=distance)

    unreachable = distance == np.iinfo(np.int32).max
    result = distance.astype(np.float64) / (config.PATH_COST_SCALE * cardinal)
    result[unreachable] = np.inf
    return result


def find_path(
    game_map: GameMap, start_pos: WorldTilePos, end_pos: WorldTilePos
) -> list[WorldTilePos]:
    """
    Calculates a path from a start to an end position using A*.

    Terrain costs are respected, so roads attract paths and shallow water
    repels them. Uses the map's `blocked` array.

    Args:
        game_map: The map to search.
        start_pos: The (x, y) starting coordinate for the path.
        end_pos: The (x, y) target coordinate for the path.

    Returns:
        A list of (x, y) tuples from start to end. The list does not include
        the start point. Returns an empty list if no path is found.
    """
    astar = tcod.path.AStar(
        cost=_scaled_cost(game_map), diagonal=config.DIAGONAL_COST_MULTIPLIER
    )
    path = astar.get_path(start_pos[0], start_pos[1], end_pos[0], end_pos[1])
    return [(int(x), int(y)) for x, y in path]


def bresenham_line(start: WorldTilePos, end: WorldTilePos) -> list[WorldTilePos]:
    """Tiles on the Bresenham line from `start` to `end`, both included."""
    return [(int(x), int(y)) for x, y in tcod.los.bresenham(start, end).tolist()]
