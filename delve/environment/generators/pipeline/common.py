"""Carving, painting and region helpers shared by several builders."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from delve import config
from delve.environment.generators.errors import PlacementError
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import DistanceMetric
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.map import GameMap
    from delve.types import TileIndex, WorldTilePos
    from delve.util.coordinates import Rect
    from delve.util.rng import RNG


# =============================================================================
# CARVING
# =============================================================================


def apply_room_to_map(game_map: GameMap, room: Rect) -> None:
    """Carve the room's inner area, x1+1..=x2 by y1+1..=y2, clipped to the map."""
    x_slice = slice(max(room.x1 + 1, 0), min(room.x2 + 1, game_map.width))
    y_slice = slice(max(room.y1 + 1, 0), min(room.y2 + 1, game_map.height))
    game_map.tiles[x_slice, y_slice] = TileTypeID.FLOOR


def _carve(game_map: GameMap, x: int, y: int, corridor: list[TileIndex]) -> None:
    """Floor one tile, recording it only if it was not already floor."""
    if game_map.in_bounds(x, y) and game_map.tiles[x, y] != TileTypeID.FLOOR:
        game_map.tiles[x, y] = TileTypeID.FLOOR
        corridor.append(game_map.tile_index(x, y))


def apply_horizontal_tunnel(
    game_map: GameMap, x1: int, x2: int, y: int
) -> list[TileIndex]:
    """Carve a horizontal run and return the newly opened tile indices."""
    corridor: list[TileIndex] = []
    for x in range(min(x1, x2), max(x1, x2) + 1):
        _carve(game_map, x, y, corridor)
    return corridor


def apply_vertical_tunnel(
    game_map: GameMap, y1: int, y2: int, x: int
) -> list[TileIndex]:
    corridor: list[TileIndex] = []
    for y in range(min(y1, y2), max(y1, y2) + 1):
        _carve(game_map, x, y, corridor)
    return corridor


def carve_dogleg(
    game_map: GameMap, rng: RNG, start: WorldTilePos, end: WorldTilePos
) -> list[TileIndex]:
    """L-shaped corridor; a coin flip picks horizontal-first or vertical-first."""
    (prev_x, prev_y), (new_x, new_y) = start, end
    if rng.getrandbits(1):
        corridor = apply_horizontal_tunnel(game_map, prev_x, new_x, prev_y)
        corridor += apply_vertical_tunnel(game_map, prev_y, new_y, new_x)
    else:
        corridor = apply_vertical_tunnel(game_map, prev_y, new_y, prev_x)
        corridor += apply_horizontal_tunnel(game_map, prev_x, new_x, new_y)
    return corridor


def draw_corridor(
    game_map: GameMap, x1: int, y1: int, x2: int, y2: int
) -> list[TileIndex]:
    """Walk from (x1, y1) to (x2, y2), closing x first, then y.

    Both ends are carved, so the corridor always touches whatever it starts in.
    """
    corridor: list[TileIndex] = []
    x, y = x1, y1
    _carve(game_map, x, y, corridor)
    while x != x2 or y != y2:
        if x < x2:
            x += 1
        elif x > x2:
            x -= 1
        elif y < y2:
            y += 1
        else:
            y -= 1
        _carve(game_map, x, y, corridor)
    return corridor


def random_point_in(rng: RNG, room: Rect) -> WorldTilePos:
    """A random point on the span [x1, x2) x [y1, y2)."""
    return (
        room.x1 + roll_dice(rng, 1, max(room.width, 1)) - 1,
        room.y1 + roll_dice(rng, 1, max(room.height, 1)) - 1,
    )


def random_floor_point_in(rng: RNG, room: Rect) -> WorldTilePos:
    """A random tile of the area apply_room_to_map() carves, x1+1..=x2 by y1+1..=y2."""
    return (
        room.x1 + roll_dice(rng, 1, max(room.width, 1)),
        room.y1 + roll_dice(rng, 1, max(room.height, 1)),
    )


# =============================================================================
# PAINTING
# =============================================================================


class Symmetry(Enum):
    NONE = auto()
    HORIZONTAL = auto()
    VERTICAL = auto()
    BOTH = auto()


def paint(game_map: GameMap, mode: Symmetry, brush_size: int, x: int, y: int) -> None:
    """Paint floor at (x, y), mirrored about the map centre per `mode`."""
    center_x = game_map.width // 2
    center_y = game_map.height // 2
    dist_x = abs(center_x - x)
    dist_y = abs(center_y - y)

    match mode:
        case Symmetry.NONE:
            points = [(x, y)]
        case Symmetry.HORIZONTAL:
            points = (
                [(x, y)]
                if dist_x == 0
                else [(center_x + dist_x, y), (center_x - dist_x, y)]
            )
        case Symmetry.VERTICAL:
            points = (
                [(x, y)]
                if dist_y == 0
                else [(x, center_y + dist_y), (x, center_y - dist_y)]
            )
        case Symmetry.BOTH:
            if dist_x == 0 and dist_y == 0:
                points = [(x, y)]
            else:
                points = [
                    (center_x + dist_x, center_y + dist_y),
                    (center_x - dist_x, center_y - dist_y),
                    (center_x - dist_x, center_y + dist_y),
                    (center_x + dist_x, center_y - dist_y),
                ]

    for px, py in points:
        apply_paint(game_map, brush_size, px, py)


def apply_paint(game_map: GameMap, brush_size: int, x: int, y: int) -> None:
    """Floor a brush_size square centred on (x, y).

    Wide brushes never touch the two outermost rings of the map.
    """
    if brush_size == 1:
        if game_map.in_bounds(x, y):
            game_map.tiles[x, y] = TileTypeID.FLOOR
        return

    half = brush_size // 2
    for brush_y in range(y - half, y - half + brush_size):
        for brush_x in range(x - half, x - half + brush_size):
            if (
                1 < brush_x < game_map.width - 1
                and 1 < brush_y < game_map.height - 1
            ):
                game_map.tiles[brush_x, brush_y] = TileTypeID.FLOOR


def stagger(rng: RNG, x: int, y: int, width: int, height: int) -> WorldTilePos:
    """One random cardinal step, staying within [2, width-2] x [2, height-2]."""
    match roll_dice(rng, 1, 4):
        case 1:
            if x > 2:
                x -= 1
        case 2:
            if x < width - 2:
                x += 1
        case 3:
            if y > 2:
                y -= 1
        case _:
            if y < height - 2:
                y += 1
    return x, y


def revert_markers(game_map: GameMap) -> None:
    """Turn every down-stairs tile back into floor."""
    game_map.tiles[game_map.tiles == TileTypeID.DOWN_STAIRS] = TileTypeID.FLOOR


# =============================================================================
# STARTING POSITIONS
# =============================================================================


def get_central_starting_position(game_map: GameMap) -> WorldTilePos:
    """Walk left from the map centre until a floor tile is found.

    Raises:
        PlacementError: If the centre row has no floor left of the centre.
    """
    x, y = game_map.width // 2, game_map.height // 2
    while game_map.tiles[x, y] != TileTypeID.FLOOR:
        x -= 1
        if x < 0:
            raise PlacementError("Cannot find a central starting position")
    return x, y


# =============================================================================
# VORONOI
# =============================================================================


def voronoi_membership(
    width: int,
    height: int,
    seeds: Sequence[WorldTilePos],
    metric: DistanceMetric,
) -> np.ndarray:
    """Index of the nearest seed for every tile, shape (width, height).

    Ties go to the seed listed first.
    """
    xs, ys = np.meshgrid(np.arange(width), np.arange(height), indexing="ij")
    seed_array = np.asarray(seeds, dtype=np.int64)
    dx = np.abs(xs[..., np.newaxis] - seed_array[:, 0])
    dy = np.abs(ys[..., np.newaxis] - seed_array[:, 1])

    match metric:
        case DistanceMetric.PYTHAGORAS:
            distances = dx * dx + dy * dy
        case DistanceMetric.MANHATTAN:
            distances = dx + dy
        case DistanceMetric.CHEBYSHEV:
            distances = np.maximum(dx, dy)
        case _:
            raise ValueError(f"Unknown distance metric: {metric!r}")

    return np.asfortranarray(np.argmin(distances, axis=2))


def voronoi_spawn_regions(game_map: GameMap, rng: RNG) -> dict[int, list[TileIndex]]:
    """Bucket interior floor tiles into loosely contiguous cellular-noise regions.

    One seed is jittered inside every cell of a coarse lattice (cell size is
    1 / config.SPAWN_REGION_FREQUENCY) and tiles join their Manhattan-nearest
    seed, which gives the blobby regions of cellular noise.

    Returns:
        Region id to the row-major indices of its floor tiles, ascending.
    """
    cell = max(2, round(1 / config.SPAWN_REGION_FREQUENCY))
    seeds = [
        (gx * cell + rng.randrange(cell), gy * cell + rng.randrange(cell))
        for gy in range(game_map.height // cell + 1)
        for gx in range(game_map.width // cell + 1)
    ]
    membership = voronoi_membership(
        game_map.width, game_map.height, seeds, DistanceMetric.MANHATTAN
    )

    regions: dict[int, list[TileIndex]] = {}
    for y in range(1, game_map.height - 1):
        for x in range(1, game_map.width - 1):
            if game_map.tiles[x, y] == TileTypeID.FLOOR:
                regions.setdefault(int(membership[x, y]), []).append(
                    game_map.tile_index(x, y)
                )
    return regions
