from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

import numpy as np

from delve import config
from delve.environment import tile_types
from delve.environment.tile_types import TileTypeID
from delve.types import TileCoord, TileIndex, WorldTilePos

# Neighbour offsets in the order neighbors_with_cost() reports them:
# the four cardinals first, then the four diagonals.
_CARDINAL_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAGONAL_OFFSETS = ((-1, -1), (1, -1), (-1, 1), (1, 1))


class GameMap:
    """The level grid.

    Per-tile state lives in numpy arrays of shape (width, height) in Fortran
    order, so `tiles[x, y]` addresses a tile and flattening in Fortran order
    yields the row-major index `y * width + x` used by spawn lists.

    Attributes:
        depth: Dungeon depth this level belongs to.
        width: Width in tiles.
        height: Height in tiles.
        name: Human-readable level name.
        tiles: TileTypeID per tile.
        revealed: Tiles the player has seen (owned by FOV collaborators).
        visible: Tiles currently in view (owned by FOV collaborators).
        blocked: Walkability plus blocking occupants, see recompute_blocked().
        bloodstains: Cosmetic stain indices.
        view_blocked: Indices that block sight regardless of terrain
            (closed doors, for instance).
        tile_content: Occupants per tile index.
    """

    def __init__(
        self, depth: int, width: TileCoord, height: TileCoord, name: str = ""
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Map must have a positive size, got {width}x{height}")
        self.depth = depth
        self.width = width
        self.height = height
        self.name = name

        self.tiles = np.full(
            (width, height), fill_value=TileTypeID.WALL, dtype=np.uint8, order="F"
        )
        self.revealed = np.zeros((width, height), dtype=bool, order="F")
        self.visible = np.zeros((width, height), dtype=bool, order="F")
        self.blocked = np.zeros((width, height), dtype=bool, order="F")

        self.bloodstains: set[TileIndex] = set()
        self.view_blocked: set[TileIndex] = set()
        self.tile_content: list[list[Any]] = [[] for _ in range(width * height)]

    # -------------------------------------------------------------------------
    # Indexing
    # -------------------------------------------------------------------------

    @property
    def tile_count(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: TileCoord, y: TileCoord) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_index(self, x: TileCoord, y: TileCoord) -> TileIndex:
        """Row-major index of (x, y).

        Raises:
            IndexError: If the coordinates are outside the map.
        """
        if not self.in_bounds(x, y):
            raise IndexError(
                f"({x}, {y}) is outside a {self.width}x{self.height} map"
            )
        return y * self.width + x

    def index_to_xy(self, idx: TileIndex) -> WorldTilePos:
        if not 0 <= idx < self.tile_count:
            raise IndexError(f"Tile index {idx} is outside [0, {self.tile_count})")
        return idx % self.width, idx // self.width

    def tile_at(self, idx: TileIndex) -> TileTypeID:
        x, y = self.index_to_xy(idx)
        return TileTypeID(self.tiles[x, y])

    def set_tile(self, idx: TileIndex, tile: TileTypeID) -> None:
        x, y = self.index_to_xy(idx)
        self.tiles[x, y] = tile

    def flat_tiles(self) -> np.ndarray:
        """Tiles as a 1-D array in row-major index order (a copy)."""
        return self.tiles.flatten(order="F")

    def indices_of(self, tile: TileTypeID) -> list[TileIndex]:
        """Row-major indices of every tile of the given kind, ascending."""
        return np.flatnonzero(self.flat_tiles() == tile).tolist()

    def count(self, tile: TileTypeID) -> int:
        return int(np.count_nonzero(self.tiles == tile))

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    def walkable_map(self) -> np.ndarray:
        return tile_types.get_walkable_map(self.tiles)

    def recompute_blocked(self, blockers: Iterable[TileIndex] = ()) -> None:
        """Rebuild `blocked` from terrain walkability plus blocking occupants.

        Must be called after bulk terrain edits and before any blocking-aware
        query; nothing recomputes it implicitly.

        Args:
            blockers: Indices of tiles occupied by entities that block movement.
        """
        self.blocked[:] = ~self.walkable_map()
        for idx in blockers:
            x, y = self.index_to_xy(idx)
            self.blocked[x, y] = True

    def is_opaque(self, idx: TileIndex) -> bool:
        if not 0 <= idx < self.tile_count:
            return True
        return tile_types.is_opaque(self.tile_at(idx)) or idx in self.view_blocked

    def _is_exit_valid(self, x: TileCoord, y: TileCoord) -> bool:
        return self.in_bounds(x, y) and not self.blocked[x, y]

    def neighbors_with_cost(self, idx: TileIndex) -> list[tuple[TileIndex, float]]:
        """Passable neighbours of `idx` with their move cost.

        The cost is the terrain cost of the tile being entered, the same model
        cost_distance_map() uses; diagonal steps are multiplied by
        config.DIAGONAL_COST_MULTIPLIER. Uses the `blocked` array, so call
        recompute_blocked() first.
        """
        x, y = self.index_to_xy(idx)
        exits: list[tuple[TileIndex, float]] = []
        for offsets, multiplier in (
            (_CARDINAL_OFFSETS, 1.0),
            (_DIAGONAL_OFFSETS, config.DIAGONAL_COST_MULTIPLIER),
        ):
            for dx, dy in offsets:
                nx, ny = x + dx, y + dy
                if self._is_exit_valid(nx, ny):
                    cost = tile_types.tile_cost(self.tiles[nx, ny]) * multiplier
                    exits.append((self.tile_index(nx, ny), cost))
        return exits

    # -------------------------------------------------------------------------
    # Copies and debugging
    # -------------------------------------------------------------------------

    def snapshot(self) -> GameMap:
        """Deep copy with every tile revealed, for the generation history."""
        frame = copy.deepcopy(self)
        frame.revealed[:] = True
        return frame

    def to_ascii(self) -> str:
        glyphs = tile_types.get_glyph_map(self.tiles)
        return "\n".join(
            "".join(chr(glyphs[x, y]) for x in range(self.width))
            for y in range(self.height)
        )
