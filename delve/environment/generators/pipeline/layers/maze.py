"""Recursive backtracker maze.

The maze is solved on a logical grid at half the map's resolution. Cell
(column, row) is drawn at tile ((column + 1) * 2, (row + 1) * 2), and a removed
wall opens the tile between the cell and its neighbour.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from delve.environment.generators.errors import MapGenerationError
from delve.environment.generators.pipeline.layer import InitialBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.environment.map import GameMap
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

TOP = 0
RIGHT = 1
BOTTOM = 2
LEFT = 3

SNAPSHOT_INTERVAL = 50


@dataclass
class MazeCell:
    row: int
    column: int
    walls: list[bool] = field(default_factory=lambda: [True, True, True, True])
    visited: bool = False

    def remove_walls(self, other: MazeCell) -> None:
        """Open the shared wall between two orthogonally adjacent cells."""
        dx = self.column - other.column
        dy = self.row - other.row
        if dx == 1:
            self.walls[LEFT] = False
            other.walls[RIGHT] = False
        elif dx == -1:
            self.walls[RIGHT] = False
            other.walls[LEFT] = False
        elif dy == 1:
            self.walls[TOP] = False
            other.walls[BOTTOM] = False
        elif dy == -1:
            self.walls[BOTTOM] = False
            other.walls[TOP] = False


class MazeGrid:
    """Logical cell grid carved by depth-first search with an explicit stack."""

    def __init__(self, columns: int, rows: int) -> None:
        if columns <= 0 or rows <= 0:
            raise MapGenerationError(
                f"Maze needs at least one cell, got {columns}x{rows}"
            )
        self.columns = columns
        self.rows = rows
        self.cells = [
            MazeCell(row, column) for row in range(rows) for column in range(columns)
        ]

    def cell_index(self, column: int, row: int) -> int | None:
        if not (0 <= column < self.columns and 0 <= row < self.rows):
            return None
        return row * self.columns + column

    def _unvisited_neighbors(self, current: int) -> list[int]:
        cell = self.cells[current]
        candidates = (
            self.cell_index(cell.column, cell.row - 1),
            self.cell_index(cell.column + 1, cell.row),
            self.cell_index(cell.column, cell.row + 1),
            self.cell_index(cell.column - 1, cell.row),
        )
        return [
            idx for idx in candidates if idx is not None and not self.cells[idx].visited
        ]

    def generate(
        self, rng: RNG, on_progress: Callable[[MazeGrid], None] | None = None
    ) -> None:
        """Carve the maze, visiting every cell exactly once.

        Args:
            rng: Random source for neighbour choice.
            on_progress: Called every SNAPSHOT_INTERVAL iterations.
        """
        current = 0
        backtrace: list[int] = []
        iteration = 0
        while True:
            self.cells[current].visited = True
            neighbors = self._unvisited_neighbors(current)
            if neighbors:
                if len(neighbors) == 1:
                    next_cell = neighbors[0]
                else:
                    next_cell = neighbors[roll_dice(rng, 1, len(neighbors)) - 1]
                self.cells[next_cell].visited = True
                backtrace.append(current)
                self.cells[current].remove_walls(self.cells[next_cell])
                current = next_cell
            elif backtrace:
                current = backtrace.pop()
            else:
                break

            if on_progress is not None and iteration % SNAPSHOT_INTERVAL == 0:
                on_progress(self)
            iteration += 1

    def copy_to_map(self, game_map: GameMap) -> None:
        tiles = game_map.tiles
        for cell in self.cells:
            x = (cell.column + 1) * 2
            y = (cell.row + 1) * 2
            tiles[x, y] = TileTypeID.FLOOR
            if not cell.walls[TOP]:
                tiles[x, y - 1] = TileTypeID.FLOOR
            if not cell.walls[RIGHT]:
                tiles[x + 1, y] = TileTypeID.FLOOR
            if not cell.walls[BOTTOM]:
                tiles[x, y + 1] = TileTypeID.FLOOR
            if not cell.walls[LEFT]:
                tiles[x - 1, y] = TileTypeID.FLOOR


class MazeBuilder(InitialBuilder):
    """Perfect maze filling the map. The finished grid is kept on `grid`."""

    def __init__(self) -> None:
        self.grid: MazeGrid | None = None

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        columns, rows = ctx.width // 2 - 2, ctx.height // 2 - 2
        if columns <= 0 or rows <= 0:
            raise MapGenerationError(
                f"{ctx.width}x{ctx.height} is too small for a maze", stage=self.name
            )
        grid = MazeGrid(columns, rows)

        def on_progress(maze: MazeGrid) -> None:
            maze.copy_to_map(ctx.game_map)
            ctx.take_snapshot()

        grid.generate(rng, on_progress if ctx.record_history else None)
        grid.copy_to_map(ctx.game_map)
        ctx.take_snapshot()
        self.grid = grid
        logger.debug(f"Maze carved {grid.columns}x{grid.rows} cells")
