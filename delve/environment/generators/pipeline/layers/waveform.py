"""Re-synthesise the current map with chunk-based Wave Function Collapse."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delve import config
from delve.environment.generators.errors import (
    MapGenerationError,
    SolverExhaustedError,
)
from delve.environment.generators.pipeline.common import revert_markers
from delve.environment.generators.pipeline.layer import (
    CORRIDORS,
    ROOMS,
    START,
    MetaBuilder,
)
from delve.environment.generators.wfc_solver import (
    ChunkSolver,
    MapChunk,
    WFCContradiction,
    build_patterns,
    patterns_to_constraints,
)
from delve.environment.tile_types import TileTypeID

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


class WaveformCollapseBuilder(MetaBuilder):
    """Learn chunk patterns from the map so far, then tile a new map from them.

    The result shares the look of its source but none of its layout, so the
    spawn list, rooms, corridors and starting position are all discarded;
    later builders must choose a new start and exit.

    After a run, `constraints` and `solution` (pattern index per chunk) hold
    the last solve.

    Raises:
        SolverExhaustedError: If every one of `max_attempts` solves hits a
            contradiction.
    """

    invalidates = frozenset({ROOMS, CORRIDORS, START})

    def __init__(
        self,
        chunk_size: int = config.WFC_CHUNK_SIZE,
        max_attempts: int = config.WFC_MAX_ATTEMPTS,
    ) -> None:
        self.chunk_size = chunk_size
        self.max_attempts = max_attempts
        self.constraints: list[MapChunk] = []
        self.solution: np.ndarray | None = None

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        game_map = ctx.game_map
        revert_markers(game_map)
        ctx.take_snapshot()

        chunks_x = ctx.width // self.chunk_size
        chunks_y = ctx.height // self.chunk_size
        if chunks_x == 0 or chunks_y == 0:
            raise MapGenerationError(
                f"{ctx.width}x{ctx.height} is too small for "
                f"{self.chunk_size}-tile chunks",
                stage=self.name,
            )

        patterns = build_patterns(game_map.tiles, self.chunk_size)
        self.constraints = patterns_to_constraints(patterns)
        logger.debug(f"Waveform collapse learned {len(self.constraints)} patterns")
        if ctx.record_history:
            self._render_tile_gallery(ctx)

        for attempt in range(1, self.max_attempts + 1):
            solver = ChunkSolver(self.constraints, chunks_x, chunks_y)
            try:
                self.solution = solver.solve(rng)
            except WFCContradiction as e:
                logger.debug(f"Waveform collapse attempt {attempt} failed: {e}")
                continue

            game_map.tiles[:] = TileTypeID.WALL
            solver.render(game_map.tiles, self.chunk_size)
            break
        else:
            raise SolverExhaustedError(self.max_attempts, stage=self.name)

        game_map.tiles[0, :] = TileTypeID.WALL
        game_map.tiles[-1, :] = TileTypeID.WALL
        game_map.tiles[:, 0] = TileTypeID.WALL
        game_map.tiles[:, -1] = TileTypeID.WALL

        ctx.spawn_list.clear()
        ctx.rooms = None
        ctx.corridors = None
        ctx.starting_position = None
        ctx.take_snapshot()
        logger.debug(f"Waveform collapse took {attempt} attempt(s) to solve")

    def _render_tile_gallery(self, ctx: GenerationContext) -> None:
        """Snapshot every learned pattern laid out side by side, page by page."""
        size = self.chunk_size
        tiles = ctx.game_map.tiles
        tiles[:] = TileTypeID.WALL
        x = y = 1
        for chunk in self.constraints:
            if x + size > ctx.width or y + size > ctx.height:
                break
            tiles[x : x + size, y : y + size] = chunk.pattern
            x += size + 1
            if x + size > ctx.width:
                x = 1
                y += size + 1
                if y + size > ctx.height:
                    ctx.take_snapshot()
                    tiles[:] = TileTypeID.WALL
                    y = 1
        ctx.take_snapshot()
