"""Diffusion-limited aggregation.

A plus-shaped seed of floor grows at the map centre as walkers stick to it:

- WALK_INWARDS: a walker staggers in from a random spot and paints the last
  wall tile before it touches floor.
- WALK_OUTWARDS: a walker staggers out from the centre and paints the first
  wall tile it reaches.
- CENTRAL_ATTRACTOR: a walker follows a straight line from a random spot to
  the centre and paints the last wall tile before floor.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from delve import config
from delve.environment.generators.pipeline.common import Symmetry, paint, stagger
from delve.environment.generators.pipeline.layer import InitialBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice
from delve.util.pathfinding import bresenham_line

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


class DLAAlgorithm(Enum):
    WALK_INWARDS = auto()
    WALK_OUTWARDS = auto()
    CENTRAL_ATTRACTOR = auto()


class DLABuilder(InitialBuilder):
    def __init__(
        self,
        algorithm: DLAAlgorithm,
        brush_size: int = 2,
        symmetry: Symmetry = Symmetry.NONE,
        floor_percent: float = config.DLA_FLOOR_PERCENT,
    ) -> None:
        self.algorithm = algorithm
        self.brush_size = brush_size
        self.symmetry = symmetry
        self.floor_percent = floor_percent

    @classmethod
    def walk_inwards(cls) -> DLABuilder:
        return cls(DLAAlgorithm.WALK_INWARDS, brush_size=1)

    @classmethod
    def walk_outwards(cls) -> DLABuilder:
        return cls(DLAAlgorithm.WALK_OUTWARDS)

    @classmethod
    def central_attractor(cls) -> DLABuilder:
        return cls(DLAAlgorithm.CENTRAL_ATTRACTOR)

    @classmethod
    def insectoid(cls) -> DLABuilder:
        return cls(DLAAlgorithm.CENTRAL_ATTRACTOR, symmetry=Symmetry.HORIZONTAL)

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        game_map = ctx.game_map
        tiles = game_map.tiles
        start_x, start_y = ctx.width // 2, ctx.height // 2

        for dx, dy in ((0, 0), (-1, 0), (1, 0), (0, -1), (0, 1)):
            tiles[start_x + dx, start_y + dy] = TileTypeID.FLOOR
        ctx.take_snapshot()

        desired_floor = int(self.floor_percent * game_map.tile_count)
        floor_count = game_map.count(TileTypeID.FLOOR)
        walkers = 0
        while floor_count < desired_floor:
            match self.algorithm:
                case DLAAlgorithm.WALK_INWARDS:
                    x = roll_dice(rng, 1, ctx.width - 3) + 1
                    y = roll_dice(rng, 1, ctx.height - 3) + 1
                    prev_x, prev_y = x, y
                    while tiles[x, y] == TileTypeID.WALL:
                        prev_x, prev_y = x, y
                        x, y = stagger(rng, x, y, ctx.width, ctx.height)
                    paint(game_map, self.symmetry, self.brush_size, prev_x, prev_y)

                case DLAAlgorithm.WALK_OUTWARDS:
                    x, y = start_x, start_y
                    while tiles[x, y] == TileTypeID.FLOOR:
                        x, y = stagger(rng, x, y, ctx.width, ctx.height)
                    paint(game_map, self.symmetry, self.brush_size, x, y)

                case DLAAlgorithm.CENTRAL_ATTRACTOR:
                    x = roll_dice(rng, 1, ctx.width - 3) + 1
                    y = roll_dice(rng, 1, ctx.height - 3) + 1
                    prev_x, prev_y = x, y
                    for step in bresenham_line((x, y), (start_x, start_y)):
                        if tiles[x, y] != TileTypeID.WALL:
                            break
                        prev_x, prev_y = x, y
                        x, y = step
                    paint(game_map, self.symmetry, self.brush_size, prev_x, prev_y)

            walkers += 1
            ctx.take_snapshot()
            floor_count = game_map.count(TileTypeID.FLOOR)

        logger.debug(
            f"DLA {self.algorithm.name.lower()} reached {floor_count} floor tiles "
            f"with {walkers} walkers"
        )
