"""Cellular automata caves."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delve import config
from delve.environment.generators.pipeline.layer import InitialBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


def cellular_automata_step(tiles: np.ndarray) -> np.ndarray:
    """One smoothing pass over the interior, returning a new tile array.

    An interior tile becomes wall when more than four of its eight neighbours
    are wall, or when none are (lone specks of floor fill in); otherwise it
    becomes floor. Every tile is judged against the previous pass only, and
    the outer ring is never changed.
    """
    wall = (tiles == TileTypeID.WALL).astype(np.int8)
    neighbors = (
        wall[:-2, :-2]
        + wall[1:-1, :-2]
        + wall[2:, :-2]
        + wall[:-2, 1:-1]
        + wall[2:, 1:-1]
        + wall[:-2, 2:]
        + wall[1:-1, 2:]
        + wall[2:, 2:]
    )
    result = tiles.copy(order="F")
    result[1:-1, 1:-1] = np.where(
        (neighbors > 4) | (neighbors == 0), TileTypeID.WALL, TileTypeID.FLOOR
    )
    return result


class CellularAutomataBuilder(InitialBuilder):
    """Random noise smoothed into open caverns."""

    def __init__(
        self,
        passes: int = config.CELLULAR_AUTOMATA_PASSES,
        floor_chance: int = config.CELLULAR_AUTOMATA_FLOOR_CHANCE,
    ) -> None:
        self.passes = passes
        self.floor_chance = floor_chance

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        tiles = ctx.game_map.tiles
        for y in range(1, ctx.height - 1):
            for x in range(1, ctx.width - 1):
                if roll_dice(rng, 1, 100) <= self.floor_chance:
                    tiles[x, y] = TileTypeID.FLOOR
        ctx.take_snapshot()

        for _ in range(self.passes):
            ctx.game_map.tiles = cellular_automata_step(ctx.game_map.tiles)
            ctx.take_snapshot()

        logger.debug(
            f"Cellular automata left {ctx.game_map.count(TileTypeID.FLOOR)} floor "
            f"tiles after {self.passes} passes"
        )
