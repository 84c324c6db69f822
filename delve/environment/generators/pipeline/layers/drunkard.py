"""Drunkard's walk caves.

Walkers stagger one cardinal step at a time, painting floor as they go, until
the floor quota is met. The personality presets differ only in settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from delve import config
from delve.environment.generators.pipeline.common import (
    Symmetry,
    paint,
    revert_markers,
    stagger,
)
from delve.environment.generators.pipeline.layer import InitialBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


class DrunkSpawnMode(Enum):
    STARTING_POINT = auto()  # Every walker starts at the map centre
    RANDOM = auto()  # First walker at the centre, later ones anywhere


@dataclass(frozen=True)
class DrunkardSettings:
    """Tunables for one walk personality.

    Attributes:
        spawn_mode: Where each new walker starts.
        lifetime: Steps a walker takes before it is replaced.
        floor_percent: Fraction of the whole map to open before stopping.
        brush_size: Side of the square painted at each step.
        symmetry: Mirroring applied to every paint.
    """

    spawn_mode: DrunkSpawnMode
    lifetime: int
    floor_percent: float
    brush_size: int = 1
    symmetry: Symmetry = Symmetry.NONE


class DrunkardsWalkBuilder(InitialBuilder):
    def __init__(self, settings: DrunkardSettings) -> None:
        self.settings = settings

    @classmethod
    def open_area(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.STARTING_POINT, 400, 0.5))

    @classmethod
    def open_halls(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 400, 0.5))

    @classmethod
    def winding_passages(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 100, 0.4))

    @classmethod
    def fat_passages(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 100, 0.4, brush_size=2))

    @classmethod
    def fearful_symmetry(cls) -> DrunkardsWalkBuilder:
        return cls(
            DrunkardSettings(
                DrunkSpawnMode.RANDOM, 100, 0.4, symmetry=Symmetry.BOTH
            )
        )

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        settings = self.settings
        game_map = ctx.game_map
        start_x, start_y = ctx.width // 2, ctx.height // 2
        game_map.tiles[start_x, start_y] = TileTypeID.FLOOR

        desired_floor = int(settings.floor_percent * game_map.tile_count)
        floor_count = game_map.count(TileTypeID.FLOOR)
        digger_count = 0
        active_digger_count = 0

        while floor_count < desired_floor:
            if digger_count >= config.DRUNKARD_MAX_WALKERS:
                logger.warning(
                    f"Drunkard's walk stopped after {digger_count} walkers with "
                    f"{floor_count}/{desired_floor} floor tiles"
                )
                break

            if settings.spawn_mode is DrunkSpawnMode.STARTING_POINT or (
                digger_count == 0
            ):
                x, y = start_x, start_y
            else:
                x = roll_dice(rng, 1, ctx.width - 3) + 1
                y = roll_dice(rng, 1, ctx.height - 3) + 1

            did_something = False
            for _ in range(settings.lifetime):
                if game_map.tiles[x, y] == TileTypeID.WALL:
                    did_something = True
                paint(game_map, settings.symmetry, settings.brush_size, x, y)
                # Marks the walker's trail for the snapshot history
                game_map.tiles[x, y] = TileTypeID.DOWN_STAIRS
                x, y = stagger(rng, x, y, ctx.width, ctx.height)

            if did_something:
                ctx.take_snapshot()
                active_digger_count += 1

            digger_count += 1
            revert_markers(game_map)
            floor_count = game_map.count(TileTypeID.FLOOR)

        logger.debug(
            f"{digger_count} dwarves gave up their sobriety, of whom "
            f"{active_digger_count} actually found a wall"
        )
