"""Voronoi cell caverns and Voronoi-region spawning."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, TypeAlias

import numpy as np

from delve import config
from delve.environment.generators.catalog import PrefabCatalog, default_catalog
from delve.environment.generators.pipeline.common import (
    voronoi_membership,
    voronoi_spawn_regions,
)
from delve.environment.generators.pipeline.layer import InitialBuilder, MetaBuilder
from delve.environment.generators.spawner import spawn_region
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import DistanceMetric
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.types import WorldTilePos
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

VoronoiRender: TypeAlias = Literal["caverns", "lattice"]


def cell_boundaries(membership: np.ndarray) -> np.ndarray:
    """Interior tiles with at least two cardinal neighbours in another cell.

    Returns:
        A boolean array the shape of `membership` (the outer ring is False).
    """
    inner = membership[1:-1, 1:-1]
    differing = (
        (inner != membership[:-2, 1:-1]).astype(np.int8)
        + (inner != membership[2:, 1:-1])
        + (inner != membership[1:-1, :-2])
        + (inner != membership[1:-1, 2:])
    )
    boundary = np.zeros(membership.shape, dtype=bool, order="F")
    boundary[1:-1, 1:-1] = differing >= 2
    return boundary


class VoronoiCellBuilder(InitialBuilder):
    """Partition the map into Voronoi cells around random seed points.

    With `render="caverns"` every tile inside a cell becomes floor and the
    cell boundaries stay wall, giving rounded chambers separated by thin
    walls. `render="lattice"` does the reverse and carves only the
    boundaries into a web of passages.

    Caverns is the default: a tile opens when fewer than two of its cardinal
    neighbours belong to another cell, so most of the map is floor and the
    boundaries form thin walls between chambers. Lattice is the literal
    "boundaries become floor" reading and gives a much sparser level.
    """

    def __init__(
        self,
        metric: DistanceMetric = DistanceMetric.PYTHAGORAS,
        seed_count: int = config.VORONOI_SEED_COUNT,
        render: VoronoiRender = "caverns",
    ) -> None:
        if render not in ("caverns", "lattice"):
            raise ValueError(f"Unknown Voronoi render mode: {render!r}")
        self.metric = metric
        self.seed_count = seed_count
        self.render = render
        self.membership: np.ndarray | None = None

    @classmethod
    def pythagoras(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.PYTHAGORAS)

    @classmethod
    def manhattan(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.MANHATTAN)

    @classmethod
    def chebyshev(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.CHEBYSHEV)

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        seed_count = min(self.seed_count, (ctx.width - 1) * (ctx.height - 1))
        seeds: list[WorldTilePos] = []
        while len(seeds) < seed_count:
            candidate = (
                roll_dice(rng, 1, ctx.width - 1),
                roll_dice(rng, 1, ctx.height - 1),
            )
            if candidate not in seeds:
                seeds.append(candidate)

        membership = voronoi_membership(ctx.width, ctx.height, seeds, self.metric)
        boundary = cell_boundaries(membership)
        interior = np.zeros_like(boundary)
        interior[1:-1, 1:-1] = True

        carve = boundary if self.render == "lattice" else interior & ~boundary
        ctx.game_map.tiles[carve] = TileTypeID.FLOOR
        self.membership = membership
        ctx.take_snapshot()

        logger.debug(
            f"Voronoi ({self.metric.name.lower()}, {self.render}) opened "
            f"{int(carve.sum())} tiles around {len(seeds)} seeds"
        )


class VoronoiSpawning(MetaBuilder):
    """Spawn into each cellular-noise region of the floor.

    Regions come from their own jittered seed lattice rather than from
    `VoronoiCellBuilder.membership`, so this step works after any initial
    builder.
    """

    def __init__(self, catalog: PrefabCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        regions = voronoi_spawn_regions(ctx.game_map, rng)
        for area in regions.values():
            spawn_region(
                ctx.game_map, rng, area, ctx.depth, ctx.spawn_list, self.catalog
            )
        logger.debug(
            f"Voronoi spawning filled {len(regions)} regions, "
            f"{len(ctx.spawn_list)} spawns total"
        )
