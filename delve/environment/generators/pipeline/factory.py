"""Factory functions for assembling builder chains.

These functions provide the stock chains and the random combination policy
that picks one per level:

- "random": the weighted random policy (random_builder)
- "town": the first level (town_builder)
- "forest": cellular caves with Voronoi spawning (forest_builder)
- "simple": rooms and corridors, the fallback when a fancier chain fails

`generate_level()` is the usual entry point: it picks the chain for a depth,
runs it and falls back to the simple chain on any MapGenerationError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delve import config
from delve.environment.generators.catalog import PrefabCatalog, default_catalog
from delve.environment.generators.errors import MapGenerationError
from delve.util.dice import roll_dice
from delve.util.rng import RNGProvider

from .layers import (
    AreaStartingPosition,
    BspCorridors,
    BspDungeonBuilder,
    BspInteriorBuilder,
    CellularAutomataBuilder,
    CorridorSpawner,
    CullUnreachable,
    DistantExit,
    DLABuilder,
    DoglegCorridors,
    DoorPlacement,
    DrunkardsWalkBuilder,
    MazeBuilder,
    NearestCorridors,
    PrefabLevelBuilder,
    PrefabSectionBuilder,
    PrefabVaultBuilder,
    RoomBasedSpawner,
    RoomBasedStairs,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
    SimpleMapBuilder,
    StraightLineCorridors,
    TownBuilder,
    VoronoiCellBuilder,
    VoronoiSpawning,
    WaveformCollapseBuilder,
    XStart,
    YStart,
)
from .pipeline import BuilderChain

if TYPE_CHECKING:
    from delve.environment.generators.base import GeneratedLevel
    from delve.types import RandomSeed
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

CHAIN_NAMES = ("random", "town", "forest", "simple")


def random_start_position(rng: RNG) -> tuple[XStart, YStart]:
    x = (XStart.LEFT, XStart.CENTER, XStart.RIGHT)[roll_dice(rng, 1, 3) - 1]
    y = (YStart.TOP, YStart.CENTER, YStart.BOTTOM)[roll_dice(rng, 1, 3) - 1]
    return x, y


# =============================================================================
# RANDOM COMBINATION POLICY
# =============================================================================


def _random_room_builder(
    rng: RNG, chain: BuilderChain, catalog: PrefabCatalog
) -> None:
    build_roll = roll_dice(rng, 1, 3)
    match build_roll:
        case 1:
            chain.start_with(SimpleMapBuilder(carve=False))
        case 2:
            chain.start_with(BspDungeonBuilder(carve=False))
        case _:
            chain.start_with(BspInteriorBuilder())

    # BSP interior carves and connects its own rooms
    if build_roll != 3:
        sort_by = (
            RoomSort.LEFTMOST,
            RoomSort.RIGHTMOST,
            RoomSort.TOPMOST,
            RoomSort.BOTTOMMOST,
            RoomSort.CENTRAL,
        )[roll_dice(rng, 1, 5) - 1]
        chain.with_(RoomSorter(sort_by))
        chain.with_(RoomDrawer())

        match roll_dice(rng, 1, 4):
            case 1:
                chain.with_(DoglegCorridors())
            case 2:
                chain.with_(NearestCorridors())
            case 3:
                chain.with_(StraightLineCorridors())
            case _:
                chain.with_(BspCorridors())

        if roll_dice(rng, 1, 2) == 1:
            chain.with_(CorridorSpawner(catalog))

        match roll_dice(rng, 1, 6):
            case 1:
                chain.with_(RoomExploder())
            case 2:
                chain.with_(RoomCornerRounder())
            case _:
                pass

    if roll_dice(rng, 1, 2) == 1:
        chain.with_(RoomBasedStartingPosition())
    else:
        chain.with_(AreaStartingPosition(*random_start_position(rng)))
    # Corridor endpoints and rounded corners can still strand a room
    chain.with_(CullUnreachable())

    if roll_dice(rng, 1, 2) == 1:
        chain.with_(RoomBasedStairs())
    else:
        chain.with_(DistantExit())

    if roll_dice(rng, 1, 2) == 1:
        chain.with_(RoomBasedSpawner(catalog))
    else:
        chain.with_(VoronoiSpawning(catalog))


def _random_shape_builder(
    rng: RNG, chain: BuilderChain, catalog: PrefabCatalog
) -> None:
    match roll_dice(rng, 1, 16):
        case 1:
            chain.start_with(CellularAutomataBuilder())
        case 2:
            chain.start_with(DrunkardsWalkBuilder.open_area())
        case 3:
            chain.start_with(DrunkardsWalkBuilder.open_halls())
        case 4:
            chain.start_with(DrunkardsWalkBuilder.winding_passages())
        case 5:
            chain.start_with(DrunkardsWalkBuilder.fat_passages())
        case 6:
            chain.start_with(DrunkardsWalkBuilder.fearful_symmetry())
        case 7:
            chain.start_with(MazeBuilder())
        case 8:
            chain.start_with(DLABuilder.walk_inwards())
        case 9:
            chain.start_with(DLABuilder.walk_outwards())
        case 10:
            chain.start_with(DLABuilder.central_attractor())
        case 11:
            chain.start_with(DLABuilder.insectoid())
        case 12:
            chain.start_with(VoronoiCellBuilder.pythagoras())
        case 13:
            chain.start_with(VoronoiCellBuilder.manhattan())
        case 14:
            chain.start_with(VoronoiCellBuilder.chebyshev())
        case _:
            chain.start_with(
                PrefabLevelBuilder(catalog.level("abandoned_cellblock"))
            )

    # Start in the centre, then cull everything unreachable from it
    chain.with_(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_(CullUnreachable())

    chain.with_(AreaStartingPosition(*random_start_position(rng)))
    chain.with_(VoronoiSpawning(catalog))
    chain.with_(DistantExit())


def random_builder(
    depth: int,
    width: int,
    height: int,
    rng: RNG,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> BuilderChain:
    """Assemble a chain by weighted random choice.

    Every decision is drawn from `rng` in a fixed order, so the same seed always
    yields the same chain.
    """
    catalog = catalog if catalog is not None else default_catalog()
    chain = BuilderChain(depth, width, height, "New Map", record_history)

    if roll_dice(rng, 1, 2) == 1:
        _random_room_builder(rng, chain, catalog)
    else:
        _random_shape_builder(rng, chain, catalog)

    if roll_dice(rng, 1, config.WFC_PASS_ODDS) == 1:
        # Collapse throws away the start, exit and spawns, so redo them
        chain.with_(WaveformCollapseBuilder())
        chain.with_(AreaStartingPosition(*random_start_position(rng)))
        chain.with_(CullUnreachable())
        chain.with_(VoronoiSpawning(catalog))
        chain.with_(DistantExit())

    if roll_dice(rng, 1, config.SECTIONAL_PREFAB_ODDS) == 1:
        chain.with_(PrefabSectionBuilder(catalog.section("underground_fort")))
        chain.with_(CullUnreachable())
        chain.with_(DistantExit())

    chain.with_(DoorPlacement())
    chain.with_(PrefabVaultBuilder(catalog))
    return chain


# =============================================================================
# STOCK CHAINS
# =============================================================================


def town_builder(
    depth: int,
    width: int,
    height: int,
    record_history: bool | None = None,
) -> BuilderChain:
    """The town sets its own start and exit."""
    chain = BuilderChain(depth, width, height, "The Town", record_history)
    chain.start_with(TownBuilder())
    return chain


def forest_builder(
    depth: int,
    width: int,
    height: int,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> BuilderChain:
    chain = BuilderChain(depth, width, height, "Into the Woods", record_history)
    chain.start_with(CellularAutomataBuilder())
    chain.with_(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_(CullUnreachable())
    chain.with_(AreaStartingPosition(XStart.LEFT, YStart.CENTER))
    chain.with_(VoronoiSpawning(catalog))
    chain.with_(DistantExit())
    return chain


def simple_builder(
    depth: int,
    width: int,
    height: int,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> BuilderChain:
    """Plain rooms and corridors. Used as the fallback chain."""
    chain = BuilderChain(depth, width, height, "Dungeon", record_history)
    chain.start_with(SimpleMapBuilder())
    chain.with_(RoomBasedStartingPosition())
    chain.with_(CullUnreachable())
    chain.with_(DistantExit())
    chain.with_(RoomBasedSpawner(catalog))
    chain.with_(DoorPlacement())
    return chain


def level_builder(
    depth: int,
    width: int,
    height: int,
    rng: RNG,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> BuilderChain:
    """The chain for a depth: always the town at depth 1, random below."""
    if depth == 1:
        return town_builder(depth, width, height, record_history)
    return random_builder(depth, width, height, rng, catalog, record_history)


def create_chain(
    name: str,
    depth: int,
    width: int,
    height: int,
    rng: RNG,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> BuilderChain:
    """Create a stock chain by name.

    Available chains: "random", "town", "forest", "simple".

    Raises:
        ValueError: If the chain name is not recognized.
    """
    match name:
        case "random":
            return random_builder(depth, width, height, rng, catalog, record_history)
        case "town":
            return town_builder(depth, width, height, record_history)
        case "forest":
            return forest_builder(depth, width, height, catalog, record_history)
        case "simple":
            return simple_builder(depth, width, height, catalog, record_history)
    raise ValueError(f"Unknown chain name: {name!r}")


def generate_level(
    depth: int,
    width: int = config.MAP_WIDTH,
    height: int = config.MAP_HEIGHT,
    seed: RandomSeed = None,
    rng: RNG | None = None,
    catalog: PrefabCatalog | None = None,
    record_history: bool | None = None,
) -> GeneratedLevel:
    """Generate one level.

    Args:
        depth: Dungeon depth; depth 1 is the town.
        width: Map width in tiles.
        height: Map height in tiles.
        seed: Master seed used when no `rng` is given. None means entropy.
        rng: Run-wide random source; overrides `seed`.
        catalog: Spawn table and prefabs; defaults to default_catalog().
        record_history: Record snapshots; defaults to
            config.SHOW_MAPGEN_VISUALIZER.

    Returns:
        The finished level. If the chosen chain fails with a
        MapGenerationError, the level comes from the simple chain instead.
    """
    if rng is None:
        rng = RNGProvider(seed).for_level(depth)

    chain = level_builder(depth, width, height, rng, catalog, record_history)
    try:
        return chain.run(rng)
    except MapGenerationError as e:
        logger.warning(
            f"Chain {chain.describe()} failed in {e.stage or 'an unknown stage'}: "
            f"{e}. Falling back to the simple chain."
        )
    return simple_builder(depth, width, height, catalog, record_history).run(rng)
