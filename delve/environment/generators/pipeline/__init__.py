"""Chain-based level generation.

A level is built by a BuilderChain: exactly one initial builder drafts the
map, then meta builders reshape it in order against one shared
GenerationContext. The chain outputs a GeneratedLevel.

Example usage:
    from delve.environment.generators.pipeline import generate_level

    level = generate_level(depth=3, width=80, height=50, seed="burrito1")

A chain can also be assembled by hand:
    from delve.environment.generators.pipeline import (
        BuilderChain,
        CullUnreachable,
        DistantExit,
        DrunkardsWalkBuilder,
        AreaStartingPosition,
        XStart,
        YStart,
    )

    chain = BuilderChain(depth=3, width=80, height=50, name="Caves")
    chain.start_with(DrunkardsWalkBuilder.winding_passages())
    chain.with_(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_(CullUnreachable())
    chain.with_(DistantExit())
    level = chain.run(rng)
"""

from .context import GenerationContext
from .factory import (
    CHAIN_NAMES,
    create_chain,
    forest_builder,
    generate_level,
    level_builder,
    random_builder,
    simple_builder,
    town_builder,
)
from .layer import CORRIDORS, ROOMS, START, Builder, InitialBuilder, MetaBuilder
from .layers import (
    AreaStartingPosition,
    BspCorridors,
    BspDungeonBuilder,
    BspInteriorBuilder,
    CellularAutomataBuilder,
    CentralStartingPosition,
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

__all__ = [
    "CHAIN_NAMES",
    "CORRIDORS",
    "ROOMS",
    "START",
    "AreaStartingPosition",
    "BspCorridors",
    "BspDungeonBuilder",
    "BspInteriorBuilder",
    "Builder",
    "BuilderChain",
    "CellularAutomataBuilder",
    "CentralStartingPosition",
    "CorridorSpawner",
    "CullUnreachable",
    "DLABuilder",
    "DistantExit",
    "DoglegCorridors",
    "DoorPlacement",
    "DrunkardsWalkBuilder",
    "GenerationContext",
    "InitialBuilder",
    "MazeBuilder",
    "MetaBuilder",
    "NearestCorridors",
    "PrefabLevelBuilder",
    "PrefabSectionBuilder",
    "PrefabVaultBuilder",
    "RoomBasedSpawner",
    "RoomBasedStairs",
    "RoomBasedStartingPosition",
    "RoomCornerRounder",
    "RoomDrawer",
    "RoomExploder",
    "RoomSort",
    "RoomSorter",
    "SimpleMapBuilder",
    "StraightLineCorridors",
    "TownBuilder",
    "VoronoiCellBuilder",
    "VoronoiSpawning",
    "WaveformCollapseBuilder",
    "XStart",
    "YStart",
    "create_chain",
    "forest_builder",
    "generate_level",
    "level_builder",
    "random_builder",
    "simple_builder",
    "town_builder",
]
