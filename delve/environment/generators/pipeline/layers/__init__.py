"""Builders for the level generation chain.

Each builder transforms the GenerationContext in a specific way:
- Initial builders draft a whole map from solid rock: rooms, BSP, cellular
  automata, drunkard's walk, maze, diffusion-limited aggregation, Voronoi
  cells, prefab levels and the town
- Room builders sort, draw, connect and decorate the room list
- Placement builders choose the start and exit, cull unreachable floor and
  add doors
- Spawners fill the spawn list by room, corridor or Voronoi region
- Prefab builders stamp sections and vaults over an existing level
- Waveform collapse re-synthesises the map from its own chunk patterns
"""

from .cellular import CellularAutomataBuilder
from .corridors import (
    BspCorridors,
    CorridorSpawner,
    DoglegCorridors,
    NearestCorridors,
    StraightLineCorridors,
)
from .dla import DLAAlgorithm, DLABuilder
from .drunkard import DrunkardSettings, DrunkardsWalkBuilder, DrunkSpawnMode
from .maze import MazeBuilder
from .placement import (
    AreaStartingPosition,
    CentralStartingPosition,
    CullUnreachable,
    DistantExit,
    DoorPlacement,
    XStart,
    YStart,
)
from .prefab import PrefabLevelBuilder, PrefabSectionBuilder, PrefabVaultBuilder
from .room_meta import (
    RoomBasedSpawner,
    RoomBasedStairs,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
)
from .rooms import BspDungeonBuilder, BspInteriorBuilder, SimpleMapBuilder
from .town import TownBuilder
from .voronoi import VoronoiCellBuilder, VoronoiSpawning
from .waveform import WaveformCollapseBuilder

__all__ = [
    "AreaStartingPosition",
    "BspCorridors",
    "BspDungeonBuilder",
    "BspInteriorBuilder",
    "CellularAutomataBuilder",
    "CentralStartingPosition",
    "CorridorSpawner",
    "CullUnreachable",
    "DLAAlgorithm",
    "DLABuilder",
    "DistantExit",
    "DoglegCorridors",
    "DoorPlacement",
    "DrunkSpawnMode",
    "DrunkardSettings",
    "DrunkardsWalkBuilder",
    "MazeBuilder",
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
]
