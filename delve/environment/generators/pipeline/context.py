"""Generation context for the builder chain.

The GenerationContext is the mutable scratch structure threaded through every
builder. There is exactly one live GameMap per context: builders edit it in
place, and snapshots are deep copies taken only when history recording is on.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from delve import config
from delve.environment.generators.errors import PipelineConfigError
from delve.environment.map import GameMap
from delve.types import SpawnEntry, TileIndex, WorldTilePos
from delve.util.coordinates import Rect


@dataclass
class GenerationContext:
    """Mutable state container passed through the builder chain.

    Attributes:
        game_map: The one grid being built.
        starting_position: Player entry tile, once a builder has chosen it.
        rooms: Rooms in builder order; only room-style builders set this.
        corridors: Carved corridor tile indices, one list per corridor; only
            corridor builders that track their own paths set this.
        spawn_list: (tile index, kind name) pairs, appended to as the chain runs.
        history: Fully revealed snapshots, append-only.
        record_history: Whether take_snapshot() records anything.
    """

    game_map: GameMap
    starting_position: WorldTilePos | None = None
    rooms: list[Rect] | None = None
    corridors: list[list[TileIndex]] | None = None
    spawn_list: list[SpawnEntry] = field(default_factory=list)
    history: list[GameMap] = field(default_factory=list)
    record_history: bool = False

    @classmethod
    def create(
        cls,
        depth: int,
        width: int,
        height: int,
        name: str = "",
        record_history: bool | None = None,
    ) -> GenerationContext:
        """Create a context around a freshly allocated all-wall map.

        Args:
            depth: Dungeon depth of the level.
            width: Map width in tiles.
            height: Map height in tiles.
            name: Level name.
            record_history: Snapshot recording; defaults to
                config.SHOW_MAPGEN_VISUALIZER.
        """
        if record_history is None:
            record_history = config.SHOW_MAPGEN_VISUALIZER
        return cls(
            game_map=GameMap(depth, width, height, name),
            record_history=record_history,
        )

    @property
    def width(self) -> int:
        return self.game_map.width

    @property
    def height(self) -> int:
        return self.game_map.height

    @property
    def depth(self) -> int:
        return self.game_map.depth

    def take_snapshot(self) -> None:
        if self.record_history:
            self.history.append(self.game_map.snapshot())

    # -------------------------------------------------------------------------
    # Prerequisite accessors
    # -------------------------------------------------------------------------

    def require_rooms(self, stage: str) -> list[Rect]:
        """Return the room list or fail fast when no earlier stage built one."""
        if self.rooms is None:
            raise PipelineConfigError(f"{stage} requires rooms", stage=stage)
        return self.rooms

    def require_corridors(self, stage: str) -> list[list[TileIndex]]:
        if self.corridors is None:
            raise PipelineConfigError(f"{stage} requires corridors", stage=stage)
        return self.corridors

    def require_start(self, stage: str) -> WorldTilePos:
        if self.starting_position is None:
            raise PipelineConfigError(
                f"{stage} requires a starting position", stage=stage
            )
        return self.starting_position

    # -------------------------------------------------------------------------
    # Spawn list helpers
    # -------------------------------------------------------------------------

    def spawn_indices(self) -> set[TileIndex]:
        return {idx for idx, _name in self.spawn_list}

    def retain_spawns(self, keep: Callable[[TileIndex, str], bool]) -> None:
        """Drop every spawn for which `keep(index, name)` is false."""
        self.spawn_list[:] = [
            (idx, name) for idx, name in self.spawn_list if keep(idx, name)
        ]
