"""The finished product of a generation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from delve.environment.tile_types import TileTypeID

if TYPE_CHECKING:
    from delve.environment.map import GameMap
    from delve.types import SpawnEntry, WorldTilePos


@dataclass
class GeneratedLevel:
    """A container for everything a chain hands to the spawning collaborator.

    Attributes:
        game_map: The finished grid (terrain, dimensions, name, depth).
        starting_position: Where the player enters the level.
        spawn_list: (tile index, entity kind name) pairs to instantiate.
        history: Fully revealed snapshots, one per generation step. Empty unless
            snapshot recording was enabled.
        builders: Names of the builders that ran, in order.
    """

    game_map: GameMap
    starting_position: WorldTilePos
    spawn_list: list[SpawnEntry] = field(default_factory=list)
    history: list[GameMap] = field(default_factory=list)
    builders: list[str] = field(default_factory=list)

    @property
    def exit_positions(self) -> list[WorldTilePos]:
        """Coordinates of every down staircase (normally exactly one)."""
        return [
            self.game_map.index_to_xy(idx)
            for idx in self.game_map.indices_of(TileTypeID.DOWN_STAIRS)
        ]
