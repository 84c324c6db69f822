"""Depth-weighted spawn selection.

Builders never instantiate entities; they append (tile index, kind name)
pairs to the context's spawn list. The weights come from a `PrefabCatalog`
passed in by the caller, so there is no process-wide spawn table.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from delve import config
from delve.environment.tile_types import TileTypeID
from delve.util.dice import Dice, roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.catalog import PrefabCatalog
    from delve.environment.map import GameMap
    from delve.types import SpawnEntry, TileIndex
    from delve.util.coordinates import Rect
    from delve.util.rng import RNG


class RandomTable:
    """Weighted table of entity kinds.

    Entries with a non-positive weight are ignored, so a depth-scaled weight
    that drops to zero simply removes the entry.
    """

    def __init__(self) -> None:
        self.entries: list[tuple[str, int]] = []
        self.total_weight = 0

    def add(self, name: str, weight: int) -> RandomTable:
        if weight > 0:
            self.total_weight += weight
            self.entries.append((name, weight))
        return self

    def roll(self, rng: RNG) -> str | None:
        """Pick a kind with probability proportional to its weight.

        Returns:
            The chosen name, or None for an empty table.
        """
        if self.total_weight == 0:
            return None

        roll = roll_dice(rng, 1, self.total_weight) - 1
        for name, weight in self.entries:
            if roll < weight:
                return name
            roll -= weight
        return None

    def __len__(self) -> int:
        return len(self.entries)


def spawn_room(
    game_map: GameMap,
    rng: RNG,
    room: Rect,
    depth: int,
    spawn_list: list[SpawnEntry],
    catalog: PrefabCatalog,
) -> None:
    """Spawn into the floor tiles inside a room's outline."""
    possible_targets = [
        game_map.tile_index(x, y)
        for x, y in room.interior()
        if game_map.in_bounds(x, y) and game_map.tiles[x, y] == TileTypeID.FLOOR
    ]
    spawn_region(game_map, rng, possible_targets, depth, spawn_list, catalog)


def spawn_region(
    game_map: GameMap,
    rng: RNG,
    area: Sequence[TileIndex],
    depth: int,
    spawn_list: list[SpawnEntry],
    catalog: PrefabCatalog,
) -> None:
    """Spawn a depth-scaled number of entities on distinct tiles of `area`.

    Tiles already holding a spawn are skipped so that no two entries share a
    tile.
    """
    spawn_table = catalog.spawn_table(depth)
    occupied = {idx for idx, _name in spawn_list}
    areas = [idx for idx in area if idx not in occupied]

    num_spawns = min(len(areas), Dice(config.SPAWN_COUNT_DICE).roll(rng) + depth)
    if num_spawns <= 0:
        return

    spawn_points: dict[TileIndex, str] = {}
    for _ in range(num_spawns):
        array_index = 0 if len(areas) == 1 else roll_dice(rng, 1, len(areas)) - 1
        map_idx = areas.pop(array_index)
        name = spawn_table.roll(rng)
        if name is not None:
            spawn_points[map_idx] = name

    spawn_list.extend(spawn_points.items())
