"""The town that forms the first level.

Unlike the other builders this one is a fixed recipe rather than a
parameterised algorithm. It runs as a sequence of layers:

1. Grass everywhere.
2. A sinusoidal river down the west side, with wooden piers.
3. A walled district east of config.TOWN_WALL_X with a road gap through it.
4. Non-overlapping wooden buildings on the district's gravel, outlined in wall.
5. One door per building facing the road gap, and a road from each door.
6. The exit at the east end of the road, the start in the biggest building.
7. Residents and props in each building, people on the docks and streets.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from delve import config
from delve.environment.generators.errors import MapGenerationError
from delve.environment.generators.pipeline.layer import START, InitialBuilder
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import Rect, distance_squared
from delve.util.dice import roll_dice
from delve.util.pathfinding import find_path

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.environment.map import GameMap
    from delve.types import TileIndex, WorldTilePos
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

# Buildings in descending order of size get these roles; the rest are hovels
# or abandoned houses.
BUILDING_ROLES = ("Pub", "Temple", "Blacksmith", "Clothier", "Alchemist", "PlayerHouse")

BUILDING_CONTENTS: dict[str, tuple[str, ...]] = {
    "Pub": (
        "Barkeep",
        "Shady Salesman",
        "Patron",
        "Patron",
        "Keg",
        "Table",
        "Chair",
        "Table",
        "Chair",
    ),
    "Temple": (
        "Priest",
        "Parishioner",
        "Parishioner",
        "Chair",
        "Chair",
        "Candle",
        "Candle",
    ),
    "Blacksmith": ("Blacksmith", "Anvil", "Water Trough", "Weapon Rack", "Armor Stand"),
    "Clothier": ("Clothier", "Cabinet", "Table", "Loom", "Hide Rack"),
    "Alchemist": ("Alchemist", "Chemistry Set", "Dead Thing", "Chair", "Table"),
    "PlayerHouse": ("Mom", "Bed", "Cabinet", "Chair", "Table"),
    "Hovel": ("Peasant", "Bed", "Chair", "Table"),
}

DOCK_FOLK = ("Dock Worker", "Wannabe Pirate", "Fisher")
TOWNSFOLK = ("Peasant", "Drunk", "Dock Worker", "Fisher")


class TownBuilder(InitialBuilder):
    """Bespoke town generator.

    After a run, `buildings` holds every building footprint in placement
    order and `wall_gap_y` the row the road gap is centred on.
    """

    provides = frozenset({START})

    def __init__(
        self,
        wall_x: int = config.TOWN_WALL_X,
        target_buildings: int = config.TOWN_TARGET_BUILDINGS,
        building_attempts: int = config.TOWN_BUILDING_ATTEMPTS,
    ) -> None:
        self.wall_x = wall_x
        self.target_buildings = target_buildings
        self.building_attempts = building_attempts
        self.buildings: list[Rect] = []
        self.wall_gap_y = 0

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        if ctx.width < self.wall_x + 10 or ctx.height < 12:
            raise MapGenerationError(
                f"A town needs at least {self.wall_x + 10}x12 tiles, "
                f"got {ctx.width}x{ctx.height}",
                stage=self.name,
            )
        game_map = ctx.game_map
        self._grass_layer(ctx)
        self._water_and_piers(rng, ctx)
        available = self._town_walls(rng, ctx)
        self.buildings = self._buildings(rng, ctx, available)
        doors = self._add_doors(rng, ctx)
        self._add_paths(ctx, doors)

        exit_x, exit_y = ctx.width - 5, self.wall_gap_y
        game_map.tiles[exit_x, exit_y] = TileTypeID.DOWN_STAIRS

        by_size = sorted(
            self.buildings, key=lambda b: b.width * b.height, reverse=True
        )
        if by_size:
            ctx.starting_position = by_size[0].center()
        else:
            ctx.starting_position = (exit_x - 1, exit_y)
        self._populate(rng, ctx, by_size)
        ctx.take_snapshot()

        logger.debug(
            f"Town with {len(self.buildings)} buildings, road gap at "
            f"y={self.wall_gap_y}, {len(ctx.spawn_list)} spawns"
        )

    # -------------------------------------------------------------------------
    # Terrain layers
    # -------------------------------------------------------------------------

    def _grass_layer(self, ctx: GenerationContext) -> None:
        ctx.game_map.tiles[:] = TileTypeID.GRASS
        ctx.take_snapshot()

    def _water_and_piers(self, rng: RNG, ctx: GenerationContext) -> None:
        tiles = ctx.game_map.tiles
        n = roll_dice(rng, 1, 65535) / 65535
        water_width: list[int] = []
        for y in range(ctx.height):
            n_water = int(math.sin(n) * 10.0) + 14 + roll_dice(rng, 1, 6)
            water_width.append(n_water)
            n += 0.1
            tiles[:n_water, y] = TileTypeID.DEEP_WATER
            tiles[n_water : n_water + 3, y] = TileTypeID.SHALLOW_WATER
        ctx.take_snapshot()

        for _ in range(roll_dice(rng, 1, 4) + 6):
            y = roll_dice(rng, 1, ctx.height) - 1
            pier_start = 2 + roll_dice(rng, 1, 6)
            tiles[pier_start : water_width[y] + 4, y] = TileTypeID.WOOD_FLOOR
            ctx.take_snapshot()

    def _town_walls(self, rng: RNG, ctx: GenerationContext) -> set[TileIndex]:
        """Wall the district and return the gravel tiles buildings may use."""
        game_map = ctx.game_map
        tiles = game_map.tiles
        width, height = ctx.width, ctx.height
        available: set[TileIndex] = set()

        self.wall_gap_y = roll_dice(rng, 1, height - 9) + 5
        for y in range(1, height - 2):
            if self.wall_gap_y - 4 < y < self.wall_gap_y + 4:
                tiles[self.wall_x : width, y] = TileTypeID.ROAD
                continue
            tiles[self.wall_x, y] = TileTypeID.WALL
            tiles[self.wall_x - 1, y] = TileTypeID.GRASS
            tiles[width - 2, y] = TileTypeID.WALL
            for x in range(self.wall_x + 1, width - 2):
                tiles[x, y] = TileTypeID.GRAVEL
                if 2 < y < height - 1:
                    available.add(game_map.tile_index(x, y))
        ctx.take_snapshot()

        tiles[self.wall_x : width - 1, 1] = TileTypeID.WALL
        tiles[self.wall_x : width - 1, height - 2] = TileTypeID.WALL
        ctx.take_snapshot()
        return available

    # -------------------------------------------------------------------------
    # Buildings
    # -------------------------------------------------------------------------

    def _buildings(
        self, rng: RNG, ctx: GenerationContext, available: set[TileIndex]
    ) -> list[Rect]:
        game_map = ctx.game_map
        width, height = ctx.width, ctx.height
        buildings: list[Rect] = []

        for _ in range(self.building_attempts):
            if len(buildings) >= self.target_buildings:
                break
            bx = roll_dice(rng, 1, width - self.wall_x - 2) + self.wall_x
            by = roll_dice(rng, 1, height) - 2
            bw = roll_dice(rng, 1, 8) + 4
            bh = roll_dice(rng, 1, 8) + 4

            footprint = Rect(bx, by, bw, bh)
            cells = [
                (x, y)
                for y in range(footprint.y1, footprint.y2)
                for x in range(footprint.x1, footprint.x2)
            ]
            if not all(
                game_map.in_bounds(x, y) and game_map.tile_index(x, y) in available
                for x, y in cells
            ):
                continue

            buildings.append(footprint)
            for x, y in cells:
                game_map.tiles[x, y] = TileTypeID.WOOD_FLOOR
                idx = game_map.tile_index(x, y)
                available.difference_update(
                    (idx, idx + 1, idx - 1, idx + width, idx - width)
                )
            ctx.take_snapshot()

        if len(buildings) < self.target_buildings:
            logger.debug(
                f"Placed {len(buildings)}/{self.target_buildings} buildings in "
                f"{self.building_attempts} attempts"
            )

        # Outline against a copy so fresh walls do not cascade
        before = game_map.tiles.copy(order="F")
        tiles = game_map.tiles
        wood = TileTypeID.WOOD_FLOOR
        for y in range(2, height - 2):
            for x in range(self.wall_x + 2, width - 2):
                if before[x, y] != wood:
                    continue
                if (
                    before[x - 1, y] != wood
                    or before[x + 1, y] != wood
                    or before[x, y - 1] != wood
                    or before[x, y + 1] != wood
                ):
                    tiles[x, y] = TileTypeID.WALL
        ctx.take_snapshot()
        return buildings

    def _add_doors(self, rng: RNG, ctx: GenerationContext) -> list[WorldTilePos]:
        """Cut one door per building in the wall facing the road gap."""
        doors: list[WorldTilePos] = []
        for building in self.buildings:
            door_x = building.x1 + 1 + roll_dice(rng, 1, building.width - 3)
            center_y = building.y1 + building.height // 2
            if center_y > self.wall_gap_y:
                door_y = building.y1
            else:
                door_y = building.y2 - 1
            ctx.game_map.tiles[door_x, door_y] = TileTypeID.FLOOR
            ctx.spawn_list.append((ctx.game_map.tile_index(door_x, door_y), "Door"))
            doors.append((door_x, door_y))
        ctx.take_snapshot()
        return doors

    def _add_paths(self, ctx: GenerationContext, doors: list[WorldTilePos]) -> None:
        """Route a road from every door to the nearest existing road tile."""
        game_map = ctx.game_map
        roads = [game_map.index_to_xy(i) for i in game_map.indices_of(TileTypeID.ROAD)]
        game_map.recompute_blocked()
        for door in doors:
            if not roads:
                break
            destination = min(roads, key=lambda road: distance_squared(door, road))
            path = find_path(game_map, door, destination)
            if not path:
                logger.debug(f"No road reachable from the door at {door}")
            for x, y in path:
                game_map.tiles[x, y] = TileTypeID.ROAD
                roads.append((x, y))
            ctx.take_snapshot()

    # -------------------------------------------------------------------------
    # Population
    # -------------------------------------------------------------------------

    def _populate(
        self, rng: RNG, ctx: GenerationContext, by_size: list[Rect]
    ) -> None:
        game_map = ctx.game_map
        assert ctx.starting_position is not None
        start_idx = game_map.tile_index(*ctx.starting_position)

        for rank, building in enumerate(by_size):
            if rank < len(BUILDING_ROLES):
                role = BUILDING_ROLES[rank]
            elif roll_dice(rng, 1, 6) < 4:
                role = "Hovel"
            else:
                role = "Abandoned"

            if role == "Abandoned":
                self._spawn_rats(rng, ctx, building, start_idx)
            else:
                self._furnish(rng, ctx, building, BUILDING_CONTENTS[role], start_idx)

        for idx in game_map.indices_of(TileTypeID.WOOD_FLOOR):
            x, _y = game_map.index_to_xy(idx)
            if x < self.wall_x and roll_dice(rng, 1, 6) == 1:
                ctx.spawn_list.append((idx, DOCK_FOLK[roll_dice(rng, 1, 3) - 1]))

        occupied = ctx.spawn_indices() | {start_idx}
        for tile in (TileTypeID.GRASS, TileTypeID.ROAD):
            for idx in game_map.indices_of(tile):
                if idx not in occupied and roll_dice(rng, 1, 10) == 1:
                    ctx.spawn_list.append((idx, TOWNSFOLK[roll_dice(rng, 1, 4) - 1]))

    @staticmethod
    def _interior_floor(game_map: GameMap, building: Rect) -> list[TileIndex]:
        return [
            game_map.tile_index(x, y)
            for y in range(building.y1, building.y2)
            for x in range(building.x1, building.x2)
            if game_map.tiles[x, y] == TileTypeID.WOOD_FLOOR
        ]

    def _furnish(
        self,
        rng: RNG,
        ctx: GenerationContext,
        building: Rect,
        contents: tuple[str, ...],
        start_idx: TileIndex,
    ) -> None:
        """Scatter the building's contents in order over its floor."""
        to_place = list(contents)
        for idx in self._interior_floor(ctx.game_map, building):
            if not to_place:
                break
            if idx != start_idx and roll_dice(rng, 1, 3) == 1:
                ctx.spawn_list.append((idx, to_place.pop(0)))

    def _spawn_rats(
        self, rng: RNG, ctx: GenerationContext, building: Rect, start_idx: TileIndex
    ) -> None:
        for idx in self._interior_floor(ctx.game_map, building):
            if idx != start_idx and roll_dice(rng, 1, 2) == 1:
                ctx.spawn_list.append((idx, "Rat"))
