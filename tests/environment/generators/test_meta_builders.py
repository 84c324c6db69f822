"""Tests for room, corridor, placement and spawning meta builders."""

from __future__ import annotations

from random import Random

import numpy as np
import pytest

from delve.environment.generators.catalog import default_catalog
from delve.environment.generators.errors import PipelineConfigError, PlacementError
from delve.environment.generators.pipeline import (
    AreaStartingPosition,
    BspCorridors,
    CentralStartingPosition,
    CorridorSpawner,
    CullUnreachable,
    DistantExit,
    DoglegCorridors,
    DoorPlacement,
    GenerationContext,
    NearestCorridors,
    RoomBasedSpawner,
    RoomBasedStairs,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
    StraightLineCorridors,
    VoronoiSpawning,
    XStart,
    YStart,
)
from delve.environment.generators.pipeline.common import apply_room_to_map
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import Rect
from tests.helpers import (
    HighRoller,
    LowRoller,
    border_is_wall,
    context_from_rows,
    open_context,
    reachable_from,
)

DOORWAY_ROWS = [
    "#########",
    "#...#...#",
    "#.......#",
    "#...#...#",
    "#########",
]


def rooms_context(*rooms: Rect, width: int = 30, height: int = 20) -> GenerationContext:
    """Context with the given rooms recorded and carved."""
    ctx = GenerationContext.create(2, width, height)
    ctx.rooms = list(rooms)
    for room in rooms:
        apply_room_to_map(ctx.game_map, room)
    return ctx


# =============================================================================
# ROOM ORDERING AND DRAWING
# =============================================================================


class TestRoomSorter:
    ROOMS = (Rect(10, 2, 4, 4), Rect(2, 12, 6, 3), Rect(20, 6, 3, 8))

    @pytest.mark.parametrize(
        ("sort_by", "expected"),
        [
            (RoomSort.LEFTMOST, [1, 0, 2]),
            (RoomSort.RIGHTMOST, [2, 0, 1]),
            (RoomSort.TOPMOST, [0, 2, 1]),
            (RoomSort.BOTTOMMOST, [1, 2, 0]),
            (RoomSort.CENTRAL, [2, 0, 1]),
        ],
    )
    def test_sort_orders(self, sort_by: RoomSort, expected: list[int]) -> None:
        ctx = GenerationContext.create(1, 30, 20)
        ctx.rooms = list(self.ROOMS)
        RoomSorter(sort_by).build_map(Random(0), ctx)
        assert ctx.rooms == [self.ROOMS[i] for i in expected]

    def test_requires_rooms(self) -> None:
        with pytest.raises(PipelineConfigError):
            RoomSorter(RoomSort.LEFTMOST).build_map(
                Random(0), GenerationContext.create(1, 10, 10)
            )


class TestRoomDrawer:
    def test_rectangles_on_high_rolls(self) -> None:
        ctx = GenerationContext.create(1, 20, 20)
        ctx.rooms = [Rect(2, 2, 5, 4), Rect(10, 10, 3, 3)]
        RoomDrawer().build_map(HighRoller(0), ctx)
        assert ctx.game_map.count(TileTypeID.FLOOR) == 5 * 4 + 3 * 3

    def test_circle_on_a_one(self) -> None:
        ctx = GenerationContext.create(1, 12, 12)
        ctx.rooms = [Rect(2, 2, 6, 6)]
        RoomDrawer().build_map(LowRoller(0), ctx)

        tiles = ctx.game_map.tiles
        assert tiles[5, 5] == TileTypeID.FLOOR
        assert tiles[5, 2] == TileTypeID.FLOOR
        assert tiles[2, 2] == TileTypeID.WALL
        assert tiles[8, 8] == TileTypeID.WALL


# =============================================================================
# COSMETIC MODIFIERS
# =============================================================================


class TestRoomExploder:
    def test_explosions_add_floor(self) -> None:
        ctx = rooms_context(Rect(10, 6, 6, 6))
        before = ctx.game_map.count(TileTypeID.FLOOR)
        RoomExploder().build_map(HighRoller(0), ctx)

        assert ctx.game_map.count(TileTypeID.FLOOR) > before
        assert ctx.game_map.count(TileTypeID.DOWN_STAIRS) == 0
        assert border_is_wall(ctx.game_map)

    def test_explosions_stay_connected(self) -> None:
        ctx = rooms_context(Rect(10, 6, 6, 6))
        RoomExploder().build_map(HighRoller(0), ctx)
        reachable = reachable_from(ctx.game_map, (13, 9))
        assert np.array_equal(reachable, ctx.game_map.tiles == TileTypeID.FLOOR)


class TestRoomCornerRounder:
    def test_fills_inner_corners(self) -> None:
        ctx = rooms_context(Rect(1, 1, 4, 4), width=8, height=8)
        RoomCornerRounder().build_map(Random(0), ctx)

        tiles = ctx.game_map.tiles
        for x, y in ((2, 2), (5, 2), (2, 5), (5, 5)):
            assert tiles[x, y] == TileTypeID.WALL
        assert ctx.game_map.count(TileTypeID.FLOOR) == 12

    def test_drops_spawns_on_filled_corners(self) -> None:
        ctx = rooms_context(Rect(1, 1, 4, 4), width=8, height=8)
        corner = ctx.game_map.tile_index(2, 2)
        middle = ctx.game_map.tile_index(3, 3)
        ctx.spawn_list.extend([(corner, "Goblin"), (middle, "Orc")])

        RoomCornerRounder().build_map(Random(0), ctx)
        assert ctx.spawn_list == [(middle, "Orc")]


# =============================================================================
# ROOM-BASED PLACEMENT
# =============================================================================


class TestRoomPlacement:
    def test_start_in_first_room(self) -> None:
        ctx = rooms_context(Rect(2, 2, 5, 5), Rect(15, 8, 5, 5))
        RoomBasedStartingPosition().build_map(Random(0), ctx)
        assert ctx.starting_position == (4, 4)

    def test_no_rooms_raises(self) -> None:
        ctx = rooms_context()
        with pytest.raises(PlacementError):
            RoomBasedStartingPosition().build_map(Random(0), ctx)
        with pytest.raises(PlacementError):
            RoomBasedStairs().build_map(Random(0), ctx)

    def test_stairs_in_last_room_only(self) -> None:
        ctx = rooms_context(Rect(2, 2, 5, 5), Rect(15, 8, 5, 5))
        ctx.game_map.tiles[4, 4] = TileTypeID.DOWN_STAIRS
        RoomBasedStairs().build_map(Random(0), ctx)

        stairs = ctx.game_map.indices_of(TileTypeID.DOWN_STAIRS)
        assert [ctx.game_map.index_to_xy(i) for i in stairs] == [(17, 10)]

    def test_spawner_skips_first_room(self) -> None:
        first, second = Rect(2, 2, 6, 6), Rect(15, 8, 6, 6)
        ctx = rooms_context(first, second)
        RoomBasedSpawner(default_catalog()).build_map(HighRoller(0), ctx)

        second_interior = {ctx.game_map.tile_index(x, y) for x, y in second.interior()}
        assert len(ctx.spawn_list) == 5
        assert {idx for idx, _ in ctx.spawn_list} <= second_interior


# =============================================================================
# CORRIDORS
# =============================================================================


class TestCorridors:
    LEFT_ROOM = Rect(1, 1, 5, 5)
    RIGHT_ROOM = Rect(20, 12, 5, 5)

    @pytest.mark.parametrize(
        "builder_cls",
        [DoglegCorridors, NearestCorridors, StraightLineCorridors, BspCorridors],
    )
    def test_corridors_connect_rooms(self, builder_cls: type) -> None:
        ctx = rooms_context(self.LEFT_ROOM, self.RIGHT_ROOM)
        builder_cls().build_map(Random(2), ctx)

        assert len(ctx.corridors) == 1
        reachable = reachable_from(ctx.game_map, self.LEFT_ROOM.center())
        assert reachable[self.RIGHT_ROOM.center()]

    @pytest.mark.parametrize(
        "builder_cls",
        [DoglegCorridors, NearestCorridors, StraightLineCorridors, BspCorridors],
    )
    def test_corridors_record_new_floor(self, builder_cls: type) -> None:
        ctx = rooms_context(self.LEFT_ROOM, self.RIGHT_ROOM)
        floor_before = set(ctx.game_map.indices_of(TileTypeID.FLOOR))
        builder_cls().build_map(Random(2), ctx)

        opened = [idx for corridor in ctx.corridors for idx in corridor]
        assert opened
        assert not floor_before & set(opened)
        assert set(ctx.game_map.indices_of(TileTypeID.FLOOR)) == floor_before | set(
            opened
        )

    def test_bsp_corridors_one_per_pair(self) -> None:
        ctx = rooms_context(Rect(1, 1, 5, 5), Rect(10, 1, 5, 5), Rect(20, 10, 5, 5))
        BspCorridors().build_map(Random(5), ctx)
        assert len(ctx.corridors) == 2

    @pytest.mark.parametrize("seed", range(10))
    def test_bsp_corridors_join_every_room(self, seed: int) -> None:
        rooms = (Rect(1, 1, 5, 5), Rect(10, 1, 5, 5), Rect(20, 10, 5, 5))
        ctx = rooms_context(*rooms)
        BspCorridors().build_map(Random(seed), ctx)

        reachable = reachable_from(ctx.game_map, rooms[0].center())
        assert all(reachable[room.center()] for room in rooms)

    def test_nearest_joins_closest_first(self) -> None:
        near, far = Rect(8, 1, 4, 4), Rect(22, 12, 4, 4)
        ctx = rooms_context(Rect(1, 1, 4, 4), far, near)
        NearestCorridors().build_map(Random(0), ctx)

        first = ctx.corridors[0]
        xs = [ctx.game_map.index_to_xy(idx)[0] for idx in first]
        assert max(xs) < far.x1

    def test_corridor_spawner(self) -> None:
        ctx = rooms_context(self.LEFT_ROOM, self.RIGHT_ROOM)
        DoglegCorridors().build_map(Random(2), ctx)
        CorridorSpawner(default_catalog()).build_map(HighRoller(0), ctx)

        corridor_tiles = set(ctx.corridors[0])
        assert len(ctx.spawn_list) == 5
        assert {idx for idx, _ in ctx.spawn_list} <= corridor_tiles

    def test_corridor_spawner_requires_corridors(self) -> None:
        ctx = rooms_context(self.LEFT_ROOM)
        with pytest.raises(PipelineConfigError):
            CorridorSpawner().build_map(Random(0), ctx)


# =============================================================================
# STARTING POSITIONS
# =============================================================================


class TestStartingPositions:
    @pytest.mark.parametrize(
        ("x", "y", "expected"),
        [
            (XStart.LEFT, YStart.TOP, (1, 1)),
            (XStart.CENTER, YStart.CENTER, (10, 5)),
            (XStart.RIGHT, YStart.BOTTOM, (18, 8)),
        ],
    )
    def test_area_start_on_open_map(
        self, x: XStart, y: YStart, expected: tuple[int, int]
    ) -> None:
        ctx = open_context(20, 10)
        AreaStartingPosition(x, y).build_map(Random(0), ctx)
        assert ctx.starting_position == expected

    def test_area_start_nearest_floor(self) -> None:
        ctx = context_from_rows(
            [
                "#######",
                "####.##",
                "#.#####",
                "#######",
            ]
        )
        AreaStartingPosition(XStart.LEFT, YStart.TOP).build_map(Random(0), ctx)
        assert ctx.starting_position == (1, 2)

    def test_area_start_ties_go_to_lowest_index(self) -> None:
        ctx = context_from_rows(
            [
                "#####",
                "###.#",
                "#####",
                "#.###",
                "#####",
            ]
        )
        AreaStartingPosition(XStart.LEFT, YStart.TOP).build_map(Random(0), ctx)
        assert ctx.starting_position == (3, 1)

    def test_area_start_without_floor_raises(self) -> None:
        ctx = GenerationContext.create(1, 10, 10)
        with pytest.raises(PlacementError):
            AreaStartingPosition(XStart.LEFT, YStart.TOP).build_map(Random(0), ctx)

    def test_central_start(self) -> None:
        ctx = context_from_rows(
            [
                "#######",
                "#.#####",
                "#######",
            ]
        )
        CentralStartingPosition().build_map(Random(0), ctx)
        assert ctx.starting_position == (1, 1)


# =============================================================================
# CONNECTIVITY AND EXITS
# =============================================================================


class TestCullUnreachable:
    def test_walls_off_islands_and_their_spawns(self) -> None:
        ctx = context_from_rows(
            [
                "#########",
                "#...#...#",
                "#...#...#",
                "#########",
            ]
        )
        ctx.starting_position = (1, 1)
        kept = ctx.game_map.tile_index(2, 2)
        dropped = ctx.game_map.tile_index(6, 2)
        ctx.spawn_list.extend([(kept, "Goblin"), (dropped, "Orc")])

        CullUnreachable().build_map(Random(0), ctx)

        assert ctx.game_map.count(TileTypeID.FLOOR) == 6
        assert (ctx.game_map.tiles[5:8, 1:3] == TileTypeID.WALL).all()
        assert ctx.spawn_list == [(kept, "Goblin")]

    def test_drops_spawns_on_walls(self) -> None:
        ctx = context_from_rows(["#####", "#...#", "#####"])
        ctx.starting_position = (1, 1)
        ctx.spawn_list.append((0, "Goblin"))
        CullUnreachable().build_map(Random(0), ctx)
        assert ctx.spawn_list == []

    def test_drops_stranded_rooms(self) -> None:
        first, stranded = Rect(1, 1, 4, 4), Rect(10, 1, 4, 4)
        ctx = rooms_context(first, stranded, width=20, height=8)
        ctx.starting_position = first.center()
        CullUnreachable().build_map(Random(0), ctx)

        assert ctx.rooms == [first]
        assert ctx.game_map.tiles[stranded.center()] == TileTypeID.WALL

    def test_requires_start(self) -> None:
        ctx = context_from_rows(["#####", "#...#", "#####"])
        with pytest.raises(PipelineConfigError):
            CullUnreachable().build_map(Random(0), ctx)


class TestDistantExit:
    def test_exit_at_far_end(self) -> None:
        ctx = context_from_rows(
            [
                "########",
                "#......#",
                "######.#",
                "#......#",
                "########",
            ]
        )
        ctx.starting_position = (1, 1)
        DistantExit().build_map(Random(0), ctx)
        assert ctx.game_map.tile_at(ctx.game_map.tile_index(1, 3)) == (
            TileTypeID.DOWN_STAIRS
        )

    def test_ties_go_to_lowest_index(self) -> None:
        ctx = context_from_rows(["#########", "#.......#", "#########"])
        ctx.starting_position = (4, 1)
        DistantExit().build_map(Random(0), ctx)
        assert ctx.game_map.indices_of(TileTypeID.DOWN_STAIRS) == [10]

    def test_replaces_existing_stairs(self) -> None:
        ctx = context_from_rows(["########", "#.>....#", "########"])
        ctx.starting_position = (1, 1)
        DistantExit().build_map(Random(0), ctx)

        assert ctx.game_map.tiles[2, 1] == TileTypeID.FLOOR
        assert ctx.game_map.indices_of(TileTypeID.DOWN_STAIRS) == [14]

    def test_ignores_unreachable_floor(self) -> None:
        ctx = context_from_rows(["##########", "#...##...#", "##########"])
        ctx.starting_position = (1, 1)
        DistantExit().build_map(Random(0), ctx)
        assert ctx.game_map.indices_of(TileTypeID.DOWN_STAIRS) == [13]

    def test_no_reachable_floor_raises(self) -> None:
        ctx = context_from_rows(["###", "#=#", "###"])
        ctx.starting_position = (1, 1)
        with pytest.raises(PlacementError):
            DistantExit().build_map(Random(0), ctx)


# =============================================================================
# DOORS
# =============================================================================


class TestDoorPlacement:
    def test_doorway_found_by_scan(self) -> None:
        ctx = context_from_rows(DOORWAY_ROWS)
        DoorPlacement().build_map(LowRoller(0), ctx)
        assert ctx.spawn_list == [(ctx.game_map.tile_index(4, 2), "Door")]

    def test_scan_rolls_for_each_doorway(self) -> None:
        ctx = context_from_rows(DOORWAY_ROWS)
        DoorPlacement().build_map(HighRoller(0), ctx)
        assert ctx.spawn_list == []

    def test_occupied_doorway_is_skipped(self) -> None:
        ctx = context_from_rows(DOORWAY_ROWS)
        doorway = ctx.game_map.tile_index(4, 2)
        ctx.spawn_list.append((doorway, "Goblin"))
        DoorPlacement().build_map(LowRoller(0), ctx)
        assert ctx.spawn_list == [(doorway, "Goblin")]

    def test_corridor_heads_only(self) -> None:
        ctx = context_from_rows(DOORWAY_ROWS)
        doorway = ctx.game_map.tile_index(4, 2)
        ctx.corridors = [[doorway, 20, 21], [doorway, 20], [11, 12, 13]]
        DoorPlacement().build_map(LowRoller(0), ctx)
        assert ctx.spawn_list == [(doorway, "Door")]


# =============================================================================
# VORONOI SPAWNING
# =============================================================================


class TestVoronoiSpawning:
    def test_spawns_on_distinct_floor_tiles(self) -> None:
        ctx = open_context(60, 40, depth=5)
        VoronoiSpawning(default_catalog()).build_map(Random(11), ctx)

        indices = [idx for idx, _ in ctx.spawn_list]
        names = {entry.name for entry in default_catalog().spawns}
        assert indices
        assert len(set(indices)) == len(indices)
        for idx, name in ctx.spawn_list:
            assert ctx.game_map.tile_at(idx) == TileTypeID.FLOOR
            assert name in names
