"""Tests for the builders that draft a map from solid rock."""

from __future__ import annotations

from collections.abc import Callable
from random import Random

import numpy as np
import pytest

from delve.environment.generators.errors import MapGenerationError
from delve.environment.generators.pipeline import (
    BspDungeonBuilder,
    BspInteriorBuilder,
    CellularAutomataBuilder,
    DLABuilder,
    DrunkardsWalkBuilder,
    GenerationContext,
    InitialBuilder,
    MazeBuilder,
    SimpleMapBuilder,
    VoronoiCellBuilder,
)
from delve.environment.generators.pipeline.common import Symmetry
from delve.environment.generators.pipeline.layers import DrunkSpawnMode
from delve.environment.generators.pipeline.layers.cellular import (
    cellular_automata_step,
)
from delve.environment.generators.pipeline.layers.maze import (
    BOTTOM,
    RIGHT,
    MazeGrid,
)
from delve.environment.generators.pipeline.layers.voronoi import cell_boundaries
from delve.environment.tile_types import TileTypeID
from delve.util.coordinates import DistanceMetric
from tests.helpers import border_is_wall, map_from_rows, reachable_from


def build(
    builder: InitialBuilder, width: int = 80, height: int = 50, seed: int = 7
) -> GenerationContext:
    ctx = GenerationContext.create(2, width, height)
    builder.build_map(Random(seed), ctx)
    return ctx


def floor_mask(ctx: GenerationContext) -> np.ndarray:
    return ctx.game_map.tiles == TileTypeID.FLOOR


# =============================================================================
# ROOMS
# =============================================================================


class TestSimpleMapBuilder:
    def test_rooms_do_not_touch(self) -> None:
        rooms = build(SimpleMapBuilder()).rooms
        assert rooms
        for i, room in enumerate(rooms):
            for other in rooms[i + 1 :]:
                assert not room.intersects(other)

    def test_carved_rooms_are_connected(self) -> None:
        ctx = build(SimpleMapBuilder())
        reachable = reachable_from(ctx.game_map, ctx.rooms[0].center())

        assert border_is_wall(ctx.game_map)
        for room in ctx.rooms:
            assert reachable[room.center()]

    def test_uncarved_leaves_solid_rock(self) -> None:
        ctx = build(SimpleMapBuilder(carve=False))
        assert ctx.rooms
        assert ctx.game_map.count(TileTypeID.FLOOR) == 0

    def test_room_count_is_capped(self) -> None:
        assert len(build(SimpleMapBuilder(max_rooms=3)).rooms) <= 3

    def test_same_seed_same_rooms(self) -> None:
        assert build(SimpleMapBuilder(), seed=3).rooms == (
            build(SimpleMapBuilder(), seed=3).rooms
        )


class TestBspDungeonBuilder:
    def test_rooms_sorted_left_to_right(self) -> None:
        rooms = build(BspDungeonBuilder()).rooms
        assert len(rooms) > 1
        assert [r.x1 for r in rooms] == sorted(r.x1 for r in rooms)

    def test_rooms_keep_clear_of_the_edge(self) -> None:
        ctx = build(BspDungeonBuilder())
        for room in ctx.rooms:
            assert room.x1 >= 3
            assert room.y1 >= 3
            assert room.x2 <= ctx.width - 4
            assert room.y2 <= ctx.height - 4

    def test_carved_rooms_are_connected(self) -> None:
        ctx = build(BspDungeonBuilder())
        reachable = reachable_from(ctx.game_map, ctx.rooms[0].center())
        for room in ctx.rooms:
            assert reachable[room.center()]


class TestBspInteriorBuilder:
    def test_one_corridor_between_each_pair(self) -> None:
        ctx = build(BspInteriorBuilder())
        assert len(ctx.rooms) > 1
        assert len(ctx.corridors) == len(ctx.rooms) - 1

    def test_everything_is_connected(self) -> None:
        ctx = build(BspInteriorBuilder())
        reachable = reachable_from(ctx.game_map, ctx.rooms[0].center())
        assert np.array_equal(reachable, floor_mask(ctx))
        assert border_is_wall(ctx.game_map)


# =============================================================================
# CELLULAR AUTOMATA
# =============================================================================


class TestCellularAutomata:
    def test_stable_shape_is_a_fixed_point(self) -> None:
        rows = [
            "######",
            "##..##",
            "#....#",
            "#....#",
            "##..##",
            "######",
        ]
        game_map = map_from_rows(rows)
        assert np.array_equal(cellular_automata_step(game_map.tiles), game_map.tiles)

    def test_lone_floor_fills_in(self) -> None:
        game_map = map_from_rows(["#####", "#...#", "#...#", "#...#", "#####"])
        game_map.tiles[:] = TileTypeID.FLOOR
        stepped = cellular_automata_step(game_map.tiles)
        # A tile with no wall neighbours becomes wall
        assert stepped[2, 2] == TileTypeID.WALL

    def test_step_returns_new_array(self) -> None:
        game_map = map_from_rows(["####", "#..#", "####"])
        before = game_map.tiles.copy()
        cellular_automata_step(game_map.tiles)
        assert np.array_equal(game_map.tiles, before)

    def test_builder_keeps_the_border(self) -> None:
        ctx = build(CellularAutomataBuilder())
        assert border_is_wall(ctx.game_map)
        assert ctx.game_map.count(TileTypeID.FLOOR) > 0

    def test_snapshot_per_pass(self) -> None:
        ctx = GenerationContext.create(2, 30, 20, record_history=True)
        CellularAutomataBuilder(passes=4).build_map(Random(1), ctx)
        assert len(ctx.history) == 5


# =============================================================================
# DRUNKARD'S WALK
# =============================================================================


class TestDrunkardsWalk:
    def test_presets(self) -> None:
        settings = DrunkardsWalkBuilder.open_area().settings
        assert settings.spawn_mode is DrunkSpawnMode.STARTING_POINT
        assert (settings.lifetime, settings.floor_percent) == (400, 0.5)

        winding = DrunkardsWalkBuilder.winding_passages().settings
        assert (winding.lifetime, winding.floor_percent) == (100, 0.4)
        assert DrunkardsWalkBuilder.open_halls().settings.spawn_mode is (
            DrunkSpawnMode.RANDOM
        )
        assert DrunkardsWalkBuilder.fat_passages().settings.brush_size == 2
        assert DrunkardsWalkBuilder.fearful_symmetry().settings.symmetry is (
            Symmetry.BOTH
        )

    @pytest.mark.parametrize(
        "preset",
        [
            DrunkardsWalkBuilder.open_area,
            DrunkardsWalkBuilder.open_halls,
            DrunkardsWalkBuilder.winding_passages,
            DrunkardsWalkBuilder.fat_passages,
        ],
    )
    def test_reaches_floor_quota(
        self, preset: Callable[[], DrunkardsWalkBuilder]
    ) -> None:
        builder = preset()
        ctx = build(builder, 40, 30)
        quota = int(builder.settings.floor_percent * 40 * 30)

        assert ctx.game_map.count(TileTypeID.FLOOR) >= quota
        assert ctx.game_map.count(TileTypeID.DOWN_STAIRS) == 0
        assert border_is_wall(ctx.game_map)

    def test_fearful_symmetry_mirrors_both_axes(self) -> None:
        ctx = build(DrunkardsWalkBuilder.fearful_symmetry(), 40, 30)
        floor = floor_mask(ctx)
        for y in range(1, 30):
            for x in range(1, 40):
                assert floor[x, y] == floor[40 - x, y]
                assert floor[x, y] == floor[x, 30 - y]

    def test_walk_is_connected(self) -> None:
        ctx = build(DrunkardsWalkBuilder.open_area(), 40, 30)
        reachable = reachable_from(ctx.game_map, (20, 15))
        assert np.array_equal(reachable, floor_mask(ctx))


# =============================================================================
# MAZE
# =============================================================================


class TestMaze:
    def test_grid_matches_map(self) -> None:
        builder = MazeBuilder()
        build(builder, 40, 30)
        assert (builder.grid.columns, builder.grid.rows) == (18, 13)

    def test_every_cell_is_visited_and_drawn(self) -> None:
        builder = MazeBuilder()
        ctx = build(builder, 40, 30)
        for cell in builder.grid.cells:
            assert cell.visited
            x, y = (cell.column + 1) * 2, (cell.row + 1) * 2
            assert ctx.game_map.tiles[x, y] == TileTypeID.FLOOR

    def test_maze_is_a_spanning_tree(self) -> None:
        """A perfect maze opens exactly cells - 1 passages."""
        builder = MazeBuilder()
        build(builder, 40, 30)
        cells = builder.grid.cells
        passages = sum(
            (not cell.walls[RIGHT]) + (not cell.walls[BOTTOM]) for cell in cells
        )
        assert passages == len(cells) - 1

    def test_maze_is_connected(self) -> None:
        ctx = build(MazeBuilder(), 40, 30)
        reachable = reachable_from(ctx.game_map, (2, 2))
        assert np.array_equal(reachable, floor_mask(ctx))

    def test_empty_grid_raises(self) -> None:
        with pytest.raises(MapGenerationError, match="at least one cell"):
            MazeGrid(0, 3)

    def test_tiny_map_names_the_stage(self) -> None:
        with pytest.raises(MapGenerationError, match="too small for a maze") as excinfo:
            build(MazeBuilder(), 5, 20)
        assert excinfo.value.stage == "MazeBuilder"


# =============================================================================
# DIFFUSION-LIMITED AGGREGATION
# =============================================================================


class TestDLA:
    @pytest.mark.parametrize(
        "preset",
        [
            DLABuilder.walk_inwards,
            DLABuilder.walk_outwards,
            DLABuilder.central_attractor,
            DLABuilder.insectoid,
        ],
    )
    def test_reaches_floor_quota(self, preset: Callable[[], DLABuilder]) -> None:
        builder = preset()
        ctx = build(builder, 40, 30)
        assert ctx.game_map.count(TileTypeID.FLOOR) >= int(0.25 * 40 * 30)
        assert ctx.game_map.tiles[20, 15] == TileTypeID.FLOOR

    def test_walk_inwards_is_connected(self) -> None:
        ctx = build(DLABuilder.walk_inwards(), 40, 30)
        reachable = reachable_from(ctx.game_map, (20, 15))
        assert np.array_equal(reachable, floor_mask(ctx))


# =============================================================================
# VORONOI
# =============================================================================


class TestVoronoi:
    def test_straight_split_has_no_boundary(self) -> None:
        membership = np.zeros((6, 6), dtype=np.int64)
        membership[3:, :] = 1
        assert not cell_boundaries(membership).any()

    def test_checkerboard_is_all_boundary(self) -> None:
        xs, ys = np.indices((6, 6))
        membership = (xs + ys) % 2
        boundary = cell_boundaries(membership)
        assert boundary[1:-1, 1:-1].all()
        assert not boundary[0, :].any()

    def test_caverns_carve_cells(self) -> None:
        builder = VoronoiCellBuilder(DistanceMetric.MANHATTAN, seed_count=20)
        ctx = build(builder, 40, 30)
        boundary = cell_boundaries(builder.membership)
        interior = np.zeros_like(boundary)
        interior[1:-1, 1:-1] = True

        assert np.array_equal(floor_mask(ctx), interior & ~boundary)

    def test_caverns_are_the_default(self) -> None:
        assert VoronoiCellBuilder().render == "caverns"
        assert VoronoiCellBuilder.chebyshev().render == "caverns"

    def test_lattice_carves_boundaries(self) -> None:
        builder = VoronoiCellBuilder(seed_count=20, render="lattice")
        ctx = build(builder, 40, 30)
        assert np.array_equal(floor_mask(ctx), cell_boundaries(builder.membership))

    def test_unknown_render_raises(self) -> None:
        with pytest.raises(ValueError, match="render mode"):
            VoronoiCellBuilder(render="mosaic")

    def test_presets_use_their_metric(self) -> None:
        assert VoronoiCellBuilder.pythagoras().metric is DistanceMetric.PYTHAGORAS
        assert VoronoiCellBuilder.manhattan().metric is DistanceMetric.MANHATTAN
        assert VoronoiCellBuilder.chebyshev().metric is DistanceMetric.CHEBYSHEV
