"""Tests for the stock chains and generate_level()."""

from __future__ import annotations

import logging
from random import Random

import numpy as np
import pytest

from delve.environment.generators.base import GeneratedLevel
from delve.environment.generators.errors import MapGenerationError
from delve.environment.generators.pipeline import (
    CHAIN_NAMES,
    BuilderChain,
    CullUnreachable,
    DistantExit,
    GenerationContext,
    InitialBuilder,
    RoomBasedStartingPosition,
    SimpleMapBuilder,
    XStart,
    YStart,
    create_chain,
    factory,
    forest_builder,
    generate_level,
    level_builder,
    random_builder,
    simple_builder,
)
from delve.environment.generators.pipeline.factory import random_start_position
from delve.util.rng import RNG
from tests.helpers import assert_exit_reachable, assert_valid_level


class Collapses(InitialBuilder):
    """Fails the way a real builder would when it cannot finish."""

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        raise MapGenerationError("no room to work", stage=self.name)


# =============================================================================
# CHAIN SELECTION
# =============================================================================


class TestCreateChain:
    @pytest.mark.parametrize("name", CHAIN_NAMES)
    def test_every_name_builds_a_valid_chain(self, name: str) -> None:
        chain = create_chain(name, 3, 80, 50, Random(1))
        assert isinstance(chain, BuilderChain)
        chain.validate()

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown chain name"):
            create_chain("swamp", 3, 80, 50, Random(1))

    def test_depth_one_is_the_town(self) -> None:
        chain = level_builder(1, 80, 50, Random(1))
        assert chain.describe() == ["TownBuilder"]

    def test_deeper_levels_use_the_random_policy(self) -> None:
        assert level_builder(2, 80, 50, Random(5)).describe() == random_builder(
            2, 80, 50, Random(5)
        ).describe()

    def test_random_start_position(self) -> None:
        x, y = random_start_position(Random(3))
        assert isinstance(x, XStart)
        assert isinstance(y, YStart)


class TestRandomBuilder:
    @pytest.mark.parametrize("seed", range(60))
    def test_always_a_valid_composition(self, seed: int) -> None:
        random_builder(4, 80, 50, Random(seed)).validate()

    def test_same_seed_same_chain(self) -> None:
        first = random_builder(4, 80, 50, Random(17)).describe()
        second = random_builder(4, 80, 50, Random(17)).describe()
        assert first == second

    def test_always_ends_with_doors_and_vaults(self) -> None:
        for seed in range(20):
            names = random_builder(4, 80, 50, Random(seed)).describe()
            assert names[-2:] == ["DoorPlacement", "PrefabVaultBuilder"]

    def test_draws_both_families(self) -> None:
        room_starters = {"SimpleMapBuilder", "BspDungeonBuilder", "BspInteriorBuilder"}
        starters = {
            random_builder(4, 80, 50, Random(seed)).describe()[0]
            for seed in range(60)
        }
        assert starters & room_starters
        assert starters - room_starters


class TestStockChains:
    def test_simple_chain(self) -> None:
        assert simple_builder(2, 80, 50).describe() == [
            "SimpleMapBuilder",
            "RoomBasedStartingPosition",
            "CullUnreachable",
            "DistantExit",
            "RoomBasedSpawner",
            "DoorPlacement",
        ]

    def test_forest_chain(self) -> None:
        assert forest_builder(2, 80, 50).describe() == [
            "CellularAutomataBuilder",
            "AreaStartingPosition",
            "CullUnreachable",
            "AreaStartingPosition",
            "VoronoiSpawning",
            "DistantExit",
        ]

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_forest_levels_are_valid(self, seed: int) -> None:
        level = forest_builder(2, 80, 50).run(Random(seed))
        assert_valid_level(level)
        assert_exit_reachable(level)


# =============================================================================
# GENERATION
# =============================================================================


class TestGenerateLevel:
    @pytest.mark.parametrize("seed", range(8))
    def test_levels_are_valid(self, seed: int) -> None:
        level = generate_level(3, seed=seed)
        assert level.game_map.width == 80
        assert level.game_map.height == 50
        assert_valid_level(level)

    def test_same_seed_same_level(self) -> None:
        first = generate_level(4, seed="burrito1")
        second = generate_level(4, seed="burrito1")

        assert np.array_equal(first.game_map.tiles, second.game_map.tiles)
        assert first.starting_position == second.starting_position
        assert first.spawn_list == second.spawn_list
        assert first.builders == second.builders

    def test_depth_one_is_the_town(self) -> None:
        level = generate_level(1, seed=5)
        assert level.builders == ["TownBuilder"]
        assert level.game_map.name == "The Town"

    def test_history_on_request(self) -> None:
        assert generate_level(2, seed=3).history == []
        assert generate_level(2, seed=3, record_history=True).history

    @staticmethod
    def _small_dungeon(seed: int) -> GeneratedLevel:
        chain = BuilderChain(2, 50, 50, "Small")
        chain.start_with(SimpleMapBuilder(30))
        chain.with_(RoomBasedStartingPosition())
        chain.with_(CullUnreachable())
        chain.with_(DistantExit())
        return chain.run(Random(seed))

    @pytest.mark.parametrize("seed", range(1, 6))
    def test_small_rooms_and_corridors(self, seed: int) -> None:
        level = self._small_dungeon(seed)
        assert_valid_level(level)
        assert_exit_reachable(level)

    def test_small_dungeon_is_reproducible(self) -> None:
        first = self._small_dungeon(77)
        second = self._small_dungeon(77)

        assert first.game_map.tiles.tobytes() == second.game_map.tiles.tobytes()
        assert first.starting_position == second.starting_position
        assert first.exit_positions == second.exit_positions
        assert len(first.exit_positions) == 1

    @pytest.mark.parametrize(
        ("depth", "seed"), [(2, 52), (5, 33), *((4, seed) for seed in range(40))]
    )
    def test_exit_reachable_from_start(self, depth: int, seed: int) -> None:
        level = generate_level(depth, seed=seed)
        assert_valid_level(level)
        assert_exit_reachable(level)

    def test_room_chains_cull_before_the_exit(self) -> None:
        room_starters = {"SimpleMapBuilder", "BspDungeonBuilder", "BspInteriorBuilder"}
        for seed in range(40):
            names = random_builder(4, 80, 50, Random(seed)).describe()
            if names[0] not in room_starters:
                continue
            cull = names.index("CullUnreachable")
            exit_step = next(
                i
                for i, name in enumerate(names)
                if name in ("RoomBasedStairs", "DistantExit")
            )
            assert cull < exit_step

    def test_falls_back_to_simple_chain(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        def broken_chain(depth: int, width: int, height: int, *args, **kwargs):
            chain = BuilderChain(depth, width, height, "Broken")
            chain.start_with(Collapses())
            return chain

        monkeypatch.setattr(factory, "level_builder", broken_chain)
        with caplog.at_level(logging.WARNING):
            level = generate_level(3, seed=9)

        assert "Falling back to the simple chain." in caplog.text
        assert "Collapses" in caplog.text
        assert level.builders[0] == "SimpleMapBuilder"
        assert_valid_level(level)

    def test_town_too_small_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            level = generate_level(1, width=36, height=30, seed=5)

        assert "TownBuilder" in caplog.text
        assert level.builders[0] == "SimpleMapBuilder"
        assert (level.game_map.width, level.game_map.height) == (36, 30)
        assert_valid_level(level)
