from __future__ import annotations

import numpy as np
import pytest

from delve.environment import tile_types
from delve.environment.tile_types import TileTypeID


def record(tile: TileTypeID) -> np.ndarray:
    return tile_types._registered_tile_types[tile]


class TestRegistration:
    def test_every_kind_has_properties(self) -> None:
        for tile in TileTypeID:
            assert str(record(tile)["display_name"]) != ""

    def test_duplicate_registration_raises(self) -> None:
        data = tile_types.make_tile_type_data(
            walkable=True, transparent=True, display_name="Dup", glyph="?"
        )
        with pytest.raises(ValueError, match="already registered"):
            tile_types.register_tile_type(TileTypeID.FLOOR, data)

    def test_display_names(self) -> None:
        assert str(record(TileTypeID.WALL)["display_name"]) == "Wall"
        assert str(record(TileTypeID.SHALLOW_WATER)["display_name"]) == "Shallow Water"


class TestProperties:
    @pytest.mark.parametrize("tile", [TileTypeID.WALL, TileTypeID.DEEP_WATER])
    def test_not_walkable(self, tile: TileTypeID) -> None:
        assert not tile_types.get_walkable_map(np.array([tile], dtype=np.uint8))[0]

    def test_everything_else_is_walkable(self) -> None:
        blocking = {TileTypeID.WALL, TileTypeID.DEEP_WATER}
        others = np.array(sorted(set(TileTypeID) - blocking), dtype=np.uint8)
        assert tile_types.get_walkable_map(others).all()

    def test_only_walls_are_opaque(self) -> None:
        assert tile_types.is_opaque(TileTypeID.WALL)
        for tile in set(TileTypeID) - {TileTypeID.WALL}:
            assert not tile_types.is_opaque(tile), tile.name

    @pytest.mark.parametrize(
        ("tile", "cost"),
        [
            (TileTypeID.FLOOR, 1.0),
            (TileTypeID.ROAD, 0.8),
            (TileTypeID.GRASS, 1.1),
            (TileTypeID.SHALLOW_WATER, 1.2),
        ],
    )
    def test_costs(self, tile: TileTypeID, cost: float) -> None:
        assert tile_types.tile_cost(tile) == pytest.approx(cost)


class TestVectorisedLookups:
    def test_maps_follow_input_shape(self) -> None:
        tiles = np.array(
            [
                [TileTypeID.WALL, TileTypeID.FLOOR],
                [TileTypeID.ROAD, TileTypeID.DEEP_WATER],
            ],
            dtype=np.uint8,
        )
        walkable = tile_types.get_walkable_map(tiles)

        assert walkable.tolist() == [[False, True], [True, False]]
        assert tile_types.get_cost_map(tiles)[1, 0] == pytest.approx(0.8)

    def test_glyphs(self) -> None:
        tiles = np.array(list(TileTypeID), dtype=np.uint8)
        glyphs = "".join(chr(g) for g in tile_types.get_glyph_map(tiles))
        assert glyphs == "#.><=\"~w_+;"
