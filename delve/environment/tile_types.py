"""
Tile Type system using the flyweight pattern.

This module defines:
- `TileTypeID`: the enumerated terrain kinds. `GameMap` stores a NumPy array of
  these IDs rather than full tile records.
- `TileTypeData`: the intrinsic properties of a *type* of tile (walkable,
  transparent, traversal cost, display name and debug glyph). These are pure
  functions of the kind and are never stored per tile.
- A registration system that validates every kind is described exactly once.
- Vectorised helpers that turn a map of IDs into a map of one property, used by
  the pathfinding helpers and `GameMap.recompute_blocked()`.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np


class TileTypeID(IntEnum):
    """Terrain kinds. Values double as indices into the property arrays."""

    WALL = 0
    FLOOR = 1
    DOWN_STAIRS = 2
    UP_STAIRS = 3
    ROAD = 4
    GRASS = 5
    SHALLOW_WATER = 6
    DEEP_WATER = 7
    WOOD_FLOOR = 8
    BRIDGE = 9
    GRAVEL = 10


# Defines the intrinsic data for a *type* of tile (flyweight).
TileTypeData = np.dtype(
    [
        ("walkable", bool),
        ("transparent", bool),  # Line of sight; False means opaque
        ("cost", np.float32),  # Traversal cost for pathfinding (walkable kinds only)
        ("display_name", "U32"),
        ("glyph", np.int32),  # Character code for ASCII dumps (e.g., ord('#'))
    ]
)

# --- Tile Type Registration ---

_registered_tile_types: dict[TileTypeID, np.ndarray] = {}


def register_tile_type(
    tile_id: TileTypeID, tile_type_data_instance: np.ndarray
) -> None:
    """
    Registers the properties of a tile kind.

    Args:
        tile_id: The kind being described.
        tile_type_data_instance: A record structured with the TileTypeData dtype.

    Raises:
        ValueError: If the kind is already registered.
    """
    if tile_id in _registered_tile_types:
        raise ValueError(f"Tile type {tile_id.name} is already registered.")
    _registered_tile_types[tile_id] = tile_type_data_instance


def make_tile_type_data(
    *,  # Forces keyword arguments - prevents bugs from wrong parameter order
    walkable: bool,
    transparent: bool,
    display_name: str,
    glyph: str,
    cost: float = 1.0,
) -> np.ndarray:
    """
    Helper function to create a TileTypeData instance.

    Args:
        walkable: Can actors walk through this type of tile?
        transparent: Is this tile see-through for line of sight?
        display_name: Human-readable name (e.g., "Wall", "Shallow Water").
        glyph: Single character used when dumping a map as ASCII.
        cost: Traversal cost. Meaningless for non-walkable kinds.

    Returns:
        A numpy array structured with the TileTypeData dtype.
    """
    return np.array(
        (walkable, transparent, cost, display_name, ord(glyph)), dtype=TileTypeData
    )


# --- Define and Register Core Tile Types ---

register_tile_type(
    TileTypeID.WALL,
    make_tile_type_data(
        walkable=False, transparent=False, display_name="Wall", glyph="#"
    ),
)
register_tile_type(
    TileTypeID.FLOOR,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Floor", glyph="."
    ),
)
register_tile_type(
    TileTypeID.DOWN_STAIRS,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Down Stairs", glyph=">"
    ),
)
register_tile_type(
    TileTypeID.UP_STAIRS,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Up Stairs", glyph="<"
    ),
)
register_tile_type(
    TileTypeID.ROAD,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Road", glyph="=", cost=0.8
    ),
)
register_tile_type(
    TileTypeID.GRASS,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Grass", glyph='"', cost=1.1
    ),
)
register_tile_type(
    TileTypeID.SHALLOW_WATER,
    make_tile_type_data(
        walkable=True,
        transparent=True,
        display_name="Shallow Water",
        glyph="~",
        cost=1.2,
    ),
)
register_tile_type(
    TileTypeID.DEEP_WATER,
    make_tile_type_data(
        walkable=False, transparent=True, display_name="Deep Water", glyph="w"
    ),
)
register_tile_type(
    TileTypeID.WOOD_FLOOR,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Wood Floor", glyph="_"
    ),
)
register_tile_type(
    TileTypeID.BRIDGE,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Bridge", glyph="+"
    ),
)
register_tile_type(
    TileTypeID.GRAVEL,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Gravel", glyph=";"
    ),
)

if set(_registered_tile_types) != set(TileTypeID):
    missing = sorted(t.name for t in set(TileTypeID) - set(_registered_tile_types))
    raise RuntimeError(f"Tile types without properties: {missing}")


# --- Pre-calculated Property Arrays for Efficient Lookups ---
# Indexed by TileTypeID value; built once every kind has been registered.

_ordered_tile_types = [_registered_tile_types[t] for t in TileTypeID]

_tile_type_properties_walkable = np.array(
    [t["walkable"] for t in _ordered_tile_types], dtype=bool
)
_tile_type_properties_transparent = np.array(
    [t["transparent"] for t in _ordered_tile_types], dtype=bool
)
_tile_type_properties_cost = np.array(
    [t["cost"] for t in _ordered_tile_types], dtype=np.float32
)
_tile_type_properties_glyph = np.array(
    [t["glyph"] for t in _ordered_tile_types], dtype=np.int32
)

# --- Public Helper Functions for Accessing Tile Properties ---


def get_walkable_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    """Boolean map, True where the tile kind can be walked on."""
    return _tile_type_properties_walkable[tile_type_ids_map]


def get_cost_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    """Float map of traversal costs. Non-walkable kinds carry a placeholder 1.0."""
    return _tile_type_properties_cost[tile_type_ids_map]


def get_glyph_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    return _tile_type_properties_glyph[tile_type_ids_map]


def is_opaque(tile_type_id: int) -> bool:
    return not _tile_type_properties_transparent[tile_type_id]


def tile_cost(tile_type_id: int) -> float:
    return float(_tile_type_properties_cost[tile_type_id])
