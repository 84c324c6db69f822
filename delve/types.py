from __future__ import annotations

# =============================================================================
# TILE-BASED COORDINATE SYSTEMS (Always integers)
# =============================================================================


TileCoord = int  # Always integer tile position

# Map coordinates - absolute positions on the level grid
WorldTileCoord = TileCoord  # Example: x=5, y=3
WorldTilePos = tuple[
    WorldTileCoord, WorldTileCoord
]  # Example: (5, 3) = tile 5,3 on map

# Flat row-major index into the grid: y * width + x
TileIndex = int

# =============================================================================
# GENERATION-RELATED TYPES
# =============================================================================

# A single entry of the spawn list: (tile index, entity kind name)
SpawnEntry = tuple[TileIndex, str]

# Seed for deterministic generation. None means "use system entropy".
RandomSeed = int | str | None
