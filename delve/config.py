"""
Configuration constants.

Centralizes all magic numbers and configuration values used by level generation.
Organized by functional area for easy maintenance.
"""

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED = "burrito1"

# Default level dimensions in tiles
MAP_WIDTH = 80
MAP_HEIGHT = 50

# Record a fully revealed copy of the map after every meaningful generation step.
# Used by the debug visualizer to step through generation frame by frame.
SHOW_MAPGEN_VISUALIZER = False

# =============================================================================
# PATHFINDING
# =============================================================================

# Diagonal moves cost this multiple of the terrain cost (approximation of sqrt(2))
DIAGONAL_COST_MULTIPLIER = 1.45

# tcod works on integer costs, so terrain costs are scaled by this factor
PATH_COST_SCALE = 100

# =============================================================================
# ROOM-BASED BUILDERS
# =============================================================================

SIMPLE_MAP_MAX_ROOMS = 30
SIMPLE_MAP_MIN_ROOM_SIZE = 6
SIMPLE_MAP_MAX_ROOM_SIZE = 10  # Exclusive upper bound

BSP_DUNGEON_ROOM_ATTEMPTS = 240
BSP_DUNGEON_MAX_ROOM_SIZE = 10
BSP_INTERIOR_MIN_ROOM_SIZE = 8

# =============================================================================
# ORGANIC BUILDERS
# =============================================================================

CELLULAR_AUTOMATA_PASSES = 15
CELLULAR_AUTOMATA_FLOOR_CHANCE = 55  # Percent of interior tiles seeded as floor

# Safety cap on walkers released by the drunkard builder before giving up on the quota
DRUNKARD_MAX_WALKERS = 5000

DLA_FLOOR_PERCENT = 0.25

VORONOI_SEED_COUNT = 64

# Frequency of the cellular noise used to bucket tiles into spawn regions
SPAWN_REGION_FREQUENCY = 0.08

# =============================================================================
# WAVEFORM COLLAPSE
# =============================================================================

WFC_CHUNK_SIZE = 7

# Fresh attempts before the solver gives up with SolverExhaustedError
WFC_MAX_ATTEMPTS = 25

# =============================================================================
# TOWN
# =============================================================================

TOWN_WALL_X = 30
TOWN_TARGET_BUILDINGS = 12
TOWN_BUILDING_ATTEMPTS = 4000

# =============================================================================
# SPAWNING
# =============================================================================

# Spawns per region before the depth bonus is added
SPAWN_COUNT_DICE = "1d7-4"

# =============================================================================
# RANDOM COMBINATION POLICY (1-in-N odds)
# =============================================================================

WFC_PASS_ODDS = 3
SECTIONAL_PREFAB_ODDS = 20
