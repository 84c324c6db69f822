"""Chunk-based Wave Function Collapse.

The source map is cut into CHUNK x CHUNK tile patterns. Each pattern records
which positions along each edge are open floor ("exits"), and two patterns
may sit side by side when their touching edges agree. The solver then tiles a
fresh grid of chunk positions with patterns so that every neighbouring pair
agrees.

Compatibility of pattern A with pattern B in direction D holds when
- A has no exits on side D, or
- B has no exits on the opposite side, or
- at least one edge position is an exit on both touching sides.

The relation is symmetric, so checking one side of each adjacency suffices.
The wave is a boolean numpy array of shape (chunks_x, chunks_y, n_patterns);
`wave[x, y, p]` is True while pattern p is still possible at (x, y).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)

# Sides in the order used by MapChunk.exits and compatible_with
NORTH = 0
EAST = 1
SOUTH = 2
WEST = 3
DIRECTIONS = (NORTH, EAST, SOUTH, WEST)
OPPOSITE_DIR = {NORTH: SOUTH, EAST: WEST, SOUTH: NORTH, WEST: EAST}
DIR_OFFSETS = {NORTH: (0, -1), EAST: (1, 0), SOUTH: (0, 1), WEST: (-1, 0)}


class WFCContradiction(Exception):
    """Propagation emptied a chunk position's candidate set."""


# =============================================================================
# PATTERNS
# =============================================================================


def build_patterns(
    tiles: np.ndarray,
    chunk_size: int,
    include_flipping: bool = True,
    dedupe: bool = True,
) -> list[np.ndarray]:
    """Cut the tile grid into chunk patterns, each of shape (chunk, chunk).

    Chunks are read in row-major chunk order. With flipping, each chunk is
    followed by its horizontal, vertical and double flips. Deduplication keeps
    the first occurrence of each distinct pattern.
    """
    width, height = tiles.shape
    patterns: list[np.ndarray] = []
    for cy in range(height // chunk_size):
        for cx in range(width // chunk_size):
            x0, y0 = cx * chunk_size, cy * chunk_size
            chunk = tiles[x0 : x0 + chunk_size, y0 : y0 + chunk_size]
            patterns.append(chunk.copy())
            if include_flipping:
                patterns.append(chunk[::-1, :].copy())
                patterns.append(chunk[:, ::-1].copy())
                patterns.append(chunk[::-1, ::-1].copy())

    if dedupe:
        before = len(patterns)
        seen: set[bytes] = set()
        unique: list[np.ndarray] = []
        for pattern in patterns:
            key = pattern.tobytes()
            if key not in seen:
                seen.add(key)
                unique.append(pattern)
        patterns = unique
        logger.debug(f"Deduplicated {before} chunk patterns to {len(patterns)}")
    return patterns


@dataclass
class MapChunk:
    """One pattern plus its edge exits and the patterns allowed beside it.

    Attributes:
        pattern: Tile IDs indexed [x, y].
        exits: Per side, one flag per edge position, True for open floor.
        has_exits: Per side, whether any edge position is open.
        compatible_with: Per side, indices of patterns that may sit there.
    """

    pattern: np.ndarray
    exits: list[list[bool]] = field(default_factory=list)
    has_exits: list[bool] = field(default_factory=list)
    compatible_with: list[list[int]] = field(
        default_factory=lambda: [[] for _ in DIRECTIONS]
    )

    @classmethod
    def from_pattern(cls, pattern: np.ndarray) -> MapChunk:
        floor = pattern == TileTypeID.FLOOR
        exits = [
            floor[:, 0].tolist(),  # north edge, left to right
            floor[-1, :].tolist(),  # east edge, top to bottom
            floor[:, -1].tolist(),  # south edge, left to right
            floor[0, :].tolist(),  # west edge, top to bottom
        ]
        return cls(pattern=pattern, exits=exits, has_exits=[any(e) for e in exits])


def chunks_compatible(a: MapChunk, b: MapChunk, direction: int) -> bool:
    """Whether `b` may sit on side `direction` of `a`."""
    opposite = OPPOSITE_DIR[direction]
    if not a.has_exits[direction] or not b.has_exits[opposite]:
        return True
    return any(
        mine and theirs
        for mine, theirs in zip(a.exits[direction], b.exits[opposite], strict=True)
    )


def patterns_to_constraints(patterns: list[np.ndarray]) -> list[MapChunk]:
    constraints = [MapChunk.from_pattern(pattern) for pattern in patterns]
    for chunk in constraints:
        for direction in DIRECTIONS:
            chunk.compatible_with[direction] = [
                j
                for j, other in enumerate(constraints)
                if chunks_compatible(chunk, other, direction)
            ]
    return constraints


# =============================================================================
# SOLVER
# =============================================================================


class ChunkSolver:
    """Minimum-entropy collapse over a grid of chunk positions.

    Each step picks the unresolved position with the fewest remaining
    candidates (random tie break), commits it to a random candidate and
    propagates the restriction outwards with an explicit stack.
    """

    def __init__(
        self, constraints: list[MapChunk], chunks_x: int, chunks_y: int
    ) -> None:
        if not constraints:
            raise ValueError("ChunkSolver needs at least one pattern")
        self.constraints = constraints
        self.chunks_x = chunks_x
        self.chunks_y = chunks_y
        n = len(constraints)

        # compat[d][a, b]: pattern b may sit on side d of pattern a
        self._compat = np.zeros((len(DIRECTIONS), n, n), dtype=bool)
        for a, chunk in enumerate(constraints):
            for direction in DIRECTIONS:
                self._compat[direction, a, chunk.compatible_with[direction]] = True

        self.wave = np.ones((chunks_x, chunks_y, n), dtype=bool)
        self.chosen = np.full((chunks_x, chunks_y), -1, dtype=np.int32)

    @property
    def resolved(self) -> bool:
        return bool((self.chosen >= 0).all())

    def solve(self, rng: RNG) -> np.ndarray:
        """Collapse every position.

        Returns:
            The chosen pattern index per chunk position, shape (chunks_x, chunks_y).

        Raises:
            WFCContradiction: If some position runs out of candidates.
        """
        while not self.resolved:
            self.iteration(rng)
        return self.chosen

    def iteration(self, rng: RNG) -> None:
        """Collapse the lowest-entropy unresolved position and propagate."""
        counts = self.wave.sum(axis=2)
        open_counts = np.where(self.chosen < 0, counts, np.iinfo(np.int64).max)
        lowest = int(open_counts.min())
        if lowest == 0:
            raise WFCContradiction("A chunk position has no candidates left")

        # Transposed so ties are listed in row-major chunk order
        ties = np.argwhere(open_counts.T == lowest)
        cy, cx = (int(v) for v in ties[roll_dice(rng, 1, len(ties)) - 1])
        options = np.flatnonzero(self.wave[cx, cy])
        pick = int(options[roll_dice(rng, 1, len(options)) - 1])

        self.wave[cx, cy] = False
        self.wave[cx, cy, pick] = True
        self.chosen[cx, cy] = pick
        self._propagate(cx, cy)

    def _propagate(self, x: int, y: int) -> None:
        stack = [(x, y)]
        while stack:
            cx, cy = stack.pop()
            candidates = self.wave[cx, cy]
            for direction in DIRECTIONS:
                dx, dy = DIR_OFFSETS[direction]
                nx, ny = cx + dx, cy + dy
                if not (0 <= nx < self.chunks_x and 0 <= ny < self.chunks_y):
                    continue
                allowed = self._compat[direction][candidates].any(axis=0)
                narrowed = self.wave[nx, ny] & allowed
                if not narrowed.any():
                    raise WFCContradiction(
                        f"Chunk ({nx}, {ny}) has no pattern compatible with "
                        f"({cx}, {cy})"
                    )
                if (narrowed != self.wave[nx, ny]).any():
                    self.wave[nx, ny] = narrowed
                    stack.append((nx, ny))

    def render(self, tiles: np.ndarray, chunk_size: int) -> None:
        """Write every chosen pattern into a tile array of the full map size."""
        for cx in range(self.chunks_x):
            for cy in range(self.chunks_y):
                pick = int(self.chosen[cx, cy])
                if pick < 0:
                    continue
                x0, y0 = cx * chunk_size, cy * chunk_size
                tiles[x0 : x0 + chunk_size, y0 : y0 + chunk_size] = (
                    self.constraints[pick].pattern
                )
