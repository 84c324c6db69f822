"""Rectangles and distance metrics in tile coordinates."""

from __future__ import annotations

import math
from collections.abc import Iterator
from enum import Enum, auto

from delve.types import TileCoord, WorldTilePos


class Rect:
    """Rectangle/bounding box in tile coordinates.

    Built from an origin plus a size; `x2`/`y2` are `x1 + w` and `y1 + h`.
    Rooms never have zero or negative extent.
    """

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        if w <= 0 or h <= 0:
            raise ValueError(f"Rect must have a positive size, got {w}x{h}")
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        return cls(x1, y1, x2 - x1, y2 - y1)

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    def center(self) -> WorldTilePos:
        return ((self.x1 + self.x2) // 2, (self.y1 + self.y2) // 2)

    def intersects(self, other: Rect) -> bool:
        """True if the rectangles overlap or touch."""
        return (
            self.x1 <= other.x2
            and self.x2 >= other.x1
            and self.y1 <= other.y2
            and self.y2 >= other.y1
        )

    def expanded(self, margin: TileCoord) -> Rect:
        return Rect.from_bounds(
            self.x1 - margin, self.y1 - margin, self.x2 + margin, self.y2 + margin
        )

    def interior(self) -> Iterator[WorldTilePos]:
        """Yield the tiles strictly inside the rectangle's outline."""
        for y in range(self.y1 + 1, self.y2):
            for x in range(self.x1 + 1, self.x2):
                yield x, y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


# =============================================================================
# DISTANCE METRICS
# =============================================================================


class DistanceMetric(Enum):
    """Distance functions used for Voronoi membership and nearest-tile searches."""

    PYTHAGORAS = auto()  # Euclidean, squared (ordering is all that matters)
    MANHATTAN = auto()
    CHEBYSHEV = auto()


def distance_squared(a: WorldTilePos, b: WorldTilePos) -> int:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def distance(a: WorldTilePos, b: WorldTilePos) -> float:
    return math.sqrt(distance_squared(a, b))
