from __future__ import annotations

from random import Random

import pytest


@pytest.fixture
def rng() -> Random:
    """A seeded random source for builder tests."""
    return Random(1234)
