"""Deterministic random number generation with isolated streams.

Level generation must be reproducible: the same master seed and the same chain
configuration have to produce byte-identical levels, otherwise a snapshot
history or a bug report cannot be replayed. This module derives one independent
random stream per named domain from a single master seed, so that:

1. A whole run is deterministic from the master seed
2. Each dungeon depth gets its own stream, so regenerating depth 3 does not
   depend on how much randomness depth 2 consumed
3. Adding a new domain never shifts the sequence of an existing one

Usage:
    provider = RNGProvider(config.RANDOM_SEED)
    level_rng = provider.for_level(3)
    chain.run(level_rng)

Domain naming convention (hierarchical):
    - "map.level.<depth>" for the run-wide generator of one level
"""

from __future__ import annotations

import zlib
from random import Random
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from delve.types import RandomSeed


class RNGStream:
    """Proxy that delegates to the provider's RNG for a domain.

    Builders receive the stream as a plain parameter and only ever draw
    integers from it.
    """

    def __init__(self, provider: RNGProvider, domain: str) -> None:
        self._provider = provider
        self._domain = domain

    def _rng(self) -> Random:
        return self._provider._get_raw(self._domain)

    def randint(self, a: int, b: int) -> int:
        """Return random integer N such that a <= N <= b."""
        return self._rng().randint(a, b)

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        """Return randomly selected element from range(start, stop, step)."""
        return self._rng().randrange(start, stop, step)

    def getrandbits(self, k: int) -> int:
        """Return an integer with k random bits."""
        return self._rng().getrandbits(k)


# Builders accept either a plain Random or a domain stream.
RNG: TypeAlias = Random | RNGStream


class RNGProvider:
    """Hands out isolated RNG streams derived from one master seed."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self._master_seed = master_seed
        self._streams: dict[str, Random] = {}
        self._proxies: dict[str, RNGStream] = {}

    def get(self, domain: str) -> RNGStream:
        """Get an RNG stream for the named domain.

        Args:
            domain: Hierarchical name like "map.level.3".

        Returns:
            A cacheable RNGStream proxy with the subset of the Random interface
            used by the generators.
        """
        if domain not in self._proxies:
            self._proxies[domain] = RNGStream(self, domain)
        return self._proxies[domain]

    def for_level(self, depth: int) -> RNGStream:
        """Stream used as the run-wide generator for one dungeon depth."""
        return self.get(f"map.level.{depth}")

    def _get_raw(self, domain: str) -> Random:
        if domain not in self._streams:
            if self._master_seed is None:
                self._streams[domain] = Random()
            else:
                # crc32 rather than hash(): str hashing is salted per interpreter
                # session, which would break cross-session determinism
                derived_seed = zlib.crc32(f"{self._master_seed}:{domain}".encode())
                self._streams[domain] = Random(derived_seed)
        return self._streams[domain]
