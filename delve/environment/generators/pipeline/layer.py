"""Abstract base classes for the two kinds of builder.

A chain holds exactly one InitialBuilder, which drafts the map from an empty
context, followed by any number of MetaBuilders, which transform the populated
context in place.

Each builder also declares which optional context fields it needs and which it
fills in or invalidates. BuilderChain.validate() uses these declarations to
reject an impossible composition before anything runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from delve.util.rng import RNG

    from .context import GenerationContext

# Optional context fields tracked by the chain validator
ROOMS = "rooms"
CORRIDORS = "corridors"
START = "start"


class Builder(ABC):
    """Common base for initial and meta builders."""

    requires: ClassVar[frozenset[str]] = frozenset()
    provides: ClassVar[frozenset[str]] = frozenset()
    invalidates: ClassVar[frozenset[str]] = frozenset()

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        """Apply this builder to the context.

        Args:
            rng: The run-wide random source. Builders draw from it in a fixed
                order and never keep it past this call.
            ctx: The generation context to modify in place.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.name}()"


class InitialBuilder(Builder):
    """Produces a first-draft map from an empty, all-wall context."""


class MetaBuilder(Builder):
    """Transforms an already-populated context."""
