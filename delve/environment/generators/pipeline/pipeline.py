"""Builder chain that orchestrates one level's generation.

The BuilderChain owns a single GenerationContext. Running it invokes the
initial builder once, then each meta builder in registration order, all
against that context, and finally hands the result out as a GeneratedLevel.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delve.environment.generators.base import GeneratedLevel
from delve.environment.generators.errors import PipelineConfigError

from .context import GenerationContext
from .layer import START, InitialBuilder, MetaBuilder

if TYPE_CHECKING:
    from delve.environment.map import GameMap
    from delve.types import SpawnEntry, WorldTilePos
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


class BuilderChain:
    """Exactly one initial builder followed by an ordered list of meta builders.

    Example:
        chain = BuilderChain(depth=3, width=80, height=50, name="Crypt")
        chain.start_with(SimpleMapBuilder())
        chain.with_(RoomBasedStartingPosition()).with_(DistantExit())
        level = chain.run(rng)

    A chain is single-use: its context is created with the chain and is never
    reset, so build a new chain for every level.
    """

    def __init__(
        self,
        depth: int,
        width: int,
        height: int,
        name: str = "",
        record_history: bool | None = None,
    ) -> None:
        self.ctx = GenerationContext.create(
            depth, width, height, name, record_history=record_history
        )
        self.starter: InitialBuilder | None = None
        self.builders: list[MetaBuilder] = []
        self._has_run = False

    def start_with(self, starter: InitialBuilder) -> BuilderChain:
        """Set the initial builder.

        Raises:
            PipelineConfigError: If the chain already has an initial builder.
        """
        if self.starter is not None:
            raise PipelineConfigError(
                f"Chain already starts with {self.starter.name}; "
                f"cannot also start with {starter.name}",
                stage=starter.name,
            )
        self.starter = starter
        return self

    def with_(self, builder: MetaBuilder) -> BuilderChain:
        """Append a meta builder. Returns the chain for fluent assembly."""
        self.builders.append(builder)
        return self

    def describe(self) -> list[str]:
        names = [self.starter.name] if self.starter is not None else []
        return names + [builder.name for builder in self.builders]

    def validate(self) -> None:
        """Check the composition without running anything.

        Walks the chain tracking which optional context fields (rooms,
        corridors, start) are available at each step.

        Raises:
            PipelineConfigError: If there is no initial builder or a meta
                builder needs a field no earlier builder provides.
        """
        if self.starter is None:
            raise PipelineConfigError("Chain has no initial builder")

        available = set(self.starter.provides)
        for builder in self.builders:
            missing = builder.requires - available
            if missing:
                raise PipelineConfigError(
                    f"{builder.name} requires {', '.join(sorted(missing))}, "
                    f"which no earlier builder provides",
                    stage=builder.name,
                )
            available -= builder.invalidates
            available |= builder.provides

        if START not in available:
            logger.debug(
                f"Chain {self.describe()} relies on a template to set the start"
            )

    def run(self, rng: RNG) -> GeneratedLevel:
        """Run every builder against the owned context.

        Raises:
            PipelineConfigError: If the chain is misassembled, has already run,
                or finishes without a starting position.
            MapGenerationError: Any recoverable failure raised by a builder.
        """
        if self._has_run:
            raise PipelineConfigError("A builder chain can only run once")
        self.validate()
        self._has_run = True
        assert self.starter is not None

        for builder in (self.starter, *self.builders):
            logger.debug(f"Running {builder.name}")
            builder.build_map(rng, self.ctx)

        if self.ctx.starting_position is None:
            raise PipelineConfigError(
                f"Chain {self.describe()} finished without a starting position"
            )

        level = GeneratedLevel(
            game_map=self.ctx.game_map,
            starting_position=self.ctx.starting_position,
            spawn_list=list(self.ctx.spawn_list),
            history=self.ctx.history,
            builders=self.describe(),
        )
        logger.info(
            f"Generated depth {level.game_map.depth} "
            f"({level.game_map.width}x{level.game_map.height}) with "
            f"{' > '.join(level.builders)}: start {level.starting_position}, "
            f"{len(level.spawn_list)} spawns"
        )
        return level

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    @property
    def game_map(self) -> GameMap:
        return self.ctx.game_map

    @property
    def starting_position(self) -> WorldTilePos:
        """The finished start.

        Raises:
            PipelineConfigError: If no builder has set it.
        """
        if self.ctx.starting_position is None:
            raise PipelineConfigError("Starting position has not been set")
        return self.ctx.starting_position

    @property
    def spawn_list(self) -> list[SpawnEntry]:
        return self.ctx.spawn_list

    @property
    def history(self) -> list[GameMap]:
        return self.ctx.history
