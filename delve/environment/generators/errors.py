"""Exceptions raised by level generation.

Every failure is recoverable: callers catch `MapGenerationError` and can fall
back to a simpler chain instead of losing the whole run.
"""

from __future__ import annotations


class MapGenerationError(Exception):
    """Base class for level generation failures.

    Attributes:
        stage: Name of the builder that failed, when known.
    """

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class PipelineConfigError(MapGenerationError):
    """The chain is assembled incorrectly.

    Raised for a missing or duplicate initial builder, or a meta builder whose
    prerequisite context field (rooms, corridors, start) is never provided.
    """


class PlacementError(MapGenerationError):
    """No tile satisfies a placement query (starting position, vault, section)."""


class SolverExhaustedError(MapGenerationError):
    """Waveform collapse hit a contradiction on every allowed attempt."""

    def __init__(self, attempts: int, stage: str | None = None) -> None:
        super().__init__(
            f"Waveform collapse failed after {attempts} attempts", stage=stage
        )
        self.attempts = attempts
