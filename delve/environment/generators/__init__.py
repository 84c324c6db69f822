"""Level generation for Delve.

This package provides:
- BuilderChain: one initial builder followed by ordered meta builders
- generate_level: picks and runs the chain for a depth, with a fallback
- PrefabCatalog: the immutable spawn table and hand-made templates
- ChunkSolver: chunk-based Wave Function Collapse used by the waveform pass

Every generation failure is a MapGenerationError, so callers can recover by
falling back to a simpler chain.
"""

from .base import GeneratedLevel
from .catalog import PrefabCatalog, SpawnTableEntry, default_catalog
from .errors import (
    MapGenerationError,
    PipelineConfigError,
    PlacementError,
    SolverExhaustedError,
)
from .pipeline import (
    BuilderChain,
    GenerationContext,
    InitialBuilder,
    MetaBuilder,
    create_chain,
    generate_level,
)
from .wfc_solver import ChunkSolver, MapChunk, WFCContradiction

__all__ = [
    "BuilderChain",
    "ChunkSolver",
    "GeneratedLevel",
    "GenerationContext",
    "InitialBuilder",
    "MapChunk",
    "MapGenerationError",
    "MetaBuilder",
    "PipelineConfigError",
    "PlacementError",
    "PrefabCatalog",
    "SolverExhaustedError",
    "SpawnTableEntry",
    "WFCContradiction",
    "create_chain",
    "generate_level",
]
