"""The immutable catalog of spawnable kinds and prefab templates.

A catalog is built once by the caller (usually with `default_catalog()`) and
passed explicitly to the chain factory, the spawning builders and the prefab
builder. Nothing in it can be mutated after construction, so one instance can
be shared across levels safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cache
from typing import TypeVar

from . import prefabs
from .prefabs import PrefabLevel, PrefabRoom, PrefabSection, PrefabTemplate
from .spawner import RandomTable

T = TypeVar("T", bound=PrefabTemplate)


@dataclass(frozen=True)
class SpawnTableEntry:
    """One spawnable kind and the depths at which it may appear.

    Attributes:
        name: Entity kind name handed to the spawning collaborator.
        weight: Base weight in the random table.
        min_depth: First depth the kind appears at.
        max_depth: Last depth the kind appears at.
        add_depth_to_weight: Grow the weight by the current depth, making the
            kind more common further down.
    """

    name: str
    weight: int
    min_depth: int = 0
    max_depth: int = 100
    add_depth_to_weight: bool = False

    def weight_at(self, depth: int) -> int:
        if not self.min_depth <= depth <= self.max_depth:
            return 0
        return self.weight + depth if self.add_depth_to_weight else self.weight


@dataclass(frozen=True)
class PrefabCatalog:
    """Spawn weights plus every hand-authored template, keyed by name."""

    spawns: tuple[SpawnTableEntry, ...]
    levels: tuple[PrefabLevel, ...] = ()
    sections: tuple[PrefabSection, ...] = ()
    vaults: tuple[PrefabRoom, ...] = ()

    def __post_init__(self) -> None:
        names = [t.name for t in (*self.levels, *self.sections, *self.vaults)]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate prefab names in catalog: {sorted(names)}")

    def spawn_table(self, depth: int) -> RandomTable:
        """Random table of every kind allowed at `depth`, weights scaled."""
        table = RandomTable()
        for entry in self.spawns:
            table.add(entry.name, entry.weight_at(depth))
        return table

    def vaults_for_depth(self, depth: int) -> list[PrefabRoom]:
        return [vault for vault in self.vaults if vault.allowed_at(depth)]

    def level(self, name: str) -> PrefabLevel:
        return self._lookup(self.levels, name)

    def section(self, name: str) -> PrefabSection:
        return self._lookup(self.sections, name)

    @staticmethod
    def _lookup(templates: tuple[T, ...], name: str) -> T:
        for template in templates:
            if template.name == name:
                return template
        raise KeyError(f"No prefab named {name!r}")


DEFAULT_SPAWNS: tuple[SpawnTableEntry, ...] = (
    # Items
    SpawnTableEntry("Health Potion", 7),
    SpawnTableEntry("Magic Missile Scroll", 4),
    SpawnTableEntry("Fireball Scroll", 2, add_depth_to_weight=True),
    SpawnTableEntry("Confusion Scroll", 2, add_depth_to_weight=True),
    SpawnTableEntry("Magic Mapping Scroll", 2),
    SpawnTableEntry("Dagger", 3),
    SpawnTableEntry("Shield", 3),
    SpawnTableEntry("Longsword", 1, min_depth=2, add_depth_to_weight=True),
    SpawnTableEntry("Tower Shield", 1, min_depth=2, add_depth_to_weight=True),
    SpawnTableEntry("Rations", 10),
    SpawnTableEntry("Bear Trap", 5),
    # Monsters
    SpawnTableEntry("Kobold", 15, max_depth=3),
    SpawnTableEntry("Goblin", 10),
    SpawnTableEntry("Orc", 1, add_depth_to_weight=True),
)


@cache
def default_catalog() -> PrefabCatalog:
    """The stock catalog. Cached: it is immutable, so one instance is enough."""
    return PrefabCatalog(
        spawns=DEFAULT_SPAWNS,
        levels=(prefabs.ABANDONED_CELLBLOCK,),
        sections=(prefabs.UNDERGROUND_FORT,),
        vaults=(
            prefabs.TOTALLY_NOT_A_TRAP,
            prefabs.SILLY_SMILE,
            prefabs.CHECKERBOARD,
        ),
    )
