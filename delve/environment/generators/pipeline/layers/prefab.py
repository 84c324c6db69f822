"""Builders that stamp hand-authored templates into the map.

- PrefabLevelBuilder: a whole level loaded at the origin (initial builder).
- PrefabSectionBuilder: a large chunk stamped at a fixed anchor.
- PrefabVaultBuilder: up to 1d3 small vaults dropped onto open floor.

Templates come from an explicit PrefabCatalog; see prefabs.py for the glyph
table.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delve.environment.generators.catalog import PrefabCatalog, default_catalog
from delve.environment.generators.pipeline.layer import (
    START,
    InitialBuilder,
    MetaBuilder,
)
from delve.environment.generators.prefabs import (
    GLYPH_SPAWNS,
    GLYPH_TILES,
    START_GLYPH,
    HorizontalPlacement,
    PrefabLevel,
    PrefabSection,
    PrefabTemplate,
    VerticalPlacement,
)
from delve.environment.tile_types import TileTypeID
from delve.util.dice import roll_dice

if TYPE_CHECKING:
    from delve.environment.generators.pipeline.context import GenerationContext
    from delve.types import WorldTilePos
    from delve.util.rng import RNG

logger = logging.getLogger(__name__)


def stamp_template(
    ctx: GenerationContext, template: PrefabTemplate, origin_x: int, origin_y: int
) -> None:
    """Copy a template's glyphs onto the map with its top-left at the origin.

    Glyphs that fall outside the map are dropped. Unknown glyphs are logged and
    leave the tile as it was.
    """
    game_map = ctx.game_map
    unknown: set[str] = set()
    for ty, row in enumerate(template.glyph_grid()):
        for tx, glyph in enumerate(row):
            x, y = origin_x + tx, origin_y + ty
            if not game_map.in_bounds(x, y):
                continue
            if glyph in GLYPH_TILES:
                game_map.tiles[x, y] = GLYPH_TILES[glyph]
            elif glyph == START_GLYPH:
                game_map.tiles[x, y] = TileTypeID.FLOOR
                ctx.starting_position = (x, y)
            elif glyph in GLYPH_SPAWNS:
                game_map.tiles[x, y] = TileTypeID.FLOOR
                ctx.spawn_list.append((game_map.tile_index(x, y), GLYPH_SPAWNS[glyph]))
            else:
                unknown.add(glyph)
    if unknown:
        logger.warning(
            f"Prefab {template.name!r} has unknown glyphs {sorted(unknown)}; "
            f"left those tiles untouched"
        )


class PrefabLevelBuilder(InitialBuilder):
    """Load a complete hand-made level. Its "@" glyph sets the start."""

    provides = frozenset({START})

    def __init__(self, template: PrefabLevel) -> None:
        self.template = template

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        stamp_template(ctx, self.template, 0, 0)
        ctx.take_snapshot()


class PrefabSectionBuilder(MetaBuilder):
    """Stamp a section at its anchor, replacing whatever was there.

    Spawns inside the footprint are dropped. The section is skipped, with a
    warning, if it does not fit the map or would bury the starting position.
    """

    def __init__(self, section: PrefabSection) -> None:
        self.section = section

    def anchor(self, width: int, height: int) -> WorldTilePos:
        section = self.section
        x = {
            HorizontalPlacement.LEFT: 0,
            HorizontalPlacement.CENTER: width // 2 - section.width // 2,
            HorizontalPlacement.RIGHT: width - 1 - section.width,
        }[section.horizontal]
        y = {
            VerticalPlacement.TOP: 0,
            VerticalPlacement.CENTER: height // 2 - section.height // 2,
            VerticalPlacement.BOTTOM: height - 1 - section.height,
        }[section.vertical]
        return x, y

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        section = self.section
        x1, y1 = self.anchor(ctx.width, ctx.height)
        x2, y2 = x1 + section.width, y1 + section.height
        if x1 < 0 or y1 < 0 or x2 > ctx.width or y2 > ctx.height:
            logger.warning(
                f"Section {section.name!r} does not fit a "
                f"{ctx.width}x{ctx.height} map; skipped"
            )
            return

        start = ctx.starting_position
        if start is not None and x1 <= start[0] < x2 and y1 <= start[1] < y2:
            logger.warning(
                f"Section {section.name!r} would cover the start {start}; skipped"
            )
            return

        def outside(idx: int, _name: str) -> bool:
            x, y = ctx.game_map.index_to_xy(idx)
            return not (x1 <= x < x2 and y1 <= y < y2)

        ctx.retain_spawns(outside)
        stamp_template(ctx, section, x1, y1)
        ctx.take_snapshot()


class PrefabVaultBuilder(MetaBuilder):
    """Drop up to 1d3 distinct depth-appropriate vaults onto open floor.

    A vault only goes where its whole footprint is floor, clear of the outer
    two rings of the map, the starting position and earlier vaults. Spawns
    under a placed vault are replaced by the vault's own.
    """

    def __init__(self, catalog: PrefabCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()

    def build_map(self, rng: RNG, ctx: GenerationContext) -> None:
        possible = self.catalog.vaults_for_depth(ctx.depth)
        if not possible:
            return

        game_map = ctx.game_map
        used = np.zeros((ctx.width, ctx.height), dtype=bool, order="F")
        if ctx.starting_position is not None:
            used[ctx.starting_position] = True

        n_vaults = min(roll_dice(rng, 1, 3), len(possible))
        for _ in range(n_vaults):
            vault_index = roll_dice(rng, 1, len(possible)) - 1
            vault = possible[vault_index]

            positions = self._candidate_positions(game_map.tiles, used, vault)
            if not positions:
                logger.debug(f"No room for vault {vault.name!r}")
                continue

            pos_index = roll_dice(rng, 1, len(positions)) - 1
            x1, y1 = positions[pos_index]
            x2, y2 = x1 + vault.width, y1 + vault.height

            def outside(idx: int, _name: str) -> bool:
                x, y = game_map.index_to_xy(idx)
                return not (x1 <= x < x2 and y1 <= y < y2)

            ctx.retain_spawns(outside)
            stamp_template(ctx, vault, x1, y1)
            used[x1:x2, y1:y2] = True
            possible.pop(vault_index)
            logger.debug(f"Placed vault {vault.name!r} at ({x1}, {y1})")
            ctx.take_snapshot()

    @staticmethod
    def _candidate_positions(
        tiles: np.ndarray, used: np.ndarray, vault: PrefabTemplate
    ) -> list[WorldTilePos]:
        """Top-left corners where the vault fits, in row-major order."""
        width, height = tiles.shape
        if vault.width >= width or vault.height >= height:
            return []
        open_floor = (tiles == TileTypeID.FLOOR) & ~used
        fits = np.lib.stride_tricks.sliding_window_view(
            open_floor, (vault.width, vault.height)
        ).all(axis=(2, 3))

        xs, ys = np.indices(fits.shape)
        fits &= (xs > 1) & (xs + vault.width < width - 2)
        fits &= (ys > 1) & (ys + vault.height < height - 2)
        return [(int(x), int(y)) for y, x in np.argwhere(fits.T)]
