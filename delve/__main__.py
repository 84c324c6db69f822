"""Generate one level and dump it as ASCII."""

from __future__ import annotations

import argparse
import logging

from delve import config
from delve.environment.generators.pipeline import (
    CHAIN_NAMES,
    create_chain,
    generate_level,
)
from delve.types import RandomSeed
from delve.util.rng import RNGProvider


def _parse_seed(value: str) -> RandomSeed:
    return int(value) if value.lstrip("-").isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="delve", description="Generate a roguelike level and print it."
    )
    parser.add_argument("--depth", type=int, default=2, help="Dungeon depth")
    parser.add_argument("--width", type=int, default=config.MAP_WIDTH)
    parser.add_argument("--height", type=int, default=config.MAP_HEIGHT)
    parser.add_argument(
        "--seed",
        type=_parse_seed,
        default=config.RANDOM_SEED,
        help="Master seed (int or string)",
    )
    parser.add_argument(
        "--chain",
        choices=CHAIN_NAMES,
        default=None,
        help="Run a named chain instead of the usual choice for the depth",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Record a snapshot after every generation step",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s"
    )

    rng = RNGProvider(args.seed).for_level(args.depth)
    if args.chain is None:
        level = generate_level(
            args.depth, args.width, args.height, rng=rng, record_history=args.history
        )
    else:
        chain = create_chain(
            args.chain,
            args.depth,
            args.width,
            args.height,
            rng,
            record_history=args.history,
        )
        level = chain.run(rng)

    print(level.game_map.to_ascii())
    print()
    print(f"Builders: {' > '.join(level.builders)}")
    print(f"Start: {level.starting_position}  Exits: {level.exit_positions}")
    print(f"Spawns: {len(level.spawn_list)}")
    if args.history:
        print(f"Snapshots: {len(level.history)}")


if __name__ == "__main__":
    main()
