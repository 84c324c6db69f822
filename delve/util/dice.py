"""
Dice-style rolls on top of an explicit random source.

Generation code never touches the global `random` module: every roll takes the
run-wide RNG as a parameter so that a seeded chain is fully reproducible.

1.  `roll_dice(rng, n, sides)` is the workhorse used by the builders, e.g.
    `roll_dice(rng, 1, 6)` for a d6.
2.  The `Dice` class parses notations such as "d20", "3d6", "d8+4" or "-d4"
    for values configured as dice, such as config.SPAWN_COUNT_DICE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from delve.util.rng import RNG


def roll_dice(rng: RNG, n: int, sides: int) -> int:
    """Roll `n` dice with `sides` faces each and return the total.

    Args:
        rng: The random source to draw from.
        n: Number of dice. Zero dice total zero.
        sides: Faces per die; must be positive.

    Raises:
        ValueError: If `sides` is not a positive integer.
    """
    if sides <= 0:
        raise ValueError(f"Number of sides must be positive, got {sides}")
    return sum(rng.randint(1, sides) for _ in range(n))


class Dice:
    """Dice parsed from a string such as "2d10+15"."""

    def __init__(self, dice_str: str) -> None:
        """
        Args:
            dice_str: Dice notation ("d20", "-d4", "2d6", "2d10+15", "7").

        Raises:
            ValueError: If the dice string format is invalid.
        """
        self.dice_str = dice_str
        self.num_dice, self.sides, self.multiplier, self.modifier = (
            self._parse_dice_str(dice_str)
        )

    @staticmethod
    def _parse_dice_str(dice_str: str) -> tuple[int, int, int, int]:
        """Parse into (number of dice, sides, multiplier, modifier)."""
        dice_str = dice_str.replace(" ", "")
        modifier = 0
        dice_part = dice_str

        try:
            if "+" in dice_str:
                dice_part, mod_part = dice_str.split("+", 1)
                modifier = int(mod_part)
            elif "-" in dice_str[1:]:
                # A leading "-" negates the dice; only a later "-" is a modifier
                split_at = dice_str.index("-", 1)
                dice_part, mod_part = dice_str[:split_at], dice_str[split_at + 1 :]
                modifier = -int(mod_part)

            # Fixed values ("5", "-3") have no dice at all
            if dice_part.lstrip("-").isdigit():
                return 0, int(dice_part), 0, modifier

            if dice_part.startswith("-d"):
                return 1, int(dice_part[2:]), -1, modifier

            if "d" in dice_part:
                count, sides = dice_part.split("d")
                return int(count) if count else 1, int(sides), 1, modifier
        except ValueError as exc:
            raise ValueError(f"Invalid dice format: {dice_str}") from exc

        raise ValueError(f"Invalid dice format: {dice_str}")

    def roll(self, rng: RNG) -> int:
        """Roll the dice with the given random source."""
        if self.num_dice == 0:
            return self.sides + self.modifier
        return self.multiplier * roll_dice(rng, self.num_dice, self.sides) + (
            self.modifier
        )

    def __str__(self) -> str:
        return self.dice_str
