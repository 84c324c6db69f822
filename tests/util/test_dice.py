from __future__ import annotations

from random import Random

import pytest

from delve.util.dice import Dice, roll_dice


class TestRollDice:
    def test_total_is_within_range(self) -> None:
        rng = Random(3)
        for _ in range(200):
            assert 3 <= roll_dice(rng, 3, 6) <= 18

    def test_zero_dice_total_zero(self) -> None:
        assert roll_dice(Random(3), 0, 6) == 0

    @pytest.mark.parametrize("sides", [0, -4])
    def test_non_positive_sides_raise(self, sides: int) -> None:
        with pytest.raises(ValueError, match="sides must be positive"):
            roll_dice(Random(3), 1, sides)

    def test_same_seed_same_rolls(self) -> None:
        rolls_a = [roll_dice(Random(9), 1, 20) for _ in range(5)]
        rolls_b = [roll_dice(Random(9), 1, 20) for _ in range(5)]
        assert rolls_a == rolls_b


class TestDiceNotation:
    @pytest.mark.parametrize(
        ("notation", "expected"),
        [
            ("d20", (1, 20, 1, 0)),
            ("3d6", (3, 6, 1, 0)),
            ("2d10+15", (2, 10, 1, 15)),
            ("d8-2", (1, 8, 1, -2)),
            ("-d4", (1, 4, -1, 0)),
            ("7", (0, 7, 0, 0)),
        ],
    )
    def test_parse(self, notation: str, expected: tuple[int, int, int, int]) -> None:
        dice = Dice(notation)
        assert (dice.num_dice, dice.sides, dice.multiplier, dice.modifier) == expected

    def test_fixed_value_rolls_itself(self) -> None:
        assert Dice("7").roll(Random(1)) == 7
        assert Dice("-3").roll(Random(1)) == -3

    def test_negated_die_rolls_negative(self) -> None:
        rng = Random(5)
        for _ in range(50):
            assert -4 <= Dice("-d4").roll(rng) <= -1

    def test_modifier_is_added(self) -> None:
        rng = Random(5)
        for _ in range(50):
            assert 17 <= Dice("2d10+15").roll(rng) <= 35

    @pytest.mark.parametrize("notation", ["abc", "2dx", "d", "1d6+q"])
    def test_invalid_notation_raises(self, notation: str) -> None:
        with pytest.raises(ValueError, match="Invalid dice format"):
            Dice(notation)

    def test_str_is_the_notation(self) -> None:
        assert str(Dice("3d6")) == "3d6"
