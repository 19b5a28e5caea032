"""Dice rolling and ability-score generation."""
from __future__ import annotations

import random
from dataclasses import dataclass, field

from .rules import ABILITIES

_rng = random.SystemRandom()

STANDARD_ARRAY: list[int] = [15, 14, 13, 12, 10, 8]

POINT_BUY_COSTS: dict[int, int] = {
    8: 0,
    9: 1,
    10: 2,
    11: 3,
    12: 4,
    13: 5,
    14: 7,
    15: 9,
}
POINT_BUY_TOTAL = 27
POINT_BUY_MIN = 8
POINT_BUY_MAX = 15

ROLL_METHODS: list[tuple[str, str]] = [
    ("Roll 4d6 (drop lowest)", "Roll 4d6, drop the lowest, 6 times"),
    ("Standard Array", "Use 15, 14, 13, 12, 10, 8"),
    ("Point Buy", "27 points to spend (scores 8-15)"),
]


def roll_die(sides: int) -> int:
    return _rng.randint(1, sides)


def roll_d20() -> int:
    return roll_die(20)


def roll_dice(count: int, sides: int) -> list[int]:
    return [roll_die(sides) for _ in range(count)]


def roll_dice_total(count: int, sides: int) -> int:
    return sum(roll_dice(count, sides))


def roll_with_advantage() -> tuple[int, int, int]:
    """Return ``(result, first, second)`` keeping the higher d20."""
    r1, r2 = roll_d20(), roll_d20()
    return max(r1, r2), r1, r2


def roll_with_disadvantage() -> tuple[int, int, int]:
    r1, r2 = roll_d20(), roll_d20()
    return min(r1, r2), r1, r2


@dataclass(frozen=True)
class Roll:
    values: list[int]
    dropped: int
    total: int


def roll_4d6_drop_lowest() -> Roll:
    dice = roll_dice(4, 6)
    ordered = sorted(dice)
    return Roll(values=dice, dropped=ordered[0], total=sum(ordered[1:]))


def roll_ability_scores() -> list[Roll]:
    """Six 4d6-drop-lowest rolls, one per ability."""
    return [roll_4d6_drop_lowest() for _ in range(6)]


def standard_array() -> list[int]:
    return list(STANDARD_ARRAY)


@dataclass
class PointBuyState:
    """Point-buy allocation: every ability starts at 8 with 27 points to spend."""

    scores: dict[str, int] = field(
        default_factory=lambda: {ability: POINT_BUY_MIN for ability in ABILITIES}
    )
    points_remaining: int = POINT_BUY_TOTAL

    def _step_cost(self, ability: str) -> int:
        current = self.scores[ability]
        return POINT_BUY_COSTS[current + 1] - POINT_BUY_COSTS[current]

    def can_increase(self, ability: str) -> bool:
        if self.scores[ability] >= POINT_BUY_MAX:
            return False
        return self.points_remaining >= self._step_cost(ability)

    def can_decrease(self, ability: str) -> bool:
        return self.scores[ability] > POINT_BUY_MIN

    def increase(self, ability: str) -> bool:
        if not self.can_increase(ability):
            return False
        self.points_remaining -= self._step_cost(ability)
        self.scores[ability] += 1
        return True

    def decrease(self, ability: str) -> bool:
        if not self.can_decrease(ability):
            return False
        current = self.scores[ability]
        self.points_remaining += POINT_BUY_COSTS[current] - POINT_BUY_COSTS[current - 1]
        self.scores[ability] -= 1
        return True

    def ordered_scores(self) -> list[int]:
        return [self.scores[ability] for ability in ABILITIES]
