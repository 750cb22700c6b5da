"""Quarter damage calculation.

Damage is based on the difference in team production across five stat
categories. Each stat point of difference is worth 0.1 raw damage, scaled
by the category weight:

    points 40% | rebounds 20% | assists 20% | blocks 10% | three-pointers 10%

A positive total means the left side out-played the right side and hits the
right side's HP; a negative total hits the left side.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from ..models import PlayerStatLine, QuarterStats

DAMAGE_PER_STAT = 0.1

CATEGORY_WEIGHTS: dict[str, float] = {
    "points": 0.40,
    "rebounds": 0.20,
    "assists": 0.20,
    "blocks": 0.10,
    "three_pointers": 0.10,
}


@dataclass(frozen=True)
class TeamTotals:
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    blocks: int = 0
    three_pointers: int = 0

    @classmethod
    def from_players(cls, players: Iterable[PlayerStatLine]) -> TeamTotals:
        points = rebounds = assists = blocks = three_pointers = 0
        for player in players:
            points += player.points or 0
            rebounds += player.rebounds or 0
            assists += player.assists or 0
            blocks += player.blocks or 0
            three_pointers += player.three_pointers or 0
        return cls(points, rebounds, assists, blocks, three_pointers)


@dataclass(frozen=True)
class QuarterDamage:
    left_damage: int
    right_damage: int
    total_damage: float
    left_totals: TeamTotals
    right_totals: TeamTotals
    differences: dict[str, int]
    components: dict[str, float]

    def as_dict(self) -> dict:
        return {
            "left_damage": self.left_damage,
            "right_damage": self.right_damage,
            "total_damage": self.total_damage,
            "left_totals": asdict(self.left_totals),
            "right_totals": asdict(self.right_totals),
            "differences": dict(self.differences),
            "components": dict(self.components),
        }


def round_half_up(value: float) -> int:
    """Round a non-negative magnitude with .5 going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def calculate_damage_from_totals(left: TeamTotals, right: TeamTotals) -> QuarterDamage:
    differences = {
        category: getattr(left, category) - getattr(right, category)
        for category in CATEGORY_WEIGHTS
    }
    components = {
        category: differences[category] * DAMAGE_PER_STAT * weight
        for category, weight in CATEGORY_WEIGHTS.items()
    }
    total = sum(components.values())

    right_damage = round_half_up(total) if total > 0 else 0
    left_damage = round_half_up(abs(total)) if total < 0 else 0

    return QuarterDamage(
        left_damage=left_damage,
        right_damage=right_damage,
        total_damage=total,
        left_totals=left,
        right_totals=right,
        differences=differences,
        components=components,
    )


def calculate_quarter_damage(stats: QuarterStats) -> QuarterDamage:
    """Compute damage for a quarter snapshot."""
    return calculate_damage_from_totals(
        TeamTotals.from_players(stats.left_players),
        TeamTotals.from_players(stats.right_players),
    )
