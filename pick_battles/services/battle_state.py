"""Battle state machine.

Quarter completion drives a fixed transition table. A knockout (one side at
0 HP) or a double knockout always overrides the table and ends the battle.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..db import db_models
from ..errors import InvalidQuarterError

BattleStatus = db_models.BattleStatus
BattleSide = db_models.BattleSide

QUARTER_TRANSITIONS: dict[int, BattleStatus] = {
    1: BattleStatus.Q2_IN_PROGRESS,
    2: BattleStatus.HALFTIME,
    3: BattleStatus.Q4_IN_PROGRESS,
    4: BattleStatus.GAME_OVER,
    5: BattleStatus.OT2_IN_PROGRESS,
    6: BattleStatus.OT3_IN_PROGRESS,
    7: BattleStatus.OT4_IN_PROGRESS,
    # No overtime beyond the fourth extra period
    8: BattleStatus.GAME_OVER,
}

# One-way progression order. Transitions may only move forward.
_STATUS_ORDER: dict[str, int] = {
    BattleStatus.SCHEDULED.value: 0,
    BattleStatus.Q2_IN_PROGRESS.value: 1,
    BattleStatus.HALFTIME.value: 2,
    BattleStatus.Q4_IN_PROGRESS.value: 3,
    BattleStatus.OT2_IN_PROGRESS.value: 4,
    BattleStatus.OT3_IN_PROGRESS.value: 5,
    BattleStatus.OT4_IN_PROGRESS.value: 6,
    BattleStatus.GAME_OVER.value: 7,
}


@dataclass(frozen=True)
class BattleOutcome:
    status: str
    winner: str | None = None
    final_blow_side: str | None = None

    @property
    def is_over(self) -> bool:
        return self.status == BattleStatus.GAME_OVER.value


def next_status(quarter: int) -> BattleStatus:
    """Status after a quarter completes, absent a knockout."""
    try:
        return QUARTER_TRANSITIONS[quarter]
    except KeyError:
        raise InvalidQuarterError(f"Invalid quarter {quarter!r} (must be 1-8)") from None


def advance_status(current: str | None, proposed: str) -> str:
    """Resolve a transition without regressing the battle.

    GAME_OVER is terminal; otherwise the further-along status wins.
    """
    if current == BattleStatus.GAME_OVER.value:
        return current
    current_order = _STATUS_ORDER.get(current or BattleStatus.SCHEDULED.value, 0)
    proposed_order = _STATUS_ORDER.get(proposed)
    if proposed_order is None or proposed_order < current_order:
        return current or BattleStatus.SCHEDULED.value
    return proposed


def resolve_outcome(
    quarter: int,
    left_hp: int,
    right_hp: int,
    left_quarter_score: int,
    right_quarter_score: int,
    current_status: str | None = None,
) -> BattleOutcome:
    """Decide status, winner and final blow after HP has been updated.

    - One side at 0 HP: the other side wins with the final blow.
    - Both at 0 HP: the higher quarter score wins; equal scores are a tie.
    - Otherwise follow the transition table. When the table ends the battle
      the side with more HP wins (equal HP is a tie) and nobody lands a
      final blow.
    """
    game_over = BattleStatus.GAME_OVER.value

    if left_hp == 0 and right_hp > 0:
        return BattleOutcome(game_over, BattleSide.right.value, BattleSide.right.value)
    if right_hp == 0 and left_hp > 0:
        return BattleOutcome(game_over, BattleSide.left.value, BattleSide.left.value)
    if left_hp == 0 and right_hp == 0:
        if left_quarter_score > right_quarter_score:
            return BattleOutcome(game_over, BattleSide.left.value, BattleSide.left.value)
        if right_quarter_score > left_quarter_score:
            return BattleOutcome(game_over, BattleSide.right.value, BattleSide.right.value)
        return BattleOutcome(game_over, BattleSide.tie.value, None)

    status = advance_status(current_status, next_status(quarter).value)
    if status != game_over:
        return BattleOutcome(status)

    if left_hp > right_hp:
        winner = BattleSide.left.value
    elif right_hp > left_hp:
        winner = BattleSide.right.value
    else:
        winner = BattleSide.tie.value
    return BattleOutcome(status, winner, None)
