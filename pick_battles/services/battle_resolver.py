"""Quarter resolution: apply damage to a battle and advance its state.

Resolution is strictly ordered and idempotent. Quarter N only resolves after
quarter N-1, and re-running an already-resolved quarter is a no-op that
reports why nothing changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..db import db_models
from ..errors import BattleNotFoundError, InvalidQuarterError, MissingQuarterStatsError
from ..logging import logger
from ..models import QuarterStats
from ..orm.battles import REGULATION_QUARTERS
from ..persistence.battles import apply_quarter_resolution, get_quarter_snapshot
from ..utils.datetime_utils import now_utc
from .battle_state import resolve_outcome
from .damage import calculate_quarter_damage


@dataclass
class QuarterResolution:
    battle_id: str
    quarter: int
    applied: bool
    reason: str | None = None
    left_damage: int = 0
    right_damage: int = 0
    left_hp_before: int | None = None
    right_hp_before: int | None = None
    left_hp: int | None = None
    right_hp: int | None = None
    status: str | None = None
    winner: str | None = None
    final_blow_side: str | None = None
    damage: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "battle_id": self.battle_id,
            "quarter": self.quarter,
            "applied": self.applied,
            "reason": self.reason,
            "left_damage": self.left_damage,
            "right_damage": self.right_damage,
            "left_hp_before": self.left_hp_before,
            "right_hp_before": self.right_hp_before,
            "left_hp": self.left_hp,
            "right_hp": self.right_hp,
            "status": self.status,
            "winner": self.winner,
            "final_blow_side": self.final_blow_side,
            "damage": self.damage,
        }


def _skipped(battle: Any, quarter: int, reason: str) -> QuarterResolution:
    logger.info(
        "battle_quarter_resolution_skipped",
        battle_id=battle.id,
        quarter=quarter,
        reason=reason,
        status=battle.status,
        last_resolved_quarter=battle.last_resolved_quarter,
    )
    return QuarterResolution(
        battle_id=battle.id,
        quarter=quarter,
        applied=False,
        reason=reason,
        left_hp=battle.left_hp,
        right_hp=battle.right_hp,
        status=battle.status,
        winner=battle.winner,
        final_blow_side=battle.final_blow_side,
    )


def load_quarter_stats(battle: Any, quarter: int) -> QuarterStats:
    """Parse the stored snapshot for a quarter.

    Raises:
        MissingQuarterStatsError: no snapshot, or it does not validate
    """
    raw = get_quarter_snapshot(battle, quarter)
    if not raw:
        raise MissingQuarterStatsError(f"No stats found for battle {battle.id} quarter {quarter}")
    try:
        return QuarterStats.model_validate(raw)
    except ValidationError as exc:
        raise MissingQuarterStatsError(
            f"Unreadable stats for battle {battle.id} quarter {quarter}: {exc}"
        ) from exc


def resolve_quarter(
    session: Session,
    battle_id: str,
    quarter: int,
    stats: QuarterStats | None = None,
    now: datetime | None = None,
) -> QuarterResolution:
    """Resolve one quarter of a battle.

    Args:
        session: open database session; the caller owns the transaction
        battle_id: battle to resolve
        quarter: quarter number, 1-4
        stats: snapshot to resolve from; read from the row when omitted
        now: timestamp for updated_at

    Returns:
        QuarterResolution, with ``applied`` False and a ``reason`` when the
        call changed nothing (already resolved, out of order, game over, or
        lost a race with another worker)

    Raises:
        InvalidQuarterError: quarter outside 1-4
        BattleNotFoundError: no battle with this id
        MissingQuarterStatsError: no usable snapshot for the quarter
    """
    if quarter not in REGULATION_QUARTERS:
        raise InvalidQuarterError(f"Invalid quarter {quarter!r} (must be 1-4)")

    now = now or now_utc()
    # Bulk updates elsewhere skip session synchronization; always re-read the row
    battle = session.get(db_models.BattleMatchup, battle_id, populate_existing=True)
    if battle is None:
        raise BattleNotFoundError(f"Battle {battle_id} not found")

    if battle.status == db_models.BattleStatus.GAME_OVER.value:
        return _skipped(battle, quarter, "game_over")

    last_resolved = battle.last_resolved_quarter or 0
    if last_resolved >= quarter:
        return _skipped(battle, quarter, "already_resolved")
    if last_resolved < quarter - 1:
        return _skipped(battle, quarter, "previous_quarter_unresolved")

    if stats is None:
        stats = load_quarter_stats(battle, quarter)

    damage = calculate_quarter_damage(stats)
    left_hp_before = battle.left_hp
    right_hp_before = battle.right_hp
    left_hp = max(0, left_hp_before - damage.left_damage)
    right_hp = max(0, right_hp_before - damage.right_damage)

    outcome = resolve_outcome(
        quarter,
        left_hp,
        right_hp,
        stats.left_score,
        stats.right_score,
        current_status=battle.status,
    )

    applied = apply_quarter_resolution(
        session,
        battle.id,
        quarter,
        {
            "left_hp": left_hp,
            "right_hp": right_hp,
            "left_score": (battle.left_score or 0) + stats.left_score,
            "right_score": (battle.right_score or 0) + stats.right_score,
            "status": outcome.status,
            "winner": outcome.winner,
            "final_blow_side": outcome.final_blow_side,
            "current_quarter": quarter,
            "updated_at": now,
        },
    )
    if not applied:
        return _skipped(battle, quarter, "conflict")

    logger.info(
        "battle_quarter_resolved",
        battle_id=battle.id,
        quarter=quarter,
        left_damage=damage.left_damage,
        right_damage=damage.right_damage,
        total_damage=round(damage.total_damage, 4),
        left_hp=left_hp,
        right_hp=right_hp,
        status=outcome.status,
    )
    if outcome.is_over:
        logger.info(
            "battle_game_over",
            battle_id=battle.id,
            quarter=quarter,
            winner=outcome.winner,
            final_blow_side=outcome.final_blow_side,
        )

    return QuarterResolution(
        battle_id=battle.id,
        quarter=quarter,
        applied=True,
        left_damage=damage.left_damage,
        right_damage=damage.right_damage,
        left_hp_before=left_hp_before,
        right_hp_before=right_hp_before,
        left_hp=left_hp,
        right_hp=right_hp,
        status=outcome.status,
        winner=outcome.winner,
        final_blow_side=outcome.final_blow_side,
        damage=damage.as_dict(),
    )
