"""Battle matchup persistence helpers.

Every write that advances a battle is a conditional UPDATE whose WHERE clause
re-checks the progress flag it is about to set. A rowcount of 0 means another
worker already did the work; callers skip rather than retry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger


def quarter_column(quarter: int, suffix: str) -> str:
    """Column name for a per-quarter field, e.g. ``q2_complete``."""
    return f"q{quarter}_{suffix}"


def is_quarter_complete(battle: Any, quarter: int) -> bool:
    return bool(getattr(battle, quarter_column(quarter, "complete"), False))


def get_quarter_snapshot(battle: Any, quarter: int) -> dict[str, Any] | None:
    return getattr(battle, quarter_column(quarter, "stats"), None)


def get_active_battles(session: Session) -> list:
    """Battles that have not reached GAME_OVER, earliest tip first."""
    BattleMatchup = db_models.BattleMatchup
    return (
        session.query(BattleMatchup)
        .filter(BattleMatchup.status != db_models.BattleStatus.GAME_OVER.value)
        .order_by(BattleMatchup.game_start_time.asc())
        .all()
    )


def find_existing_matchup(session: Session, game_id: str, capper_a: str, capper_b: str):
    """Return the battle for this game and unordered capper pair, if any."""
    BattleMatchup = db_models.BattleMatchup
    return (
        session.query(BattleMatchup)
        .filter(
            BattleMatchup.game_id == game_id,
            or_(
                and_(
                    BattleMatchup.left_capper_id == capper_a,
                    BattleMatchup.right_capper_id == capper_b,
                ),
                and_(
                    BattleMatchup.left_capper_id == capper_b,
                    BattleMatchup.right_capper_id == capper_a,
                ),
            ),
        )
        .first()
    )


def create_matchup(
    session: Session,
    game: Any,
    home_pick: Any,
    away_pick: Any,
    starting_hp: int,
):
    """Insert a new battle: home picker on the left, away picker on the right.

    Runs inside a savepoint so a failed insert does not poison the caller's
    transaction. Returns None when the unique capper-pair index rejects the
    row (a concurrent run created it first).

    Raises:
        SQLAlchemyError: any other persistence failure
    """
    matchup = db_models.BattleMatchup(
        game_id=game.id,
        left_capper_id=home_pick.capper,
        right_capper_id=away_pick.capper,
        left_pick_id=home_pick.id,
        right_pick_id=away_pick.id,
        left_team=game.home_abbreviation,
        right_team=game.away_abbreviation,
        spread=game.spread_line,
        game_start_time=game.game_start_time,
        status=db_models.BattleStatus.SCHEDULED.value,
        left_hp=starting_hp,
        right_hp=starting_hp,
    )
    try:
        with session.begin_nested():
            session.add(matchup)
            session.flush()
    except IntegrityError:
        logger.info(
            "battle_matchup_exists_concurrent",
            game_id=game.id,
            left_capper=home_pick.capper,
            right_capper=away_pick.capper,
        )
        return None
    return matchup


def store_quarter_snapshot(
    session: Session,
    battle_id: str,
    quarter: int,
    snapshot: dict[str, Any],
    captured_at: datetime,
) -> bool:
    """Persist a quarter snapshot if the quarter is still open.

    The previous quarter must already be complete, and the battle must not be
    over. Returns True if this call set the flag.
    """
    BattleMatchup = db_models.BattleMatchup
    complete_col = getattr(BattleMatchup, quarter_column(quarter, "complete"))
    conditions = [
        BattleMatchup.id == battle_id,
        complete_col.is_(False),
        BattleMatchup.status != db_models.BattleStatus.GAME_OVER.value,
    ]
    if quarter > 1:
        conditions.append(getattr(BattleMatchup, quarter_column(quarter - 1, "complete")).is_(True))

    updated = (
        session.query(BattleMatchup)
        .filter(*conditions)
        .update(
            {
                quarter_column(quarter, "stats"): snapshot,
                quarter_column(quarter, "complete"): True,
                quarter_column(quarter, "end_time"): captured_at,
                "current_quarter": quarter,
                "updated_at": captured_at,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def apply_quarter_resolution(
    session: Session,
    battle_id: str,
    quarter: int,
    values: dict[str, Any],
) -> bool:
    """Write HP/status/outcome for a quarter in one guarded update.

    Only applies when the prior quarter was the last one resolved and the
    battle is still running. Returns True if the row was updated.
    """
    BattleMatchup = db_models.BattleMatchup
    updated = (
        session.query(BattleMatchup)
        .filter(
            BattleMatchup.id == battle_id,
            BattleMatchup.last_resolved_quarter == quarter - 1,
            BattleMatchup.status != db_models.BattleStatus.GAME_OVER.value,
        )
        .update(
            {
                **values,
                quarter_column(quarter, "complete"): True,
                "last_resolved_quarter": quarter,
            },
            synchronize_session=False,
        )
    )
    return updated == 1
