"""Celery tasks for the battle engine.

- create_battle_matchups: pair opposing spread pickers (every 30 min)
- sync_battle_quarter_stats: capture finished quarters and resolve them (every 5 min)
- simulate_battle_quarter: manually re-run resolution for one stored quarter

Each scheduled task holds a Redis lock so slow runs never overlap.
"""

from __future__ import annotations

from celery import shared_task

from ..db import get_session
from ..errors import BattleNotFoundError, InvalidQuarterError, MissingQuarterStatsError
from ..logging import logger
from ..utils.redis_lock import LOCK_TIMEOUT_5MIN, LOCK_TIMEOUT_10MIN
from ..utils.redis_lock import acquire_redis_lock as _acquire_redis_lock
from ..utils.redis_lock import release_redis_lock as _release_redis_lock


@shared_task(name="create_battle_matchups")
def create_battle_matchups_task(sport: str | None = None) -> dict:
    """Create battles for upcoming games with opposing spread picks."""
    from ..services.matchmaking import create_battle_matchups

    if not _acquire_redis_lock("lock:create_battle_matchups", timeout=LOCK_TIMEOUT_10MIN):
        logger.debug("create_battle_matchups_skipped_locked")
        return {"skipped": True, "reason": "locked"}

    try:
        with get_session() as session:
            return create_battle_matchups(session, sport=sport)
    finally:
        _release_redis_lock("lock:create_battle_matchups")


@shared_task(name="sync_battle_quarter_stats")
def sync_battle_quarter_stats_task() -> dict:
    """Capture stats for finished quarters of active battles and apply damage."""
    from ..live.mysportsfeeds import MySportsFeedsClient
    from ..services.quarter_tracker import QuarterProgressTracker

    if not _acquire_redis_lock("lock:sync_battle_quarter_stats", timeout=LOCK_TIMEOUT_5MIN):
        logger.debug("sync_battle_quarter_stats_skipped_locked")
        return {"skipped": True, "reason": "locked"}

    try:
        with MySportsFeedsClient() as stats_client:
            tracker = QuarterProgressTracker.from_settings(stats_client)
            with get_session() as session:
                return tracker.sync(session)
    finally:
        _release_redis_lock("lock:sync_battle_quarter_stats")


@shared_task(name="simulate_battle_quarter")
def simulate_battle_quarter_task(battle_id: str, quarter: int) -> dict:
    """Resolve one quarter of a battle from its stored snapshot.

    Re-running an already-resolved quarter changes nothing.
    """
    from ..services.battle_resolver import resolve_quarter

    lock_name = f"lock:simulate_battle_quarter:{battle_id}"
    if not _acquire_redis_lock(lock_name, timeout=LOCK_TIMEOUT_5MIN):
        logger.debug("simulate_battle_quarter_skipped_locked", battle_id=battle_id)
        return {"skipped": True, "reason": "locked"}

    try:
        quarter_number = int(quarter)
        with get_session() as session:
            resolution = resolve_quarter(session, battle_id, quarter_number)
        return resolution.as_dict()
    except BattleNotFoundError as exc:
        logger.warning("simulate_battle_quarter_not_found", battle_id=battle_id, error=str(exc))
        return {"battle_id": battle_id, "quarter": quarter, "applied": False, "error": "not_found"}
    except (InvalidQuarterError, MissingQuarterStatsError, ValueError, TypeError) as exc:
        logger.warning(
            "simulate_battle_quarter_invalid",
            battle_id=battle_id,
            quarter=quarter,
            error=str(exc),
        )
        return {
            "battle_id": battle_id,
            "quarter": quarter,
            "applied": False,
            "error": "invalid_input",
            "detail": str(exc),
        }
    finally:
        _release_redis_lock(lock_name)
