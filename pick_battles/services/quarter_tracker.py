"""Quarter progress tracking for active battles.

There is no live game clock, so quarter completion is estimated from the
scheduled start: an NBA quarter takes roughly 18 real minutes including
stoppages, and stats are only requested 5 minutes after the estimated end.

Rate limit safeguards:
- 1-2s random jitter between box score requests
- Max 30 box score requests per tick
- 429 response → back off, skip remaining battles
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings, settings as default_settings
from ..db import db_models
from ..errors import BattleError, RateLimitError, StatsUnavailableError
from ..live.msf_models import MSFBoxscore, MSFPlayerLine
from ..live.mysportsfeeds import build_provider_game_id
from ..logging import logger
from ..models import PlayerStatLine, QuarterStats
from ..orm.battles import REGULATION_QUARTERS
from ..persistence.battles import (
    get_active_battles,
    is_quarter_complete,
    store_quarter_snapshot,
)
from ..utils.datetime_utils import ensure_utc, now_utc, to_et_date
from .battle_resolver import load_quarter_stats, resolve_quarter

DEFAULT_MINUTES_PER_QUARTER = 18
DEFAULT_BUFFER_MINUTES = 5


class StatsSource(Protocol):
    def fetch_boxscore(self, provider_game_id: str) -> MSFBoxscore | None: ...


def estimate_quarter_end(
    start_time: datetime,
    quarter: int,
    minutes_per_quarter: int = DEFAULT_MINUTES_PER_QUARTER,
) -> datetime:
    """Estimated wall-clock end of a quarter."""
    return ensure_utc(start_time) + timedelta(minutes=quarter * minutes_per_quarter)


def is_quarter_likely_complete(
    start_time: datetime,
    quarter: int,
    now: datetime,
    minutes_per_quarter: int = DEFAULT_MINUTES_PER_QUARTER,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> bool:
    end = estimate_quarter_end(start_time, quarter, minutes_per_quarter)
    return ensure_utc(now) >= end + timedelta(minutes=buffer_minutes)


@dataclass(frozen=True)
class QuarterCandidate:
    quarter: int
    # Snapshot already stored but damage not yet applied
    resolve_only: bool = False


def candidate_quarters(
    battle: Any,
    now: datetime,
    minutes_per_quarter: int = DEFAULT_MINUTES_PER_QUARTER,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> list[QuarterCandidate]:
    """Quarters of a battle that are due for processing, in order.

    Stops at the first open quarter whose buffered end has not passed, so a
    quarter is never offered before its predecessor.
    """
    if battle.game_start_time is None:
        return []

    last_resolved = battle.last_resolved_quarter or 0
    candidates: list[QuarterCandidate] = []
    for quarter in REGULATION_QUARTERS:
        if is_quarter_complete(battle, quarter):
            if quarter > last_resolved:
                candidates.append(QuarterCandidate(quarter, resolve_only=True))
            continue
        if not is_quarter_likely_complete(
            battle.game_start_time, quarter, now, minutes_per_quarter, buffer_minutes
        ):
            break
        candidates.append(QuarterCandidate(quarter))
    return candidates


def _player_key(player: PlayerStatLine) -> str:
    return player.id or player.name


def _to_stat_line(player: MSFPlayerLine) -> PlayerStatLine:
    return PlayerStatLine(
        id=player.player_id,
        name=player.name,
        points=player.points,
        rebounds=player.rebounds,
        assists=player.assists,
        blocks=player.blocks,
        three_pointers=player.three_pointers,
    )


def player_deltas(
    cumulative: Iterable[PlayerStatLine],
    previous: Iterable[PlayerStatLine] | None,
) -> list[PlayerStatLine]:
    """Per-quarter player lines from two cumulative readings.

    Players missing from the previous reading contribute their full line.
    Negative differences (stat corrections) clamp to zero.
    """
    before = {_player_key(player): player for player in previous or []}
    deltas: list[PlayerStatLine] = []
    for player in cumulative:
        prior = before.get(_player_key(player))
        if prior is None:
            deltas.append(player.model_copy())
            continue
        deltas.append(
            PlayerStatLine(
                id=player.id,
                name=player.name,
                points=max(0, player.points - prior.points),
                rebounds=max(0, player.rebounds - prior.rebounds),
                assists=max(0, player.assists - prior.assists),
                blocks=max(0, player.blocks - prior.blocks),
                three_pointers=max(0, player.three_pointers - prior.three_pointers),
            )
        )
    return deltas


def extract_quarter_stats(
    boxscore: MSFBoxscore,
    quarter: int,
    left_team: str,
    right_team: str,
    previous: QuarterStats | None,
    now: datetime,
) -> QuarterStats:
    """Build the stored snapshot for a quarter from a cumulative box score.

    Raises:
        StatsUnavailableError: the quarter is not in the box score, or the
            box score teams do not match the battle
    """
    period = boxscore.period(quarter)
    if period is None:
        raise StatsUnavailableError(f"Quarter {quarter} not yet in box score {boxscore.game_id}")

    home = boxscore.home_abbr.upper()
    away = boxscore.away_abbr.upper()
    left = left_team.upper()
    right = right_team.upper()

    home_players = [_to_stat_line(player) for player in boxscore.home_players]
    away_players = [_to_stat_line(player) for player in boxscore.away_players]

    if (left, right) == (home, away):
        left_score, right_score = period.home_score, period.away_score
        left_cumulative, right_cumulative = home_players, away_players
    elif (left, right) == (away, home):
        left_score, right_score = period.away_score, period.home_score
        left_cumulative, right_cumulative = away_players, home_players
    else:
        raise StatsUnavailableError(
            f"Box score teams {away}@{home} do not match battle {left_team} vs {right_team}"
        )

    return QuarterStats(
        quarter=quarter,
        left_score=left_score,
        right_score=right_score,
        left_players=player_deltas(left_cumulative, previous.left_cumulative if previous else None),
        right_players=player_deltas(right_cumulative, previous.right_cumulative if previous else None),
        left_cumulative=left_cumulative,
        right_cumulative=right_cumulative,
        timestamp=now,
    )


class QuarterProgressTracker:
    """Detects finished quarters, captures their stats and resolves them."""

    def __init__(
        self,
        stats_source: StatsSource,
        minutes_per_quarter: int = DEFAULT_MINUTES_PER_QUARTER,
        buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
        max_calls_per_cycle: int = 30,
        min_delay: float = 1.0,
        max_delay: float = 2.0,
        rate_limit_backoff_seconds: int = 60,
    ) -> None:
        self.stats_source = stats_source
        self.minutes_per_quarter = minutes_per_quarter
        self.buffer_minutes = buffer_minutes
        self.max_calls_per_cycle = max_calls_per_cycle
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.rate_limit_backoff_seconds = rate_limit_backoff_seconds

    @classmethod
    def from_settings(
        cls, stats_source: StatsSource, app_settings: Settings | None = None
    ) -> QuarterProgressTracker:
        app_settings = app_settings or default_settings
        battle_config = app_settings.battle_config
        stats_config = app_settings.stats_config
        return cls(
            stats_source,
            minutes_per_quarter=battle_config.minutes_per_quarter,
            buffer_minutes=battle_config.quarter_buffer_minutes,
            max_calls_per_cycle=stats_config.max_calls_per_cycle,
            min_delay=stats_config.min_request_delay,
            max_delay=stats_config.max_request_delay,
            rate_limit_backoff_seconds=stats_config.rate_limit_backoff_seconds,
        )

    def sync(self, session: Session, now: datetime | None = None) -> dict[str, Any]:
        """Run one tracking pass over all active battles.

        Each battle is processed independently; a failure on one is logged
        and counted without affecting the others.
        """
        now = now or now_utc()
        battles = get_active_battles(session)

        api_calls = 0
        battles_checked = 0
        quarters_processed = 0
        skipped = 0
        errors = 0
        rate_limited = False
        results: list[dict[str, Any]] = []

        logger.info("battle_quarter_sync_start", battles_count=len(battles))

        for battle in battles:
            if rate_limited:
                break

            candidates = candidate_quarters(battle, now, self.minutes_per_quarter, self.buffer_minutes)
            if not candidates:
                continue
            battles_checked += 1

            needs_fetch = any(not candidate.resolve_only for candidate in candidates)
            if needs_fetch:
                if api_calls >= self.max_calls_per_cycle:
                    logger.info("battle_quarter_sync_max_calls_reached", api_calls=api_calls)
                    break
                if api_calls > 0:
                    time.sleep(random.uniform(self.min_delay, self.max_delay))

            try:
                outcome = self._process_battle(session, battle, candidates, now, needs_fetch)
            except RateLimitError:
                logger.warning(
                    "battle_quarter_sync_rate_limited",
                    battle_id=battle.id,
                    api_calls_so_far=api_calls,
                )
                api_calls += 1
                rate_limited = True
                time.sleep(self.rate_limit_backoff_seconds)
                continue
            except (BattleError, SQLAlchemyError) as exc:
                logger.warning(
                    "battle_quarter_sync_battle_error",
                    battle_id=battle.id,
                    error=str(exc),
                )
                if needs_fetch:
                    api_calls += 1
                errors += 1
                continue
            except Exception as exc:
                logger.exception(
                    "battle_quarter_sync_battle_unexpected_error",
                    battle_id=battle.id,
                    error=str(exc),
                )
                if needs_fetch:
                    api_calls += 1
                errors += 1
                continue

            api_calls += outcome["api_calls"]
            quarters_processed += outcome["quarters_processed"]
            skipped += outcome["skipped"]
            results.extend(outcome["results"])

        logger.info(
            "battle_quarter_sync_complete",
            battles_checked=battles_checked,
            quarters_processed=quarters_processed,
            skipped=skipped,
            errors=errors,
            api_calls=api_calls,
            rate_limited=rate_limited,
        )

        return {
            "battles_checked": battles_checked,
            "quarters_processed": quarters_processed,
            "skipped": skipped,
            "errors": errors,
            "api_calls": api_calls,
            "rate_limited": rate_limited,
            "results": results,
        }

    def _provider_game_id(self, battle: Any) -> str:
        game = battle.game
        game_day = game.game_date if game is not None and game.game_date else None
        if game_day is None:
            game_day = to_et_date(battle.game_start_time)
        return build_provider_game_id(game_day, battle.right_team, battle.left_team)

    def _process_battle(
        self,
        session: Session,
        battle: Any,
        candidates: list[QuarterCandidate],
        now: datetime,
        needs_fetch: bool,
    ) -> dict[str, Any]:
        outcome: dict[str, Any] = {
            "api_calls": 0,
            "quarters_processed": 0,
            "skipped": 0,
            "results": [],
        }

        boxscore: MSFBoxscore | None = None
        if needs_fetch:
            provider_game_id = self._provider_game_id(battle)
            outcome["api_calls"] = 1
            boxscore = self.stats_source.fetch_boxscore(provider_game_id)
            if boxscore is None:
                logger.info(
                    "battle_boxscore_unavailable",
                    battle_id=battle.id,
                    provider_game_id=provider_game_id,
                )
                outcome["skipped"] += 1
                return outcome

        previous: QuarterStats | None = None
        for candidate in candidates:
            quarter = candidate.quarter

            if candidate.resolve_only:
                with session.begin_nested():
                    resolution = resolve_quarter(session, battle.id, quarter, now=now)
            else:
                if previous is None and quarter > 1:
                    previous = load_quarter_stats(battle, quarter - 1)
                try:
                    stats = extract_quarter_stats(
                        boxscore, quarter, battle.left_team, battle.right_team, previous, now
                    )
                except StatsUnavailableError as exc:
                    logger.info(
                        "battle_quarter_stats_unavailable",
                        battle_id=battle.id,
                        quarter=quarter,
                        reason=str(exc),
                    )
                    outcome["skipped"] += 1
                    break

                with session.begin_nested():
                    stored = store_quarter_snapshot(session, battle.id, quarter, stats.to_json(), now)
                    if not stored:
                        logger.info(
                            "battle_quarter_stats_already_stored",
                            battle_id=battle.id,
                            quarter=quarter,
                        )
                        outcome["skipped"] += 1
                        break
                    logger.info(
                        "battle_quarter_stats_stored",
                        battle_id=battle.id,
                        quarter=quarter,
                        left_score=stats.left_score,
                        right_score=stats.right_score,
                    )
                    resolution = resolve_quarter(session, battle.id, quarter, stats=stats, now=now)

            previous = None if candidate.resolve_only else stats
            outcome["results"].append(resolution.as_dict())
            if not resolution.applied:
                outcome["skipped"] += 1
                break
            outcome["quarters_processed"] += 1
            if resolution.status == db_models.BattleStatus.GAME_OVER.value:
                break

        return outcome
