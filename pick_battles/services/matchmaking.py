"""Matchmaking: pair cappers holding opposing spread picks on upcoming games.

The home-side picker always plays on the left, the away-side picker on the
right. Re-running over the same games creates nothing new.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import db_models
from ..logging import logger
from ..persistence.battles import create_matchup, find_existing_matchup
from ..utils.datetime_utils import now_utc

SPREAD_PICK_TYPE = "spread"


def partition_picks(
    picks: Iterable[Any], home_abbr: str | None, away_abbr: str | None
) -> tuple[list[Any], list[Any]]:
    """Split spread picks into home-side and away-side pickers.

    Matches by substring on the selection text. A selection containing the
    home abbreviation counts as home even if it also contains the away one.
    """
    home_picks: list[Any] = []
    away_picks: list[Any] = []
    for pick in picks:
        selection = pick.selection or ""
        if home_abbr and home_abbr in selection:
            home_picks.append(pick)
        elif away_abbr and away_abbr in selection:
            away_picks.append(pick)
    return home_picks, away_picks


def get_upcoming_games(session: Session, sport: str, now: datetime) -> list:
    Game = db_models.Game
    return (
        session.query(Game)
        .filter(
            Game.sport == sport,
            Game.status == db_models.GameStatus.scheduled.value,
            Game.game_start_time > now,
        )
        .order_by(Game.game_start_time.asc())
        .all()
    )


def get_pending_spread_picks(session: Session, game_id: str) -> list:
    Pick = db_models.Pick
    return (
        session.query(Pick)
        .filter(
            Pick.game_id == game_id,
            Pick.pick_type == SPREAD_PICK_TYPE,
            Pick.status == db_models.PickStatus.pending.value,
        )
        .all()
    )


def create_battle_matchups(
    session: Session,
    sport: str | None = None,
    now: datetime | None = None,
    starting_hp: int | None = None,
) -> dict[str, Any]:
    """Create a battle for every opposing (home, away) picker pair.

    Returns a summary dict with games_scanned, matchups_created,
    matchups_skipped, errors, and details of each created matchup.
    """
    sport = sport or settings.battle_config.sport
    now = now or now_utc()
    starting_hp = starting_hp if starting_hp is not None else settings.battle_config.starting_hp

    games = get_upcoming_games(session, sport, now)
    logger.info("battle_matchmaking_start", sport=sport, games_count=len(games))

    created: list[dict[str, Any]] = []
    skipped = 0
    errors = 0

    for game in games:
        home_abbr = game.home_abbreviation
        away_abbr = game.away_abbreviation
        if not home_abbr or not away_abbr:
            logger.warning("battle_matchmaking_missing_abbreviation", game_id=game.id)
            continue

        picks = get_pending_spread_picks(session, game.id)
        home_picks, away_picks = partition_picks(picks, home_abbr, away_abbr)
        if not home_picks or not away_picks:
            logger.debug(
                "battle_matchmaking_no_opponents",
                game_id=game.id,
                home_pickers=len(home_picks),
                away_pickers=len(away_picks),
            )
            continue

        for home_pick in home_picks:
            for away_pick in away_picks:
                if home_pick.capper == away_pick.capper:
                    continue

                try:
                    # One savepoint per pair; a failed lookup must not abort the scan
                    with session.begin_nested():
                        if find_existing_matchup(session, game.id, home_pick.capper, away_pick.capper):
                            skipped += 1
                            continue
                        matchup = create_matchup(session, game, home_pick, away_pick, starting_hp)
                except SQLAlchemyError as exc:
                    logger.error(
                        "battle_matchup_create_failed",
                        game_id=game.id,
                        left_capper=home_pick.capper,
                        right_capper=away_pick.capper,
                        error=str(exc),
                    )
                    errors += 1
                    continue

                if matchup is None:
                    skipped += 1
                    continue

                logger.info(
                    "battle_matchup_created",
                    battle_id=matchup.id,
                    game_id=game.id,
                    left_capper=home_pick.capper,
                    right_capper=away_pick.capper,
                    left_team=home_abbr,
                    right_team=away_abbr,
                )
                created.append(
                    {
                        "battle_id": matchup.id,
                        "game_id": game.id,
                        "left_capper": home_pick.capper,
                        "right_capper": away_pick.capper,
                        "matchup": f"{home_abbr} vs {away_abbr}",
                    }
                )

    logger.info(
        "battle_matchmaking_complete",
        games_scanned=len(games),
        matchups_created=len(created),
        matchups_skipped=skipped,
        errors=errors,
    )

    return {
        "games_scanned": len(games),
        "matchups_created": len(created),
        "matchups_skipped": skipped,
        "errors": errors,
        "matchups": created,
    }
