#!/usr/bin/env python3
"""Fetch and print a normalized MySportsFeeds box score.

Without arguments, uses the most recent final game in the database. Useful
for checking provider credentials and the parser against live payloads.

Usage:
    python scripts/inspect_boxscore.py [--game-id 20260105-BOS-LAL] [--quarter 2]
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add repository root to path to import pick_battles
repo_dir = Path(__file__).resolve().parent.parent
if str(repo_dir) not in sys.path:
    sys.path.insert(0, str(repo_dir))

from pick_battles.db import db_models, get_session
from pick_battles.errors import RateLimitError, StatsUnavailableError
from pick_battles.live.mysportsfeeds import MySportsFeedsClient, build_provider_game_id
from pick_battles.logging import logger
from pick_battles.services.quarter_tracker import extract_quarter_stats
from pick_battles.utils.datetime_utils import now_utc, to_et_date

Game = db_models.Game


def latest_final_game_id() -> str | None:
    """Provider id for the most recent final game, if any."""
    with get_session() as session:
        game = (
            session.query(Game)
            .filter(Game.status == db_models.GameStatus.final.value)
            .order_by(Game.game_start_time.desc())
            .first()
        )
        if game is None or not game.home_abbreviation or not game.away_abbreviation:
            return None
        game_day = game.game_date or to_et_date(game.game_start_time)
        return build_provider_game_id(game_day, game.away_abbreviation, game.home_abbreviation)


def inspect_boxscore(game_id: str, quarter: int | None = None) -> int:
    with MySportsFeedsClient() as client:
        try:
            boxscore = client.fetch_boxscore(game_id)
        except RateLimitError:
            logger.error("inspect_boxscore_rate_limited", game_id=game_id)
            return 1

    if boxscore is None:
        logger.error("inspect_boxscore_unavailable", game_id=game_id)
        return 1

    output = {
        "game_id": boxscore.game_id,
        "home": boxscore.home_abbr,
        "away": boxscore.away_abbr,
        "periods": {number: asdict(period) for number, period in sorted(boxscore.periods.items())},
        "home_players": [asdict(player) for player in boxscore.home_players],
        "away_players": [asdict(player) for player in boxscore.away_players],
    }
    if quarter is not None:
        try:
            stats = extract_quarter_stats(
                boxscore, quarter, boxscore.home_abbr, boxscore.away_abbr, None, now_utc()
            )
        except StatsUnavailableError as exc:
            logger.error("inspect_boxscore_quarter_unavailable", game_id=game_id, error=str(exc))
            return 1
        output["quarter_snapshot"] = stats.to_json()

    print(json.dumps(output, indent=2, default=str))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch and print a normalized box score")
    parser.add_argument(
        "--game-id",
        type=str,
        help="Provider game id (YYYYMMDD-AWAY-HOME). Defaults to the latest final game.",
    )
    parser.add_argument(
        "--quarter",
        type=int,
        help="Also print the battle snapshot this quarter would store (home on the left).",
    )

    args = parser.parse_args()

    game_id = args.game_id or latest_final_game_id()
    if not game_id:
        logger.error("inspect_boxscore_no_game")
        sys.exit(1)

    sys.exit(inspect_boxscore(game_id, quarter=args.quarter))


if __name__ == "__main__":
    main()
