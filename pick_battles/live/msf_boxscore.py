"""MySportsFeeds boxscore fetching and parsing.

Handles both payload layouts seen from the boxscore endpoint:
- v2.x: ``scoring.quarters`` + ``stats.{home,away}.players[].playerStats[0]``
- legacy: ``periodSummary.period`` + ``{home,away}Team.{home,away}Players.playerEntry``
"""

from __future__ import annotations

from typing import Any

import httpx

from ..errors import RateLimitError, StatsUnavailableError
from ..logging import logger
from ..utils.parsing import parse_int, parse_int_or_zero
from .msf_constants import MSF_BOXSCORE_PATH
from .msf_models import MSFBoxscore, MSFPeriodScore, MSFPlayerLine


def _player_name(player: dict) -> str:
    return player.get("lastName") or "Unknown"


def _build_player_line(player: dict, stats: dict) -> MSFPlayerLine:
    """Derive the battle stat line from raw player counters.

    Points are rebuilt from made shots: 2PT x2 + 3PT x3 + FT.
    """
    field_goals = stats.get("fieldGoals") or {}
    free_throws = stats.get("freeThrows") or {}
    rebounds = stats.get("rebounds") or {}
    offense = stats.get("offense") or {}
    defense = stats.get("defense") or {}

    two_made = parse_int_or_zero(field_goals.get("fg2PtMade", field_goals.get("2PtMade")))
    three_made = parse_int_or_zero(field_goals.get("fg3PtMade", field_goals.get("3PtMade")))
    ft_made = parse_int_or_zero(free_throws.get("ftMade"))

    player_id = player.get("id")
    return MSFPlayerLine(
        player_id=str(player_id) if player_id is not None else None,
        name=_player_name(player),
        points=two_made * 2 + three_made * 3 + ft_made,
        rebounds=parse_int_or_zero(rebounds.get("reb")),
        assists=parse_int_or_zero(offense.get("ast")),
        blocks=parse_int_or_zero(defense.get("blk")),
        three_pointers=three_made,
    )


class MSFBoxscoreFetcher:
    """Fetches and parses boxscore data from the MySportsFeeds API."""

    def __init__(self, client: httpx.Client, base_url: str, season: str) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.season = season

    def boxscore_url(self, game_id: str) -> str:
        path = MSF_BOXSCORE_PATH.format(season=self.season, game_id=game_id)
        return f"{self.base_url}/{path}"

    def fetch_boxscore(self, game_id: str) -> MSFBoxscore | None:
        """Fetch a boxscore by provider game id.

        Returns:
            MSFBoxscore, or None if the request failed or the payload is unusable

        Raises:
            RateLimitError: provider answered 429
        """
        url = self.boxscore_url(game_id)
        logger.info("msf_boxscore_fetch", url=url, game_id=game_id)

        try:
            response = self.client.get(url, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            logger.warning("msf_boxscore_fetch_timeout", game_id=game_id, error=str(exc))
            return None
        except httpx.HTTPError as exc:
            logger.error("msf_boxscore_fetch_error", game_id=game_id, error=str(exc))
            return None

        if response.status_code == 429:
            logger.warning("msf_boxscore_rate_limited", game_id=game_id, status=429)
            raise RateLimitError(f"MySportsFeeds rate limited boxscore {game_id}")

        if response.status_code == 404:
            logger.warning("msf_boxscore_not_found", game_id=game_id, status=404)
            return None

        if response.status_code != 200:
            logger.warning(
                "msf_boxscore_fetch_failed",
                game_id=game_id,
                status=response.status_code,
                body=response.text[:200] if response.text else "",
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("msf_boxscore_invalid_json", game_id=game_id, error=str(exc))
            return None

        try:
            return parse_boxscore_payload(payload, game_id)
        except (StatsUnavailableError, AttributeError, TypeError, KeyError, IndexError) as exc:
            logger.warning(
                "msf_boxscore_malformed",
                game_id=game_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None


def parse_boxscore_payload(payload: Any, game_id: str) -> MSFBoxscore:
    """Parse boxscore JSON into the normalized structure.

    Raises:
        StatsUnavailableError: payload lacks team abbreviations
    """
    if not isinstance(payload, dict):
        raise StatsUnavailableError("boxscore payload is not an object")

    game = payload.get("game") or {}
    home_abbr = (game.get("homeTeam") or {}).get("abbreviation")
    away_abbr = (game.get("awayTeam") or {}).get("abbreviation")
    if not home_abbr or not away_abbr:
        raise StatsUnavailableError("boxscore missing team abbreviations")

    periods = _parse_periods(payload)
    home_players, away_players = _parse_players(payload)

    logger.info(
        "msf_boxscore_parsed",
        game_id=game_id,
        home=home_abbr,
        away=away_abbr,
        periods=sorted(periods),
        home_players=len(home_players),
        away_players=len(away_players),
    )

    return MSFBoxscore(
        game_id=game_id,
        home_abbr=str(home_abbr),
        away_abbr=str(away_abbr),
        periods=periods,
        home_players=home_players,
        away_players=away_players,
    )


def _parse_periods(payload: dict) -> dict[int, MSFPeriodScore]:
    periods: dict[int, MSFPeriodScore] = {}

    scoring = payload.get("scoring") or {}
    entries = [
        (entry.get("quarterNumber"), entry)
        for entry in scoring.get("quarters") or []
    ]
    if not entries:
        period_summary = payload.get("periodSummary") or {}
        entries = [
            (entry.get("@number"), entry)
            for entry in period_summary.get("period") or []
        ]

    for raw_number, entry in entries:
        number = parse_int(raw_number)
        if number is None:
            continue
        home_score = parse_int(entry.get("homeScore"))
        away_score = parse_int(entry.get("awayScore"))
        # A quarter still in progress may not have scores yet
        if home_score is None or away_score is None:
            continue
        periods[number] = MSFPeriodScore(number=number, home_score=home_score, away_score=away_score)

    return periods


def _parse_players(payload: dict) -> tuple[list[MSFPlayerLine], list[MSFPlayerLine]]:
    stats = payload.get("stats")
    if isinstance(stats, dict) and (stats.get("home") or stats.get("away")):
        return (
            _parse_v2_players((stats.get("home") or {}).get("players") or []),
            _parse_v2_players((stats.get("away") or {}).get("players") or []),
        )

    home_entries = ((payload.get("homeTeam") or {}).get("homePlayers") or {}).get("playerEntry") or []
    away_entries = ((payload.get("awayTeam") or {}).get("awayPlayers") or {}).get("playerEntry") or []
    return _parse_legacy_players(home_entries), _parse_legacy_players(away_entries)


def _parse_v2_players(entries: list[dict]) -> list[MSFPlayerLine]:
    players: list[MSFPlayerLine] = []
    for entry in entries:
        player = entry.get("player") or {}
        player_stats = entry.get("playerStats") or [{}]
        players.append(_build_player_line(player, player_stats[0] or {}))
    return players


def _parse_legacy_players(entries: list[dict]) -> list[MSFPlayerLine]:
    return [
        _build_player_line(entry.get("player") or {}, entry.get("stats") or {})
        for entry in entries
    ]
