"""Data models for MySportsFeeds box score processing.

Player lines are cumulative for the game at the time of the request;
per-quarter deltas are computed by the quarter tracker.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MSFPlayerLine:
    player_id: str | None
    name: str
    points: int
    rebounds: int
    assists: int
    blocks: int
    three_pointers: int


@dataclass(frozen=True)
class MSFPeriodScore:
    number: int
    home_score: int
    away_score: int


@dataclass
class MSFBoxscore:
    """Normalized box score from the MySportsFeeds boxscore endpoint."""

    game_id: str
    home_abbr: str
    away_abbr: str
    periods: dict[int, MSFPeriodScore] = field(default_factory=dict)
    home_players: list[MSFPlayerLine] = field(default_factory=list)
    away_players: list[MSFPlayerLine] = field(default_factory=list)

    def period(self, number: int) -> MSFPeriodScore | None:
        return self.periods.get(number)
