"""Live box score providers."""

from __future__ import annotations

from .msf_models import MSFBoxscore, MSFPeriodScore, MSFPlayerLine
from .mysportsfeeds import MySportsFeedsClient, build_provider_game_id

__all__ = [
    "MSFBoxscore",
    "MSFPeriodScore",
    "MSFPlayerLine",
    "MySportsFeedsClient",
    "build_provider_game_id",
]
