"""Exception taxonomy for battle processing.

Batch jobs catch these per game/battle so one failure never aborts the
rest of a tick.
"""

from __future__ import annotations


class BattleError(Exception):
    """Base class for battle processing errors."""


class BattleNotFoundError(BattleError):
    """Referenced battle or game does not exist."""


class InvalidQuarterError(BattleError):
    """Quarter number is outside the supported range."""


class MissingQuarterStatsError(BattleError):
    """No snapshot has been stored for the requested quarter."""


class StatsUnavailableError(BattleError):
    """Box score missing, malformed, or not yet covering the quarter."""


class RateLimitError(BattleError):
    """Stats provider returned HTTP 429."""
