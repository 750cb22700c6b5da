"""ORM models for games, picks and battle matchups.

Import models from their respective modules:
    from pick_battles.orm.battles import BattleMatchup, BattleStatus
    from pick_battles.orm.sports import Game, Pick
"""

from __future__ import annotations

from .base import Base
from .battles import REGULATION_QUARTERS, BattleMatchup, BattleSide, BattleStatus
from .sports import Game, GameStatus, Pick, PickStatus

__all__ = [
    "Base",
    "BattleMatchup",
    "BattleSide",
    "BattleStatus",
    "Game",
    "GameStatus",
    "Pick",
    "PickStatus",
    "REGULATION_QUARTERS",
]
