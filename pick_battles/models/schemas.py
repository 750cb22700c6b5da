"""Pydantic models stored inside battle rows.

Snapshots are persisted with camelCase keys (leftScore, leftPlayers, ...)
because the display layer reads the JSON columns directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MAX_QUARTER = 8


class PlayerStatLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str
    points: int = 0
    rebounds: int = 0
    assists: int = 0
    blocks: int = 0
    three_pointers: int = Field(default=0, alias="threePointers")


class QuarterStats(BaseModel):
    """Statistical snapshot for one quarter of a battle.

    ``left_players``/``right_players`` hold that quarter's production only.
    ``left_cumulative``/``right_cumulative`` hold the game-to-date lines the
    deltas were computed from, so the next quarter can diff against them.
    """

    model_config = ConfigDict(populate_by_name=True)

    quarter: int = Field(ge=1, le=MAX_QUARTER)
    left_score: int = Field(default=0, alias="leftScore")
    right_score: int = Field(default=0, alias="rightScore")
    left_players: list[PlayerStatLine] = Field(default_factory=list, alias="leftPlayers")
    right_players: list[PlayerStatLine] = Field(default_factory=list, alias="rightPlayers")
    left_cumulative: list[PlayerStatLine] = Field(default_factory=list, alias="leftCumulative")
    right_cumulative: list[PlayerStatLine] = Field(default_factory=list, alias="rightCumulative")
    timestamp: datetime

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
