"""Games and picks owned by the ingestion and pick-placement services.

The battle engine only reads these tables.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class GameStatus(str, Enum):
    scheduled = "scheduled"
    live = "live"
    final = "final"


class PickStatus(str, Enum):
    pending = "pending"
    won = "won"
    lost = "lost"
    push = "push"


class Game(Base):
    """Real-world game. Team columns hold {"name", "abbreviation"} objects."""

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    sport: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    home_team: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    away_team: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    game_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    game_start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    spread_line: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=GameStatus.scheduled.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    picks: Mapped[list["Pick"]] = relationship("Pick", back_populates="game")

    @property
    def home_abbreviation(self) -> str | None:
        return (self.home_team or {}).get("abbreviation")

    @property
    def away_abbreviation(self) -> str | None:
        return (self.away_team or {}).get("abbreviation")

    __table_args__ = (
        Index("idx_games_sport_status_start", "sport", "status", "game_start_time"),
    )


class Pick(Base):
    """A capper's wager selection on a game."""

    __tablename__ = "picks"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    game_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("games.id"), nullable=False, index=True
    )
    capper: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    pick_type: Mapped[str] = mapped_column(String(20), nullable=False)
    selection: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=PickStatus.pending.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    game: Mapped[Game] = relationship("Game", back_populates="picks")
