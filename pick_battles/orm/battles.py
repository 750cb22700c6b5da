"""Battle matchups between cappers holding opposing spread picks."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import text

from .base import Base
from .sports import Game

# Quarters tracked with dedicated snapshot columns
REGULATION_QUARTERS = (1, 2, 3, 4)


class BattleStatus(str, Enum):
    """Battle lifecycle.

    Happy path: scheduled → Q2_IN_PROGRESS → HALFTIME → Q4_IN_PROGRESS → GAME_OVER
    Overtime path continues through OT2/OT3/OT4 and is force-ended at quarter 8.
    """

    SCHEDULED = "scheduled"
    Q2_IN_PROGRESS = "Q2_IN_PROGRESS"
    HALFTIME = "HALFTIME"
    Q4_IN_PROGRESS = "Q4_IN_PROGRESS"
    OT2_IN_PROGRESS = "OT2_IN_PROGRESS"
    OT3_IN_PROGRESS = "OT3_IN_PROGRESS"
    OT4_IN_PROGRESS = "OT4_IN_PROGRESS"
    GAME_OVER = "GAME_OVER"


class BattleSide(str, Enum):
    left = "left"
    right = "right"
    tie = "tie"


class BattleMatchup(Base):
    """Head-to-head battle derived from two opposing picks on one game.

    left_* is always the home-side picker, right_* the away-side picker.
    HP only ever decreases; q{n}_complete flags are set once and never reset.
    """

    __tablename__ = "battle_matchups"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    game_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("games.id"), nullable=False, index=True
    )

    left_capper_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    right_capper_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    left_pick_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("picks.id"), nullable=False
    )
    right_pick_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("picks.id"), nullable=False
    )
    left_team: Mapped[str] = mapped_column(String(10), nullable=False)
    right_team: Mapped[str] = mapped_column(String(10), nullable=False)

    spread: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    game_start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        server_default=BattleStatus.SCHEDULED.value,
        index=True,
    )
    current_quarter: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    last_resolved_quarter: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )

    left_hp: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    right_hp: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    left_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    right_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    q1_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    q2_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    q3_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    q4_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    q1_stats: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    q2_stats: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    q3_stats: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    q4_stats: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    q1_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    q2_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    q3_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    q4_end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    winner: Mapped[str | None] = mapped_column(String(10), nullable=True)
    final_blow_side: Mapped[str | None] = mapped_column(String(10), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    game: Mapped[Game] = relationship("Game")

    __table_args__ = (
        CheckConstraint("left_hp BETWEEN 0 AND 100", name="ck_battle_matchups_left_hp"),
        CheckConstraint("right_hp BETWEEN 0 AND 100", name="ck_battle_matchups_right_hp"),
        Index(
            "idx_battle_matchups_active",
            "status",
            "game_start_time",
            postgresql_where=text("status <> 'GAME_OVER'"),
        ),
    )


# Unordered capper pair is unique per game: (A, B) and (B, A) collide
Index(
    "uq_battle_matchups_game_capper_pair",
    BattleMatchup.game_id,
    func.least(BattleMatchup.left_capper_id, BattleMatchup.right_capper_id),
    func.greatest(BattleMatchup.left_capper_id, BattleMatchup.right_capper_id),
    unique=True,
)
