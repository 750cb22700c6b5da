"""Create battle_matchups table.

games and picks are owned by other services and must already exist.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None


def _quarter_columns() -> list[sa.Column]:
    columns: list[sa.Column] = []
    for quarter in (1, 2, 3, 4):
        columns.extend(
            [
                sa.Column(f"q{quarter}_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
                sa.Column(f"q{quarter}_stats", postgresql.JSONB(), nullable=True),
                sa.Column(f"q{quarter}_end_time", sa.DateTime(timezone=True), nullable=True),
            ]
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "battle_matchups",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("game_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("left_capper_id", sa.Text(), nullable=False),
        sa.Column("right_capper_id", sa.Text(), nullable=False),
        sa.Column("left_pick_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("picks.id"), nullable=False),
        sa.Column("right_pick_id", postgresql.UUID(as_uuid=False), sa.ForeignKey("picks.id"), nullable=False),
        sa.Column("left_team", sa.String(10), nullable=False),
        sa.Column("right_team", sa.String(10), nullable=False),
        sa.Column("spread", sa.Numeric(), nullable=True),
        sa.Column("game_start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="scheduled"),
        sa.Column("current_quarter", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_resolved_quarter", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("left_hp", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("right_hp", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("left_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("right_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_quarter_columns(),
        sa.Column("winner", sa.String(10), nullable=True),
        sa.Column("final_blow_side", sa.String(10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("left_hp BETWEEN 0 AND 100", name="ck_battle_matchups_left_hp"),
        sa.CheckConstraint("right_hp BETWEEN 0 AND 100", name="ck_battle_matchups_right_hp"),
    )

    op.create_index("ix_battle_matchups_game_id", "battle_matchups", ["game_id"])
    op.create_index("ix_battle_matchups_left_capper_id", "battle_matchups", ["left_capper_id"])
    op.create_index("ix_battle_matchups_right_capper_id", "battle_matchups", ["right_capper_id"])
    op.create_index("ix_battle_matchups_status", "battle_matchups", ["status"])
    op.create_index("ix_battle_matchups_game_start_time", "battle_matchups", ["game_start_time"])
    op.create_index(
        "idx_battle_matchups_active",
        "battle_matchups",
        ["status", "game_start_time"],
        postgresql_where=sa.text("status <> 'GAME_OVER'"),
    )
    # (A, B) and (B, A) on the same game are the same battle
    op.execute("""
        CREATE UNIQUE INDEX uq_battle_matchups_game_capper_pair
        ON battle_matchups (
            game_id,
            least(left_capper_id, right_capper_id),
            greatest(left_capper_id, right_capper_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS uq_battle_matchups_game_capper_pair")
    op.drop_index("idx_battle_matchups_active", table_name="battle_matchups")
    op.drop_index("ix_battle_matchups_game_start_time", table_name="battle_matchups")
    op.drop_index("ix_battle_matchups_status", table_name="battle_matchups")
    op.drop_index("ix_battle_matchups_right_capper_id", table_name="battle_matchups")
    op.drop_index("ix_battle_matchups_left_capper_id", table_name="battle_matchups")
    op.drop_index("ix_battle_matchups_game_id", table_name="battle_matchups")
    op.drop_table("battle_matchups")
