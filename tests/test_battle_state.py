"""Tests for the battle state machine."""

from __future__ import annotations

import pytest

from pick_battles.errors import InvalidQuarterError
from pick_battles.services.battle_state import (
    QUARTER_TRANSITIONS,
    advance_status,
    next_status,
    resolve_outcome,
)


class TestNextStatus:
    @pytest.mark.parametrize(
        "quarter,expected",
        [
            (1, "Q2_IN_PROGRESS"),
            (2, "HALFTIME"),
            (3, "Q4_IN_PROGRESS"),
            (4, "GAME_OVER"),
            (5, "OT2_IN_PROGRESS"),
            (6, "OT3_IN_PROGRESS"),
            (7, "OT4_IN_PROGRESS"),
            (8, "GAME_OVER"),
        ],
    )
    def test_transition_table(self, quarter, expected):
        assert next_status(quarter).value == expected

    @pytest.mark.parametrize("quarter", [0, 9, -1])
    def test_out_of_range(self, quarter):
        with pytest.raises(InvalidQuarterError):
            next_status(quarter)

    def test_table_covers_eight_quarters(self):
        assert sorted(QUARTER_TRANSITIONS) == list(range(1, 9))


class TestAdvanceStatus:
    def test_moves_forward(self):
        assert advance_status("scheduled", "Q2_IN_PROGRESS") == "Q2_IN_PROGRESS"
        assert advance_status("HALFTIME", "Q4_IN_PROGRESS") == "Q4_IN_PROGRESS"

    def test_never_regresses(self):
        assert advance_status("Q4_IN_PROGRESS", "HALFTIME") == "Q4_IN_PROGRESS"

    def test_game_over_is_terminal(self):
        assert advance_status("GAME_OVER", "Q2_IN_PROGRESS") == "GAME_OVER"

    def test_unknown_proposal_keeps_current(self):
        assert advance_status("HALFTIME", "BOGUS") == "HALFTIME"

    def test_none_current_treated_as_scheduled(self):
        assert advance_status(None, "Q2_IN_PROGRESS") == "Q2_IN_PROGRESS"


class TestResolveOutcome:
    def test_normal_quarter_follows_table(self):
        outcome = resolve_outcome(1, 90, 100, 25, 30, current_status="scheduled")
        assert outcome.status == "Q2_IN_PROGRESS"
        assert outcome.winner is None
        assert outcome.final_blow_side is None
        assert not outcome.is_over

    def test_knockout_overrides_first_quarter(self):
        outcome = resolve_outcome(1, 50, 0, 30, 20, current_status="scheduled")
        assert outcome.status == "GAME_OVER"
        assert outcome.winner == "left"
        assert outcome.final_blow_side == "left"

    def test_left_knocked_out(self):
        outcome = resolve_outcome(3, 0, 12, 20, 30)
        assert outcome.status == "GAME_OVER"
        assert outcome.winner == "right"
        assert outcome.final_blow_side == "right"

    def test_double_knockout_equal_scores_is_tie(self):
        outcome = resolve_outcome(2, 0, 0, 27, 27)
        assert outcome.status == "GAME_OVER"
        assert outcome.winner == "tie"
        assert outcome.final_blow_side is None

    def test_double_knockout_higher_quarter_score_wins(self):
        outcome = resolve_outcome(2, 0, 0, 22, 31)
        assert outcome.winner == "right"
        assert outcome.final_blow_side == "right"

    def test_regulation_end_more_hp_wins(self):
        outcome = resolve_outcome(4, 70, 55, 20, 25, current_status="Q4_IN_PROGRESS")
        assert outcome.status == "GAME_OVER"
        assert outcome.winner == "left"
        assert outcome.final_blow_side is None

    def test_regulation_end_equal_hp_is_tie(self):
        outcome = resolve_outcome(4, 60, 60, 20, 25, current_status="Q4_IN_PROGRESS")
        assert outcome.winner == "tie"

    def test_overtime_cap_forces_game_over(self):
        outcome = resolve_outcome(8, 40, 45, 10, 12, current_status="OT4_IN_PROGRESS")
        assert outcome.status == "GAME_OVER"
        assert outcome.winner == "right"
