"""Tests for battle persistence helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError

from conftest import make_battle
from pick_battles.persistence.battles import (
    apply_quarter_resolution,
    create_matchup,
    find_existing_matchup,
    get_active_battles,
    get_quarter_snapshot,
    is_quarter_complete,
    quarter_column,
    store_quarter_snapshot,
)

_NOW = datetime(2026, 1, 5, 20, 0, tzinfo=UTC)


def _make_game() -> MagicMock:
    game = MagicMock()
    game.id = "game-1"
    game.home_abbreviation = "LAL"
    game.away_abbreviation = "BOS"
    game.spread_line = Decimal("-4.5")
    game.game_start_time = _NOW
    return game


def _make_pick(pick_id: str, capper: str) -> MagicMock:
    pick = MagicMock()
    pick.id = pick_id
    pick.capper = capper
    return pick


class TestQuarterHelpers:
    def test_quarter_column(self):
        assert quarter_column(3, "complete") == "q3_complete"
        assert quarter_column(1, "stats") == "q1_stats"

    def test_is_quarter_complete(self):
        battle = make_battle(q2_complete=True)
        assert is_quarter_complete(battle, 2) is True
        assert is_quarter_complete(battle, 3) is False

    def test_get_quarter_snapshot(self):
        battle = make_battle(q1_stats={"quarter": 1})
        assert get_quarter_snapshot(battle, 1) == {"quarter": 1}
        assert get_quarter_snapshot(battle, 2) is None


class TestQueries:
    def test_get_active_battles(self):
        session = MagicMock()
        battle = make_battle()
        session.query.return_value.filter.return_value.order_by.return_value.all.return_value = [battle]

        assert get_active_battles(session) == [battle]

    def test_find_existing_matchup(self):
        session = MagicMock()
        existing = make_battle()
        session.query.return_value.filter.return_value.first.return_value = existing

        assert find_existing_matchup(session, "game-1", "bob", "alice") is existing
        assert len(session.query.return_value.filter.call_args.args) == 2


class TestCreateMatchup:
    def test_home_picker_on_left(self):
        session = MagicMock()
        game = _make_game()

        matchup = create_matchup(session, game, _make_pick("p1", "alice"), _make_pick("p2", "bob"), 100)

        session.add.assert_called_once_with(matchup)
        session.flush.assert_called_once()
        session.begin_nested.assert_called_once()
        assert matchup.game_id == "game-1"
        assert matchup.left_capper_id == "alice"
        assert matchup.right_capper_id == "bob"
        assert matchup.left_pick_id == "p1"
        assert matchup.right_pick_id == "p2"
        assert matchup.left_team == "LAL"
        assert matchup.right_team == "BOS"
        assert matchup.spread == Decimal("-4.5")
        assert matchup.game_start_time == _NOW
        assert matchup.status == "scheduled"
        assert (matchup.left_hp, matchup.right_hp) == (100, 100)

    def test_unique_violation_returns_none(self):
        session = MagicMock()
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        result = create_matchup(session, _make_game(), _make_pick("p1", "alice"), _make_pick("p2", "bob"), 100)

        assert result is None


class TestStoreQuarterSnapshot:
    def test_sets_flag_and_snapshot(self):
        session = MagicMock()
        query = session.query.return_value.filter.return_value
        query.update.return_value = 1

        assert store_quarter_snapshot(session, "battle-1", 2, {"quarter": 2}, _NOW) is True

        values = query.update.call_args.args[0]
        assert values == {
            "q2_stats": {"quarter": 2},
            "q2_complete": True,
            "q2_end_time": _NOW,
            "current_quarter": 2,
            "updated_at": _NOW,
        }
        assert query.update.call_args.kwargs["synchronize_session"] is False

    def test_later_quarters_require_previous_flag(self):
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 1

        store_quarter_snapshot(session, "battle-1", 1, {}, _NOW)
        first_conditions = session.query.return_value.filter.call_args.args
        store_quarter_snapshot(session, "battle-1", 3, {}, _NOW)
        third_conditions = session.query.return_value.filter.call_args.args

        assert len(third_conditions) == len(first_conditions) + 1

    def test_flag_already_set(self):
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 0

        assert store_quarter_snapshot(session, "battle-1", 1, {}, _NOW) is False


class TestApplyQuarterResolution:
    def test_marks_quarter_resolved(self):
        session = MagicMock()
        query = session.query.return_value.filter.return_value
        query.update.return_value = 1

        applied = apply_quarter_resolution(session, "battle-1", 3, {"left_hp": 80, "status": "Q4_IN_PROGRESS"})

        assert applied is True
        values = query.update.call_args.args[0]
        assert values["left_hp"] == 80
        assert values["status"] == "Q4_IN_PROGRESS"
        assert values["q3_complete"] is True
        assert values["last_resolved_quarter"] == 3

    def test_conflict(self):
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 0

        assert apply_quarter_resolution(session, "battle-1", 1, {}) is False
