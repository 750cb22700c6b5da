"""Tests for battle Celery tasks."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from pick_battles.errors import BattleNotFoundError, InvalidQuarterError
from pick_battles.jobs.battle_tasks import (
    create_battle_matchups_task,
    simulate_battle_quarter_task,
    sync_battle_quarter_stats_task,
)
from pick_battles.services.battle_resolver import QuarterResolution

_MOD = "pick_battles.jobs.battle_tasks"


def _session_ctx(mock_get_session) -> MagicMock:
    session = MagicMock()
    mock_get_session.return_value.__enter__.return_value = session
    return session


@patch(f"{_MOD}._release_redis_lock")
@patch(f"{_MOD}._acquire_redis_lock", return_value=True)
@patch(f"{_MOD}.get_session")
class TestCreateBattleMatchupsTask:
    @patch("pick_battles.services.matchmaking.create_battle_matchups")
    def test_runs_matchmaking(self, mock_create, mock_get_session, mock_acquire, mock_release):
        session = _session_ctx(mock_get_session)
        mock_create.return_value = {"matchups_created": 2}

        result = create_battle_matchups_task()

        mock_create.assert_called_once_with(session, sport=None)
        assert result == {"matchups_created": 2}
        mock_release.assert_called_once_with("lock:create_battle_matchups")

    def test_skips_when_locked(self, mock_get_session, mock_acquire, mock_release):
        mock_acquire.return_value = False

        result = create_battle_matchups_task()

        assert result == {"skipped": True, "reason": "locked"}
        mock_get_session.assert_not_called()
        mock_release.assert_not_called()


@patch(f"{_MOD}._release_redis_lock")
@patch(f"{_MOD}._acquire_redis_lock", return_value=True)
@patch(f"{_MOD}.get_session")
class TestSyncBattleQuarterStatsTask:
    @patch("pick_battles.services.quarter_tracker.QuarterProgressTracker")
    @patch("pick_battles.live.mysportsfeeds.MySportsFeedsClient")
    def test_runs_tracker_with_injected_client(
        self, mock_client_cls, mock_tracker_cls, mock_get_session, mock_acquire, mock_release
    ):
        session = _session_ctx(mock_get_session)
        stats_client = MagicMock()
        mock_client_cls.return_value.__enter__.return_value = stats_client
        tracker = mock_tracker_cls.from_settings.return_value
        tracker.sync.return_value = {"quarters_processed": 1}

        result = sync_battle_quarter_stats_task()

        mock_tracker_cls.from_settings.assert_called_once_with(stats_client)
        tracker.sync.assert_called_once_with(session)
        assert result == {"quarters_processed": 1}
        mock_release.assert_called_once_with("lock:sync_battle_quarter_stats")

    def test_skips_when_locked(self, mock_get_session, mock_acquire, mock_release):
        mock_acquire.return_value = False
        assert sync_battle_quarter_stats_task() == {"skipped": True, "reason": "locked"}


@patch(f"{_MOD}._release_redis_lock")
@patch(f"{_MOD}._acquire_redis_lock", return_value=True)
@patch(f"{_MOD}.get_session")
class TestSimulateBattleQuarterTask:
    @patch("pick_battles.services.battle_resolver.resolve_quarter")
    def test_returns_resolution(self, mock_resolve, mock_get_session, mock_acquire, mock_release):
        session = _session_ctx(mock_get_session)
        mock_resolve.return_value = QuarterResolution(
            battle_id="battle-1", quarter=2, applied=False, reason="already_resolved"
        )

        result = simulate_battle_quarter_task("battle-1", "2")

        mock_resolve.assert_called_once_with(session, "battle-1", 2)
        assert result["applied"] is False
        assert result["reason"] == "already_resolved"
        mock_release.assert_called_once_with("lock:simulate_battle_quarter:battle-1")

    @patch("pick_battles.services.battle_resolver.resolve_quarter")
    def test_not_found(self, mock_resolve, mock_get_session, mock_acquire, mock_release):
        _session_ctx(mock_get_session)
        mock_resolve.side_effect = BattleNotFoundError("missing")

        result = simulate_battle_quarter_task("missing", 1)

        assert result["error"] == "not_found"
        assert result["applied"] is False
        mock_release.assert_called_once()

    @patch("pick_battles.services.battle_resolver.resolve_quarter")
    def test_invalid_quarter(self, mock_resolve, mock_get_session, mock_acquire, mock_release):
        _session_ctx(mock_get_session)
        mock_resolve.side_effect = InvalidQuarterError("bad quarter")

        result = simulate_battle_quarter_task("battle-1", 7)

        assert result["error"] == "invalid_input"
        assert result["detail"] == "bad quarter"

    @pytest.mark.parametrize("quarter", ["x", None, "2.5"])
    @patch("pick_battles.services.battle_resolver.resolve_quarter")
    def test_unparseable_quarter_is_invalid_input(
        self, mock_resolve, mock_get_session, mock_acquire, mock_release, quarter
    ):
        result = simulate_battle_quarter_task("battle-1", quarter)

        mock_resolve.assert_not_called()
        mock_get_session.assert_not_called()
        assert result["error"] == "invalid_input"
        assert result["applied"] is False
        assert result["quarter"] == quarter
        mock_release.assert_called_once_with("lock:simulate_battle_quarter:battle-1")
