"""Tests for Celery app wiring."""

from __future__ import annotations

from pick_battles.celery_app import app


def test_beat_schedule_tasks():
    tasks = {entry["task"] for entry in app.conf.beat_schedule.values()}
    assert tasks == {"sync_battle_quarter_stats", "create_battle_matchups"}


def test_quarter_sync_every_five_minutes():
    schedule = app.conf.beat_schedule["battle-quarter-sync"]["schedule"]
    assert schedule.minute == set(range(0, 60, 5))


def test_battle_tasks_routed():
    for name in ("create_battle_matchups", "sync_battle_quarter_stats", "simulate_battle_quarter"):
        assert app.conf.task_routes[name]["queue"] == "pick-battles"
