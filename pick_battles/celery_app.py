"""Celery app configuration for the pick battle worker."""

from __future__ import annotations

from celery import Celery, signals
from celery.schedules import crontab

from .config import settings
from .logging import logger

QUEUE = "pick-battles"

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": 900,
    "task_soft_time_limit": 840,
    "task_default_queue": QUEUE,
}

app = Celery(
    "pick-battles",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["pick_battles.jobs.battle_tasks"],
)
app.conf.update(**celery_config)
app.conf.task_routes = {
    "create_battle_matchups": {"queue": QUEUE, "routing_key": QUEUE},
    "sync_battle_quarter_stats": {"queue": QUEUE, "routing_key": QUEUE},
    "simulate_battle_quarter": {"queue": QUEUE, "routing_key": QUEUE},
}
# Quarter sync runs often enough that a quarter is picked up shortly after
# its buffered end. Matchmaking only needs to see new picks before tip-off.
app.conf.beat_schedule = {
    "battle-quarter-sync": {
        "task": "sync_battle_quarter_stats",
        "schedule": crontab(minute=settings.battle_config.quarter_sync_crontab_minute),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
    "battle-matchmaking": {
        "task": "create_battle_matchups",
        "schedule": crontab(minute=settings.battle_config.matchmaking_crontab_minute),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    """Log worker startup."""
    worker_name = getattr(sender, "hostname", None) or (str(sender) if sender else "unknown")
    logger.info("celery_worker_ready", worker=worker_name)
