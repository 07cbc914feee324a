"""Celery app configuration for the sync worker."""

from __future__ import annotations

from celery import Celery, signals
from celery.schedules import crontab

from .config import settings
from .logging import logger

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": 3600,
    "task_soft_time_limit": 3300,
    "task_default_queue": "hoop-sync",
}

app = Celery(
    "hoop-sync",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["hoop_sync.jobs.sync_tasks"],
)
app.conf.update(**celery_config)

QUEUE = {"queue": "hoop-sync", "routing_key": "hoop-sync"}

# task name -> beat entry name and cadence. Live refresh is a no-op without live games.
SCHEDULE = {
    "sync_games": ("sync-games-every-15-min", crontab(minute="*/15")),
    "refresh_live_games": ("refresh-live-games-every-2-min", crontab(minute="*/2")),
    "sync_player_stats": ("sync-player-stats-every-30-min", crontab(minute="5,35")),
}

app.conf.task_routes = {task: dict(QUEUE) for task in SCHEDULE}
app.conf.beat_schedule = {
    entry: {"task": task, "schedule": schedule, "options": dict(QUEUE)}
    for task, (entry, schedule) in SCHEDULE.items()
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    """Called when the Celery worker is ready."""
    worker_name = getattr(sender, "hostname", None) or (str(sender) if sender else "unknown")
    logger.info("celery_worker_ready", worker=worker_name)


@signals.worker_shutting_down.connect
def on_worker_shutting_down(sender=None, **kwargs):
    # sender for this signal is the worker hostname string
    logger.info("celery_worker_shutting_down", worker=str(sender) if sender else "unknown")
