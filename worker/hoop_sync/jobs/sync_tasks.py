"""Scheduled sync tasks.

Each task holds a Redis lock for its whole run so overlapping beats (or
several workers) never sync the same thing concurrently.
"""

from __future__ import annotations

from datetime import timedelta

from celery import shared_task

from ..client import NotFound, ProviderError
from ..config import settings
from ..db import db_models, get_session
from ..logging import logger
from ..persistence import count_teams
from ..services import GameService, PlayerStatsService, TeamService
from ..utils.datetime_utils import date_range, today_et
from ..utils.redis_lock import acquire_redis_lock, release_redis_lock

GAME_SYNC_LOCK = "lock:game_sync"
LIVE_SYNC_LOCK = "lock:live_game_sync"
STATS_SYNC_LOCK = "lock:player_stats_sync"


@shared_task(name="sync_games")
def sync_games_task() -> dict:
    """Sync teams when incomplete, then the schedule window around today.

    Window: ``past_days`` before today through ``future_days`` after it.
    A provider failure on one day is logged and the remaining days continue.
    """
    config = settings.sync_config
    if not acquire_redis_lock(GAME_SYNC_LOCK, timeout=config.game_sync_lock_seconds):
        logger.debug("sync_games_skipped_locked")
        return {"skipped": True, "reason": "locked"}

    try:
        summary: dict = {"skipped": False, "teams_synced": False, "days": 0, "games": 0, "failed_days": []}
        with get_session() as session:
            stored_teams = count_teams(session)
        if stored_teams < config.expected_team_count:
            logger.info("teams_incomplete", stored=stored_teams, expected=config.expected_team_count)
            try:
                TeamService().sync_all()
                summary["teams_synced"] = True
            except ProviderError as exc:
                logger.error("sync_teams_failed", error=str(exc), exc_info=True)

        games = GameService()
        start = today_et() - timedelta(days=config.past_days)
        for day in date_range(start, config.past_days + 1 + config.future_days):
            try:
                stats = games.sync_date(day)
            except ProviderError as exc:
                logger.error("sync_games_day_failed", date=str(day), error=str(exc), exc_info=True)
                summary["failed_days"].append(str(day))
                continue
            summary["days"] += 1
            summary["games"] += stats.inserted

        logger.info("sync_games_complete", **summary)
        return summary
    finally:
        release_redis_lock(GAME_SYNC_LOCK)


@shared_task(name="refresh_live_games")
def refresh_live_games_task() -> dict:
    """Re-sync today's schedule only while a stored game is live or about to tip."""
    if not acquire_redis_lock(LIVE_SYNC_LOCK, timeout=120):
        logger.debug("refresh_live_games_skipped_locked")
        return {"skipped": True, "reason": "locked"}

    try:
        today = today_et()
        with get_session() as session:
            live = (
                session.query(db_models.Game.id)
                .filter(
                    db_models.Game.game_date == today,
                    db_models.Game.status == db_models.GameStatus.live.value,
                )
                .count()
            )
        if not live:
            return {"skipped": True, "reason": "no_live_games"}
        try:
            stats = GameService().sync_date(today)
        except ProviderError as exc:
            logger.warning("refresh_live_games_failed", error=str(exc))
            return {"skipped": False, "error": str(exc)}
        return {"skipped": False, "live_games": live, "games": stats.inserted}
    finally:
        release_redis_lock(LIVE_SYNC_LOCK)


@shared_task(name="sync_player_stats")
def sync_player_stats_task() -> dict:
    """Sync box scores for today's and yesterday's final games."""
    if not acquire_redis_lock(STATS_SYNC_LOCK, timeout=settings.sync_config.stats_sync_lock_seconds):
        logger.debug("sync_player_stats_skipped_locked")
        return {"skipped": True, "reason": "locked"}

    try:
        today = today_et()
        with get_session() as session:
            game_ids = [
                game_id
                for (game_id,) in session.query(db_models.Game.id)
                .filter(
                    db_models.Game.game_date.in_([today - timedelta(days=1), today]),
                    db_models.Game.status == db_models.GameStatus.final.value,
                )
                .order_by(db_models.Game.id)
                .all()
            ]

        service = PlayerStatsService()
        synced = 0
        failed = 0
        for game_id in game_ids:
            try:
                stats = service.sync_game_stats(game_id)
                synced += 1 if stats.inserted else 0
            except NotFound as exc:
                logger.info("game_stats_not_available", game_id=game_id, reason=str(exc))
            except ProviderError as exc:
                failed += 1
                logger.error("game_stats_sync_failed", game_id=game_id, error=str(exc), exc_info=True)

        summary = {"skipped": False, "games": len(game_ids), "synced": synced, "failed": failed}
        logger.info("sync_player_stats_complete", **summary)
        return summary
    finally:
        release_redis_lock(STATS_SYNC_LOCK)
