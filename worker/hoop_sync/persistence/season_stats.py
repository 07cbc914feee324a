"""Season and career stat persistence.

Both tables are derived: rows are upserted on their natural keys and never
appended, so any recompute can be repeated safely.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import CareerStatLine, SeasonStatLine
from ..utils.datetime_utils import now_utc
from .player_stats import UpsertStats

_SEASON_KEY = ("player_id", "season", "season_type", "team_id")


def upsert_season_line(session: Session, line: SeasonStatLine) -> None:
    values = line.model_dump()
    values["season_type"] = int(line.season_type)
    stmt = insert(db_models.PlayerSeasonStats).values(**values)
    stmt = stmt.on_conflict_do_update(
        constraint="uq_player_season_stats_key",
        set_={
            **{key: getattr(stmt.excluded, key) for key in values if key not in _SEASON_KEY},
            "updated_at": now_utc(),
        },
    )
    session.execute(stmt)


def upsert_season_lines(session: Session, lines: Sequence[SeasonStatLine]) -> UpsertStats:
    inserted = 0
    errors = 0
    for line in lines:
        try:
            with session.begin_nested():
                upsert_season_line(session, line)
            inserted += 1
        except Exception as exc:
            logger.error(
                "season_stats_upsert_failed",
                player_id=line.player_id,
                season=line.season,
                season_type=int(line.season_type),
                team_id=line.team_id,
                error=str(exc),
                exc_info=True,
            )
            errors += 1
    logger.info("season_stats_upsert_complete", inserted_count=inserted, error_count=errors)
    return UpsertStats(inserted=inserted, errors=errors)


def delete_stale_season_partitions(
    session: Session,
    player_id: int,
    season: int,
    season_type: int,
    keep_team_ids: Sequence[int],
) -> int:
    """Delete (player, season, season_type) partitions for teams not in ``keep_team_ids``.

    Returns the number of rows removed.
    """
    Season = db_models.PlayerSeasonStats
    stmt = delete(Season).where(
        Season.player_id == player_id,
        Season.season == season,
        Season.season_type == int(season_type),
    )
    if keep_team_ids:
        stmt = stmt.where(Season.team_id.not_in(list(keep_team_ids)))
    removed = session.execute(stmt).rowcount or 0
    if removed:
        logger.info(
            "season_stats_partitions_removed",
            player_id=player_id,
            season=season,
            season_type=int(season_type),
            removed=removed,
        )
    return removed


def upsert_career(session: Session, career: CareerStatLine) -> None:
    values = career.model_dump()
    stmt = insert(db_models.PlayerCareerStats).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["player_id"],
        set_={
            **{key: getattr(stmt.excluded, key) for key in values if key != "player_id"},
            "updated_at": now_utc(),
        },
    )
    session.execute(stmt)
