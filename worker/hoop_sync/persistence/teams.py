"""Team persistence helpers."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import NormalizedTeam
from ..utils.datetime_utils import now_utc
from .player_stats import UpsertStats


def upsert_team(session: Session, team: NormalizedTeam) -> int:
    """Insert or update a team keyed by the schedule provider's ID. Returns the row ID."""
    stmt = insert(db_models.Team).values(
        external_id=team.external_id,
        name=team.name,
        city=team.city,
        full_name=team.full_name,
        abbreviation=team.abbreviation,
        conference=team.conference,
        division=team.division,
        stats_provider_id=team.stats_provider_id,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["external_id"],
        set_={
            "name": stmt.excluded.name,
            "city": stmt.excluded.city,
            "full_name": stmt.excluded.full_name,
            "abbreviation": stmt.excluded.abbreviation,
            "conference": stmt.excluded.conference,
            "division": stmt.excluded.division,
            # Keep a previously linked stats-provider ID when the payload has none
            "stats_provider_id": func.coalesce(stmt.excluded.stats_provider_id, db_models.Team.stats_provider_id),
            "updated_at": now_utc(),
        },
    ).returning(db_models.Team.id)
    return session.execute(stmt).scalar_one()


def upsert_teams(session: Session, teams: Sequence[NormalizedTeam]) -> UpsertStats:
    inserted = 0
    errors = 0
    for team in teams:
        try:
            with session.begin_nested():
                upsert_team(session, team)
            inserted += 1
        except Exception as exc:
            logger.error(
                "team_upsert_failed",
                external_id=team.external_id,
                abbreviation=team.abbreviation,
                error=str(exc),
                exc_info=True,
            )
            errors += 1
    logger.info("teams_upsert_complete", inserted_count=inserted, error_count=errors)
    return UpsertStats(inserted=inserted, errors=errors)


def count_teams(session: Session) -> int:
    return session.execute(select(func.count()).select_from(db_models.Team)).scalar_one()


def team_ids_by_external_id(session: Session) -> dict[str, int]:
    rows = session.execute(select(db_models.Team.external_id, db_models.Team.id)).all()
    return {external_id: team_id for external_id, team_id in rows}


def link_team_stats_provider_id(session: Session, team_id: int, stats_provider_id: str) -> None:
    """Record the stats provider's ID for a team the first time it is seen."""
    team = session.get(db_models.Team, team_id)
    if team is not None and team.stats_provider_id != stats_provider_id:
        team.stats_provider_id = stats_provider_id
        session.flush()
        logger.info("team_stats_provider_linked", team_id=team_id, stats_provider_id=stats_provider_id)
