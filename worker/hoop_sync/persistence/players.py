"""Player persistence helpers."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import NormalizedPlayer
from ..utils.datetime_utils import now_utc
from .player_stats import UpsertStats


def upsert_player(session: Session, player: NormalizedPlayer, team_id: int | None = None) -> int:
    """Insert or update a player keyed by the schedule provider's ID.

    The stats-provider ID is never cleared by an update; it is only ever set
    through ``link_player_stats_provider_id``.
    """
    stmt = insert(db_models.Player).values(
        external_id=player.external_id,
        first_name=player.first_name,
        last_name=player.last_name,
        position=player.position.value if player.position else None,
        team_id=team_id,
        height=player.height,
        weight=player.weight,
        jersey_number=player.jersey_number,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["external_id"],
        set_={
            "first_name": stmt.excluded.first_name,
            "last_name": stmt.excluded.last_name,
            "position": stmt.excluded.position,
            "team_id": stmt.excluded.team_id,
            "height": stmt.excluded.height,
            "weight": stmt.excluded.weight,
            "jersey_number": stmt.excluded.jersey_number,
            "updated_at": now_utc(),
        },
    ).returning(db_models.Player.id)
    return session.execute(stmt).scalar_one()


def upsert_players(
    session: Session,
    players: Sequence[NormalizedPlayer],
    team_ids: dict[str, int],
) -> UpsertStats:
    """Upsert players, resolving their team through ``team_ids`` (external ID → row ID)."""
    inserted = 0
    errors = 0
    for player in players:
        team_id = team_ids.get(player.team_external_id) if player.team_external_id else None
        try:
            with session.begin_nested():
                upsert_player(session, player, team_id)
            inserted += 1
        except Exception as exc:
            logger.error(
                "player_upsert_failed",
                external_id=player.external_id,
                player_name=player.full_name,
                error=str(exc),
                exc_info=True,
            )
            errors += 1
    logger.info("players_upsert_complete", inserted_count=inserted, error_count=errors)
    return UpsertStats(inserted=inserted, errors=errors)


def link_player_stats_provider_id(session: Session, player_id: int, stats_provider_id: str) -> bool:
    """Persist a resolved stats-provider ID. Returns False if it is already owned by another player."""
    owner = (
        session.query(db_models.Player)
        .filter(db_models.Player.stats_provider_id == stats_provider_id)
        .first()
    )
    if owner is not None and owner.id != player_id:
        logger.warning(
            "player_stats_provider_id_conflict",
            player_id=player_id,
            owner_id=owner.id,
            stats_provider_id=stats_provider_id,
        )
        return False
    player = session.get(db_models.Player, player_id)
    if player is None:
        return False
    player.stats_provider_id = stats_provider_id
    session.flush()
    logger.info("player_stats_provider_linked", player_id=player_id, stats_provider_id=stats_provider_id)
    return True
