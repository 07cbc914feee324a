"""Game persistence helpers."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import NormalizedGame
from .player_stats import UpsertStats

GameStatus = db_models.GameStatus

_TERMINAL = {GameStatus.final.value, GameStatus.cancelled.value}


def resolve_status_transition(current_status: str | None, incoming_status: str | None) -> str:
    """Resolve a safe status transition without regressing games.

    Rules:
    - final and cancelled are terminal
    - live only moves forward (to final)
    - scheduled and postponed accept any incoming status
    """
    incoming = GameStatus(incoming_status).value if incoming_status else GameStatus.scheduled.value
    if not current_status:
        return incoming
    current = GameStatus(current_status).value

    if current in _TERMINAL:
        return current
    if current == GameStatus.live.value:
        return incoming if incoming == GameStatus.final.value else current
    return incoming


def upsert_game(
    session: Session,
    game: NormalizedGame,
    home_team_id: int,
    visitor_team_id: int,
) -> tuple[int, bool]:
    """Insert or update a game keyed by the schedule provider's ID.

    Returns (game_id, created). Final and cancelled games are left untouched;
    other existing games never regress in status, and scores are only
    overwritten by non-null values.
    """
    existing = (
        session.query(db_models.Game)
        .filter(db_models.Game.external_id == game.external_id)
        .first()
    )
    if existing:
        if existing.status in _TERMINAL:
            logger.debug("game_upsert_terminal_skipped", game_id=existing.id, status=existing.status)
            return existing.id, False
        existing.status = resolve_status_transition(existing.status, game.status.value)
        existing.game_date = game.game_date
        existing.home_team_id = home_team_id
        existing.visitor_team_id = visitor_team_id
        existing.season = game.season
        existing.postseason = game.postseason
        if game.tip_time is not None:
            existing.tip_time = game.tip_time
        if game.home_score is not None:
            existing.home_score = game.home_score
        if game.visitor_score is not None:
            existing.visitor_score = game.visitor_score
        if existing.status == GameStatus.live.value:
            existing.period = game.period
            existing.clock = game.clock
        elif existing.status == GameStatus.final.value:
            existing.period = game.period or existing.period
            existing.clock = None
        session.flush()
        return existing.id, False

    row = db_models.Game(
        external_id=game.external_id,
        game_date=game.game_date,
        tip_time=game.tip_time,
        home_team_id=home_team_id,
        visitor_team_id=visitor_team_id,
        home_score=game.home_score,
        visitor_score=game.visitor_score,
        status=game.status.value,
        period=game.period,
        clock=game.clock,
        season=game.season,
        postseason=game.postseason,
    )
    session.add(row)
    session.flush()
    return row.id, True


def upsert_games(
    session: Session,
    games: Sequence[NormalizedGame],
    team_ids: dict[str, int],
) -> UpsertStats:
    """Upsert games whose teams are already stored; others are skipped and counted."""
    inserted = 0
    rejected = 0
    errors = 0
    for game in games:
        home_id = team_ids.get(game.home_team_external_id)
        visitor_id = team_ids.get(game.visitor_team_external_id)
        if home_id is None or visitor_id is None:
            logger.warning(
                "game_teams_unresolved",
                external_id=game.external_id,
                home_team_external_id=game.home_team_external_id,
                visitor_team_external_id=game.visitor_team_external_id,
            )
            rejected += 1
            continue
        try:
            with session.begin_nested():
                upsert_game(session, game, home_id, visitor_id)
            inserted += 1
        except Exception as exc:
            logger.error(
                "game_upsert_failed",
                external_id=game.external_id,
                game_date=str(game.game_date),
                error=str(exc),
                exc_info=True,
            )
            errors += 1
    logger.info(
        "games_upsert_complete",
        inserted_count=inserted,
        rejected_count=rejected,
        error_count=errors,
    )
    return UpsertStats(inserted=inserted, rejected=rejected, errors=errors)


def link_stats_provider_event(session: Session, game_id: int, event_id: str) -> bool:
    """Attach the stats provider's event ID to a stored game. Returns True if it changed."""
    game = session.get(db_models.Game, game_id)
    if game is None or game.stats_provider_id == event_id:
        return False
    game.stats_provider_id = event_id
    session.flush()
    logger.info("game_stats_provider_linked", game_id=game_id, stats_provider_id=event_id)
    return True
