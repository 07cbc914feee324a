"""Store-backed ID resolution for the normalizers."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import db_models
from ..normalization import StaticIdResolver


def load_resolver(
    session: Session,
    *,
    player_ids: Iterable[int] | None = None,
    seasons: Iterable[int] | None = None,
) -> StaticIdResolver:
    """Build a StaticIdResolver from the store.

    ``player_ids`` limits the player table (all linked players otherwise) and
    ``seasons`` limits the game table (all linked games otherwise).
    """
    Team, Player, Game = db_models.Team, db_models.Player, db_models.Game
    resolver = StaticIdResolver()

    for team_id, abbreviation, stats_provider_id in session.execute(
        select(Team.id, Team.abbreviation, Team.stats_provider_id)
    ).all():
        resolver.teams_by_abbreviation[abbreviation] = team_id
        if stats_provider_id:
            resolver.teams_by_provider_id[stats_provider_id] = team_id

    player_query = select(Player.id, Player.stats_provider_id).where(Player.stats_provider_id.is_not(None))
    if player_ids is not None:
        player_query = player_query.where(Player.id.in_(list(player_ids)))
    for player_id, stats_provider_id in session.execute(player_query).all():
        resolver.players_by_provider_id[stats_provider_id] = player_id

    game_query = select(Game.id, Game.stats_provider_id).where(Game.stats_provider_id.is_not(None))
    if seasons is not None:
        game_query = game_query.where(Game.season.in_(list(seasons)))
    for game_id, stats_provider_id in session.execute(game_query).all():
        resolver.games_by_provider_id[stats_provider_id] = game_id

    return resolver
