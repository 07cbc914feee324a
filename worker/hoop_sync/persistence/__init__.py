"""Store writes: idempotent upserts keyed on natural identifiers."""

from .games import link_stats_provider_event, resolve_status_transition, upsert_game, upsert_games
from .player_stats import UpsertStats, upsert_game_line, upsert_game_lines
from .players import link_player_stats_provider_id, upsert_player, upsert_players
from .resolution import load_resolver
from .season_stats import delete_stale_season_partitions, upsert_career, upsert_season_line, upsert_season_lines
from .teams import count_teams, link_team_stats_provider_id, team_ids_by_external_id, upsert_team, upsert_teams

__all__ = [
    "UpsertStats",
    "count_teams",
    "delete_stale_season_partitions",
    "link_player_stats_provider_id",
    "link_stats_provider_event",
    "link_team_stats_provider_id",
    "load_resolver",
    "resolve_status_transition",
    "team_ids_by_external_id",
    "upsert_career",
    "upsert_game",
    "upsert_game_line",
    "upsert_game_lines",
    "upsert_games",
    "upsert_player",
    "upsert_players",
    "upsert_season_line",
    "upsert_season_lines",
    "upsert_team",
    "upsert_teams",
]
