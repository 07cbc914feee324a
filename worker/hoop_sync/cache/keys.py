"""Deterministic cache keys and per-domain TTL selection."""

from __future__ import annotations

from datetime import date

from ..config import CacheTTLConfig, settings
from ..models.sports import GameStatus

TODAY_GAMES = "games:today"
ALL_TEAMS = "teams:all"


def games_by_date(day: date) -> str:
    return f"games:date:{day.isoformat()}"


def game(game_id: int) -> str:
    return f"game:id:{game_id}"


def team(team_id: int) -> str:
    return f"team:id:{team_id}"


def player(player_id: int) -> str:
    return f"player:id:{player_id}"


def players_by_team(team_id: int, page: int = 1) -> str:
    return f"players:team:{team_id}:{page}"


def player_search(term: str, page: int = 1, position: str | None = None, team_id: int | None = None) -> str:
    key = f"search:{term.strip().lower()}:{page}"
    if position or team_id:
        key += f":{position or ''}:{team_id or ''}"
    return key


def season_stats(player_id: int, season: int) -> str:
    return f"player_stats:{player_id}:season:{season}"


def recent_games(player_id: int) -> str:
    """One window of the latest lines per player; callers slice it to the count they need."""
    return f"player_stats:{player_id}:recent"


def career_stats(player_id: int) -> str:
    return f"player_stats:{player_id}:career"


def game_stats(game_id: int) -> str:
    return f"game_stats:{game_id}"


def game_leaders(game_id: int) -> str:
    return f"game_leaders:{game_id}"


def season_leaders(season: int, stat: str, min_games: int, limit: int) -> str:
    return f"leaders:season:{season}:{stat}:{min_games}:{limit}"


def ttl_for_date(day: date, today: date, config: CacheTTLConfig | None = None) -> int:
    """Past dates change rarely, future schedules occasionally, today constantly."""
    ttl = config or settings.cache_config
    if day < today:
        return ttl.past_games
    if day > today:
        return ttl.future_games
    return ttl.today_games


def ttl_for_game_status(status: GameStatus | str, config: CacheTTLConfig | None = None) -> int:
    ttl = config or settings.cache_config
    value = GameStatus(status)
    if value == GameStatus.live:
        return ttl.live_games
    if value == GameStatus.scheduled:
        return ttl.future_games
    if value == GameStatus.final:
        return ttl.past_games
    return ttl.default
