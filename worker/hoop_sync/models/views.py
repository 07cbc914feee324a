"""Read models built from ORM rows; their JSON dumps are what the fast cache holds."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class _View(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def dump(cls, row) -> dict:
        return cls.model_validate(row).model_dump(mode="json")

    @classmethod
    def dump_all(cls, rows) -> list[dict]:
        return [cls.dump(row) for row in rows]


class TeamView(_View):
    id: int
    external_id: str
    name: str
    city: str | None = None
    full_name: str
    abbreviation: str
    conference: str | None = None
    division: str | None = None


class PlayerView(_View):
    id: int
    external_id: str | None = None
    stats_provider_id: str | None = None
    first_name: str
    last_name: str
    position: str | None = None
    team_id: int | None = None
    height: str | None = None
    weight: int | None = None
    jersey_number: str | None = None


class GameView(_View):
    id: int
    external_id: str
    stats_provider_id: str | None = None
    game_date: date
    tip_time: datetime | None = None
    home_team: TeamView
    visitor_team: TeamView
    home_score: int | None = None
    visitor_score: int | None = None
    status: str
    period: int | None = None
    clock: str | None = None
    season: int
    postseason: bool = False


class GameLineView(_View):
    player_id: int
    game_id: int
    team_id: int
    started: bool
    did_not_play: bool
    seconds_played: int
    points: int
    offensive_rebounds: int
    defensive_rebounds: int
    total_rebounds: int
    assists: int
    steals: int
    blocks: int
    turnovers: int
    fouls: int
    field_goals_made: int
    field_goals_attempted: int
    three_pointers_made: int
    three_pointers_attempted: int
    free_throws_made: int
    free_throws_attempted: int
    plus_minus: int | None = None


class SeasonStatsView(_View):
    player_id: int
    season: int
    season_type: int
    team_id: int
    games_played: int
    games_started: int
    seconds_played: int
    points: int
    total_rebounds: int
    assists: int
    steals: int
    blocks: int
    turnovers: int
    field_goals_made: int
    field_goals_attempted: int
    three_pointers_made: int
    three_pointers_attempted: int
    free_throws_made: int
    free_throws_attempted: int
    minutes_per_game: float | None = None
    points_per_game: float | None = None
    rebounds_per_game: float | None = None
    assists_per_game: float | None = None
    field_goal_pct: float | None = None
    three_point_pct: float | None = None
    free_throw_pct: float | None = None


class CareerStatsView(_View):
    player_id: int
    total_seasons: int
    total_games: int
    total_games_started: int
    total_points: int
    total_rebounds: int
    total_assists: int
    career_ppg: float | None = None
    career_rpg: float | None = None
    career_apg: float | None = None
    career_fg_pct: float | None = None
    career_three_pct: float | None = None
    career_ft_pct: float | None = None
    season_high_points: int | None = None
    season_high_rebounds: int | None = None
    season_high_assists: int | None = None
