"""Pydantic models produced by the provider normalizers and served from cache."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from .sports import GameStatus, PlayerPosition, SeasonType


class NormalizedTeam(BaseModel):
    external_id: str
    name: str
    city: str | None = None
    full_name: str
    abbreviation: str
    conference: str | None = None
    division: str | None = None
    stats_provider_id: str | None = None


class NormalizedPlayer(BaseModel):
    first_name: str
    last_name: str
    external_id: str | None = None
    stats_provider_id: str | None = None
    position: PlayerPosition | None = None
    team_external_id: str | None = None
    height: str | None = None
    weight: int | None = None
    jersey_number: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class NormalizedGame(BaseModel):
    external_id: str
    game_date: date
    tip_time: datetime | None = None
    home_team_external_id: str
    visitor_team_external_id: str
    home_abbreviation: str | None = None
    visitor_abbreviation: str | None = None
    home_score: int | None = None
    visitor_score: int | None = None
    status: GameStatus = GameStatus.scheduled
    period: int | None = None
    clock: str | None = None
    season: int
    postseason: bool = False


class ScoreboardEvent(BaseModel):
    """Stats-provider event used to link a stored game to its box score."""

    event_id: str
    game_date: date
    home_abbreviation: str
    visitor_abbreviation: str


class PlayerGameLine(BaseModel):
    """Canonical per-game box-score line with resolved internal IDs."""

    player_id: int
    game_id: int
    team_id: int
    started: bool = False
    did_not_play: bool = False
    seconds_played: int = 0
    points: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    total_rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fouls: int = 0
    field_goals_made: int = 0
    field_goals_attempted: int = 0
    three_pointers_made: int = 0
    three_pointers_attempted: int = 0
    free_throws_made: int = 0
    free_throws_attempted: int = 0
    plus_minus: int | None = None
    skipped_fields: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("seconds_played")
    @classmethod
    def seconds_not_negative(cls, value: int) -> int:
        if value < 0:
            msg = "seconds_played cannot be negative"
            raise ValueError(msg)
        return value


class SeasonStatLine(BaseModel):
    """Canonical season totals for one (player, season, season type, team)."""

    player_id: int
    season: int
    season_type: SeasonType
    team_id: int
    games_played: int = 0
    games_started: int = 0
    seconds_played: int = 0
    points: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    total_rebounds: int = 0
    assists: int = 0
    steals: int = 0
    blocks: int = 0
    turnovers: int = 0
    fouls: int = 0
    field_goals_made: int = 0
    field_goals_attempted: int = 0
    three_pointers_made: int = 0
    three_pointers_attempted: int = 0
    free_throws_made: int = 0
    free_throws_attempted: int = 0
    minutes_per_game: float | None = None
    points_per_game: float | None = None
    rebounds_per_game: float | None = None
    assists_per_game: float | None = None
    field_goal_pct: float | None = None
    three_point_pct: float | None = None
    free_throw_pct: float | None = None

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.season, int(self.season_type), self.team_id)


class CareerStatLine(BaseModel):
    player_id: int
    total_seasons: int = 0
    total_games: int = 0
    total_games_started: int = 0
    total_seconds: int = 0
    total_points: int = 0
    total_rebounds: int = 0
    total_assists: int = 0
    total_steals: int = 0
    total_blocks: int = 0
    total_turnovers: int = 0
    total_field_goals_made: int = 0
    total_field_goals_attempted: int = 0
    total_three_pointers_made: int = 0
    total_three_pointers_attempted: int = 0
    total_free_throws_made: int = 0
    total_free_throws_attempted: int = 0
    career_ppg: float | None = None
    career_rpg: float | None = None
    career_apg: float | None = None
    career_fg_pct: float | None = None
    career_three_pct: float | None = None
    career_ft_pct: float | None = None
    season_high_points: int | None = None
    season_high_rebounds: int | None = None
    season_high_assists: int | None = None
