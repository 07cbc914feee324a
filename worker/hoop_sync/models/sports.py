"""Core sports models: teams, players, games, per-game and derived season stats."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum, IntEnum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

# Percentages are stored as NUMERIC(5, 3); anything above this would overflow.
PERCENTAGE_CEILING = 99.999


class GameStatus(str, Enum):
    """Canonical game status lifecycle.

    Happy path: scheduled → live → final
    Before tip-off a game may also move between scheduled, postponed and cancelled.
    """

    scheduled = "scheduled"
    live = "live"
    final = "final"
    postponed = "postponed"
    cancelled = "cancelled"


class SeasonType(IntEnum):
    """Stats provider season-type codes."""

    regular = 2
    postseason = 3


class PlayerPosition(str, Enum):
    PG = "PG"
    SG = "SG"
    SF = "SF"
    PF = "PF"
    C = "C"
    G = "G"
    F = "F"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Team(TimestampMixin, Base):
    """NBA franchises keyed by the schedule provider's ID."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    stats_provider_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    abbreviation: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    conference: Mapped[str | None] = mapped_column(String(20), nullable=True)
    division: Mapped[str | None] = mapped_column(String(30), nullable=True)

    players: Mapped[list["Player"]] = relationship("Player", back_populates="team")


class Player(TimestampMixin, Base):
    """Players carry one external ID per provider; the ID spaces are disjoint."""

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    stats_provider_id: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str | None] = mapped_column(String(5), nullable=True)
    team_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True
    )
    height: Mapped[str | None] = mapped_column(String(10), nullable=True)
    weight: Mapped[int | None] = mapped_column(Integer, nullable=True)
    jersey_number: Mapped[str | None] = mapped_column(String(5), nullable=True)

    team: Mapped[Team | None] = relationship("Team", back_populates="players")

    __table_args__ = (
        Index("idx_players_last_first", "last_name", "first_name"),
    )


class Game(TimestampMixin, Base):
    """Single contest. Never deleted; mutated on re-sync until terminal."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    stats_provider_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    game_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    tip_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    home_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visitor_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    visitor_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=GameStatus.scheduled.value)
    period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    clock: Mapped[str | None] = mapped_column(String(20), nullable=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    postseason: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    home_team: Mapped[Team] = relationship("Team", foreign_keys=[home_team_id])
    visitor_team: Mapped[Team] = relationship("Team", foreign_keys=[visitor_team_id])


class PlayerGameStats(TimestampMixin, Base):
    """One box-score line per (player, game)."""

    __tablename__ = "player_game_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    started: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    did_not_play: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    seconds_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    offensive_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    defensive_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    turnovers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fouls: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    field_goals_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    field_goals_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pointers_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pointers_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    free_throws_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    free_throws_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plus_minus: Mapped[int | None] = mapped_column(Integer, nullable=True)

    game: Mapped[Game] = relationship("Game")

    __table_args__ = (
        UniqueConstraint("player_id", "game_id", name="uq_player_game_stats_player_game"),
    )


class PlayerSeasonStats(TimestampMixin, Base):
    """Derived per-team partition of a player's season."""

    __tablename__ = "player_season_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    season_type: Mapped[int] = mapped_column(Integer, nullable=False)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_started: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seconds_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    offensive_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    defensive_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    steals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    turnovers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fouls: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    field_goals_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    field_goals_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pointers_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    three_pointers_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    free_throws_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    free_throws_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minutes_per_game: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    points_per_game: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    rebounds_per_game: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    assists_per_game: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    field_goal_pct: Mapped[float | None] = mapped_column(Numeric(5, 3, asdecimal=False), nullable=True)
    three_point_pct: Mapped[float | None] = mapped_column(Numeric(5, 3, asdecimal=False), nullable=True)
    free_throw_pct: Mapped[float | None] = mapped_column(Numeric(5, 3, asdecimal=False), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "player_id", "season", "season_type", "team_id",
            name="uq_player_season_stats_key",
        ),
    )


class PlayerCareerStats(TimestampMixin, Base):
    """Regular-season career rollup; one row per player."""

    __tablename__ = "player_career_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    total_seasons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_games: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_games_started: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_rebounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_assists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_steals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_blocks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_turnovers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_field_goals_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_field_goals_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_three_pointers_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_three_pointers_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_free_throws_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_free_throws_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    career_ppg: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    career_rpg: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    career_apg: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    career_fg_pct: Mapped[float | None] = mapped_column(Numeric(5, 1, asdecimal=False), nullable=True)
    career_three_pct: Mapped[float | None] = mapped_column(Numeric(5, 1, asdecimal=False), nullable=True)
    career_ft_pct: Mapped[float | None] = mapped_column(Numeric(5, 1, asdecimal=False), nullable=True)
    # Maxima over season totals, not single-game performances
    season_high_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    season_high_rebounds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    season_high_assists: Mapped[int | None] = mapped_column(Integer, nullable=True)
