"""Common typed models shared across clients, normalizers and services."""

from .schemas import (
    CareerStatLine,
    NormalizedGame,
    NormalizedPlayer,
    NormalizedTeam,
    PlayerGameLine,
    ScoreboardEvent,
    SeasonStatLine,
)
from .sports import GameStatus, PlayerPosition, SeasonType
from .views import CareerStatsView, GameLineView, GameView, PlayerView, SeasonStatsView, TeamView

__all__ = [
    "GameStatus",
    "PlayerPosition",
    "SeasonType",
    "NormalizedTeam",
    "NormalizedPlayer",
    "NormalizedGame",
    "ScoreboardEvent",
    "PlayerGameLine",
    "SeasonStatLine",
    "CareerStatLine",
    "TeamView",
    "PlayerView",
    "GameView",
    "GameLineView",
    "SeasonStatsView",
    "CareerStatsView",
]
