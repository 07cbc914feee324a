"""Domain services: cached reads with sync-on-miss, and explicit syncs."""

from .games import GameService
from .player_stats import PlayerStatsService
from .players import PlayerSearchCriteria, PlayerService
from .teams import TeamService

__all__ = [
    "GameService",
    "TeamService",
    "PlayerService",
    "PlayerSearchCriteria",
    "PlayerStatsService",
]
