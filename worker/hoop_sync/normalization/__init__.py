"""Provider payload normalization into canonical records."""

from .aliases import BOXSCORE_ALIASES, SEASON_ALIASES, AliasTable, StatDefinition, coerce_stat
from .boxscore import GameLineResult, normalize_boxscore
from .gamelog import GAMELOG_SCHEMAS, check_gamelog_schema, normalize_gamelog
from .loose import LooseNode
from .resolver import IdResolver, StaticIdResolver
from .schedule import (
    map_game_status,
    normalize_schedule_game,
    normalize_schedule_player,
    normalize_schedule_team,
    normalize_scoreboard,
)
from .season import (
    CareerStatRef,
    career_stat_refs,
    dedupe_season_lines,
    normalize_season_stats,
    safe_average,
    safe_percentage,
)
from .teams import canonical_abbreviation, map_position, normalize_team_name, team_alignment

__all__ = [
    "AliasTable",
    "StatDefinition",
    "BOXSCORE_ALIASES",
    "SEASON_ALIASES",
    "coerce_stat",
    "GameLineResult",
    "normalize_boxscore",
    "GAMELOG_SCHEMAS",
    "check_gamelog_schema",
    "normalize_gamelog",
    "LooseNode",
    "IdResolver",
    "StaticIdResolver",
    "map_game_status",
    "normalize_schedule_game",
    "normalize_schedule_player",
    "normalize_schedule_team",
    "normalize_scoreboard",
    "CareerStatRef",
    "career_stat_refs",
    "dedupe_season_lines",
    "normalize_season_stats",
    "safe_average",
    "safe_percentage",
    "canonical_abbreviation",
    "map_position",
    "normalize_team_name",
    "team_alignment",
]
