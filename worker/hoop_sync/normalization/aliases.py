"""Stat alias tables.

Providers have used several names for the same concept over time
("fg%", "fieldGoalPct", "fieldGoalPercentage", "fgPercentage"). Each
canonical field lists every alias explicitly; lookups are case-insensitive
exact matches, never fuzzy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..client.errors import NormalizationPartial
from ..utils.parsing import parse_clock_seconds, parse_float, parse_int, parse_made_attempted

COUNT = "count"
SECONDS = "seconds"
MINUTES_TOTAL = "minutes_total"
MADE_ATTEMPTED = "made_attempted"
PCT = "pct"
AVERAGE = "average"
SIGNED = "signed"


@dataclass(frozen=True, slots=True)
class StatDefinition:
    """Definition of a canonical stat and every provider alias for it."""

    canonical_key: str
    kind: str = COUNT
    aliases: tuple[str, ...] = field(default_factory=tuple)
    # made_attempted only: (made_field, attempted_field)
    targets: tuple[str, ...] = field(default_factory=tuple)


_SHOOTING_SPLITS: tuple[StatDefinition, ...] = (
    StatDefinition(
        "field_goals",
        MADE_ATTEMPTED,
        ("fg", "fgm-a", "fieldGoalsMade-fieldGoalsAttempted"),
        ("field_goals_made", "field_goals_attempted"),
    ),
    StatDefinition(
        "three_pointers",
        MADE_ATTEMPTED,
        ("3pt", "3pm-a", "threePointFieldGoalsMade-threePointFieldGoalsAttempted"),
        ("three_pointers_made", "three_pointers_attempted"),
    ),
    StatDefinition(
        "free_throws",
        MADE_ATTEMPTED,
        ("ft", "ftm-a", "freeThrowsMade-freeThrowsAttempted"),
        ("free_throws_made", "free_throws_attempted"),
    ),
)

_COUNTING: tuple[StatDefinition, ...] = (
    StatDefinition("points", COUNT, ("pts", "points")),
    StatDefinition("field_goals_made", COUNT, ("fgm", "fieldGoalsMade")),
    StatDefinition("field_goals_attempted", COUNT, ("fga", "fieldGoalsAttempted")),
    StatDefinition("three_pointers_made", COUNT, ("3pm", "fg3m", "threePointFieldGoalsMade", "threePointersMade")),
    StatDefinition(
        "three_pointers_attempted",
        COUNT,
        ("3pa", "fg3a", "threePointFieldGoalsAttempted", "threePointersAttempted"),
    ),
    StatDefinition("free_throws_made", COUNT, ("ftm", "freeThrowsMade")),
    StatDefinition("free_throws_attempted", COUNT, ("fta", "freeThrowsAttempted")),
    StatDefinition("offensive_rebounds", COUNT, ("oreb", "orb", "offensiveRebounds")),
    StatDefinition("defensive_rebounds", COUNT, ("dreb", "drb", "defensiveRebounds")),
    StatDefinition("total_rebounds", COUNT, ("reb", "trb", "rebounds", "totalRebounds")),
    StatDefinition("assists", COUNT, ("ast", "assists")),
    StatDefinition("steals", COUNT, ("stl", "steals")),
    StatDefinition("blocks", COUNT, ("blk", "blocks")),
    StatDefinition("turnovers", COUNT, ("to", "tov", "turnover", "turnovers")),
    StatDefinition("fouls", COUNT, ("pf", "fouls", "personalFouls")),
)

_PERCENTAGES: tuple[StatDefinition, ...] = (
    StatDefinition(
        "field_goal_pct",
        PCT,
        ("fg%", "fg_pct", "fgPct", "fieldGoalPct", "fieldGoalPercentage", "fgPercentage"),
    ),
    StatDefinition(
        "three_point_pct",
        PCT,
        (
            "3p%",
            "fg3_pct",
            "threePointPct",
            "threePointFieldGoalPct",
            "threePointFieldGoalPercentage",
            "threePointPercentage",
            "3pPercentage",
        ),
    ),
    StatDefinition(
        "free_throw_pct",
        PCT,
        ("ft%", "ft_pct", "ftPct", "freeThrowPct", "freeThrowPercentage", "ftPercentage"),
    ),
)

BOXSCORE_STATS: tuple[StatDefinition, ...] = (
    StatDefinition("seconds_played", SECONDS, ("min", "mins", "minutes")),
    StatDefinition("plus_minus", SIGNED, ("+/-", "plusMinus", "plus_minus")),
    *_SHOOTING_SPLITS,
    *_COUNTING,
    *_PERCENTAGES,
)

SEASON_STATS: tuple[StatDefinition, ...] = (
    StatDefinition("games_played", COUNT, ("gp", "gamesPlayed")),
    StatDefinition("games_started", COUNT, ("gs", "gamesStarted")),
    StatDefinition("seconds_played", MINUTES_TOTAL, ("minutes", "min", "totalMinutes")),
    StatDefinition("minutes_per_game", AVERAGE, ("avgMinutes", "mpg", "minutesPerGame")),
    StatDefinition("points_per_game", AVERAGE, ("avgPoints", "ppg", "pointsPerGame")),
    StatDefinition("rebounds_per_game", AVERAGE, ("avgRebounds", "rpg", "reboundsPerGame")),
    StatDefinition("assists_per_game", AVERAGE, ("avgAssists", "apg", "assistsPerGame")),
    *_COUNTING,
    *_PERCENTAGES,
)


class AliasTable:
    """Case-insensitive lookup from any alias to its StatDefinition."""

    def __init__(self, definitions: tuple[StatDefinition, ...]) -> None:
        self.definitions = definitions
        self._index: dict[str, StatDefinition] = {}
        for definition in definitions:
            for name in (definition.canonical_key, *definition.aliases):
                self._index[name.lower()] = definition

    def resolve(self, name: str | None) -> StatDefinition | None:
        if not name:
            return None
        return self._index.get(name.strip().lower())

    def __contains__(self, name: str) -> bool:
        return self.resolve(name) is not None


BOXSCORE_ALIASES = AliasTable(BOXSCORE_STATS)
SEASON_ALIASES = AliasTable(SEASON_STATS)


def coerce_stat(definition: StatDefinition, raw: Any) -> dict[str, int | float | None]:
    """Convert one raw provider value into canonical field values.

    Raises NormalizationPartial when the value cannot be parsed. Empty
    placeholders ("", "-", "--") convert to no fields at all.
    """
    if raw in (None, "", "-", "--"):
        return {}

    if definition.kind == MADE_ATTEMPTED:
        split = parse_made_attempted(raw if isinstance(raw, str) else None)
        if split is None:
            raise NormalizationPartial(definition.canonical_key, raw)
        made_key, attempted_key = definition.targets
        return {made_key: split[0], attempted_key: split[1]}

    if definition.kind == SECONDS:
        seconds = parse_clock_seconds(raw)
        if seconds is None:
            raise NormalizationPartial(definition.canonical_key, raw)
        return {definition.canonical_key: seconds}

    if definition.kind == MINUTES_TOTAL:
        minutes = parse_float(raw)
        if minutes is None or minutes < 0:
            raise NormalizationPartial(definition.canonical_key, raw)
        return {definition.canonical_key: int(round(minutes * 60))}

    if definition.kind in (PCT, AVERAGE):
        number = parse_float(raw)
        if number is None:
            raise NormalizationPartial(definition.canonical_key, raw)
        return {definition.canonical_key: number}

    number = parse_float(raw)
    if number is None or number != int(number):
        raise NormalizationPartial(definition.canonical_key, raw)
    value = int(number)
    if definition.kind == COUNT and value < 0:
        raise NormalizationPartial(definition.canonical_key, raw)
    return {definition.canonical_key: value}
