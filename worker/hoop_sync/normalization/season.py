"""Season and career stat normalization for the stats provider's core API.

Season payloads carry named stats grouped into categories::

    splits.categories[].stats[]: {name, value, displayValue}

Career history comes from the athlete's statistics log, a list of `$ref`
links to per-season (and per-team) statistics documents.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from pydantic import ValidationError

from ..client.errors import NormalizationFatal, NormalizationPartial
from ..logging import logger
from ..models.schemas import SeasonStatLine
from ..models.sports import PERCENTAGE_CEILING, SeasonType
from .aliases import PCT, SEASON_ALIASES, coerce_stat
from .loose import LooseNode
from .resolver import IdResolver

_SEASON_TYPE_REF = re.compile(r"/seasons/(\d+)/types/(\d+)/")

_PCT_SOURCES = {
    "field_goal_pct": ("field_goals_made", "field_goals_attempted"),
    "three_point_pct": ("three_pointers_made", "three_pointers_attempted"),
    "free_throw_pct": ("free_throws_made", "free_throws_attempted"),
}

_AVERAGE_SOURCES = {
    "points_per_game": "points",
    "rebounds_per_game": "total_rebounds",
    "assists_per_game": "assists",
}


def safe_percentage(made: int | None, attempted: int | None) -> float | None:
    """made / attempted as a percentage, 3 places, clamped. None for 0 attempts."""
    if not attempted or made is None:
        return None
    return min(round(made / attempted * 100, 3), PERCENTAGE_CEILING)


def safe_average(total: int | None, games: int | None, places: int = 2) -> float | None:
    if not games or total is None:
        return None
    return round(total / games, places)


def _provider_percentage(value: float) -> float | None:
    # Some endpoints report 0.485, others 48.5
    scaled = value * 100 if 0 <= value <= 1 else value
    if scaled < 0:
        return None
    return min(round(scaled, 3), PERCENTAGE_CEILING)


def collect_named_stats(payload: dict, *, context: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Flatten every category's named stats into canonical fields.

    Unknown names are ignored; unparseable values are logged and skipped.
    """
    fields: dict[str, Any] = {}
    skipped: list[str] = []
    for category in LooseNode(payload).get("splits", "categories").items():
        for stat in category.get("stats").items():
            definition = SEASON_ALIASES.resolve(stat.get("name").text())
            if definition is None:
                continue
            raw = stat.first("value", "displayValue").raw
            try:
                converted = coerce_stat(definition, raw)
            except NormalizationPartial as exc:
                skipped.append(exc.field)
                logger.warning("stat_value_skipped", field=exc.field, raw_value=str(exc.raw_value), **context)
                continue
            if definition.kind == PCT:
                converted = {key: _provider_percentage(value) for key, value in converted.items()}
            # First occurrence wins; later categories repeat some totals
            for key, value in converted.items():
                fields.setdefault(key, value)
    return fields, skipped


def normalize_season_stats(
    payload: dict,
    player_id: int,
    season: int,
    season_type: int,
    resolver: IdResolver,
    *,
    team_provider_id: str | None = None,
    fallback_team_id: int | None = None,
) -> SeasonStatLine:
    """Build one SeasonStatLine from a season statistics document.

    Percentages are recomputed from made/attempted when both are present;
    the provider's value is used only when attempts are missing.
    """
    context = {"player_id": player_id, "season": season, "season_type": season_type}
    fields, skipped = collect_named_stats(payload, context=context)

    team_id = None
    if team_provider_id:
        team_id = resolver.team_id(team_provider_id)
    if team_id is None:
        payload_team = LooseNode(payload).get("team").ref_id()
        if payload_team:
            team_id = resolver.team_id(payload_team)
    if team_id is None:
        team_id = fallback_team_id
    if team_id is None:
        raise NormalizationFatal(f"team for player {player_id} season {season} could not be resolved")

    for pct_key, (made_key, attempted_key) in _PCT_SOURCES.items():
        if attempted_key in fields:
            fields[pct_key] = safe_percentage(fields.get(made_key), fields[attempted_key])

    games = fields.get("games_played")
    for avg_key, total_key in _AVERAGE_SOURCES.items():
        if fields.get(avg_key) is None:
            fields[avg_key] = safe_average(fields.get(total_key), games)
    if fields.get("minutes_per_game") is None and fields.get("seconds_played") is not None:
        fields["minutes_per_game"] = safe_average(fields["seconds_played"] / 60, games)

    if skipped:
        logger.info("season_stats_partial", skipped=skipped, **context)

    try:
        return SeasonStatLine(
            player_id=player_id,
            season=season,
            season_type=SeasonType(season_type),
            team_id=team_id,
            **fields,
        )
    except (ValidationError, ValueError) as exc:
        raise NormalizationFatal(str(exc)) from exc


@dataclass(frozen=True)
class CareerStatRef:
    season: int
    season_type: int
    url: str
    team_provider_id: str | None = None


def career_stat_refs(log: dict) -> list[CareerStatRef]:
    """Extract per-season statistics links from an athlete's statistics log.

    Per-team links are preferred over the season total so traded players get
    one partition per team. Preseason and unknown season types are skipped.
    """
    refs: dict[tuple[int, int, str | None], CareerStatRef] = {}
    for entry in LooseNode(log).get("entries").items():
        items = entry.get("statistics").items()
        team_items = [item for item in items if item.get("type").text() == "team"]
        for item in team_items or items:
            url = item.get("statistics", "$ref").text()
            match = _SEASON_TYPE_REF.search(url or "")
            if not match:
                continue
            season, season_type = int(match.group(1)), int(match.group(2))
            if season_type not in (SeasonType.regular, SeasonType.postseason):
                continue
            team_provider_id = item.get("team").ref_id() if team_items else None
            key = (season, season_type, team_provider_id)
            refs[key] = CareerStatRef(season, season_type, url, team_provider_id)
    return list(refs.values())


def dedupe_season_lines(lines: Iterable[SeasonStatLine]) -> list[SeasonStatLine]:
    """Collapse lines sharing (season, season type, team); the last one wins."""
    unique: dict[tuple[int, int, int], SeasonStatLine] = {}
    for line in lines:
        if line.key in unique:
            logger.debug("season_line_deduplicated", player_id=line.player_id, key=list(line.key))
        unique[line.key] = line
    return list(unique.values())
