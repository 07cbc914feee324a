"""Player game-log normalization.

The game-log endpoint returns stats as positional arrays whose meaning is
given by a top-level ``labels`` list. Rows are parsed against a pinned
schema; if the provider's labels ever drift from it the whole payload is
rejected instead of silently mis-assigning columns.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from ..client.errors import NormalizationFatal
from ..logging import logger
from ..models.schemas import PlayerGameLine
from .aliases import BOXSCORE_ALIASES
from .boxscore import GameLineResult, parse_stat_row
from .loose import LooseNode
from .resolver import IdResolver

GAMELOG_SCHEMAS: dict[str, tuple[str, ...]] = {
    "v1": ("MIN", "FG", "FG%", "3PT", "3P%", "FT", "FT%", "REB", "AST", "BLK", "STL", "PF", "TO", "PTS"),
}


def check_gamelog_schema(payload: dict, schema_version: str = "v1") -> tuple[str, ...]:
    """Return the pinned column schema, raising NormalizationFatal on drift."""
    try:
        schema = GAMELOG_SCHEMAS[schema_version]
    except KeyError as exc:
        raise NormalizationFatal(f"unknown gamelog schema {schema_version!r}") from exc

    labels = tuple((node.text() or "").upper() for node in LooseNode(payload).get("labels").items())
    if labels != schema:
        logger.error(
            "gamelog_schema_mismatch",
            schema_version=schema_version,
            expected=list(schema),
            received=list(labels),
        )
        raise NormalizationFatal(f"gamelog labels do not match schema {schema_version}")
    return schema


def normalize_gamelog(
    payload: dict,
    player_id: int,
    resolver: IdResolver,
    schema_version: str = "v1",
) -> GameLineResult:
    """Normalize every regular/postseason row of a player's game log.

    Rows for games not in the store, rows without a resolvable team, and rows
    whose length does not match the schema are discarded individually.
    """
    schema = check_gamelog_schema(payload, schema_version)
    definitions = [BOXSCORE_ALIASES.resolve(label) for label in schema]

    root = LooseNode(payload)
    event_meta = root.get("events")
    result = GameLineResult()
    seen: set[int] = set()

    for season_type in root.get("seasonTypes").items():
        type_name = (season_type.first("displayName", "name").text() or "").lower()
        if "preseason" in type_name:
            continue
        for category in season_type.get("categories").items():
            for row in category.get("events").items():
                event_id = row.first("eventId", "id").text()
                context = {"player_id": player_id, "stats_provider_event_id": event_id}
                try:
                    line = _normalize_row(row, event_meta.get(event_id or ""), event_id, player_id, definitions, resolver)
                except NormalizationFatal as exc:
                    result.discarded += 1
                    logger.warning("gamelog_row_discarded", reason=str(exc), **context)
                    continue
                if line.game_id in seen:
                    continue
                seen.add(line.game_id)
                result.partial_fields += len(line.skipped_fields)
                result.lines.append(line)

    logger.info(
        "gamelog_normalized",
        player_id=player_id,
        lines=len(result.lines),
        discarded=result.discarded,
        partial_fields=result.partial_fields,
    )
    return result


def _normalize_row(
    row: LooseNode,
    meta: LooseNode,
    event_id: str | None,
    player_id: int,
    definitions: list,
    resolver: IdResolver,
) -> PlayerGameLine:
    game_id = resolver.game_id(event_id)
    if game_id is None:
        raise NormalizationFatal(f"event {event_id!r} is not a known game")

    team = meta.get("team")
    team_id = resolver.team_id(team.get("id").text(), team.get("abbreviation").text())
    if team_id is None:
        raise NormalizationFatal(f"team for event {event_id!r} could not be resolved")

    values: list[Any] = [node.raw for node in row.get("stats").items()]
    if len(values) != len(definitions):
        raise NormalizationFatal(f"stat row has {len(values)} values for {len(definitions)} columns")

    fields, skipped = parse_stat_row(
        definitions,
        values,
        context={"game_id": game_id, "player_id": player_id},
    )
    try:
        return PlayerGameLine(
            player_id=player_id,
            game_id=game_id,
            team_id=team_id,
            did_not_play=not fields.get("seconds_played"),
            skipped_fields=skipped,
            **fields,
        )
    except ValidationError as exc:
        raise NormalizationFatal(str(exc)) from exc
