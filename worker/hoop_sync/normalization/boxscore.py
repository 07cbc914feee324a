"""Box-score normalization for the stats provider's game summary payload.

Payload shape (only the parts read here)::

    boxscore.players[]:
        team: {id, abbreviation}
        statistics[]:
            names | keys | labels: ["MIN", "FG", "3PT", ...]
            athletes[]:
                athlete: {id | $ref}
                starter, didNotPlay
                stats: ["34:12", "10-21", ...]   # positional, same length as names
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..client.errors import NormalizationFatal, NormalizationPartial
from ..logging import logger
from ..models.schemas import PlayerGameLine
from .aliases import BOXSCORE_ALIASES, AliasTable, StatDefinition, coerce_stat
from .loose import LooseNode
from .resolver import IdResolver

# Canonical fields a PlayerGameLine accepts from the stat columns
_LINE_FIELDS = set(PlayerGameLine.model_fields) - {"player_id", "game_id", "team_id", "skipped_fields"}


@dataclass
class GameLineResult:
    lines: list[PlayerGameLine] = field(default_factory=list)
    discarded: int = 0
    partial_fields: int = 0


def _column_definitions(block: LooseNode, table: AliasTable) -> list[StatDefinition | None]:
    """Resolve each positional column to a definition, preferring names over keys over labels."""
    for header_key in ("names", "keys", "labels"):
        headers = [node.text() for node in block.get(header_key).items()]
        if headers:
            return [table.resolve(name) for name in headers]
    return []


def parse_stat_row(
    definitions: list[StatDefinition | None],
    values: list[Any],
    *,
    context: dict[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """Map one positional stat row to canonical fields.

    Unknown columns are ignored. Unparseable values are logged and skipped;
    the returned list names the fields that were skipped.
    """
    fields: dict[str, Any] = {}
    skipped: list[str] = []
    for definition, raw in zip(definitions, values):
        if definition is None:
            continue
        try:
            converted = coerce_stat(definition, raw)
        except NormalizationPartial as exc:
            skipped.append(exc.field)
            logger.warning("stat_value_skipped", field=exc.field, raw_value=str(exc.raw_value), **context)
            continue
        for key, value in converted.items():
            if key in _LINE_FIELDS:
                fields[key] = value
    if "total_rebounds" not in fields and "offensive_rebounds" in fields and "defensive_rebounds" in fields:
        fields["total_rebounds"] = fields["offensive_rebounds"] + fields["defensive_rebounds"]
    return fields, skipped


def normalize_boxscore(payload: dict, game_id: int, resolver: IdResolver) -> GameLineResult:
    """Turn a game summary into one PlayerGameLine per athlete who appears in it.

    Athletes whose team or player reference cannot be resolved are logged and
    discarded; the rest of the box score still normalizes.
    """
    result = GameLineResult()
    root = LooseNode(payload)

    for team_block in root.get("boxscore", "players").items():
        team_ref = team_block.get("team")
        provider_team_id = team_ref.get("id").text()
        abbreviation = team_ref.get("abbreviation").text()
        team_id = resolver.team_id(provider_team_id, abbreviation)

        for stat_block in team_block.get("statistics").items():
            definitions = _column_definitions(stat_block, BOXSCORE_ALIASES)

            for athlete in stat_block.get("athletes").items():
                provider_player_id = athlete.get("athlete").ref_id()
                context = {"game_id": game_id, "stats_provider_player_id": provider_player_id}
                try:
                    line = _normalize_athlete(athlete, definitions, game_id, team_id, provider_player_id, resolver)
                except NormalizationFatal as exc:
                    result.discarded += 1
                    logger.warning("boxscore_line_discarded", reason=str(exc), **context)
                    continue
                result.partial_fields += len(line.skipped_fields)
                result.lines.append(line)

    logger.info(
        "boxscore_normalized",
        game_id=game_id,
        lines=len(result.lines),
        discarded=result.discarded,
        partial_fields=result.partial_fields,
    )
    return result


def _normalize_athlete(
    athlete: LooseNode,
    definitions: list[StatDefinition | None],
    game_id: int,
    team_id: int | None,
    provider_player_id: str | None,
    resolver: IdResolver,
) -> PlayerGameLine:
    if team_id is None:
        raise NormalizationFatal("team reference could not be resolved")
    player_id = resolver.player_id(provider_player_id)
    if player_id is None:
        raise NormalizationFatal(f"player {provider_player_id!r} could not be resolved")

    did_not_play = athlete.get("didNotPlay").boolean()
    values = [node.raw for node in athlete.get("stats").items()]

    fields: dict[str, Any] = {}
    skipped: list[str] = []
    if values:
        if len(values) != len(definitions):
            raise NormalizationFatal(f"stat row has {len(values)} values for {len(definitions)} columns")
        fields, skipped = parse_stat_row(
            definitions,
            values,
            context={"game_id": game_id, "player_id": player_id},
        )
    elif not did_not_play:
        # No stat row and not flagged DNP: the provider omitted the athlete's line
        did_not_play = True

    try:
        return PlayerGameLine(
            player_id=player_id,
            game_id=game_id,
            team_id=team_id,
            started=athlete.get("starter").boolean(),
            did_not_play=did_not_play,
            skipped_fields=skipped,
            **fields,
        )
    except ValidationError as exc:
        raise NormalizationFatal(str(exc)) from exc
