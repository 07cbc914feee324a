"""Schedule-provider (games, teams, players) and scoreboard normalization."""

from __future__ import annotations

import re
from datetime import date

from ..client.errors import NormalizationFatal
from ..logging import logger
from ..models.schemas import NormalizedGame, NormalizedPlayer, NormalizedTeam, ScoreboardEvent
from ..models.sports import GameStatus
from ..utils.datetime_utils import US_EASTERN, parse_iso_datetime, season_for_date
from .loose import LooseNode
from .teams import NBA_TEAMS, canonical_abbreviation, map_position, team_alignment

_STATUS_WORDS: dict[str, GameStatus] = {
    "final": GameStatus.final,
    "completed": GameStatus.final,
    "in progress": GameStatus.live,
    "in_progress": GameStatus.live,
    "live": GameStatus.live,
    "halftime": GameStatus.live,
    "scheduled": GameStatus.scheduled,
    "pre": GameStatus.scheduled,
    "pregame": GameStatus.scheduled,
    "postponed": GameStatus.postponed,
    "delayed": GameStatus.postponed,
    "cancelled": GameStatus.cancelled,
    "canceled": GameStatus.cancelled,
}

# "1st Qtr", "Q3 5:12", "OT", "2OT", "End of 3rd"
_LIVE_PATTERN = re.compile(r"(\b\d(st|nd|rd|th)\s+qtr\b)|(\bq[1-4]\b)|(\b\d*ot\b)|(\bend of\b)", re.IGNORECASE)


def map_game_status(raw: str | None) -> tuple[GameStatus, str | None]:
    """Return (status, raw tip time text) for a provider status string.

    The schedule provider reports an ISO datetime as the status of games that
    have not started; that value is handed back as the tip time.
    """
    if not raw or not raw.strip():
        return GameStatus.scheduled, None
    text = raw.strip()
    lowered = text.lower()
    if lowered.startswith("final"):
        return GameStatus.final, None
    if lowered in _STATUS_WORDS:
        return _STATUS_WORDS[lowered], None
    if _LIVE_PATTERN.search(text):
        return GameStatus.live, None
    if parse_iso_datetime(text) is not None:
        return GameStatus.scheduled, text
    logger.warning("game_status_unrecognized", status=text)
    return GameStatus.scheduled, None


def _team_abbreviation(node: LooseNode) -> str | None:
    raw = node.get("abbreviation").text()
    return canonical_abbreviation(raw) or raw


def _season_end_year(start_year: int | None, game_date: date) -> int:
    """This provider labels seasons by start year (2023 for 2023-24); the store uses the end year."""
    if start_year:
        return start_year + 1
    return season_for_date(game_date)


def normalize_schedule_game(raw: dict) -> NormalizedGame:
    """Map one provider game to NormalizedGame.

    Raises NormalizationFatal when the game has no ID, date, or team references.
    """
    node = LooseNode(raw)
    external_id = node.get("id").text()
    home = node.get("home_team")
    visitor = node.get("visitor_team")
    home_id = home.get("id").text()
    visitor_id = visitor.get("id").text()
    date_text = node.get("date").text()
    if not external_id or not home_id or not visitor_id or not date_text:
        raise NormalizationFatal(f"game {external_id!r} is missing id, date or team references")

    try:
        game_date = date.fromisoformat(date_text[:10])
    except ValueError as exc:
        raise NormalizationFatal(f"game {external_id!r} has unparseable date {date_text!r}") from exc

    status, status_tip = map_game_status(node.get("status").text())
    tip_time = parse_iso_datetime(node.get("datetime").text() or status_tip)

    period = node.get("period").integer()
    clock = node.get("time").text()
    if status != GameStatus.live:
        clock = None

    home_score = node.get("home_team_score").integer()
    visitor_score = node.get("visitor_team_score").integer()
    if status == GameStatus.scheduled and not home_score and not visitor_score:
        home_score = visitor_score = None

    return NormalizedGame(
        external_id=external_id,
        game_date=game_date,
        tip_time=tip_time,
        home_team_external_id=home_id,
        visitor_team_external_id=visitor_id,
        home_abbreviation=_team_abbreviation(home),
        visitor_abbreviation=_team_abbreviation(visitor),
        home_score=home_score,
        visitor_score=visitor_score,
        status=status,
        period=period or None,
        clock=clock,
        season=_season_end_year(node.get("season").integer(), game_date),
        postseason=node.get("postseason").boolean(),
    )


def normalize_schedule_team(raw: dict) -> NormalizedTeam:
    """Map one provider team to NormalizedTeam.

    Conference and division come from the static table keyed by abbreviation.
    """
    node = LooseNode(raw)
    external_id = node.get("id").text()
    raw_abbreviation = node.get("abbreviation").text()
    abbreviation = canonical_abbreviation(raw_abbreviation)
    if not external_id or abbreviation is None:
        raise NormalizationFatal(f"team {external_id!r} has unknown abbreviation {raw_abbreviation!r}")

    conference, division = team_alignment(abbreviation)
    canonical_name = NBA_TEAMS[abbreviation][0]
    return NormalizedTeam(
        external_id=external_id,
        name=node.get("name").text() or canonical_name.rsplit(" ", 1)[-1],
        city=node.get("city").text(),
        full_name=node.get("full_name").text() or canonical_name,
        abbreviation=abbreviation,
        conference=conference,
        division=division,
    )


def normalize_schedule_player(raw: dict) -> NormalizedPlayer:
    node = LooseNode(raw)
    first_name = node.get("first_name").text()
    last_name = node.get("last_name").text()
    external_id = node.get("id").text()
    if not external_id or not (first_name or last_name):
        raise NormalizationFatal(f"player {external_id!r} is missing id or name")

    return NormalizedPlayer(
        first_name=first_name or "",
        last_name=last_name or "",
        external_id=external_id,
        position=map_position(node.get("position").text()),
        team_external_id=node.get("team", "id").text(),
        height=node.get("height").text(),
        weight=node.get("weight").integer(),
        jersey_number=node.get("jersey_number").text(),
    )


def normalize_scoreboard(payload: dict) -> list[ScoreboardEvent]:
    """Extract (event ID, date, home/visitor abbreviations) from a scoreboard."""
    events: list[ScoreboardEvent] = []
    for event in LooseNode(payload).get("events").items():
        event_id = event.get("id").text()
        starts_at = parse_iso_datetime(event.get("date").text())
        home = visitor = None
        for competitor in event.get("competitions", 0, "competitors").items():
            abbreviation = canonical_abbreviation(competitor.get("team", "abbreviation").text())
            if competitor.get("homeAway").text() == "home":
                home = abbreviation
            else:
                visitor = abbreviation
        if not event_id or starts_at is None or home is None or visitor is None:
            logger.warning("scoreboard_event_skipped", event_id=event_id)
            continue
        events.append(
            ScoreboardEvent(
                event_id=event_id,
                game_date=starts_at.astimezone(US_EASTERN).date(),
                home_abbreviation=home,
                visitor_abbreviation=visitor,
            )
        )
    return events
