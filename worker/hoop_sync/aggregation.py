"""Season and career aggregation over stored per-game lines.

Everything here reads the store only. Season rows are a pure function of the
(player, season, season type) game lines, grouped by team, and are upserted on
their natural key, so recomputing twice yields identical rows.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import db_models
from .logging import logger
from .models import CareerStatLine, SeasonStatLine, SeasonType
from .normalization.season import safe_average, safe_percentage
from .persistence import delete_stale_season_partitions, upsert_career, upsert_season_line

COUNTING_FIELDS = (
    "seconds_played",
    "points",
    "offensive_rebounds",
    "defensive_rebounds",
    "total_rebounds",
    "assists",
    "steals",
    "blocks",
    "turnovers",
    "fouls",
    "field_goals_made",
    "field_goals_attempted",
    "three_pointers_made",
    "three_pointers_attempted",
    "free_throws_made",
    "free_throws_attempted",
)


def aggregate_season_lines(
    player_id: int,
    season: int,
    season_type: int,
    lines: Iterable[Any],
) -> list[SeasonStatLine]:
    """Sum game lines into one SeasonStatLine per team.

    ``lines`` are objects exposing the PlayerGameStats attributes (ORM rows or
    PlayerGameLine models). DNP lines count toward nothing.
    """
    totals: dict[int, dict[str, int]] = defaultdict(lambda: dict.fromkeys(COUNTING_FIELDS, 0))
    games: dict[int, list[int]] = defaultdict(lambda: [0, 0])

    for line in lines:
        if line.did_not_play:
            continue
        team_totals = totals[line.team_id]
        for name in COUNTING_FIELDS:
            team_totals[name] += getattr(line, name) or 0
        games[line.team_id][0] += 1
        if line.started:
            games[line.team_id][1] += 1

    result = []
    for team_id in sorted(totals):
        team_totals = totals[team_id]
        played, started = games[team_id]
        result.append(
            SeasonStatLine(
                player_id=player_id,
                season=season,
                season_type=SeasonType(season_type),
                team_id=team_id,
                games_played=played,
                games_started=started,
                **team_totals,
                minutes_per_game=safe_average(team_totals["seconds_played"] / 60, played),
                points_per_game=safe_average(team_totals["points"], played),
                rebounds_per_game=safe_average(team_totals["total_rebounds"], played),
                assists_per_game=safe_average(team_totals["assists"], played),
                field_goal_pct=safe_percentage(team_totals["field_goals_made"], team_totals["field_goals_attempted"]),
                three_point_pct=safe_percentage(
                    team_totals["three_pointers_made"], team_totals["three_pointers_attempted"]
                ),
                free_throw_pct=safe_percentage(team_totals["free_throws_made"], team_totals["free_throws_attempted"]),
            )
        )
    return result


def recompute(session: Session, player_id: int, season: int, season_type: int) -> list[SeasonStatLine]:
    """Rebuild the player's season partitions from stored game lines.

    Rebuilt partitions are upserted and any other team partition for the same
    key is deleted. A key with no stored game lines keeps its provider-document
    rows.
    """
    GameStats, Game = db_models.PlayerGameStats, db_models.Game
    rows = session.execute(
        select(GameStats)
        .join(Game, Game.id == GameStats.game_id)
        .where(
            GameStats.player_id == player_id,
            Game.season == season,
            Game.postseason.is_(int(season_type) == SeasonType.postseason),
        )
    ).scalars().all()

    lines = aggregate_season_lines(player_id, season, season_type, rows)
    for line in lines:
        upsert_season_line(session, line)
    if rows:
        # Partitions with no playing lines behind them are no longer a sum of game rows.
        delete_stale_season_partitions(session, player_id, season, season_type, [line.team_id for line in lines])
    logger.info(
        "season_stats_recomputed",
        player_id=player_id,
        season=season,
        season_type=int(season_type),
        game_lines=len(rows),
        partitions=len(lines),
    )
    return lines


def compute_career(player_id: int, season_rows: Iterable[Any]) -> CareerStatLine:
    """Roll regular-season partitions up into one career line.

    Season highs are the best *season* totals (partitions for the same season
    are summed first), not single-game highs.
    """
    per_season: dict[int, dict[str, int]] = defaultdict(
        lambda: {"points": 0, "total_rebounds": 0, "assists": 0}
    )
    totals = dict.fromkeys(
        (
            "games_played",
            "games_started",
            "seconds_played",
            "points",
            "total_rebounds",
            "assists",
            "steals",
            "blocks",
            "turnovers",
            "field_goals_made",
            "field_goals_attempted",
            "three_pointers_made",
            "three_pointers_attempted",
            "free_throws_made",
            "free_throws_attempted",
        ),
        0,
    )

    for row in season_rows:
        if int(row.season_type) != SeasonType.regular:
            continue
        for name in totals:
            totals[name] += getattr(row, name) or 0
        season_totals = per_season[row.season]
        for name in season_totals:
            season_totals[name] += getattr(row, name) or 0

    games = totals["games_played"]

    def career_pct(made: int, attempted: int) -> float | None:
        return round(made / attempted * 100, 1) if attempted else None

    return CareerStatLine(
        player_id=player_id,
        total_seasons=len(per_season),
        total_games=games,
        total_games_started=totals["games_started"],
        total_seconds=totals["seconds_played"],
        total_points=totals["points"],
        total_rebounds=totals["total_rebounds"],
        total_assists=totals["assists"],
        total_steals=totals["steals"],
        total_blocks=totals["blocks"],
        total_turnovers=totals["turnovers"],
        total_field_goals_made=totals["field_goals_made"],
        total_field_goals_attempted=totals["field_goals_attempted"],
        total_three_pointers_made=totals["three_pointers_made"],
        total_three_pointers_attempted=totals["three_pointers_attempted"],
        total_free_throws_made=totals["free_throws_made"],
        total_free_throws_attempted=totals["free_throws_attempted"],
        career_ppg=safe_average(totals["points"], games),
        career_rpg=safe_average(totals["total_rebounds"], games),
        career_apg=safe_average(totals["assists"], games),
        career_fg_pct=career_pct(totals["field_goals_made"], totals["field_goals_attempted"]),
        career_three_pct=career_pct(totals["three_pointers_made"], totals["three_pointers_attempted"]),
        career_ft_pct=career_pct(totals["free_throws_made"], totals["free_throws_attempted"]),
        season_high_points=max((s["points"] for s in per_season.values()), default=None),
        season_high_rebounds=max((s["total_rebounds"] for s in per_season.values()), default=None),
        season_high_assists=max((s["assists"] for s in per_season.values()), default=None),
    )


def recompute_career(session: Session, player_id: int) -> CareerStatLine | None:
    """Rebuild the career row from stored season partitions. None if there are none."""
    rows = session.execute(
        select(db_models.PlayerSeasonStats).where(db_models.PlayerSeasonStats.player_id == player_id)
    ).scalars().all()
    if not rows:
        return None
    career = compute_career(player_id, rows)
    upsert_career(session, career)
    logger.info("career_stats_recomputed", player_id=player_id, seasons=career.total_seasons)
    return career


def affected_season_keys(
    session: Session,
    game_ids: Iterable[int],
    player_id: int | None = None,
) -> set[tuple[int, int, int]]:
    """(player_id, season, season_type) for every line stored against ``game_ids``.

    With ``player_id`` only that player's lines are considered.
    """
    ids = list(game_ids)
    if not ids:
        return set()
    GameStats, Game = db_models.PlayerGameStats, db_models.Game
    query = (
        select(GameStats.player_id, Game.season, Game.postseason)
        .join(Game, Game.id == GameStats.game_id)
        .where(GameStats.game_id.in_(ids))
        .distinct()
    )
    if player_id is not None:
        query = query.where(GameStats.player_id == player_id)
    rows = session.execute(query).all()
    return {
        (row_player_id, season, int(SeasonType.postseason if postseason else SeasonType.regular))
        for row_player_id, season, postseason in rows
    }


def recompute_for_games(
    session: Session,
    game_ids: Iterable[int],
    player_id: int | None = None,
) -> set[tuple[int, int, int]]:
    """Recompute every season and career touched by ``game_ids``; returns the season keys."""
    keys = affected_season_keys(session, game_ids, player_id)
    for key_player_id, season, season_type in sorted(keys):
        recompute(session, key_player_id, season, season_type)
    for key_player_id in sorted({key[0] for key in keys}):
        recompute_career(session, key_player_id)
    return keys


# category -> counting column on game and season rows
LEADER_CATEGORIES = {
    "points": "points",
    "rebounds": "total_rebounds",
    "assists": "assists",
}


def compute_game_leaders(lines: Iterable[Any]) -> list[dict]:
    """Top points, rebounds and assists line per team in one game.

    DNP lines never lead. Ties go to the line seen first.
    """
    by_team: dict[int, list[Any]] = defaultdict(list)
    for line in lines:
        if not line.did_not_play:
            by_team[line.team_id].append(line)

    leaders = []
    for team_id in sorted(by_team):
        entry: dict[str, Any] = {"team_id": team_id}
        for category, column in LEADER_CATEGORIES.items():
            best_value, best = -1, None
            for line in by_team[team_id]:
                value = getattr(line, column) or 0
                if value > best_value:
                    best_value, best = value, line
            entry[category] = {"player_id": best.player_id, "value": best_value}
        leaders.append(entry)
    return leaders


def rank_season_leaders(rows: Iterable[Any]) -> list[dict]:
    """Number pre-sorted (id, first_name, last_name, team, games_played, total) rows."""
    return [
        {
            "rank": rank,
            "player_id": row.id,
            "player_name": f"{row.first_name} {row.last_name}",
            "team": row.abbreviation,
            "games_played": row.games_played,
            "value": safe_average(row.total, row.games_played),
        }
        for rank, row in enumerate(rows, start=1)
    ]
