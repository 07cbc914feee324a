"""Per-game player stat persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import PlayerGameLine
from ..utils.datetime_utils import now_utc


@dataclass(frozen=True)
class UpsertStats:
    """Counts from a batch upsert."""

    inserted: int = 0
    rejected: int = 0
    errors: int = 0
    game_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def total_processed(self) -> int:
        return self.inserted + self.rejected + self.errors


def upsert_game_line(session: Session, line: PlayerGameLine) -> None:
    """Insert or overwrite the (player, game) box-score line."""
    values = line.model_dump()
    stmt = insert(db_models.PlayerGameStats).values(**values)
    update_columns = {key: getattr(stmt.excluded, key) for key in values if key not in ("player_id", "game_id")}
    update_columns["updated_at"] = now_utc()
    stmt = stmt.on_conflict_do_update(
        constraint="uq_player_game_stats_player_game",
        set_=update_columns,
    )
    session.execute(stmt)


def upsert_game_lines(session: Session, lines: Sequence[PlayerGameLine]) -> UpsertStats:
    """Upsert box-score lines, isolating failures per line.

    Returns counts plus the set of game IDs that received at least one line.
    """
    inserted = 0
    errors = 0
    game_ids: set[int] = set()
    for line in lines:
        try:
            with session.begin_nested():
                upsert_game_line(session, line)
            inserted += 1
            game_ids.add(line.game_id)
        except Exception as exc:
            logger.error(
                "player_game_stats_upsert_failed",
                player_id=line.player_id,
                game_id=line.game_id,
                error=str(exc),
                exc_info=True,
            )
            errors += 1
    logger.info("player_game_stats_upsert_complete", inserted_count=inserted, error_count=errors)
    return UpsertStats(inserted=inserted, errors=errors, game_ids=frozenset(game_ids))
