"""Team reads and the full-league team sync."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..cache import SyncCache, keys
from ..cache.sync_cache import CacheResult
from ..client import ScheduleProviderClient
from ..client.errors import NormalizationFatal
from ..config import settings
from ..db import db_models, get_session
from ..logging import logger
from ..models import TeamView
from ..normalization import normalize_schedule_team
from ..persistence import UpsertStats, upsert_teams
from .games import SessionFactory


class TeamService:
    def __init__(
        self,
        cache: SyncCache | None = None,
        schedule_client: ScheduleProviderClient | None = None,
        session_factory: SessionFactory = get_session,
    ) -> None:
        self.cache = cache or SyncCache()
        self._schedule_client = schedule_client
        self.session_factory = session_factory

    @property
    def schedule_client(self) -> ScheduleProviderClient:
        if self._schedule_client is None:
            self._schedule_client = ScheduleProviderClient()
        return self._schedule_client

    def get_all(self) -> CacheResult[list[dict]]:
        return self.cache.get(
            keys.ALL_TEAMS,
            load=self._load_all,
            sync=self.sync_all,
            ttl=settings.cache_config.all_teams,
        )

    def get_by_id(self, team_id: int) -> CacheResult[dict]:
        return self.cache.get(
            keys.team(team_id),
            load=lambda: self._load_one(team_id),
            ttl=settings.cache_config.single_team,
        )

    def _load_all(self) -> list[dict] | None:
        with self.session_factory() as session:
            teams = session.query(db_models.Team).order_by(db_models.Team.full_name).all()
            return TeamView.dump_all(teams) or None

    def _load_one(self, team_id: int) -> dict | None:
        with self.session_factory() as session:
            team = session.get(db_models.Team, team_id)
            return TeamView.dump(team) if team else None

    def sync_all(self) -> UpsertStats:
        """Pull every team from the schedule provider and upsert them."""
        teams = []
        for raw in self.schedule_client.fetch_teams():
            try:
                teams.append(normalize_schedule_team(raw))
            except NormalizationFatal as exc:
                # The provider also lists defunct franchises with no current abbreviation
                logger.debug("team_skipped", team_id=raw.get("id"), reason=str(exc))

        with self.session_factory() as session:
            stats = upsert_teams(session, teams)
            team_ids = self._ids(session)

        self.cache.invalidate(keys.ALL_TEAMS, *(keys.team(team_id) for team_id in team_ids))
        logger.info("teams_synced", count=len(teams), upserted=stats.inserted, errors=stats.errors)
        return stats

    @staticmethod
    def _ids(session: Session) -> list[int]:
        return [team_id for (team_id,) in session.query(db_models.Team.id).all()]
