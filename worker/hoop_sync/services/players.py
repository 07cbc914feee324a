"""Player reads, search and roster pages."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..cache import SyncCache, keys
from ..cache.sync_cache import CacheResult
from ..client import NotFound, ScheduleProviderClient
from ..client.errors import NormalizationFatal
from ..config import settings
from ..db import db_models, get_session
from ..logging import logger
from ..models import NormalizedPlayer, PlayerView
from ..normalization import normalize_schedule_player, normalize_schedule_team
from ..persistence import UpsertStats, team_ids_by_external_id, upsert_players, upsert_teams
from .games import SessionFactory


@dataclass(frozen=True)
class PlayerSearchCriteria:
    term: str
    position: str | None = None
    team_id: int | None = None
    page: int = 1


class PlayerService:
    def __init__(
        self,
        cache: SyncCache | None = None,
        schedule_client: ScheduleProviderClient | None = None,
        session_factory: SessionFactory = get_session,
    ) -> None:
        self.cache = cache or SyncCache()
        self._schedule_client = schedule_client
        self.session_factory = session_factory
        self.page_size = settings.schedule_provider.page_size

    @property
    def schedule_client(self) -> ScheduleProviderClient:
        if self._schedule_client is None:
            self._schedule_client = ScheduleProviderClient()
        return self._schedule_client

    def get_by_id(self, player_id: int) -> CacheResult[dict]:
        return self.cache.get(
            keys.player(player_id),
            load=lambda: self._load_one(player_id),
            ttl=settings.cache_config.player,
        )

    def search(self, criteria: PlayerSearchCriteria) -> CacheResult[list[dict]]:
        """Local store first; the provider is searched only when nothing matches."""
        term = criteria.term.strip()
        if len(term) < 2:
            return CacheResult.missing()
        return self.cache.get(
            keys.player_search(term, criteria.page, criteria.position, criteria.team_id),
            load=lambda: self._search_local(criteria),
            sync=lambda: self._sync_search(term, criteria.page),
            ttl=settings.cache_config.players_search,
        )

    def get_by_team(self, team_id: int, page: int = 1) -> CacheResult[list[dict]]:
        return self.cache.get(
            keys.players_by_team(team_id, page),
            load=lambda: self._load_team_page(team_id, page),
            sync=lambda: self._sync_team_page(team_id, page),
            ttl=settings.cache_config.players_by_team,
        )

    def _load_one(self, player_id: int) -> dict | None:
        with self.session_factory() as session:
            player = session.get(db_models.Player, player_id)
            return PlayerView.dump(player) if player else None

    def _search_local(self, criteria: PlayerSearchCriteria) -> list[dict] | None:
        Player = db_models.Player
        pattern = f"%{criteria.term.strip()}%"
        full_name = func.concat(Player.first_name, " ", Player.last_name)
        with self.session_factory() as session:
            query = session.query(Player).filter(
                or_(Player.first_name.ilike(pattern), Player.last_name.ilike(pattern), full_name.ilike(pattern))
            )
            if criteria.position:
                query = query.filter(Player.position == criteria.position.upper())
            if criteria.team_id:
                query = query.filter(Player.team_id == criteria.team_id)
            players = (
                query.order_by(Player.last_name, Player.first_name)
                .offset((criteria.page - 1) * self.page_size)
                .limit(self.page_size)
                .all()
            )
            return PlayerView.dump_all(players) or None

    def _load_team_page(self, team_id: int, page: int) -> list[dict] | None:
        Player = db_models.Player
        with self.session_factory() as session:
            players = (
                session.query(Player)
                .filter(Player.team_id == team_id)
                .order_by(Player.last_name, Player.first_name)
                .offset((page - 1) * self.page_size)
                .limit(self.page_size)
                .all()
            )
            return PlayerView.dump_all(players) or None

    def _sync_search(self, term: str, page: int) -> UpsertStats:
        raw_players = self.schedule_client.search_players(term, page)
        return self._save(raw_players, reason="search")

    def _sync_team_page(self, team_id: int, page: int) -> UpsertStats:
        with self.session_factory() as session:
            team = session.get(db_models.Team, team_id)
            if team is None:
                raise NotFound(f"team {team_id} not found")
            external_id = team.external_id
        raw_players = self.schedule_client.fetch_team_players(external_id, page)
        return self._save(raw_players, reason="team")

    def sync_player(self, external_id: str) -> UpsertStats:
        """Pull a single player by schedule-provider ID."""
        return self._save([self.schedule_client.fetch_player(external_id)], reason="single")

    def _save(self, raw_players: list[dict], *, reason: str) -> UpsertStats:
        players: list[NormalizedPlayer] = []
        teams = []
        for raw in raw_players:
            try:
                players.append(normalize_schedule_player(raw))
            except NormalizationFatal as exc:
                logger.warning("player_normalization_failed", player_id=raw.get("id"), reason=str(exc))
                continue
            if isinstance(raw.get("team"), dict):
                try:
                    teams.append(normalize_schedule_team(raw["team"]))
                except NormalizationFatal as exc:
                    logger.debug("player_team_skipped", player_id=raw.get("id"), reason=str(exc))

        with self.session_factory() as session:
            team_ids = self._ensure_teams(session, teams)
            stats = upsert_players(session, players, team_ids)
            player_ids = self._ids(session, players)

        self.cache.invalidate(*(keys.player(player_id) for player_id in player_ids))
        logger.info("players_synced", reason=reason, count=len(players), upserted=stats.inserted)
        return stats

    @staticmethod
    def _ensure_teams(session: Session, teams: list) -> dict[str, int]:
        known = team_ids_by_external_id(session)
        missing = {team.external_id: team for team in teams if team.external_id not in known}
        if missing:
            upsert_teams(session, list(missing.values()))
            known = team_ids_by_external_id(session)
        return known

    @staticmethod
    def _ids(session: Session, players: list[NormalizedPlayer]) -> list[int]:
        external_ids = [player.external_id for player in players if player.external_id]
        if not external_ids:
            return []
        rows = (
            session.query(db_models.Player.id)
            .filter(db_models.Player.external_id.in_(external_ids))
            .all()
        )
        return [player_id for (player_id,) in rows]
