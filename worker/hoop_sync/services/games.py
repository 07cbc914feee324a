"""Game reads (cache → store → provider) and date syncs."""

from __future__ import annotations

from datetime import date
from typing import Callable, ContextManager

from sqlalchemy.orm import Session, selectinload

from ..cache import SyncCache, keys
from ..cache.sync_cache import CacheResult
from ..client import ProviderError, ScheduleProviderClient, StatsProviderClient
from ..client.errors import NormalizationFatal
from ..config import settings
from ..db import db_models, get_session
from ..logging import logger
from ..models import GameView, NormalizedGame, NormalizedTeam
from ..normalization import canonical_abbreviation, normalize_schedule_game, normalize_schedule_team, normalize_scoreboard
from ..persistence import (
    UpsertStats,
    link_stats_provider_event,
    team_ids_by_external_id,
    upsert_games,
    upsert_teams,
)
from ..utils.datetime_utils import today_et

SessionFactory = Callable[[], ContextManager[Session]]


class GameService:
    def __init__(
        self,
        cache: SyncCache | None = None,
        schedule_client: ScheduleProviderClient | None = None,
        stats_client: StatsProviderClient | None = None,
        session_factory: SessionFactory = get_session,
    ) -> None:
        self.cache = cache or SyncCache()
        self._schedule_client = schedule_client
        self._stats_client = stats_client
        self.session_factory = session_factory

    @property
    def schedule_client(self) -> ScheduleProviderClient:
        if self._schedule_client is None:
            self._schedule_client = ScheduleProviderClient()
        return self._schedule_client

    @property
    def stats_client(self) -> StatsProviderClient:
        if self._stats_client is None:
            self._stats_client = StatsProviderClient()
        return self._stats_client

    # Reads

    def get_today(self) -> CacheResult[list[dict]]:
        today = today_et()
        return self.cache.get(
            keys.TODAY_GAMES,
            load=lambda: self._load_date(today),
            sync=lambda: self.sync_date(today),
            ttl=self._ttl_for_games(settings.cache_config.today_games),
        )

    def get_by_date(self, day: date) -> CacheResult[list[dict]]:
        ttl = keys.ttl_for_date(day, today_et())
        return self.cache.get(
            keys.games_by_date(day),
            load=lambda: self._load_date(day),
            sync=lambda: self.sync_date(day),
            ttl=self._ttl_for_games(ttl),
        )

    def get_by_id(self, game_id: int) -> CacheResult[dict]:
        return self.cache.get(
            keys.game(game_id),
            load=lambda: self._load_game(game_id),
            ttl=lambda value: keys.ttl_for_game_status(value["status"]),
        )

    @staticmethod
    def _ttl_for_games(base_ttl: int) -> Callable[[list[dict]], int]:
        """Lists with a live game expire on the live TTL."""

        def ttl(games: list[dict]) -> int:
            if any(game["status"] == db_models.GameStatus.live.value for game in games):
                return min(base_ttl, settings.cache_config.live_games)
            return base_ttl

        return ttl

    def _game_query(self, session: Session):
        return session.query(db_models.Game).options(
            selectinload(db_models.Game.home_team),
            selectinload(db_models.Game.visitor_team),
        )

    def _load_date(self, day: date) -> list[dict] | None:
        with self.session_factory() as session:
            games = (
                self._game_query(session)
                .filter(db_models.Game.game_date == day)
                .order_by(db_models.Game.tip_time, db_models.Game.id)
                .all()
            )
            return GameView.dump_all(games) or None

    def _load_game(self, game_id: int) -> dict | None:
        with self.session_factory() as session:
            game = self._game_query(session).filter(db_models.Game.id == game_id).first()
            return GameView.dump(game) if game else None

    # Sync

    def sync_date(self, day: date) -> UpsertStats:
        """Pull one day's schedule, upsert it, link stats-provider events, invalidate caches.

        Provider errors propagate; event linking is best-effort.
        """
        raw_games = self.schedule_client.fetch_games(day)
        games: list[NormalizedGame] = []
        teams: dict[str, NormalizedTeam] = {}
        for raw in raw_games:
            try:
                games.append(normalize_schedule_game(raw))
            except NormalizationFatal as exc:
                logger.warning("game_normalization_failed", game_id=raw.get("id"), reason=str(exc))
                continue
            for side in ("home_team", "visitor_team"):
                try:
                    team = normalize_schedule_team(raw.get(side) or {})
                except NormalizationFatal as exc:
                    logger.debug("game_team_skipped", game_id=raw.get("id"), side=side, reason=str(exc))
                    continue
                teams[team.external_id] = team

        with self.session_factory() as session:
            known = team_ids_by_external_id(session)
            missing_teams = [team for external_id, team in teams.items() if external_id not in known]
            if missing_teams:
                upsert_teams(session, missing_teams)
                known = team_ids_by_external_id(session)
            stats = upsert_games(session, games, known)
            game_ids = self._game_ids(session, games)
            self._link_events(session, day, game_ids)

        logger.info(
            "games_synced",
            date=str(day),
            fetched=len(raw_games),
            upserted=stats.inserted,
            rejected=stats.rejected,
            errors=stats.errors,
        )
        stale = [keys.games_by_date(day), *(keys.game(game_id) for game_id in game_ids.values())]
        if day == today_et():
            stale.append(keys.TODAY_GAMES)
        self.cache.invalidate(*stale)
        return UpsertStats(
            inserted=stats.inserted,
            rejected=stats.rejected,
            errors=stats.errors,
            game_ids=frozenset(game_ids.values()),
        )

    @staticmethod
    def _game_ids(session: Session, games: list[NormalizedGame]) -> dict[str, int]:
        external_ids = [game.external_id for game in games]
        if not external_ids:
            return {}
        rows = (
            session.query(db_models.Game.external_id, db_models.Game.id)
            .filter(db_models.Game.external_id.in_(external_ids))
            .all()
        )
        return {external_id: game_id for external_id, game_id in rows}

    def _link_events(self, session: Session, day: date, game_ids: dict[str, int]) -> int:
        """Match stored games to stats-provider scoreboard events by date and teams."""
        if not game_ids:
            return 0
        try:
            events = normalize_scoreboard(self.stats_client.fetch_scoreboard(day))
        except ProviderError as exc:
            logger.warning("scoreboard_link_skipped", date=str(day), error=str(exc))
            return 0

        by_matchup = {(event.home_abbreviation, event.visitor_abbreviation): event.event_id for event in events}
        linked = 0
        games = (
            self._game_query(session)
            .filter(db_models.Game.id.in_(list(game_ids.values())))
            .all()
        )
        for game in games:
            matchup = (
                canonical_abbreviation(game.home_team.abbreviation),
                canonical_abbreviation(game.visitor_team.abbreviation),
            )
            event_id = by_matchup.get(matchup)
            if event_id and link_stats_provider_event(session, game.id, event_id):
                linked += 1
        logger.info("scoreboard_events_linked", date=str(day), events=len(events), linked=linked)
        return linked

    def ensure_event_link(self, game_id: int) -> str | None:
        """Return the game's stats-provider event ID, linking it from the scoreboard if needed."""
        with self.session_factory() as session:
            game = session.get(db_models.Game, game_id)
            if game is None:
                return None
            if game.stats_provider_id:
                return game.stats_provider_id
            self._link_events(session, game.game_date, {game.external_id: game.id})
            return game.stats_provider_id
