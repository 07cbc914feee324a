"""Player statistics: box scores, game logs, season splits and career history.

Per-game lines are the source of truth. Season rows are recomputed from them
after every sync; the provider's own season documents only fill seasons for
which no game lines are stored (older seasons, mostly).
"""

from __future__ import annotations

import re
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..aggregation import (
    LEADER_CATEGORIES,
    compute_game_leaders,
    rank_season_leaders,
    recompute_career,
    recompute_for_games,
)
from ..cache import SyncCache, keys
from ..cache.sync_cache import CacheResult
from ..client import NotFound, ProviderError, StatsProviderClient
from ..client.errors import NormalizationFatal
from ..config import settings
from ..db import db_models, get_session
from ..logging import logger
from ..models import CareerStatsView, GameLineView, SeasonStatLine, SeasonStatsView, SeasonType
from ..normalization import (
    LooseNode,
    StaticIdResolver,
    canonical_abbreviation,
    career_stat_refs,
    dedupe_season_lines,
    normalize_boxscore,
    normalize_gamelog,
    normalize_season_stats,
)
from ..persistence import (
    UpsertStats,
    link_player_stats_provider_id,
    link_stats_provider_event,
    link_team_stats_provider_id,
    load_resolver,
    upsert_game_lines,
    upsert_season_lines,
)
from ..utils.datetime_utils import US_EASTERN, parse_iso_datetime, season_for_date, today_et
from .games import GameService, SessionFactory

_ATHLETE_UID = re.compile(r"~a:(\d+)")


def _name_key(name: str | None) -> str:
    return re.sub(r"[^a-z]", "", (name or "").lower())


class PlayerStatsService:
    def __init__(
        self,
        cache: SyncCache | None = None,
        stats_client: StatsProviderClient | None = None,
        game_service: GameService | None = None,
        session_factory: SessionFactory = get_session,
    ) -> None:
        self.cache = cache or SyncCache()
        self._stats_client = stats_client
        self.session_factory = session_factory
        self.game_service = game_service or GameService(
            cache=self.cache,
            stats_client=stats_client,
            session_factory=session_factory,
        )

    @property
    def stats_client(self) -> StatsProviderClient:
        if self._stats_client is None:
            self._stats_client = StatsProviderClient()
        return self._stats_client

    # Reads

    def get_season_stats(self, player_id: int, season: int | None = None) -> CacheResult[list[dict]]:
        season = season or season_for_date(today_et())
        return self.cache.get(
            keys.season_stats(player_id, season),
            load=lambda: self._load_season(player_id, season),
            sync=lambda: self.sync_season(player_id, season),
            ttl=settings.cache_config.season_stats,
        )

    def get_recent_games(self, player_id: int, count: int | None = None) -> CacheResult[list[dict]]:
        """The player's latest ``count`` lines, newest first, capped at the cached window."""
        window = settings.sync_config.recent_games_window
        count = min(count or settings.sync_config.recent_games_to_sync, window)
        result = self.cache.get(
            keys.recent_games(player_id),
            load=lambda: self._load_recent(player_id, window),
            sync=lambda: self.sync_player_gamelog(player_id, season_for_date(today_et())),
            ttl=settings.cache_config.player_stats,
        )
        if not result.found:
            return result
        return CacheResult.hit(result.value[:count], result.source)

    def get_career_stats(self, player_id: int) -> CacheResult[dict]:
        return self.cache.get(
            keys.career_stats(player_id),
            load=lambda: self._load_career(player_id),
            sync=lambda: self.sync_career(player_id),
            ttl=settings.cache_config.career_stats,
        )

    def get_game_stats(self, game_id: int) -> CacheResult[list[dict]]:
        return self.cache.get(
            keys.game_stats(game_id),
            load=lambda: self._load_game_lines(game_id),
            sync=lambda: self.sync_game_stats(game_id),
            ttl=settings.cache_config.player_stats,
        )

    def get_game_leaders(self, game_id: int) -> CacheResult[dict]:
        return self.cache.get(
            keys.game_leaders(game_id),
            load=lambda: self._load_game_leaders(game_id),
            sync=lambda: self.sync_game_stats(game_id),
            ttl=settings.cache_config.game_leaders,
        )

    def get_season_leaders(
        self,
        season: int | None = None,
        stat: str = "points",
        min_games: int = 10,
        limit: int = 10,
    ) -> CacheResult[list[dict]]:
        """Regular-season per-game leaders for ``stat`` (points, rebounds or assists).

        Store only; nothing is synced on a miss. Traded players are ranked on
        their combined partitions.
        """
        if stat not in LEADER_CATEGORIES:
            raise ValueError(f"unknown leader stat {stat!r}; expected one of {', '.join(LEADER_CATEGORIES)}")
        season = season or season_for_date(today_et())
        min_games = max(min_games, 1)
        return self.cache.get(
            keys.season_leaders(season, stat, min_games, limit),
            load=lambda: self._load_season_leaders(season, LEADER_CATEGORIES[stat], min_games, limit),
            ttl=settings.cache_config.season_leaders,
        )

    def _load_game_leaders(self, game_id: int) -> dict | None:
        GameStats = db_models.PlayerGameStats
        with self.session_factory() as session:
            rows = session.query(GameStats).filter(GameStats.game_id == game_id).order_by(GameStats.player_id).all()
            teams = compute_game_leaders(rows)
        return {"game_id": game_id, "teams": teams} if teams else None

    def _load_season_leaders(self, season: int, column: str, min_games: int, limit: int) -> list[dict] | None:
        Season, Player, Team = db_models.PlayerSeasonStats, db_models.Player, db_models.Team
        games = func.sum(Season.games_played)
        total = func.sum(getattr(Season, column))
        with self.session_factory() as session:
            rows = (
                session.query(
                    Player.id,
                    Player.first_name,
                    Player.last_name,
                    Team.abbreviation,
                    games.label("games_played"),
                    total.label("total"),
                )
                .join(Season, Season.player_id == Player.id)
                .outerjoin(Team, Team.id == Player.team_id)
                .filter(Season.season == season, Season.season_type == int(SeasonType.regular))
                .group_by(Player.id, Player.first_name, Player.last_name, Team.abbreviation)
                .having(games >= min_games)
                .order_by((total * 1.0 / games).desc(), Player.id)
                .limit(limit)
                .all()
            )
        return rank_season_leaders(rows) or None

    def _load_season(self, player_id: int, season: int) -> list[dict] | None:
        Season = db_models.PlayerSeasonStats
        with self.session_factory() as session:
            rows = (
                session.query(Season)
                .filter(Season.player_id == player_id, Season.season == season)
                .order_by(Season.season_type, Season.team_id)
                .all()
            )
            return SeasonStatsView.dump_all(rows) or None

    def _load_recent(self, player_id: int, count: int) -> list[dict] | None:
        GameStats, Game = db_models.PlayerGameStats, db_models.Game
        with self.session_factory() as session:
            rows = (
                session.query(GameStats)
                .join(Game, Game.id == GameStats.game_id)
                .filter(GameStats.player_id == player_id)
                .order_by(Game.game_date.desc(), Game.id.desc())
                .limit(count)
                .all()
            )
            return GameLineView.dump_all(rows) or None

    def _load_career(self, player_id: int) -> dict | None:
        with self.session_factory() as session:
            row = (
                session.query(db_models.PlayerCareerStats)
                .filter(db_models.PlayerCareerStats.player_id == player_id)
                .first()
            )
            return CareerStatsView.dump(row) if row else None

    def _load_game_lines(self, game_id: int) -> list[dict] | None:
        GameStats = db_models.PlayerGameStats
        with self.session_factory() as session:
            rows = (
                session.query(GameStats)
                .filter(GameStats.game_id == game_id)
                .order_by(GameStats.team_id, GameStats.started.desc(), GameStats.points.desc())
                .all()
            )
            return GameLineView.dump_all(rows) or None

    # Provider identity

    def resolve_stats_provider_id(self, player_id: int) -> str:
        """Return the player's stats-provider athlete ID, searching for it once by name.

        A resolved ID is stored on the player and never searched again.
        Raises NotFound when the player is unknown or no search hit matches.
        """
        with self.session_factory() as session:
            player = session.get(db_models.Player, player_id)
            if player is None:
                raise NotFound(f"player {player_id} not found")
            if player.stats_provider_id:
                return player.stats_provider_id
            full_name = f"{player.first_name} {player.last_name}".strip()

        wanted = _name_key(full_name)
        for hit in self.stats_client.search_athlete(full_name):
            node = LooseNode(hit)
            if _name_key(node.first("displayName", "name").text()) != wanted:
                continue
            match = _ATHLETE_UID.search(node.get("uid").text() or "")
            athlete_id = match.group(1) if match else node.get("id").text()
            if not athlete_id:
                continue
            with self.session_factory() as session:
                if link_player_stats_provider_id(session, player_id, athlete_id):
                    self.cache.invalidate(keys.player(player_id))
                    return athlete_id

        logger.info("stats_provider_athlete_not_found", player_id=player_id, name=full_name)
        raise NotFound(f"no stats-provider athlete matches {full_name!r}")

    def _ensure_team_links(self, session: Session, resolver: StaticIdResolver) -> None:
        """Link every team's stats-provider ID the first time it is needed."""
        if len(resolver.teams_by_provider_id) >= len(resolver.teams_by_abbreviation):
            return
        try:
            provider_teams = self.stats_client.fetch_teams()
        except ProviderError as exc:
            logger.warning("stats_team_link_skipped", error=str(exc))
            return
        for team in provider_teams:
            node = LooseNode(team)
            team_id = resolver.teams_by_abbreviation.get(canonical_abbreviation(node.get("abbreviation").text()) or "")
            provider_id = node.get("id").text()
            if team_id and provider_id and provider_id not in resolver.teams_by_provider_id:
                link_team_stats_provider_id(session, team_id, provider_id)
                resolver.teams_by_provider_id[provider_id] = team_id

    # Box scores

    def sync_game_stats(self, game_id: int) -> UpsertStats:
        """Pull a game's box score, upsert every resolvable line, recompute seasons."""
        event_id = self.game_service.ensure_event_link(game_id)
        if not event_id:
            raise NotFound(f"game {game_id} has no stats-provider event")
        payload = self.stats_client.fetch_boxscore(event_id)

        with self.session_factory() as session:
            resolver = load_resolver(session)
            self._ensure_team_links(session, resolver)
            self._link_boxscore_athletes(session, payload, resolver)
            result = normalize_boxscore(payload, game_id, resolver)
            stats = upsert_game_lines(session, result.lines)
            season_keys = recompute_for_games(session, [game_id])

        self._invalidate_stats(season_keys, [game_id])
        logger.info(
            "game_stats_synced",
            game_id=game_id,
            stats_provider_id=event_id,
            lines=stats.inserted,
            discarded=result.discarded,
            partial_fields=result.partial_fields,
        )
        return UpsertStats(
            inserted=stats.inserted,
            rejected=result.discarded,
            errors=stats.errors,
            game_ids=stats.game_ids,
        )

    def _link_boxscore_athletes(self, session: Session, payload: dict, resolver: StaticIdResolver) -> int:
        """Link unlinked box-score athletes to stored players on the same team by exact name."""
        linked = 0
        for team_block in LooseNode(payload).get("boxscore", "players").items():
            team = team_block.get("team")
            team_id = resolver.team_id(team.get("id").text(), team.get("abbreviation").text())
            if team_id is None:
                continue
            roster: dict[str, int] | None = None
            for stat_block in team_block.get("statistics").items():
                for athlete in stat_block.get("athletes").items():
                    ref = athlete.get("athlete")
                    athlete_id = ref.ref_id()
                    if not athlete_id or resolver.player_id(athlete_id) is not None:
                        continue
                    if roster is None:
                        roster = self._roster_by_name(session, team_id)
                    player_id = roster.get(_name_key(ref.get("displayName").text()))
                    if player_id and link_player_stats_provider_id(session, player_id, athlete_id):
                        resolver.players_by_provider_id[athlete_id] = player_id
                        linked += 1
        return linked

    @staticmethod
    def _roster_by_name(session: Session, team_id: int) -> dict[str, int]:
        Player = db_models.Player
        rows = (
            session.query(Player.id, Player.first_name, Player.last_name)
            .filter(Player.team_id == team_id, Player.stats_provider_id.is_(None))
            .all()
        )
        return {_name_key(f"{first} {last}"): player_id for player_id, first, last in rows}

    # Game logs

    def sync_player_gamelog(self, player_id: int, season: int | None = None) -> UpsertStats:
        """Pull a player's game log for a season and upsert its lines.

        A game log whose labels no longer match the pinned schema is rejected
        whole and logged; nothing from it is stored.
        """
        season = season or season_for_date(today_et())
        athlete_id = self.resolve_stats_provider_id(player_id)
        payload = self.stats_client.fetch_gamelog(athlete_id, season)

        with self.session_factory() as session:
            resolver = load_resolver(session, player_ids=[player_id], seasons=[season])
            self._link_gamelog_events(session, payload, resolver)
            try:
                result = normalize_gamelog(
                    payload,
                    player_id,
                    resolver,
                    schema_version=settings.stats_provider.gamelog_schema_version,
                )
            except NormalizationFatal as exc:
                logger.error("gamelog_rejected", player_id=player_id, season=season, reason=str(exc))
                return UpsertStats(rejected=1)
            stats = upsert_game_lines(session, result.lines)
            season_keys = recompute_for_games(session, stats.game_ids, player_id=player_id)

        self._invalidate_stats(season_keys, stats.game_ids)
        logger.info(
            "gamelog_synced",
            player_id=player_id,
            season=season,
            lines=stats.inserted,
            discarded=result.discarded,
        )
        return UpsertStats(
            inserted=stats.inserted,
            rejected=result.discarded,
            errors=stats.errors,
            game_ids=stats.game_ids,
        )

    def _link_gamelog_events(self, session: Session, payload: dict, resolver: StaticIdResolver) -> int:
        """Link stored games to game-log events by (date, team, opponent)."""
        Game = db_models.Game
        linked = 0
        for event_id, meta in LooseNode(payload).get("events").entries():
            if resolver.game_id(event_id) is not None:
                continue
            starts_at = parse_iso_datetime(meta.get("gameDate").text())
            team_id = resolver.team_id(meta.get("team", "id").text(), meta.get("team", "abbreviation").text())
            opponent_id = resolver.team_id(
                meta.get("opponent", "id").text(), meta.get("opponent", "abbreviation").text()
            )
            if starts_at is None or team_id is None or opponent_id is None:
                continue
            game_day: date = starts_at.astimezone(US_EASTERN).date()
            game = (
                session.query(Game)
                .filter(
                    Game.game_date == game_day,
                    Game.home_team_id.in_([team_id, opponent_id]),
                    Game.visitor_team_id.in_([team_id, opponent_id]),
                )
                .first()
            )
            if game is None:
                continue
            if link_stats_provider_event(session, game.id, event_id):
                linked += 1
            elif game.stats_provider_id != event_id:
                continue
            # Already linked by a scoreboard sync but outside the resolver's season filter.
            resolver.games_by_provider_id[event_id] = game.id
        return linked

    # Season splits and career

    def sync_season(self, player_id: int, season: int) -> UpsertStats:
        """Game log first; fall back to the provider's season documents when it yields nothing."""
        stats = self.sync_player_gamelog(player_id, season)
        if stats.inserted:
            return stats
        return self._sync_season_documents(player_id, season)

    def _sync_season_documents(self, player_id: int, season: int) -> UpsertStats:
        athlete_id = self.resolve_stats_provider_id(player_id)
        lines: list[SeasonStatLine] = []
        with self.session_factory() as session:
            resolver = load_resolver(session, player_ids=[player_id])
            self._ensure_team_links(session, resolver)
            fallback_team_id = self._current_team(session, player_id)

        for season_type in (SeasonType.regular, SeasonType.postseason):
            try:
                payload = self.stats_client.fetch_season_stats(athlete_id, season, int(season_type))
            except NotFound:
                continue
            try:
                lines.append(
                    normalize_season_stats(
                        payload,
                        player_id,
                        season,
                        int(season_type),
                        resolver,
                        fallback_team_id=fallback_team_id,
                    )
                )
            except NormalizationFatal as exc:
                logger.warning("season_document_discarded", player_id=player_id, season=season, reason=str(exc))

        return self._store_season_lines(player_id, lines)

    def sync_career(self, player_id: int) -> UpsertStats:
        """Pull every season of the player's history and rebuild the career row."""
        athlete_id = self.resolve_stats_provider_id(player_id)
        log = self.stats_client.fetch_career_log(athlete_id)
        refs = career_stat_refs(log)

        with self.session_factory() as session:
            resolver = load_resolver(session, player_ids=[player_id])
            self._ensure_team_links(session, resolver)
            fallback_team_id = self._current_team(session, player_id)

        lines: list[SeasonStatLine] = []
        failures = 0
        for ref in refs:
            try:
                payload = self.stats_client.fetch_ref(ref.url)
                lines.append(
                    normalize_season_stats(
                        payload,
                        player_id,
                        ref.season,
                        ref.season_type,
                        resolver,
                        team_provider_id=ref.team_provider_id,
                        fallback_team_id=None if ref.team_provider_id else fallback_team_id,
                    )
                )
            except NormalizationFatal as exc:
                logger.warning("career_season_discarded", player_id=player_id, season=ref.season, reason=str(exc))
            except (NotFound, ProviderError) as exc:
                failures += 1
                logger.warning("career_season_fetch_failed", player_id=player_id, season=ref.season, error=str(exc))

        if refs and failures == len(refs):
            raise NotFound(f"no career seasons could be fetched for player {player_id}")
        return self._store_season_lines(player_id, lines)

    def _store_season_lines(self, player_id: int, lines: list[SeasonStatLine]) -> UpsertStats:
        """Upsert provider season lines for keys without stored game lines, then rebuild the career."""
        with self.session_factory() as session:
            covered = self._seasons_with_game_lines(session, player_id)
            fresh = [line for line in dedupe_season_lines(lines) if (line.season, int(line.season_type)) not in covered]
            stats = upsert_season_lines(session, fresh)
            recompute_career(session, player_id)

        seasons = {line.season for line in fresh}
        self.cache.invalidate(
            keys.career_stats(player_id),
            *(keys.season_stats(player_id, season) for season in sorted(seasons)),
        )
        logger.info(
            "season_documents_stored",
            player_id=player_id,
            received=len(lines),
            stored=stats.inserted,
            skipped=len(lines) - len(fresh),
        )
        return stats

    @staticmethod
    def _seasons_with_game_lines(session: Session, player_id: int) -> set[tuple[int, int]]:
        GameStats, Game = db_models.PlayerGameStats, db_models.Game
        rows = (
            session.query(Game.season, Game.postseason)
            .join(GameStats, GameStats.game_id == Game.id)
            .filter(GameStats.player_id == player_id)
            .distinct()
            .all()
        )
        return {
            (season, int(SeasonType.postseason if postseason else SeasonType.regular))
            for season, postseason in rows
        }

    @staticmethod
    def _current_team(session: Session, player_id: int) -> int | None:
        player = session.get(db_models.Player, player_id)
        return player.team_id if player else None

    def _invalidate_stats(self, season_keys: set[tuple[int, int, int]], game_ids) -> None:
        stale: list[str] = []
        for game_id in sorted(game_ids):
            stale += [keys.game_stats(game_id), keys.game_leaders(game_id)]
        for player_id in sorted({key[0] for key in season_keys}):
            stale += [keys.career_stats(player_id), keys.recent_games(player_id)]
        for player_id, season in sorted({(key[0], key[1]) for key in season_keys}):
            stale.append(keys.season_stats(player_id, season))
        if stale:
            self.cache.invalidate(*stale)
