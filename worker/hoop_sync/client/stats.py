"""Stats provider client: scoreboards, box scores, game logs, season and career stats.

Not quota-limited, but slower and inconsistently shaped across endpoints.
Calls still pass through RateLimitedClient for retries and timeouts; the
policy simply has no spacing and a short backoff.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from ..config import StatsProviderConfig, settings
from ..logging import logger
from .rate_limited import ProviderRequest, RateLimitedClient, RetryPolicy

CORE_QUERY = {"lang": "en", "region": "us"}


class StatsProviderClient:
    name = "stats_provider"

    def __init__(
        self,
        client: RateLimitedClient | None = None,
        config: StatsProviderConfig | None = None,
    ) -> None:
        self.config = config or settings.stats_provider
        if client is None:
            http = httpx.Client(
                headers={"User-Agent": "hoop-sync/1.0", "Accept": "application/json"},
                timeout=self.config.request_timeout_seconds,
                follow_redirects=True,
            )
            client = RateLimitedClient(self.name, http, RetryPolicy.from_config(self.config))
        self.client = client

    def _get(self, url: str, params: dict[str, Any] | None = None) -> dict:
        payload = self.client.invoke(ProviderRequest(path=url, params=params))
        return payload if isinstance(payload, dict) else {}

    def fetch_scoreboard(self, day: date) -> dict:
        url = f"{self.config.site_base_url}/scoreboard"
        payload = self._get(url, {"dates": day.strftime("%Y%m%d")})
        logger.info("stats_scoreboard_fetched", date=str(day), events=len(payload.get("events") or []))
        return payload

    def fetch_boxscore(self, event_id: str) -> dict:
        url = f"{self.config.site_base_url}/summary"
        payload = self._get(url, {"event": event_id})
        logger.info("stats_boxscore_fetched", event_id=event_id)
        return payload

    def fetch_gamelog(self, athlete_id: str, season: int | None = None) -> dict:
        url = f"{self.config.web_base_url}/athletes/{athlete_id}/gamelog"
        params = {"season": season} if season else None
        payload = self._get(url, params)
        logger.info("stats_gamelog_fetched", athlete_id=athlete_id, season=season)
        return payload

    def fetch_season_stats(self, athlete_id: str, season: int, season_type: int) -> dict:
        url = (
            f"{self.config.core_base_url}/seasons/{season}/types/{season_type}"
            f"/athletes/{athlete_id}/statistics/0"
        )
        payload = self._get(url, CORE_QUERY)
        logger.info(
            "stats_season_fetched",
            athlete_id=athlete_id,
            season=season,
            season_type=season_type,
        )
        return payload

    def fetch_career_log(self, athlete_id: str) -> dict:
        url = f"{self.config.core_base_url}/athletes/{athlete_id}/statisticslog"
        payload = self._get(url, CORE_QUERY)
        logger.info("stats_career_log_fetched", athlete_id=athlete_id, entries=len(payload.get("entries") or []))
        return payload

    def search_athlete(self, full_name: str) -> list[dict]:
        """Return athlete search hits for a display name."""
        payload = self._get(self.config.search_url, {"query": full_name, "limit": 5, "type": "player"})
        hits: list[dict] = []
        for group in payload.get("results") or []:
            if not isinstance(group, dict):
                continue
            for item in group.get("contents") or []:
                if isinstance(item, dict):
                    hits.append(item)
        return hits

    def fetch_ref(self, url: str) -> dict:
        """Follow a `$ref` link returned by the core API."""
        return self._get(url, CORE_QUERY)

    def fetch_teams(self) -> list[dict]:
        """Return the league's team objects ({id, abbreviation, displayName, ...})."""
        payload = self._get(f"{self.config.site_base_url}/teams")
        teams: list[dict] = []
        for sport in payload.get("sports") or []:
            for league in sport.get("leagues") or []:
                for entry in league.get("teams") or []:
                    if isinstance(entry, dict) and isinstance(entry.get("team"), dict):
                        teams.append(entry["team"])
        logger.info("stats_teams_fetched", count=len(teams))
        return teams
