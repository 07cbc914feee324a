"""Schedule provider client: games, teams and player search.

The provider enforces a hard per-minute quota, so every call goes through
RateLimitedClient. Responses are `{data: [...], meta: {...}}` envelopes;
the methods here unwrap them and return raw dicts for the normalizer.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import httpx

from ..config import ScheduleProviderConfig, settings
from ..logging import logger
from .errors import ProviderUnavailable
from .rate_limited import ProviderQuotaState, ProviderRequest, RateLimitedClient, RetryPolicy

# Hard stop for cursor pagination on a single logical call
MAX_PAGES = 10


class ScheduleProviderClient:
    name = "schedule_provider"

    def __init__(
        self,
        client: RateLimitedClient | None = None,
        config: ScheduleProviderConfig | None = None,
        state: ProviderQuotaState | None = None,
    ) -> None:
        self.config = config or settings.schedule_provider
        if client is None:
            if not self.config.api_key:
                logger.warning(
                    "schedule_provider_api_key_missing",
                    message="BALLDONTLIE_API_KEY not configured; requests will be rejected.",
                )
            headers = {"User-Agent": "hoop-sync/1.0", "Accept": "application/json"}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            http = httpx.Client(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.request_timeout_seconds,
            )
            client = RateLimitedClient(self.name, http, RetryPolicy.from_config(self.config), state=state)
        self.client = client

    def _data(self, payload: Any, path: str) -> list[dict]:
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise ProviderUnavailable(
                f"{self.name} returned an unexpected envelope: {path}",
                provider=self.name,
                retryable=False,
            )
        return [item for item in payload["data"] if isinstance(item, dict)]

    def _get_all_pages(self, path: str, params: list[tuple[str, Any]]) -> list[dict]:
        """Follow `meta.next_cursor` until exhausted or MAX_PAGES is reached."""
        items: list[dict] = []
        cursor: Any = None
        for _ in range(MAX_PAGES):
            page_params = list(params)
            if cursor is not None:
                page_params.append(("cursor", cursor))
            payload = self.client.invoke(ProviderRequest(path=path, params=page_params))
            items.extend(self._data(payload, path))
            cursor = (payload.get("meta") or {}).get("next_cursor")
            if cursor is None:
                break
        else:
            logger.warning("schedule_provider_page_limit", path=path, max_pages=MAX_PAGES)
        return items

    def fetch_games(self, day: date) -> list[dict]:
        params = [("dates[]", day.isoformat()), ("per_page", 100)]
        games = self._get_all_pages("/v1/games", params)
        logger.info("schedule_games_fetched", date=str(day), count=len(games))
        return games

    def fetch_teams(self) -> list[dict]:
        payload = self.client.invoke(ProviderRequest(path="/v1/teams"))
        teams = self._data(payload, "/v1/teams")
        logger.info("schedule_teams_fetched", count=len(teams))
        return teams

    def search_players(self, term: str, page: int = 1) -> list[dict]:
        """Search players by name; `page` is 1-based."""
        params: list[tuple[str, Any]] = [("search", term), ("per_page", self.config.page_size)]
        if page > 1:
            params.append(("cursor", (page - 1) * self.config.page_size))
        payload = self.client.invoke(ProviderRequest(path="/v1/players", params=params))
        players = self._data(payload, "/v1/players")
        logger.info("schedule_players_searched", term=term, page=page, count=len(players))
        return players

    def fetch_team_players(self, team_external_id: str, page: int = 1) -> list[dict]:
        params: list[tuple[str, Any]] = [
            ("team_ids[]", team_external_id),
            ("per_page", self.config.page_size),
        ]
        if page > 1:
            params.append(("cursor", (page - 1) * self.config.page_size))
        payload = self.client.invoke(ProviderRequest(path="/v1/players", params=params))
        return self._data(payload, "/v1/players")

    def fetch_player(self, external_id: str) -> dict:
        path = f"/v1/players/{external_id}"
        payload = self.client.invoke(ProviderRequest(path=path))
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ProviderUnavailable(
                f"{self.name} returned an unexpected envelope: {path}",
                provider=self.name,
                retryable=False,
            )
        return data
