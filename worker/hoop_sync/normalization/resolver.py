"""ID-resolution seam between provider identifiers and internal row IDs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .teams import canonical_abbreviation


class IdResolver(Protocol):
    """Maps provider-assigned identifiers to internal IDs; None when unknown."""

    def team_id(self, stats_provider_id: str | None, abbreviation: str | None = None) -> int | None: ...

    def player_id(self, stats_provider_id: str | None) -> int | None: ...

    def game_id(self, stats_provider_event_id: str | None) -> int | None: ...


@dataclass
class StaticIdResolver:
    """In-memory resolver built from pre-loaded lookup tables.

    The store-backed resolver loads these tables once per sync batch so a
    box score with 26 athletes does not issue 26 queries.
    """

    teams_by_provider_id: dict[str, int] = field(default_factory=dict)
    teams_by_abbreviation: dict[str, int] = field(default_factory=dict)
    players_by_provider_id: dict[str, int] = field(default_factory=dict)
    games_by_provider_id: dict[str, int] = field(default_factory=dict)

    def team_id(self, stats_provider_id: str | None, abbreviation: str | None = None) -> int | None:
        if stats_provider_id and stats_provider_id in self.teams_by_provider_id:
            return self.teams_by_provider_id[stats_provider_id]
        abbr = canonical_abbreviation(abbreviation)
        if abbr:
            return self.teams_by_abbreviation.get(abbr)
        return None

    def player_id(self, stats_provider_id: str | None) -> int | None:
        if not stats_provider_id:
            return None
        return self.players_by_provider_id.get(stats_provider_id)

    def game_id(self, stats_provider_event_id: str | None) -> int | None:
        if not stats_provider_event_id:
            return None
        return self.games_by_provider_id.get(stats_provider_event_id)
