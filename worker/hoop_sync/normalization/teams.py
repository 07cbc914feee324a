"""Canonical NBA team table and team/position name normalization.

Conference and division always come from this table, keyed by abbreviation.
Providers disagree on both (and on some abbreviations), so their values are
never stored verbatim.
"""

from __future__ import annotations

import re

from ..models.sports import PlayerPosition

# abbreviation: (canonical_name, conference, division, common_variations)
NBA_TEAMS: dict[str, tuple[str, str, str, list[str]]] = {
    "ATL": ("Atlanta Hawks", "East", "Southeast", ["Atlanta", "Hawks"]),
    "BOS": ("Boston Celtics", "East", "Atlantic", ["Boston", "Celtics"]),
    "BKN": ("Brooklyn Nets", "East", "Atlantic", ["Brooklyn", "Nets", "New Jersey Nets"]),
    "CHA": ("Charlotte Hornets", "East", "Southeast", ["Charlotte", "Hornets"]),
    "CHI": ("Chicago Bulls", "East", "Central", ["Chicago", "Bulls"]),
    "CLE": ("Cleveland Cavaliers", "East", "Central", ["Cleveland", "Cavaliers", "Cavs"]),
    "DAL": ("Dallas Mavericks", "West", "Southwest", ["Dallas", "Mavericks", "Mavs"]),
    "DEN": ("Denver Nuggets", "West", "Northwest", ["Denver", "Nuggets"]),
    "DET": ("Detroit Pistons", "East", "Central", ["Detroit", "Pistons"]),
    "GSW": ("Golden State Warriors", "West", "Pacific", ["Golden State", "Warriors"]),
    "HOU": ("Houston Rockets", "West", "Southwest", ["Houston", "Rockets"]),
    "IND": ("Indiana Pacers", "East", "Central", ["Indiana", "Pacers"]),
    "LAC": ("LA Clippers", "West", "Pacific", ["Los Angeles Clippers", "L.A. Clippers", "Clippers"]),
    "LAL": ("Los Angeles Lakers", "West", "Pacific", ["LA Lakers", "L.A. Lakers", "Lakers"]),
    "MEM": ("Memphis Grizzlies", "West", "Southwest", ["Memphis", "Grizzlies"]),
    "MIA": ("Miami Heat", "East", "Southeast", ["Miami", "Heat"]),
    "MIL": ("Milwaukee Bucks", "East", "Central", ["Milwaukee", "Bucks"]),
    "MIN": ("Minnesota Timberwolves", "West", "Northwest", ["Minnesota", "Timberwolves", "Wolves"]),
    "NOP": ("New Orleans Pelicans", "West", "Southwest", ["New Orleans", "Pelicans"]),
    "NYK": ("New York Knicks", "East", "Atlantic", ["New York", "Knicks"]),
    "OKC": ("Oklahoma City Thunder", "West", "Northwest", ["Oklahoma City", "Thunder"]),
    "ORL": ("Orlando Magic", "East", "Southeast", ["Orlando", "Magic"]),
    "PHI": ("Philadelphia 76ers", "East", "Atlantic", ["Philadelphia", "76ers", "Sixers"]),
    "PHX": ("Phoenix Suns", "West", "Pacific", ["Phoenix", "Suns"]),
    "POR": ("Portland Trail Blazers", "West", "Northwest", ["Portland", "Trail Blazers", "Blazers"]),
    "SAC": ("Sacramento Kings", "West", "Pacific", ["Sacramento", "Kings"]),
    "SAS": ("San Antonio Spurs", "West", "Southwest", ["San Antonio", "Spurs"]),
    "TOR": ("Toronto Raptors", "East", "Atlantic", ["Toronto", "Raptors"]),
    "UTA": ("Utah Jazz", "West", "Northwest", ["Utah", "Jazz"]),
    "WAS": ("Washington Wizards", "East", "Southeast", ["Washington", "Wizards"]),
}

# Abbreviations used by the stats provider (and historical ones) that differ from ours
ABBREVIATION_ALIASES: dict[str, str] = {
    "GS": "GSW",
    "NY": "NYK",
    "SA": "SAS",
    "NO": "NOP",
    "NOR": "NOP",
    "UTAH": "UTA",
    "WSH": "WAS",
    "PHO": "PHX",
    "BRK": "BKN",
    "BKLYN": "BKN",
    "CHO": "CHA",
}

_POSITION_NAMES: dict[str, PlayerPosition] = {
    "pg": PlayerPosition.PG,
    "point guard": PlayerPosition.PG,
    "sg": PlayerPosition.SG,
    "shooting guard": PlayerPosition.SG,
    "sf": PlayerPosition.SF,
    "small forward": PlayerPosition.SF,
    "pf": PlayerPosition.PF,
    "power forward": PlayerPosition.PF,
    "c": PlayerPosition.C,
    "center": PlayerPosition.C,
    "g": PlayerPosition.G,
    "guard": PlayerPosition.G,
    "f": PlayerPosition.F,
    "forward": PlayerPosition.F,
}


def _normalize_string(s: str) -> str:
    return re.sub(r"[^a-z0-9 ]", "", s.lower()).strip()


_NAME_INDEX: dict[str, str] = {}
for _abbr, (_name, _conf, _div, _variations) in NBA_TEAMS.items():
    for _candidate in (_name, *_variations):
        _NAME_INDEX[_normalize_string(_candidate)] = _abbr


def canonical_abbreviation(raw: str | None) -> str | None:
    """Map any known abbreviation spelling to the canonical one, else None."""
    if not raw:
        return None
    key = raw.strip().upper()
    if key in NBA_TEAMS:
        return key
    return ABBREVIATION_ALIASES.get(key)


def team_alignment(abbreviation: str | None) -> tuple[str | None, str | None]:
    """Return (conference, division) for an abbreviation from the static table."""
    abbr = canonical_abbreviation(abbreviation)
    if abbr is None:
        return None, None
    _, conference, division, _ = NBA_TEAMS[abbr]
    return conference, division


def normalize_team_name(raw_name: str | None) -> tuple[str | None, str | None]:
    """Resolve a free-form team name to (canonical_name, abbreviation).

    Returns (raw_name, None) when the name is not recognised.
    """
    if not raw_name:
        return raw_name, None
    abbr = _NAME_INDEX.get(_normalize_string(raw_name)) or canonical_abbreviation(raw_name)
    if abbr is None:
        return raw_name, None
    return NBA_TEAMS[abbr][0], abbr


def map_position(raw: str | None) -> PlayerPosition | None:
    """Map a provider position string to the enum.

    Combined positions ("G-F") and anything else unrecognised return None
    rather than a guess.
    """
    if not raw:
        return None
    return _POSITION_NAMES.get(raw.strip().lower())
