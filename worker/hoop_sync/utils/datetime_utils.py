"""
Timezone, timestamp and NBA calendar helpers.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

US_EASTERN = ZoneInfo("America/New_York")


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def today_et() -> date:
    """Return the current date in US Eastern Time (sports calendar day).

    A 10 PM ET tip-off on Feb 5 is a "Feb 5 game" even though it is Feb 6 in UTC.
    """
    return datetime.now(US_EASTERN).date()


def season_for_date(day: date) -> int:
    """NBA seasons are named by the year they end; October starts the next one."""
    return day.year + 1 if day.month >= 10 else day.year


def date_range(start: date, days: int) -> list[date]:
    """Return ``days`` consecutive dates beginning at ``start``."""
    return [start + timedelta(days=offset) for offset in range(days)]


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp ("2024-01-15T00:30Z" included) to aware UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
