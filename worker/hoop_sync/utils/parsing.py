"""
Generic, format-agnostic parsing utilities.

Provider payloads are loosely typed: numbers arrive as strings, minutes as
"MM:SS" and shooting lines as "made-attempted". Every helper here returns
None instead of raising so callers decide whether a missing value matters.
"""

from __future__ import annotations

import re

_MADE_ATTEMPTED = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings or "-".
    A leading "+" (plus/minus columns) is accepted.
    """
    if value in (None, "", "-", "--"):
        return None
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def parse_float(value: str | int | float | None) -> float | None:
    """Parse a value to a float. Returns None for empty strings or "-"."""
    if value in (None, "", "-", "--"):
        return None
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def parse_clock_seconds(value: str | int | float | None) -> int | None:
    """Convert a minutes value to whole seconds.

    "32:45" → 1965, "32" → 1920, 31.5 → 1890. Returns None when unparseable.
    """
    if value in (None, "", "-", "--"):
        return None
    text = str(value).strip()
    if ":" in text:
        parts = text.split(":")
        if len(parts) != 2:
            return None
        minutes = parse_int(parts[0])
        seconds = parse_int(parts[1])
        if minutes is None or seconds is None or minutes < 0 or not 0 <= seconds < 60:
            return None
        return minutes * 60 + seconds
    minutes_float = parse_float(text)
    if minutes_float is None or minutes_float < 0:
        return None
    return int(round(minutes_float * 60))


def parse_made_attempted(value: str | None) -> tuple[int, int] | None:
    """Split a "made-attempted" string such as "10-21" into (10, 21).

    Returns None when the string is malformed or made exceeds attempted.
    """
    if value is None:
        return None
    match = _MADE_ATTEMPTED.match(str(value))
    if not match:
        return None
    made, attempted = int(match.group(1)), int(match.group(2))
    if made > attempted:
        return None
    return made, attempted


def last_path_segment(ref: str | None) -> str | None:
    """Return the trailing ID from a provider $ref URL.

    "http://.../athletes/3975?lang=en" → "3975"
    """
    if not ref:
        return None
    path = ref.split("?", 1)[0].rstrip("/")
    segment = path.rsplit("/", 1)[-1]
    return segment or None
