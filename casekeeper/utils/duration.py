"""
Duration Utilities
==================

Parsing and formatting of the human-readable durations stored on mute,
timeout and ban cases ("1h", "1d12h", "2 weeks", "permanent").

Usage:
    from casekeeper.utils.duration import parse_duration, format_duration

    seconds = parse_duration("1d12h30m")  # 131400
    display = format_duration(131400)     # "1d 12h 30m"
"""

import re
from datetime import timedelta
from typing import Optional


# =============================================================================
# Time Constants
# =============================================================================

SECONDS_PER_YEAR = 31536000
SECONDS_PER_MONTH = 2592000  # 30 days
SECONDS_PER_WEEK = 604800
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

PERMANENT_KEYWORDS = frozenset({"permanent", "perm", "forever", "indefinite", "inf"})

# Largest unit first, so the formatter can walk it in order
UNITS = (
    ("y", SECONDS_PER_YEAR),
    ("mo", SECONDS_PER_MONTH),
    ("w", SECONDS_PER_WEEK),
    ("d", SECONDS_PER_DAY),
    ("h", SECONDS_PER_HOUR),
    ("m", SECONDS_PER_MINUTE),
    ("s", 1),
)
UNIT_SECONDS = dict(UNITS)

UNIT_ALIASES = {
    "year": "y", "years": "y", "yr": "y", "yrs": "y",
    "month": "mo", "months": "mo", "mon": "mo",
    "week": "w", "weeks": "w", "wk": "w", "wks": "w",
    "day": "d", "days": "d",
    "hour": "h", "hours": "h", "hr": "h", "hrs": "h",
    "minute": "m", "minutes": "m", "min": "m", "mins": "m",
    "second": "s", "seconds": "s", "sec": "s", "secs": "s",
}

_TOKEN = re.compile(r"(\d+)\s*([a-z]*)")


# =============================================================================
# Parsing
# =============================================================================

def is_permanent(duration_str: Optional[str]) -> bool:
    """Check for one of the "no expiry" keywords."""
    return bool(duration_str) and duration_str.lower().strip() in PERMANENT_KEYWORDS


def parse_duration(duration_str: Optional[str]) -> Optional[int]:
    """
    Parse a duration string into seconds.

    Supports:
        - Single units: "30m", "2h", "1d", "1w", "1mo", "1y", "45s"
        - Combined: "1d12h30m", "2w3d", "1 week 2 days"
        - Full words: "1 day", "2hours"
        - Plain number: "30" -> 30 minutes

    Returns:
        Duration in seconds, or None for permanent, empty or invalid input.

    Examples:
        >>> parse_duration("1d12h")
        129600
        >>> parse_duration("30")
        1800
        >>> parse_duration("1 monday")
        None
    """
    if not duration_str or is_permanent(duration_str):
        return None

    text = duration_str.lower().strip()
    total = 0
    position = 0
    for match in _TOKEN.finditer(text):
        # Anything between tokens other than whitespace is garbage
        if text[position:match.start()].strip():
            return None
        position = match.end()

        value, unit = int(match.group(1)), match.group(2)
        unit = UNIT_ALIASES.get(unit, unit) or "m"
        if unit not in UNIT_SECONDS:
            return None
        total += value * UNIT_SECONDS[unit]

    if position == 0 or text[position:].strip():
        return None
    return total if total > 0 else None


def is_valid_duration(duration_str: Optional[str]) -> bool:
    """A duration is valid if it is a permanent keyword or parses to seconds."""
    return is_permanent(duration_str) or parse_duration(duration_str) is not None


def parse_duration_timedelta(duration_str: str) -> Optional[timedelta]:
    """
    Parse a duration string into a timedelta.

    Returns:
        timedelta, or None for permanent durations.

    Raises:
        ValueError: If the duration is empty or malformed.
    """
    if is_permanent(duration_str):
        return None
    seconds = parse_duration(duration_str)
    if seconds is None:
        raise ValueError(f"Invalid duration format: {duration_str!r}")
    return timedelta(seconds=seconds)


# =============================================================================
# Formatting
# =============================================================================

def format_duration(seconds: Optional[int], max_units: int = 3) -> str:
    """
    Format seconds into a human-readable duration string.

    Examples:
        >>> format_duration(None)
        "Permanent"
        >>> format_duration(90061)
        "1d 1h 1m"
        >>> format_duration(45)
        "45s"
    """
    if seconds is None:
        return "Permanent"
    if seconds <= 0:
        return "0s"

    parts = []
    remaining = int(seconds)
    for unit, size in UNITS:
        if remaining >= size and len(parts) < max_units:
            count, remaining = divmod(remaining, size)
            parts.append(f"{count}{unit}")
    return " ".join(parts)


__all__ = [
    "SECONDS_PER_YEAR",
    "SECONDS_PER_MONTH",
    "SECONDS_PER_WEEK",
    "SECONDS_PER_DAY",
    "SECONDS_PER_HOUR",
    "SECONDS_PER_MINUTE",
    "PERMANENT_KEYWORDS",
    "is_permanent",
    "parse_duration",
    "is_valid_duration",
    "parse_duration_timedelta",
    "format_duration",
]
