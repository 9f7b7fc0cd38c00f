"""Human-readable delay grammar.

Supported literals:

    0 / "0" / None   -> 0
    5000             -> 5000 (numbers are already milliseconds)
    "30m" "2h" "1d"  -> minutes / hours / days
    "1d 09:00"       -> 1 day + 9 hours from now (additive offset, not a wall-clock time)
    "Mon 10:00"      -> until the next Monday 10:00 local time, always within (0, 7 days]
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Optional, Union

from core.errors import InvalidDelayFormat

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS

UNIT_MS = {"m": MINUTE_MS, "h": HOUR_MS, "d": DAY_MS}

# datetime.weekday() order
WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_DURATION_RE = re.compile(r"^(\d+)([mhd])$")
_DAYS_TIME_RE = re.compile(r"^(\d+)d\s+(\d{2}):(\d{2})$")
_WEEKDAY_RE = re.compile(r"^(mon|tue|wed|thu|fri|sat|sun)\s+(\d{2}):(\d{2})$", re.IGNORECASE)

DelayLiteral = Union[None, int, float, str]


def _clock(literal: DelayLiteral, hours: str, minutes: str) -> tuple[int, int]:
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        raise InvalidDelayFormat(literal)
    return h, m


def parse_delay(delay: DelayLiteral, now: Optional[datetime] = None) -> int:
    """Convert a delay literal into milliseconds from `now`.

    Args:
        delay: The literal from a rule's publish destination.
        now: Reference time for weekday literals (defaults to datetime.now()).

    Returns:
        int: Non-negative delay in milliseconds.

    Raises:
        InvalidDelayFormat: If the literal matches none of the supported forms.
    """
    if delay is None or delay == "0":
        return 0

    if isinstance(delay, bool):
        raise InvalidDelayFormat(delay)

    if isinstance(delay, (int, float)):
        if delay < 0:
            raise InvalidDelayFormat(delay)
        return int(delay)

    if not isinstance(delay, str):
        raise InvalidDelayFormat(delay)

    literal = delay.strip()

    match = _DURATION_RE.match(literal)
    if match:
        return int(match.group(1)) * UNIT_MS[match.group(2)]

    match = _DAYS_TIME_RE.match(literal)
    if match:
        hours, minutes = _clock(delay, match.group(2), match.group(3))
        return int(match.group(1)) * DAY_MS + hours * HOUR_MS + minutes * MINUTE_MS

    match = _WEEKDAY_RE.match(literal)
    if match:
        hours, minutes = _clock(delay, match.group(2), match.group(3))
        return _until_weekday(WEEKDAYS.index(match.group(1).lower()), hours, minutes, now)

    raise InvalidDelayFormat(delay)


def _until_weekday(weekday: int, hours: int, minutes: int, now: Optional[datetime]) -> int:
    now = now or datetime.now()
    days_ahead = (weekday - now.weekday()) % 7
    target = (now + timedelta(days=days_ahead)).replace(
        hour=hours, minute=minutes, second=0, microsecond=0
    )
    if target <= now:
        target += timedelta(days=7)

    delta = target - now
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    # round up so a sub-millisecond gap never collapses to 0
    return -(-micros // 1000)
