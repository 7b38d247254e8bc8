"""Clock-time and duration parsing for task scheduling.

Tasks carry two human-facing strings: a 12-hour due time such as ``"2:30 PM"``
and a duration such as ``"1h 30m"``. Both are optional and both parse
permissively: a missing or malformed value counts as ``0`` (midnight / no
duration) rather than failing, so scheduling checks never reject a task just
because one of these fields was left blank.
"""

from __future__ import annotations

import re
from typing import Final

MINUTES_PER_HOUR: Final = 60

_CLOCK_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2}) (?P<period>AM|PM)$")
_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")


def parse_clock_time(value: str | None) -> int:
    """Return minutes since midnight for ``"H:MM AM|PM"``, or 0 when absent/malformed.

    ``12 AM`` is midnight (0) and ``12 PM`` is noon (720). The period marker is
    case-sensitive.
    """
    if not value:
        return 0
    match = _CLOCK_TIME_RE.match(value.strip())
    if match is None:
        return 0
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if not 1 <= hour <= 12 or minute > 59:
        return 0
    if match.group("period") == "AM":
        hour = 0 if hour == 12 else hour
    elif hour != 12:
        hour += 12
    return hour * MINUTES_PER_HOUR + minute


def parse_duration(value: str | None) -> int:
    """Return total minutes for strings like ``"1h 30m"``, ``"45m"`` or ``"2h"``."""
    if not value:
        return 0
    total = 0
    hours = _HOURS_RE.search(value)
    if hours is not None:
        total += int(hours.group(1)) * MINUTES_PER_HOUR
    minutes = _MINUTES_RE.search(value)
    if minutes is not None:
        total += int(minutes.group(1))
    return total


def format_duration(total_minutes: int) -> str:
    """Render minutes in canonical ``"<H>h <M>m"`` form; never returns an empty string."""
    hours, minutes = divmod(max(total_minutes, 0), MINUTES_PER_HOUR)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def intervals_overlap(start_a: int, dur_a: int, start_b: int, dur_b: int) -> bool:
    """Half-open interval overlap test; two zero-length intervals never overlap each other."""
    return start_a < start_b + dur_b and start_b < start_a + dur_a


def task_interval(due_time: str | None, duration: str | None) -> tuple[int, int]:
    """Return ``(start, length)`` in minutes for a task's schedule fields."""
    return parse_clock_time(due_time), parse_duration(duration)
