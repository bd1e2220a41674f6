"""Weekly firing windows for the scheduled league jobs.

A weekly job (auction rollover, weekly snapshot) is eligible to fire during
a short window anchored to local civil time, e.g. Sunday 4:00-4:10pm
Pacific.  All ticks that land in the same window compute the same window id,
which is what gets persisted as the job's "last fired" marker.

Everything here is a pure function of its inputs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

import zoneinfo

# Timezone the league's weekly schedule is anchored to
PT = zoneinfo.ZoneInfo("America/Los_Angeles")

SUNDAY = 6  # datetime.weekday(): Monday=0 ... Sunday=6
DEFAULT_START_HOUR = 16
DEFAULT_WINDOW_MINUTES = 10

TimeZoneLike = Union[str, zoneinfo.ZoneInfo]


def _zone(tz: TimeZoneLike) -> zoneinfo.ZoneInfo:
    return tz if isinstance(tz, zoneinfo.ZoneInfo) else zoneinfo.ZoneInfo(tz)


def local_time(now: datetime, tz: TimeZoneLike = PT) -> datetime:
    """Convert an instant to wall-clock time in *tz* (DST aware).

    Naive datetimes are treated as UTC.
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(_zone(tz))


def is_in_weekly_window(
    now: datetime,
    tz: TimeZoneLike = PT,
    weekday: int = SUNDAY,
    start_hour: int = DEFAULT_START_HOUR,
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
) -> bool:
    """True when local time is on *weekday* at *start_hour*, minute 0..window_minutes."""

    local = local_time(now, tz)
    return (
        local.weekday() == weekday
        and local.hour == start_hour
        and 0 <= local.minute <= window_minutes
    )


def window_id(prefix: str, now: datetime, tz: TimeZoneLike = PT) -> str:
    """Canonical id for the window containing *now*: ``<prefix>-YYYY-MM-DD-HH00PT``.

    The minute is normalized to ``00`` so every tick inside one window maps
    to the same id.
    """

    local = local_time(now, tz)
    return f"{prefix}-{local.year:04d}-{local.month:02d}-{local.day:02d}-{local.hour:02d}00PT"


def should_run(current_marker: Optional[str], computed_window_id: str) -> bool:
    """Idempotency guard: run only if this window has not already fired."""
    return computed_window_id != current_marker


__all__ = [
    "DEFAULT_START_HOUR",
    "DEFAULT_WINDOW_MINUTES",
    "PT",
    "SUNDAY",
    "TimeZoneLike",
    "is_in_weekly_window",
    "local_time",
    "should_run",
    "window_id",
]
