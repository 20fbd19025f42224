"""Slice an hourly series down to one calendar day and find the current hour."""
from __future__ import annotations

import datetime as dt
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from astroview.fog import score_fog
from astroview.models import FogScore, HourlyForecast


class DaySelection(IntEnum):
    """Day offsets offered to readers of a three-day snapshot."""
    TODAY = 0
    TOMORROW = 1
    DAY_AFTER = 2

    def title(self, now: dt.datetime | None = None) -> str:
        """Human label: "Today", "Tomorrow", or a short date for later days."""
        if self is DaySelection.TODAY:
            return "Today"
        if self is DaySelection.TOMORROW:
            return "Tomorrow"
        now = now or dt.datetime.now(dt.timezone.utc)
        day = now + dt.timedelta(days=int(self))
        return f"{day:%b} {day.day}"


def _resolve_now(now: dt.datetime | None, tz: dt.tzinfo | str | None) -> dt.datetime:
    """Return ``now`` as an aware datetime in ``tz`` (UTC when neither is given)."""
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    if now is None:
        return dt.datetime.now(tz or dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz or dt.timezone.utc)
    return now.astimezone(tz) if tz else now


def day_bounds(
    day_offset: int,
    *,
    now: dt.datetime | None = None,
    tz: dt.tzinfo | str | None = None,
) -> Tuple[dt.datetime, dt.datetime]:
    """Return ``[start_of_today + day_offset days, +1 day)`` in the local calendar."""
    if day_offset < 0:
        raise ValueError(f"day_offset must be >= 0, got {day_offset}")
    local_now = _resolve_now(now, tz)
    start_of_today = dt.datetime.combine(local_now.date(), dt.time(0, 0), tzinfo=local_now.tzinfo)
    start = start_of_today + dt.timedelta(days=day_offset)
    return start, start + dt.timedelta(days=1)


def select_day(
    hours: Sequence[HourlyForecast],
    day_offset: int,
    *,
    now: dt.datetime | None = None,
    tz: dt.tzinfo | str | None = None,
) -> List[HourlyForecast]:
    """Return the samples of ``hours`` that fall on the selected day, in order.

    An offset beyond the fetched horizon simply yields an empty list.
    """
    start, end = day_bounds(day_offset, now=now, tz=tz)
    return [h for h in hours if start <= h.time < end]


def current_hour_sample(
    hours: Sequence[HourlyForecast],
    day_offset: int,
    *,
    now: dt.datetime | None = None,
    tz: dt.tzinfo | str | None = None,
) -> Optional[HourlyForecast]:
    """
    Pick the sample describing "now" within the selected day.

    For today that is the entry whose local hour matches the current hour;
    for future days, or when no hour matches, it is the first entry of the
    day. Returns None when the day has no samples.
    """
    local_now = _resolve_now(now, tz)
    day = select_day(hours, day_offset, now=local_now)
    if not day:
        return None
    if day_offset == 0:
        for hour in day:
            local_time = hour.time.astimezone(local_now.tzinfo)
            if local_time.date() == local_now.date() and local_time.hour == local_now.hour:
                return hour
    return day[0]


def fog_score_for_day(
    hours: Sequence[HourlyForecast],
    day_offset: int,
    *,
    now: dt.datetime | None = None,
    tz: dt.tzinfo | str | None = None,
) -> Optional[FogScore]:
    """Fog score of the current-hour sample for the selected day, if any."""
    sample = current_hour_sample(hours, day_offset, now=now, tz=tz)
    return score_fog(sample) if sample else None
