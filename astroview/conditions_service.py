"""Fan out to weather, astronomy and satellite providers and assemble one snapshot."""
from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Tuple

from astroview.errors import ProviderFailure
from astroview.fog import score_current
from astroview.models import (
    HourlyForecast,
    Location,
    MoonInfo,
    SatellitePass,
    SunEvents,
    ViewingConditions,
)
from astroview.providers import AstronomyCalculator, ProviderSet, build_providers
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="conditions_service")

MAX_PARALLEL_PROVIDERS = 3


def _ordered_unique(hours: List[HourlyForecast]) -> List[HourlyForecast]:
    """Sort samples by time and drop repeated timestamps (first one wins)."""
    out: List[HourlyForecast] = []
    for hour in sorted(hours, key=lambda h: h.time):
        if out and hour.time == out[-1].time:
            continue
        out.append(hour)
    return out


def _fetch_weather(providers: ProviderSet, location: Location, day_horizon: int) -> List[HourlyForecast]:
    """Fetch the whole horizon in one call. Failures propagate: there is no fallback for weather."""
    try:
        hours = providers.weather.fetch_forecast(location.latitude, location.longitude, day_horizon)
    except ProviderFailure:
        raise
    except Exception as exc:
        raise ProviderFailure(f"Weather provider failed: {exc}", provider="weather") from exc
    logger.debug("Fetched weather", extra={"hours": len(hours)})
    return _ordered_unique(list(hours))


def _compute_day(
    astronomy: AstronomyCalculator,
    location: Location,
    day_offset: int,
    on: dt.datetime,
) -> Tuple[int, SunEvents, MoonInfo]:
    """Sun and moon for one day offset, degrading each to a placeholder on error."""
    try:
        sun_events = astronomy.sun_events(location.latitude, location.longitude, on)
    except Exception as exc:
        logger.warning("Sun events unavailable; using placeholder", extra={"day_offset": day_offset, "error": str(exc)})
        sun_events = SunEvents.placeholder(on)
    try:
        moon_info = astronomy.moon_info(location.latitude, location.longitude, on)
    except Exception as exc:
        logger.warning("Moon info unavailable; using placeholder", extra={"day_offset": day_offset, "error": str(exc)})
        moon_info = MoonInfo.placeholder()
    return day_offset, sun_events, moon_info


def _compute_astronomy(
    providers: ProviderSet,
    location: Location,
    day_horizon: int,
    now: dt.datetime,
) -> Tuple[List[SunEvents], List[MoonInfo]]:
    """Compute every day of the horizon and return both lists in day-offset order."""
    days = [
        _compute_day(providers.astronomy, location, offset, now + dt.timedelta(days=offset))
        for offset in range(day_horizon)
    ]
    days.sort(key=lambda d: d[0])
    return [d[1] for d in days], [d[2] for d in days]


def _fetch_passes(providers: ProviderSet, location: Location, day_horizon: int) -> List[SatellitePass]:
    """Satellite passes are optional: any failure yields an empty list."""
    if providers.satellites is None:
        return []
    try:
        passes = providers.satellites.fetch_passes(
            location.latitude,
            location.longitude,
            location.elevation or 0.0,
            day_horizon,
            providers.satellite_min_visibility,
        )
    except Exception as exc:
        logger.warning("Satellite pass lookup failed; continuing without passes", extra={"error": str(exc)})
        return []
    return sorted(passes, key=lambda p: p.rise_time)


def build_snapshot(
    location: Location | Any,
    day_horizon: int,
    *,
    providers: ProviderSet | None = None,
    now: dt.datetime | None = None,
) -> ViewingConditions:
    """
    Fetch and merge everything a snapshot needs for ``day_horizon`` days.

    The three provider paths run concurrently; assembly waits for all of them.
    Weather failures raise (``NetworkFailure``/``DecodeFailure``, or a wrapped
    ``ProviderFailure``). Astronomy failures become per-day placeholders and
    satellite failures an empty pass list. The ``providers`` argument lets
    callers inject fakes or alternate backends.
    """
    if day_horizon < 1:
        raise ValueError(f"day_horizon must be >= 1, got {day_horizon}")

    providers = providers or build_providers()
    location = Location.snapshot_of(location)
    now = now or dt.datetime.now(dt.timezone.utc)

    logger.info(
        "Building viewing conditions",
        extra={
            "location": location.name,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "day_horizon": day_horizon,
            "satellites": providers.satellites is not None,
        },
    )

    with ThreadPoolExecutor(max_workers=MAX_PARALLEL_PROVIDERS, thread_name_prefix="astroview-refresh") as pool:
        weather_future = pool.submit(_fetch_weather, providers, location, day_horizon)
        astronomy_future = pool.submit(_compute_astronomy, providers, location, day_horizon, now)
        passes_future = pool.submit(_fetch_passes, providers, location, day_horizon)
    # Leaving the executor block waits for all three calls.

    hours = weather_future.result()
    sun_events, moon_info = astronomy_future.result()
    passes = passes_future.result()

    conditions = ViewingConditions(
        fetched_at=now,
        location=location,
        hourly_forecasts=tuple(hours),
        daily_sun_events=tuple(sun_events),
        daily_moon_info=tuple(moon_info),
        satellite_passes=tuple(passes),
        fog_score=score_current(hours),
    )

    logger.info(
        "Built viewing conditions",
        extra={
            "hours": len(hours),
            "days": conditions.day_count,
            "passes": len(passes),
            "fog_percentage": conditions.fog_score.percentage,
        },
    )
    return conditions


def main():
    """Manual test helper: print a three-day snapshot for London."""
    location = Location(name="London", latitude=51.5, longitude=-0.12, elevation=11.0)
    conditions = build_snapshot(location, 3)
    print(f"fetched at: {conditions.fetched_at.isoformat()}  fog: {conditions.fog_score.percentage}%")
    for offset, (sun_events, moon_info) in enumerate(zip(conditions.daily_sun_events, conditions.daily_moon_info)):
        print(f"day {offset}\n"
              f"    sunrise: {sun_events.sunrise}  sunset: {sun_events.sunset}\n"
              f"    astronomical night: {sun_events.astronomical_night_duration()}\n"
              f"    moon: {moon_info.emoji} {moon_info.phase_name.value} {moon_info.illumination}%")
    for p in conditions.satellite_passes:
        print(f"pass: {p.rise_time} -> {p.set_time}  max elevation {p.max_elevation}°")


if __name__ == "__main__":
    main()
