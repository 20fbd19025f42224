"""Fetch hourly weather for fog and cloud scoring from the Open-Meteo forecast API."""
from __future__ import annotations

import datetime as dt
from typing import List
from zoneinfo import ZoneInfo

import requests

from astroview.config import settings
from astroview.errors import DecodeFailure, NetworkFailure
from astroview.models import HourlyForecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/open_meteo")

# One attempt per refresh cycle; no retry adapter or HTTP cache on this session.
session = requests.Session()

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
PROVIDER_NAME = "open_meteo"

HOURLY_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "dew_point_2m",
    "cloud_cover",
    "cloud_cover_low",
    "visibility",
    "wind_speed_10m",
    "wind_direction_10m",
]

EXPECTED_UNITS = {
    "temperature_2m": "°C",
    "relative_humidity_2m": "%",
    "dew_point_2m": "°C",
    "cloud_cover": "%",
    "cloud_cover_low": "%",
    "visibility": "m",
    "wind_speed_10m": "km/h",
    "wind_direction_10m": "°",
}

# Alternative spellings seen from the API that mean the same unit.
ALLOWED_UNIT_SYNONYMS = {
    "relative_humidity_2m": {"%", "percent"},
    "cloud_cover": {"%", "percent"},
    "cloud_cover_low": {"%", "percent"},
    "visibility": {"m", "meters"},
    "wind_direction_10m": {"°", "deg", "degrees"},
}


def _epoch_to_local(ts: int | float, tz_name: str) -> dt.datetime:
    """Turn a ``timeformat=unixtime`` stamp into local time with a fixed UTC offset.

    The offset is pinned per sample, so the repeated hour of a DST fall-back
    day stays two distinct instants and survives a JSON round trip.
    """
    local = dt.datetime.fromtimestamp(int(ts), tz=ZoneInfo(tz_name))
    return local.replace(tzinfo=dt.timezone(local.utcoffset()), fold=0)


def _warn_on_unexpected_units(units: dict, *, context: str) -> None:
    """Log a warning if Open-Meteo returns units we did not request."""
    if not units:
        return
    for field, expected in EXPECTED_UNITS.items():
        actual = units.get(field)
        if not actual or actual == expected:
            continue
        allowed = ALLOWED_UNIT_SYNONYMS.get(field, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def _as_percent(value) -> int:
    """Round a percentage and keep it within 0-100."""
    return min(max(int(round(value)), 0), 100)


def _optional_percent(value):
    return None if value is None else _as_percent(value)


def parse_hourly_payload(data: dict, *, timezone: str) -> List[HourlyForecast]:
    """Convert an Open-Meteo ``hourly`` payload into HourlyForecast objects.

    Raises DecodeFailure when required series are missing or malformed.
    """
    try:
        hourly = data["hourly"]
        tz_name = data.get("timezone") or timezone
        _warn_on_unexpected_units(data.get("hourly_units") or {}, context="weather_hourly")
        times = hourly["time"]
        temp = hourly["temperature_2m"]
        humidity = hourly["relative_humidity_2m"]
        cloud = hourly["cloud_cover"]
        wind_speed = hourly["wind_speed_10m"]
        wind_dir = hourly["wind_direction_10m"]
        dew_point = hourly.get("dew_point_2m") or [None] * len(times)
        low_cloud = hourly.get("cloud_cover_low") or [None] * len(times)
        visibility = hourly.get("visibility") or [None] * len(times)

        out: List[HourlyForecast] = []
        for i, t in enumerate(times):
            if temp[i] is None or humidity[i] is None:
                # Open-Meteo pads the tail of short models with nulls.
                logger.debug("Skipping hour with missing core fields", extra={"time": t})
                continue
            out.append(
                HourlyForecast(
                    time=_epoch_to_local(t, tz_name),
                    cloud_cover=_as_percent(cloud[i] or 0),
                    humidity=_as_percent(humidity[i]),
                    wind_speed=max(float(wind_speed[i] or 0.0), 0.0),
                    wind_direction=int(round(wind_dir[i] or 0)) % 360,
                    temperature=float(temp[i]),
                    dew_point=dew_point[i],
                    visibility=visibility[i],
                    low_cloud_cover=_optional_percent(low_cloud[i]),
                )
            )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        # pydantic.ValidationError is a ValueError subclass.
        raise DecodeFailure(f"Unexpected Open-Meteo payload: {exc}", provider=PROVIDER_NAME) from exc
    return out


def fetch_hourly_forecast(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 3,
    timezone: str = "UTC",
) -> List[HourlyForecast]:
    """Fetch ``forecast_days`` of hourly weather starting at local midnight today."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "forecast_days": forecast_days,
        "timezone": timezone,
        "temperature_unit": "celsius",
        "wind_speed_unit": "kmh",
        "timeformat": "unixtime",
    }
    logger.debug("Requesting Open-Meteo forecast", extra={"params": params})

    try:
        resp = session.get(OPEN_METEO_WEATHER_URL, params=params, timeout=settings.http_timeout_seconds)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise NetworkFailure(f"Open-Meteo request failed: {exc}", provider=PROVIDER_NAME) from exc

    try:
        data = resp.json()
    except ValueError as exc:
        raise DecodeFailure("Open-Meteo returned a non-JSON body", provider=PROVIDER_NAME) from exc

    hours = parse_hourly_payload(data, timezone=timezone)
    logger.info("Fetched Open-Meteo forecast", extra={"hours": len(hours), "forecast_days": forecast_days})
    return hours
