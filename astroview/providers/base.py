"""Interfaces and helpers for the three provider categories."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from astroview.models import HourlyForecast, MoonInfo, SatellitePass, SunEvents


class WeatherProvider(Protocol):
    """Anything that can return an hourly forecast for a coordinate."""

    def fetch_forecast(self, latitude: float, longitude: float, day_count: int) -> List[HourlyForecast]:
        """Return ascending hourly samples covering ``day_count`` days.

        Raises NetworkFailure or DecodeFailure.
        """
        ...


class AstronomyCalculator(Protocol):
    """Local sun/moon geometry. Implementations never raise."""

    def sun_events(self, latitude: float, longitude: float, on: dt.datetime) -> SunEvents:
        """Return the sun events of the calendar day containing ``on``."""
        ...

    def moon_info(self, latitude: float, longitude: float, on: dt.datetime) -> MoonInfo:
        """Return moon phase and altitude at ``on``."""
        ...


class SatellitePassProvider(Protocol):
    """Visible-pass lookups; constructed only when a credential exists."""

    def fetch_passes(
        self,
        latitude: float,
        longitude: float,
        elevation: float,
        day_count: int,
        min_visibility: int,
    ) -> List[SatellitePass]:
        """Return visible passes over the next ``day_count`` days."""
        ...


@dataclass
class CallableWeatherProvider(WeatherProvider):
    """Wrap a forecast function so backends can be swapped without subclassing."""

    forecast: Callable[..., List[HourlyForecast]]
    timezone: str = "UTC"

    def fetch_forecast(self, latitude: float, longitude: float, day_count: int) -> List[HourlyForecast]:
        """Delegate to the configured forecast callable."""
        return self.forecast(latitude, longitude, forecast_days=day_count, timezone=self.timezone)


@dataclass
class ProviderSet:
    """The providers one refresh cycle fans out to."""

    weather: WeatherProvider
    astronomy: AstronomyCalculator
    satellites: Optional[SatellitePassProvider] = None
    satellite_min_visibility: int = 60
