"""Provider adapters: weather, astronomy and satellite passes."""

from .astronomy import AstralCalculator
from .base import (
    AstronomyCalculator,
    CallableWeatherProvider,
    ProviderSet,
    SatellitePassProvider,
    WeatherProvider,
)
from .factory import build_providers
from .n2yo_client import N2YOSatellitePassProvider, fetch_visual_passes
from .open_meteo_client import fetch_hourly_forecast

__all__ = [
    "build_providers",
    "AstralCalculator",
    "AstronomyCalculator",
    "CallableWeatherProvider",
    "ProviderSet",
    "SatellitePassProvider",
    "WeatherProvider",
    "N2YOSatellitePassProvider",
    "fetch_visual_passes",
    "fetch_hourly_forecast",
]
