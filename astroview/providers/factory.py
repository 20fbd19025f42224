"""Factory helpers for choosing providers at startup."""

from __future__ import annotations

from astroview import config
from astroview.providers.astronomy import AstralCalculator
from astroview.providers.base import CallableWeatherProvider, ProviderSet
from astroview.providers.n2yo_client import N2YOSatellitePassProvider
from astroview.providers.open_meteo_client import fetch_hourly_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/factory")


def build_providers(settings: config.Settings | None = None) -> ProviderSet:
    """Instantiate the configured providers.

    The satellite provider is only constructed when an N2YO key is set; with
    no key, passes are skipped rather than treated as an error.
    """
    settings = settings or config.settings

    weather = CallableWeatherProvider(forecast=fetch_hourly_forecast, timezone=settings.timezone)
    astronomy = AstralCalculator(timezone=settings.timezone)

    satellites = None
    if settings.n2yo_api_key:
        logger.info("Satellite passes enabled (N2YO)")
        satellites = N2YOSatellitePassProvider(api_key=settings.n2yo_api_key)
    else:
        logger.info("No N2YO API key configured; satellite passes disabled")

    return ProviderSet(
        weather=weather,
        astronomy=astronomy,
        satellites=satellites,
        satellite_min_visibility=settings.satellite_min_visibility_seconds,
    )
