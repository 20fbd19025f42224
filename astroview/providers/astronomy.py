"""Sun and moon geometry computed locally with astral."""
from __future__ import annotations

import datetime as dt
import math
from typing import Callable
from zoneinfo import ZoneInfo

from astral import Depression, Observer, moon, sun

from astroview.models import MoonInfo, MoonPhase, SunEvents
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="providers/astronomy")

ASTRAL_PHASE_PERIOD = 28.0  # astral.moon.phase returns 0 <= phase < 28


class AstralCalculator:
    """AstronomyCalculator backed by astral.

    Events astral cannot produce (e.g. no astronomical darkness near the
    summer solstice at high latitudes) fall back to the requested instant
    instead of raising.
    """

    def __init__(self, timezone: str = "UTC") -> None:
        self.tz = ZoneInfo(timezone)

    def _event(self, name: str, compute: Callable[[], dt.datetime], fallback: dt.datetime) -> dt.datetime:
        """Run one astral computation, substituting ``fallback`` when it fails."""
        try:
            return compute()
        except Exception as exc:
            logger.debug("Sun event unavailable; using placeholder", extra={"event": name, "error": str(exc)})
            return fallback

    def sun_events(self, latitude: float, longitude: float, on: dt.datetime) -> SunEvents:
        """Sunrise/sunset and civil, nautical, astronomical twilight for the day of ``on``."""
        observer = Observer(latitude=latitude, longitude=longitude)
        local = on.astimezone(self.tz)
        day = local.date()
        tz = self.tz

        def twilight(kind, depression):
            return lambda: kind(observer, day, depression=depression, tzinfo=tz)

        return SunEvents(
            sunrise=self._event("sunrise", lambda: sun.sunrise(observer, day, tzinfo=tz), local),
            sunset=self._event("sunset", lambda: sun.sunset(observer, day, tzinfo=tz), local),
            civil_twilight_begin=self._event("civil_dawn", twilight(sun.dawn, Depression.CIVIL), local),
            civil_twilight_end=self._event("civil_dusk", twilight(sun.dusk, Depression.CIVIL), local),
            nautical_twilight_begin=self._event("nautical_dawn", twilight(sun.dawn, Depression.NAUTICAL), local),
            nautical_twilight_end=self._event("nautical_dusk", twilight(sun.dusk, Depression.NAUTICAL), local),
            astronomical_twilight_begin=self._event(
                "astronomical_dawn", twilight(sun.dawn, Depression.ASTRONOMICAL), local
            ),
            astronomical_twilight_end=self._event(
                "astronomical_dusk", twilight(sun.dusk, Depression.ASTRONOMICAL), local
            ),
        )

    def moon_info(self, latitude: float, longitude: float, on: dt.datetime) -> MoonInfo:
        """Phase, illumination and altitude of the moon at ``on``."""
        try:
            local = on.astimezone(self.tz)
            fraction = (moon.phase(local.date()) / ASTRAL_PHASE_PERIOD) % 1.0
            altitude = moon.elevation(
                Observer(latitude=latitude, longitude=longitude), on.astimezone(dt.timezone.utc)
            )
        except Exception as exc:
            logger.warning("Moon computation failed; using placeholder", extra={"error": str(exc)})
            return MoonInfo.placeholder()

        name = MoonPhase.from_fraction(fraction)
        return MoonInfo(
            phase=round(fraction, 4),
            phase_name=name,
            illumination=illumination_percent(fraction),
            altitude=round(float(altitude), 2),
            emoji=name.emoji,
        )


def illumination_percent(fraction: float) -> int:
    """Illuminated share of the disc for a cycle fraction (0 = new, 0.5 = full)."""
    lit = (1.0 - math.cos(2.0 * math.pi * fraction)) / 2.0
    return min(max(int(round(lit * 100)), 0), 100)
