"""Domain vocabulary and strict schemas for viewing-conditions snapshots.

Every value a snapshot holds is a frozen pydantic model: the cached copy can be
handed to readers on other threads without copying, and JSON round-trips are
lossless. No provider or scoring logic lives here.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator, model_validator

COORDINATE_MATCH_DECIMALS = 4


class _FrozenModel(BaseModel):
    """Base model: immutable, unknown keys rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Location(_FrozenModel):
    """A named point on Earth, copied into snapshots at fetch time."""
    name: str = Field(min_length=1)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    elevation: Optional[float] = None  # meters

    @classmethod
    def snapshot_of(cls, source: Any) -> "Location":
        """Denormalize any location-store record exposing name/latitude/longitude/elevation."""
        return cls(
            name=source.name,
            latitude=source.latitude,
            longitude=source.longitude,
            elevation=getattr(source, "elevation", None),
        )

    def match_key(self) -> Tuple[str, float, float]:
        """Cache identity: display name plus coordinates rounded to ~10 m."""
        return (
            self.name,
            round(self.latitude, COORDINATE_MATCH_DECIMALS),
            round(self.longitude, COORDINATE_MATCH_DECIMALS),
        )

    def same_place(self, other: "Location") -> bool:
        """True when both locations share a cache identity."""
        return self.match_key() == other.match_key()


class HourlyForecast(_FrozenModel):
    """One hour of weather. Temperatures in °C, wind speed in km/h."""
    time: AwareDatetime
    cloud_cover: int = Field(ge=0, le=100)
    humidity: int = Field(ge=0, le=100)
    wind_speed: float = Field(ge=0.0)
    wind_direction: int = Field(ge=0, le=359)
    temperature: float
    dew_point: Optional[float] = None
    visibility: Optional[float] = Field(default=None, ge=0.0)  # meters
    low_cloud_cover: Optional[int] = Field(default=None, ge=0, le=100)


class SunEvents(_FrozenModel):
    """Sunrise/sunset and the three twilight pairs for one location-day."""
    sunrise: AwareDatetime
    sunset: AwareDatetime
    civil_twilight_begin: AwareDatetime
    civil_twilight_end: AwareDatetime
    nautical_twilight_begin: AwareDatetime
    nautical_twilight_end: AwareDatetime
    astronomical_twilight_begin: AwareDatetime
    astronomical_twilight_end: AwareDatetime

    @classmethod
    def placeholder(cls, on: dt.datetime) -> "SunEvents":
        """Neutral value used when the day cannot be computed: every event at ``on``."""
        return cls(**{name: on for name in cls.model_fields})

    @property
    def astronomical_night_start(self) -> dt.datetime:
        return self.astronomical_twilight_end

    @property
    def astronomical_night_end(self) -> dt.datetime:
        return self.astronomical_twilight_begin

    def astronomical_night_duration(self) -> dt.timedelta:
        """
        Length of full darkness, from evening twilight end to morning twilight begin.

        Both events belong to the same calendar day, so the morning time is
        earlier on the clock than the evening one; only hour and minute are
        compared and the end rolls over midnight when it falls before the start.
        """
        start = self.astronomical_night_start
        end = self.astronomical_night_end.astimezone(start.tzinfo)
        start_minutes = start.hour * 60 + start.minute
        end_minutes = end.hour * 60 + end.minute
        if end_minutes < start_minutes:
            end_minutes += 24 * 60
        return dt.timedelta(minutes=end_minutes - start_minutes)


class MoonPhase(str, Enum):
    """Named lunar phases. UNKNOWN only appears on placeholder values."""
    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"
    UNKNOWN = "Unknown"

    @classmethod
    def from_fraction(cls, phase: float) -> "MoonPhase":
        """Map a cycle fraction (0 = new, 0.5 = full) to a phase name."""
        degrees = (phase % 1.0) * 360.0
        if degrees <= 10 or degrees >= 350:
            return cls.NEW_MOON
        if degrees < 80:
            return cls.WAXING_CRESCENT
        if degrees <= 100:
            return cls.FIRST_QUARTER
        if degrees < 170:
            return cls.WAXING_GIBBOUS
        if degrees <= 190:
            return cls.FULL_MOON
        if degrees < 260:
            return cls.WANING_GIBBOUS
        if degrees <= 280:
            return cls.LAST_QUARTER
        return cls.WANING_CRESCENT

    @property
    def emoji(self) -> str:
        return _MOON_EMOJI[self]


_MOON_EMOJI = {
    MoonPhase.NEW_MOON: "🌑",
    MoonPhase.WAXING_CRESCENT: "🌒",
    MoonPhase.FIRST_QUARTER: "🌓",
    MoonPhase.WAXING_GIBBOUS: "🌔",
    MoonPhase.FULL_MOON: "🌕",
    MoonPhase.WANING_GIBBOUS: "🌖",
    MoonPhase.LAST_QUARTER: "🌗",
    MoonPhase.WANING_CRESCENT: "🌘",
    MoonPhase.UNKNOWN: "🌙",
}


class MoonInfo(_FrozenModel):
    """Moon phase, illumination and altitude for one location-day."""
    phase: float = Field(ge=0.0, le=1.0)
    phase_name: MoonPhase
    illumination: int = Field(ge=0, le=100)
    altitude: float  # degrees above horizon
    emoji: str

    @classmethod
    def placeholder(cls) -> "MoonInfo":
        """Neutral mid-cycle value used when the moon cannot be computed."""
        return cls(
            phase=0.5,
            phase_name=MoonPhase.UNKNOWN,
            illumination=0,
            altitude=0.0,
            emoji=MoonPhase.UNKNOWN.emoji,
        )


class SatellitePass(_FrozenModel):
    """A visible pass of a satellite over the location."""
    rise_time: AwareDatetime
    duration_seconds: float = Field(gt=0.0)
    max_elevation: float  # degrees

    @property
    def set_time(self) -> dt.datetime:
        return self.rise_time + dt.timedelta(seconds=self.duration_seconds)


ISSPass = SatellitePass


class FogFactor(str, Enum):
    """Conditions that contribute to a fog risk score."""
    HIGH_HUMIDITY = "high_humidity"
    LOW_TEMP_DEW_GAP = "low_temp_dew_gap"
    LOW_VISIBILITY = "low_visibility"
    HIGH_LOW_CLOUD = "high_low_cloud"

    @property
    def label(self) -> str:
        return _FOG_FACTOR_LABELS[self]


_FOG_FACTOR_LABELS = {
    FogFactor.HIGH_HUMIDITY: "High Humidity (>95%)",
    FogFactor.LOW_TEMP_DEW_GAP: "Low Temp/Dew Point Difference",
    FogFactor.LOW_VISIBILITY: "Low Visibility (<1km)",
    FogFactor.HIGH_LOW_CLOUD: "High Low-Level Clouds",
}


class FogScore(_FrozenModel):
    """Fog risk percentage (0-100) and the factors behind it."""
    percentage: int
    factors: Tuple[FogFactor, ...] = ()

    @field_validator("percentage", mode="before")
    @classmethod
    def clamp_percentage(cls, v: Any) -> Any:
        """Clamp numeric input into 0-100; anything else is left to validation."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return min(max(int(v), 0), 100)
        return v


class ViewingConditions(_FrozenModel):
    """
    One immutable snapshot for a location across the day horizon.

    ``daily_sun_events[i]`` and ``daily_moon_info[i]`` describe day offset ``i``
    (0 = the fetch day). ``fog_score`` describes the nearest-term hour.
    """
    fetched_at: AwareDatetime
    location: Location
    hourly_forecasts: Tuple[HourlyForecast, ...]
    daily_sun_events: Tuple[SunEvents, ...]
    daily_moon_info: Tuple[MoonInfo, ...]
    satellite_passes: Tuple[SatellitePass, ...]
    fog_score: FogScore

    @model_validator(mode="after")
    def check_alignment(self) -> "ViewingConditions":
        """Daily sequences must line up and hourly samples must be strictly ascending."""
        if len(self.daily_sun_events) != len(self.daily_moon_info):
            raise ValueError(
                f"daily_sun_events ({len(self.daily_sun_events)}) and "
                f"daily_moon_info ({len(self.daily_moon_info)}) must cover the same days"
            )
        times = [hour.time for hour in self.hourly_forecasts]
        for earlier, later in zip(times, times[1:]):
            if later <= earlier:
                raise ValueError(f"hourly_forecasts out of order at {later.isoformat()}")
        return self

    @property
    def day_count(self) -> int:
        return len(self.daily_sun_events)

    def age(self, now: dt.datetime) -> dt.timedelta:
        """Time elapsed since the snapshot was fetched."""
        return now - self.fetched_at

    def sun_events_for(self, day_offset: int) -> Optional[SunEvents]:
        if 0 <= day_offset < self.day_count:
            return self.daily_sun_events[day_offset]
        return None

    def moon_info_for(self, day_offset: int) -> Optional[MoonInfo]:
        if 0 <= day_offset < self.day_count:
            return self.daily_moon_info[day_offset]
        return None
