import datetime as dt
import unittest
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from astroview.models import (
    FogFactor,
    FogScore,
    HourlyForecast,
    Location,
    MoonInfo,
    MoonPhase,
    SatellitePass,
    SunEvents,
    ViewingConditions,
)
from astroview.snapshot_store import decode_snapshot, encode_snapshot

TZ = ZoneInfo("Europe/London")
DAY = dt.datetime(2025, 3, 10, 0, 0, tzinfo=TZ)


def _sun(day: dt.datetime) -> SunEvents:
    return SunEvents(
        sunrise=day.replace(hour=6, minute=20),
        sunset=day.replace(hour=18, minute=5),
        civil_twilight_begin=day.replace(hour=5, minute=50),
        civil_twilight_end=day.replace(hour=18, minute=37),
        nautical_twilight_begin=day.replace(hour=5, minute=12),
        nautical_twilight_end=day.replace(hour=19, minute=14),
        astronomical_twilight_begin=day.replace(hour=4, minute=33),
        astronomical_twilight_end=day.replace(hour=19, minute=54),
    )


def _moon() -> MoonInfo:
    return MoonInfo(phase=0.37, phase_name=MoonPhase.WAXING_GIBBOUS, illumination=82,
                    altitude=23.5, emoji=MoonPhase.WAXING_GIBBOUS.emoji)


def _snapshot(**overrides) -> ViewingConditions:
    hours = (
        HourlyForecast(time=DAY, cloud_cover=40, humidity=97, wind_speed=4.2, wind_direction=250,
                       temperature=6.1, dew_point=5.9, visibility=850.0, low_cloud_cover=90),
        HourlyForecast(time=DAY + dt.timedelta(hours=1), cloud_cover=35, humidity=80, wind_speed=3.0,
                       wind_direction=240, temperature=5.4),
    )
    fields = dict(
        fetched_at=dt.datetime(2025, 3, 10, 9, 0, tzinfo=dt.timezone.utc),
        location=Location(name="London", latitude=51.5, longitude=-0.12, elevation=11.0),
        hourly_forecasts=hours,
        daily_sun_events=(_sun(DAY),),
        daily_moon_info=(_moon(),),
        satellite_passes=(
            SatellitePass(rise_time=dt.datetime(2025, 3, 10, 19, 2, 31, tzinfo=dt.timezone.utc),
                          duration_seconds=415.0, max_elevation=62.3),
        ),
        fog_score=FogScore(percentage=100, factors=tuple(FogFactor)),
    )
    fields.update(overrides)
    return ViewingConditions(**fields)


class TestLocation(unittest.TestCase):
    def test_coordinate_bounds(self):
        with self.assertRaises(ValidationError):
            Location(name="Nowhere", latitude=91.0, longitude=0.0)
        with self.assertRaises(ValidationError):
            Location(name="Nowhere", latitude=0.0, longitude=-180.5)

    def test_frozen(self):
        loc = Location(name="London", latitude=51.5, longitude=-0.12)
        with self.assertRaises(ValidationError):
            loc.name = "Paris"

    def test_snapshot_of_copies_store_record(self):
        class SavedLocation:
            name = "Greenwich"
            latitude = 51.4769
            longitude = -0.0005
            elevation = 46.0
            is_favorite = True

        copied = Location.snapshot_of(SavedLocation())
        self.assertEqual(copied, Location(name="Greenwich", latitude=51.4769, longitude=-0.0005, elevation=46.0))

    def test_same_place_uses_name_and_rounded_coordinates(self):
        a = Location(name="Home", latitude=51.50001, longitude=-0.12001)
        self.assertTrue(a.same_place(Location(name="Home", latitude=51.5, longitude=-0.12)))
        self.assertFalse(a.same_place(Location(name="Home", latitude=48.85, longitude=2.35)))
        self.assertFalse(a.same_place(Location(name="Office", latitude=51.5, longitude=-0.12)))


class TestSunEvents(unittest.TestCase):
    def test_astronomical_night_rolls_past_midnight(self):
        self.assertEqual(_sun(DAY).astronomical_night_duration(), dt.timedelta(hours=8, minutes=39))

    def test_placeholder_has_zero_night(self):
        placeholder = SunEvents.placeholder(DAY)
        self.assertEqual(placeholder.sunrise, DAY)
        self.assertEqual(placeholder.astronomical_night_duration(), dt.timedelta(0))


class TestMoon(unittest.TestCase):
    def test_phase_names_cover_cycle(self):
        self.assertIs(MoonPhase.from_fraction(0.0), MoonPhase.NEW_MOON)
        self.assertIs(MoonPhase.from_fraction(0.99), MoonPhase.NEW_MOON)
        self.assertIs(MoonPhase.from_fraction(0.1), MoonPhase.WAXING_CRESCENT)
        self.assertIs(MoonPhase.from_fraction(0.25), MoonPhase.FIRST_QUARTER)
        self.assertIs(MoonPhase.from_fraction(0.4), MoonPhase.WAXING_GIBBOUS)
        self.assertIs(MoonPhase.from_fraction(0.5), MoonPhase.FULL_MOON)
        self.assertIs(MoonPhase.from_fraction(0.6), MoonPhase.WANING_GIBBOUS)
        self.assertIs(MoonPhase.from_fraction(0.75), MoonPhase.LAST_QUARTER)
        self.assertIs(MoonPhase.from_fraction(0.9), MoonPhase.WANING_CRESCENT)

    def test_placeholder_is_mid_cycle(self):
        placeholder = MoonInfo.placeholder()
        self.assertEqual(placeholder.phase, 0.5)
        self.assertIs(placeholder.phase_name, MoonPhase.UNKNOWN)
        self.assertEqual(placeholder.emoji, "🌙")


class TestSatellitePass(unittest.TestCase):
    def test_set_time(self):
        rise = dt.datetime(2025, 3, 10, 19, 0, tzinfo=dt.timezone.utc)
        p = SatellitePass(rise_time=rise, duration_seconds=300, max_elevation=45.0)
        self.assertEqual(p.set_time, rise + dt.timedelta(minutes=5))

    def test_duration_must_be_positive(self):
        with self.assertRaises(ValidationError):
            SatellitePass(rise_time=DAY, duration_seconds=0, max_elevation=10.0)


class TestViewingConditions(unittest.TestCase):
    def test_round_trip_is_lossless(self):
        original = _snapshot()
        restored = decode_snapshot(encode_snapshot(original))
        self.assertEqual(restored, original)
        self.assertIsNone(restored.hourly_forecasts[1].dew_point)
        self.assertEqual(restored.hourly_forecasts[0].low_cloud_cover, 90)
        self.assertEqual(restored.location.elevation, 11.0)

    def test_daily_sequences_must_align(self):
        with self.assertRaises(ValidationError):
            _snapshot(daily_moon_info=(_moon(), _moon()))

    def test_hourly_must_ascend(self):
        hour = HourlyForecast(time=DAY, cloud_cover=0, humidity=50, wind_speed=0.0,
                              wind_direction=0, temperature=5.0)
        with self.assertRaises(ValidationError):
            _snapshot(hourly_forecasts=(hour, hour))

    def test_naive_timestamps_rejected(self):
        with self.assertRaises(ValidationError):
            HourlyForecast(time=dt.datetime(2025, 3, 10), cloud_cover=0, humidity=50,
                           wind_speed=0.0, wind_direction=0, temperature=5.0)

    def test_day_accessors(self):
        snap = _snapshot()
        self.assertEqual(snap.day_count, 1)
        self.assertIsNotNone(snap.sun_events_for(0))
        self.assertIsNone(snap.moon_info_for(1))


if __name__ == "__main__":
    unittest.main()
