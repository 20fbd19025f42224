import datetime as dt
import unittest
from unittest import mock
from zoneinfo import ZoneInfo

from astroview.models import MoonInfo, MoonPhase
from astroview.providers import astronomy
from astroview.providers.astronomy import AstralCalculator, illumination_percent

LONDON = (51.5072, -0.1276)


class TestSunEvents(unittest.TestCase):
    def setUp(self):
        self.calc = AstralCalculator(timezone="Europe/London")
        self.on = dt.datetime(2025, 3, 10, 12, 0, tzinfo=ZoneInfo("Europe/London"))

    def test_events_are_ordered_through_the_day(self):
        ev = self.calc.sun_events(*LONDON, self.on)
        ordered = [
            ev.astronomical_twilight_begin,
            ev.nautical_twilight_begin,
            ev.civil_twilight_begin,
            ev.sunrise,
            ev.sunset,
            ev.civil_twilight_end,
            ev.nautical_twilight_end,
            ev.astronomical_twilight_end,
        ]
        self.assertEqual(ordered, sorted(ordered))
        self.assertEqual(ev.sunrise.date(), dt.date(2025, 3, 10))

    def test_london_march_night_length(self):
        night = self.calc.sun_events(*LONDON, self.on).astronomical_night_duration()
        self.assertGreater(night, dt.timedelta(hours=7))
        self.assertLess(night, dt.timedelta(hours=11))

    def test_polar_day_falls_back_to_requested_instant(self):
        midsummer = dt.datetime(2025, 6, 21, 12, 0, tzinfo=dt.timezone.utc)
        calc = AstralCalculator(timezone="UTC")
        ev = calc.sun_events(78.22, 15.65, midsummer)
        self.assertEqual(ev.sunrise, midsummer)
        self.assertEqual(ev.astronomical_twilight_end, midsummer)
        self.assertEqual(ev.astronomical_night_duration(), dt.timedelta(0))


class TestMoonInfo(unittest.TestCase):
    def setUp(self):
        self.calc = AstralCalculator(timezone="UTC")

    def test_full_moon_is_bright(self):
        info = self.calc.moon_info(*LONDON, dt.datetime(2025, 3, 14, 6, 0, tzinfo=dt.timezone.utc))
        self.assertGreaterEqual(info.illumination, 90)
        self.assertIn(info.phase_name, (MoonPhase.WAXING_GIBBOUS, MoonPhase.FULL_MOON, MoonPhase.WANING_GIBBOUS))
        self.assertEqual(info.emoji, info.phase_name.emoji)

    def test_new_moon_is_dark(self):
        info = self.calc.moon_info(*LONDON, dt.datetime(2025, 3, 29, 12, 0, tzinfo=dt.timezone.utc))
        self.assertLessEqual(info.illumination, 10)
        self.assertGreaterEqual(info.altitude, -90.0)
        self.assertLessEqual(info.altitude, 90.0)

    def test_failure_returns_placeholder(self):
        with mock.patch.object(astronomy.moon, "phase", side_effect=ValueError("bad date")):
            info = self.calc.moon_info(*LONDON, dt.datetime(2025, 3, 14, tzinfo=dt.timezone.utc))
        self.assertEqual(info, MoonInfo.placeholder())

    def test_illumination_percent(self):
        self.assertEqual(illumination_percent(0.0), 0)
        self.assertEqual(illumination_percent(0.25), 50)
        self.assertEqual(illumination_percent(0.5), 100)
        self.assertEqual(illumination_percent(0.75), 50)


if __name__ == "__main__":
    unittest.main()
