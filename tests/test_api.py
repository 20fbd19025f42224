import datetime as dt
import unittest

from fastapi.testclient import TestClient

from astroview.cache_manager import ConditionsCacheManager
from astroview.errors import NetworkFailure
from astroview.main import app as fastapi_app
from astroview.models import HourlyForecast, MoonInfo, SunEvents
from astroview.providers import ProviderSet
from astroview.snapshot_store import InMemorySnapshotStore

T0 = dt.datetime(2025, 3, 10, 9, 0, tzinfo=dt.timezone.utc)
LONDON_QUERY = {"name": "London", "latitude": 51.5, "longitude": -0.12}


class FakeWeather:
    def __init__(self):
        self.calls = 0
        self.error = None

    def fetch_forecast(self, latitude, longitude, day_count):
        self.calls += 1
        if self.error is not None:
            raise self.error
        start = dt.datetime(2025, 3, 10, 0, 0, tzinfo=dt.timezone.utc)
        return [
            HourlyForecast(time=start + dt.timedelta(hours=i), cloud_cover=30, humidity=97,
                           wind_speed=2.0, wind_direction=45, temperature=4.0, dew_point=3.6)
            for i in range(24 * day_count)
        ]


class FakeAstronomy:
    def sun_events(self, latitude, longitude, on):
        day = on.replace(hour=0, minute=0, second=0, microsecond=0)
        return SunEvents(
            sunrise=day.replace(hour=6, minute=22),
            sunset=day.replace(hour=17, minute=58),
            civil_twilight_begin=day.replace(hour=5, minute=52),
            civil_twilight_end=day.replace(hour=18, minute=28),
            nautical_twilight_begin=day.replace(hour=5, minute=14),
            nautical_twilight_end=day.replace(hour=19, minute=6),
            astronomical_twilight_begin=day.replace(hour=4, minute=34),
            astronomical_twilight_end=day.replace(hour=19, minute=46),
        )

    def moon_info(self, latitude, longitude, on):
        return MoonInfo.placeholder()


class TestApi(unittest.TestCase):
    def setUp(self):
        import astroview.api as api_mod
        from astroview.config import settings

        self.api_mod = api_mod
        self._orig_api_key = settings.api_key
        self.now = T0
        self.weather = FakeWeather()
        self.manager = ConditionsCacheManager(
            InMemorySnapshotStore(),
            ProviderSet(weather=self.weather, astronomy=FakeAstronomy()),
            day_horizon=3,
            clock=lambda: self.now,
        )
        fastapi_app.dependency_overrides[api_mod.get_cache_manager] = lambda: self.manager
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        from astroview.config import settings

        fastapi_app.dependency_overrides.clear()
        settings.api_key = self._orig_api_key

    def test_get_conditions_today(self):
        resp = self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["state"], "fresh")
        self.assertIsNone(data["error"])
        self.assertEqual(data["conditions"]["location"]["name"], "London")
        self.assertEqual(len(data["conditions"]["hourly_forecasts"]), 72)
        self.assertEqual(data["day"]["title"], "Today")
        self.assertEqual(len(data["day"]["hourly"]), 24)
        self.assertTrue(data["day"]["current_hour"]["time"].startswith("2025-03-10T09:00"))
        self.assertEqual(data["day"]["fog_score"]["percentage"], 60)
        self.assertEqual(data["day"]["astronomical_night_minutes"], 528.0)

    def test_second_request_served_from_cache(self):
        self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.now = T0 + dt.timedelta(hours=2)
        resp = self.client.get("/v1/conditions", params={**LONDON_QUERY, "day_offset": 1})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.weather.calls, 1)
        day = resp.json()["day"]
        self.assertEqual(day["title"], "Tomorrow")
        self.assertTrue(day["current_hour"]["time"].startswith("2025-03-11T00:00"))

    def test_offset_beyond_horizon_is_empty_day(self):
        resp = self.client.get("/v1/conditions", params={**LONDON_QUERY, "day_offset": 5})
        self.assertEqual(resp.status_code, 200)
        day = resp.json()["day"]
        self.assertEqual(day["hourly"], [])
        self.assertIsNone(day["sun_events"])

    def test_negative_offset_rejected(self):
        resp = self.client.get("/v1/conditions", params={**LONDON_QUERY, "day_offset": -1})
        self.assertEqual(resp.status_code, 422)

    def test_weather_failure_without_snapshot_is_502(self):
        self.weather.error = NetworkFailure("offline", provider="open_meteo")
        resp = self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.assertEqual(resp.status_code, 502)

    def test_weather_failure_serves_last_good_value(self):
        self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.now = T0 + dt.timedelta(hours=7)
        self.weather.error = NetworkFailure("offline", provider="open_meteo")

        resp = self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["state"], "stale")
        self.assertTrue(data["stale_for_display"])
        self.assertIn("offline", data["error"])

    def test_failure_for_other_place_is_502(self):
        self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.weather.error = NetworkFailure("offline", provider="open_meteo")
        resp = self.client.get("/v1/conditions", params={"name": "Paris", "latitude": 48.8566, "longitude": 2.3522})
        self.assertEqual(resp.status_code, 502)

    def test_forced_refresh(self):
        self.client.get("/v1/conditions", params=LONDON_QUERY)
        resp = self.client.post("/v1/conditions/refresh", params=LONDON_QUERY)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.weather.calls, 2)

    def test_clear_cache(self):
        self.client.get("/v1/conditions", params=LONDON_QUERY)
        resp = self.client.delete("/v1/conditions/cache")
        self.assertEqual(resp.status_code, 204)
        self.assertIsNone(self.manager.snapshot)

    def test_requires_api_key_when_set(self):
        from astroview.config import settings

        settings.api_key = "sekret"
        missing = self.client.get("/v1/conditions", params=LONDON_QUERY)
        self.assertEqual(missing.status_code, 401)

        wrong = self.client.get("/v1/conditions", params=LONDON_QUERY, headers={"X-API-Key": "nope"})
        self.assertEqual(wrong.status_code, 401)

        ok = self.client.get("/v1/conditions", params=LONDON_QUERY, headers={"X-API-Key": "sekret"})
        self.assertEqual(ok.status_code, 200)


if __name__ == "__main__":
    unittest.main()
