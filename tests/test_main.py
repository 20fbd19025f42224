import unittest

from fastapi.testclient import TestClient

from astroview.main import app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Astro Viewing Conditions")
        paths = {route.path for route in app.routes}
        self.assertIn("/v1/conditions", paths)
        self.assertIn("/v1/conditions/cache", paths)

    def test_healthz(self):
        resp = TestClient(app).get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
