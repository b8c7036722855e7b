"""Tests for cr0n.server module."""
import unittest

from fastapi.testclient import TestClient

from cr0n.config import Config
from cr0n.federation.registry import ProviderRegistry
from cr0n.server import app

PAGES = [
    {"url": "https://example.com/widgets", "primary_keyword": "widgets", "impressions": 2000, "ctr": 0.01, "position": 6},
    {"url": "https://example.com/home", "primary_keyword": "home", "impressions": 9000, "ctr": 0.3, "position": 1},
]


class TestServer(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)
        self.client.__enter__()
        app.state.config = Config({})
        app.state.registry = ProviderRegistry()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy", "service": "cr0n"})

    def test_models(self):
        payload = self.client.get("/api/models").json()
        self.assertEqual(payload["available"], 0)
        self.assertEqual(len(payload["models"]), 4)

    def test_weight_defaults(self):
        payload = self.client.get("/api/weights/defaults").json()
        self.assertAlmostEqual(sum(payload["weights"].values()), 1.0)
        self.assertIn("LOCAL_BOOST", payload["model_weights"])

    def test_analyze(self):
        response = self.client.post("/api/analyze", json={"pages": PAGES, "site_id": "acme"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["plan"]["site_id"], "acme")
        self.assertEqual(len(payload["plan"]["tasks"]), 1)

    def test_analyze_requires_pages(self):
        response = self.client.post("/api/analyze", json={"site_id": "acme"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "pages required"})

    def test_cycle(self):
        body = {
            "pages": PAGES,
            "actions": [
                {
                    "id": "act-1",
                    "url": "https://example.com/widgets",
                    "action_type": "CTR_FIX",
                    "action_date": "2000-01-01",
                    "original_ctr": 0.005,
                }
            ],
            "weights": {"ctr_gap": 0.3},
            "learning_cycles": 4,
        }
        response = self.client.post("/api/cycle", json=body)
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["ok"])
        self.assertEqual(payload["learning_cycles"], 4)
        self.assertEqual(payload["weights"]["ctr_gap"], 0.3)
        self.assertEqual(payload["actions"][0]["id"], "act-1")
        self.assertEqual(payload["evaluations"]["stats"]["total"], 0)

    def test_cycle_rejects_malformed_actions(self):
        body = {
            "pages": PAGES,
            "actions": [{"url": "https://example.com/widgets", "action_type": "CTR_FIX", "original_clicks": "lots"}],
        }
        response = self.client.post("/api/cycle", json=body)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "invalid actions"})

    def test_cycle_rejects_non_numeric_learning_cycles(self):
        response = self.client.post("/api/cycle", json={"pages": PAGES, "learning_cycles": "many"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "invalid weight state"})

    def test_analyze_rejects_non_numeric_learning_cycles(self):
        response = self.client.post("/api/analyze", json={"pages": PAGES, "learning_cycles": "many"})
        self.assertEqual(response.status_code, 400)


if __name__ == "__main__":
    unittest.main()
