import unittest

from fastapi.testclient import TestClient

from vfx_pulse.catalog import Catalog
from vfx_pulse.models import RawPosting
from vfx_pulse.pipeline import ScrapePipeline
from vfx_pulse.server import create_app
from vfx_pulse.sources import BackstageSource, RetrievalError, SourceAdapter, SourceRegistry
from vfx_pulse.status import SourceStatusTracker


class BrokenSource(SourceAdapter):
    source_id = "mandy"

    def retrieve(self):
        raise RetrievalError("mandy: source requires authentication (HTTP 401)")


class ListSource(SourceAdapter):
    source_id = "vitrina"

    def retrieve(self):
        return [RawPosting(title="Mid Budget Series", description="compositing work", budget="$3M")]


class TestApi(unittest.TestCase):
    def setUp(self):
        registry = SourceRegistry(
            {"backstage": BackstageSource(), "mandy": BrokenSource(), "vitrina": ListSource()}
        )
        self.pipeline = ScrapePipeline(registry, Catalog(), SourceStatusTracker(registry))
        self.client = TestClient(create_app(self.pipeline, environment="test"))

    def test_index_and_health(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("scrape", resp.json()["endpoints"])

        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
        self.assertEqual(resp.json()["environment"], "test")

    def test_scrape_and_read(self):
        resp = self.client.post("/api/scrape/backstage")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {"success": True, "projectsAdded": 3, "totalProjects": 3, "source": "backstage"},
        )

        projects = self.client.get("/api/projects").json()
        self.assertEqual(len(projects), 3)
        first = projects[0]
        for key in ("id", "title", "tier", "vfxNeeds", "vfxNeedsRationale", "source",
                    "crossSourceData", "scrapedAt", "postedAt", "contacts"):
            self.assertIn(key, first)
        self.assertEqual(first["tier"], "tier1")
        self.assertEqual(first["vfxNeeds"], "Extreme")

        tier4 = self.client.get("/api/projects/tier/tier4").json()
        self.assertEqual([p["title"] for p in tier4], ["Commercial - Tech Brand"])
        self.assertEqual(self.client.get("/api/projects/tier/tier9").json(), [])

        resp = self.client.post("/api/scrape/backstage")
        self.assertEqual(resp.json()["projectsAdded"], 0)

    def test_scrape_failure(self):
        resp = self.client.post("/api/scrape/mandy")
        self.assertEqual(resp.status_code, 500)
        self.assertIn("authentication", resp.json()["error"])

        sources = self.client.get("/api/sources").json()
        self.assertEqual(sources["mandy"]["state"], "error")
        self.assertEqual(sources["mandy"]["postingCount"], 0)
        self.assertIsNotNone(sources["mandy"]["lastScrapeAt"])
        self.assertEqual(sources["backstage"]["state"], "idle")
        self.assertIsNone(sources["backstage"]["lastScrapeAt"])

    def test_unknown_source(self):
        resp = self.client.post("/api/scrape/nowhere")
        self.assertEqual(resp.status_code, 404)
        self.assertIn("nowhere", resp.json()["error"])

    def test_stats(self):
        self.client.post("/api/scrape/backstage")
        self.client.post("/api/scrape/vitrina")
        stats = self.client.get("/api/stats").json()
        self.assertEqual(stats["totalProjects"], 4)
        self.assertEqual(stats["byTier"], {"tier1": 1, "tier2": 1, "tier3": 1, "tier4": 1})
        self.assertEqual(stats["byVFXNeeds"], {"extreme": 1, "high": 1, "medium": 2, "low": 0})
        self.assertEqual(stats["sources"]["vitrina"]["postingCount"], 1)
        self.assertIn("lastUpdated", stats)


if __name__ == "__main__":
    unittest.main()
