import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

from stockinsights.api.routes import get_engine, get_generator, get_repository
from stockinsights.config import Settings, settings
from stockinsights.errors import NarrativeError
from stockinsights.main import app
from stockinsights.pipeline.screening import ScreeningEngine
from stockinsights.pipeline.snapshots import SnapshotRepository
from stockinsights.providers.blob_store import LocalBlobStore

from snapshot_fixtures import PREFIX, RecordingGenerator, key_days_ago, stock, write_snapshot


class FailingGenerator(RecordingGenerator):
    def __init__(self, exc):
        super().__init__()
        self.exc = exc

    def generate(self, system, user, max_tokens, temperature):
        raise self.exc


class RoutesTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.repo = SnapshotRepository(LocalBlobStore(self.root), Settings(SNAPSHOT_PREFIX=PREFIX))
        self.generator = RecordingGenerator(reply="Looks fairly valued.")
        app.dependency_overrides[get_repository] = lambda: self.repo
        app.dependency_overrides[get_engine] = lambda: ScreeningEngine(limit=10)
        app.dependency_overrides[get_generator] = lambda: self.generator
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self._tmp.cleanup()

    def seed(self):
        write_snapshot(self.root, key_days_ago(2), [
            stock("Infosys Ltd", **{"Close Price": "1600"}),
        ])
        write_snapshot(self.root, key_days_ago(1), [
            stock("HDFC Bank", **{"Sub-Sector": "Private Banks", "Return on Equity": "17", "Close Price": "1700"}),
            stock("Infosys Ltd", **{
                "Close Price": "1500", "RSI – 14D": "25", "PE Ratio": "12", "Return on Equity": "20",
            }),
        ])


class HealthTests(RoutesTestCase):
    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["ok"])
        self.assertTrue(r.json()["llm_configured"])


class StockRouteTests(RoutesTestCase):
    def test_symbol_required(self):
        r = self.client.get("/api/stock")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "No symbol provided. Please provide a ?symbol=... query parameter."})

    def test_lookup(self):
        self.seed()
        r = self.client.get("/api/stock", params={"symbol": "infosys"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["Close Price"], "1500")
        self.assertNotIn("priceChange", r.json())

    def test_not_found(self):
        self.seed()
        r = self.client.get("/api/stock", params={"symbol": "zomato"})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"error": "Symbol or company not found"})

    def test_no_snapshots(self):
        r = self.client.get("/api/stock", params={"symbol": "infosys"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "No data file found in bucket"})

    def test_realtime_and_sentiment(self):
        self.seed()
        r = self.client.get("/api/stock", params={"symbol": "infosys", "realtime": "1", "sentiment": "1"})
        body = r.json()
        self.assertEqual(body["priceChange"], -100)
        self.assertAlmostEqual(body["priceChangePercent"], -6.25)
        self.assertFalse(body["isPositive"])
        self.assertEqual(body["marketSentiment"], "bullish")

    def test_all(self):
        self.seed()
        r = self.client.get("/api/stock", params={"all": "1"})
        self.assertEqual([s["Name"] for s in r.json()], ["HDFC Bank", "Infosys Ltd"])

    def test_all_for_date(self):
        write_snapshot(self.root, f"{PREFIX}2024-01-15_09-30.json", [stock("Old Co")])
        r = self.client.get("/api/stock", params={"all": "1", "date": "2024-01-15", "time": "09-30"})
        self.assertEqual(r.json(), [{"Name": "Old Co"}])

        r = self.client.get("/api/stock", params={"all": "1", "date": "2024-01-16"})
        self.assertEqual(r.status_code, 500)
        self.assertIn("Failed to fetch data from remote source", r.json()["error"])

    def test_history(self):
        self.seed()
        write_snapshot(self.root, key_days_ago(3), "not json")
        r = self.client.get("/api/stock", params={"symbol": "infosys", "history": "1"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual([p["Close Price"] for p in r.json()], ["1600", "1500"])
        self.assertTrue(all(p["date"].endswith(":00Z") for p in r.json()))
        self.assertEqual(r.headers["x-skipped-snapshots"], "1")

    def test_history_not_found(self):
        self.seed()
        r = self.client.get("/api/stock", params={"symbol": "zomato", "history": "1"})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"error": "No historical data found for symbol"})


class InsightsRouteTests(RoutesTestCase):
    def test_single_symbol(self):
        r = self.client.post("/api/insights", json={
            "symbol": "INFOSYS",
            "stockData": {"Name": "Infosys", "Close Price": "1500"},
            "price": "1550",
            "debtEquity": 0.1,
        })
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"insight": "Looks fairly valued."})
        user = self.generator.calls[0]["user"]
        self.assertIn('"Close Price": "1550"', user)
        self.assertIn('"Debt to Equity": 0.1', user)

    def test_advanced_screen(self):
        self.seed()
        r = self.client.post("/api/insights", json={"userInput": "high roe bank"})
        self.assertEqual(r.status_code, 200)
        self.assertIn("HDFC Bank", self.generator.calls[0]["user"])

    def test_missing_query(self):
        r = self.client.post("/api/insights", json={})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "No symbol or userInput provided"})

    def test_unconfigured(self):
        self.generator.configured = False
        r = self.client.post("/api/insights", json={"symbol": "TCS"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "LLM API key not set"})

    def test_provider_failure(self):
        self.generator = FailingGenerator(NarrativeError("LLM API error", "overloaded"))
        r = self.client.post("/api/insights", json={"symbol": "TCS"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "LLM API error", "details": "overloaded"})

    def test_dataset_failure(self):
        r = self.client.post("/api/insights", json={"userInput": "zero debt companies"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json()["error"], "Failed to fetch stock data")

    def test_malformed_body(self):
        r = self.client.post("/api/insights", content="{", headers={"content-type": "application/json"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Invalid request")

    def test_unexpected_error(self):
        self.generator = FailingGenerator(RuntimeError("boom"))
        client = TestClient(app, raise_server_exceptions=False)
        r = client.post("/api/insights", json={"symbol": "TCS"})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Internal server error", "details": "boom"})


class ScreenRouteTests(RoutesTestCase):
    def test_screen(self):
        self.seed()
        r = self.client.post("/api/screen", json={"query": "bank stocks"})
        body = r.json()
        self.assertEqual(body["kind"], "advanced_screen")
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["results"][0]["Name"], "HDFC Bank")
        self.assertEqual(self.generator.calls, [])

    def test_limit_bounds(self):
        r = self.client.post("/api/screen", json={"query": "bank stocks", "limit": 0})
        self.assertEqual(r.status_code, 400)


class SentimentRouteTests(RoutesTestCase):
    def test_sentiment(self):
        r = self.client.post("/api/sentiment", json={"symbol": "TCS", "newsData": ["Wins large deal"]})
        self.assertEqual(r.json(), {"sentiment": "Looks fairly valued."})
        self.assertEqual(self.generator.calls[0]["max_tokens"], 300)

    def test_missing_news(self):
        r = self.client.post("/api/sentiment", json={"symbol": "TCS"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "Missing symbol or newsData"})


class PortfolioRouteTests(RoutesTestCase):
    def test_analyze(self):
        r = self.client.post("/api/portfolio", json={"portfolio": [{
            "symbol": "INFOSYS", "name": "Infosys", "shares": 10, "avgPrice": 100,
            "currentPrice": 120, "totalValue": 1200, "gainLoss": 200, "gainLossPercent": 20,
        }]})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["totalValue"], 1200)
        self.assertEqual(body["totalGainLossPercent"], 20)
        self.assertEqual(body["sectorBreakdown"], {"Technology": 1200})
        self.assertEqual(body["topPerformers"][0]["avgPrice"], 100)

    def test_missing_portfolio(self):
        r = self.client.post("/api/portfolio", json={})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "Invalid portfolio data"})

    def test_info(self):
        r = self.client.get("/api/portfolio")
        self.assertEqual(r.json()["message"], "Portfolio Analytics API")


class LogsRouteTests(RoutesTestCase):
    def test_tail(self):
        path = self.root / "error.log"
        path.write_text("one\ntwo\nthree\n", encoding="utf-8")
        with mock.patch.object(settings, "log_error_file", str(path)):
            r = self.client.get("/api/logs", params={"lines": 2})
        self.assertEqual(r.json()["lines"], ["two", "three"])

    def test_bad_lines(self):
        r = self.client.get("/api/logs", params={"lines": 0})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "lines must be >= 1"})

    def test_missing_file(self):
        with mock.patch.object(settings, "log_error_file", str(self.root / "absent.log")):
            r = self.client.get("/api/logs")
        self.assertEqual(r.status_code, 404)

    def test_not_configured(self):
        with mock.patch.object(settings, "log_error_file", None):
            r = self.client.get("/api/logs")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"error": "LOG_ERROR_FILE is not configured"})


if __name__ == "__main__":
    unittest.main()
