import time
import unittest
from unittest.mock import MagicMock

import jwt
from fastapi.testclient import TestClient

from finadvisor.config.settings import Settings
from finadvisor.integrations.alpha_vantage import RATE_LIMIT_MESSAGE, AlphaVantageClient
from finadvisor.main import app
from finadvisor.schemas.auth import UserIdentity
from finadvisor.schemas.stocks import FetchOutcome
from finadvisor.services.auth import BearerAuthenticator, InMemoryUserDirectory
from finadvisor.services.pacing import LinearPacer
from finadvisor.services.stock_market import StockMarketService

SECRET = "test-secret"


def _token(user_id="u1", ttl=3600):
    return jwt.encode({"userId": user_id, "exp": int(time.time()) + ttl}, SECRET, algorithm="HS256")


def _bar(close):
    return {"1. open": "1", "2. high": "2", "3. low": "0.5", "4. close": close, "5. volume": "10"}


class StubQuoteClient:
    def __init__(self, series_by_symbol=None, failures=None) -> None:
        self.series_by_symbol = series_by_symbol or {}
        self.failures = failures or {}
        self.calls = []

    def fetch(self, function, symbol, params=None, *, series_key):
        self.calls.append((function, symbol, dict(params or {})))
        if symbol in self.failures:
            status, message = self.failures[symbol]
            return FetchOutcome(status=status, symbol=symbol, function=function, message=message)
        raw = self.series_by_symbol.get(symbol)
        if not raw:
            return FetchOutcome(status="no_data", symbol=symbol, function=function)
        return FetchOutcome(status="ok", symbol=symbol, function=function, series=raw)


async def _no_wait(delay):
    return None


class StocksApiTest(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(ALPHA_VANTAGE_KEY="av-key", JWT_SECRET=SECRET)
        self.original_get_settings = app.state.get_settings
        app.state.get_settings = lambda: self.settings
        app.state.authenticator = BearerAuthenticator(
            secret=SECRET,
            users=InMemoryUserDirectory([UserIdentity(id="u1", name="Asha")]),
        )
        self.client_stub = StubQuoteClient(
            {
                "A.BSE": {"10:00": {"4. close": "100"}, "09:55": {"4. close": "95"}},
                "C.BSE": {f"2025-10-{d:02d}": _bar(str(d)) for d in range(1, 11)},
            },
            failures={"B.BSE": ("rate_limited", RATE_LIMIT_MESSAGE)},
        )
        app.state.stock_service = StockMarketService(
            client=self.client_stub,
            pacer=LinearPacer(5, sleep=_no_wait),
            watchlist=["A.BSE", "B.BSE", "C.BSE"],
        )
        self.client = TestClient(app)
        self.headers = {"Authorization": f"Bearer {_token()}"}

    def tearDown(self):
        app.state.get_settings = self.original_get_settings

    def test_summary_requires_bearer_token(self):
        res = self.client.get("/api/stocks/summary")

        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json(), {
            "success": False,
            "message": "No token provided. Authorization denied.",
        })
        self.assertEqual(self.client_stub.calls, [])

    def test_summary_returns_entry_per_symbol_with_isolated_failure(self):
        res = self.client.get("/api/stocks/summary", headers=self.headers)

        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["success"])
        self.assertEqual([row["symbol"] for row in body["data"]], ["A.BSE", "B.BSE", "C.BSE"])
        self.assertEqual(body["data"][0], {
            "symbol": "A.BSE",
            "price": "100.00",
            "change": "+5.26%",
            "time": "10:00",
        })
        self.assertEqual(body["data"][1]["price"], "N/A")
        self.assertEqual(body["data"][1]["error"], RATE_LIMIT_MESSAGE)
        self.assertNotIn("error", body["data"][2])

    def test_summary_missing_key_is_configuration_error(self):
        self.settings = Settings(JWT_SECRET=SECRET)

        res = self.client.get("/api/stocks/summary", headers=self.headers)

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json()["message"], "Alpha Vantage API key is not configured")
        self.assertEqual(self.client_stub.calls, [])

    def test_live_missing_symbol_is_400_without_upstream_call(self):
        for path in ("/api/stocks/live", "/api/stocks/daily", "/api/stocks/history"):
            with self.subTest(path=path):
                res = self.client.get(path, headers=self.headers)
                self.assertEqual(res.status_code, 400)
                self.assertEqual(res.json(), {
                    "success": False,
                    "message": "Please provide a symbol parameter",
                })
        self.assertEqual(self.client_stub.calls, [])

    def test_live_success_shape(self):
        res = self.client.get("/api/stocks/live", params={"symbol": "C.BSE"}, headers=self.headers)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {
            "success": True,
            "symbol": "C.BSE",
            "price": "10.00",
            "open": "1.00",
            "high": "2.00",
            "low": "0.50",
            "volume": "10",
            "lastUpdated": "2025-10-10",
        })

    def test_daily_caps_at_five_entries(self):
        res = self.client.get("/api/stocks/daily", params={"symbol": "C.BSE"}, headers=self.headers)

        body = res.json()
        self.assertEqual(res.status_code, 200)
        self.assertEqual(body["symbol"], "C.BSE")
        self.assertEqual(len(body["data"]), 5)
        self.assertEqual(
            set(body["data"][0]), {"date", "open", "high", "low", "close", "volume"}
        )

    def test_history_shape_and_month_validation(self):
        res = self.client.get(
            "/api/stocks/history",
            params={"symbol": "C.BSE", "month": "2025-10"},
            headers=self.headers,
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(
            set(res.json()["data"][0]), {"timestamp", "open", "high", "low", "close", "volume"}
        )
        self.assertEqual(self.client_stub.calls[-1][2]["month"], "2025-10")

        bad = self.client.get(
            "/api/stocks/history",
            params={"symbol": "C.BSE", "month": "2025-13"},
            headers=self.headers,
        )
        self.assertEqual(bad.status_code, 400)
        self.assertFalse(bad.json()["success"])

    def test_no_data_is_404(self):
        res = self.client.get("/api/stocks/live", params={"symbol": "ZZZ"}, headers=self.headers)

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json(), {
            "success": False,
            "message": "No data available for this symbol",
        })

    def test_rate_limited_is_429(self):
        res = self.client.get("/api/stocks/daily", params={"symbol": "B.BSE"}, headers=self.headers)

        self.assertEqual(res.status_code, 429)
        self.assertEqual(res.json()["message"], RATE_LIMIT_MESSAGE)

    def test_network_error_is_500_with_reason(self):
        self.client_stub.failures["N.BSE"] = ("network_error", "connection refused")

        res = self.client.get("/api/stocks/history", params={"symbol": "N.BSE"}, headers=self.headers)

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {
            "success": False,
            "message": "Error fetching stock history",
            "error": "connection refused",
        })

    def test_history_premium_notice_is_500_with_provider_message(self):
        notice = "The outputsize=full parameter value is a premium feature for the TIME_SERIES_INTRADAY endpoint."
        session = MagicMock()
        session.get.return_value.status_code = 200
        session.get.return_value.json.return_value = {"Information": notice}
        app.state.stock_service = StockMarketService(
            client=AlphaVantageClient(api_key="av-key", session=session),
            pacer=LinearPacer(5, sleep=_no_wait),
            watchlist=[],
        )

        res = self.client.get("/api/stocks/history", params={"symbol": "A.BSE"}, headers=self.headers)

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json(), {
            "success": False,
            "message": "Error fetching stock history",
            "error": notice,
        })
        self.assertEqual(session.get.call_args.kwargs["params"]["outputsize"], "full")

    def test_stock_metrics_endpoint(self):
        self.client.get("/api/stocks/summary", headers=self.headers)

        res = self.client.get("/api/metrics/stocks")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["batch_target_count"], 3)
        self.assertEqual(res.json()["batch_error_count"], 1)


if __name__ == "__main__":
    unittest.main()
