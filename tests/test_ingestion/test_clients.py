"""Tests for the FRED, Yahoo Finance and Fear & Greed clients (mocked HTTP)."""

from __future__ import annotations

from datetime import date

import httpx
import pytest

from market_timing.ingestion.fear_greed_client import FearGreedClient
from market_timing.ingestion.fred_client import FredClient
from market_timing.ingestion.yahoo_client import YahooClient


def _mock(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _status(code: int):
    return _mock(lambda request: httpx.Response(code, json={}))


def _raises(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


# ── FRED ──────────────────────────────────────────────────────────────────────

class TestFredClient:
    def test_requires_api_key(self):
        with pytest.raises(RuntimeError):
            FredClient(api_key="")

    def test_parses_and_drops_missing_prints(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json={"observations": [
                {"date": "2026-01-14", "value": "4.45"},
                {"date": "2026-01-13", "value": "."},
                {"date": "2026-01-12", "value": "4.41"},
            ]})

        with FredClient(api_key="k", http_client=_mock(handler)) as fred:
            obs = fred.fetch_series("DGS10", limit=5)

        assert [o.date for o in obs] == [date(2026, 1, 14), date(2026, 1, 12)]
        assert obs[0].value == 4.45
        assert seen["series_id"] == "DGS10"
        assert seen["sort_order"] == "desc"
        assert seen["limit"] == "5"
        assert seen["file_type"] == "json"

    def test_http_error_status_is_empty(self):
        assert FredClient(api_key="k", http_client=_status(500)).fetch_series("GDP") == []

    def test_transport_error_is_empty(self):
        assert FredClient(api_key="k", http_client=_mock(_raises)).fetch_series("GDP") == []

    def test_malformed_payload_is_empty(self):
        client = _mock(lambda r: httpx.Response(200, json={"unexpected": []}))
        assert FredClient(api_key="k", http_client=client).fetch_series("GDP") == []


# ── Yahoo ─────────────────────────────────────────────────────────────────────

def _chart_payload(price=590.12, closes=(580.0, None, 585.5), previous=588.0) -> dict:
    return {"chart": {"result": [{
        "meta": {"regularMarketPrice": price, "previousClose": previous},
        "indicators": {"adjclose": [{"adjclose": list(closes)}]},
    }]}}


class TestYahooClient:
    def test_parses_price_and_closes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["range"] = request.url.params["range"]
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, json=_chart_payload())

        with YahooClient(http_client=_mock(handler)) as yahoo:
            chart = yahoo.fetch_chart("^VIX")

        assert chart.price == 590.12
        assert chart.previous_close == 588.0
        assert chart.adjusted_closes == [580.0, 585.5]
        assert "VIX" in seen["url"]
        assert seen["range"] == "1y"
        assert seen["ua"].startswith("Mozilla/5.0")

    def test_missing_adjclose_gives_empty_series(self):
        payload = {"chart": {"result": [{"meta": {"regularMarketPrice": 38000.0}}]}}
        chart = YahooClient(http_client=_mock(lambda r: httpx.Response(200, json=payload))).fetch_chart("^N225")
        assert chart.price == 38000.0
        assert chart.adjusted_closes == []
        assert chart.previous_close is None

    def test_empty_result_is_none(self):
        payload = {"chart": {"result": []}}
        client = _mock(lambda r: httpx.Response(200, json=payload))
        assert YahooClient(http_client=client).fetch_chart("SPY") is None

    def test_failures_are_none(self):
        assert YahooClient(http_client=_status(404)).fetch_chart("SPY") is None
        assert YahooClient(http_client=_mock(_raises)).fetch_chart("SPY") is None


# ── Fear & Greed ──────────────────────────────────────────────────────────────

class TestFearGreedClient:
    def test_parses_reading_and_sends_browser_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["referer"] = request.headers.get("Referer")
            return httpx.Response(200, json={"fear_and_greed": {
                "score": 44.6, "rating": "fear", "previous_close": 41.2,
            }})

        with FearGreedClient(http_client=_mock(handler)) as client:
            reading = client.fetch()

        assert reading.score == 44.6
        assert reading.rating == "fear"
        assert reading.previous_close == 41.2
        assert seen["referer"] == FearGreedClient.REFERER

    def test_failures_are_none(self):
        assert FearGreedClient(http_client=_status(418)).fetch() is None
        assert FearGreedClient(http_client=_mock(_raises)).fetch() is None
        malformed = _mock(lambda r: httpx.Response(200, json={"score": 10}))
        assert FearGreedClient(http_client=malformed).fetch() is None
