"""Tests for the collector stages and the pure record assembly."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from market_timing.db.connection import get_connection
from market_timing.db.repositories.global_index_repo import GlobalIndexRepository
from market_timing.db.repositories.history_repo import MarketHistoryRepository
from market_timing.db.repositories.run_repo import RunMetadataRepository
from market_timing.db.schema import apply_schema
from market_timing.ingestion.catalog import GLOBAL_INDICES, GlobalIndex
from market_timing.ingestion.fear_greed_client import FearGreedReading
from market_timing.ingestion.fred_client import FredObservation
from market_timing.ingestion.yahoo_client import YahooChart
from market_timing.models.market import HISTORY_VALUE_FIELDS
from market_timing.pipeline.collect import (
    CollectGlobalIndicesStage,
    CollectMarketDataStage,
    assemble_history_record,
    build_global_index_record,
)
from market_timing.scoring.composite import calculate_composite_score

DAY = date(2026, 1, 15)


def _obs(*values: float) -> list[FredObservation]:
    return [FredObservation(date=DAY, value=v) for v in values]


@pytest.fixture
def charts() -> dict[str, YahooChart]:
    return {
        "^VIX": YahooChart(symbol="^VIX", price=20.097),
        "SPY": YahooChart(symbol="SPY", price=110.0, adjusted_closes=[100.0] * 250),
        "QQQ": YahooChart(symbol="QQQ", price=510.456),
        "DX-Y.NYB": YahooChart(symbol="DX-Y.NYB", price=104.3),
    }


@pytest.fixture
def series() -> dict[str, list[FredObservation]]:
    return {
        "BAMLH0A0HYM2": _obs(3.1),
        "ICSA": _obs(230000.0),
        "DGS10": _obs(4.45),
        "DGS2": _obs(4.0),
        "DGS3MO": _obs(4.13),
        "GDP": _obs(27_000.0),
        "NCBCEL": _obs(50_000_000.0),
        "M2SL": _obs(105.0, *([101.0] * 11), 100.0),
        "PAYEMS": _obs(159_500.0, 159_350.0),
        "UNRATE": _obs(4.2),
    }


@pytest.fixture
def prepared_db(file_config):
    with get_connection(file_config.database.db_path, wal_mode=False) as conn:
        apply_schema(conn)
    return file_config


# ── Pure assembly ─────────────────────────────────────────────────────────────

class TestAssembleHistoryRecord:
    def test_derived_values(self, charts, series):
        record = assemble_history_record(
            DAY, FearGreedReading(score=44.6, rating="fear"), charts, series
        )
        assert record.date == DAY
        assert record.fear_greed == 45
        assert record.vix == pytest.approx(20.1)
        assert record.spy_price == 110.0
        assert record.spy_vs_200ma == pytest.approx(10.0)
        assert record.qqq_price == pytest.approx(510.46)
        assert record.hy_spread == pytest.approx(3.1)
        assert record.initial_claims == 230000
        assert record.yield_curve_10y2y == pytest.approx(0.45)
        assert record.yield_curve_10y3m == pytest.approx(0.32)
        assert record.erp == pytest.approx(0.55)
        assert record.buffett_indicator == pytest.approx(185.19)
        assert record.m2_growth_yoy == pytest.approx(5.0)
        assert record.nonfarm_payrolls_mom == 150_000
        assert record.unemployment_rate == 4.2
        assert record.dollar_index == 104.3

    def test_composite_matches_stored_values(self, charts, series):
        record = assemble_history_record(DAY, None, charts, series)
        assert record.composite_score == calculate_composite_score(record)

    def test_raw_data_uses_camel_case(self, charts, series):
        record = assemble_history_record(DAY, None, charts, series)
        assert record.raw_data["hySpread"] == pytest.approx(3.1)
        assert record.raw_data["spyVs200MA"] == pytest.approx(10.0)
        assert record.raw_data["fearGreed"] is None
        assert len(record.raw_data) == len(HISTORY_VALUE_FIELDS)

    def test_nothing_collected_is_neutral(self):
        record = assemble_history_record(DAY, None, {}, {})
        assert record.composite_score == 50
        assert all(record.value(f) is None for f in HISTORY_VALUE_FIELDS)

    def test_missing_short_rate_skips_spread(self, charts, series):
        del series["DGS2"]
        record = assemble_history_record(DAY, None, charts, series)
        assert record.yield_curve_10y2y is None
        assert record.yield_curve_10y3m == pytest.approx(0.32)


# ── Market data stage ─────────────────────────────────────────────────────────

class TestCollectMarketDataStage:
    def test_run_upserts_one_row(self, prepared_db, charts, series):
        fred = MagicMock()
        fred.fetch_series.side_effect = lambda series_id, limit: series.get(series_id, [])
        yahoo = MagicMock()
        yahoo.fetch_chart.side_effect = lambda symbol, range_="1y": charts.get(symbol)
        cnn = MagicMock()
        cnn.fetch.return_value = FearGreedReading(score=30.0, rating="fear")

        run = CollectMarketDataStage(config=prepared_db).run(
            snapshot_date=DAY, fred_client=fred, yahoo_client=yahoo, fear_greed_client=cnn,
        )

        assert run.status == "success"
        assert run.rows_processed == 1
        fred.close.assert_not_called()
        with get_connection(prepared_db.database.db_path, wal_mode=False) as conn:
            stored = MarketHistoryRepository(conn).get_by_date(DAY)
            runs = RunMetadataRepository(conn).get_recent_runs()
        assert stored.fear_greed == 30
        assert stored.hy_spread == pytest.approx(3.1)
        assert runs[0].status == "success"

    def test_failing_fetch_is_best_effort(self, prepared_db, charts):
        fred = MagicMock()
        fred.fetch_series.side_effect = RuntimeError("boom")
        yahoo = MagicMock()
        yahoo.fetch_chart.side_effect = lambda symbol, range_="1y": charts.get(symbol)
        cnn = MagicMock()
        cnn.fetch.return_value = None

        run = CollectMarketDataStage(config=prepared_db).run(
            snapshot_date=DAY, fred_client=fred, yahoo_client=yahoo, fear_greed_client=cnn,
        )
        assert run.status == "success"
        with get_connection(prepared_db.database.db_path, wal_mode=False) as conn:
            stored = MarketHistoryRepository(conn).get_by_date(DAY)
        assert stored.hy_spread is None
        assert stored.vix == pytest.approx(20.1)


# ── Global indices stage ──────────────────────────────────────────────────────

class TestCollectGlobalIndicesStage:
    def test_build_record_rejects_bad_quotes(self):
        index = GlobalIndex("^GSPC", "S&P 500", "미국")
        assert build_global_index_record(index, None, DAY) is None
        assert build_global_index_record(index, YahooChart(symbol="^GSPC", price=0.0), DAY) is None
        record = build_global_index_record(index, YahooChart(symbol="^GSPC", price=6001.239), DAY)
        assert record.close_price == pytest.approx(6001.24)
        assert record.region == "미국"

    def test_run_upserts_valid_indices(self, prepared_db):
        yahoo = MagicMock()
        yahoo.fetch_chart.side_effect = lambda symbol, range_="1y": (
            YahooChart(symbol=symbol, price=100.0) if symbol in ("^GSPC", "^KS11") else None
        )
        run = CollectGlobalIndicesStage(config=prepared_db).run(snapshot_date=DAY, yahoo_client=yahoo)

        assert run.rows_processed == 2
        assert all(call.kwargs["range_"] == "1d" for call in yahoo.fetch_chart.call_args_list)
        assert yahoo.fetch_chart.call_count == len(GLOBAL_INDICES)
        with get_connection(prepared_db.database.db_path, wal_mode=False) as conn:
            stored = GlobalIndexRepository(conn).get_all()
        assert {r.symbol for r in stored} == {"^GSPC", "^KS11"}

    def test_nothing_collected_fails_run(self, prepared_db):
        yahoo = MagicMock()
        yahoo.fetch_chart.return_value = None

        with pytest.raises(RuntimeError, match="No valid global index data"):
            CollectGlobalIndicesStage(config=prepared_db).run(snapshot_date=DAY, yahoo_client=yahoo)

        with get_connection(prepared_db.database.db_path, wal_mode=False) as conn:
            runs = RunMetadataRepository(conn).get_recent_runs(pipeline_stage="collect_global_indices")
        assert runs[0].status == "failed"
        assert "No valid global index data" in runs[0].error_message
