"""
Shared pytest fixtures for the Market Timing Dashboard test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``make_record``: factory for ``MarketHistoryRecord`` rows.
  - Sample snapshots and history series for scoring / reporting tests.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Generator

import pytest

from market_timing.config import AppConfig, DatabaseConfig
from market_timing.db.schema import apply_schema
from market_timing.models.market import MarketHistoryRecord, MarketIndicators
from market_timing.models.meta import RunMetadata


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def file_config(tmp_path) -> AppConfig:
    """``AppConfig`` pointing at a throwaway on-disk database."""
    return AppConfig(
        database=DatabaseConfig(db_path=str(tmp_path / "market_timing.db"), wal_mode=False)
    )


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def make_record() -> Callable[..., MarketHistoryRecord]:
    """Factory: ``make_record(date(2026, 1, 2), vix=18.0, ...)``.

    ``composite_score`` defaults to 50.0.
    """
    def _make(day: date, composite_score: float = 50.0, **fields) -> MarketHistoryRecord:
        return MarketHistoryRecord(date=day, composite_score=composite_score, **fields)

    return _make


@pytest.fixture
def sample_record() -> MarketHistoryRecord:
    """A fully populated core + reference history row."""
    return MarketHistoryRecord(
        date=date(2026, 1, 15),
        composite_score=52.4,
        fear_greed=45,
        vix=18.5,
        spy_price=590.12,
        spy_vs_200ma=3.2,
        buffett_indicator=185.0,
        fed_balance_sheet_yoy=-4.1,
        m2_growth_yoy=3.9,
        hy_spread=3.1,
        yield_curve_10y2y=0.45,
        yield_curve_10y3m=0.32,
        initial_claims=230000,
        gdp_growth_qoq=2.8,
        ism_manufacturing=12700.0,
        ism_services=52.1,
        cpi_yoy=2.7,
        core_cpi_yoy=3.1,
        pce_yoy=2.5,
        unemployment_rate=4.2,
        labor_participation=62.5,
        treasury_10y=4.45,
        treasury_2y=4.0,
        treasury_3m=4.13,
        erp=0.55,
        dollar_index=104.3,
        raw_data={"vix": 18.5},
    )


@pytest.fixture
def sample_snapshot(sample_record: MarketHistoryRecord) -> MarketIndicators:
    return MarketIndicators.from_history_record(sample_record)


@pytest.fixture
def sample_history(make_record) -> list[MarketHistoryRecord]:
    """20 weekly records, oldest first, with a slowly rising VIX.

    Ends on 2026-01-15; VIX runs 12.0, 13.0, ... 31.0.
    """
    end = date(2026, 1, 15)
    records = []
    for i in range(20):
        records.append(
            make_record(
                end - timedelta(weeks=19 - i),
                vix=12.0 + i,
                hy_spread=3.0 + i * 0.1,
                initial_claims=200000 + i * 5000,
                spy_vs_200ma=5.0 - i * 0.5,
                yield_curve_10y2y=0.2 + i * 0.02,
                fear_greed=30 + i,
            )
        )
    return records


@pytest.fixture
def sample_run_metadata() -> RunMetadata:
    """A valid mutable ``RunMetadata`` for testing."""
    return RunMetadata(
        run_slug="test-run-uuid-0001",
        pipeline_stage="collect_market_data",
        status="started",
        config_snapshot={"database": {"db_path": ":memory:"}, "debug": True},
        started_at=datetime(2026, 1, 15, 22, 0, 0, tzinfo=timezone.utc),
    )
