"""Tests for market snapshot and run metadata models."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from market_timing.models.market import (
    GlobalIndexRecord,
    MarketHistoryRecord,
    MarketIndicators,
    fear_greed_rating,
)
from market_timing.models.meta import RunMetadata


class TestFearGreedRating:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "Extreme Fear"), (25, "Extreme Fear"), (26, "Fear"), (45, "Fear"),
            (46, "Neutral"), (55, "Neutral"), (56, "Greed"), (75, "Greed"),
            (76, "Extreme Greed"), (100, "Extreme Greed"),
        ],
    )
    def test_buckets(self, value, expected):
        assert fear_greed_rating(value) == expected


class TestMarketHistoryRecord:
    def test_frozen(self, sample_record):
        with pytest.raises(ValidationError):
            sample_record.vix = 30.0  # type: ignore[misc]

    def test_composite_score_bounds(self):
        with pytest.raises(ValidationError):
            MarketHistoryRecord(date=date(2026, 1, 2), composite_score=100.5)

    def test_value_lookup(self, sample_record):
        assert sample_record.value("vix") == 18.5
        assert sample_record.value("initial_claims") == 230000.0
        assert sample_record.value("retail_sales_yoy") is None
        assert sample_record.value("raw_data") is None
        assert sample_record.value("no_such_field") is None

    def test_score_input_uses_core_fields(self, sample_record):
        data = sample_record.to_score_input()
        assert data.hy_spread == 3.1
        assert data.initial_claims == 230000


class TestMarketIndicators:
    def test_from_history_record(self, sample_record):
        snap = MarketIndicators.from_history_record(sample_record)
        assert snap.last_updated == sample_record.date
        assert snap.fear_greed == 45
        assert snap.fear_greed_rating == "Fear"
        assert snap.treasury_3m == 4.13

    def test_value_skips_non_numeric(self, sample_snapshot):
        assert sample_snapshot.value("fear_greed_rating") is None
        assert sample_snapshot.value("last_updated") is None
        assert sample_snapshot.value("hy_spread") == 3.1

    def test_missing_fear_greed_has_no_rating(self):
        record = MarketHistoryRecord(date=date(2026, 1, 2), composite_score=50.0)
        assert MarketIndicators.from_history_record(record).fear_greed_rating is None


class TestGlobalIndexRecord:
    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            GlobalIndexRecord(symbol="^GSPC", name="S&P 500", region="미국",
                              date=date(2026, 1, 2), close_price=0.0)


class TestRunMetadata:
    def _run(self, **overrides) -> RunMetadata:
        fields = dict(
            run_slug="slug",
            pipeline_stage="collect_market_data",
            config_snapshot={},
            started_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return RunMetadata(**fields)

    def test_mutable(self):
        run = self._run()
        run.status = "success"
        assert run.status == "success"

    def test_unknown_stage(self):
        with pytest.raises(ValidationError):
            self._run(pipeline_stage="train")

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            self._run(status="exploded")
