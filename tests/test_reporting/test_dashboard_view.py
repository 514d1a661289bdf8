"""Tests for dashboard view assembly."""

from __future__ import annotations

from datetime import date

import pytest

from market_timing.models.market import MarketIndicators
from market_timing.reporting.dashboard import build_dashboard, select_record
from market_timing.scoring.composite import calculate_composite_score
from market_timing.taxonomy.indicators import IndicatorTiming, InvestmentStance

TODAY = date(2026, 1, 15)


class TestSelectRecord:
    def test_newest_by_default(self, sample_history):
        assert select_record(list(reversed(sample_history))).date == TODAY

    def test_by_date(self, sample_history):
        assert select_record(sample_history, date(2026, 1, 1)).date == date(2026, 1, 1)
        assert select_record(sample_history, date(2026, 1, 2)) is None

    def test_empty(self):
        assert select_record([]) is None


class TestBuildDashboard:
    def test_defaults_to_latest_record(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        assert view.as_of == TODAY
        assert view.snapshot.vix == 31.0
        assert view.history_size == 20
        assert view.composite_score == calculate_composite_score(view.snapshot)

    def test_stance_uses_display_score(self):
        # VIX 0.95 std above its mean: composite 59.5 displays as 60.
        snapshot = MarketIndicators(vix=20.097 + 0.95 * 8.0555)
        view = build_dashboard([], snapshot, today=TODAY)
        assert view.composite_score == pytest.approx(59.5)
        assert view.display_score == 60
        assert view.stance == InvestmentStance.AGGRESSIVE_PLUS
        assert view.stance_info.label == "매수 적기"

    def test_metadata_matches_stance(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        assert view.stance_info.label
        assert view.stance_probability.week12.up >= 0
        assert view.distribution.z == pytest.approx((view.display_score - 50) / 7)

    def test_scores_split_and_grouped(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        assert len(view.core_scores) == 5
        assert len(view.core_scores) + len(view.reference_scores) == len(view.scores)
        assert set(view.scores_by_timing) == set(IndicatorTiming)

    def test_commentary_on_extreme_latest(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        assert len(view.commentary) == 2
        assert view.commentary[0].startswith("하이일드 스프레드가")

    def test_ranking_windows(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        assert view.ranking.all_history.total == 20
        assert view.ranking.one_year.total == 20
        assert 1 <= view.ranking.all_history.rank <= 20

    def test_no_data_raises(self):
        with pytest.raises(ValueError):
            build_dashboard([])

    def test_snapshot_without_history(self):
        view = build_dashboard([], MarketIndicators(), today=TODAY)
        assert view.composite_score == 50
        assert view.stance == InvestmentStance.MODERATE_AGGRESSIVE
        assert view.scores == []
        assert view.ranking.all_history.total == 0
