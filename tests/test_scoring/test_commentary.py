"""Tests for percentile ranking and extreme-level commentary."""

from __future__ import annotations

import pytest

from market_timing.scoring.commentary import (
    COMMENTARY_TEMPLATES,
    DISPLAY_WEIGHTS,
    MAX_COMMENTARIES,
    PercentilePosition,
    generate_extreme_commentary,
    history_values,
    is_extreme,
    percentile_rank,
)
from market_timing.scoring.indicators import calculate_indicator_scores, split_core_and_reference
from market_timing.taxonomy.indicators import CORE_INDICATORS


def _core(snapshot: dict):
    core, _ = split_core_and_reference(calculate_indicator_scores(snapshot))
    return core


class TestPercentileRank:
    def test_rank_counts_values_at_or_below(self):
        assert percentile_rank([1, 2, 3, 4, 5], 3) == (3, 60)

    def test_half_up_rounding(self):
        # 1 / 8 = 12.5% → 13
        assert percentile_rank([1, 2, 3, 4, 5, 6, 7, 8], 1) == (1, 13)

    def test_below_all(self):
        assert percentile_rank([5, 6, 7], 1) == (0, 0)

    def test_empty_history_rejected(self):
        with pytest.raises(ValueError):
            percentile_rank([], 1.0)

    @pytest.mark.parametrize("pct, expected", [(0, True), (20, True), (21, False), (79, False), (80, True)])
    def test_is_extreme(self, pct, expected):
        assert is_extreme(pct) is expected

    def test_labels(self):
        assert PercentilePosition(rank=2, percentile=10).label == "하위 10%"
        assert PercentilePosition(rank=18, percentile=90).label == "상위 10%"

    def test_history_values_drop_nulls_and_sort(self, make_record, sample_history):
        values = history_values(sample_history, "vix")
        assert values == sorted(values)
        assert len(values) == 20
        assert history_values(sample_history, "buffett_indicator") == []


class TestExtremeCommentary:
    def test_every_core_kind_has_a_template(self):
        assert set(COMMENTARY_TEMPLATES) == set(CORE_INDICATORS)
        assert set(DISPLAY_WEIGHTS) == set(CORE_INDICATORS)

    def test_at_most_two_lines_in_weight_order(self, sample_history):
        snapshot = {
            "vix": 31.0,
            "hy_spread": 4.9,
            "initial_claims": 295000,
            "spy_vs_200ma": -4.5,
            "yield_curve_10y2y": 0.58,
        }
        lines = generate_extreme_commentary(_core(snapshot), sample_history)
        assert len(lines) == MAX_COMMENTARIES
        assert lines[0].startswith("하이일드 스프레드가 4.90%로 상위 0% 수준입니다.")
        assert lines[1].startswith("변동성지수가 31.0로 상위 0% 수준의 공포 구간입니다.")

    def test_low_reading_uses_low_template(self, sample_history):
        lines = generate_extreme_commentary(_core({"spy_vs_200ma": -4.5}), sample_history)
        assert lines == [
            "S&P500이 200일선 대비 -4.5%로 하위 5% 수준입니다. 기술적으로 저점 매수 구간입니다."
        ]

    def test_mid_percentile_yields_nothing(self, sample_history):
        assert generate_extreme_commentary(_core({"vix": 21.5}), sample_history) == []

    def test_short_history_skipped(self, sample_history):
        assert generate_extreme_commentary(_core({"vix": 31.0}), sample_history[:9]) == []

    def test_no_history(self):
        assert generate_extreme_commentary(_core({"vix": 31.0}), []) == []
