"""Tests for the ASCII terminal formatters."""

from __future__ import annotations

from datetime import date

from market_timing.models.market import IndexChange
from market_timing.reporting.dashboard import build_dashboard
from market_timing.reporting.formatters import (
    format_dashboard_text,
    format_global_changes,
    format_history_table,
    score_bar,
)

TODAY = date(2026, 1, 15)


class TestScoreBar:
    def test_widths(self):
        assert score_bar(0) == "." * 20
        assert score_bar(50) == "#" * 10 + "." * 10
        assert score_bar(100) == "#" * 20

    def test_clamped(self):
        assert score_bar(150) == "#" * 20
        assert score_bar(-10) == "." * 20


class TestDashboardText:
    def test_headline_sections(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        text = format_dashboard_text(view)
        assert "2026-01-15" in text
        assert f"투자 매력도: {view.display_score}/100" in text
        assert view.stance_info.label in text
        assert f"[{view.stance.value}]" in text
        assert "Core indicators" in text
        assert "Reference indicators" in text
        assert "HY Spread" in text
        assert "4 weeks" in text and "12 weeks" in text

    def test_commentary_listed(self, sample_history):
        view = build_dashboard(sample_history, today=TODAY)
        text = format_dashboard_text(view)
        for line in view.commentary:
            assert f"* {line}" in text

    def test_empty_tables(self, make_record):
        view = build_dashboard([make_record(TODAY)], today=TODAY)
        text = format_dashboard_text(view)
        assert "(no core indicators available)" in text
        assert "Extreme levels" not in text


class TestHistoryTable:
    def test_empty(self):
        assert format_history_table([]) == "  No market history stored."

    def test_newest_first_with_placeholders(self, make_record):
        records = [
            make_record(date(2026, 1, 1), composite_score=48.5, vix=21.0),
            make_record(date(2026, 1, 2), composite_score=51.25, initial_claims=231000),
        ]
        text = format_history_table(records)
        body = text.splitlines()
        assert body[2].lstrip().startswith("2026-01-02")
        assert body[3].lstrip().startswith("2026-01-01")
        assert "231,000" in body[2]
        assert " - " in body[3] or body[3].rstrip().endswith("-")
        assert "2 record(s)" in text


class TestGlobalChanges:
    def test_grouped_by_region(self):
        changes = [
            IndexChange(symbol="^GSPC", name="S&P 500", region="미국",
                        price=6060.0, change=60.0, change_percent=1.0),
            IndexChange(symbol="^KS11", name="KOSPI", region="아시아",
                        price=2500.0, change=-25.0, change_percent=-0.99),
        ]
        text = format_global_changes(changes)
        lines = text.splitlines()
        assert lines[0].startswith("-- 미국")
        assert "S&P 500" in lines[1] and "+1.00%" in lines[1]
        assert lines[2].startswith("-- 아시아")
        assert "-0.99%" in lines[3]

    def test_empty(self):
        assert "No global index changes" in format_global_changes([])
