"""Tests for the market context handed to the chat assistant."""

from __future__ import annotations

from datetime import date

from market_timing.models.market import IndexChange
from market_timing.reporting.chat_context import (
    MAX_GLOBAL_INDICES,
    build_chat_context,
    global_summary,
    macro_summary,
)
from market_timing.reporting.dashboard import build_dashboard


def _change(name: str, pct: float) -> IndexChange:
    return IndexChange(symbol=name, name=name, region="미국", price=100.0,
                       change=pct, change_percent=pct)


class TestMacroSummary:
    def test_populated(self, sample_record):
        lines = macro_summary(sample_record).splitlines()
        assert lines[0] == "성장: GDP 2.8%, ISM제조 12700.0, ISM서비스 52.1"
        assert lines[1] == "물가: CPI 2.7%, Core CPI 3.1%, PCE 2.5%"
        assert lines[2] == "고용: 실업률 4.2%, 노동참가 62.5%"
        assert lines[3] == "금리: 10Y 4.45%, 2Y 4.00%, 달러 104.3"

    def test_missing_values(self, make_record):
        text = macro_summary(make_record(date(2026, 1, 2)))
        assert "CPI N/A%" in text
        assert "달러 N/A" in text


class TestGlobalSummary:
    def test_signed_moves(self):
        text = global_summary([_change("S&P 500", 1.04), _change("DAX", -0.31)])
        assert text == "글로벌지수: S&P 500 +1.0%, DAX -0.3%"

    def test_limited(self):
        changes = [_change(f"I{i}", 0.0) for i in range(10)]
        assert global_summary(changes).count("%") == MAX_GLOBAL_INDICES


class TestBuildChatContext:
    def test_layout(self, sample_record):
        view = build_dashboard([sample_record], today=date(2026, 1, 15))
        context = build_chat_context(view, sample_record, [_change("S&P 500", 0.5)])
        lines = context.splitlines()

        assert lines[0] == f"투자매력도: {view.display_score}점 ({view.stance_info.label})"
        assert any(line.startswith("VIX: 18.5 (") and line.endswith("점)") for line in lines)
        assert "성장: GDP 2.8%, ISM제조 12700.0, ISM서비스 52.1" in lines
        assert "글로벌지수: S&P 500 +0.5%" in lines
        info = view.stance_info
        assert lines[-1] == (
            f"권장배분: 주식 {info.allocation.stocks}, 채권 {info.allocation.bonds}, "
            f"현금 {info.allocation.cash}"
        )

    def test_optional_sections_omitted(self, sample_record):
        view = build_dashboard([sample_record], today=date(2026, 1, 15))
        context = build_chat_context(view)
        assert "성장:" not in context
        assert "글로벌지수" not in context
        assert len(context.splitlines()) == len(view.scores) + 2
