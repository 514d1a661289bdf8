"""
Indicator context handed to the chat assistant.

The assistant sees a compact Korean summary of the dashboard: the composite
score and stance, one line per scored indicator, a macro block from the latest
stored record, the day's moves of the first global indices and the suggested
allocation. Missing macro values are written as ``N/A``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from market_timing.models.market import IndexChange, MarketHistoryRecord
from market_timing.reporting.dashboard import DashboardView
from market_timing.utils.math_utils import round_int

MAX_GLOBAL_INDICES = 6


def _num(value: Optional[float], decimals: int) -> str:
    return f"{value:.{decimals}f}" if value is not None else "N/A"


def macro_summary(record: MarketHistoryRecord) -> str:
    """Growth / prices / labour / rates block of the latest stored record."""
    r = record
    return "\n".join([
        f"성장: GDP {_num(r.gdp_growth_qoq, 1)}%, ISM제조 {_num(r.ism_manufacturing, 1)}, "
        f"ISM서비스 {_num(r.ism_services, 1)}",
        f"물가: CPI {_num(r.cpi_yoy, 1)}%, Core CPI {_num(r.core_cpi_yoy, 1)}%, "
        f"PCE {_num(r.pce_yoy, 1)}%",
        f"고용: 실업률 {_num(r.unemployment_rate, 1)}%, 노동참가 {_num(r.labor_participation, 1)}%",
        f"금리: 10Y {_num(r.treasury_10y, 2)}%, 2Y {_num(r.treasury_2y, 2)}%, "
        f"달러 {_num(r.dollar_index, 1)}",
    ])


def global_summary(changes: Sequence[IndexChange], limit: int = MAX_GLOBAL_INDICES) -> str:
    moves = ", ".join(
        f"{c.name} {'+' if c.change_percent >= 0 else ''}{c.change_percent:.1f}%"
        for c in list(changes)[:limit]
    )
    return f"글로벌지수: {moves}"


def build_chat_context(
    view: DashboardView,
    latest_record: Optional[MarketHistoryRecord] = None,
    global_changes: Sequence[IndexChange] = (),
) -> str:
    """Plain-text market context for one chat question.

    Args:
        view: Dashboard view of the snapshot being discussed.
        latest_record: Newest stored record (macro block); omitted when None.
        global_changes: Latest index moves; omitted when empty.
    """
    info = view.stance_info
    sections = [f"투자매력도: {view.display_score}점 ({info.label})"]
    sections.extend(
        f"{s.name}: {s.display_value} ({round_int(s.final_score)}점)" for s in view.scores
    )
    if latest_record is not None:
        sections.append(macro_summary(latest_record))
    if global_changes:
        sections.append(global_summary(global_changes))
    sections.append(
        f"권장배분: 주식 {info.allocation.stocks}, 채권 {info.allocation.bonds}, "
        f"현금 {info.allocation.cash}"
    )
    return "\n".join(sections)
