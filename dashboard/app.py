"""
Market Timing Dashboard — Streamlit UI
======================================

Optional local analysis UI. Reads the SQLite history only; it does NOT
trigger collection. Run ``market-timing collect`` / ``collect-global`` (or
the scheduler) to refresh the data.

App structure (4 tabs)
----------------------
  1. Overview         — composite score, stance, allocation, ranking,
                        distribution position, extreme-level commentary,
                        core / reference indicator scores, chat assistant.
  2. Timing           — indicators grouped leading / coincident / lagging,
                        with their stored history.
  3. Macro            — growth, prices, labour and rates from the newest record.
  4. Global Indices   — latest close and daily change per region.

A date slider in the sidebar selects which stored day the overview scores.

Usage
-----
    pip install -e ".[dashboard]"
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# ── Ensure project root is importable ────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import streamlit as st

# ── Must be the first Streamlit call ─────────────────────────────────────────
st.set_page_config(
    page_title="Market Timing Dashboard",
    layout="wide",
    initial_sidebar_state="expanded",
)

import pandas as pd

from dashboard.data_loader import load_global_changes, load_global_closes, load_history
from market_timing.chat.gemini_client import ChatError, GeminiChatClient
from market_timing.config import gemini_api_key, load_config
from market_timing.ingestion.catalog import GLOBAL_REGIONS
from market_timing.models.market import MarketIndicators
from market_timing.reporting.chat_context import build_chat_context
from market_timing.reporting.dashboard import build_dashboard
from market_timing.scoring.indicators import indicator_observations
from market_timing.taxonomy.indicators import IndicatorTiming

_CONFIG = load_config()
_DB_PATH = str(_ROOT / _CONFIG.database.db_path)

_TIMING_TITLES = {
    IndicatorTiming.LEADING: "선행 지표 (Leading)",
    IndicatorTiming.COINCIDENT: "동행 지표 (Coincident)",
    IndicatorTiming.LAGGING: "후행 지표 (Lagging)",
}


# ── Data ──────────────────────────────────────────────────────────────────────

history = load_history(_DB_PATH)

with st.sidebar:
    st.title("Market Timing")
    st.caption("Local dashboard — reads the SQLite history only")
    st.divider()

    selected = None
    if history:
        dates = [r.date for r in history]
        selected_date = st.select_slider(
            "조회 날짜",
            options=dates,
            value=dates[-1],
            format_func=lambda d: d.isoformat(),
        )
        selected = next(r for r in history if r.date == selected_date)
        if selected_date == dates[-1]:
            st.caption("최신")

    if st.button("Clear cache", help="Force re-read the database."):
        st.cache_data.clear()
        st.rerun()

    st.divider()
    st.caption("Refresh data:")
    st.code("market-timing collect\nmarket-timing collect-global")


def _no_data_msg(command: str) -> None:
    st.info(f"No data available yet. Run `market-timing {command}` first.")


def _score_table(scores) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Indicator": s.name,
                "Value": s.display_value,
                "Score": round(s.final_score),
                "Base": round(s.base_score, 1),
                "Momentum": round(s.momentum_score, 1),
                "Range": s.range_label,
                "Reading": s.description,
            }
            for s in scores
        ]
    )


view = None
if selected is not None:
    view = build_dashboard(history, MarketIndicators.from_history_record(selected))


# ── Tabs ──────────────────────────────────────────────────────────────────────

tab_overview, tab_timing, tab_macro, tab_global = st.tabs(
    ["Overview", "Timing", "Macro", "Global Indices"]
)


# ══════════════════════════════════════════════════════════════════════════════
# Tab 1: Overview
# ══════════════════════════════════════════════════════════════════════════════

with tab_overview:
    if view is None:
        _no_data_msg("collect")
    else:
        info = view.stance_info
        st.markdown(
            f"<h2 style='color:{info.color}'>{info.label}</h2>",
            unsafe_allow_html=True,
        )

        c1, c2, c3 = st.columns(3)
        c1.metric("투자 매력도", f"{view.display_score}/100")
        c2.metric(
            "1년 내 순위",
            f"{view.ranking.one_year.rank}위 / {view.ranking.one_year.total}건",
        )
        c3.metric(
            "전체 순위",
            f"{view.ranking.all_history.rank}위 / {view.ranking.all_history.total}건",
        )
        st.caption(f"역사적 분포 내 위치: Z = {view.distribution.z_display} ({view.distribution.label})")

        st.write(info.description)
        a1, a2, a3 = st.columns(3)
        a1.metric("주식", info.allocation.stocks)
        a2.metric("채권", info.allocation.bonds)
        a3.metric("현금", info.allocation.cash)
        st.info(info.action)

        prob = view.stance_probability
        st.subheader("Backtest outcomes (2020-2026)")
        st.dataframe(
            pd.DataFrame(
                [
                    {"Horizon": "4 weeks", "Up %": prob.week4.up, "Avg up %": prob.week4.avg_up,
                     "Down %": prob.week4.down, "Avg down %": prob.week4.avg_down},
                    {"Horizon": "12 weeks", "Up %": prob.week12.up, "Avg up %": prob.week12.avg_up,
                     "Down %": prob.week12.down, "Avg down %": prob.week12.avg_down},
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )

        for line in view.commentary:
            st.warning(line)

        st.subheader("Core indicators")
        st.dataframe(_score_table(view.core_scores), use_container_width=True, hide_index=True)
        st.subheader("Reference indicators")
        st.dataframe(_score_table(view.reference_scores), use_container_width=True, hide_index=True)

        st.subheader("Composite score history")
        st.line_chart(
            pd.DataFrame(
                {"composite_score": [r.composite_score for r in history]},
                index=pd.to_datetime([r.date for r in history]),
            )
        )

        # ── Chat assistant ─────────────────────────────────────────────────
        st.subheader("AI 시장 분석")
        question = st.text_input("질문", placeholder="지금 목돈을 넣어도 될까요?")
        if st.button("질문하기") and question.strip():
            context = build_chat_context(view, history[-1], load_global_changes(_DB_PATH))
            try:
                with GeminiChatClient.from_config(_CONFIG.chat, gemini_api_key()) as chat:
                    st.write(chat.ask(question, context, selected.date.isoformat()))
            except (ChatError, RuntimeError) as exc:
                st.error(f"죄송합니다. 응답을 생성하는 중 오류가 발생했습니다. ({exc})")


# ══════════════════════════════════════════════════════════════════════════════
# Tab 2: Timing
# ══════════════════════════════════════════════════════════════════════════════

with tab_timing:
    if view is None:
        _no_data_msg("collect")
    else:
        for timing, scores in view.scores_by_timing.items():
            st.header(_TIMING_TITLES[timing])
            if not scores:
                st.caption("No indicators available.")
                continue
            st.dataframe(_score_table(scores), use_container_width=True, hide_index=True)
            for s in scores:
                points = indicator_observations(history, s.kind)
                if len(points) < 2:
                    continue
                with st.expander(f"{s.name} history"):
                    st.line_chart(
                        pd.DataFrame(
                            {s.name: [p.raw_value for p in points]},
                            index=pd.to_datetime([p.date for p in points]),
                        )
                    )


# ══════════════════════════════════════════════════════════════════════════════
# Tab 3: Macro
# ══════════════════════════════════════════════════════════════════════════════

def _fmt(value, suffix: str = "", decimals: int = 1) -> str:
    return f"{value:.{decimals}f}{suffix}" if value is not None else "N/A"


with tab_macro:
    if not history:
        _no_data_msg("collect")
    else:
        latest = history[-1]
        st.caption(f"As of {latest.date.isoformat()}")

        st.subheader("성장")
        g1, g2, g3, g4 = st.columns(4)
        g1.metric("GDP QoQ", _fmt(latest.gdp_growth_qoq, "%"))
        g2.metric("ISM 제조", _fmt(latest.ism_manufacturing))
        g3.metric("ISM 서비스", _fmt(latest.ism_services))
        g4.metric("소매판매 YoY", _fmt(latest.retail_sales_yoy, "%"))

        st.subheader("물가")
        p1, p2, p3, p4, p5 = st.columns(5)
        p1.metric("CPI", _fmt(latest.cpi_yoy, "%"))
        p2.metric("Core CPI", _fmt(latest.core_cpi_yoy, "%"))
        p3.metric("PCE", _fmt(latest.pce_yoy, "%"))
        p4.metric("Core PCE", _fmt(latest.core_pce_yoy, "%"))
        p5.metric("PPI", _fmt(latest.ppi_yoy, "%"))

        st.subheader("고용")
        e1, e2, e3, e4 = st.columns(4)
        payrolls = latest.nonfarm_payrolls_mom
        e1.metric("비농업 고용", f"{payrolls / 1000:+.0f}K" if payrolls is not None else "N/A")
        e2.metric("실업률", _fmt(latest.unemployment_rate, "%"))
        e3.metric("노동참가율", _fmt(latest.labor_participation, "%"))
        claims = latest.initial_claims
        e4.metric("신규 실업수당", f"{claims / 1000:.0f}K" if claims is not None else "N/A")

        st.subheader("금리 · 달러")
        r1, r2, r3, r4 = st.columns(4)
        r1.metric("10Y", _fmt(latest.treasury_10y, "%", 2))
        r2.metric("2Y", _fmt(latest.treasury_2y, "%", 2))
        r3.metric("10Y-2Y", _fmt(latest.yield_curve_10y2y, "%", 2))
        r4.metric("달러 인덱스", _fmt(latest.dollar_index))


# ══════════════════════════════════════════════════════════════════════════════
# Tab 4: Global Indices
# ══════════════════════════════════════════════════════════════════════════════

with tab_global:
    changes = load_global_changes(_DB_PATH)
    if not changes:
        _no_data_msg("collect-global")
    else:
        closes = load_global_closes(_DB_PATH)
        for region in GLOBAL_REGIONS:
            region_changes = [c for c in changes if c.region == region]
            if not region_changes:
                continue
            st.header(region)
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "Index": c.name,
                            "Price": round(c.price, 2),
                            "Change": round(c.change, 2),
                            "Change %": round(c.change_percent, 2),
                        }
                        for c in region_changes
                    ]
                ),
                use_container_width=True,
                hide_index=True,
            )
            for c in region_changes:
                series = [r for r in closes if r.symbol == c.symbol]
                with st.expander(f"{c.name} history"):
                    st.line_chart(
                        pd.DataFrame(
                            {"close": [r.close_price for r in series]},
                            index=pd.to_datetime([r.date for r in series]),
                        )
                    )
