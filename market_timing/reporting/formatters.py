"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept view objects / record lists and return plain
multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Score cells
-----------
Indicator rows show the final (timing-blended) score next to a 20-character
bar so the core table reads at a glance::

  HY Spread            3.10%        62  ############........
"""

from __future__ import annotations

from collections.abc import Sequence

from market_timing.models.market import IndexChange, MarketHistoryRecord
from market_timing.reporting.dashboard import DashboardView
from market_timing.scoring.indicators import IndicatorScore
from market_timing.scoring.stance import OutcomeStats
from market_timing.taxonomy.indicators import IndicatorTiming
from market_timing.utils.math_utils import round_int

_BAR_WIDTH = 20
_RULE = "=" * 64

_TIMING_LABELS: dict[IndicatorTiming, str] = {
    IndicatorTiming.LEADING: "Leading",
    IndicatorTiming.COINCIDENT: "Coincident",
    IndicatorTiming.LAGGING: "Lagging",
}


# ── Small helpers ─────────────────────────────────────────────────────────────


def score_bar(score: float, width: int = _BAR_WIDTH) -> str:
    """``#``/``.`` bar for a 0–100 score."""
    filled = max(0, min(width, round_int(score / 100 * width)))
    return "#" * filled + "." * (width - filled)


def _outcome_line(horizon: str, stats: OutcomeStats) -> str:
    return (
        f"  {horizon:<9} up {stats.up:>3.0f}% (avg {stats.avg_up:+.1f}%)"
        f" | down {stats.down:>3.0f}% (avg {stats.avg_down:+.1f}%)"
    )


def _score_rows(scores: Sequence[IndicatorScore]) -> list[str]:
    rows = []
    for s in scores:
        rows.append(
            f"  {s.name:<20} {s.display_value:>12}  {round_int(s.final_score):>3}  "
            f"{score_bar(s.final_score)}  [{_TIMING_LABELS[s.timing]}]"
        )
    return rows


# ── Dashboard ─────────────────────────────────────────────────────────────────


def format_dashboard_text(view: DashboardView) -> str:
    """Full plain-text dashboard for one snapshot."""
    info = view.stance_info
    as_of = view.as_of.isoformat() if view.as_of else "unknown date"

    lines = [
        _RULE,
        f"  Market Timing Dashboard  |  {as_of}",
        _RULE,
        f"  투자 매력도: {view.display_score}/100  ({view.composite_score:.2f})",
        f"  Stance:      {info.label}  [{view.stance.value}]",
        f"  1년 내 {view.ranking.one_year.rank}위 / {view.ranking.one_year.total}건"
        f"  |  전체 {view.ranking.all_history.rank}위 / {view.ranking.all_history.total}건",
        f"  Z = {view.distribution.z_display} ({view.distribution.label})",
        "",
        f"  {info.description}",
        "",
        f"  권장 배분: 주식 {info.allocation.stocks} / 채권 {info.allocation.bonds}"
        f" / 현금 {info.allocation.cash}",
        f"  Action: {info.action}",
        "",
        "  Backtest outcomes (2020-2026)",
        _outcome_line("4 weeks", view.stance_probability.week4),
        _outcome_line("12 weeks", view.stance_probability.week12),
        "",
    ]

    lines.append("-- Core indicators (composite-weighted) " + "-" * 24)
    lines.extend(_score_rows(view.core_scores) or ["  (no core indicators available)"])
    lines.append("")
    lines.append("-- Reference indicators " + "-" * 40)
    lines.extend(_score_rows(view.reference_scores) or ["  (no reference indicators available)"])

    if view.commentary:
        lines.append("")
        lines.append("-- Extreme levels " + "-" * 46)
        lines.extend(f"  * {line}" for line in view.commentary)

    lines.append(_RULE)
    return "\n".join(lines)


# ── History ───────────────────────────────────────────────────────────────────


def format_history_table(records: Sequence[MarketHistoryRecord]) -> str:
    """One row per stored day, newest first."""
    if not records:
        return "  No market history stored."

    def cell(value, fmt: str) -> str:
        return format(value, fmt) if value is not None else "-"

    header = (
        f"  {'Date':<10}  {'Score':>6}  {'F&G':>4}  {'VIX':>6}  {'SPYvs200':>8}"
        f"  {'HY':>6}  {'10Y-2Y':>7}  {'Claims':>8}"
    )
    lines = [header, "  " + "-" * (len(header) - 2)]
    for r in sorted(records, key=lambda rec: rec.date, reverse=True):
        lines.append(
            f"  {r.date.isoformat():<10}  {r.composite_score:>6.2f}"
            f"  {cell(r.fear_greed, '>4.0f'):>4}"
            f"  {cell(r.vix, '>6.2f'):>6}"
            f"  {cell(r.spy_vs_200ma, '>+8.2f'):>8}"
            f"  {cell(r.hy_spread, '>6.2f'):>6}"
            f"  {cell(r.yield_curve_10y2y, '>+7.2f'):>7}"
            f"  {cell(r.initial_claims, '>8,d'):>8}"
        )
    lines.append(f"\n  {len(records)} record(s)")
    return "\n".join(lines)


# ── Global indices ────────────────────────────────────────────────────────────


def format_global_changes(changes: Sequence[IndexChange]) -> str:
    """Latest close and daily change per index, grouped by region."""
    if not changes:
        return "  No global index changes available (need two stored closes per index)."

    lines: list[str] = []
    regions: list[str] = []
    for change in changes:
        if change.region not in regions:
            regions.append(change.region)

    for region in regions:
        lines.append(f"-- {region} " + "-" * 40)
        for c in changes:
            if c.region != region:
                continue
            lines.append(
                f"  {c.name:<16} {c.price:>12,.2f}  {c.change:>+10,.2f}  {c.change_percent:>+6.2f}%"
            )
    return "\n".join(lines)
