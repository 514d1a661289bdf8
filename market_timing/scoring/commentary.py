"""
Percentile position of core indicators and the "extreme reading" commentary.

For each core indicator, the current raw value is ranked against its full
history (nulls dropped, sorted ascending)::

    rank       = count(history <= current)
    percentile = round_half_up(rank / len(history) * 100)

A reading at percentile <= 20 or >= 80 is *extreme* and earns one Korean
commentary line. Indicators are visited in descending display-weight order,
indicators with fewer than 10 historical points are skipped, and at most two
lines are returned.

Templates are dispatched through ``COMMENTARY_TEMPLATES``, one function per
core ``IndicatorKind``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from market_timing.scoring.indicators import SPECS_BY_KIND, IndicatorScore, record_value
from market_timing.taxonomy.indicators import IndicatorKind
from market_timing.utils.math_utils import round_int

MIN_HISTORY_POINTS = 10
MAX_COMMENTARIES = 2
EXTREME_LOW_PERCENTILE = 20
EXTREME_HIGH_PERCENTILE = 80

# Composite weights as shown on the dashboard (percent).
DISPLAY_WEIGHTS: Mapping[IndicatorKind, float] = MappingProxyType({
    IndicatorKind.HY_SPREAD:         28.1,
    IndicatorKind.VIX:               25.7,
    IndicatorKind.INITIAL_CLAIMS:    23.5,
    IndicatorKind.SPY_VS_200MA:      16.3,
    IndicatorKind.YIELD_CURVE_10Y2Y: 6.3,
})

KOREAN_NAMES: Mapping[IndicatorKind, str] = MappingProxyType({
    IndicatorKind.FEAR_GREED:          "공포탐욕지수",
    IndicatorKind.VIX:                 "변동성지수",
    IndicatorKind.SPY_VS_200MA:        "S&P 200일선 대비",
    IndicatorKind.BUFFETT_INDICATOR:   "버핏지표",
    IndicatorKind.EQUITY_RISK_PREMIUM: "주식위험프리미엄",
    IndicatorKind.FED_BALANCE_SHEET:   "연준 대차대조표",
    IndicatorKind.M2_GROWTH:           "M2 통화량",
    IndicatorKind.HY_SPREAD:           "하이일드 스프레드",
    IndicatorKind.YIELD_CURVE_10Y2Y:   "장단기금리차 10Y-2Y",
    IndicatorKind.YIELD_CURVE_10Y3M:   "장단기금리차 10Y-3M",
    IndicatorKind.INITIAL_CLAIMS:      "신규실업수당청구",
})


@dataclass(frozen=True)
class PercentilePosition:
    """Where the current reading sits within its own history."""

    rank: int
    percentile: int

    @property
    def is_extreme(self) -> bool:
        return is_extreme(self.percentile)

    @property
    def is_low(self) -> bool:
        return self.percentile <= EXTREME_LOW_PERCENTILE

    @property
    def label(self) -> str:
        """``"하위 N%"`` for low readings, ``"상위 N%"`` otherwise."""
        if self.is_low:
            return f"하위 {self.percentile}%"
        return f"상위 {100 - self.percentile}%"


def percentile_rank(sorted_values: Sequence[float], current: float) -> tuple[int, int]:
    """Return ``(rank, percentile)`` of ``current`` in ascending ``sorted_values``.

    Raises:
        ValueError: If ``sorted_values`` is empty.
    """
    if not sorted_values:
        raise ValueError("percentile_rank() needs at least one historical value.")
    rank = sum(1 for v in sorted_values if v <= current)
    return rank, round_int(rank / len(sorted_values) * 100)


def is_extreme(percentile: float) -> bool:
    return percentile <= EXTREME_LOW_PERCENTILE or percentile >= EXTREME_HIGH_PERCENTILE


def history_values(history: Sequence[Any], field: str) -> list[float]:
    """Non-null values of ``field`` across ``history``, sorted ascending."""
    values = (record_value(record, field) for record in history)
    return sorted(v for v in values if v is not None)


# ── Templates ─────────────────────────────────────────────────────────────────

TemplateFn = Callable[[str, str, PercentilePosition], str]


def _vix_template(name: str, value: str, pos: PercentilePosition) -> str:
    if pos.is_low:
        return f"{name}가 {value}로 {pos.label} 수준입니다. 시장 안도감이 높아 조정 가능성에 유의하세요."
    return f"{name}가 {value}로 {pos.label} 수준의 공포 구간입니다. 역사적으로 높은 VIX는 매수 기회였습니다."


def _hy_spread_template(name: str, value: str, pos: PercentilePosition) -> str:
    if pos.is_low:
        return f"{name}가 {value}로 {pos.label} 수준입니다. 신용 리스크 경계심이 낮아 주의가 필요합니다."
    return f"{name}가 {value}로 {pos.label} 수준입니다. 신용 스트레스가 높지만 역발상 매수 기회일 수 있습니다."


def _initial_claims_template(name: str, value: str, pos: PercentilePosition) -> str:
    if pos.is_low:
        return f"{name}가 {value}로 {pos.label} 수준입니다. 고용시장이 과열 상태로 긴축 지속 가능성이 있습니다."
    return f"{name}가 {value}로 {pos.label} 수준입니다. 고용 악화는 연준 완화 전환 신호일 수 있습니다."


def _spy_vs_200ma_template(name: str, value: str, pos: PercentilePosition) -> str:
    if pos.is_low:
        return f"S&P500이 200일선 대비 {value}로 {pos.label} 수준입니다. 기술적으로 저점 매수 구간입니다."
    return f"S&P500이 200일선 대비 {value}로 {pos.label} 수준입니다. 과열 구간으로 추격 매수는 주의하세요."


def _yield_curve_template(name: str, value: str, pos: PercentilePosition) -> str:
    if pos.is_low:
        return (
            f"{name}가 {value}로 {pos.label} 수준의 역전 상태입니다. "
            "경기 침체 우려가 있지만 주가는 선반영하는 경향이 있습니다."
        )
    return f"{name}가 {value}로 정상화되어 {pos.label} 수준입니다. 경기 회복 기대가 반영되고 있습니다."


COMMENTARY_TEMPLATES: Mapping[IndicatorKind, TemplateFn] = MappingProxyType({
    IndicatorKind.VIX:               _vix_template,
    IndicatorKind.HY_SPREAD:         _hy_spread_template,
    IndicatorKind.INITIAL_CLAIMS:    _initial_claims_template,
    IndicatorKind.SPY_VS_200MA:      _spy_vs_200ma_template,
    IndicatorKind.YIELD_CURVE_10Y2Y: _yield_curve_template,
})


def generate_extreme_commentary(
    core_scores: Sequence[IndicatorScore],
    history: Sequence[Any],
    display_weights: Mapping[IndicatorKind, float] = DISPLAY_WEIGHTS,
    templates: Mapping[IndicatorKind, TemplateFn] = COMMENTARY_TEMPLATES,
) -> list[str]:
    """Commentary lines for core indicators at historically extreme levels.

    Args:
        core_scores: Scores of the core indicators (any order).
        history: Full history records; order does not matter.
        display_weights: Visit order, highest weight first.
        templates: Kind → template function.

    Returns:
        At most ``MAX_COMMENTARIES`` lines.
    """
    ordered = sorted(
        core_scores,
        key=lambda s: display_weights.get(s.kind, 0.0),
        reverse=True,
    )

    lines: list[str] = []
    for score in ordered:
        template = templates.get(score.kind)
        spec = SPECS_BY_KIND.get(score.kind)
        if template is None or spec is None:
            continue

        values = history_values(history, spec.field)
        if len(values) < MIN_HISTORY_POINTS:
            continue

        rank, percentile = percentile_rank(values, score.raw_value)
        position = PercentilePosition(rank=rank, percentile=percentile)
        if position.is_extreme:
            lines.append(template(KOREAN_NAMES[score.kind], score.display_value, position))

        if len(lines) >= MAX_COMMENTARIES:
            break
    return lines
