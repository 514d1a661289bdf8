"""
Indicator scoring layer: snapshot + history → one ``IndicatorScore`` per indicator.

Per-indicator pipeline
----------------------
1. base_raw  = normalize_score(value, min, max, invert)        # 0–100
2. base      = apply_extreme_cap(base_raw)                      # 15–85
3. momentum  = 50 when no value 13 records back, otherwise
               clamp(((base_raw − past_raw) + 30) / 60 * 100, 0, 100)
4. final     = apply_extreme_cap(base * w_current + momentum * w_momentum)

Timing weights (w_current / w_momentum)
---------------------------------------
    leading     0.5 / 0.5   direction-of-change matters most
    coincident  0.7 / 0.3
    lagging     0.9 / 0.1   current level matters most

The 13-record lookback approximates "three months ago" on the weekly-ish
history cadence. It does not look at dates: a short history uses its oldest
record, and gaps in the daily table are not compensated.

Every function here is pure. The indicator table, timing weights and caps are
immutable module constants passed as overridable default arguments.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

from market_timing.models.indicator import IndicatorObservation
from market_timing.taxonomy.indicators import (
    CORE_INDICATORS,
    IndicatorCategory,
    IndicatorKind,
    IndicatorTiming,
)
from market_timing.utils.math_utils import clamp

EXTREME_CAP_MIN = 15.0
EXTREME_CAP_MAX = 85.0
NEUTRAL_MOMENTUM = 50.0
MOMENTUM_LOOKBACK = 13
MOMENTUM_SWING = 30.0


# ── Display formatters ────────────────────────────────────────────────────────


def _signed(value: float, decimals: int) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{decimals}f}"


def _fmt_integer(value: float) -> str:
    return f"{value:.0f}"


def _fmt_one_decimal(value: float) -> str:
    return f"{value:.1f}"


def _fmt_signed_pct_1(value: float) -> str:
    return f"{_signed(value, 1)}%"


def _fmt_pct_0(value: float) -> str:
    return f"{value:.0f}%"


def _fmt_signed_pct_2(value: float) -> str:
    return f"{_signed(value, 2)}%"


def _fmt_signed_yoy(value: float) -> str:
    return f"{_signed(value, 1)}% YoY"


def _fmt_pct_2(value: float) -> str:
    return f"{value:.2f}%"


def _fmt_thousands(value: float) -> str:
    return f"{value / 1000:.0f}K"


# ── Specs ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimingWeights:
    """Blend weights of the current level vs. momentum; must sum to 1.0."""

    current: float
    momentum: float

    def __post_init__(self) -> None:
        if not math.isclose(self.current + self.momentum, 1.0):
            raise ValueError(
                f"Timing weights must sum to 1.0, got {self.current} + {self.momentum}."
            )


TIMING_WEIGHTS: Mapping[IndicatorTiming, TimingWeights] = MappingProxyType({
    IndicatorTiming.LEADING:    TimingWeights(current=0.5, momentum=0.5),
    IndicatorTiming.COINCIDENT: TimingWeights(current=0.7, momentum=0.3),
    IndicatorTiming.LAGGING:    TimingWeights(current=0.9, momentum=0.1),
})


@dataclass(frozen=True)
class IndicatorSpec:
    """Static scoring configuration for one indicator.

    Attributes:
        kind: Indicator identifier.
        min_value: Lower bound of the normalisation domain.
        max_value: Upper bound of the normalisation domain; must exceed ``min_value``.
        invert: ``True`` when a higher raw value is *less* attractive.
        category: Dashboard grouping.
        timing: Leading / coincident / lagging classification.
        field: Column name in snapshots and history records.
        range_label: Human-readable domain, e.g. ``"12-40"``.
        description: One-line reading guide (Korean, as published).
        meaning: What the indicator measures (Korean, as published).
        formatter: Raw value → display string.
    """

    kind: IndicatorKind
    min_value: float
    max_value: float
    invert: bool
    category: IndicatorCategory
    timing: IndicatorTiming
    field: str
    range_label: str
    description: str
    meaning: str
    formatter: Callable[[float], str]

    def __post_init__(self) -> None:
        if self.max_value <= self.min_value:
            raise ValueError(
                f"{self.kind}: max_value ({self.max_value}) must exceed "
                f"min_value ({self.min_value})."
            )

    def normalize(self, value: float) -> float:
        return normalize_score(value, self.min_value, self.max_value, self.invert)


DEFAULT_INDICATOR_SPECS: tuple[IndicatorSpec, ...] = (
    IndicatorSpec(
        kind=IndicatorKind.FEAR_GREED,
        min_value=0, max_value=100, invert=True,
        category=IndicatorCategory.SENTIMENT, timing=IndicatorTiming.LAGGING,
        field="fear_greed", range_label="0-100",
        description="낮을수록(공포) 매력 상승, 높을수록(탐욕) 매력 하락",
        meaning="CNN이 제공하는 시장 심리 지수. 투자자들의 감정 상태를 0(극단적 공포)~100(극단적 탐욕)으로 측정",
        formatter=_fmt_integer,
    ),
    IndicatorSpec(
        kind=IndicatorKind.VIX,
        min_value=12, max_value=40, invert=False,
        category=IndicatorCategory.SENTIMENT, timing=IndicatorTiming.COINCIDENT,
        field="vix", range_label="12-40",
        description="높을수록(공포) 매력 상승. 40+ 패닉은 적극 매수 구간",
        meaning="S&P 500 옵션 가격에서 산출되는 향후 30일 예상 변동성. 시장 불안감의 척도",
        formatter=_fmt_one_decimal,
    ),
    IndicatorSpec(
        kind=IndicatorKind.SPY_VS_200MA,
        min_value=-10, max_value=10, invert=True,
        category=IndicatorCategory.SENTIMENT, timing=IndicatorTiming.COINCIDENT,
        field="spy_vs_200ma", range_label="-10% ~ +10%",
        description="200일선 아래일수록 매력 상승 (저점 매수 기회)",
        meaning="S&P 500 지수가 200일 이동평균선 대비 얼마나 위/아래에 있는지를 나타냄",
        formatter=_fmt_signed_pct_1,
    ),
    IndicatorSpec(
        kind=IndicatorKind.BUFFETT_INDICATOR,
        min_value=80, max_value=250, invert=True,
        category=IndicatorCategory.VALUATION, timing=IndicatorTiming.LAGGING,
        field="buffett_indicator", range_label="80-250%",
        description="시총/GDP 비율. 낮을수록(저평가) 매력 상승",
        meaning="미국 주식시장 총 시가총액을 GDP로 나눈 비율. 워런 버핏이 선호하는 밸류에이션 지표",
        formatter=_fmt_pct_0,
    ),
    IndicatorSpec(
        kind=IndicatorKind.EQUITY_RISK_PREMIUM,
        min_value=-2, max_value=6, invert=False,
        category=IndicatorCategory.VALUATION, timing=IndicatorTiming.COINCIDENT,
        field="erp", range_label="-2% ~ +6%",
        description="채권 대비 주식 초과수익률. 높을수록 매력 상승",
        meaning="주식 기대수익률에서 무위험 채권 수익률을 뺀 값. 주식 투자의 위험 보상 수준",
        formatter=_fmt_signed_pct_2,
    ),
    IndicatorSpec(
        kind=IndicatorKind.FED_BALANCE_SHEET,
        min_value=-5, max_value=15, invert=True,
        category=IndicatorCategory.LIQUIDITY, timing=IndicatorTiming.LEADING,
        field="fed_balance_sheet_yoy", range_label="-5% ~ +15%",
        description="긴축(QT) 중일수록 매력 상승. 완화 전환 시 상승 여력",
        meaning="연준 자산 규모의 연간 변화율. 양적완화(QE) 또는 긴축(QT) 상태를 보여줌",
        formatter=_fmt_signed_yoy,
    ),
    IndicatorSpec(
        kind=IndicatorKind.M2_GROWTH,
        min_value=-5, max_value=10, invert=True,
        category=IndicatorCategory.LIQUIDITY, timing=IndicatorTiming.LEADING,
        field="m2_growth_yoy", range_label="-5% ~ +10%",
        description="통화량 감소 중일수록 매력 상승. 확대 전환 시 상승 여력",
        meaning="광의통화(현금+예금+MMF 등) 공급량의 연간 변화율. 시중 유동성 수준을 나타냄",
        formatter=_fmt_signed_yoy,
    ),
    IndicatorSpec(
        kind=IndicatorKind.HY_SPREAD,
        min_value=2.5, max_value=8, invert=False,
        category=IndicatorCategory.CREDIT, timing=IndicatorTiming.LEADING,
        field="hy_spread", range_label="2.5-8%",
        description="높을수록(신용위기 우려) 매력 상승. 6%+ 위기 = 기회",
        meaning="고수익(정크) 채권 수익률과 국채 수익률의 차이. 기업 신용 리스크 척도",
        formatter=_fmt_pct_2,
    ),
    IndicatorSpec(
        kind=IndicatorKind.YIELD_CURVE_10Y2Y,
        min_value=-1, max_value=2, invert=False,
        category=IndicatorCategory.MACRO, timing=IndicatorTiming.LEADING,
        field="yield_curve_10y2y", range_label="-1% ~ +2%",
        description="정상(+)일수록 매력 상승. 역전(-) = 침체 우려",
        meaning="10년물 국채 수익률에서 2년물을 뺀 차이. 역전 시 경기침체 신호로 해석",
        formatter=_fmt_signed_pct_2,
    ),
    IndicatorSpec(
        kind=IndicatorKind.YIELD_CURVE_10Y3M,
        min_value=-1, max_value=2, invert=False,
        category=IndicatorCategory.MACRO, timing=IndicatorTiming.LEADING,
        field="yield_curve_10y3m", range_label="-1% ~ +2%",
        description="연준 중시 지표. 정상(+)일수록 매력 상승",
        meaning="10년물 국채 수익률에서 3개월물을 뺀 차이. 연준이 중시하는 경기 선행 지표",
        formatter=_fmt_signed_pct_2,
    ),
    IndicatorSpec(
        kind=IndicatorKind.INITIAL_CLAIMS,
        min_value=200_000, max_value=400_000, invert=False,
        category=IndicatorCategory.MACRO, timing=IndicatorTiming.COINCIDENT,
        field="initial_claims", range_label="200K-400K",
        description="높을수록(실업 증가) 매력 상승. 바닥 신호 = 반등 기대",
        meaning="처음으로 실업수당을 신청한 주간 인원수. 노동시장 건강 상태를 실시간으로 반영",
        formatter=_fmt_thousands,
    ),
)

SPECS_BY_KIND: Mapping[IndicatorKind, IndicatorSpec] = MappingProxyType(
    {spec.kind: spec for spec in DEFAULT_INDICATOR_SPECS}
)


# ── Score record ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class IndicatorScore:
    """Derived, ephemeral score of one indicator (never persisted).

    Attributes:
        kind:           Indicator identifier.
        display_value:  Formatted raw value, e.g. ``"+3.2%"``.
        raw_value:      Unformatted current value.
        base_score:     Capped normalised level, 15–85.
        momentum_score: 0–100, 50 = unchanged over the lookback.
        final_score:    Capped timing-weighted blend, 15–85.
        category:       Dashboard grouping.
        value_range:    ``(min, max)`` normalisation domain.
        range_label:    Human-readable domain.
        description:    One-line reading guide.
        timing:         Leading / coincident / lagging.
    """

    kind:           IndicatorKind
    display_value:  str
    raw_value:      float
    base_score:     float
    momentum_score: float
    final_score:    float
    category:       IndicatorCategory
    value_range:    tuple[float, float]
    range_label:    str
    description:    str
    timing:         IndicatorTiming

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def is_core(self) -> bool:
        return self.kind in CORE_INDICATORS


# ── Primitives ────────────────────────────────────────────────────────────────


def normalize_score(value: float, lo: float, hi: float, invert: bool = False) -> float:
    """Map ``value`` linearly from ``[lo, hi]`` to ``[0, 100]``.

    Out-of-range values are clamped to the boundary first. With ``invert``
    the result is mirrored (``100 − x``).
    """
    normalized = (clamp(value, lo, hi) - lo) / (hi - lo) * 100
    return 100 - normalized if invert else normalized


def apply_extreme_cap(
    score: float,
    min_cap: float = EXTREME_CAP_MIN,
    max_cap: float = EXTREME_CAP_MAX,
) -> float:
    """Clamp a score to ``[min_cap, max_cap]`` (default 15–85)."""
    return clamp(score, min_cap, max_cap)


def momentum_score(current_raw: float, past_raw: Optional[float]) -> float:
    """Momentum of an uncapped score vs. its lookback value.

    Zero change maps to 50; a ±30-point swing saturates at 100 / 0.
    Returns exactly 50 when ``past_raw`` is ``None``.
    """
    if past_raw is None:
        return NEUTRAL_MOMENTUM
    change = current_raw - past_raw
    return clamp((change + MOMENTUM_SWING) / (2 * MOMENTUM_SWING) * 100, 0.0, 100.0)


def record_value(record: Any, field: str) -> Optional[float]:
    """Read a numeric ``field`` from a history record, snapshot or mapping.

    Returns ``None`` for missing, null, boolean and non-numeric values.
    """
    if isinstance(record, Mapping):
        val = record.get(field)
    else:
        val = getattr(record, field, None)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    if not math.isfinite(val):
        return None
    return float(val)


def lookback_value(
    history: Sequence[Any],
    field: str,
    lookback: int = MOMENTUM_LOOKBACK,
) -> Optional[float]:
    """Value of ``field`` in ``history[max(0, len − lookback)]``.

    ``history`` is chronological (oldest first). Returns ``None`` when the
    history is empty or that record has no usable value for ``field``.
    """
    if not history:
        return None
    return record_value(history[max(0, len(history) - lookback)], field)


# ── Scoring ───────────────────────────────────────────────────────────────────


def score_indicator(
    spec: IndicatorSpec,
    value: float,
    history: Sequence[Any] = (),
    timing_weights: Mapping[IndicatorTiming, TimingWeights] = TIMING_WEIGHTS,
) -> IndicatorScore:
    """Score one indicator's current ``value`` against its lookback history."""
    base_raw = spec.normalize(value)
    base = apply_extreme_cap(base_raw)

    past_value = lookback_value(history, spec.field)
    past_raw = spec.normalize(past_value) if past_value is not None else None
    momentum = momentum_score(base_raw, past_raw)

    weights = timing_weights[spec.timing]
    final = apply_extreme_cap(base * weights.current + momentum * weights.momentum)

    return IndicatorScore(
        kind=spec.kind,
        display_value=spec.formatter(value),
        raw_value=value,
        base_score=base,
        momentum_score=momentum,
        final_score=final,
        category=spec.category,
        value_range=(spec.min_value, spec.max_value),
        range_label=spec.range_label,
        description=spec.description,
        timing=spec.timing,
    )


def calculate_indicator_scores(
    snapshot: Any,
    history: Sequence[Any] = (),
    specs: Sequence[IndicatorSpec] = DEFAULT_INDICATOR_SPECS,
    timing_weights: Mapping[IndicatorTiming, TimingWeights] = TIMING_WEIGHTS,
) -> list[IndicatorScore]:
    """Score every indicator present in ``snapshot``.

    Args:
        snapshot: ``MarketIndicators``, ``MarketHistoryRecord`` or a mapping
            keyed by storage column name.
        history: Chronological (oldest first) history records for momentum.
        specs: Indicator table; output follows its order.
        timing_weights: Blend weights per timing class.

    Returns:
        One ``IndicatorScore`` per indicator whose current value is present.
        Absent indicators are omitted, never represented by a placeholder.
    """
    scores: list[IndicatorScore] = []
    for spec in specs:
        value = record_value(snapshot, spec.field)
        if value is None:
            continue
        scores.append(score_indicator(spec, value, history, timing_weights))
    return scores


def group_by_timing(
    scores: Sequence[IndicatorScore],
) -> dict[IndicatorTiming, list[IndicatorScore]]:
    """Bucket scores by timing class; every class is present, possibly empty."""
    groups: dict[IndicatorTiming, list[IndicatorScore]] = {t: [] for t in IndicatorTiming}
    for score in scores:
        groups[score.timing].append(score)
    return groups


def split_core_and_reference(
    scores: Sequence[IndicatorScore],
) -> tuple[list[IndicatorScore], list[IndicatorScore]]:
    """Split into (composite-weighted core, informative reference) lists."""
    core = [s for s in scores if s.is_core]
    reference = [s for s in scores if not s.is_core]
    return core, reference


def indicator_observations(
    history: Sequence[Any],
    kind: IndicatorKind,
    specs_by_kind: Mapping[IndicatorKind, IndicatorSpec] = SPECS_BY_KIND,
) -> list[IndicatorObservation]:
    """Dated observations of one indicator across ``history``, nulls dropped.

    History records must expose ``date``; the output keeps the input order.
    """
    field = specs_by_kind[kind].field
    observations = []
    for record in history:
        value = record_value(record, field)
        if value is None:
            continue
        observations.append(IndicatorObservation(name=kind, raw_value=value, date=record.date))
    return observations
