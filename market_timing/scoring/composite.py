"""
Composite score engine: five core indicators → one bounded 0–100 score.

Formula
-------
For every core indicator present in the input::

    z = (value − mean) / std          # sign-flipped when ``invert``
    weighted_z   += z * weight
    total_weight += weight

    score = clamp(weighted_z / total_weight * 10 + 50, 0, 100)   # 2 decimals

Calibration: Z = 0 → 50 (historical average), Z = +1 → 60, Z = +2 → 70.

Missing indicators are skipped and the remaining weights renormalised, so a
day missing one input still scores against the other four. No indicator at
all returns exactly 50.

The mean/std pairs are fixed 1996–2025 population statistics, never rolled,
so scores stay comparable across the whole history table.

Rows scored by the earlier web product negated the raw S&P-vs-200MA value
before subtracting its mean; with all five indicators present those stored
scores sit about 1.43 points (2 * 3.4949 / 7.9576 * 0.1628 * 10) below
the ones computed here.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from market_timing.models.indicator import coerce_score_input
from market_timing.taxonomy.indicators import IndicatorKind
from market_timing.utils.math_utils import clamp, round_half_up

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50.0


class IndicatorStatistic(BaseModel):
    """Reference statistics for one core indicator.

    Attributes:
        kind: Which indicator the statistics describe.
        mean: Long-run population mean of the raw series.
        std: Long-run population standard deviation; must be > 0.
        invert: ``True`` when higher raw values mean lower forward returns.
        weight: Non-negative contribution to the weighted average.
    """

    model_config = ConfigDict(frozen=True)

    kind: IndicatorKind
    mean: float
    std: float
    invert: bool = False
    weight: float

    @field_validator("std")
    @classmethod
    def validate_std_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"std must be > 0, got {v}.")
        return v

    @field_validator("weight")
    @classmethod
    def validate_weight_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"weight must be >= 0, got {v}.")
        return v

    def z_score(self, value: float) -> float:
        z = (value - self.mean) / self.std
        return -z if self.invert else z


class CompositeStatistics(BaseModel):
    """Immutable statistics table, evaluated in declaration order."""

    model_config = ConfigDict(frozen=True)

    indicators: tuple[IndicatorStatistic, ...]

    @model_validator(mode="after")
    def validate_unique_kinds(self) -> "CompositeStatistics":
        kinds = [s.kind for s in self.indicators]
        if len(kinds) != len(set(kinds)):
            raise ValueError("Each indicator may appear only once in CompositeStatistics.")
        return self

    def get(self, kind: IndicatorKind) -> IndicatorStatistic | None:
        for stat in self.indicators:
            if stat.kind == kind:
                return stat
        return None


DEFAULT_STATISTICS = CompositeStatistics(indicators=(
    IndicatorStatistic(kind=IndicatorKind.HY_SPREAD,         mean=5.134,       std=2.5271,      invert=False, weight=0.281),
    IndicatorStatistic(kind=IndicatorKind.VIX,               mean=20.097,      std=8.0555,      invert=False, weight=0.2569),
    IndicatorStatistic(kind=IndicatorKind.INITIAL_CLAIMS,    mean=358862.6001, std=318057.9358, invert=False, weight=0.2351),
    IndicatorStatistic(kind=IndicatorKind.SPY_VS_200MA,      mean=3.4949,      std=7.9576,      invert=True,  weight=0.1628),
    IndicatorStatistic(kind=IndicatorKind.YIELD_CURVE_10Y2Y, mean=0.9484,      std=0.929,       invert=False, weight=0.0629),
))


def calculate_composite_score(
    data: Any,
    statistics: CompositeStatistics = DEFAULT_STATISTICS,
) -> float:
    """Compute the composite attractiveness score.

    Args:
        data: A ``CompositeScoreInput``, a mapping of field names to values
            (verbose or storage naming), or any model exposing
            ``to_score_input()`` (``MarketHistoryRecord``, ``MarketIndicators``).
        statistics: Reference statistics table.

    Returns:
        Score in ``[0, 100]`` rounded to 2 decimals; exactly 50.0 when no core
        indicator is present.
    """
    record = coerce_score_input(data)

    weighted_z = 0.0
    total_weight = 0.0
    for stat in statistics.indicators:
        value = record.value_for(stat.kind)
        if value is None:
            continue
        weighted_z += stat.z_score(value) * stat.weight
        total_weight += stat.weight

    if total_weight == 0:
        logger.debug("No core indicator available; composite score is neutral.")
        return NEUTRAL_SCORE

    score = weighted_z / total_weight * 10 + 50
    return round_half_up(clamp(score, 0.0, 100.0), 2)
