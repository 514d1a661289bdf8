"""
Indicator-level models and the composite-score input record.

``CompositeScoreInput`` is a sparse, immutable record carrying zero or more of
the five core indicator values. The same quantity can arrive under two naming
schemes:

  - verbose (camelCase), produced from a live ``MarketIndicators`` snapshot:
    ``hySpread``, ``vix``, ``initialClaims``, ``spyVs200MA``, ``yieldCurve10Y2Y``
  - storage (snake_case), produced from a persisted history row:
    ``hy_spread``, ``vix``, ``initial_claims``, ``spy_vs_200ma``,
    ``yield_curve_10y2y``

``resolve_alias()`` returns the first populated alias in a fixed priority
order, so a record may mix both schemes without ambiguity.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from market_timing.taxonomy.indicators import IndicatorKind

# Ordered alias lists; the first non-null alias wins.
SCORE_INPUT_ALIASES: dict[IndicatorKind, tuple[str, ...]] = {
    IndicatorKind.HY_SPREAD:         ("hySpread", "hy_spread"),
    IndicatorKind.VIX:               ("vix",),
    IndicatorKind.INITIAL_CLAIMS:    ("initialClaims", "initial_claims"),
    IndicatorKind.SPY_VS_200MA:      ("spyVs200MA", "spyVs200ma", "spy_vs_200ma"),
    IndicatorKind.YIELD_CURVE_10Y2Y: ("yieldCurve10Y2Y", "yield_curve_10y2y"),
}


class IndicatorObservation(BaseModel):
    """One named indicator's value on one calendar day.

    Attributes:
        name: Indicator identifier.
        raw_value: Observed value. Units vary by indicator (percent, index
            points, absolute count).
        date: Observation day; unique per indicator per day.
    """

    model_config = ConfigDict(frozen=True)

    name: IndicatorKind
    raw_value: float
    date: dt.date


class CompositeScoreInput(BaseModel):
    """Sparse input to the composite score engine.

    Every field is optional; an absent or ``None`` field means the value was
    not available for that day. Unknown keys are ignored so a full history row
    dict can be passed straight through ``model_validate``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Verbose schema
    hySpread: Optional[float] = None
    initialClaims: Optional[float] = None
    spyVs200MA: Optional[float] = None
    spyVs200ma: Optional[float] = None
    yieldCurve10Y2Y: Optional[float] = None

    # Shared by both schemas
    vix: Optional[float] = None

    # Storage schema
    hy_spread: Optional[float] = None
    initial_claims: Optional[float] = None
    spy_vs_200ma: Optional[float] = None
    yield_curve_10y2y: Optional[float] = None

    @field_validator("*")
    @classmethod
    def validate_finite(cls, v: Optional[float]) -> Optional[float]:
        # NaN / inf would poison the weighted average; treat them as missing.
        if v is not None and not math.isfinite(v):
            return None
        return v

    def value_for(self, kind: IndicatorKind) -> Optional[float]:
        """Return the resolved value for ``kind``, or ``None`` if absent."""
        aliases = SCORE_INPUT_ALIASES.get(kind)
        if aliases is None:
            return None
        return resolve_alias(self, aliases)

    def is_empty(self) -> bool:
        """``True`` when none of the core indicators resolve to a value."""
        return all(self.value_for(kind) is None for kind in SCORE_INPUT_ALIASES)


def resolve_alias(record: CompositeScoreInput, aliases: tuple[str, ...]) -> Optional[float]:
    """Return the first non-null field of ``record`` among ``aliases``.

    Args:
        record: A validated ``CompositeScoreInput``.
        aliases: Field names in priority order.

    Returns:
        The first populated value, or ``None`` when every alias is empty.
    """
    for alias in aliases:
        value = getattr(record, alias, None)
        if value is not None:
            return value
    return None


def coerce_score_input(data: Any) -> CompositeScoreInput:
    """Build a ``CompositeScoreInput`` from any supported input shape.

    Accepts a ``CompositeScoreInput`` (returned as-is), any object exposing
    ``to_score_input()`` (history rows, snapshots), or a mapping of field names
    to values.

    Raises:
        TypeError: If ``data`` is none of the supported shapes.
    """
    if isinstance(data, CompositeScoreInput):
        return data
    to_score_input = getattr(data, "to_score_input", None)
    if callable(to_score_input):
        return to_score_input()
    if isinstance(data, Mapping):
        return CompositeScoreInput.model_validate(dict(data))
    raise TypeError(
        f"Cannot build a CompositeScoreInput from {type(data).__name__}."
    )
