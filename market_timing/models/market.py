"""
Market snapshot models — persisted daily history and the current snapshot.

Two views of the same data:
  1. ``MarketHistoryRecord`` — one row of ``market_indicators_history``, keyed
     on the UTC calendar day. Written once per day by the collector (upsert),
     read-only to everything else.
  2. ``MarketIndicators``    — the snapshot the scoring layer evaluates; built
     from a history row (or live collector output) on every render.

Field names match the storage columns so scoring specs can look a value up on
either model by the same name.

Both models are frozen (immutable) after construction.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from market_timing.models.indicator import CompositeScoreInput

# Numeric columns of market_indicators_history, in table order.
HISTORY_VALUE_FIELDS: tuple[str, ...] = (
    "fear_greed",
    "vix",
    "spy_price",
    "spy_vs_200ma",
    "qqq_price",
    "sgov_price",
    "gld_price",
    "schd_price",
    "vym_price",
    "buffett_indicator",
    "fed_balance_sheet_yoy",
    "m2_growth_yoy",
    "hy_spread",
    "yield_curve_10y2y",
    "yield_curve_10y3m",
    "initial_claims",
    "gdp_growth_qoq",
    "ism_manufacturing",
    "ism_services",
    "retail_sales_yoy",
    "cpi_yoy",
    "core_cpi_yoy",
    "pce_yoy",
    "core_pce_yoy",
    "ppi_yoy",
    "nonfarm_payrolls_mom",
    "unemployment_rate",
    "labor_participation",
    "treasury_10y",
    "treasury_2y",
    "treasury_3m",
    "erp",
    "dollar_index",
)


def fear_greed_rating(value: float) -> str:
    """Map a Fear & Greed reading to CNN's five rating buckets."""
    if value <= 25:
        return "Extreme Fear"
    if value <= 45:
        return "Fear"
    if value <= 55:
        return "Neutral"
    if value <= 75:
        return "Greed"
    return "Extreme Greed"


class MarketHistoryRecord(BaseModel):
    """One persisted daily snapshot.

    Every indicator column is optional: collectors are best-effort and any
    subset of fields may be missing because an upstream fetch failed.
    ``composite_score`` is always present (50.0 when no core indicator was
    available that day).

    Attributes:
        date: UTC calendar day; at most one record per date.
        composite_score: Composite score computed at collection time.
        raw_data: Optional verbose (camelCase) copy of the collected values.
    """

    model_config = ConfigDict(frozen=True)

    date: dt.date
    composite_score: float

    fear_greed: Optional[float] = None
    vix: Optional[float] = None
    spy_price: Optional[float] = None
    spy_vs_200ma: Optional[float] = None
    qqq_price: Optional[float] = None
    sgov_price: Optional[float] = None
    gld_price: Optional[float] = None
    schd_price: Optional[float] = None
    vym_price: Optional[float] = None
    buffett_indicator: Optional[float] = None
    fed_balance_sheet_yoy: Optional[float] = None
    m2_growth_yoy: Optional[float] = None
    hy_spread: Optional[float] = None
    yield_curve_10y2y: Optional[float] = None
    yield_curve_10y3m: Optional[float] = None
    initial_claims: Optional[int] = None
    # Growth
    gdp_growth_qoq: Optional[float] = None
    ism_manufacturing: Optional[float] = None
    ism_services: Optional[float] = None
    retail_sales_yoy: Optional[float] = None
    # Prices
    cpi_yoy: Optional[float] = None
    core_cpi_yoy: Optional[float] = None
    pce_yoy: Optional[float] = None
    core_pce_yoy: Optional[float] = None
    ppi_yoy: Optional[float] = None
    # Labour
    nonfarm_payrolls_mom: Optional[int] = None
    unemployment_rate: Optional[float] = None
    labor_participation: Optional[float] = None
    # Rates and currency
    treasury_10y: Optional[float] = None
    treasury_2y: Optional[float] = None
    treasury_3m: Optional[float] = None
    erp: Optional[float] = None
    dollar_index: Optional[float] = None

    raw_data: Optional[dict[str, Any]] = None

    @field_validator("composite_score")
    @classmethod
    def validate_composite_score(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"composite_score must be in [0, 100], got {v}.")
        return v

    def value(self, field: str) -> Optional[float]:
        """Return a numeric column by name, or ``None`` if null/unknown."""
        if field not in HISTORY_VALUE_FIELDS:
            return None
        val = getattr(self, field)
        return float(val) if val is not None else None

    def to_score_input(self) -> CompositeScoreInput:
        """Composite-score input using the storage (snake_case) naming."""
        return CompositeScoreInput(
            hy_spread=self.hy_spread,
            vix=self.vix,
            initial_claims=self.initial_claims,
            spy_vs_200ma=self.spy_vs_200ma,
            yield_curve_10y2y=self.yield_curve_10y2y,
        )


class MarketIndicators(BaseModel):
    """Current snapshot of the eleven timing indicators.

    Attributes:
        fear_greed: CNN Fear & Greed score (0–100).
        fear_greed_rating: CNN rating text for ``fear_greed``.
        vix: VIX close.
        spy_vs_200ma: SPY percent above (+) / below (−) its 200-day MA.
        spy_price: SPY last price (informational).
        spy_ma200: SPY 200-day moving average (informational).
        buffett_indicator: Market cap / GDP, percent.
        erp: Equity risk premium, percentage points.
        fed_balance_sheet_yoy: Fed balance sheet YoY change, percent.
        m2_growth_yoy: M2 YoY change, percent.
        hy_spread: High-yield spread, percent.
        yield_curve_10y2y: 10Y − 2Y, percentage points.
        yield_curve_10y3m: 10Y − 3M, percentage points.
        initial_claims: Weekly initial claims.
        treasury_3m: 3-month treasury yield.
        last_updated: Day the snapshot describes.
    """

    model_config = ConfigDict(frozen=True)

    fear_greed: Optional[float] = None
    fear_greed_rating: Optional[str] = None
    vix: Optional[float] = None
    spy_vs_200ma: Optional[float] = None
    spy_price: Optional[float] = None
    spy_ma200: Optional[float] = None
    buffett_indicator: Optional[float] = None
    erp: Optional[float] = None
    fed_balance_sheet_yoy: Optional[float] = None
    m2_growth_yoy: Optional[float] = None
    hy_spread: Optional[float] = None
    yield_curve_10y2y: Optional[float] = None
    yield_curve_10y3m: Optional[float] = None
    initial_claims: Optional[float] = None
    treasury_3m: Optional[float] = None
    last_updated: Optional[dt.date] = None

    @classmethod
    def from_history_record(cls, record: MarketHistoryRecord) -> "MarketIndicators":
        """Build the snapshot a dashboard shows for a persisted day."""
        return cls(
            fear_greed=record.fear_greed,
            fear_greed_rating=(
                fear_greed_rating(record.fear_greed)
                if record.fear_greed is not None else None
            ),
            vix=record.vix,
            spy_vs_200ma=record.spy_vs_200ma,
            spy_price=record.spy_price,
            buffett_indicator=record.buffett_indicator,
            erp=record.erp,
            fed_balance_sheet_yoy=record.fed_balance_sheet_yoy,
            m2_growth_yoy=record.m2_growth_yoy,
            hy_spread=record.hy_spread,
            yield_curve_10y2y=record.yield_curve_10y2y,
            yield_curve_10y3m=record.yield_curve_10y3m,
            initial_claims=record.initial_claims,
            treasury_3m=record.treasury_3m,
            last_updated=record.date,
        )

    def value(self, field: str) -> Optional[float]:
        """Return an indicator value by storage column name, or ``None``."""
        val = getattr(self, field, None)
        if val is None or isinstance(val, (str, dt.date)):
            return None
        return float(val)

    def to_score_input(self) -> CompositeScoreInput:
        """Composite-score input using the verbose (camelCase) naming."""
        return CompositeScoreInput(
            hySpread=self.hy_spread,
            vix=self.vix,
            initialClaims=self.initial_claims,
            spyVs200MA=self.spy_vs_200ma,
            yieldCurve10Y2Y=self.yield_curve_10y2y,
        )


class GlobalIndexRecord(BaseModel):
    """Daily close of one global equity index.

    Attributes:
        symbol: Yahoo Finance symbol, e.g. ``"^GSPC"``.
        name: Display name, e.g. ``"S&P 500"``.
        region: Region label used for grouping.
        date: UTC calendar day of the close.
        close_price: Last price, rounded to 2 decimals.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    region: str
    date: dt.date
    close_price: float

    @field_validator("close_price")
    @classmethod
    def validate_price_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("close_price must be positive.")
        return v


class IndexChange(BaseModel):
    """Latest close of one index vs. its previous stored close.

    Attributes:
        symbol: Yahoo Finance symbol.
        name: Display name.
        region: Region label.
        price: Latest close.
        change: Latest − previous close.
        change_percent: ``change`` as a percent of the previous close.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    region: str
    price: float
    change: float
    change_percent: float
