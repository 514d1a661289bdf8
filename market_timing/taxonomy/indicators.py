"""
Indicator and stance taxonomy.

Three enumerations describe every indicator shown on the dashboard:
  - ``IndicatorKind``     — the *what*: which market or macro quantity.
  - ``IndicatorCategory`` — the *family*: sentiment, valuation, liquidity, ...
  - ``IndicatorTiming``   — the *when*: does it lead, track or confirm the market?

``InvestmentStance`` is the closed set of recommendation buckets derived from
the composite score.

Adding an indicator means adding an ``IndicatorKind`` member; every dispatch
table keyed on the kind (scoring specs, commentary templates, history fields)
is then checked by the tests for completeness.

This module has NO imports from any other ``market_timing`` package.
"""

from enum import StrEnum


class IndicatorKind(StrEnum):
    """Named indicator. Values are the display names used across the product."""

    FEAR_GREED = "Fear & Greed"
    """CNN Fear & Greed index, 0 (extreme fear) to 100 (extreme greed)."""

    VIX = "VIX"
    """CBOE volatility index."""

    SPY_VS_200MA = "S&P vs 200MA"
    """SPY price relative to its 200-day moving average, percent."""

    BUFFETT_INDICATOR = "Buffett Indicator"
    """US equity market cap / GDP, percent."""

    EQUITY_RISK_PREMIUM = "Equity Risk Premium"
    """Earnings yield minus the 10Y treasury yield, percentage points."""

    FED_BALANCE_SHEET = "Fed Balance Sheet"
    """Fed total assets (WALCL), year-over-year percent change."""

    M2_GROWTH = "M2 Growth"
    """M2 money stock, year-over-year percent change."""

    HY_SPREAD = "HY Spread"
    """ICE BofA US high-yield option-adjusted spread, percent."""

    YIELD_CURVE_10Y2Y = "Yield Curve 10Y-2Y"
    """10Y minus 2Y treasury yield, percentage points."""

    YIELD_CURVE_10Y3M = "Yield Curve 10Y-3M"
    """10Y minus 3M treasury yield, percentage points."""

    INITIAL_CLAIMS = "Initial Claims"
    """Weekly initial jobless claims, absolute count."""


class IndicatorCategory(StrEnum):
    """Indicator family, used to group cards on the dashboard."""

    SENTIMENT = "sentiment"
    VALUATION = "valuation"
    LIQUIDITY = "liquidity"
    CREDIT = "credit"
    MACRO = "macro"


class IndicatorTiming(StrEnum):
    """Relationship of an indicator to the market cycle."""

    LEADING = "leading"
    """Predicts future conditions; direction-of-change matters most."""

    COINCIDENT = "coincident"
    """Reflects present conditions."""

    LAGGING = "lagging"
    """Confirms past conditions; current level matters most."""


class InvestmentStance(StrEnum):
    """Recommendation bucket derived from the composite score."""

    AGGRESSIVE_PLUS = "aggressive_plus"
    AGGRESSIVE = "aggressive"
    MODERATE_AGGRESSIVE = "moderate_aggressive"
    NEUTRAL = "neutral"
    MODERATE_DEFENSIVE = "moderate_defensive"
    DEFENSIVE = "defensive"
    UNKNOWN = "unknown"


# The five indicators that feed the composite score, in weight order.
CORE_INDICATORS: tuple[IndicatorKind, ...] = (
    IndicatorKind.HY_SPREAD,
    IndicatorKind.VIX,
    IndicatorKind.INITIAL_CLAIMS,
    IndicatorKind.SPY_VS_200MA,
    IndicatorKind.YIELD_CURVE_10Y2Y,
)

# Informative only; excluded from the composite weight table.
REFERENCE_INDICATORS: tuple[IndicatorKind, ...] = (
    IndicatorKind.FEAR_GREED,
    IndicatorKind.BUFFETT_INDICATOR,
    IndicatorKind.EQUITY_RISK_PREMIUM,
    IndicatorKind.FED_BALANCE_SHEET,
    IndicatorKind.M2_GROWTH,
    IndicatorKind.YIELD_CURVE_10Y3M,
)
