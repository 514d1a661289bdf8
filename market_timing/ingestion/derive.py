"""
Pure derivations from raw provider series to stored indicator values.

Rounding rules (half-up, as stored in ``market_indicators_history``):
  prices, YoY changes, buffett, ERP        → 2 decimals
  spreads, treasury yields, HY spread      → 3 decimals
  Fear & Greed                             → integer
  nonfarm payrolls MoM (thousands → count) → integer

No I/O here; the collector stage feeds these functions with client output.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from market_timing.ingestion.fred_client import FredObservation
from market_timing.utils.math_utils import round_half_up, round_int

MA_WINDOW = 200
WEEKLY_YOY_INDEX = 51     # WALCL is weekly: 52 prints back
MONTHLY_YOY_INDEX = 12    # monthly series: 13 prints back


def moving_average_200(prices: Sequence[float]) -> Optional[float]:
    """Mean of the last 200 prices, or of all prices when fewer are available."""
    if not prices:
        return None
    window = prices[-MA_WINDOW:]
    return sum(window) / len(window)


def percent_vs_ma(price: float, moving_average: float) -> float:
    """Percent distance of ``price`` above (+) / below (−) its moving average."""
    return round_int((price - moving_average) / moving_average * 10000) / 100


def yoy_change(current: float, year_ago: float) -> float:
    """Unrounded year-over-year percent change."""
    return (current - year_ago) / year_ago * 100


def latest_yoy(observations: Sequence[FredObservation], year_ago_index: int) -> Optional[float]:
    """YoY change of the newest print vs. ``observations[year_ago_index]``.

    ``observations`` is newest first. Returns ``None`` when the series is too
    short or the base print is zero.
    """
    if len(observations) <= year_ago_index:
        return None
    year_ago = observations[year_ago_index].value
    if year_ago == 0:
        return None
    return round_half_up(yoy_change(observations[0].value, year_ago), 2)


def buffett_indicator(market_cap_millions: float, gdp_billions: float) -> Optional[float]:
    """US equity market cap / GDP, percent.

    NCBCEL is reported in millions of dollars and GDP in billions.
    """
    gdp = gdp_billions * 1e9
    if gdp == 0:
        return None
    return round_int(market_cap_millions * 1e6 / gdp * 10000) / 100


def spread(long_rate: float, short_rate: float) -> float:
    """Difference of two yields, 3 decimals."""
    return round_half_up(long_rate - short_rate, 3)


def equity_risk_premium(treasury_10y: float, earnings_yield_pct: float = 5.0) -> float:
    """Earnings yield minus the 10Y yield.

    The earnings yield is a fixed estimate (inverse of a ~20x P/E) rather than
    a live S&P 500 figure.
    """
    return round_half_up(earnings_yield_pct - treasury_10y, 2)


def payrolls_change(observations: Sequence[FredObservation]) -> Optional[int]:
    """Month-over-month change in nonfarm payrolls as a head count.

    PAYEMS is reported in thousands of persons.
    """
    if len(observations) < 2:
        return None
    return round_int((observations[0].value - observations[1].value) * 1000)


def latest_value(observations: Sequence[FredObservation], ndigits: int = 2) -> Optional[float]:
    """Newest print rounded to ``ndigits``, or ``None`` for an empty series."""
    if not observations:
        return None
    return round_half_up(observations[0].value, ndigits)


def round_price(price: Optional[float]) -> Optional[float]:
    return round_half_up(price, 2) if price is not None else None
