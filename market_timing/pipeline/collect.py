"""
Collector stages — fetch provider data, derive indicator values, upsert one day.

CollectMarketDataStage
  1. Fan out every FRED / Yahoo / CNN fetch over a thread pool.
  2. Derive the stored values (``assemble_history_record``, pure).
  3. Compute ``composite_score`` from the derived values.
  4. Upsert the row for the UTC snapshot date.

CollectGlobalIndicesStage
  Fetch the latest quote of each global index in parallel and upsert the
  valid ones. Fails only when no index could be fetched at all.

Every fetch is best-effort: a provider failure leaves the matching fields
``None`` and the composite score reweights over whatever core indicators
arrived.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Optional, TypeVar

from market_timing.config import fred_api_key
from market_timing.ingestion import derive
from market_timing.ingestion.catalog import FRED_SERIES, GLOBAL_INDICES, YAHOO_SYMBOLS, GlobalIndex
from market_timing.ingestion.fear_greed_client import FearGreedClient, FearGreedReading
from market_timing.ingestion.fred_client import FredClient, FredObservation
from market_timing.ingestion.yahoo_client import YahooChart, YahooClient
from market_timing.models.market import GlobalIndexRecord, MarketHistoryRecord
from market_timing.models.meta import RunMetadata
from market_timing.pipeline.base import PipelineStage
from market_timing.scoring.composite import calculate_composite_score
from market_timing.utils.math_utils import round_half_up, round_int
from market_timing.utils.time_utils import utc_today

logger = logging.getLogger(__name__)

T = TypeVar("T")

# raw_data JSON keys, in the order the values are stored.
_RAW_DATA_KEYS: dict[str, str] = {
    "fear_greed": "fearGreed",
    "vix": "vix",
    "spy_price": "spyPrice",
    "spy_vs_200ma": "spyVs200MA",
    "qqq_price": "qqqPrice",
    "sgov_price": "sgovPrice",
    "gld_price": "gldPrice",
    "schd_price": "schdPrice",
    "vym_price": "vymPrice",
    "buffett_indicator": "buffettIndicator",
    "fed_balance_sheet_yoy": "fedBalanceSheetYoY",
    "m2_growth_yoy": "m2GrowthYoY",
    "hy_spread": "hySpread",
    "yield_curve_10y2y": "yieldCurve10Y2Y",
    "yield_curve_10y3m": "yieldCurve10Y3M",
    "initial_claims": "initialClaims",
    "gdp_growth_qoq": "gdpGrowthQoQ",
    "ism_manufacturing": "ismManufacturing",
    "ism_services": "ismServices",
    "retail_sales_yoy": "retailSalesYoY",
    "cpi_yoy": "cpiYoY",
    "core_cpi_yoy": "coreCpiYoY",
    "pce_yoy": "pceYoY",
    "core_pce_yoy": "corePceYoY",
    "ppi_yoy": "ppiYoY",
    "nonfarm_payrolls_mom": "nonfarmPayrollsMoM",
    "unemployment_rate": "unemploymentRate",
    "labor_participation": "laborParticipation",
    "treasury_10y": "treasury10y",
    "treasury_2y": "treasury2y",
    "treasury_3m": "treasury3m",
    "erp": "erp",
    "dollar_index": "dollarIndex",
}


# ── Pure assembly ─────────────────────────────────────────────────────────────


def _first(series: Mapping[str, list[FredObservation]], series_id: str) -> Optional[float]:
    observations = series.get(series_id) or []
    return observations[0].value if observations else None


def _price(charts: Mapping[str, Optional[YahooChart]], symbol: str) -> Optional[float]:
    chart = charts.get(symbol)
    return derive.round_price(chart.price) if chart is not None else None


def assemble_history_record(
    day: date,
    fear_greed: Optional[FearGreedReading],
    charts: Mapping[str, Optional[YahooChart]],
    series: Mapping[str, list[FredObservation]],
    earnings_yield_pct: float = 5.0,
) -> MarketHistoryRecord:
    """Derive one day's stored values from raw provider output.

    Args:
        day: Snapshot date (UTC).
        fear_greed: CNN reading, or ``None`` if the fetch failed.
        charts: Yahoo symbol → chart (``None`` / missing on failure).
        series: FRED series ID → observations, newest first (``[]`` on failure).
        earnings_yield_pct: Earnings-yield estimate used for the ERP.

    Returns:
        A ``MarketHistoryRecord`` with ``composite_score`` computed and
        ``raw_data`` holding the camelCase copy of every derived value.
    """
    values: dict[str, Any] = {}

    values["fear_greed"] = round_int(fear_greed.score) if fear_greed is not None else None
    values["vix"] = _price(charts, "^VIX")

    spy = charts.get("SPY")
    if spy is not None:
        values["spy_price"] = derive.round_price(spy.price)
        ma200 = derive.moving_average_200(spy.adjusted_closes)
        values["spy_vs_200ma"] = (
            derive.percent_vs_ma(spy.price, ma200) if ma200 else None
        )

    values["qqq_price"] = _price(charts, "QQQ")
    values["sgov_price"] = _price(charts, "SGOV")
    values["gld_price"] = _price(charts, "GLD")
    values["schd_price"] = _price(charts, "SCHD")
    values["vym_price"] = _price(charts, "VYM")
    values["dollar_index"] = _price(charts, "DX-Y.NYB")

    gdp = _first(series, "GDP")
    market_cap = _first(series, "NCBCEL")
    if gdp is not None and market_cap is not None:
        values["buffett_indicator"] = derive.buffett_indicator(market_cap, gdp)

    values["fed_balance_sheet_yoy"] = derive.latest_yoy(
        series.get("WALCL") or [], derive.WEEKLY_YOY_INDEX
    )
    for field, series_id in (
        ("m2_growth_yoy", "M2SL"),
        ("retail_sales_yoy", "RSXFS"),
        ("cpi_yoy", "CPIAUCSL"),
        ("core_cpi_yoy", "CPILFESL"),
        ("pce_yoy", "PCEPI"),
        ("core_pce_yoy", "PCEPILFE"),
        ("ppi_yoy", "PPIACO"),
    ):
        values[field] = derive.latest_yoy(series.get(series_id) or [], derive.MONTHLY_YOY_INDEX)

    values["hy_spread"] = derive.latest_value(series.get("BAMLH0A0HYM2") or [], 3)

    t10 = _first(series, "DGS10")
    t2 = _first(series, "DGS2")
    t3m = _first(series, "DGS3MO")
    if t10 is not None and t2 is not None:
        values["yield_curve_10y2y"] = derive.spread(t10, t2)
    if t10 is not None and t3m is not None:
        values["yield_curve_10y3m"] = derive.spread(t10, t3m)
    values["treasury_10y"] = round_half_up(t10, 3) if t10 is not None else None
    values["treasury_2y"] = round_half_up(t2, 3) if t2 is not None else None
    values["treasury_3m"] = round_half_up(t3m, 3) if t3m is not None else None
    values["erp"] = (
        derive.equity_risk_premium(values["treasury_10y"], earnings_yield_pct)
        if values["treasury_10y"] is not None else None
    )

    claims = _first(series, "ICSA")
    values["initial_claims"] = int(claims) if claims is not None else None

    values["gdp_growth_qoq"] = derive.latest_value(series.get("A191RL1Q225SBEA") or [])
    values["ism_manufacturing"] = derive.latest_value(series.get("MANEMP") or [])
    values["ism_services"] = derive.latest_value(series.get("NMFBAI") or [])
    values["nonfarm_payrolls_mom"] = derive.payrolls_change(series.get("PAYEMS") or [])
    values["unemployment_rate"] = derive.latest_value(series.get("UNRATE") or [])
    values["labor_participation"] = derive.latest_value(series.get("CIVPART") or [])

    composite = calculate_composite_score(values)
    raw_data = {camel: values.get(field) for field, camel in _RAW_DATA_KEYS.items()}

    return MarketHistoryRecord(
        date=day,
        composite_score=composite,
        raw_data=raw_data,
        **values,
    )


# ── Fan-out helper ────────────────────────────────────────────────────────────


def _fan_out(
    tasks: Mapping[str, Callable[[], T]],
    max_workers: int,
) -> dict[str, Optional[T]]:
    """Run zero-argument callables in a thread pool; a raising task yields ``None``."""
    results: dict[str, Optional[T]] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {key: pool.submit(fn) for key, fn in tasks.items()}
        for key, future in futures.items():
            try:
                results[key] = future.result()
            except Exception as exc:
                logger.warning("Fetch %s failed: %s", key, exc)
                results[key] = None
    return results


# ── Stages ────────────────────────────────────────────────────────────────────


class CollectMarketDataStage(PipelineStage):
    """Collect, derive and upsert today's market indicator snapshot.

    Returns 1 (the single upserted row).
    """

    stage_name = "collect_market_data"

    def _execute(
        self,
        run: RunMetadata,
        snapshot_date: Optional[date] = None,
        fred_client: Optional[FredClient] = None,
        yahoo_client: Optional[YahooClient] = None,
        fear_greed_client: Optional[FearGreedClient] = None,
        **kwargs,
    ) -> int:
        """Fetch every provider, derive, and upsert.

        Args:
            run: In-progress ``RunMetadata``.
            snapshot_date: Day to key the row on; defaults to today (UTC).
            fred_client / yahoo_client / fear_greed_client: Pre-built clients
                (tests); built from config when omitted.

        Raises:
            RuntimeError: If ``FRED_API_KEY`` is missing and no client is given.
        """
        from market_timing.db.repositories.history_repo import MarketHistoryRepository

        collector = self.config.collector
        day = snapshot_date or utc_today()

        fred = fred_client or FredClient(fred_api_key(), timeout_seconds=collector.timeout_seconds)
        yahoo = yahoo_client or YahooClient(
            user_agent=collector.user_agent, timeout_seconds=collector.timeout_seconds
        )
        cnn = fear_greed_client or FearGreedClient(timeout_seconds=collector.timeout_seconds)

        tasks: dict[str, Callable[[], Any]] = {"fear_greed": cnn.fetch}
        for symbol in YAHOO_SYMBOLS:
            tasks[f"yahoo:{symbol}"] = lambda s=symbol: yahoo.fetch_chart(s)
        for series_id, limit in FRED_SERIES.items():
            tasks[f"fred:{series_id}"] = lambda s=series_id, n=limit: fred.fetch_series(s, n)

        try:
            results = _fan_out(tasks, collector.max_workers)
        finally:
            for client, injected in (
                (fred, fred_client), (yahoo, yahoo_client), (cnn, fear_greed_client),
            ):
                if injected is None:
                    client.close()

        charts = {s: results.get(f"yahoo:{s}") for s in YAHOO_SYMBOLS}
        series = {s: results.get(f"fred:{s}") or [] for s in FRED_SERIES}
        missing = [key for key, value in results.items() if not value]
        if missing:
            logger.warning("Collected with %d empty source(s): %s", len(missing), ", ".join(missing))

        record = assemble_history_record(
            day,
            fear_greed=results.get("fear_greed"),
            charts=charts,
            series=series,
            earnings_yield_pct=collector.earnings_yield_pct,
        )

        with self._connect() as conn:
            MarketHistoryRepository(conn).upsert(record)

        logger.info(
            "Saved market data for %s | composite_score=%.2f",
            day.isoformat(), record.composite_score,
        )
        return 1


def build_global_index_record(
    index: GlobalIndex,
    chart: Optional[YahooChart],
    day: date,
) -> Optional[GlobalIndexRecord]:
    """Stored close for one index, or ``None`` when the quote is unusable."""
    if chart is None or chart.price <= 0:
        return None
    return GlobalIndexRecord(
        symbol=index.symbol,
        name=index.name,
        region=index.region,
        date=day,
        close_price=round_half_up(chart.price, 2),
    )


class CollectGlobalIndicesStage(PipelineStage):
    """Collect and upsert the latest close of every global index.

    Returns the number of index rows upserted.
    """

    stage_name = "collect_global_indices"

    def _execute(
        self,
        run: RunMetadata,
        snapshot_date: Optional[date] = None,
        yahoo_client: Optional[YahooClient] = None,
        **kwargs,
    ) -> int:
        """Fetch and upsert the global index closes.

        Raises:
            RuntimeError: If no index quote could be fetched.
        """
        from market_timing.db.repositories.global_index_repo import GlobalIndexRepository

        collector = self.config.collector
        day = snapshot_date or utc_today()
        yahoo = yahoo_client or YahooClient(
            user_agent=collector.user_agent, timeout_seconds=collector.timeout_seconds
        )

        tasks = {
            index.symbol: (lambda s=index.symbol: yahoo.fetch_chart(s, range_="1d"))
            for index in GLOBAL_INDICES
        }
        try:
            charts = _fan_out(tasks, collector.max_workers)
        finally:
            if yahoo_client is None:
                yahoo.close()

        records = []
        for index in GLOBAL_INDICES:
            record = build_global_index_record(index, charts.get(index.symbol), day)
            if record is None:
                logger.warning("Failed to fetch data for %s", index.symbol)
                continue
            records.append(record)

        if not records:
            raise RuntimeError("No valid global index data collected.")

        with self._connect() as conn:
            written = GlobalIndexRepository(conn).upsert_batch(records)

        logger.info(
            "Saved %d/%d global indices for %s", written, len(GLOBAL_INDICES), day.isoformat()
        )
        return written
