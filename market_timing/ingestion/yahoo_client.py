"""
Yahoo Finance chart client (unofficial v8 endpoint, no credentials).

API:  https://query1.finance.yahoo.com/v8/finance/chart/{symbol}?interval=1d&range=1y

Two things are read from ``chart.result[0]``:
  - ``meta.regularMarketPrice``            — latest price
  - ``indicators.adjclose[0].adjclose``    — daily adjusted closes (may contain nulls)

Indices without adjusted closes (most non-US indices on ``range=1d``) still
yield a quote; ``adjusted_closes`` is then empty.

Fetches are best-effort: failures are logged and return ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass(frozen=True)
class YahooChart:
    """Latest price and adjusted-close series of one symbol."""

    symbol: str
    price: float
    previous_close: Optional[float] = None
    adjusted_closes: list[float] = field(default_factory=list)


class YahooClient:
    """Client for the Yahoo Finance chart endpoint."""

    BASE_URL: ClassVar[str] = "https://query1.finance.yahoo.com/v8/finance/chart/"

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.user_agent = user_agent
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "YahooClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_chart(self, symbol: str, range_: str = "1y") -> Optional[YahooChart]:
        """Daily chart of ``symbol`` over ``range_`` (``"1d"``, ``"1y"``, ...).

        Returns:
            ``YahooChart`` or ``None`` when the request or payload is unusable.
        """
        url = self.BASE_URL + quote(symbol, safe="")
        try:
            resp = self._http.get(
                url,
                params={"interval": "1d", "range": range_},
                headers={"User-Agent": self.user_agent},
            )
        except httpx.HTTPError as exc:
            logger.warning("Yahoo request failed for %s: %s", symbol, exc)
            return None

        if resp.status_code != 200:
            logger.warning("Yahoo API warning for %s: HTTP %d", symbol, resp.status_code)
            return None

        try:
            return _parse_chart(symbol, resp.json())
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Malformed Yahoo payload for %s: %s", symbol, exc)
            return None


def _parse_chart(symbol: str, payload: dict) -> Optional[YahooChart]:
    results = payload["chart"]["result"]
    if not results:
        return None
    result = results[0]
    meta = result["meta"]

    closes: list[float] = []
    adjclose = result.get("indicators", {}).get("adjclose") or []
    if adjclose:
        closes = [float(p) for p in (adjclose[0].get("adjclose") or []) if p is not None]

    previous = meta.get("previousClose")
    return YahooChart(
        symbol=symbol,
        price=float(meta["regularMarketPrice"]),
        previous_close=float(previous) if previous is not None else None,
        adjusted_closes=closes,
    )
