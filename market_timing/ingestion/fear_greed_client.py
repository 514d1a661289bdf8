"""
CNN Fear & Greed index client.

API:  https://production.dataviz.cnn.io/index/fearandgreed/graphdata

The endpoint rejects requests without browser-like headers, so a desktop
User-Agent and the public page as Referer are always sent.

Fetches are best-effort: failures are logged and return ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FearGreedReading:
    """Current Fear & Greed score, CNN rating and previous close."""

    score: float
    rating: str
    previous_close: Optional[float] = None


class FearGreedClient:
    """Client for the CNN Fear & Greed graph-data endpoint."""

    URL: ClassVar[str] = "https://production.dataviz.cnn.io/index/fearandgreed/graphdata"
    REFERER: ClassVar[str] = "https://edition.cnn.com/markets/fear-and-greed"
    USER_AGENT: ClassVar[str] = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "FearGreedClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self) -> Optional[FearGreedReading]:
        headers = {
            "User-Agent": self.USER_AGENT,
            "Accept": "application/json",
            "Referer": self.REFERER,
        }
        try:
            resp = self._http.get(self.URL, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Fear & Greed request failed: %s", exc)
            return None

        if resp.status_code != 200:
            logger.warning("Fear & Greed API warning: HTTP %d", resp.status_code)
            return None

        try:
            data = resp.json()["fear_and_greed"]
            previous = data.get("previous_close")
            return FearGreedReading(
                score=float(data["score"]),
                rating=str(data.get("rating", "")),
                previous_close=float(previous) if previous is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed Fear & Greed payload: %s", exc)
            return None
