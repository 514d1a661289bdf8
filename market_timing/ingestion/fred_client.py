"""
FRED (Federal Reserve Economic Data) observations client.

API:   https://api.stlouisfed.org/fred/series/observations
Docs:  https://fred.stlouisfed.org/docs/api/fred/series_observations.html

Credential setup (.env, gitignored):
  FRED_API_KEY=your_api_key

Observations are requested newest first (``sort_order=desc``) so index 0 is
always the latest print. FRED reports a missing print as the string ``"."``;
those observations are dropped, which shifts later indices. Year-over-year
derivations therefore compare index 0 with index N of the *filtered* list.

Fetches are best-effort: transport errors, non-2xx statuses and malformed
payloads are logged and turned into an empty list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import ClassVar, Optional

import httpx

logger = logging.getLogger(__name__)


# ── Response types ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FredObservation:
    """One FRED print."""

    date: date
    value: float


# ── Client ─────────────────────────────────────────────────────────────────────

class FredClient:
    """Client for FRED series observations.

    Usage::

        with FredClient(api_key=fred_api_key()) as fred:
            walcl = fred.fetch_series("WALCL", limit=60)

    Tests inject ``http_client=httpx.Client(transport=httpx.MockTransport(...))``.
    """

    BASE_URL: ClassVar[str] = "https://api.stlouisfed.org/fred/series/observations"
    MISSING_VALUE: ClassVar[str] = "."

    def __init__(
        self,
        api_key: Optional[str],
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialise the client.

        Args:
            api_key: FRED API key (``FRED_API_KEY``).
            timeout_seconds: Per-request timeout.
            http_client: Pre-built ``httpx.Client``; the caller keeps ownership.

        Raises:
            RuntimeError: If ``api_key`` is empty.
        """
        if not api_key:
            raise RuntimeError("FRED_API_KEY must be set in .env or the environment.")
        self.api_key = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "FredClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_series(self, series_id: str, limit: int = 10) -> list[FredObservation]:
        """Latest ``limit`` observations of ``series_id``, newest first.

        Returns:
            Parsed observations with ``"."`` prints removed; ``[]`` on any failure.
        """
        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "sort_order": "desc",
            "limit": limit,
        }
        try:
            resp = self._http.get(self.BASE_URL, params=params)
        except httpx.HTTPError as exc:
            logger.warning("FRED request failed for %s: %s", series_id, exc)
            return []

        if resp.status_code != 200:
            logger.warning("FRED API warning for %s: HTTP %d", series_id, resp.status_code)
            return []

        try:
            return _parse_observations(resp.json())
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed FRED payload for %s: %s", series_id, exc)
            return []


def _parse_observations(payload: dict) -> list[FredObservation]:
    observations = []
    for obs in payload["observations"]:
        if obs["value"] == FredClient.MISSING_VALUE:
            continue
        observations.append(
            FredObservation(date=date.fromisoformat(obs["date"]), value=float(obs["value"]))
        )
    return observations
