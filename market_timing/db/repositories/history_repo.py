"""
Repository for the daily ``market_indicators_history`` table.

One row per UTC calendar day. ``upsert()`` is keyed on ``date`` so re-running
the collector on the same day overwrites that day's row instead of adding a
second one. Reads always return rows in ascending date order, which is the
chronological order the scoring layer expects for momentum lookbacks.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from typing import Optional

from market_timing.db.repositories.base import BaseRepository
from market_timing.models.market import HISTORY_VALUE_FIELDS, MarketHistoryRecord

logger = logging.getLogger(__name__)

_TABLE = "market_indicators_history"
_INSERT_COLUMNS: tuple[str, ...] = ("date", *HISTORY_VALUE_FIELDS, "composite_score", "raw_data")


def _build_upsert_sql() -> str:
    columns = ", ".join(_INSERT_COLUMNS)
    placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
    updates = ",\n                ".join(
        f"{col} = excluded.{col}" for col in _INSERT_COLUMNS if col != "date"
    )
    return f"""
            INSERT INTO {_TABLE} ({columns}, updated_at)
            VALUES ({placeholders}, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(date) DO UPDATE SET
                {updates},
                updated_at = excluded.updated_at;
            """


_UPSERT_SQL = _build_upsert_sql()


class MarketHistoryRepository(BaseRepository):
    """Read/write access to ``market_indicators_history``."""

    def upsert(self, record: MarketHistoryRecord) -> None:
        """Insert or replace the row for ``record.date``."""
        self.execute(_UPSERT_SQL, _record_to_params(record))
        logger.debug("Upserted market history for %s", record.date)

    def upsert_batch(self, records: list[MarketHistoryRecord]) -> int:
        """Upsert several days at once (backfills). Returns rows written."""
        if not records:
            return 0
        self.executemany(_UPSERT_SQL, [_record_to_params(r) for r in records])
        return len(records)

    def get_by_date(self, day: date) -> Optional[MarketHistoryRecord]:
        row = self.fetchone(f"SELECT * FROM {_TABLE} WHERE date = ?;", (day.isoformat(),))
        return _row_to_record(row) if row else None

    def get_latest(self) -> Optional[MarketHistoryRecord]:
        row = self.fetchone(f"SELECT * FROM {_TABLE} ORDER BY date DESC LIMIT 1;")
        return _row_to_record(row) if row else None

    def get_all(self) -> list[MarketHistoryRecord]:
        """Every persisted day, oldest first."""
        rows = self.fetchall(f"SELECT * FROM {_TABLE} ORDER BY date ASC;")
        return [_row_to_record(r) for r in rows]

    def get_since(self, start: date) -> list[MarketHistoryRecord]:
        """Days on or after ``start``, oldest first."""
        rows = self.fetchall(
            f"SELECT * FROM {_TABLE} WHERE date >= ? ORDER BY date ASC;",
            (start.isoformat(),),
        )
        return [_row_to_record(r) for r in rows]

    def get_until(self, end: date) -> list[MarketHistoryRecord]:
        """Days on or before ``end``, oldest first (history as seen on ``end``)."""
        rows = self.fetchall(
            f"SELECT * FROM {_TABLE} WHERE date <= ? ORDER BY date ASC;",
            (end.isoformat(),),
        )
        return [_row_to_record(r) for r in rows]

    def count(self) -> int:
        return self.count_rows(_TABLE)


# ── Private helpers ────────────────────────────────────────────────────────────


def _record_to_params(record: MarketHistoryRecord) -> tuple:
    values = [getattr(record, field) for field in HISTORY_VALUE_FIELDS]
    raw = json.dumps(record.raw_data, ensure_ascii=False) if record.raw_data is not None else None
    return (record.date.isoformat(), *values, record.composite_score, raw)


def _row_to_record(row: sqlite3.Row) -> MarketHistoryRecord:
    keys = row.keys()
    values = {field: row[field] for field in HISTORY_VALUE_FIELDS if field in keys}
    raw = row["raw_data"] if "raw_data" in keys else None
    return MarketHistoryRecord(
        date=date.fromisoformat(row["date"]),
        composite_score=row["composite_score"],
        raw_data=json.loads(raw) if raw else None,
        **values,
    )
