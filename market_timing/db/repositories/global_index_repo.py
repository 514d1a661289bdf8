"""
Repository for ``global_indices_history`` — one close per (symbol, date).
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date

from market_timing.db.repositories.base import BaseRepository
from market_timing.models.market import GlobalIndexRecord, IndexChange

logger = logging.getLogger(__name__)

_TABLE = "global_indices_history"


class GlobalIndexRepository(BaseRepository):
    """Read/write access to ``global_indices_history``."""

    def upsert_batch(self, records: list[GlobalIndexRecord]) -> int:
        """Insert or replace closes keyed on (symbol, date). Returns rows written."""
        if not records:
            return 0
        self.executemany(
            f"""
            INSERT INTO {_TABLE} (symbol, name, region, date, close_price)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(symbol, date) DO UPDATE SET
                name        = excluded.name,
                region      = excluded.region,
                close_price = excluded.close_price;
            """,
            [
                (r.symbol, r.name, r.region, r.date.isoformat(), r.close_price)
                for r in records
            ],
        )
        logger.debug("Upserted %d global index closes", len(records))
        return len(records)

    def get_all(self) -> list[GlobalIndexRecord]:
        """Every stored close, ordered by date then symbol."""
        rows = self.fetchall(f"SELECT * FROM {_TABLE} ORDER BY date ASC, symbol ASC;")
        return [_row_to_record(r) for r in rows]

    def get_for_symbol(self, symbol: str, since: date | None = None) -> list[GlobalIndexRecord]:
        """Closes of one index, oldest first."""
        if since is None:
            rows = self.fetchall(
                f"SELECT * FROM {_TABLE} WHERE symbol = ? ORDER BY date ASC;",
                (symbol,),
            )
        else:
            rows = self.fetchall(
                f"SELECT * FROM {_TABLE} WHERE symbol = ? AND date >= ? ORDER BY date ASC;",
                (symbol, since.isoformat()),
            )
        return [_row_to_record(r) for r in rows]

    def latest_changes(self) -> list[IndexChange]:
        """Latest close vs. the previous stored close for every index with ≥ 2 closes."""
        from market_timing.reporting.markets import compute_index_changes

        return compute_index_changes(self.get_all())

    def count(self) -> int:
        return self.count_rows(_TABLE)


def _row_to_record(row: sqlite3.Row) -> GlobalIndexRecord:
    return GlobalIndexRecord(
        symbol=row["symbol"],
        name=row["name"],
        region=row["region"],
        date=date.fromisoformat(row["date"]),
        close_price=row["close_price"],
    )
