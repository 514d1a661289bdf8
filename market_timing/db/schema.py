"""
SQLite schema DDL.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent:
safe on an already-initialised database (restart, tests, repeated init-db).

Tables:
  1. market_indicators_history — one row per UTC calendar day (date PK)
  2. global_indices_history    — one row per (symbol, date)
  3. run_metadata              — collector audit log

Dates are stored as ISO ``YYYY-MM-DD`` text so lexical order is date order.
"""

from __future__ import annotations

import logging
import sqlite3

from market_timing.models.market import HISTORY_VALUE_FIELDS

logger = logging.getLogger(__name__)

# Integer-valued history columns; everything else in HISTORY_VALUE_FIELDS is REAL.
_INTEGER_COLUMNS = frozenset({"initial_claims", "nonfarm_payrolls_mom"})


def _history_value_columns() -> str:
    lines = []
    for field in HISTORY_VALUE_FIELDS:
        sql_type = "INTEGER" if field in _INTEGER_COLUMNS else "REAL"
        lines.append(f"    {field:<24}{sql_type},")
    return "\n".join(lines)


# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_MARKET_HISTORY = f"""
CREATE TABLE IF NOT EXISTS market_indicators_history (
    date                    TEXT    NOT NULL PRIMARY KEY,
{_history_value_columns()}
    composite_score         REAL    NOT NULL,
    raw_data                TEXT,
    created_at              TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at              TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_GLOBAL_INDICES = """
CREATE TABLE IF NOT EXISTS global_indices_history (
    symbol       TEXT    NOT NULL,
    name         TEXT    NOT NULL,
    region       TEXT    NOT NULL,
    date         TEXT    NOT NULL,
    close_price  REAL    NOT NULL,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    PRIMARY KEY (symbol, date)
);
"""

_DDL_GLOBAL_INDICES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_global_indices_date
    ON global_indices_history(date);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    finished_at     TEXT
);
"""

_ALL_DDL: list[str] = [
    _DDL_MARKET_HISTORY,
    _DDL_GLOBAL_INDICES,
    _DDL_GLOBAL_INDICES_INDEXES,
    _DDL_RUN_METADATA,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "market_indicators_history",
    "global_indices_history",
    "run_metadata",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``. Idempotent."""
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    """Return the column names of ``table`` in declaration order."""
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table});").fetchall()]
