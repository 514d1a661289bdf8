"""
Simple sequential schema migration bootstrap.

Not a migration framework (no Alembic, no down migrations):

  1. A ``schema_versions`` table tracks applied migration IDs.
  2. Each migration is a function taking a ``sqlite3.Connection``.
  3. ``run_migrations()`` applies any migrations not yet recorded.

The initial schema is applied by ``apply_schema()`` before any migration
runs; migrations are for incremental changes to databases created by older
versions of the collector.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

from market_timing.db.schema import get_table_columns
from market_timing.models.market import HISTORY_VALUE_FIELDS

logger = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_versions (
            version_id  TEXT    NOT NULL PRIMARY KEY,
            applied_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            description TEXT
        );
    """)
    conn.commit()


def _get_applied_versions(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT version_id FROM schema_versions;").fetchall()
    return {row["version_id"] for row in rows}


def _mark_applied(conn: sqlite3.Connection, version_id: str, description: str) -> None:
    conn.execute(
        "INSERT INTO schema_versions(version_id, description) VALUES (?, ?);",
        (version_id, description),
    )
    conn.commit()


# ── Migration functions ────────────────────────────────────────────────────────


def migration_0001_bootstrap(conn: sqlite3.Connection) -> None:
    """Baseline marker; the version table itself is created by _ensure_version_table."""


def migration_0002_backfill_history_columns(conn: sqlite3.Connection) -> None:
    """Add indicator columns missing from databases created before the macro expansion."""
    existing = set(get_table_columns(conn, "market_indicators_history"))
    for field in HISTORY_VALUE_FIELDS:
        if field in existing:
            continue
        sql_type = "INTEGER" if field in ("initial_claims", "nonfarm_payrolls_mom") else "REAL"
        logger.info("Adding column market_indicators_history.%s", field)
        conn.execute(f"ALTER TABLE market_indicators_history ADD COLUMN {field} {sql_type};")
    conn.commit()


# ── Registry ──────────────────────────────────────────────────────────────────
# Add new migrations here. They run once, in insertion order.

MIGRATIONS: dict[str, tuple[MigrationFn, str]] = {
    "0001_bootstrap": (
        migration_0001_bootstrap,
        "Baseline: schema_versions table created",
    ),
    "0002_backfill_history_columns": (
        migration_0002_backfill_history_columns,
        "Add any market_indicators_history value columns missing from older databases",
    ),
}


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply all pending migrations and return how many ran."""
    _ensure_version_table(conn)
    applied = _get_applied_versions(conn)

    count = 0
    for version_id, (fn, description) in MIGRATIONS.items():
        if version_id in applied:
            logger.debug("Migration %s already applied; skipping.", version_id)
            continue

        logger.info("Applying migration %s: %s", version_id, description)
        try:
            fn(conn)
            _mark_applied(conn, version_id, description)
            count += 1
        except Exception as exc:
            conn.rollback()
            logger.error("Migration %s FAILED: %s", version_id, exc)
            raise

    if count:
        logger.info("Applied %d migration(s).", count)
    else:
        logger.debug("No pending migrations.")

    return count
