"""
SQLite connection management.

``get_connection()`` is a context manager that:
  - Creates the database file's parent directory on first use.
  - Enables WAL journal mode so the dashboard can read while the collector writes.
  - Sets a busy timeout to ride out lock contention.
  - Uses ``sqlite3.Row`` so rows behave like dicts.
  - Commits on clean exit, rolls back on exception.

Usage::

    from market_timing.db.connection import get_connection

    with get_connection("data/db/market_timing.db") as conn:
        MarketHistoryRepository(conn).upsert(record)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from market_timing.config import DatabaseConfig

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured SQLite connection.

    Args:
        db_path: Database file path, or ``":memory:"`` (tests).
        wal_mode: Enable WAL journal mode.
        busy_timeout_ms: Milliseconds to wait on a locked database.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened or is locked.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()


def connect_from_config(db_config: DatabaseConfig, db_path: str | None = None):
    """``get_connection()`` with settings taken from ``DatabaseConfig``."""
    return get_connection(
        db_path or db_config.db_path,
        wal_mode=db_config.wal_mode,
        busy_timeout_ms=db_config.busy_timeout_ms,
    )
