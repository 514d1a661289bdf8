"""
Dashboard data loader.

All loaders are decorated with ``@st.cache_data`` so Streamlit only re-reads
SQLite after the TTL expires, not on every widget interaction.

Loaders return an empty list (rather than raising) when the database file
does not exist yet, so every view can show a graceful "no data yet" message.
"""

from __future__ import annotations

from pathlib import Path

import streamlit as st

from market_timing.db.connection import get_connection
from market_timing.db.repositories.global_index_repo import GlobalIndexRepository
from market_timing.db.repositories.history_repo import MarketHistoryRepository
from market_timing.models.market import GlobalIndexRecord, IndexChange, MarketHistoryRecord


def _db_exists(db_path: str) -> bool:
    return Path(db_path).exists()


@st.cache_data(ttl=300)
def load_history(db_path: str) -> list[MarketHistoryRecord]:
    """Every stored daily record, oldest first.

    TTL: 5 minutes (the collector runs once a day).
    """
    if not _db_exists(db_path):
        return []
    with get_connection(db_path) as conn:
        return MarketHistoryRepository(conn).get_all()


@st.cache_data(ttl=300)
def load_global_closes(db_path: str) -> list[GlobalIndexRecord]:
    """Every stored global index close, ordered by date then symbol."""
    if not _db_exists(db_path):
        return []
    with get_connection(db_path) as conn:
        return GlobalIndexRepository(conn).get_all()


@st.cache_data(ttl=300)
def load_global_changes(db_path: str) -> list[IndexChange]:
    """Latest close vs. previous close per global index."""
    if not _db_exists(db_path):
        return []
    with get_connection(db_path) as conn:
        return GlobalIndexRepository(conn).latest_changes()
