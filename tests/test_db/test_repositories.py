"""Tests for repository round-trip operations using in-memory SQLite."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from market_timing.db.repositories.global_index_repo import GlobalIndexRepository
from market_timing.db.repositories.history_repo import MarketHistoryRepository
from market_timing.db.repositories.run_repo import RunMetadataRepository
from market_timing.models.market import GlobalIndexRecord


def _close(symbol: str, day: date, price: float, region: str = "미국") -> GlobalIndexRecord:
    return GlobalIndexRecord(symbol=symbol, name=symbol.lstrip("^"), region=region,
                             date=day, close_price=price)


# ── Market history ────────────────────────────────────────────────────────────

class TestMarketHistoryRepository:
    def test_upsert_and_fetch(self, in_memory_db, sample_record):
        repo = MarketHistoryRepository(in_memory_db)
        repo.upsert(sample_record)
        fetched = repo.get_by_date(sample_record.date)
        assert fetched == sample_record

    def test_upsert_same_date_overwrites(self, in_memory_db, make_record):
        repo = MarketHistoryRepository(in_memory_db)
        day = date(2026, 2, 2)
        repo.upsert(make_record(day, composite_score=40.0, vix=30.0))
        repo.upsert(make_record(day, composite_score=55.0, vix=18.0))
        assert repo.count() == 1
        fetched = repo.get_by_date(day)
        assert fetched.composite_score == 55.0
        assert fetched.vix == 18.0

    def test_null_columns_survive(self, in_memory_db, make_record):
        repo = MarketHistoryRepository(in_memory_db)
        repo.upsert(make_record(date(2026, 2, 2), vix=None, hy_spread=3.3))
        fetched = repo.get_by_date(date(2026, 2, 2))
        assert fetched.vix is None
        assert fetched.hy_spread == 3.3

    def test_raw_data_round_trip_keeps_unicode(self, in_memory_db, make_record):
        repo = MarketHistoryRepository(in_memory_db)
        raw = {"vix": 18.5, "fearGreedRating": "공포", "spyVs200MA": None}
        repo.upsert(make_record(date(2026, 2, 2), raw_data=raw))
        assert repo.get_by_date(date(2026, 2, 2)).raw_data == raw
        stored = in_memory_db.execute("SELECT raw_data FROM market_indicators_history;").fetchone()
        assert "공포" in stored["raw_data"]

    def test_reads_are_oldest_first(self, in_memory_db, sample_history):
        repo = MarketHistoryRepository(in_memory_db)
        assert repo.upsert_batch(list(reversed(sample_history))) == 20
        dates = [r.date for r in repo.get_all()]
        assert dates == sorted(dates)

    def test_get_latest(self, in_memory_db, sample_history):
        repo = MarketHistoryRepository(in_memory_db)
        assert repo.get_latest() is None
        repo.upsert_batch(sample_history)
        assert repo.get_latest().date == date(2026, 1, 15)

    def test_get_since_and_until(self, in_memory_db, sample_history):
        repo = MarketHistoryRepository(in_memory_db)
        repo.upsert_batch(sample_history)
        since = repo.get_since(date(2026, 1, 1))
        assert [r.date for r in since] == [date(2026, 1, 1), date(2026, 1, 8), date(2026, 1, 15)]
        until = repo.get_until(date(2025, 9, 11))
        assert until[-1].date == date(2025, 9, 11)
        assert all(r.date <= date(2025, 9, 11) for r in until)

    def test_empty_batch(self, in_memory_db):
        assert MarketHistoryRepository(in_memory_db).upsert_batch([]) == 0


# ── Global indices ────────────────────────────────────────────────────────────

class TestGlobalIndexRepository:
    def test_upsert_keyed_on_symbol_and_date(self, in_memory_db):
        repo = GlobalIndexRepository(in_memory_db)
        repo.upsert_batch([_close("^GSPC", date(2026, 3, 2), 6000.0)])
        repo.upsert_batch([_close("^GSPC", date(2026, 3, 2), 6010.5)])
        assert repo.count() == 1
        assert repo.get_all()[0].close_price == 6010.5

    def test_get_for_symbol(self, in_memory_db):
        repo = GlobalIndexRepository(in_memory_db)
        repo.upsert_batch([
            _close("^GSPC", date(2026, 3, 3), 6050.0),
            _close("^GSPC", date(2026, 3, 2), 6000.0),
            _close("^N225", date(2026, 3, 2), 38000.0, region="아시아"),
        ])
        closes = repo.get_for_symbol("^GSPC")
        assert [c.date for c in closes] == [date(2026, 3, 2), date(2026, 3, 3)]
        assert repo.get_for_symbol("^GSPC", since=date(2026, 3, 3))[0].close_price == 6050.0

    def test_latest_changes(self, in_memory_db):
        repo = GlobalIndexRepository(in_memory_db)
        repo.upsert_batch([
            _close("^GSPC", date(2026, 3, 2), 6000.0),
            _close("^GSPC", date(2026, 3, 3), 6060.0),
            _close("^N225", date(2026, 3, 3), 38000.0, region="아시아"),
        ])
        changes = repo.latest_changes()
        assert len(changes) == 1
        assert changes[0].symbol == "^GSPC"
        assert changes[0].change == pytest.approx(60.0)
        assert changes[0].change_percent == pytest.approx(1.0)

    def test_empty_batch(self, in_memory_db):
        assert GlobalIndexRepository(in_memory_db).upsert_batch([]) == 0


# ── Run metadata ──────────────────────────────────────────────────────────────

class TestRunMetadataRepository:
    def test_insert_and_fetch(self, in_memory_db, sample_run_metadata):
        repo = RunMetadataRepository(in_memory_db)
        run_id = repo.insert_run(sample_run_metadata)
        assert run_id > 0
        fetched = repo.get_run_by_slug(sample_run_metadata.run_slug)
        assert fetched.run_id == run_id
        assert fetched.config_snapshot == sample_run_metadata.config_snapshot
        assert fetched.status == "started"

    def test_update_run(self, in_memory_db, sample_run_metadata):
        repo = RunMetadataRepository(in_memory_db)
        sample_run_metadata.run_id = repo.insert_run(sample_run_metadata)
        sample_run_metadata.status = "success"
        sample_run_metadata.rows_processed = 1
        sample_run_metadata.finished_at = datetime(2026, 1, 15, 22, 0, 5, tzinfo=timezone.utc)
        repo.update_run(sample_run_metadata)

        fetched = repo.get_run_by_slug(sample_run_metadata.run_slug)
        assert fetched.status == "success"
        assert fetched.rows_processed == 1
        assert fetched.finished_at == sample_run_metadata.finished_at

    def test_update_without_id_raises(self, in_memory_db, sample_run_metadata):
        with pytest.raises(ValueError):
            RunMetadataRepository(in_memory_db).update_run(sample_run_metadata)

    def test_recent_runs_filtered_by_stage(self, in_memory_db, sample_run_metadata):
        repo = RunMetadataRepository(in_memory_db)
        repo.insert_run(sample_run_metadata)
        other = sample_run_metadata.model_copy(
            update={"run_slug": "test-run-uuid-0002", "pipeline_stage": "collect_global_indices"}
        )
        repo.insert_run(other)
        assert len(repo.get_recent_runs()) == 2
        runs = repo.get_recent_runs(pipeline_stage="collect_global_indices")
        assert [r.run_slug for r in runs] == ["test-run-uuid-0002"]

    def test_missing_slug(self, in_memory_db):
        assert RunMetadataRepository(in_memory_db).get_run_by_slug("nope") is None
