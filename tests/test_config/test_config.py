"""Tests for layered configuration loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from market_timing.config import AppConfig, SchedulerConfig, fred_api_key, load_config


@pytest.fixture
def toml_path(tmp_path):
    path = tmp_path / "default.toml"
    path.write_text(
        "[project]\ndebug = false\n"
        "[database]\ndb_path = \"data/db/x.db\"\n"
        "[collector]\nmax_workers = 4\n"
        "[scheduler]\ndaily_time = \"21:30\"\n",
        encoding="utf-8",
    )
    return path


class TestLoadConfig:
    def test_defaults_file(self):
        config = load_config()
        assert isinstance(config, AppConfig)
        assert config.scheduler.daily_time == "22:00"
        assert config.chat.model == "gemini-2.0-flash-lite"

    def test_explicit_file(self, toml_path, monkeypatch):
        monkeypatch.delenv("MARKET_TIMING_DB_PATH", raising=False)
        config = load_config(toml_path)
        assert config.database.db_path == "data/db/x.db"
        assert config.collector.max_workers == 4
        assert config.collector.timeout_seconds == 30.0

    def test_local_override(self, toml_path, monkeypatch):
        monkeypatch.delenv("MARKET_TIMING_DB_PATH", raising=False)
        (toml_path.parent / "local.toml").write_text("[collector]\nmax_workers = 2\n", encoding="utf-8")
        config = load_config(toml_path)
        assert config.collector.max_workers == 2
        assert config.scheduler.daily_time == "21:30"

    def test_env_override(self, toml_path, monkeypatch):
        monkeypatch.setenv("MARKET_TIMING_DB_PATH", "/tmp/env.db")
        monkeypatch.setenv("MARKET_TIMING_DEBUG", "true")
        config = load_config(toml_path)
        assert config.database.db_path == "/tmp/env.db"
        assert config.debug is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_secrets_not_in_config(self, toml_path, monkeypatch):
        monkeypatch.setenv("FRED_API_KEY", "abc")
        assert fred_api_key() == "abc"
        assert "abc" not in str(load_config(toml_path).model_dump())


class TestValidation:
    @pytest.mark.parametrize("value", ["24:00", "7:00", "22-00", ""])
    def test_bad_daily_time(self, value):
        with pytest.raises(ValidationError):
            SchedulerConfig(daily_time=value)

    def test_bad_log_level(self, toml_path):
        toml_path.write_text("[logging]\nlevel = \"LOUD\"\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(toml_path)
