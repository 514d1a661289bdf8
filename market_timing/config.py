"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``MARKET_TIMING_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

All pipeline stages and CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.
The only exception is provider secrets (``FRED_API_KEY``, ``GEMINI_API_KEY``),
which are read from the environment by ``fred_api_key()`` / ``gemini_api_key()``
and are never stored on the config object (it is dumped into run metadata).
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/market_timing.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class CollectorConfig(BaseModel):
    """HTTP collector settings for FRED, Yahoo Finance and CNN."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = 30.0
    max_workers: int = 8
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    earnings_yield_pct: float = 5.0   # ERP proxy: inverse of a ~20x P/E
    history_days: int = 365

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}.")
        return v

    @field_validator("history_days")
    @classmethod
    def validate_history_days(cls, v: int) -> int:
        if not 1 <= v <= 365:
            raise ValueError(f"history_days must be in [1, 365], got {v}.")
        return v


class ChatConfig(BaseModel):
    """Generative-AI chat assistant settings."""

    model_config = ConfigDict(frozen=True)

    model: str = "gemini-2.0-flash-lite"
    temperature: float = 0.7
    max_output_tokens: int = 600
    timeout_seconds: float = 60.0

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError(f"temperature must be in [0.0, 2.0], got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/market_timing.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class SchedulerConfig(BaseModel):
    """Daily collection schedule (after US close and the Fear & Greed close)."""

    model_config = ConfigDict(frozen=True)

    daily_time: str = "22:00"

    @field_validator("daily_time")
    @classmethod
    def validate_daily_time(cls, v: str) -> str:
        if not re.fullmatch(r"([01]\d|2[0-3]):[0-5]\d", v):
            raise ValueError(f"daily_time must be HH:MM (24h), got '{v}'.")
        return v


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    All pipeline stages and CLI commands receive an ``AppConfig`` instance.
    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    collector: CollectorConfig = CollectorConfig()
    chat: ChatConfig = ChatConfig()
    logging: LoggingConfig = LoggingConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    debug: bool = False


# ── Secrets ───────────────────────────────────────────────────────────────────


def fred_api_key() -> Optional[str]:
    """Return the FRED API key from the environment, or ``None``."""
    return os.environ.get("FRED_API_KEY") or None


def gemini_api_key() -> Optional[str]:
    """Return the Gemini API key from the environment, or ``None``."""
    return os.environ.get("GEMINI_API_KEY") or None


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply MARKET_TIMING_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply MARKET_TIMING_* env vars to the raw config dict.

    Supported overrides:
      MARKET_TIMING_DB_PATH    → raw["database"]["db_path"]
      MARKET_TIMING_LOG_LEVEL  → raw["logging"]["level"]
      MARKET_TIMING_DEBUG      → raw["debug"]
    """
    if db_path := os.environ.get("MARKET_TIMING_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("MARKET_TIMING_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("MARKET_TIMING_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        collector=CollectorConfig(**raw.get("collector", {})),
        chat=ChatConfig(**raw.get("chat", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        scheduler=SchedulerConfig(**raw.get("scheduler", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
