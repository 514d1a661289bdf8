"""
Market Timing Dashboard — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (DB init, collection stage, dashboard render, chat).
  5. Report result to stdout.

Install and run::

    pip install -e .
    market-timing --help
    market-timing init-db
    market-timing validate-config
    market-timing collect
    market-timing collect-global
    market-timing score --date 2026-01-15
    market-timing history --days 30
    market-timing global-indices
    market-timing chat "지금 목돈을 넣어도 될까요?"
    market-timing start-scheduler --daily-time 22:00
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="market-timing",
    help="Market Timing Dashboard — indicator collection, composite score and stance.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from market_timing.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from market_timing.utils.logging import configure_logging
    configure_logging(config.logging)


def _ensure_schema(config, db_path: str) -> None:
    from market_timing.db.connection import connect_from_config
    from market_timing.db.migrations import run_migrations
    from market_timing.db.schema import apply_schema

    with connect_from_config(config.database, db_path) as conn:
        apply_schema(conn)
        run_migrations(conn)


def _load_history(config, db_path: str):
    from market_timing.db.connection import connect_from_config
    from market_timing.db.repositories.history_repo import MarketHistoryRepository

    with connect_from_config(config.database, db_path) as conn:
        return MarketHistoryRepository(conn).get_all()


def _load_global_changes(config, db_path: str):
    from market_timing.db.connection import connect_from_config
    from market_timing.db.repositories.global_index_repo import GlobalIndexRepository

    with connect_from_config(config.database, db_path) as conn:
        return GlobalIndexRepository(conn).latest_changes()


def _parse_date_or_exit(value: Optional[str]):
    from market_timing.utils.time_utils import parse_iso_date

    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        typer.echo(f"[ERROR] Invalid date '{value}'. Use YYYY-MM-DD.", err=True)
        raise typer.Exit(code=1)


def _build_view_or_exit(history, day):
    """Dashboard view for ``day`` (newest record when None)."""
    from market_timing.models.market import MarketIndicators
    from market_timing.reporting.dashboard import build_dashboard, select_record

    record = select_record(history, day)
    if record is None:
        if day is None:
            typer.echo("[ERROR] No market history stored. Run: market-timing collect", err=True)
        else:
            typer.echo(f"[ERROR] No market record for {day.isoformat()}.", err=True)
        raise typer.Exit(code=1)
    return record, build_dashboard(history, MarketIndicators.from_history_record(record))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    Also runs pending schema migrations.
    """
    from market_timing.db.connection import connect_from_config
    from market_timing.db.migrations import run_migrations
    from market_timing.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with connect_from_config(config.database, target_path) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    from market_timing.config import fred_api_key, gemini_api_key

    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Collector:        timeout={config.collector.timeout_seconds}s "
               f"workers={config.collector.max_workers}")
    typer.echo(f"  Chat model:       {config.chat.model}")
    typer.echo(f"  Daily time:       {config.scheduler.daily_time}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")
    typer.echo(f"  FRED_API_KEY:     {'set' if fred_api_key() else 'MISSING'}")
    typer.echo(f"  GEMINI_API_KEY:   {'set' if gemini_api_key() else 'MISSING'}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("collect")
def collect(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Collect today's market indicators, compute the composite score, upsert.

    \b
    Sources:
      FRED            macro series (requires FRED_API_KEY)
      Yahoo Finance   VIX, SPY, QQQ, SGOV, GLD, SCHD, VYM, dollar index
      CNN             Fear & Greed index

    Individual source failures leave those fields empty; the composite score
    reweights over the core indicators that arrived.
    """
    from market_timing.pipeline.collect import CollectMarketDataStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    typer.echo(f"collect | db={target_db}")
    try:
        run = CollectMarketDataStage(config=config, db_path=target_db).run()
    except Exception as exc:
        typer.echo(f"[ERROR] Collection failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  status={run.status} | rows={run.rows_processed}")
    typer.echo("[OK] Market data collected.")


@app.command("collect-global")
def collect_global(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Collect the latest close of the 16 tracked global equity indices."""
    from market_timing.pipeline.collect import CollectGlobalIndicesStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    typer.echo(f"collect-global | db={target_db}")
    try:
        run = CollectGlobalIndicesStage(config=config, db_path=target_db).run()
    except Exception as exc:
        typer.echo(f"[ERROR] Global index collection failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  status={run.status} | indices={run.rows_processed}")
    typer.echo("[OK] Global indices collected.")


@app.command("score")
def score(
    date_str: Optional[str] = typer.Option(
        None,
        "--date",
        help="Day to show (YYYY-MM-DD). Defaults to the newest stored record.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Show the dashboard: composite score, stance, indicator scores, ranking."""
    from market_timing.reporting.formatters import format_dashboard_text

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    day = _parse_date_or_exit(date_str)
    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    history = _load_history(config, target_db)
    _, view = _build_view_or_exit(history, day)
    typer.echo(format_dashboard_text(view))


@app.command("history")
def history(
    days: Optional[int] = typer.Option(
        None,
        "--days",
        min=1,
        max=365,
        help="Number of days to list (1-365). Defaults to collector.history_days.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List stored daily records for the last N days, newest first."""
    from market_timing.db.connection import connect_from_config
    from market_timing.db.repositories.history_repo import MarketHistoryRepository
    from market_timing.reporting.formatters import format_history_table
    from market_timing.utils.time_utils import days_before, utc_today

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    window = days or config.collector.history_days
    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    with connect_from_config(config.database, target_db) as conn:
        records = MarketHistoryRepository(conn).get_since(days_before(utc_today(), window))

    typer.echo(f"Market history | last {window} day(s)")
    typer.echo(format_history_table(records))


@app.command("global-indices")
def global_indices(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Show the latest close and daily change of each global index by region."""
    from market_timing.reporting.formatters import format_global_changes

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)
    typer.echo(format_global_changes(_load_global_changes(config, target_db)))


@app.command("chat")
def chat(
    question: str = typer.Argument(..., help="Question for the market assistant."),
    date_str: Optional[str] = typer.Option(
        None,
        "--date",
        help="Day whose indicators form the context. Defaults to the newest record.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Ask the AI market assistant a question about the current indicators.

    \b
    Credential setup (.env, gitignored):
      GEMINI_API_KEY=...
    """
    from market_timing.chat.gemini_client import ChatError, GeminiChatClient
    from market_timing.config import gemini_api_key
    from market_timing.reporting.chat_context import build_chat_context
    from market_timing.reporting.dashboard import select_record

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if not question.strip():
        typer.echo("[ERROR] Question is required.", err=True)
        raise typer.Exit(code=1)

    day = _parse_date_or_exit(date_str)
    target_db = db_path or config.database.db_path
    _ensure_schema(config, target_db)

    history_records = _load_history(config, target_db)
    record, view = _build_view_or_exit(history_records, day)
    context = build_chat_context(
        view,
        latest_record=select_record(history_records),
        global_changes=_load_global_changes(config, target_db),
    )

    try:
        with GeminiChatClient.from_config(config.chat, gemini_api_key()) as client:
            answer = client.ask(question, context, record.date.isoformat())
    except (ChatError, RuntimeError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(answer)


@app.command("start-scheduler")
def start_scheduler(
    daily_time: Optional[str] = typer.Option(
        None,
        "--daily-time",
        help="Local HH:MM time for the daily collection. Defaults to scheduler.daily_time.",
    ),
    run_now: bool = typer.Option(
        False,
        "--run-now",
        help="Run the collection jobs once immediately on start.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Run the collection jobs every day at a fixed local time. Blocks until Ctrl-C."""
    from market_timing.config import SchedulerConfig
    from market_timing.scheduler import SchedulerDaemon

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if daily_time is not None:
        try:
            SchedulerConfig(daily_time=daily_time)
        except ValueError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)

    try:
        daemon = SchedulerDaemon(
            db_path=db_path or config.database.db_path,
            daily_time=daily_time or config.scheduler.daily_time,
            run_on_start=run_now,
        )
    except RuntimeError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    daemon.start()


if __name__ == "__main__":
    app()
