"""Scheduler daemon for the daily collection jobs.

No external scheduler library is required. It uses stdlib ``time``,
``signal`` and ``subprocess`` only.

Typical usage via the CLI::

    market-timing start-scheduler --daily-time 22:00

Or import directly::

    from market_timing.scheduler import SchedulerDaemon
    daemon = SchedulerDaemon(db_path="data/db/market_timing.db")
    daemon.start()  # blocks until Ctrl-C

Jobs executed once per day at *daily_time* (local HH:MM clock):
  1. ``collect``         — market indicators → composite score → upsert.
  2. ``collect-global``  — global index closes.

Each job is invoked as a subprocess (the installed CLI), so each run has its
own process, logging and exit code. A failure is logged but does not stop the
daemon, and a failed ``collect`` does not skip ``collect-global``.
"""

from __future__ import annotations

import logging
import platform
import signal
import subprocess
import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

STEP_TIMEOUT_SECONDS = 900


# ── Helpers ───────────────────────────────────────────────────────────────────


def _find_cli_exe() -> str:
    """Locate the market-timing CLI executable inside the active virtual env.

    Adds the ``.exe`` suffix on Windows. Raises ``RuntimeError`` if not found.
    """
    scripts_dir = Path(sys.executable).parent
    name = "market-timing.exe" if platform.system() == "Windows" else "market-timing"
    candidate = scripts_dir / name
    if candidate.exists():
        return str(candidate)
    raise RuntimeError(
        f"Could not find market-timing executable in {scripts_dir}. "
        "Run: pip install -e ."
    )


def next_daily_run(daily_time: str, now: Optional[datetime] = None) -> datetime:
    """Return the next local datetime matching *daily_time* (``HH:MM``)."""
    hour, minute = (int(p) for p in daily_time.split(":"))
    now = now or datetime.now()
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


# ── Daemon ────────────────────────────────────────────────────────────────────


class SchedulerDaemon:
    """Runs the daily collection jobs once per day.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, forwarded to every sub-command.
    daily_time:
        Local 24-hour ``HH:MM`` time to fire the jobs. Defaults to ``"22:00"``
        (after the US close).
    run_on_start:
        When *True*, run the jobs once immediately on daemon start.
    cli_exe:
        Full path to the CLI executable. Auto-detected from the active
        virtual environment when *None*.
    """

    def __init__(
        self,
        db_path: str,
        daily_time: str = "22:00",
        run_on_start: bool = False,
        cli_exe: Optional[str] = None,
    ) -> None:
        self.db_path = db_path
        self.daily_time = daily_time
        self.run_on_start = run_on_start
        self.cli_exe = cli_exe or _find_cli_exe()
        self._running = False

    def _run_cmd(self, args: list[str], label: str) -> bool:
        """Run a CLI sub-command. Returns ``True`` on success (exit code 0)."""
        cmd = [self.cli_exe] + args
        log.info("[%s] Running: %s", label, " ".join(cmd))
        try:
            result = subprocess.run(cmd, timeout=STEP_TIMEOUT_SECONDS)
            if result.returncode == 0:
                log.info("[%s] Completed successfully (exit 0).", label)
                return True
            log.error("[%s] Exited with code %d.", label, result.returncode)
            return False
        except subprocess.TimeoutExpired:
            log.error("[%s] Timed out after %d s.", label, STEP_TIMEOUT_SECONDS)
            return False
        except OSError as exc:
            log.error("[%s] Could not start: %s", label, exc, exc_info=True)
            return False

    def run_daily(self) -> dict[str, bool]:
        """Execute both collection jobs. Returns job label → success."""
        log.info(
            "=== Daily collection starting at %s ===",
            datetime.now().isoformat(timespec="seconds"),
        )
        return {
            "collect": self._run_cmd(["collect", "--db-path", self.db_path], "collect"),
            "collect-global": self._run_cmd(
                ["collect-global", "--db-path", self.db_path], "collect-global"
            ),
        }

    def start(self) -> None:
        """Start the daemon. Blocks until Ctrl-C (or SIGTERM on Linux/macOS)."""
        next_daily = datetime.now() if self.run_on_start else next_daily_run(self.daily_time)

        log.info(
            "Scheduler started.  daily_time=%s  db=%s  next=%s",
            self.daily_time,
            self.db_path,
            next_daily.isoformat(timespec="seconds"),
        )

        self._running = True

        def _shutdown(signum, frame):  # noqa: ANN001
            log.info("Signal %d received — stopping scheduler.", signum)
            self._running = False

        signal.signal(signal.SIGINT, _shutdown)
        if platform.system() != "Windows":
            signal.signal(signal.SIGTERM, _shutdown)

        # Tick every 30 s
        while self._running:
            if datetime.now() >= next_daily:
                self.run_daily()
                next_daily = next_daily_run(self.daily_time)
                log.info("Next daily scheduled: %s", next_daily.isoformat(timespec="seconds"))
            time.sleep(30)

        log.info("Scheduler stopped.")
