"""
Date helpers for daily snapshots and history windows.

Key concepts:
  - Snapshot date: every collected record is keyed on the UTC calendar day.
  - History windows: "last N days" and "last year" cut-offs are always computed
    from a caller-supplied ``today`` so scoring stays deterministic in tests.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def utc_today() -> date:
    """Return today's calendar date in UTC (the snapshot key)."""
    return utcnow().date()


def days_before(reference: date, days: int) -> date:
    """Return the date ``days`` calendar days before ``reference``.

    Raises:
        ValueError: If ``days`` is negative.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}.")
    return reference - timedelta(days=days)


def one_year_before(reference: date) -> date:
    """Return the same calendar day one year earlier.

    Feb 29 maps to Feb 28 of the previous year.
    """
    try:
        return reference.replace(year=reference.year - 1)
    except ValueError:
        return reference.replace(year=reference.year - 1, day=28)


def parse_iso_date(value: str | date) -> date:
    """Parse ``YYYY-MM-DD`` (or pass a ``date`` through unchanged).

    Raises:
        ValueError: If the string is not an ISO calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])
