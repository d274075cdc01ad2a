"""Admission rules for a single requested leave date.

Duplicate prevention is keyed on ``(employeeId, date)`` only: an employee has
at most one live entry per day whatever its type.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, Iterable, Optional


INVALID_FORMAT = "invalid_format"
WEEKEND = "weekend"
PAST_OR_TODAY = "past_or_today"
DUPLICATE_EXISTING = "duplicate_existing"

REJECTION_REASONS = (INVALID_FORMAT, WEEKEND, PAST_OR_TODAY, DUPLICATE_EXISTING)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(date_str: str) -> Optional[dt.date]:
    """Return the calendar date for ``YYYY-MM-DD`` or ``None`` when invalid."""
    if not _DATE_PATTERN.match(date_str):
        return None
    try:
        return dt.datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def is_weekend(day: dt.date) -> bool:
    return day.weekday() >= 5


def has_active_entry(entries: Iterable[Dict[str, Any]], employee_id: str, date_str: str) -> bool:
    """True when the employee already holds a pending or approved entry that day."""
    return any(
        entry.get("employeeId") == employee_id
        and entry.get("date") == date_str
        and str(entry.get("status") or "").lower() != "rejected"
        for entry in entries
    )


def rejection_reason(
    entries: Iterable[Dict[str, Any]],
    employee_id: str,
    date_str: str,
    today: dt.date,
) -> Optional[str]:
    """Check one candidate date against a snapshot of entries.

    Returns the first failing reason, or ``None`` when the date is admitted.
    Checks run in a fixed order: format, weekend, past/today, duplicate.
    """
    day = parse_date(date_str)
    if day is None:
        return INVALID_FORMAT
    if is_weekend(day):
        return WEEKEND
    if day <= today:
        return PAST_OR_TODAY
    if has_active_entry(entries, employee_id, date_str):
        return DUPLICATE_EXISTING
    return None


__all__ = [
    "DUPLICATE_EXISTING",
    "INVALID_FORMAT",
    "PAST_OR_TODAY",
    "REJECTION_REASONS",
    "WEEKEND",
    "has_active_entry",
    "is_weekend",
    "parse_date",
    "rejection_reason",
]
