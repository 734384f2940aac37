"""Time zone helpers for stamping taps with site-local date and time."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import settings

NowProvider = Callable[[], datetime]


def get_local_timezone() -> ZoneInfo:
    """Return the configured site timezone."""
    timezone_name = settings.site.timezone
    try:
        return ZoneInfo(timezone_name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Invalid timezone: {timezone_name}") from exc


def to_local(value: datetime) -> datetime:
    """Convert a datetime to the configured site timezone."""
    local_tz = get_local_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=local_tz)
    return value.astimezone(local_tz)


def local_now() -> datetime:
    """Return the current time in the configured site timezone."""
    return datetime.now(get_local_timezone())


def split_local(value: datetime) -> tuple[date, time]:
    """Return the site-local calendar date and wall-clock time for a datetime.

    Ledger rows store date and time separately, without a zone, so the time is
    truncated to whole seconds and returned naive.
    """
    local_value = to_local(value)
    return local_value.date(), local_value.time().replace(microsecond=0, tzinfo=None)
