"""
Timezone utilities.

Conventions:
- Internal timestamps (fetch times, snapshot ages): timezone-aware UTC
- UI display ("Updated 14:05"): configurable display timezone
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from zoneinfo import ZoneInfo

UTC = timezone.utc


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return `dt` in UTC; naive datetimes are assumed to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def age_seconds(dt: Optional[datetime]) -> float:
    """
    Calculate the age of a datetime in seconds.

    Args:
        dt: The datetime to check (None counts as infinitely old).

    Returns:
        Age in seconds.
    """
    if dt is None:
        return float('inf')
    return (now_utc() - ensure_utc(dt)).total_seconds()


class DisplayTimezone:
    """
    Configurable display timezone for UI rendering.

    Used by the HTML page and the CLI to display times in the user's
    preferred timezone.
    """

    def __init__(self, tz_name: str = "America/New_York"):
        """
        Initialize with a timezone name.

        Args:
            tz_name: IANA timezone name (e.g., "America/New_York", "UTC").
        """
        self.tz = ZoneInfo(tz_name)
        self.tz_name = tz_name

    def format_time(self, utc_dt: Optional[datetime], fmt: str = "%H:%M") -> str:
        """Format a UTC datetime as local time only (defaults to now)."""
        if utc_dt is None:
            utc_dt = now_utc()
        return utc_dt.astimezone(self.tz).strftime(fmt)
