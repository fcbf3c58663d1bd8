"""Time utilities for consistent timestamp handling."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


class SystemClock:
    """Clock backed by the system time, evaluated in the hotel's timezone."""

    def __init__(self, tz_name: str = "UTC") -> None:
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return utc_now().astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()
