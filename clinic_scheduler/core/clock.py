"""Clock abstraction used by the past-time guard."""

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Clock reading the system time in the clinic's timezone."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


def current_minute(clock: Clock) -> datetime:
    """Return the clock's current time truncated to the minute, without tzinfo."""
    return clock.now().replace(second=0, microsecond=0, tzinfo=None)
