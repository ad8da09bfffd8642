"""Weekly availability grid checks."""

from dataclasses import dataclass, field
from datetime import date, time
from uuid import UUID

from clinic_scheduler.scheduling.entities import AvailabilityWindow
from clinic_scheduler.scheduling.ports import AvailabilityRepository

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def weekday_of(day: date) -> int:
    """Weekday index of a date, 0=Monday .. 6=Sunday."""
    return day.weekday()


def weekday_name(weekday: int) -> str:
    return WEEKDAY_NAMES[weekday]


def format_windows(windows: list[AvailabilityWindow]) -> str:
    """Render windows as ``08:00-12:00, 14:00-18:00``."""
    return ", ".join(
        f"{w.start_time.strftime('%H:%M')}-{w.end_time.strftime('%H:%M')}" for w in windows
    )


@dataclass(frozen=True)
class AvailabilityCheck:
    """Outcome of a containment check.

    ``windows`` holds every window of the weekday, matching or not. An empty
    list means the provider does not work that weekday at all.
    """

    is_available: bool
    windows: list[AvailabilityWindow] = field(default_factory=list)

    @property
    def works_on_weekday(self) -> bool:
        return bool(self.windows)


class AvailabilityGrid:
    """Answers whether an interval fits in a provider's weekly grid."""

    def __init__(self, windows: AvailabilityRepository):
        self.windows = windows

    async def is_within_availability(
        self,
        provider_id: UUID,
        weekday: int,
        start: time,
        end: time,
    ) -> AvailabilityCheck:
        day_windows = sorted(
            await self.windows.list_for_weekday(provider_id, weekday),
            key=lambda w: (w.start_time, w.end_time),
        )
        return AvailabilityCheck(
            is_available=any(w.contains(start, end) for w in day_windows),
            windows=day_windows,
        )
