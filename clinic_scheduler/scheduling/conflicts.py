"""Double-booking detection.

Two half-open intervals ``[a1, a2)`` and ``[b1, b2)`` overlap iff
``a1 < b2 and a2 > b1``. Only active (non-canceled) appointments obstruct a
slot, and an appointment never obstructs its own reschedule.
"""

from collections.abc import Iterable
from datetime import date, time
from uuid import UUID

from clinic_scheduler.scheduling.entities import Appointment
from clinic_scheduler.scheduling.ports import AppointmentRepository


def intervals_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    return a_start < b_end and a_end > b_start


def find_conflicts(
    appointments: Iterable[Appointment],
    start: time,
    end: time,
    exclude_id: UUID | None = None,
) -> list[Appointment]:
    """Active appointments from ``appointments`` overlapping [start, end).

    The caller is responsible for passing the appointments of a single
    (clinic, provider, date).
    """
    return [
        a
        for a in appointments
        if a.is_active
        and a.id != exclude_id
        and intervals_overlap(start, end, a.start_time, a.end_time)
    ]


class ConflictDetector:
    """Checks a candidate interval against the persisted agenda."""

    def __init__(self, appointments: AppointmentRepository):
        self.appointments = appointments

    async def has_conflict(
        self,
        tenant_id: UUID,
        provider_id: UUID,
        day: date,
        start: time,
        end: time,
        exclude_appointment_id: UUID | None = None,
    ) -> bool:
        return await self.appointments.exists_conflict(
            tenant_id, provider_id, day, start, end, exclude_id=exclude_appointment_id
        )
