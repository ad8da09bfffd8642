"""Domain records handled by the scheduling core."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from uuid import UUID


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELED_BY_CLINIC = "canceled_by_clinic"
    CANCELED_BY_PATIENT = "canceled_by_patient"


CANCELED_STATUSES = frozenset(
    {AppointmentStatus.CANCELED_BY_CLINIC, AppointmentStatus.CANCELED_BY_PATIENT}
)


class PaymentKind(str, Enum):
    """How the consultation is paid for."""

    PRIVATE = "private"
    INSURANCE = "insurance"


@dataclass(frozen=True)
class Provider:
    id: UUID
    tenant_id: UUID
    is_active: bool
    consultation_duration_minutes: int
    full_name: str = ""


@dataclass(frozen=True)
class Patient:
    id: UUID
    tenant_id: UUID
    full_name: str = ""


@dataclass(frozen=True)
class InsurancePlan:
    id: UUID
    tenant_id: UUID
    is_active: bool
    name: str = ""


@dataclass(frozen=True)
class AvailabilityWindow:
    """Recurring weekly range in which a provider accepts appointments."""

    id: UUID
    provider_id: UUID
    weekday: int  # 0=Monday .. 6=Sunday
    start_time: time
    end_time: time

    def contains(self, start: time, end: time) -> bool:
        return self.start_time <= start and end <= self.end_time


@dataclass(frozen=True)
class Appointment:
    id: UUID
    tenant_id: UUID
    provider_id: UUID
    patient_id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    payment_kind: PaymentKind
    insurance_plan_id: UUID | None = None
    notes: str | None = None
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)

    @property
    def is_active(self) -> bool:
        return self.status not in CANCELED_STATUSES
