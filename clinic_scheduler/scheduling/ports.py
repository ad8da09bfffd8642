"""Collaborator interfaces consumed by the scheduling core.

Every lookup is scoped to a clinic (tenant). A record that exists but belongs
to another clinic is reported exactly like a missing one: ``None``.
"""

from contextlib import AbstractAsyncContextManager
from datetime import date, time
from typing import Protocol
from uuid import UUID

from clinic_scheduler.scheduling.entities import (
    Appointment,
    AvailabilityWindow,
    InsurancePlan,
    Patient,
    Provider,
)


class TenantRepository(Protocol):
    async def exists(self, tenant_id: UUID) -> bool: ...


class ProviderRepository(Protocol):
    async def get(self, provider_id: UUID, tenant_id: UUID) -> Provider | None: ...


class PatientRepository(Protocol):
    async def get(self, patient_id: UUID, tenant_id: UUID) -> Patient | None: ...


class InsurancePlanRepository(Protocol):
    async def get(self, plan_id: UUID, tenant_id: UUID) -> InsurancePlan | None: ...


class AvailabilityRepository(Protocol):
    async def list_for_weekday(self, provider_id: UUID, weekday: int) -> list[AvailabilityWindow]:
        """Windows of one provider on one weekday, ordered by start time."""
        ...

    async def add(self, window: AvailabilityWindow) -> AvailabilityWindow: ...

    async def get(self, window_id: UUID, tenant_id: UUID) -> AvailabilityWindow | None: ...

    async def list_by_tenant(self, tenant_id: UUID) -> list[AvailabilityWindow]: ...

    async def list_by_provider(self, provider_id: UUID, tenant_id: UUID) -> list[AvailabilityWindow]: ...

    async def delete(self, window_id: UUID) -> None: ...


class AppointmentRepository(Protocol):
    async def save(self, appointment: Appointment) -> Appointment:
        """Insert or overwrite an appointment in a single write."""
        ...

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Unscoped lookup; the caller applies the clinic check."""
        ...

    async def find_all_by_tenant(self, tenant_id: UUID) -> list[Appointment]: ...

    async def find_by_provider_and_date(
        self, provider_id: UUID, day: date, tenant_id: UUID
    ) -> list[Appointment]: ...

    async def exists_conflict(
        self,
        tenant_id: UUID,
        provider_id: UUID,
        day: date,
        start: time,
        end: time,
        exclude_id: UUID | None = None,
    ) -> bool:
        """True if an active appointment other than ``exclude_id`` overlaps [start, end)."""
        ...

    def slot_lock(
        self, tenant_id: UUID, provider_id: UUID, day: date
    ) -> AbstractAsyncContextManager[None]:
        """Serialize check-then-write sequences for one (clinic, provider, date).

        Writes issued inside the context become visible together when it exits
        cleanly and are discarded when it exits with an exception.
        """
        ...
