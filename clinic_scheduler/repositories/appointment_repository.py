"""Appointment persistence using SQLAlchemy Core."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, time
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import ConflictException
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.scheduling.entities import (
    CANCELED_STATUSES,
    Appointment,
    AppointmentStatus,
    PaymentKind,
)

# Name of the exclusion constraint created by migration 002.
NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"


def _to_appointment(row: Any) -> Appointment:
    return Appointment(
        id=row.id,
        tenant_id=row.clinic_id,
        provider_id=row.provider_id,
        patient_id=row.patient_id,
        appointment_date=row.appointment_date,
        start_time=row.start_time,
        end_time=row.end_time,
        status=AppointmentStatus(row.status),
        payment_kind=PaymentKind(row.payment_kind),
        insurance_plan_id=row.insurance_plan_id,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAppointmentRepository:
    """Appointment store backed by PostgreSQL.

    ``slot_lock`` takes a transaction-scoped advisory lock per
    (clinic, provider, date) and commits once when the outermost lock exits.
    Writes made by ``save`` are only flushed, never committed on their own.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._lock_depth = 0

    @asynccontextmanager
    async def slot_lock(self, tenant_id: UUID, provider_id: UUID, day: date) -> AsyncIterator[None]:
        key = f"{tenant_id}:{provider_id}:{day.isoformat()}"
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(select(func.pg_advisory_xact_lock(func.hashtext(key))))

        self._lock_depth += 1
        try:
            yield
        except BaseException:
            self._lock_depth -= 1
            if self._lock_depth == 0:
                await self.db.rollback()
            raise
        self._lock_depth -= 1
        if self._lock_depth == 0:
            await self.db.commit()

    async def save(self, appointment: Appointment) -> Appointment:
        values = {
            "id": appointment.id,
            "clinic_id": appointment.tenant_id,
            "provider_id": appointment.provider_id,
            "patient_id": appointment.patient_id,
            "insurance_plan_id": appointment.insurance_plan_id,
            "appointment_date": appointment.appointment_date,
            "start_time": appointment.start_time,
            "end_time": appointment.end_time,
            "status": appointment.status.value,
            "payment_kind": appointment.payment_kind.value,
            "notes": appointment.notes,
            "created_at": appointment.created_at or func.now(),
            "updated_at": appointment.updated_at or func.now(),
        }
        stmt = insert(appointments).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[appointments.c.id],
            set_={k: stmt.excluded[k] for k in values if k not in ("id", "created_at")},
        ).returning(appointments)

        try:
            result = await self.db.execute(stmt)
        except IntegrityError as e:
            if NO_OVERLAP_CONSTRAINT in str(e.orig):
                raise ConflictException("The provider already has an appointment at this time.") from e
            raise

        return _to_appointment(result.fetchone())

    async def find_by_id(self, appointment_id: UUID) -> Appointment | None:
        row = (
            await self.db.execute(select(appointments).where(appointments.c.id == appointment_id))
        ).fetchone()
        return _to_appointment(row) if row else None

    async def find_all_by_tenant(self, tenant_id: UUID) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(appointments.c.clinic_id == tenant_id)
            .order_by(appointments.c.appointment_date, appointments.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [_to_appointment(row) for row in result.fetchall()]

    async def find_by_provider_and_date(
        self, provider_id: UUID, day: date, tenant_id: UUID
    ) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.clinic_id == tenant_id,
                    appointments.c.provider_id == provider_id,
                    appointments.c.appointment_date == day,
                )
            )
            .order_by(appointments.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [_to_appointment(row) for row in result.fetchall()]

    async def exists_conflict(
        self,
        tenant_id: UUID,
        provider_id: UUID,
        day: date,
        start: time,
        end: time,
        exclude_id: UUID | None = None,
    ) -> bool:
        conditions = [
            appointments.c.clinic_id == tenant_id,
            appointments.c.provider_id == provider_id,
            appointments.c.appointment_date == day,
            appointments.c.status.not_in([s.value for s in CANCELED_STATUSES]),
            appointments.c.start_time < end,
            appointments.c.end_time > start,
        ]
        if exclude_id is not None:
            conditions.append(appointments.c.id != exclude_id)

        stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        result = await self.db.execute(stmt)
        return (result.scalar() or 0) > 0
