"""Appointment scheduling service.

Ties the availability grid, the conflict detector and the lifecycle rules
together. Every mutating operation validates completely and then issues one
write while holding the store's slot lock for the affected
(clinic, provider, date) keys, so two bookings for the same provider and day
can never both pass the conflict check.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from functools import wraps
from typing import Any, TypeVar
from uuid import UUID, uuid4

import structlog

from clinic_scheduler.core.clock import Clock, current_minute
from clinic_scheduler.core.exceptions import (
    AppException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
)
from clinic_scheduler.scheduling.availability import (
    AvailabilityGrid,
    format_windows,
    weekday_name,
    weekday_of,
)
from clinic_scheduler.scheduling.conflicts import ConflictDetector
from clinic_scheduler.scheduling.entities import (
    Appointment,
    AppointmentStatus,
    PaymentKind,
    Provider,
)
from clinic_scheduler.scheduling.ports import (
    AppointmentRepository,
    AvailabilityRepository,
    InsurancePlanRepository,
    PatientRepository,
    ProviderRepository,
    TenantRepository,
)
from clinic_scheduler.scheduling.state_machine import Action, cancel_action, ensure_transition
from clinic_scheduler.schemas.appointments import AppointmentCreate, AppointmentReschedule

logger = structlog.get_logger(__name__)

T = TypeVar("T")

APPOINTMENT_NOT_FOUND = "Appointment not found"
PROVIDER_NOT_FOUND = "Provider not found or does not belong to this clinic"
PATIENT_NOT_FOUND = "Patient not found or does not belong to this clinic"
PLAN_NOT_FOUND = "Insurance plan not found for this clinic"


def logs_rejection(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Log application errors raised by a service operation before re-raising them."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except AppException as e:
                logger.info(
                    "appointment_rejected",
                    operation=operation,
                    error=e.__class__.__name__,
                    reason=e.message,
                )
                raise

        return wrapper

    return decorator


class SchedulingService:
    """Service for booking and managing appointments."""

    def __init__(
        self,
        tenants: TenantRepository,
        providers: ProviderRepository,
        patients: PatientRepository,
        insurance_plans: InsurancePlanRepository,
        windows: AvailabilityRepository,
        appointments: AppointmentRepository,
        clock: Clock,
    ):
        """Initialize service with its collaborators."""
        self.tenants = tenants
        self.providers = providers
        self.patients = patients
        self.insurance_plans = insurance_plans
        self.appointments = appointments
        self.clock = clock
        self.grid = AvailabilityGrid(windows)
        self.conflicts = ConflictDetector(appointments)

    # Reads

    async def find_by_id(self, appointment_id: UUID, tenant_id: UUID) -> Appointment:
        """
        Get appointment by ID within a clinic.

        Raises:
            NotFoundException: If the appointment is missing or belongs to another clinic
        """
        appointment = await self.appointments.find_by_id(appointment_id)
        if appointment is None or appointment.tenant_id != tenant_id:
            raise NotFoundException(APPOINTMENT_NOT_FOUND)
        return appointment

    async def find_all_by_tenant(self, tenant_id: UUID) -> list[Appointment]:
        return await self.appointments.find_all_by_tenant(tenant_id)

    async def find_by_provider_and_date(
        self, tenant_id: UUID, provider_id: UUID, day: date
    ) -> list[Appointment]:
        """Agenda of one provider on one day, ordered by start time."""
        await self._require_provider(provider_id, tenant_id)
        agenda = await self.appointments.find_by_provider_and_date(provider_id, day, tenant_id)
        return sorted(agenda, key=lambda a: a.start_time)

    # Mutations

    @logs_rejection("create")
    async def create(self, tenant_id: UUID, data: AppointmentCreate) -> Appointment:
        """
        Book a new appointment.

        Args:
            tenant_id: Clinic the booking belongs to
            data: Booking request

        Returns:
            The persisted appointment, in ``scheduled`` status

        Raises:
            NotFoundException: Clinic, provider, patient or insurance plan not found
            BusinessRuleException: A scheduling rule rejected the booking
            ConflictException: The slot overlaps another active appointment
        """
        async with self._locked(tenant_id, data.provider_id, data.appointment_date):
            if not await self.tenants.exists(tenant_id):
                raise NotFoundException("Clinic not found")
            provider = await self._require_provider(data.provider_id, tenant_id)
            if await self.patients.get(data.patient_id, tenant_id) is None:
                raise NotFoundException(PATIENT_NOT_FOUND)
            if not provider.is_active:
                raise BusinessRuleException("Cannot book an appointment with an inactive provider.")

            end = self._end_time(provider, data.appointment_date, data.start_time)
            await self._validate_slot(tenant_id, provider, data.appointment_date, data.start_time, end)
            plan_id = await self._resolve_insurance_plan(
                tenant_id, data.payment_kind, data.insurance_plan_id
            )

            now = self.clock.now()
            appointment = await self.appointments.save(
                Appointment(
                    id=uuid4(),
                    tenant_id=tenant_id,
                    provider_id=provider.id,
                    patient_id=data.patient_id,
                    appointment_date=data.appointment_date,
                    start_time=data.start_time,
                    end_time=end,
                    status=AppointmentStatus.SCHEDULED,
                    payment_kind=data.payment_kind,
                    insurance_plan_id=plan_id,
                    notes=data.notes,
                    created_at=now,
                    updated_at=now,
                )
            )

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            tenant_id=str(tenant_id),
            provider_id=str(provider.id),
            date=appointment.appointment_date.isoformat(),
            start=appointment.start_time.isoformat(),
        )
        return appointment

    @logs_rejection("reschedule")
    async def reschedule(
        self, appointment_id: UUID, tenant_id: UUID, data: AppointmentReschedule
    ) -> Appointment:
        """
        Move an appointment to a new date and start time.

        The consultation length comes from the provider's current setting and
        the appointment goes back to ``scheduled``.
        """
        original = await self.find_by_id(appointment_id, tenant_id)
        async with self._locked(
            tenant_id, original.provider_id, original.appointment_date, data.new_date
        ):
            current = await self.find_by_id(appointment_id, tenant_id)
            next_status = ensure_transition(current.status, Action.RESCHEDULE)

            provider = await self._require_provider(current.provider_id, tenant_id)
            new_end = self._end_time(provider, data.new_date, data.new_start_time)
            await self._validate_slot(
                tenant_id,
                provider,
                data.new_date,
                data.new_start_time,
                new_end,
                exclude_id=current.id,
            )

            appointment = await self.appointments.save(
                replace(
                    current,
                    appointment_date=data.new_date,
                    start_time=data.new_start_time,
                    end_time=new_end,
                    status=next_status,
                    updated_at=self.clock.now(),
                )
            )

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment.id),
            tenant_id=str(tenant_id),
            from_date=current.appointment_date.isoformat(),
            from_start=current.start_time.isoformat(),
            date=appointment.appointment_date.isoformat(),
            start=appointment.start_time.isoformat(),
        )
        return appointment

    @logs_rejection("cancel")
    async def cancel(self, appointment_id: UUID, tenant_id: UUID, by_clinic: bool) -> Appointment:
        """Cancel an appointment on behalf of the clinic or the patient."""
        return await self._change_status(
            appointment_id, tenant_id, cancel_action(by_clinic), event="appointment_canceled"
        )

    @logs_rejection("update_status")
    async def update_status(
        self, appointment_id: UUID, tenant_id: UUID, requested: AppointmentStatus
    ) -> Appointment:
        """Set a non-cancel status (confirm, complete, no-show, back to scheduled)."""
        return await self._change_status(
            appointment_id,
            tenant_id,
            Action.UPDATE_STATUS,
            requested=requested,
            event="appointment_status_updated",
        )

    # Helpers

    async def _change_status(
        self,
        appointment_id: UUID,
        tenant_id: UUID,
        action: Action,
        event: str,
        requested: AppointmentStatus | None = None,
    ) -> Appointment:
        original = await self.find_by_id(appointment_id, tenant_id)
        async with self._locked(tenant_id, original.provider_id, original.appointment_date):
            current = await self.find_by_id(appointment_id, tenant_id)
            next_status = ensure_transition(current.status, action, requested)
            appointment = await self.appointments.save(
                replace(current, status=next_status, updated_at=self.clock.now())
            )

        logger.info(
            event,
            appointment_id=str(appointment.id),
            tenant_id=str(tenant_id),
            from_status=current.status.value,
            status=appointment.status.value,
        )
        return appointment

    @asynccontextmanager
    async def _locked(self, tenant_id: UUID, provider_id: UUID, *days: date) -> AsyncIterator[None]:
        # Sorted acquisition keeps two-day reschedules deadlock free.
        async with AsyncExitStack() as stack:
            for day in sorted(set(days)):
                await stack.enter_async_context(
                    self.appointments.slot_lock(tenant_id, provider_id, day)
                )
            yield

    async def _require_provider(self, provider_id: UUID, tenant_id: UUID) -> Provider:
        provider = await self.providers.get(provider_id, tenant_id)
        if provider is None:
            raise NotFoundException(PROVIDER_NOT_FOUND)
        return provider

    @staticmethod
    def _end_time(provider: Provider, day: date, start: time) -> time:
        end = datetime.combine(day, start) + timedelta(minutes=provider.consultation_duration_minutes)
        if end.date() != day:
            raise BusinessRuleException("The consultation would end after midnight.")
        return end.time()

    async def _validate_slot(
        self,
        tenant_id: UUID,
        provider: Provider,
        day: date,
        start: time,
        end: time,
        exclude_id: UUID | None = None,
    ) -> None:
        self._ensure_not_in_past(day, start)

        weekday = weekday_of(day)
        check = await self.grid.is_within_availability(provider.id, weekday, start, end)
        if not check.works_on_weekday:
            raise BusinessRuleException(
                f"The provider does not attend this weekday ({weekday_name(weekday)}).",
                context={"weekday": weekday_name(weekday), "available_windows": []},
            )
        if not check.is_available:
            available = format_windows(check.windows)
            raise BusinessRuleException(
                "The requested time is outside availability for this provider. "
                f"Available on {weekday_name(weekday)}: {available}.",
                context={
                    "weekday": weekday_name(weekday),
                    "available_windows": available.split(", "),
                },
            )

        if await self.conflicts.has_conflict(
            tenant_id, provider.id, day, start, end, exclude_appointment_id=exclude_id
        ):
            raise ConflictException("The provider already has an appointment at this time.")

    def _ensure_not_in_past(self, day: date, start: time) -> None:
        # Minute granularity: the current minute itself is still bookable.
        now = current_minute(self.clock)
        if day < now.date() or (day == now.date() and start < now.time()):
            raise BusinessRuleException("Cannot book a time that has already passed.")

    async def _resolve_insurance_plan(
        self, tenant_id: UUID, payment_kind: PaymentKind, plan_id: UUID | None
    ) -> UUID | None:
        if payment_kind is not PaymentKind.INSURANCE:
            return None
        if plan_id is None:
            raise BusinessRuleException("Insurance plan required for insurance-paid appointments.")
        plan = await self.insurance_plans.get(plan_id, tenant_id)
        if plan is None:
            raise NotFoundException(PLAN_NOT_FOUND)
        if not plan.is_active:
            raise BusinessRuleException("Insurance plan inactive.")
        return plan.id
