"""Tests for the scheduling service against in-memory collaborators."""

import asyncio
import itertools
import random
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4

import pytest

from clinic_scheduler.core.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
)
from clinic_scheduler.scheduling.conflicts import intervals_overlap
from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatus,
    PaymentKind,
)
from fakes import MONDAY, NEXT_MONDAY, NEXT_TUESDAY, TODAY


def booking(provider, patient, day=NEXT_MONDAY, start=time(9, 0), **overrides) -> AppointmentCreate:
    fields = {
        "patient_id": patient.id,
        "provider_id": provider.id,
        "appointment_date": day,
        "start_time": start,
        "payment_kind": PaymentKind.PRIVATE,
    }
    fields.update(overrides)
    return AppointmentCreate(**fields)


class TestCreate:
    @pytest.mark.asyncio
    async def test_books_slot_with_provider_duration(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        assert appointment.status is AppointmentStatus.SCHEDULED
        assert appointment.start_time == time(9, 0)
        assert appointment.end_time == time(9, 30)
        assert appointment.tenant_id == clinic_id
        assert appointment.insurance_plan_id is None

    @pytest.mark.asyncio
    async def test_overlapping_booking_conflicts(self, service, provider, patient, clinic_id):
        await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(ConflictException, match="already has an appointment"):
            await service.create(clinic_id, booking(provider, patient, start=time(9, 15)))

    @pytest.mark.asyncio
    async def test_back_to_back_bookings_are_allowed(self, service, provider, patient, clinic_id):
        await service.create(clinic_id, booking(provider, patient))
        second = await service.create(clinic_id, booking(provider, patient, start=time(9, 30)))

        assert second.end_time == time(10, 0)

    @pytest.mark.asyncio
    async def test_day_without_windows(self, service, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException, match="does not attend this weekday") as exc:
            await service.create(clinic_id, booking(provider, patient, day=NEXT_TUESDAY))

        assert exc.value.context["weekday"] == "Tuesday"
        assert exc.value.status_code == 422

    @pytest.mark.asyncio
    async def test_time_outside_windows_lists_what_is_available(
        self, service, provider, patient, clinic_id
    ):
        with pytest.raises(BusinessRuleException, match="outside availability") as exc:
            await service.create(clinic_id, booking(provider, patient, start=time(19, 0)))

        assert "Monday: 08:00-18:00" in exc.value.message
        assert exc.value.context["available_windows"] == ["08:00-18:00"]

    @pytest.mark.asyncio
    async def test_consultation_may_not_spill_past_window(self, service, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException, match="outside availability"):
            await service.create(clinic_id, booking(provider, patient, start=time(17, 45)))

    @pytest.mark.asyncio
    async def test_start_with_utc_offset_is_read_as_wall_clock(
        self, service, provider, patient, clinic_id
    ):
        appointment = await service.create(
            clinic_id, booking(provider, patient, start=time(9, 0, tzinfo=timezone.utc))
        )

        assert appointment.start_time == time(9, 0)
        assert appointment.start_time.tzinfo is None
        assert appointment.end_time == time(9, 30)

    @pytest.mark.asyncio
    async def test_canceled_appointment_frees_slot(self, service, provider, patient, clinic_id):
        first = await service.create(clinic_id, booking(provider, patient))
        await service.cancel(first.id, clinic_id, by_clinic=False)

        again = await service.create(clinic_id, booking(provider, patient))
        assert again.id != first.id

    @pytest.mark.asyncio
    async def test_unknown_clinic(self, service, provider, patient):
        with pytest.raises(NotFoundException, match="Clinic not found"):
            await service.create(uuid4(), booking(provider, patient))

    @pytest.mark.asyncio
    async def test_provider_from_other_clinic(self, service, directory, patient, clinic_id, other_clinic_id):
        foreign = directory.add_provider(other_clinic_id)
        with pytest.raises(NotFoundException, match="Provider not found"):
            await service.create(clinic_id, booking(foreign, patient))

    @pytest.mark.asyncio
    async def test_patient_from_other_clinic(self, service, directory, provider, clinic_id, other_clinic_id):
        foreign = directory.add_patient(other_clinic_id)
        with pytest.raises(NotFoundException, match="Patient not found"):
            await service.create(clinic_id, booking(provider, foreign))

    @pytest.mark.asyncio
    async def test_inactive_provider(self, service, directory, windows, patient, clinic_id):
        inactive = directory.add_provider(clinic_id, active=False)
        windows.add_window(inactive.id, MONDAY, time(8, 0), time(18, 0))

        with pytest.raises(BusinessRuleException, match="inactive provider"):
            await service.create(clinic_id, booking(inactive, patient))

    @pytest.mark.asyncio
    async def test_past_date_rejected(self, service, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException, match="already passed"):
            await service.create(clinic_id, booking(provider, patient, day=TODAY - timedelta(days=7)))

    @pytest.mark.asyncio
    async def test_earlier_today_rejected(self, service, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException, match="already passed"):
            await service.create(clinic_id, booking(provider, patient, day=TODAY, start=time(9, 59)))

    @pytest.mark.asyncio
    async def test_current_minute_is_bookable(self, service, provider, patient, clinic_id):
        """The clock reads 10:00:30; 10:00 is still open."""
        appointment = await service.create(
            clinic_id, booking(provider, patient, day=TODAY, start=time(10, 0))
        )
        assert appointment.end_time == time(10, 30)

    @pytest.mark.asyncio
    async def test_consultation_past_midnight(self, service, directory, windows, patient, clinic_id):
        night = directory.add_provider(clinic_id, duration=60)
        windows.add_window(night.id, MONDAY, time(20, 0), time(23, 59))

        with pytest.raises(BusinessRuleException, match="after midnight"):
            await service.create(clinic_id, booking(night, patient, start=time(23, 30)))

    @pytest.mark.asyncio
    async def test_failed_validation_writes_nothing(self, service, appointments, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException):
            await service.create(clinic_id, booking(provider, patient, day=NEXT_TUESDAY))

        assert appointments.saves == 0
        assert await service.find_all_by_tenant(clinic_id) == []

    @pytest.mark.asyncio
    async def test_concurrent_bookings_for_same_slot(self, service, appointments, provider, patient, clinic_id):
        results = await asyncio.gather(
            service.create(clinic_id, booking(provider, patient)),
            service.create(clinic_id, booking(provider, patient, start=time(9, 15))),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictException)]
        assert len(conflicts) == 1
        assert appointments.saves == 1


class TestInsurance:
    @pytest.mark.asyncio
    async def test_insurance_booking_keeps_plan(self, service, directory, provider, patient, clinic_id):
        plan = directory.add_plan(clinic_id)
        appointment = await service.create(
            clinic_id,
            booking(provider, patient, payment_kind=PaymentKind.INSURANCE, insurance_plan_id=plan.id),
        )
        assert appointment.insurance_plan_id == plan.id

    @pytest.mark.asyncio
    async def test_plan_required(self, service, provider, patient, clinic_id):
        with pytest.raises(BusinessRuleException, match="Insurance plan required"):
            await service.create(
                clinic_id, booking(provider, patient, payment_kind=PaymentKind.INSURANCE)
            )

    @pytest.mark.asyncio
    async def test_inactive_plan(self, service, directory, provider, patient, clinic_id):
        plan = directory.add_plan(clinic_id, active=False)
        with pytest.raises(BusinessRuleException, match="Insurance plan inactive"):
            await service.create(
                clinic_id,
                booking(provider, patient, payment_kind=PaymentKind.INSURANCE, insurance_plan_id=plan.id),
            )

    @pytest.mark.asyncio
    async def test_plan_from_other_clinic(self, service, directory, provider, patient, clinic_id, other_clinic_id):
        plan = directory.add_plan(other_clinic_id)
        with pytest.raises(NotFoundException, match="Insurance plan not found"):
            await service.create(
                clinic_id,
                booking(provider, patient, payment_kind=PaymentKind.INSURANCE, insurance_plan_id=plan.id),
            )

    @pytest.mark.asyncio
    async def test_private_booking_drops_plan(self, service, directory, provider, patient, clinic_id):
        plan = directory.add_plan(clinic_id)
        appointment = await service.create(
            clinic_id, booking(provider, patient, insurance_plan_id=plan.id)
        )
        assert appointment.insurance_plan_id is None


class TestReschedule:
    @pytest.mark.asyncio
    async def test_moves_and_resets_status(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        await service.update_status(appointment.id, clinic_id, AppointmentStatus.CONFIRMED)

        moved = await service.reschedule(
            appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(14, 0))
        )

        assert moved.id == appointment.id
        assert (moved.start_time, moved.end_time) == (time(14, 0), time(14, 30))
        assert moved.status is AppointmentStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_same_slot_does_not_conflict_with_itself(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        moved = await service.reschedule(
            appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(9, 0))
        )
        assert moved.start_time == time(9, 0)

    @pytest.mark.asyncio
    async def test_partial_overlap_with_itself_is_allowed(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        moved = await service.reschedule(
            appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(9, 15))
        )
        assert moved.end_time == time(9, 45)

    @pytest.mark.asyncio
    async def test_conflicts_with_other_appointment(self, service, provider, patient, clinic_id):
        first = await service.create(clinic_id, booking(provider, patient))
        second = await service.create(clinic_id, booking(provider, patient, start=time(11, 0)))

        with pytest.raises(ConflictException):
            await service.reschedule(
                second.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(9, 0))
            )

        unchanged = await service.find_by_id(second.id, clinic_id)
        assert unchanged.start_time == time(11, 0)
        assert (await service.find_by_id(first.id, clinic_id)).start_time == time(9, 0)

    @pytest.mark.asyncio
    async def test_new_start_with_utc_offset(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        moved = await service.reschedule(
            appointment.id,
            clinic_id,
            AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(14, 0, tzinfo=timezone.utc)),
        )
        assert (moved.start_time, moved.end_time) == (time(14, 0), time(14, 30))

    @pytest.mark.asyncio
    async def test_uses_current_provider_duration(self, service, directory, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        directory.providers[provider.id] = replace(provider, consultation_duration_minutes=45)

        stored = await service.find_by_id(appointment.id, clinic_id)
        assert stored.end_time == time(9, 30)

        moved = await service.reschedule(
            appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(10, 0))
        )
        assert moved.end_time == time(10, 45)

    @pytest.mark.asyncio
    async def test_to_unattended_day(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(BusinessRuleException, match="does not attend"):
            await service.reschedule(
                appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_TUESDAY, new_start_time=time(9, 0))
            )

    @pytest.mark.asyncio
    async def test_canceled_appointment(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        await service.cancel(appointment.id, clinic_id, by_clinic=True)

        with pytest.raises(BusinessRuleException, match="Cannot reschedule"):
            await service.reschedule(
                appointment.id, clinic_id, AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(10, 0))
            )

    @pytest.mark.asyncio
    async def test_other_clinic_cannot_see_it(self, service, provider, patient, clinic_id, other_clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(NotFoundException, match="Appointment not found"):
            await service.reschedule(
                appointment.id,
                other_clinic_id,
                AppointmentReschedule(new_date=NEXT_MONDAY, new_start_time=time(10, 0)),
            )


class TestStatusChanges:
    @pytest.mark.asyncio
    async def test_cancel_by_clinic_and_patient(self, service, provider, patient, clinic_id):
        first = await service.create(clinic_id, booking(provider, patient))
        second = await service.create(clinic_id, booking(provider, patient, start=time(10, 0)))

        assert (await service.cancel(first.id, clinic_id, by_clinic=True)).status is (
            AppointmentStatus.CANCELED_BY_CLINIC
        )
        assert (await service.cancel(second.id, clinic_id, by_clinic=False)).status is (
            AppointmentStatus.CANCELED_BY_PATIENT
        )

    @pytest.mark.asyncio
    async def test_cancel_twice(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        await service.cancel(appointment.id, clinic_id, by_clinic=True)

        with pytest.raises(BusinessRuleException, match="already canceled"):
            await service.cancel(appointment.id, clinic_id, by_clinic=False)

    @pytest.mark.asyncio
    async def test_completed_is_final(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        completed = await service.update_status(appointment.id, clinic_id, AppointmentStatus.COMPLETED)
        assert completed.status is AppointmentStatus.COMPLETED

        with pytest.raises(BusinessRuleException, match="already completed"):
            await service.cancel(appointment.id, clinic_id, by_clinic=True)
        with pytest.raises(BusinessRuleException, match="already finalized"):
            await service.update_status(appointment.id, clinic_id, AppointmentStatus.CONFIRMED)

    @pytest.mark.asyncio
    async def test_no_show_can_still_be_canceled(self, service, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        await service.update_status(appointment.id, clinic_id, AppointmentStatus.NO_SHOW)

        canceled = await service.cancel(appointment.id, clinic_id, by_clinic=True)
        assert canceled.status is AppointmentStatus.CANCELED_BY_CLINIC

    @pytest.mark.asyncio
    async def test_status_update_cannot_cancel(self, service, appointments, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(BusinessRuleException, match="cancel operation"):
            await service.update_status(appointment.id, clinic_id, AppointmentStatus.CANCELED_BY_PATIENT)
        assert appointments.saves == 1

    @pytest.mark.asyncio
    async def test_status_updates_touch_updated_at(self, service, clock, provider, patient, clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))
        clock.current = clock.current + timedelta(hours=1)

        confirmed = await service.update_status(appointment.id, clinic_id, AppointmentStatus.CONFIRMED)
        assert confirmed.updated_at == clock.current
        assert confirmed.created_at == appointment.created_at


class TestReads:
    @pytest.mark.asyncio
    async def test_find_by_id_is_clinic_scoped(self, service, provider, patient, clinic_id, other_clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        assert (await service.find_by_id(appointment.id, clinic_id)).id == appointment.id
        with pytest.raises(NotFoundException):
            await service.find_by_id(appointment.id, other_clinic_id)
        with pytest.raises(NotFoundException):
            await service.find_by_id(uuid4(), clinic_id)

    @pytest.mark.asyncio
    async def test_find_all_by_tenant(self, service, directory, windows, provider, patient, clinic_id, other_clinic_id):
        await service.create(clinic_id, booking(provider, patient))
        other_provider = directory.add_provider(other_clinic_id)
        windows.add_window(other_provider.id, MONDAY, time(8, 0), time(18, 0))
        other_patient = directory.add_patient(other_clinic_id)
        await service.create(other_clinic_id, booking(other_provider, other_patient))

        mine = await service.find_all_by_tenant(clinic_id)
        assert len(mine) == 1
        assert mine[0].tenant_id == clinic_id
        assert await service.find_all_by_tenant(uuid4()) == []

    @pytest.mark.asyncio
    async def test_agenda_is_ordered_and_includes_canceled(self, service, provider, patient, clinic_id):
        late = await service.create(clinic_id, booking(provider, patient, start=time(15, 0)))
        early = await service.create(clinic_id, booking(provider, patient, start=time(8, 0)))
        await service.cancel(late.id, clinic_id, by_clinic=True)

        agenda = await service.find_by_provider_and_date(clinic_id, provider.id, NEXT_MONDAY)
        assert [a.id for a in agenda] == [early.id, late.id]
        assert await service.find_by_provider_and_date(clinic_id, provider.id, date(2026, 11, 2)) == []

    @pytest.mark.asyncio
    async def test_agenda_of_foreign_provider(self, service, provider, other_clinic_id):
        with pytest.raises(NotFoundException):
            await service.find_by_provider_and_date(other_clinic_id, provider.id, NEXT_MONDAY)


class TestForeignClinic:
    """Another clinic's appointment is invisible to every operation."""

    @pytest.mark.asyncio
    async def test_cancel(self, service, provider, patient, clinic_id, other_clinic_id):
        appointment = await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(NotFoundException, match="Appointment not found"):
            await service.cancel(appointment.id, other_clinic_id, by_clinic=True)
        assert (await service.find_by_id(appointment.id, clinic_id)).status is AppointmentStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_update_status_reports_not_found_before_rules(
        self, service, provider, patient, clinic_id, other_clinic_id
    ):
        appointment = await service.create(clinic_id, booking(provider, patient))

        with pytest.raises(NotFoundException, match="Appointment not found"):
            await service.update_status(
                appointment.id, other_clinic_id, AppointmentStatus.CANCELED_BY_CLINIC
            )


class TestOperationSequences:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", [7, 42, 2026])
    async def test_active_appointments_never_overlap(
        self, seed, service, appointments, provider, patient, clinic_id
    ):
        """Random create/reschedule/cancel runs leave a consistent agenda."""
        rng = random.Random(seed)
        days = [NEXT_MONDAY, NEXT_MONDAY + timedelta(days=7)]
        starts = [time(hour, minute) for hour in range(8, 18) for minute in (0, 15, 30, 45)]
        booked = []

        for _ in range(200):
            operation = rng.choice(("create", "create", "reschedule", "cancel"))
            try:
                if operation == "create" or not booked:
                    created = await service.create(
                        clinic_id,
                        booking(provider, patient, day=rng.choice(days), start=rng.choice(starts)),
                    )
                    booked.append(created.id)
                elif operation == "reschedule":
                    await service.reschedule(
                        rng.choice(booked),
                        clinic_id,
                        AppointmentReschedule(new_date=rng.choice(days), new_start_time=rng.choice(starts)),
                    )
                else:
                    await service.cancel(rng.choice(booked), clinic_id, by_clinic=rng.random() < 0.5)
            except (BusinessRuleException, ConflictException):
                continue

        active = [a for a in appointments.appointments.values() if a.is_active]
        assert active

        duration = timedelta(minutes=provider.consultation_duration_minutes)
        for a in active:
            assert datetime.combine(a.appointment_date, a.start_time) + duration == datetime.combine(
                a.appointment_date, a.end_time
            )

        for a, b in itertools.combinations(active, 2):
            if a.appointment_date == b.appointment_date:
                assert not intervals_overlap(a.start_time, a.end_time, b.start_time, b.end_time)
