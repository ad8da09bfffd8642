"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import Scheduling, TenantId
from clinic_scheduler.schemas.appointments import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="List the clinic's appointments",
)
async def list_appointments(tenant_id: TenantId, service: Scheduling) -> list[AppointmentResponse]:
    appointments = await service.find_all_by_tenant(tenant_id)
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    tenant_id: TenantId,
    service: Scheduling,
) -> AppointmentResponse:
    return AppointmentResponse.model_validate(await service.find_by_id(appointment_id, tenant_id))


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    tenant_id: TenantId,
    service: Scheduling,
) -> AppointmentResponse:
    """
    Book a consultation, validating the provider's grid and existing bookings.

    Args:
        data: Booking request
        tenant_id: Clinic from the request header
        service: Scheduling service

    Returns:
        Created appointment
    """
    return AppointmentResponse.model_validate(await service.create(tenant_id, data))


@router.put(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule an appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    tenant_id: TenantId,
    service: Scheduling,
) -> AppointmentResponse:
    return AppointmentResponse.model_validate(
        await service.reschedule(appointment_id, tenant_id, data)
    )


@router.patch(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel an appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    tenant_id: TenantId,
    service: Scheduling,
    by_clinic: bool = Query(True, description="False when the patient canceled"),
) -> AppointmentResponse:
    return AppointmentResponse.model_validate(
        await service.cancel(appointment_id, tenant_id, by_clinic)
    )


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    tenant_id: TenantId,
    service: Scheduling,
) -> AppointmentResponse:
    """Confirm, complete or mark an appointment as a no-show. Cancellations use /cancel."""
    return AppointmentResponse.model_validate(
        await service.update_status(appointment_id, tenant_id, data.status)
    )
