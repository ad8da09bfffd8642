"""Provider agenda endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import Availability, Scheduling, TenantId
from clinic_scheduler.schemas.appointments import AppointmentResponse
from clinic_scheduler.schemas.availability import AvailabilityWindowResponse

router = APIRouter()


@router.get(
    "/{provider_id}/agenda",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Appointments of a provider on one day",
)
async def get_agenda(
    provider_id: UUID,
    tenant_id: TenantId,
    service: Scheduling,
    day: date = Query(..., alias="date"),
) -> list[AppointmentResponse]:
    agenda = await service.find_by_provider_and_date(tenant_id, provider_id, day)
    return [AppointmentResponse.model_validate(a) for a in agenda]


@router.get(
    "/{provider_id}/availability",
    response_model=list[AvailabilityWindowResponse],
    status_code=status.HTTP_200_OK,
    summary="Weekly availability grid of a provider",
)
async def get_provider_availability(
    provider_id: UUID,
    tenant_id: TenantId,
    service: Availability,
) -> list[AvailabilityWindowResponse]:
    windows = await service.find_all_by_provider(tenant_id, provider_id)
    return [AvailabilityWindowResponse.model_validate(w) for w in windows]
