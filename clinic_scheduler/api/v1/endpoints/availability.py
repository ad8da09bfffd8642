"""Availability grid endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from clinic_scheduler.dependencies import Availability, TenantId
from clinic_scheduler.schemas.availability import (
    AvailabilityWindowCreate,
    AvailabilityWindowResponse,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[AvailabilityWindowResponse],
    status_code=status.HTTP_200_OK,
    summary="List the clinic's availability windows",
)
async def list_windows(tenant_id: TenantId, service: Availability) -> list[AvailabilityWindowResponse]:
    windows = await service.find_all_by_tenant(tenant_id)
    return [AvailabilityWindowResponse.model_validate(w) for w in windows]


@router.get(
    "/{window_id}",
    response_model=AvailabilityWindowResponse,
    status_code=status.HTTP_200_OK,
    summary="Get availability window by ID",
)
async def get_window(
    window_id: UUID,
    tenant_id: TenantId,
    service: Availability,
) -> AvailabilityWindowResponse:
    return AvailabilityWindowResponse.model_validate(await service.find_by_id(window_id, tenant_id))


@router.post(
    "/",
    response_model=AvailabilityWindowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a weekly availability window",
)
async def create_window(
    data: AvailabilityWindowCreate,
    tenant_id: TenantId,
    service: Availability,
) -> AvailabilityWindowResponse:
    return AvailabilityWindowResponse.model_validate(await service.create(tenant_id, data))


@router.delete(
    "/{window_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an availability window",
)
async def delete_window(window_id: UUID, tenant_id: TenantId, service: Availability) -> Response:
    await service.delete(window_id, tenant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
