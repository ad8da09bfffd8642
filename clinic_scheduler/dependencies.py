"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.config import settings
from clinic_scheduler.core.clock import SystemClock
from clinic_scheduler.core.exceptions import BadRequestException
from clinic_scheduler.database import get_db
from clinic_scheduler.repositories.appointment_repository import SqlAppointmentRepository
from clinic_scheduler.repositories.availability_repository import SqlAvailabilityRepository
from clinic_scheduler.repositories.directory_repository import (
    SqlInsurancePlanRepository,
    SqlPatientRepository,
    SqlProviderRepository,
    SqlTenantRepository,
)
from clinic_scheduler.services.availability_service import AvailabilityService
from clinic_scheduler.services.scheduling_service import SchedulingService

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


async def get_tenant_id(
    clinic_id: Annotated[str | None, Header(alias=settings.tenant_header)] = None,
) -> UUID:
    """
    Read the clinic (tenant) id from the request header.

    Raises:
        BadRequestException: If the header is missing or not a UUID
    """
    if not clinic_id:
        raise BadRequestException(f"Missing {settings.tenant_header} header")
    try:
        return UUID(clinic_id)
    except ValueError:
        raise BadRequestException(f"Invalid {settings.tenant_header} header") from None


def get_scheduling_service(db: DatabaseSession) -> SchedulingService:
    """Build the scheduling service over the request's database session."""
    return SchedulingService(
        tenants=SqlTenantRepository(db),
        providers=SqlProviderRepository(db),
        patients=SqlPatientRepository(db),
        insurance_plans=SqlInsurancePlanRepository(db),
        windows=SqlAvailabilityRepository(db),
        appointments=SqlAppointmentRepository(db),
        clock=SystemClock(settings.clinic_timezone),
    )


def get_availability_service(db: DatabaseSession) -> AvailabilityService:
    """Build the availability grid service over the request's database session."""
    return AvailabilityService(
        windows=SqlAvailabilityRepository(db),
        providers=SqlProviderRepository(db),
    )


# Type aliases for dependency injection
TenantId = Annotated[UUID, Depends(get_tenant_id)]
Scheduling = Annotated[SchedulingService, Depends(get_scheduling_service)]
Availability = Annotated[AvailabilityService, Depends(get_availability_service)]
