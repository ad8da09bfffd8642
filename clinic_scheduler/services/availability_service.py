"""Service for managing providers' weekly availability grids."""

from uuid import UUID, uuid4

import structlog

from clinic_scheduler.core.exceptions import BusinessRuleException, NotFoundException
from clinic_scheduler.scheduling.entities import AvailabilityWindow
from clinic_scheduler.scheduling.ports import AvailabilityRepository, ProviderRepository
from clinic_scheduler.schemas.availability import AvailabilityWindowCreate

logger = structlog.get_logger(__name__)

WINDOW_NOT_FOUND = "Availability window not found"
PROVIDER_NOT_FOUND = "Provider not found or does not belong to this clinic"


class AvailabilityService:
    """Create, list and remove availability windows.

    Editing the grid never touches existing appointments; they were checked
    against the grid as it stood when they were booked.
    """

    def __init__(self, windows: AvailabilityRepository, providers: ProviderRepository):
        """Initialize service with its repositories."""
        self.windows = windows
        self.providers = providers

    async def create(self, tenant_id: UUID, data: AvailabilityWindowCreate) -> AvailabilityWindow:
        """
        Add a weekly window to a provider's grid.

        Raises:
            NotFoundException: If the provider is not part of the clinic
            BusinessRuleException: If the window does not end after it starts
        """
        if await self.providers.get(data.provider_id, tenant_id) is None:
            raise NotFoundException(PROVIDER_NOT_FOUND)
        if data.start_time >= data.end_time:
            raise BusinessRuleException("An availability window must end after it starts.")

        window = await self.windows.add(
            AvailabilityWindow(
                id=uuid4(),
                provider_id=data.provider_id,
                weekday=data.weekday,
                start_time=data.start_time,
                end_time=data.end_time,
            )
        )
        logger.info(
            "availability_window_created",
            window_id=str(window.id),
            provider_id=str(window.provider_id),
            weekday=window.weekday,
        )
        return window

    async def find_all_by_tenant(self, tenant_id: UUID) -> list[AvailabilityWindow]:
        return await self.windows.list_by_tenant(tenant_id)

    async def find_all_by_provider(self, tenant_id: UUID, provider_id: UUID) -> list[AvailabilityWindow]:
        if await self.providers.get(provider_id, tenant_id) is None:
            raise NotFoundException(PROVIDER_NOT_FOUND)
        return await self.windows.list_by_provider(provider_id, tenant_id)

    async def find_by_id(self, window_id: UUID, tenant_id: UUID) -> AvailabilityWindow:
        window = await self.windows.get(window_id, tenant_id)
        if window is None:
            raise NotFoundException(WINDOW_NOT_FOUND)
        return window

    async def delete(self, window_id: UUID, tenant_id: UUID) -> None:
        window = await self.find_by_id(window_id, tenant_id)
        await self.windows.delete(window.id)
        logger.info("availability_window_deleted", window_id=str(window.id))
