"""Availability window persistence."""

from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.availability_windows import availability_windows
from clinic_scheduler.models.clinics import providers
from clinic_scheduler.scheduling.entities import AvailabilityWindow


def _to_window(row: Any) -> AvailabilityWindow:
    return AvailabilityWindow(
        id=row.id,
        provider_id=row.provider_id,
        weekday=row.weekday,
        start_time=row.start_time,
        end_time=row.end_time,
    )


class SqlAvailabilityRepository:
    """Windows are scoped to a clinic through their provider."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _scoped(self, tenant_id: UUID):
        return (
            select(availability_windows)
            .join(providers, providers.c.id == availability_windows.c.provider_id)
            .where(providers.c.clinic_id == tenant_id)
        )

    async def list_for_weekday(self, provider_id: UUID, weekday: int) -> list[AvailabilityWindow]:
        stmt = (
            select(availability_windows)
            .where(
                and_(
                    availability_windows.c.provider_id == provider_id,
                    availability_windows.c.weekday == weekday,
                )
            )
            .order_by(availability_windows.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [_to_window(row) for row in result.fetchall()]

    async def add(self, window: AvailabilityWindow) -> AvailabilityWindow:
        await self.db.execute(
            insert(availability_windows).values(
                id=window.id,
                provider_id=window.provider_id,
                weekday=window.weekday,
                start_time=window.start_time,
                end_time=window.end_time,
            )
        )
        await self.db.commit()
        return window

    async def get(self, window_id: UUID, tenant_id: UUID) -> AvailabilityWindow | None:
        stmt = self._scoped(tenant_id).where(availability_windows.c.id == window_id)
        row = (await self.db.execute(stmt)).fetchone()
        return _to_window(row) if row else None

    async def list_by_tenant(self, tenant_id: UUID) -> list[AvailabilityWindow]:
        stmt = self._scoped(tenant_id).order_by(
            availability_windows.c.provider_id,
            availability_windows.c.weekday,
            availability_windows.c.start_time,
        )
        result = await self.db.execute(stmt)
        return [_to_window(row) for row in result.fetchall()]

    async def list_by_provider(self, provider_id: UUID, tenant_id: UUID) -> list[AvailabilityWindow]:
        stmt = (
            self._scoped(tenant_id)
            .where(availability_windows.c.provider_id == provider_id)
            .order_by(availability_windows.c.weekday, availability_windows.c.start_time)
        )
        result = await self.db.execute(stmt)
        return [_to_window(row) for row in result.fetchall()]

    async def delete(self, window_id: UUID) -> None:
        await self.db.execute(delete(availability_windows).where(availability_windows.c.id == window_id))
        await self.db.commit()
