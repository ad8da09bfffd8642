"""Read-only lookups of clinics, providers, patients and insurance plans."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.models.clinics import clinics, insurance_plans, patients, providers
from clinic_scheduler.scheduling.entities import InsurancePlan, Patient, Provider


class SqlTenantRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, tenant_id: UUID) -> bool:
        result = await self.db.execute(select(clinics.c.id).where(clinics.c.id == tenant_id))
        return result.first() is not None


class SqlProviderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, provider_id: UUID, tenant_id: UUID) -> Provider | None:
        stmt = select(providers).where(
            and_(providers.c.id == provider_id, providers.c.clinic_id == tenant_id)
        )
        row = (await self.db.execute(stmt)).fetchone()
        if row is None:
            return None
        return Provider(
            id=row.id,
            tenant_id=row.clinic_id,
            is_active=row.is_active,
            consultation_duration_minutes=row.consultation_duration_minutes,
            full_name=row.full_name,
        )


class SqlPatientRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, patient_id: UUID, tenant_id: UUID) -> Patient | None:
        stmt = select(patients).where(
            and_(patients.c.id == patient_id, patients.c.clinic_id == tenant_id)
        )
        row = (await self.db.execute(stmt)).fetchone()
        if row is None:
            return None
        return Patient(id=row.id, tenant_id=row.clinic_id, full_name=row.full_name)


class SqlInsurancePlanRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, plan_id: UUID, tenant_id: UUID) -> InsurancePlan | None:
        stmt = select(insurance_plans).where(
            and_(insurance_plans.c.id == plan_id, insurance_plans.c.clinic_id == tenant_id)
        )
        row = (await self.db.execute(stmt)).fetchone()
        if row is None:
            return None
        return InsurancePlan(id=row.id, tenant_id=row.clinic_id, is_active=row.is_active, name=row.name)
