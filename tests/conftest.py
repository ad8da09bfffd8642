from collections.abc import AsyncGenerator
from datetime import time

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load environment variables from .env file
load_dotenv()

from clinic_scheduler.config import settings  # noqa: E402
from clinic_scheduler.dependencies import (  # noqa: E402
    get_availability_service,
    get_scheduling_service,
)
from clinic_scheduler.main import app  # noqa: E402
from clinic_scheduler.services.availability_service import AvailabilityService  # noqa: E402
from clinic_scheduler.services.scheduling_service import SchedulingService  # noqa: E402
from fakes import (  # noqa: E402
    MONDAY,
    NEXT_MONDAY,
    NOW,
    FixedClock,
    InMemoryAppointmentRepository,
    InMemoryAvailabilityRepository,
    InMemoryDirectory,
    InMemoryInsurancePlanRepository,
    InMemoryPatientRepository,
    InMemoryProviderRepository,
    InMemoryTenantRepository,
)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def directory() -> InMemoryDirectory:
    return InMemoryDirectory()


@pytest.fixture
def windows(directory: InMemoryDirectory) -> InMemoryAvailabilityRepository:
    return InMemoryAvailabilityRepository(directory)


@pytest.fixture
def appointments() -> InMemoryAppointmentRepository:
    return InMemoryAppointmentRepository()


@pytest.fixture
def clinic_id(directory: InMemoryDirectory):
    return directory.add_clinic()


@pytest.fixture
def other_clinic_id(directory: InMemoryDirectory):
    return directory.add_clinic()


@pytest.fixture
def provider(directory, windows, clinic_id):
    """Provider attending Mondays 08:00-18:00, 30 minute consultations."""
    provider = directory.add_provider(clinic_id, duration=30)
    windows.add_window(provider.id, MONDAY, time(8, 0), time(18, 0))
    return provider


@pytest.fixture
def patient(directory, clinic_id):
    return directory.add_patient(clinic_id)


@pytest.fixture
def service(directory, windows, appointments, clock) -> SchedulingService:
    return SchedulingService(
        tenants=InMemoryTenantRepository(directory),
        providers=InMemoryProviderRepository(directory),
        patients=InMemoryPatientRepository(directory),
        insurance_plans=InMemoryInsurancePlanRepository(directory),
        windows=windows,
        appointments=appointments,
        clock=clock,
    )


@pytest.fixture
def availability_service(directory, windows) -> AvailabilityService:
    return AvailabilityService(windows=windows, providers=InMemoryProviderRepository(directory))


@pytest.fixture
def tenant_headers(clinic_id) -> dict:
    return {settings.tenant_header: str(clinic_id)}


@pytest_asyncio.fixture
async def client(
    service: SchedulingService,
    availability_service: AvailabilityService,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose services run on the in-memory collaborators."""
    app.dependency_overrides[get_scheduling_service] = lambda: service
    app.dependency_overrides[get_availability_service] = lambda: availability_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def booking_data(provider, patient) -> dict:
    """A valid private booking for next Monday at 09:00."""
    return {
        "patient_id": str(patient.id),
        "provider_id": str(provider.id),
        "appointment_date": NEXT_MONDAY.isoformat(),
        "start_time": "09:00:00",
        "payment_kind": "private",
        "notes": "First visit",
    }
