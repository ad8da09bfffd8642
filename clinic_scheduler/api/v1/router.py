"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_scheduler.api.v1.endpoints import appointments, availability, health, providers

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(availability.router, prefix="/availability", tags=["Availability"])
api_router.include_router(providers.router, prefix="/providers", tags=["Providers"])
