"""Database models."""

from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.availability_windows import availability_windows
from clinic_scheduler.models.base import metadata
from clinic_scheduler.models.clinics import clinics, insurance_plans, patients, providers

__all__ = [
    "appointments",
    "availability_windows",
    "clinics",
    "insurance_plans",
    "metadata",
    "patients",
    "providers",
]
