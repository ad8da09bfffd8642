"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clinic_scheduler.scheduling.entities import AppointmentStatus, PaymentKind

__all__ = [
    "AppointmentCreate",
    "AppointmentReschedule",
    "AppointmentResponse",
    "AppointmentStatus",
    "AppointmentStatusUpdate",
    "PaymentKind",
]


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    patient_id: UUID
    provider_id: UUID
    appointment_date: date
    start_time: time
    payment_kind: PaymentKind
    insurance_plan_id: UUID | None = None
    notes: str | None = Field(None, max_length=1000)

    @field_validator("start_time")
    @classmethod
    def wall_clock_time(cls, v: time) -> time:
        """Drop any UTC offset; times are read in the clinic's timezone."""
        return v.replace(tzinfo=None)


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to another date/time."""

    new_date: date
    new_start_time: time

    @field_validator("new_start_time")
    @classmethod
    def wall_clock_time(cls, v: time) -> time:
        return v.replace(tzinfo=None)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    tenant_id: UUID
    provider_id: UUID
    patient_id: UUID
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    payment_kind: PaymentKind
    insurance_plan_id: UUID | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
