"""Availability window schemas."""

from datetime import time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AvailabilityWindowCreate(BaseModel):
    """Schema for adding a weekly window to a provider's grid."""

    provider_id: UUID
    weekday: int = Field(..., ge=0, le=6, description="0=Monday .. 6=Sunday")
    start_time: time
    end_time: time

    @field_validator("start_time", "end_time")
    @classmethod
    def wall_clock_time(cls, v: time) -> time:
        """Drop any UTC offset; windows are wall-clock times in the clinic's timezone."""
        return v.replace(tzinfo=None)


class AvailabilityWindowResponse(BaseModel):
    """Schema for availability window response."""

    id: UUID
    provider_id: UUID
    weekday: int
    start_time: time
    end_time: time

    model_config = {"from_attributes": True}
