"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Table,
    Text,
    Time,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

from clinic_scheduler.models.base import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    # Ownership / references
    Column("clinic_id", UUID(as_uuid=True), ForeignKey("clinics.id"), nullable=False),
    Column("provider_id", UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False),
    Column("patient_id", UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False),
    Column("insurance_plan_id", UUID(as_uuid=True), ForeignKey("insurance_plans.id"), nullable=True),
    # Slot
    Column("appointment_date", Date, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    Column("payment_kind", Text, nullable=False),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    # Constraints
    CheckConstraint("start_time < end_time", name="appointments_range_check"),
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'completed', 'no_show', "
        "'canceled_by_clinic', 'canceled_by_patient')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "payment_kind IN ('private', 'insurance')",
        name="appointments_payment_kind_check",
    ),
    CheckConstraint(
        "payment_kind <> 'insurance' OR insurance_plan_id IS NOT NULL",
        name="appointments_insurance_plan_check",
    ),
    Index("ix_appointments_agenda", "clinic_id", "provider_id", "appointment_date"),
)
