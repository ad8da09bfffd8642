"""Create clinic directory, availability grid and appointments tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _clinic_fk() -> sa.Column:
    return sa.Column(
        "clinic_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("NOW()"),
        nullable=False,
    )


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "clinics",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        _timestamp("created_at"),
    )

    op.create_table(
        "providers",
        _uuid_pk(),
        _clinic_fk(),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "consultation_duration_minutes",
            sa.Integer(),
            server_default=sa.text("30"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "consultation_duration_minutes > 0", name="providers_duration_positive"
        ),
    )
    op.create_index("ix_providers_clinic_id", "providers", ["clinic_id"])

    op.create_table(
        "patients",
        _uuid_pk(),
        _clinic_fk(),
        sa.Column("full_name", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_patients_clinic_id", "patients", ["clinic_id"])

    op.create_table(
        "insurance_plans",
        _uuid_pk(),
        _clinic_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    )
    op.create_index("ix_insurance_plans_clinic_id", "insurance_plans", ["clinic_id"])

    op.create_table(
        "availability_windows",
        _uuid_pk(),
        sa.Column(
            "provider_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("providers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("weekday", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.CheckConstraint("weekday BETWEEN 0 AND 6", name="availability_windows_weekday_check"),
        sa.CheckConstraint("start_time < end_time", name="availability_windows_range_check"),
    )
    op.create_index(
        "ix_availability_windows_provider_weekday",
        "availability_windows",
        ["provider_id", "weekday"],
    )

    op.create_table(
        "appointments",
        _uuid_pk(),
        sa.Column(
            "clinic_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clinics.id"), nullable=False
        ),
        sa.Column(
            "provider_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("providers.id"),
            nullable=False,
        ),
        sa.Column(
            "patient_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("patients.id"), nullable=False
        ),
        sa.Column(
            "insurance_plan_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("insurance_plans.id"),
            nullable=True,
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", sa.Text(), server_default="scheduled", nullable=False),
        sa.Column("payment_kind", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("start_time < end_time", name="appointments_range_check"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'no_show', "
            "'canceled_by_clinic', 'canceled_by_patient')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "payment_kind IN ('private', 'insurance')", name="appointments_payment_kind_check"
        ),
        sa.CheckConstraint(
            "payment_kind <> 'insurance' OR insurance_plan_id IS NOT NULL",
            name="appointments_insurance_plan_check",
        ),
    )
    op.create_index(
        "ix_appointments_agenda",
        "appointments",
        ["clinic_id", "provider_id", "appointment_date"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_appointments_agenda", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_availability_windows_provider_weekday", table_name="availability_windows")
    op.drop_table("availability_windows")
    op.drop_index("ix_insurance_plans_clinic_id", table_name="insurance_plans")
    op.drop_table("insurance_plans")
    op.drop_index("ix_patients_clinic_id", table_name="patients")
    op.drop_table("patients")
    op.drop_index("ix_providers_clinic_id", table_name="providers")
    op.drop_table("providers")
    op.drop_table("clinics")
