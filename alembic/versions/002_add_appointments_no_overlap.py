"""Reject overlapping active appointments at the database level.

Backs the advisory slot lock with an exclusion constraint: two rows for the
same clinic, provider and date whose [start, end) ranges overlap cannot both
hold a non-canceled status.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT appointments_no_overlap
        EXCLUDE USING gist (
            clinic_id WITH =,
            provider_id WITH =,
            tsrange(appointment_date + start_time, appointment_date + end_time, '[)') WITH &&
        )
        WHERE (status NOT IN ('canceled_by_clinic', 'canceled_by_patient'))
        """
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.execute("ALTER TABLE appointments DROP CONSTRAINT IF EXISTS appointments_no_overlap")
