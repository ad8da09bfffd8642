"""Weekly availability grid table using SQLAlchemy Core."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, SmallInteger, Table, Time, text
from sqlalchemy.dialects.postgresql import UUID

from clinic_scheduler.models.base import metadata

availability_windows = Table(
    "availability_windows",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")),
    Column(
        "provider_id",
        UUID(as_uuid=True),
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # 0=Monday .. 6=Sunday
    Column("weekday", SmallInteger, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    CheckConstraint("weekday BETWEEN 0 AND 6", name="availability_windows_weekday_check"),
    CheckConstraint("start_time < end_time", name="availability_windows_range_check"),
)
