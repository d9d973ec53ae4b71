"""SQLAlchemy model for asynchronous work records."""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from nester_engine.common.models import Base, TimestampMixin, generate_uuid, utcnow


class JobType(str, enum.Enum):
    SCRAPE = "scrape"
    CONTENT = "content"
    IMAGES = "images"
    SOCIAL_CAMPAIGN = "social_campaign"


class JobStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.ERROR})


class WorkRecordModel(Base, TimestampMixin):
    """One dispatched workflow job. ``not_started`` is never stored."""

    __tablename__ = "work_records"
    __table_args__ = (
        UniqueConstraint("job_type", "job_id", name="uq_work_records_type_job"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    agent_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    property_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    job_type: Mapped[str] = mapped_column(String(30), nullable=False)
    job_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.PROCESSING.value
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
