"""Job model: a posted work offer and its lifecycle."""

from sqlalchemy import Column, String, Float, DateTime, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from wageconnect.models.base import Base, TimestampMixin, UUIDMixin

STATUS_OPEN = "open"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_OPEN, STATUS_ACTIVE, STATUS_COMPLETED)


class Job(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "jobs"

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    wage = Column(Float, nullable=False)
    location = Column(String(255), nullable=False)
    deadline = Column(DateTime(timezone=True))

    # Lifecycle: open -> active -> completed
    status = Column(String(20), default=STATUS_OPEN, nullable=False, index=True)
    posted_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    applied_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), index=True)  # unset while open
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    poster = relationship("User", foreign_keys=[posted_by_id])
    worker = relationship("User", foreign_keys=[applied_by_id])

    __table_args__ = (
        Index("idx_jobs_poster_status", "posted_by_id", "status"),
        Index("idx_jobs_worker_status", "applied_by_id", "status"),
    )
