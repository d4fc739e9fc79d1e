"""In-app notification model."""

from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from wageconnect.models.base import Base, TimestampMixin, UUIDMixin


class Notification(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "notifications"

    type = Column(String(50), nullable=False)  # New Job, Job Application, Job Completed, Job Cancelled
    message = Column(Text, nullable=False)
    recipient_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    # Relationships
    recipient = relationship("User", back_populates="notifications")

    __table_args__ = (
        Index("idx_notifications_recipient_read", "recipient_id", "is_read"),
    )
