"""Wishlist entry model: a worker's saved open jobs."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from wageconnect.models.base import Base, TimestampMixin, UUIDMixin


class WishlistEntry(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "wishlist_entries"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="wishlist_entries")
    job = relationship("Job")

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_wishlist_user_job"),
    )
