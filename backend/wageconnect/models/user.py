"""User model for authentication and roles."""

from sqlalchemy import Column, String, Float, DateTime
from sqlalchemy.orm import relationship

from wageconnect.models.base import Base, TimestampMixin, UUIDMixin

ROLE_USER = "user"  # job poster
ROLE_WORKER = "worker"
ROLES = (ROLE_USER, ROLE_WORKER)


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    profile_photo = Column(String(500))
    wallet_balance = Column(Float, default=0.0, nullable=False)
    last_login_at = Column(DateTime(timezone=True))

    # Relationships
    wishlist_entries = relationship("WishlistEntry", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="recipient", cascade="all, delete-orphan")
