"""ORM models. Importing the package registers every mapper."""

from wageconnect.models.base import Base
from wageconnect.models.user import User
from wageconnect.models.job import Job
from wageconnect.models.notification import Notification
from wageconnect.models.wishlist import WishlistEntry

__all__ = ["Base", "User", "Job", "Notification", "WishlistEntry"]
