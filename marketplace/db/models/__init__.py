from marketplace.db.models.booking import Booking
from marketplace.db.models.category import Category
from marketplace.db.models.provider import Provider
from marketplace.db.models.service import Service
from marketplace.db.models.user import User

__all__ = ["Booking", "Category", "Provider", "Service", "User"]
