"""SQLAlchemy models for Staybook.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from app.models.booking import Booking, BookingGuest, BookingHistory
from app.models.property import Property

__all__ = [
    "Booking",
    "BookingGuest",
    "BookingHistory",
    "Property",
]
