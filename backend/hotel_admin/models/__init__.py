"""SQLAlchemy models for the hotel admin dashboard.

All models are imported here so that Base.metadata knows about them before
tables are created. If you add a new model, import it in this file.
"""

from hotel_admin.models.collection import StoredCollection

__all__ = [
    "StoredCollection",
]
