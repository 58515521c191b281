"""Stored collection model — one JSON document per record collection."""

from datetime import datetime

from sqlalchemy import String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from hotel_admin.database import Base


class StoredCollection(Base):
    """Raw JSON payload of a record collection, keyed by collection name.

    The payload is kept as text exactly as written by the dashboard so the
    loader can decide how to treat unparseable content.
    """

    __tablename__ = "stored_collections"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<StoredCollection(key={self.key!r}, size={len(self.payload or '')})>"
