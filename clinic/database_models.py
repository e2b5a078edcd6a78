"""SQLAlchemy table backing the SQL key-value store."""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class StoreEntry(Base):
    """One stored collection: key -> JSON document."""
    __tablename__ = "clinic_store"

    key = Column(String(100), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<StoreEntry(key={self.key}, size={len(self.value or '')})>"
