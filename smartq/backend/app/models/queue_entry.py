# smartq/backend/app/models/queue_entry.py

from sqlalchemy import Column, DateTime, Integer, String

from ..db import Base


class QueueEntryRecord(Base):
    """Row backing SqlQueueStore. Removal deletes the row (no tombstone)."""
    __tablename__ = "queue_entries"
    # Never hand out an id twice, even after the newest row is deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)

    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    status = Column(String(20), nullable=False, server_default="waiting")
    called_at = Column(DateTime(timezone=True), nullable=True)
