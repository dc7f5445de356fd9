"""Store Entry model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from minimart.database import Base


class StoreEntry(Base):
    """
    One persisted collection.

    Each key holds a whole JSON document (an array or object) that is
    rewritten in full on every save; there are no row-level updates.
    """

    __tablename__ = 'store_entry'

    key = Column(String(120), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StoreEntry(key='{self.key}', size={len(self.value or '')})>"
