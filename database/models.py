# database/models.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String

# Important: must match Base from db_setup.py
from .db_setup import Base


def _utcnow():
    return datetime.now(timezone.utc)


class StoredState(Base):
    """One persisted key-value entry (e.g. 'cms-auth-storage' -> session dict)."""
    __tablename__ = "stored_state"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<StoredState(key={self.key}, updated_at={self.updated_at})>"
