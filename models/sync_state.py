from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime, timezone
from models.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class SyncState(Base):
    """
    Durable key/value state for the sync job.

    Keys:
    - "last_check_time": unix timestamp (int) marking the scan window start
    - "photo_status/<photo id>": PhotoStatus record (dict)

    Rows are overwritten in place and never deleted.
    """
    __tablename__ = "sync_state"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
