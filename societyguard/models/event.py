# societyguard/models/event.py
"""
Normalized camera event log table.
One row per vendor event that survived normalization. Rows are immutable;
event_uid carries the UNIQUE constraint that makes webhook retries idempotent.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, JSON, Index
from societyguard.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_uid = Column(String(200), unique=True, nullable=False)
    source_id = Column(String(200))
    camera_id = Column(String(100), nullable=False, index=True)
    camera_location = Column(String(200), nullable=False)
    event_type = Column(String(100), nullable=False, index=True)
    event_type_raw = Column(String(200))
    visitor_count = Column(Integer, default=0, nullable=False)
    confidence = Column(Float)
    client_id = Column(String(100), nullable=False, index=True)
    thumbnail_url = Column(String(1024))
    video_url = Column(String(1024))
    # "metadata" is reserved on declarative classes, hence the attribute name
    meta = Column("metadata", JSON, default=dict)
    timestamp_utc = Column(DateTime, nullable=False)
    timestamp_ist = Column(DateTime, nullable=False, index=True)
    received_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_events_client_ist", "client_id", "timestamp_ist"),
    )

    def __repr__(self):
        return f"<Event {self.event_uid} type={self.event_type} cam={self.camera_id} client={self.client_id}>"
