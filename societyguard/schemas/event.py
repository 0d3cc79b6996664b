from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class EventOut(BaseModel):
    id: Optional[int] = None
    event_uid: str
    source_id: Optional[str] = None
    camera_id: str
    camera_location: str
    event_type: str
    event_type_raw: Optional[str] = None
    visitor_count: int
    confidence: Optional[float] = None
    client_id: str
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    metadata: dict = Field(default_factory=dict, validation_alias="meta")
    timestamp_utc: datetime
    timestamp_ist: datetime
    received_at: datetime

    class Config:
        from_attributes = True


class EventListOut(BaseModel):
    total: int
    events: list[EventOut]


class WebhookAck(BaseModel):
    received: int
    skipped: int = 0
    duplicates: int = 0
    failed: int = 0
    timestamp_ist: str


class ClearedOut(BaseModel):
    cleared: int
