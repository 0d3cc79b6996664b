from pydantic import BaseModel
from typing import Optional


class VisitorTotals(BaseModel):
    today: int = 0
    yesterday: int = 0
    week: int = 0


class CameraActivityOut(BaseModel):
    camera_id: str
    location: str
    count: int


class CameraDowntimeOut(BaseModel):
    camera_id: str
    location: str
    incidents: int
    recovered: int
    downtime_minutes: float


class HourlyTrendOut(BaseModel):
    hour: int
    label: str
    today: int
    yesterday: int


class WeeklyTrendOut(BaseModel):
    date: str
    label: str
    weekday: str
    visitors: int


class TrendsOut(BaseModel):
    hourly: list[HourlyTrendOut]
    weekly: list[WeeklyTrendOut]


class StatsOut(BaseModel):
    generated_at_ist: str
    client_id: Optional[str] = None
    visitors: VisitorTotals
    camera_activity: list[CameraActivityOut]
    downtime: list[CameraDowntimeOut]
    trends: TrendsOut
    total_events_stored: int


class ReportRunOut(BaseModel):
    status: str
    sent: int = 0
    failed: int = 0
