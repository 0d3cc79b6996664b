# societyguard/services/stats_service.py
"""
Dashboard / report statistics computed on demand from the event log.

All day and hour buckets are IST calendar buckets: an event at
2026-02-25T19:00Z is 2026-02-26 00:30 IST and counts for Feb 26.
One read covers the trailing 7 IST days (today-6 .. today); every figure in
the snapshot is derived from that window in memory.

Downtime policy: per camera, events are walked in IST order. Each
camera_offline opens an incident; the first camera_online before the
camera's next camera_offline closes it with its real duration. Incidents
never closed that way count DOWNTIME_NOMINAL_MINUTES.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Optional, Sequence
from societyguard.config import settings
from societyguard.services.event_normalizer import (
    CAMERA_OFFLINE, CAMERA_ONLINE, VISITOR_EVENT_TYPES,
)
from societyguard.services.event_store import EventStore
from societyguard.services.registry import camera_label
from societyguard.utils.time_utils import ist_day_start, ist_now
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)

WINDOW_DAYS = 7
HOURLY_TREND_HOURS = range(5, 23)   # 05:00–22:00 IST inclusive, 18 buckets


def _display_name(camera_id: str, last_location: Optional[str], cameras=None) -> str:
    name = cameras.get_camera_name(camera_id) if cameras is not None else None
    return name or last_location or camera_label(camera_id)


def camera_activity(events: Sequence, cameras=None) -> list:
    """Event count per camera, busiest first."""
    counts = Counter(e.camera_id for e in events)
    latest_location = {}
    for e in events:
        latest_location[e.camera_id] = e.camera_location
    rows = [
        {
            "camera_id": camera_id,
            "location": _display_name(camera_id, latest_location.get(camera_id), cameras),
            "count": count,
        }
        for camera_id, count in counts.items()
    ]
    rows.sort(key=lambda r: (-r["count"], r["camera_id"]))
    return rows


def camera_downtime(events: Sequence, nominal_minutes: int = settings.DOWNTIME_NOMINAL_MINUTES,
                    cameras=None) -> list:
    """Offline incidents and estimated downtime per camera (events must be oldest first)."""
    timeline = defaultdict(list)
    latest_location = {}
    for e in events:
        if e.event_type in (CAMERA_OFFLINE, CAMERA_ONLINE):
            timeline[e.camera_id].append(e)
            latest_location[e.camera_id] = e.camera_location

    rows = []
    for camera_id, sequence in timeline.items():
        incidents = recovered = 0
        minutes = 0.0
        open_since = None
        for e in sequence:
            if e.event_type == CAMERA_OFFLINE:
                if open_since is not None:
                    minutes += nominal_minutes
                open_since = e.timestamp_ist
                incidents += 1
            elif open_since is not None:
                minutes += (e.timestamp_ist - open_since).total_seconds() / 60
                recovered += 1
                open_since = None
        if open_since is not None:
            minutes += nominal_minutes

        if incidents:
            rows.append({
                "camera_id": camera_id,
                "location": _display_name(camera_id, latest_location.get(camera_id), cameras),
                "incidents": incidents,
                "recovered": recovered,
                "downtime_minutes": round(minutes, 1),
            })

    rows.sort(key=lambda r: (-r["downtime_minutes"], r["camera_id"]))
    return rows


def compute_stats(
    store: EventStore,
    client_id: Optional[str] = None,
    now_utc: Optional[datetime] = None,
    cameras=None,
    nominal_downtime_minutes: int = settings.DOWNTIME_NOMINAL_MINUTES,
) -> dict:
    """
    Build the stats snapshot for one tenant (client_id) or all tenants (None).
    Empty windows produce zeros and empty lists, never None.
    """
    now_ist = ist_now(now_utc)
    today = now_ist.date()
    yesterday = today - timedelta(days=1)
    days = [today - timedelta(days=offset) for offset in range(WINDOW_DAYS - 1, -1, -1)]

    events = store.events_between(
        ist_day_start(days[0]),
        ist_day_start(today + timedelta(days=1)),
        client_id=client_id,
    )

    visitors_by_day = defaultdict(int)
    visitors_by_hour = defaultdict(int)
    for e in events:
        if e.event_type not in VISITOR_EVENT_TYPES:
            continue
        day = e.timestamp_ist.date()
        visitors_by_day[day] += e.visitor_count
        visitors_by_hour[(day, e.timestamp_ist.hour)] += e.visitor_count

    hourly = [
        {
            "hour": hour,
            "label": f"{hour}:00",
            "today": visitors_by_hour[(today, hour)],
            "yesterday": visitors_by_hour[(yesterday, hour)],
        }
        for hour in HOURLY_TREND_HOURS
    ]
    weekly = [
        {
            "date": day.isoformat(),
            "label": f"{day:%a} {day.day}",
            "weekday": f"{day:%A}",
            "visitors": visitors_by_day[day],
        }
        for day in days
    ]

    stats = {
        "generated_at_ist": now_ist.isoformat(timespec="seconds"),
        "client_id": client_id,
        "visitors": {
            "today": visitors_by_day[today],
            "yesterday": visitors_by_day[yesterday],
            "week": sum(visitors_by_day[day] for day in days),
        },
        "camera_activity": camera_activity(events, cameras),
        "downtime": camera_downtime(events, nominal_downtime_minutes, cameras),
        "trends": {"hourly": hourly, "weekly": weekly},
        "total_events_stored": store.count(),
    }
    logger.debug(
        f"Stats for client={client_id or '*'}: {len(events)} events in window, "
        f"today={stats['visitors']['today']}"
    )
    return stats
