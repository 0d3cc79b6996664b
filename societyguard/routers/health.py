# societyguard/routers/health.py
"""
System health check endpoint.
Returns backend status, event count and current IST time.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from societyguard.services.event_store import EventStore, get_event_store
from societyguard.utils.time_utils import ist_now

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(store: EventStore = Depends(get_event_store)):
    result = {
        "status": "ok",
        "events_stored": None,
        "time_ist": ist_now().isoformat(timespec="seconds"),
        "database": "unknown",
    }

    try:
        result["events_stored"] = store.count()
        result["database"] = "ok"
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
