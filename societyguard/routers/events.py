# societyguard/routers/events.py
"""
Normalized event log for the dashboard.
GET    /events: filtered, newest-first event list.
DELETE /events: clear the whole log (privileged, audited).
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from societyguard.config import settings
from societyguard.database import get_db
from societyguard.schemas.event import ClearedOut, EventListOut, EventOut
from societyguard.services import audit_service
from societyguard.services.event_store import EventStore, get_event_store
from societyguard.utils.time_utils import parse_ist_bound
from societyguard.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def require_admin_key(request: Request):
    """Privileged routes need X-Admin-Key when ADMIN_API_KEY is configured."""
    if settings.ADMIN_API_KEY and request.headers.get("X-Admin-Key") != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin key required")


def _bound(value: Optional[str], name: str):
    try:
        return parse_ist_bound(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid '{name}' timestamp: {value}")


@router.get("/events", response_model=EventListOut, summary="List normalized events")
def list_events(
    client_id: Optional[str] = None,
    event_type: Optional[str] = None,
    from_: Optional[str] = Query(None, alias="from", description="IST lower bound (ISO-8601)"),
    to: Optional[str] = Query(None, description="IST upper bound (ISO-8601)"),
    limit: int = Query(settings.EVENTS_DEFAULT_LIMIT, ge=1),
    store: EventStore = Depends(get_event_store),
):
    """Returns {total, events}; total counts every match, events is capped at limit."""
    total, events = store.query(
        client_id=client_id,
        event_type=event_type,
        start_ist=_bound(from_, "from"),
        end_ist=_bound(to, "to"),
        limit=min(limit, settings.EVENTS_MAX_LIMIT),
    )
    return EventListOut(total=total, events=[EventOut.model_validate(e) for e in events])


@router.delete("/events", response_model=ClearedOut, summary="Clear the event log",
               dependencies=[Depends(require_admin_key)])
def clear_events(store: EventStore = Depends(get_event_store), db: Session = Depends(get_db)):
    cleared = store.clear()
    audit_service.record(db, "events.clear", "event", None, details={"cleared": cleared}, actor="api-key")
    return {"cleared": cleared}
