# societyguard/services/event_store.py
"""
Durable event log behind a small storage interface.

SqlEventStore is the production store; the UNIQUE constraint on event_uid is
the dedupe boundary, so insert() is idempotent and reports False for a
retried delivery. InMemoryEventStore mirrors the same contract for tests and
local runs without a database.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional, Sequence
from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from societyguard.config import settings
from societyguard.database import get_db
from societyguard.models.event import Event
from societyguard.services.event_normalizer import NormalizedEvent
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)


class EventStore(ABC):

    @abstractmethod
    def insert(self, event: NormalizedEvent) -> bool:
        """Store the event. Returns False if event_uid already exists."""

    @abstractmethod
    def query(
        self,
        client_id: Optional[str] = None,
        event_type: Optional[str] = None,
        start_ist: Optional[datetime] = None,
        end_ist: Optional[datetime] = None,
        limit: int = settings.EVENTS_DEFAULT_LIMIT,
    ) -> tuple:
        """Returns (total_matches, newest-first events capped at limit)."""

    @abstractmethod
    def events_between(
        self,
        start_ist: datetime,
        end_ist: datetime,
        client_id: Optional[str] = None,
        event_types: Optional[Iterable[str]] = None,
    ) -> Sequence:
        """Events with start_ist <= timestamp_ist < end_ist, oldest first."""

    @abstractmethod
    def count(self, client_id: Optional[str] = None) -> int:
        ...

    @abstractmethod
    def clear(self) -> int:
        """Delete every event. Returns how many were removed."""

    def rollback(self) -> None:
        """Reset the store after a failed operation so the batch can go on."""


class SqlEventStore(EventStore):
    def __init__(self, db: Session):
        self.db = db

    def insert(self, event: NormalizedEvent) -> bool:
        self.db.add(Event(
            event_uid=event.event_uid,
            source_id=event.source_id,
            camera_id=event.camera_id,
            camera_location=event.camera_location,
            event_type=event.event_type,
            event_type_raw=event.event_type_raw,
            visitor_count=event.visitor_count,
            confidence=event.confidence,
            client_id=event.client_id,
            thumbnail_url=event.thumbnail_url,
            video_url=event.video_url,
            meta=event.meta,
            timestamp_utc=event.timestamp_utc,
            timestamp_ist=event.timestamp_ist,
            received_at=event.received_at,
        ))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Duplicate event_uid ignored: {event.event_uid}")
            return False
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return True

    def _filtered(self, client_id=None, event_type=None, start_ist=None, end_ist=None):
        q = self.db.query(Event)
        if client_id:
            q = q.filter(Event.client_id == client_id)
        if event_type:
            q = q.filter(Event.event_type == event_type)
        if start_ist:
            q = q.filter(Event.timestamp_ist >= start_ist)
        if end_ist:
            q = q.filter(Event.timestamp_ist <= end_ist)
        return q

    def query(self, client_id=None, event_type=None, start_ist=None, end_ist=None,
              limit=settings.EVENTS_DEFAULT_LIMIT):
        q = self._filtered(client_id, event_type, start_ist, end_ist)
        total = q.count()
        events = q.order_by(Event.timestamp_ist.desc(), Event.id.desc()).limit(limit).all()
        return total, events

    def events_between(self, start_ist, end_ist, client_id=None, event_types=None):
        q = self.db.query(Event).filter(
            Event.timestamp_ist >= start_ist,
            Event.timestamp_ist < end_ist,
        )
        if client_id:
            q = q.filter(Event.client_id == client_id)
        if event_types:
            q = q.filter(Event.event_type.in_(list(event_types)))
        return q.order_by(Event.timestamp_ist.asc(), Event.id.asc()).all()

    def count(self, client_id=None) -> int:
        q = self.db.query(Event)
        if client_id:
            q = q.filter(Event.client_id == client_id)
        return q.count()

    def clear(self) -> int:
        try:
            cleared = self.db.query(Event).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.warning(f"Event log cleared ({cleared} events)")
        return cleared

    def rollback(self) -> None:
        self.db.rollback()


class InMemoryEventStore(EventStore):
    """Process-local store; one instance per test or app, never a module global."""

    def __init__(self, events: Iterable[NormalizedEvent] = ()):
        self._lock = threading.Lock()
        self._events = {}
        for event in events:
            self.insert(event)

    def insert(self, event: NormalizedEvent) -> bool:
        with self._lock:
            if event.event_uid in self._events:
                return False
            self._events[event.event_uid] = event
            return True

    def _snapshot(self) -> list:
        with self._lock:
            return list(self._events.values())

    def query(self, client_id=None, event_type=None, start_ist=None, end_ist=None,
              limit=settings.EVENTS_DEFAULT_LIMIT):
        matches = [
            e for e in self._snapshot()
            if (not client_id or e.client_id == client_id)
            and (not event_type or e.event_type == event_type)
            and (not start_ist or e.timestamp_ist >= start_ist)
            and (not end_ist or e.timestamp_ist <= end_ist)
        ]
        matches.sort(key=lambda e: e.timestamp_ist, reverse=True)
        return len(matches), matches[:limit]

    def events_between(self, start_ist, end_ist, client_id=None, event_types=None):
        types = set(event_types) if event_types else None
        matches = [
            e for e in self._snapshot()
            if start_ist <= e.timestamp_ist < end_ist
            and (not client_id or e.client_id == client_id)
            and (types is None or e.event_type in types)
        ]
        matches.sort(key=lambda e: e.timestamp_ist)
        return matches

    def count(self, client_id=None) -> int:
        return sum(1 for e in self._snapshot() if not client_id or e.client_id == client_id)

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._events)
            self._events.clear()
        return cleared


def get_event_store(db: Session = Depends(get_db)) -> EventStore:
    """FastAPI dependency: one SQL-backed store per request session."""
    return SqlEventStore(db)
