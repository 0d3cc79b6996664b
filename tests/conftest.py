"""Shared fixtures: SQLite in-memory sessions, registry fakes and a test client."""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before anything imports societyguard.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DAILY_REPORT_ENABLED"] = "false"
os.environ["LOG_DIR"] = ""
for _key in ("API_KEY", "ADMIN_API_KEY", "WEBHOOK_SECRET", "EMAIL_API_KEY"):
    os.environ[_key] = ""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import societyguard.models  # noqa: F401
from societyguard.database import Base, get_db
from societyguard.services.event_normalizer import NormalizedEvent, VISITOR_EVENT_TYPES
from societyguard.utils.time_utils import IST_OFFSET


class FakeTenants:
    def __init__(self, mapping=None, default="default"):
        self.mapping = mapping or {}
        self.default = default

    def resolve_tenant_code(self, hint):
        if hint is None or str(hint).strip() == "":
            return self.default
        return self.mapping.get(str(hint), str(hint))


class FakeCameras:
    def __init__(self, names=None):
        self.names = names or {}

    def get_camera_name(self, camera_id):
        return self.names.get(camera_id)

    def resolve_camera_name(self, camera_id, fallback=None):
        return self.names.get(camera_id) or fallback or f"Camera {camera_id}"


_uid_counter = 0


def make_stored_event(event_type="person_detected", ist=None, count=None, camera_id="CAM-1",
                      client_id="C01", location=None, uid=None):
    """Build a NormalizedEvent directly from its IST time."""
    global _uid_counter
    _uid_counter += 1
    ist = ist or datetime(2026, 2, 26, 12, 0)
    if count is None:
        count = 1 if event_type in VISITOR_EVENT_TYPES else 0
    return NormalizedEvent(
        event_uid=uid or f"{camera_id}-test-{_uid_counter}",
        camera_id=camera_id,
        camera_location=location or f"Camera {camera_id}",
        event_type=event_type,
        event_type_raw=event_type,
        visitor_count=count,
        client_id=client_id,
        timestamp_utc=ist - IST_OFFSET,
        timestamp_ist=ist,
        received_at=ist - IST_OFFSET,
    )


@pytest.fixture
def tenants():
    return FakeTenants()


@pytest.fixture
def cameras():
    return FakeCameras()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from societyguard.main import app

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
