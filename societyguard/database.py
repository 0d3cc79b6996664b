# societyguard/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite accepted for local runs and tests).
Every connection carries a timeout so a slow store degrades single requests,
never the whole process.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from societyguard.config import settings


def _engine_options() -> dict:
    if settings.is_sqlite:
        return {
            "connect_args": {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS},
        }
    return {
        "pool_pre_ping": True,          # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": settings.DB_TIMEOUT_SECONDS,
        "connect_args": {
            "connect_timeout": settings.DB_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={settings.DB_TIMEOUT_SECONDS * 1000}",
        },
    }


engine = create_engine(settings.DATABASE_URL, echo=False, **_engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from societyguard.models.event import Event            # noqa
    from societyguard.models.society import Society        # noqa
    from societyguard.models.camera import Camera          # noqa
    from societyguard.models.user import User              # noqa
    from societyguard.models.audit_log import AuditLog     # noqa

    Base.metadata.create_all(bind=engine)
