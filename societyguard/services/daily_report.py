# societyguard/services/daily_report.py
"""
Daily summary email for every active society admin.

Fires at DAILY_REPORT_HOUR_IST:DAILY_REPORT_MINUTE_IST (09:00 IST by default).
The scheduler computes the delay to the next occurrence, runs one pass in a
worker thread, and only then schedules the next one. Overlaps are blocked by
a single-flight lock, and an audit-log marker stops a second pass on the same
IST day (also across restarts).
"""

import asyncio
import html
from contextlib import suppress
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from sqlalchemy.orm import Session
from societyguard.config import settings
from societyguard.database import SessionLocal
from societyguard.models.audit_log import AuditLog
from societyguard.models.society import Society
from societyguard.models.user import User
from societyguard.services import audit_service
from societyguard.services.email_service import send_email
from societyguard.services.event_store import SqlEventStore
from societyguard.services.registry import CameraRegistry
from societyguard.services.stats_service import compute_stats
from societyguard.utils.time_utils import ist_now, utc_now
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)

REPORT_RUN_ACTION = "daily_report.run"


@dataclass
class ReportRunSummary:
    sent: int = 0
    failed: int = 0
    skipped: bool = False   # already ran for this IST day


def seconds_until_next_report(now_utc: datetime,
                              hour: int = settings.DAILY_REPORT_HOUR_IST,
                              minute: int = settings.DAILY_REPORT_MINUTE_IST) -> float:
    """Delay until the next hour:minute IST: today if still ahead, else tomorrow."""
    now = ist_now(now_utc)
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def active_admins(db: Session) -> list:
    """(User, Society) pairs for active admins of active societies."""
    return (
        db.query(User, Society)
        .join(Society, User.society_id == Society.id)
        .filter(User.role == "admin", User.is_active.is_(True), Society.active.is_(True))
        .order_by(Society.code, User.email)
        .all()
    )


def already_ran(db: Session, report_day: date) -> bool:
    marker = db.query(AuditLog.id).filter(
        AuditLog.action == REPORT_RUN_ACTION,
        AuditLog.entity_id == report_day.isoformat(),
    ).first()
    return marker is not None


# ── Formatting ───────────────────────────────────────────────────────────────

def report_subject(society_name: str, report_day: date) -> str:
    return f"{society_name}: daily security summary for {report_day:%d %b %Y}"


def _delta_text(today: int, yesterday: int) -> str:
    diff = today - yesterday
    if yesterday == 0:
        return f"{diff:+d} vs yesterday"
    return f"{diff:+d} ({diff / yesterday * 100:+.0f}%) vs yesterday"


def _table(headers: list, rows: list) -> str:
    if not rows:
        return "<p><em>No data for this period.</em></p>"
    head = "".join(f"<th align='left'>{html.escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(cell))}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table border='1' cellpadding='6' cellspacing='0'><tr>{head}</tr>{body}</table>"


def build_report_html(society_name: str, stats: dict, report_day: date) -> str:
    visitors = stats["visitors"]
    activity = _table(
        ["Camera", "Location", "Events (7 days)"],
        [(c["camera_id"], c["location"], c["count"]) for c in stats["camera_activity"]],
    )
    downtime = _table(
        ["Camera", "Location", "Incidents", "Downtime (hrs)"],
        [(d["camera_id"], d["location"], d["incidents"], f"{d['downtime_minutes'] / 60:.1f}")
         for d in stats["downtime"]],
    )
    return (
        f"<h2>{html.escape(society_name)}: daily summary</h2>"
        f"<p>{report_day:%A, %d %B %Y} · all times IST</p>"
        f"<h3>Visitors</h3>"
        f"<p>Today: <b>{visitors['today']}</b> · Yesterday: {visitors['yesterday']} · "
        f"{_delta_text(visitors['today'], visitors['yesterday'])}<br>"
        f"Last 7 days: {visitors['week']}</p>"
        f"<h3>Camera activity</h3>{activity}"
        f"<h3>Camera downtime</h3>{downtime}"
    )


# ── Run ──────────────────────────────────────────────────────────────────────

def run_daily_reports(db: Session, now_utc: Optional[datetime] = None,
                      send: Callable[..., bool] = send_email, force: bool = False) -> ReportRunSummary:
    """
    One report pass over every active society admin.
    A failure for one tenant is logged and the loop moves on; no retries.
    """
    report_day = ist_now(now_utc).date()
    if not force and already_ran(db, report_day):
        logger.info(f"[REPORT] Daily report for {report_day} already sent, skipping")
        return ReportRunSummary(skipped=True)

    store = SqlEventStore(db)
    cameras = CameraRegistry(db)
    summary = ReportRunSummary()
    stats_by_society = {}

    for user, society in active_admins(db):
        try:
            if society.code not in stats_by_society:
                stats_by_society[society.code] = compute_stats(
                    store, client_id=society.code, now_utc=now_utc, cameras=cameras
                )
            body = build_report_html(society.name, stats_by_society[society.code], report_day)
            delivered = send(user.email, report_subject(society.name, report_day), body, to_name=user.name)
        except Exception as e:
            logger.error(f"[REPORT] {society.code} → {user.email} failed: {e}", exc_info=True)
            db.rollback()
            summary.failed += 1
            continue

        if delivered:
            summary.sent += 1
        else:
            summary.failed += 1

    audit_service.record(db, REPORT_RUN_ACTION, "daily_report", report_day.isoformat(),
                         details=asdict(summary), actor="scheduler")
    logger.info(f"[REPORT] {report_day}: sent={summary.sent} failed={summary.failed}")
    return summary


class DailyReportScheduler:
    """Recurring 09:00 IST trigger for run_daily_reports."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal,
                 hour: int = settings.DAILY_REPORT_HOUR_IST,
                 minute: int = settings.DAILY_REPORT_MINUTE_IST):
        self.session_factory = session_factory
        self.hour = hour
        self.minute = minute
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def start(self):
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def run_once(self, force: bool = False) -> Optional[ReportRunSummary]:
        """Run one pass now. Returns None if a pass is already in flight."""
        if self._lock.locked():
            logger.warning("[REPORT] A report run is already in progress, trigger ignored")
            return None
        async with self._lock:
            return await asyncio.to_thread(self._run_blocking, force)

    def _run_blocking(self, force: bool) -> ReportRunSummary:
        db = self.session_factory()
        try:
            return run_daily_reports(db, force=force)
        finally:
            db.close()

    async def _loop(self):
        while True:
            delay = seconds_until_next_report(utc_now(), self.hour, self.minute)
            logger.info(f"[REPORT] Next daily report in {delay / 3600:.2f}h")
            await asyncio.sleep(delay)
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"[REPORT] Scheduled run crashed: {e}", exc_info=True)
