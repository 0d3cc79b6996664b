"""Tests for the daily summary reporter and its 09:00 IST scheduler."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import time
import pytest
from datetime import date, datetime
from societyguard.models.audit_log import AuditLog
from societyguard.models.society import Society
from societyguard.models.user import User
from societyguard.services import daily_report
from societyguard.services.daily_report import (
    REPORT_RUN_ACTION, DailyReportScheduler, ReportRunSummary, active_admins, already_ran,
    build_report_html, report_subject, run_daily_reports, seconds_until_next_report,
)
from societyguard.services.event_store import SqlEventStore
from societyguard.services.stats_service import compute_stats
from societyguard.services.event_store import InMemoryEventStore
from conftest import make_stored_event

# 2026-02-26 09:00 IST
NOW_UTC = datetime(2026, 2, 26, 3, 30)


class RecordingSender:
    def __init__(self, fail_for=(), raise_for=()):
        self.calls = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    def __call__(self, to, subject, html_body, to_name=None):
        if to in self.raise_for:
            raise RuntimeError("provider exploded")
        self.calls.append({"to": to, "subject": subject, "html": html_body, "to_name": to_name})
        return to not in self.fail_for


@pytest.fixture
def report_db(db_session):
    palm = Society(code="C01", name="Palm Residency")
    lake = Society(code="C02", name="Lake View")
    closed = Society(code="C03", name="Closed Towers", active=False)
    db_session.add_all([palm, lake, closed])
    db_session.flush()
    db_session.add_all([
        User(name="Asha", email="asha@palm.test", role="admin", society_id=palm.id),
        User(name="Vik", email="vik@palm.test", role="viewer", society_id=palm.id),
        User(name="Old", email="old@palm.test", role="admin", society_id=palm.id, is_active=False),
        User(name="Ravi", email="ravi@lake.test", role="admin", society_id=lake.id),
        User(name="Zed", email="zed@closed.test", role="admin", society_id=closed.id),
    ])
    db_session.commit()

    store = SqlEventStore(db_session)
    store.insert(make_stored_event("person_detected", datetime(2026, 2, 26, 8, 0), count=3, client_id="C01"))
    store.insert(make_stored_event("person_detected", datetime(2026, 2, 25, 18, 0), count=1, client_id="C01"))
    store.insert(make_stored_event("camera_offline", datetime(2026, 2, 26, 7, 0), client_id="C02",
                                   camera_id="CAM-9"))
    return db_session


class TestNextReportDelay:

    def test_later_today(self):
        # 08:30 IST
        assert seconds_until_next_report(datetime(2026, 2, 26, 3, 0), 9, 0) == 1800

    def test_exactly_at_report_time_waits_a_day(self):
        assert seconds_until_next_report(datetime(2026, 2, 26, 3, 30), 9, 0) == 86400

    def test_after_report_time_rolls_to_tomorrow(self):
        # 09:30 IST
        assert seconds_until_next_report(datetime(2026, 2, 26, 4, 0), 9, 0) == 84600


class TestRecipients:

    def test_only_active_admins_of_active_societies(self, report_db):
        pairs = active_admins(report_db)
        assert [(u.email, s.code) for u, s in pairs] == [
            ("asha@palm.test", "C01"),
            ("ravi@lake.test", "C02"),
        ]


class TestRunDailyReports:

    def test_each_admin_gets_their_society_stats(self, report_db):
        send = RecordingSender()
        summary = run_daily_reports(report_db, now_utc=NOW_UTC, send=send)

        assert summary == ReportRunSummary(sent=2, failed=0, skipped=False)
        by_recipient = {c["to"]: c for c in send.calls}
        palm = by_recipient["asha@palm.test"]
        assert palm["to_name"] == "Asha"
        assert palm["subject"] == report_subject("Palm Residency", date(2026, 2, 26))
        assert "Today: <b>3</b>" in palm["html"]
        assert "Yesterday: 1" in palm["html"]
        lake = by_recipient["ravi@lake.test"]
        assert "Today: <b>0</b>" in lake["html"]
        assert "CAM-9" in lake["html"]

    def test_one_failing_tenant_does_not_stop_the_others(self, report_db):
        send = RecordingSender(raise_for={"asha@palm.test"})
        summary = run_daily_reports(report_db, now_utc=NOW_UTC, send=send)
        assert summary.sent == 1
        assert summary.failed == 1
        assert [c["to"] for c in send.calls] == ["ravi@lake.test"]

    def test_provider_refusal_counts_as_failed(self, report_db):
        summary = run_daily_reports(report_db, now_utc=NOW_UTC,
                                    send=RecordingSender(fail_for={"ravi@lake.test"}))
        assert (summary.sent, summary.failed) == (1, 1)

    def test_run_marker_blocks_second_run_same_day(self, report_db):
        run_daily_reports(report_db, now_utc=NOW_UTC, send=RecordingSender())
        assert already_ran(report_db, date(2026, 2, 26))
        marker = report_db.query(AuditLog).filter(AuditLog.action == REPORT_RUN_ACTION).one()
        assert marker.entity_id == "2026-02-26"
        assert marker.details["sent"] == 2

        send = RecordingSender()
        summary = run_daily_reports(report_db, now_utc=NOW_UTC, send=send)
        assert summary.skipped is True
        assert send.calls == []

    def test_force_resends_and_next_day_runs(self, report_db):
        run_daily_reports(report_db, now_utc=NOW_UTC, send=RecordingSender())

        forced = run_daily_reports(report_db, now_utc=NOW_UTC, send=RecordingSender(), force=True)
        assert forced.sent == 2

        next_day = run_daily_reports(report_db, now_utc=datetime(2026, 2, 27, 3, 30), send=RecordingSender())
        assert next_day.skipped is False
        assert not already_ran(report_db, date(2026, 2, 28))

    def test_no_admins_still_writes_marker(self, db_session):
        summary = run_daily_reports(db_session, now_utc=NOW_UTC, send=RecordingSender())
        assert (summary.sent, summary.failed) == (0, 0)
        assert already_ran(db_session, date(2026, 2, 26))


class TestReportHtml:

    def test_content_and_escaping(self):
        store = InMemoryEventStore([
            make_stored_event("person_detected", datetime(2026, 2, 26, 8, 0), count=6,
                              camera_id="CAM-<1>"),
            make_stored_event("person_detected", datetime(2026, 2, 25, 8, 0), count=4),
            make_stored_event("camera_offline", datetime(2026, 2, 26, 7, 0), camera_id="CAM-2"),
        ])
        stats = compute_stats(store, now_utc=NOW_UTC)
        body = build_report_html("Palm & Co", stats, date(2026, 2, 26))
        assert "Palm &amp; Co" in body
        assert "CAM-&lt;1&gt;" in body
        assert "+2 (+50%) vs yesterday" in body
        assert "Last 7 days: 10" in body
        assert "<td>0.5</td>" in body

    def test_empty_sections(self):
        stats = compute_stats(InMemoryEventStore(), now_utc=NOW_UTC)
        body = build_report_html("Palm", stats, date(2026, 2, 26))
        assert body.count("No data for this period.") == 2
        assert "+0 vs yesterday" in body


class TestScheduler:

    @pytest.mark.asyncio
    async def test_overlapping_trigger_is_rejected(self):
        scheduler = DailyReportScheduler(session_factory=None)

        def slow_run(force):
            time.sleep(0.3)
            return ReportRunSummary(sent=1)

        scheduler._run_blocking = slow_run
        first = asyncio.create_task(scheduler.run_once())
        await asyncio.sleep(0.05)
        assert scheduler.running
        assert await scheduler.run_once() is None
        assert (await first).sent == 1
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_loop_fires_and_stops(self, monkeypatch):
        calls = []
        scheduler = DailyReportScheduler(session_factory=None)
        scheduler._run_blocking = lambda force: calls.append(force) or ReportRunSummary()
        monkeypatch.setattr(daily_report, "seconds_until_next_report", lambda *args: 0.01)

        scheduler.start()
        await asyncio.sleep(0.2)
        await scheduler.stop()

        assert calls
        assert all(force is False for force in calls)
        assert scheduler._task is None

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        await DailyReportScheduler(session_factory=None).stop()

    @pytest.mark.asyncio
    async def test_run_once_uses_fresh_session(self, db_session):
        closed = []

        class SessionProxy:
            def __init__(self, session):
                self._session = session

            def __getattr__(self, name):
                return getattr(self._session, name)

            def close(self):
                closed.append(True)

        scheduler = DailyReportScheduler(session_factory=lambda: SessionProxy(db_session))
        summary = await scheduler.run_once()
        assert summary.skipped is False
        assert closed == [True]
