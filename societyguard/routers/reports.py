# societyguard/routers/reports.py
"""Manual trigger for the daily summary email (normally fired at 09:00 IST)."""

from fastapi import APIRouter, Depends, HTTPException, Request
from societyguard.routers.events import require_admin_key
from societyguard.schemas.stats import ReportRunOut
from societyguard.services.daily_report import DailyReportScheduler

router = APIRouter()


def get_scheduler(request: Request) -> DailyReportScheduler:
    scheduler = getattr(request.app.state, "report_scheduler", None)
    if scheduler is None:
        scheduler = DailyReportScheduler()
        request.app.state.report_scheduler = scheduler
    return scheduler


@router.post("/reports/daily", response_model=ReportRunOut, summary="Send the daily report now",
             dependencies=[Depends(require_admin_key)])
async def run_daily_report(force: bool = False, scheduler: DailyReportScheduler = Depends(get_scheduler)):
    """
    Runs one report pass immediately, sharing the scheduler's single-flight lock.
    force=true re-sends even if today's report already went out.
    """
    summary = await scheduler.run_once(force=force)
    if summary is None:
        raise HTTPException(status_code=409, detail="A report run is already in progress")
    if summary.skipped:
        return {"status": "already_sent"}
    return {"status": "sent", "sent": summary.sent, "failed": summary.failed}
