# societyguard/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, all routers and the
daily report scheduler.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from societyguard.routers import webhook, events, stats, health, reports
from societyguard.database import create_tables
from societyguard.config import settings
from societyguard.services.daily_report import DailyReportScheduler
from societyguard.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="SocietyGuard API",
    description="Camera event webhook ingestion and society access-control dashboard statistics.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard origin) ──────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.FRONTEND_URL != "*" else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "X-API-Key", "X-Admin-Key", "X-Webhook-Signature"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Lightweight API key auth for dashboard endpoints under /api.
    The vendor webhook and health check stay open; vendors can't send keys.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/") or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(webhook.router,                 tags=["📡 Webhook"])
app.include_router(health.router,                  tags=["💚 Health"])
app.include_router(events.router,  prefix="/api",  tags=["📋 Events"])
app.include_router(stats.router,   prefix="/api",  tags=["📊 Stats"])
app.include_router(reports.router, prefix="/api",  tags=["✉️  Reports"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 SocietyGuard backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info("📡 Webhook endpoint: POST /webhook")
    logger.info(f"🔐 API key required for /api/*: {'yes' if settings.API_KEY else 'no'}")

    app.state.report_scheduler = DailyReportScheduler()
    if settings.DAILY_REPORT_ENABLED:
        app.state.report_scheduler.start()
        logger.info(
            f"✉️  Daily report scheduled for {settings.DAILY_REPORT_HOUR_IST:02d}:"
            f"{settings.DAILY_REPORT_MINUTE_IST:02d} IST"
        )


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 SocietyGuard backend shutting down...")
    scheduler = getattr(app.state, "report_scheduler", None)
    if scheduler is not None:
        await scheduler.stop()
