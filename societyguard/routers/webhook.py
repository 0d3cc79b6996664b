# societyguard/routers/webhook.py
"""
Vendor webhook endpoint.
POST /webhook: one event object or a JSON array of them.
"""

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from societyguard.config import settings
from societyguard.schemas.event import WebhookAck
from societyguard.services.event_ingest import IngestResult, ingest_payload
from societyguard.services.event_store import EventStore, get_event_store
from societyguard.services.registry import (
    CameraRegistry, TenantRegistry, get_camera_registry, get_tenant_registry,
)
from societyguard.utils.json_parser import safe_parse_json
from societyguard.utils.signature import SIGNATURE_HEADER, verify_signature
from societyguard.utils.time_utils import ist_now
from societyguard.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def _ack(result: IngestResult) -> dict:
    return {**result.as_dict(), "timestamp_ist": ist_now().isoformat(timespec="seconds")}


@router.post("/webhook", response_model=WebhookAck, summary="Vendor webhook, receives camera events")
async def receive_webhook(
    request: Request,
    store: EventStore = Depends(get_event_store),
    tenants: TenantRegistry = Depends(get_tenant_registry),
    cameras: CameraRegistry = Depends(get_camera_registry),
):
    """
    Always returns HTTP 200 (even when nothing was stored) because vendors
    retry on non-2xx. The only rejection is a bad HMAC signature when
    WEBHOOK_SECRET is configured.
    """
    raw_body = await request.body()
    if not verify_signature(raw_body, request.headers.get(SIGNATURE_HEADER), settings.WEBHOOK_SECRET):
        logger.warning(f"Webhook signature rejected from {request.client.host if request.client else '?'}")
        return JSONResponse(status_code=401, content={"detail": "Invalid webhook signature"})

    if not raw_body:
        return _ack(IngestResult())

    payload = safe_parse_json(raw_body)
    if payload is None:
        logger.warning(f"Webhook body is not valid JSON ({len(raw_body)} bytes), ignored")
        return _ack(IngestResult())

    # Blocking DB work; keep it off the event loop
    result = await run_in_threadpool(ingest_payload, payload, store, tenants, cameras)
    return _ack(result)
