# societyguard/routers/stats.py
"""Aggregated dashboard statistics (visitors, camera activity, downtime, trends)."""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from societyguard.schemas.stats import StatsOut
from societyguard.services.event_store import EventStore, get_event_store
from societyguard.services.registry import CameraRegistry, get_camera_registry
from societyguard.services.stats_service import compute_stats
from societyguard.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/stats", response_model=StatsOut, summary="Dashboard statistics snapshot")
def get_stats(
    client_id: Optional[str] = None,
    store: EventStore = Depends(get_event_store),
    cameras: CameraRegistry = Depends(get_camera_registry),
):
    """
    Snapshot for one society (client_id) or every society combined.
    Day and hour buckets are IST calendar buckets.
    """
    try:
        return compute_stats(store, client_id=client_id, cameras=cameras)
    except SQLAlchemyError as e:
        logger.error(f"Stats query failed for client={client_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Stats query failed: {e}")
