# societyguard/services/registry.py
"""
Read-only lookups into the society and camera registries.
Used by the normalizer to resolve tenant codes and camera display names.
Both lookups are best-effort: an unknown id never rejects an event.
"""

from typing import Optional
from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from societyguard.config import settings
from societyguard.database import get_db
from societyguard.models.camera import Camera
from societyguard.models.society import Society
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)


def camera_label(camera_id: str) -> str:
    return f"Camera {camera_id}"


class TenantRegistry:
    """Resolves a vendor client/site hint to a society code."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_tenant_code(self, hint) -> str:
        if hint is None or str(hint).strip() == "":
            return settings.DEFAULT_CLIENT_ID
        hint = str(hint).strip()

        society = (
            self.db.query(Society)
            .filter(func.lower(Society.code) == hint.lower())
            .first()
        )
        if society is None and hint.isascii() and hint.isdigit() and len(hint) <= 18:
            society = self.db.query(Society).filter(Society.id == int(hint)).first()
        if society is None:
            # Unique prefix only; an ambiguous prefix keeps the literal hint
            matches = (
                self.db.query(Society)
                .filter(func.lower(Society.code).like(f"{_escape_like(hint.lower())}%", escape="\\"))
                .limit(2)
                .all()
            )
            if len(matches) == 1:
                society = matches[0]

        if society is None:
            logger.debug(f"No society matches client hint '{hint}', keeping it literally")
            return hint
        return society.code


class CameraRegistry:
    """Resolves a vendor camera id to its display name."""

    def __init__(self, db: Session):
        self.db = db

    def get_camera_name(self, camera_id: str) -> Optional[str]:
        camera = self.db.query(Camera).filter(Camera.camera_id == camera_id).first()
        if camera is None:
            return None
        if camera.location and camera.location != camera.name:
            return f"{camera.name} ({camera.location})"
        return camera.name

    def resolve_camera_name(self, camera_id: str, fallback: Optional[str] = None) -> str:
        return self.get_camera_name(camera_id) or fallback or camera_label(camera_id)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_tenant_registry(db: Session = Depends(get_db)) -> TenantRegistry:
    return TenantRegistry(db)


def get_camera_registry(db: Session = Depends(get_db)) -> CameraRegistry:
    return CameraRegistry(db)
