# societyguard/services/audit_service.py
"""
Shared audit trail writer.
Used by the events router (log clearing) and the daily reporter (run marker).
Never raises: an audit failure must not break the action being audited.
"""

from societyguard.utils.time_utils import utc_now
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from societyguard.models.audit_log import AuditLog
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)


def record(db: Session, action: str, entity: str, entity_id=None, details: Optional[dict] = None,
           actor: Optional[str] = None, client_id: Optional[str] = None) -> Optional[AuditLog]:
    """Persist one audit entry. Always commits immediately."""
    entry = AuditLog(action=action, entity=entity,
                     entity_id=str(entity_id) if entity_id is not None else None,
                     details=details or {}, actor=actor, client_id=client_id,
                     created_at=utc_now())
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[AUDIT] Could not record {action} on {entity}:{entity_id}: {e}")
        return None
    logger.info(f"[AUDIT] {action} {entity}:{entity_id} by {actor or 'system'}")
    return entry
