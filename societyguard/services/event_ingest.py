# societyguard/services/event_ingest.py
"""
Runs one webhook delivery through normalize → store.
Records are handled one by one; a skipped or failed record never stops the
rest of the batch, and nothing here raises back to the webhook handler.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Optional
from societyguard.services.event_normalizer import (
    CameraResolver, TenantResolver, normalize_event, split_batch,
)
from societyguard.services.event_store import EventStore
from societyguard.utils.time_utils import utc_now
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class IngestResult:
    received: int = 0      # newly stored
    skipped: int = 0       # dropped by the normalizer (bad timestamp, not an object)
    duplicates: int = 0    # event_uid already stored
    failed: int = 0        # store, registry or unexpected per-record errors

    def as_dict(self) -> dict:
        return asdict(self)


def ingest_payload(
    payload: Any,
    store: EventStore,
    tenants: TenantResolver,
    cameras: CameraResolver,
    received_at: Optional[datetime] = None,
) -> IngestResult:
    received_at = received_at or utc_now()
    result = IngestResult()

    for index, raw in enumerate(split_batch(payload)):
        try:
            event = normalize_event(raw, tenants, cameras, received_at=received_at)
            if event is None:
                result.skipped += 1
                continue
            inserted = store.insert(event)
        except Exception as e:
            # store or registry error, or a vendor value the normalizer choked on
            logger.error(f"Record {index} not stored: {e}", exc_info=True)
            store.rollback()
            result.failed += 1
            continue

        if inserted:
            result.received += 1
            logger.debug(
                f"Stored {event.event_uid}: type={event.event_type} "
                f"raw={event.event_type_raw} client={event.client_id} "
                f"visitors={event.visitor_count} ist={event.timestamp_ist.isoformat()}"
            )
        else:
            result.duplicates += 1

    logger.info(
        f"[WEBHOOK] received={result.received} skipped={result.skipped} "
        f"duplicates={result.duplicates} failed={result.failed}"
    )
    return result
