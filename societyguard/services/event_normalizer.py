# societyguard/services/event_normalizer.py
"""
Maps raw vendor webhook payloads into the canonical NormalizedEvent.

Vendors disagree on field names and nesting ("deviceId" vs "camera_id",
nested "data.startTimeUtc", ...), so every field is read through a list of
candidate paths. Malformed input never raises: missing fields fall back to
defaults, and only an unparseable timestamp drops the record (returns None).
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol
from societyguard.utils.json_parser import first_present, get_nested
from societyguard.utils.time_utils import parse_timestamp, to_ist, utc_now
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)

# ── Canonical event types ────────────────────────────────────────────────────
PERSON_DETECTED = "person_detected"
VEHICLE_DETECTED = "vehicle_detected"
CROWD_DETECTED = "crowd_detected"
LOITERING = "loitering"
CAMERA_OFFLINE = "camera_offline"
CAMERA_ONLINE = "camera_online"
ANALYTIC = "analytic"
UNKNOWN = "unknown"

VISITOR_EVENT_TYPES = (PERSON_DETECTED, VEHICLE_DETECTED, CROWD_DETECTED)

UNKNOWN_CAMERA = "UNKNOWN"

# ── Vendor field aliases (dotted paths, first non-empty wins) ────────────────
CAMERA_ID_PATHS = ("deviceId", "device_id", "camera_id", "cameraId", "data.deviceId", "data.cameraId")
EVENT_TYPE_PATHS = ("eventType", "event_type", "type", "data.eventType", "data.type")
TIMESTAMP_PATHS = ("data.startTimeUtc", "timestamp_utc", "timestampUtc", "timestamp", "time")
CLIENT_HINT_PATHS = (
    "client_id", "clientId", "siteId", "site_id",
    "data.clientId", "data.siteId", "integration.clientId", "integration.siteId",
)
SOURCE_ID_PATHS = ("id", "eventId", "event_id", "data.id", "data.eventId")
LOCATION_PATHS = ("camera_location", "cameraName", "camera_name", "data.cameraName")
HEADCOUNT_PATHS = ("visitor_count", "visitorCount", "people_count", "peopleCount", "count", "data.count")
CONFIDENCE_PATHS = ("confidence", "score", "data.confidence")
THUMBNAIL_PATHS = ("thumbnail_url", "thumbnailUrl", "data.thumbnailUrl")
VIDEO_PATHS = ("video_url", "videoUrl", "data.videoUrl")
OBJECT_LIST_PATHS = (
    "data.objects", "objects", "metadata.objects",
    "data.detections", "detections", "metadata.detections",
)
OBJECT_LABEL_KEYS = ("type", "objectType", "object_type", "label", "class", "name")


@dataclass(frozen=True)
class TypeRule:
    """One classification rule: any keyword found in the lowercased type wins."""
    keywords: tuple
    event_type: str

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


# Evaluated top to bottom; the first match wins. "disconnect" must be
# tested before "connect", so offline precedes online.
TYPE_RULES = (
    TypeRule(("motion", "person", "people"), PERSON_DETECTED),
    TypeRule(("vehicle", "car", "alpr"), VEHICLE_DETECTED),
    TypeRule(("crowd",), CROWD_DETECTED),
    TypeRule(("loiter",), LOITERING),
    TypeRule(("offline", "disconnect"), CAMERA_OFFLINE),
    TypeRule(("online", "connect"), CAMERA_ONLINE),
)

# Applied to detected-object labels of a generic "analytic" event
OBJECT_RULES = (
    TypeRule(("person", "people", "face"), PERSON_DETECTED),
    TypeRule(("vehicle", "car"), VEHICLE_DETECTED),
    TypeRule(("crowd",), CROWD_DETECTED),
)
PERSON_OBJECT_RULE = OBJECT_RULES[0]


class TenantResolver(Protocol):
    def resolve_tenant_code(self, hint: Any) -> str: ...


class CameraResolver(Protocol):
    def resolve_camera_name(self, camera_id: str, fallback: Optional[str] = None) -> str: ...


@dataclass(frozen=True)
class NormalizedEvent:
    event_uid: str
    camera_id: str
    camera_location: str
    event_type: str
    event_type_raw: Optional[str]
    visitor_count: int
    client_id: str
    timestamp_utc: datetime
    timestamp_ist: datetime
    received_at: datetime
    confidence: Optional[float] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    source_id: Optional[str] = None
    meta: dict = field(default_factory=dict)

    @property
    def is_visitor_event(self) -> bool:
        return self.event_type in VISITOR_EVENT_TYPES


# ── Field helpers ────────────────────────────────────────────────────────────

def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _object_label(obj: Any) -> str:
    if isinstance(obj, str):
        return obj.lower()
    if isinstance(obj, dict):
        for key in OBJECT_LABEL_KEYS:
            if obj.get(key):
                return str(obj[key]).lower()
    return ""


def extract_objects(raw: dict) -> Optional[list]:
    """Detected-object descriptors, or None when the payload carries no list."""
    for path in OBJECT_LIST_PATHS:
        value = get_nested(raw, *path.split("."))
        if isinstance(value, list):
            return value
    return None


def _non_negative_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or number < 0 or number != int(number):
        return None
    return int(number)


def _confidence(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if 0.0 <= score <= 1.0:
        return score
    if 1.0 < score <= 100.0:   # vendor sent a percentage
        return round(score / 100.0, 4)
    return None


# ── Public API ───────────────────────────────────────────────────────────────

def classify_event_type(raw_type: Any, objects: Optional[list] = None) -> str:
    """Map a vendor type string onto a canonical type (see TYPE_RULES)."""
    text = _as_text(raw_type)
    if text is None:
        return UNKNOWN
    lowered = text.lower()

    for rule in TYPE_RULES:
        if rule.matches(lowered):
            return rule.event_type

    if ANALYTIC in lowered:
        labels = [_object_label(o) for o in objects or []]
        for rule in OBJECT_RULES:
            if any(rule.matches(label) for label in labels):
                return rule.event_type
        return ANALYTIC

    return lowered


def count_visitors(event_type: str, raw: dict, objects: Optional[list] = None) -> int:
    """
    Visitor-class events count 1, a vendor-reported headcount, or the number of
    person/people/face descriptors (minimum 1). Every other type counts 0.
    """
    if event_type not in VISITOR_EVENT_TYPES:
        return 0
    reported = _non_negative_int(first_present(raw, *HEADCOUNT_PATHS))
    if reported is not None:
        return reported
    if not objects:
        return 1
    people = sum(1 for obj in objects if PERSON_OBJECT_RULE.matches(_object_label(obj)))
    return max(people, 1)


def make_event_uid(camera_id: str, source_id: Optional[str], received_at: datetime) -> str:
    anchor = source_id or str(int(received_at.replace(tzinfo=timezone.utc).timestamp() * 1000))
    return f"{camera_id}-{anchor}-{uuid.uuid4().hex[:6]}"[:200]


def split_batch(payload: Any) -> list:
    """A delivery is a single object or an array of objects."""
    if isinstance(payload, list):
        return payload
    return [payload]


def normalize_event(
    raw: Any,
    tenants: TenantResolver,
    cameras: CameraResolver,
    received_at: Optional[datetime] = None,
) -> Optional[NormalizedEvent]:
    """Normalize one raw vendor record. Returns None if it must be skipped."""
    if not isinstance(raw, dict):
        logger.warning(f"Skipping non-object webhook record: {type(raw).__name__}")
        return None
    received_at = received_at or utc_now()

    raw_ts = first_present(raw, *TIMESTAMP_PATHS)
    if raw_ts is None:
        timestamp_utc = received_at
    else:
        timestamp_utc = parse_timestamp(raw_ts)
        if timestamp_utc is None:
            logger.warning(f"Skipping record with unparseable timestamp: {raw_ts!r}")
            return None

    camera_id = _as_text(first_present(raw, *CAMERA_ID_PATHS)) or UNKNOWN_CAMERA
    raw_type = _as_text(first_present(raw, *EVENT_TYPE_PATHS))
    objects = extract_objects(raw)
    event_type = classify_event_type(raw_type, objects)
    source_id = _as_text(first_present(raw, *SOURCE_ID_PATHS))

    metadata = raw.get("metadata")
    meta = dict(metadata) if isinstance(metadata, dict) else {}
    if isinstance(raw.get("data"), dict):
        meta.setdefault("data", raw["data"])

    return NormalizedEvent(
        event_uid=make_event_uid(camera_id, source_id, received_at),
        camera_id=camera_id,
        camera_location=cameras.resolve_camera_name(
            camera_id, fallback=_as_text(first_present(raw, *LOCATION_PATHS))
        ),
        event_type=event_type,
        event_type_raw=raw_type,
        visitor_count=count_visitors(event_type, raw, objects),
        client_id=tenants.resolve_tenant_code(first_present(raw, *CLIENT_HINT_PATHS)),
        timestamp_utc=timestamp_utc,
        timestamp_ist=to_ist(timestamp_utc),
        received_at=received_at,
        confidence=_confidence(first_present(raw, *CONFIDENCE_PATHS)),
        thumbnail_url=_as_text(first_present(raw, *THUMBNAIL_PATHS)),
        video_url=_as_text(first_present(raw, *VIDEO_PATHS)),
        source_id=source_id,
        meta=meta,
    )
