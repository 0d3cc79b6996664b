# societyguard/utils/time_utils.py
"""
IST helpers. IST here is a fixed UTC+5:30 shift, never a tz-database lookup.
All datetimes handled by the app are naive: *_utc values are UTC wall time,
*_ist values are the same instant shifted by IST_OFFSET.
"""

from datetime import datetime, date, time, timedelta, timezone
from typing import Any, Optional

IST_OFFSET = timedelta(hours=5, minutes=30)

# Epoch values above this are taken as milliseconds
_EPOCH_MS_THRESHOLD = 10_000_000_000


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_ist(utc_dt: datetime) -> datetime:
    return utc_dt + IST_OFFSET


def ist_now(now_utc: Optional[datetime] = None) -> datetime:
    return to_ist(now_utc or utc_now())


def ist_day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def ist_to_utc(ist_dt: datetime) -> datetime:
    return ist_dt - IST_OFFSET


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a vendor timestamp into naive UTC.
    Accepts ISO-8601 strings (Z, offset or naive=UTC) and epoch seconds/ms.
    Returns None when the value cannot be read as a real instant, including
    instants too close to datetime.min/max to be shifted into IST.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
            dt = datetime.fromtimestamp(seconds, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isascii() and text.isdigit():
            try:
                return parse_timestamp(int(text))
            except ValueError:   # longer than the int() digit limit
                return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    try:
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        to_ist(dt)
    except OverflowError:
        return None
    return dt


def parse_ist_bound(value: Optional[str]) -> Optional[datetime]:
    """Parse a dashboard filter bound. Naive input is already IST; aware input is converted."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        try:
            dt = to_ist(dt.astimezone(timezone.utc).replace(tzinfo=None))
        except OverflowError:
            raise ValueError(f"Out of range: {value}")
    return dt
