# societyguard/utils/json_parser.py
"""
Helpers for reading loosely-typed vendor JSON payloads.
Field names and nesting differ per integration, so lookups try several paths.
"""

import json
from typing import Optional, Any


def safe_parse_json(raw_body: bytes) -> Optional[Any]:
    """Parse JSON bytes safely. Returns None on error."""
    try:
        return json.loads(raw_body.decode("utf-8", errors="replace"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def get_nested(data: dict, *keys: str, default: Any = None) -> Any:
    """Safely navigate nested dict keys. Returns default if any key is missing."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key, default)
        if current is default:
            return default
    return current


def first_present(data: dict, *paths: str) -> Any:
    """
    Return the first non-empty value among dotted paths, e.g.
    first_present(raw, "data.startTimeUtc", "timestamp_utc").
    """
    for path in paths:
        value = get_nested(data, *path.split("."))
        if value is not None and value != "":
            return value
    return None


def has_any(data: dict, *paths: str) -> bool:
    """True if any dotted path is present with a non-empty value."""
    return first_present(data, *paths) is not None
