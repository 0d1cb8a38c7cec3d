"""MongoDB Extended JSON helpers.

Documents coming out of the driver carry BSON types. They are converted to
relaxed Extended JSON before any schema or flattening work, so dates show up
as `{"$date": ...}` wrappers and ObjectIds as `{"$oid": ...}`.
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from bson import json_util

DATE_KEY = '$date'

# Every Extended JSON type wrapper ($oid, $binary, $timestamp, $regularExpression,
# $minKey, ...) is a mapping with a single '$'-prefixed key.
WRAPPER_PREFIX = '$'

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_document(doc: Any) -> Any:
    """Convert a driver document (BSON types) to relaxed Extended JSON values."""
    if doc is None:
        return None
    return json.loads(json_util.dumps(doc, json_options=json_util.RELAXED_JSON_OPTIONS))


def normalize_documents(docs) -> List[Any]:
    return [normalize_document(doc) for doc in docs]


def is_date_wrapper(value: Any) -> bool:
    return isinstance(value, dict) and len(value) == 1 and DATE_KEY in value


def is_scalar_wrapper(value: Any) -> bool:
    if not isinstance(value, dict) or len(value) != 1:
        return False
    (key,) = value.keys()
    return isinstance(key, str) and key.startswith(WRAPPER_PREFIX) and key != DATE_KEY


def is_wrapper(value: Any) -> bool:
    return is_date_wrapper(value) or is_scalar_wrapper(value)


def wrapper_text(value: Dict[str, Any]) -> str:
    (payload,) = value.values()
    if isinstance(payload, (dict, list)):
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return str(payload)


def _to_datetime(value: Any):
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _EPOCH + timedelta(milliseconds=value)
    if isinstance(value, dict) and '$numberLong' in value:
        try:
            return _EPOCH + timedelta(milliseconds=int(value['$numberLong']))
        except (TypeError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def format_iso_datetime(dt: datetime) -> str:
    """Render as YYYY-MM-DDTHH:MM:SS.mmmZ in UTC."""
    dt = dt.astimezone(timezone.utc)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        f".{dt.microsecond // 1000:03d}Z"
    )


def format_date_value(value: Any) -> str:
    """ISO-8601 text for a `$date` payload or a datetime.

    Payloads that are not a recognizable date fall back to their string form.
    """
    try:
        dt = _to_datetime(value)
        if dt is not None:
            return format_iso_datetime(dt)
    except (OverflowError, ValueError):
        return str(value)
    return str(value)
