from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .ejson import DATE_KEY, format_date_value, is_date_wrapper, is_scalar_wrapper, wrapper_text
from .paths import check_depth, join_path

ELEMENT_SEPARATOR = '; '
FIELD_SEPARATOR = ', '
MISSING_VALUE = ''


def flatten_document(doc: Any, prefix: str = '') -> Dict[str, Any]:
    """Flatten a nested document into a single-level row keyed by dot path.

    - `{"$date": ...}` wrappers become ISO-8601 strings.
    - Arrays become one display string ("x; y", or "a: 1, b: 2" per object).
    - Nested objects are merged in under extended paths; empty ones vanish.
    - Everything else is kept as-is.
    """
    row: Dict[str, Any] = {}
    if isinstance(doc, dict):
        _flatten_into(doc, prefix, row, depth=1)
    return row


def _flatten_into(obj: Dict[str, Any], prefix: str, row: Dict[str, Any], depth: int) -> None:
    check_depth(depth, prefix or '(root)')

    for key, value in obj.items():
        path = join_path(prefix, key)

        if is_date_wrapper(value):
            row[path] = format_date_value(value[DATE_KEY])
        elif isinstance(value, datetime):
            row[path] = format_date_value(value)
        elif is_scalar_wrapper(value):
            row[path] = wrapper_text(value)
        elif isinstance(value, list):
            row[path] = join_array(value)
        elif isinstance(value, dict):
            _flatten_into(value, path, row, depth + 1)
        else:
            row[path] = value


def join_array(values: List[Any]) -> str:
    """Render an array as one lossy display string."""
    return ELEMENT_SEPARATOR.join(_element_text(item) for item in values)


def _element_text(item: Any) -> str:
    if isinstance(item, dict) and not is_date_wrapper(item) and not is_scalar_wrapper(item):
        # Immediate fields only; nested values are not flattened further.
        return FIELD_SEPARATOR.join(f"{k}: {display_text(v)}" for k, v in item.items())
    return display_text(item)


def display_text(value: Any) -> str:
    """Literal text for a value inside a joined array string."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if is_date_wrapper(value):
        return format_date_value(value[DATE_KEY])
    if isinstance(value, datetime):
        return format_date_value(value)
    if is_scalar_wrapper(value):
        return wrapper_text(value)
    if isinstance(value, (dict, list)):
        try:
            return json.dumps(value, ensure_ascii=False)
        except TypeError:
            return str(value)
    return str(value)


def flatten_documents_for_table(
    docs: Iterable[Any],
    columns: List[str],
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Flatten documents into rows holding exactly `columns`.

    Columns a document lacks, or holds null for, are filled with an empty
    display value.
    """
    rows: List[Dict[str, Any]] = []
    if not columns:
        return rows

    for doc in docs:
        flat = flatten_document(doc)
        row: Dict[str, Any] = {}
        for col in columns:
            val = flat.get(col)
            row[col] = MISSING_VALUE if val is None else val
        rows.append(row)
        if limit is not None and len(rows) >= max(1, int(limit)):
            return rows
    return rows
