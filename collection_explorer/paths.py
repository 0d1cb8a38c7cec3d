from __future__ import annotations

from typing import List

from .errors import DocumentTooDeepError

# Documents nesting deeper than this are treated as hostile input.
MAX_DEPTH = 100

INTERNAL_ID_PREFIX = '_id'


def join_path(prefix: str, key) -> str:
    """Append a key to a dot path. An empty prefix means the document root."""
    if not isinstance(key, str):
        key = str(key)
    return f"{prefix}.{key}" if prefix else key


def split_path(path: str) -> List[str]:
    """Split a dot path into its segments, dropping empty ones."""
    if path is None:
        return []
    if not isinstance(path, str):
        path = str(path)
    return [p for p in path.split('.') if p != '']


def is_internal_id(key) -> bool:
    """True for keys like '_id' or '_id_legacy' that are hidden from schemas."""
    return isinstance(key, str) and key.startswith(INTERNAL_ID_PREFIX)


def check_depth(depth: int, path: str) -> None:
    if depth > MAX_DEPTH:
        raise DocumentTooDeepError(
            f"Document nesting exceeds {MAX_DEPTH} levels at '{path}'."
        )
