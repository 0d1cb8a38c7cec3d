from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .ejson import is_wrapper
from .errors import SchemaInferenceError
from .paths import check_depth, is_internal_id, join_path


class TypeTag(str, Enum):
    STRING = 'string'
    NUMBER = 'number'
    BOOLEAN = 'boolean'
    NULL = 'null'
    OBJECT = 'Object'
    ARRAY = 'Array'
    ARRAY_OF_OBJECTS = 'Array<Object>'


@dataclass(frozen=True)
class Field:
    path: str
    type: TypeTag

    def as_dict(self) -> Dict[str, str]:
        return {'name': self.path, 'type': self.type.value}


def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict) and not is_wrapper(value)


def scalar_tag(value: Any) -> TypeTag:
    # bool is a subclass of int, so it must be checked first.
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, (int, float)):
        return TypeTag.NUMBER
    return TypeTag.STRING


def infer_fields(sample: Any) -> List[Field]:
    """Infer an ordered field list from one sample document.

    Traversal is depth-first in key order with parents before children.
    Keys starting with '_id' are skipped along with their subtree. Arrays of
    objects are described by their first element only.
    """
    if sample is None:
        return []
    if not isinstance(sample, dict):
        raise SchemaInferenceError(
            f"Sample document must be a mapping, got {type(sample).__name__}."
        )

    fields: List[Field] = []
    _collect_fields(sample, '', fields, depth=1)

    # Literal dotted keys ({'a.b': 1} next to {'a': {'b': 2}}) can produce the
    # same path twice; the first occurrence wins.
    seen = set()
    unique: List[Field] = []
    for field in fields:
        if field.path not in seen:
            seen.add(field.path)
            unique.append(field)
    return unique


def _collect_fields(obj: Dict[str, Any], prefix: str, out: List[Field], depth: int) -> None:
    check_depth(depth, prefix or '(root)')

    for key, value in obj.items():
        if is_internal_id(key):
            continue
        path = join_path(prefix, key)

        if value is None:
            out.append(Field(path, TypeTag.NULL))
        elif isinstance(value, list):
            if value and is_plain_object(value[0]):
                out.append(Field(path, TypeTag.ARRAY_OF_OBJECTS))
                _collect_fields(value[0], path, out, depth + 1)
            else:
                out.append(Field(path, TypeTag.ARRAY))
        elif isinstance(value, dict):
            out.append(Field(path, TypeTag.OBJECT))
            # Extended JSON wrappers ($date, $oid, ...) are opaque leaves.
            if not is_wrapper(value):
                _collect_fields(value, path, out, depth + 1)
        else:
            out.append(Field(path, scalar_tag(value)))
