"""Extended JSON normalization tests."""

from __future__ import annotations

from datetime import datetime, timezone

from bson import Binary, Int64, MinKey, ObjectId, Regex, Timestamp
from collection_explorer.ejson import (
    format_date_value,
    is_date_wrapper,
    is_scalar_wrapper,
    normalize_document,
)
from collection_explorer.flattening import flatten_document
from collection_explorer.schema_inference import infer_fields


def _driver_document() -> dict:
    return {
        "_id": ObjectId("65a1b2c3d4e5f60718293a4b"),
        "time": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "goals": Int64(3),
        "stadium": "Narodowy",
    }


def test_bson_types_become_wrappers() -> None:
    doc = normalize_document(_driver_document())

    assert doc["_id"] == {"$oid": "65a1b2c3d4e5f60718293a4b"}
    assert is_date_wrapper(doc["time"])
    assert doc["goals"] == 3
    assert doc["stadium"] == "Narodowy"


def test_normalized_driver_document_infers_and_flattens() -> None:
    doc = normalize_document(_driver_document())

    assert [f.as_dict() for f in infer_fields(doc)] == [
        {"name": "time", "type": "Object"},
        {"name": "goals", "type": "number"},
        {"name": "stadium", "type": "string"},
    ]
    assert flatten_document(doc) == {
        "_id": "65a1b2c3d4e5f60718293a4b",
        "time": "2024-01-01T00:00:00.000Z",
        "goals": 3,
        "stadium": "Narodowy",
    }


def test_missing_document_stays_missing() -> None:
    assert normalize_document(None) is None


def test_wrapper_detection_requires_a_single_key() -> None:
    assert is_date_wrapper({"$date": 0})
    assert not is_date_wrapper({"$date": 0, "other": 1})
    assert is_scalar_wrapper({"$numberDecimal": "1.50"})
    assert not is_scalar_wrapper({"amount": "1.50"})


def test_format_date_value_converts_offsets_to_utc() -> None:
    assert format_date_value("2024-06-01T12:00:00+02:00") == "2024-06-01T10:00:00.000Z"
    assert format_date_value("2024-06-01T10:00:00") == "2024-06-01T10:00:00.000Z"


def _binary_document() -> dict:
    return {
        "name": "a",
        "blob": Binary(b"abc", 0),
        "ts": Timestamp(1, 2),
        "re": Regex("x", "i"),
        "lowest": MinKey(),
    }


def test_every_bson_wrapper_is_a_schema_leaf() -> None:
    doc = normalize_document(_binary_document())

    assert [f.as_dict() for f in infer_fields(doc)] == [
        {"name": "name", "type": "string"},
        {"name": "blob", "type": "Object"},
        {"name": "ts", "type": "Object"},
        {"name": "re", "type": "Object"},
        {"name": "lowest", "type": "Object"},
    ]


def test_every_bson_wrapper_flattens_to_one_column() -> None:
    row = flatten_document(normalize_document(_binary_document()))

    assert list(row) == ["name", "blob", "ts", "re", "lowest"]
    assert not any("$" in key for key in row)
    assert row["ts"] == '{"i": 2, "t": 1}'
    assert row["lowest"] == "1"


def test_dollar_prefixed_single_keys_are_wrappers() -> None:
    assert is_scalar_wrapper({"$binary": {"base64": "YWJj", "subType": "00"}})
    assert is_scalar_wrapper({"$timestamp": {"t": 1, "i": 2}})
    assert not is_scalar_wrapper({"$date": 0})
    assert not is_scalar_wrapper({"$binary": {}, "extra": 1})
