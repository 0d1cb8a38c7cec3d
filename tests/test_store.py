"""Document store adapter tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from collection_explorer.config import ExplorerSettings
from collection_explorer.errors import StoreError
from collection_explorer.store import (
    InMemoryDocumentStore,
    MongoDocumentStore,
    apply_projection,
    store_from_settings,
)
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.errors import ServerSelectionTimeoutError


def _mongo_store(**kwargs):
    client = MagicMock()
    factory = MagicMock(return_value=client)
    db = client.get_default_database.return_value
    db.name = "shop"
    store = MongoDocumentStore("mongodb://localhost:27017/shop", client_factory=factory, **kwargs)
    return store, factory, client, db


def test_connect_uses_uri_default_database() -> None:
    store, factory, client, _ = _mongo_store(timeout_ms=1500)

    store.connect()

    factory.assert_called_once_with("mongodb://localhost:27017/shop", serverSelectionTimeoutMS=1500)
    client.get_default_database.assert_called_once_with()
    assert store.connected


def test_connect_prefers_configured_database() -> None:
    client = MagicMock()
    store = MongoDocumentStore(
        "mongodb://localhost:27017", database="analytics", client_factory=MagicMock(return_value=client)
    )

    store.connect()

    client.__getitem__.assert_called_once_with("analytics")
    client.get_default_database.assert_not_called()


def test_connect_failure_releases_client() -> None:
    store, _, client, _ = _mongo_store()
    client.get_default_database.side_effect = MongoConfigurationError("No default database name defined")

    with pytest.raises(StoreError, match="Failed to connect to database."):
        store.connect()

    client.close.assert_called_once_with()
    assert not store.connected


def test_context_manager_closes_client() -> None:
    store, _, client, _ = _mongo_store()

    with store as opened:
        assert opened is store
        assert store.connected

    client.close.assert_called_once_with()
    assert not store.connected


def test_operations_require_connection() -> None:
    store, _, _, _ = _mongo_store()

    with pytest.raises(StoreError):
        store.list_collection_names()


def test_list_collection_names() -> None:
    store, _, _, db = _mongo_store()
    db.list_collection_names.return_value = ["users", "products"]

    assert store.connect().list_collection_names() == ["users", "products"]


def test_driver_errors_become_store_errors() -> None:
    store, _, _, db = _mongo_store()
    db.list_collection_names.side_effect = ServerSelectionTimeoutError("timed out")

    with pytest.raises(StoreError, match="timed out"):
        store.connect().list_collection_names()


def test_sample_document_is_normalized() -> None:
    store, _, _, db = _mongo_store()
    collection = db.__getitem__.return_value
    collection.find_one.return_value = {
        "name": "test",
        "posted": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }

    sample = store.connect().find_sample_document("users")

    db.__getitem__.assert_called_with("users")
    collection.find_one.assert_called_once_with({})
    assert sample["name"] == "test"
    assert list(sample["posted"]) == ["$date"]


def test_missing_sample_is_none() -> None:
    store, _, _, db = _mongo_store()
    db.__getitem__.return_value.find_one.return_value = None

    assert store.connect().find_sample_document("nope") is None


def test_query_passes_dotted_projection() -> None:
    store, _, _, db = _mongo_store()
    collection = db.__getitem__.return_value
    collection.find.return_value = [{"_id": 1, "name": "John Doe", "address": {"street": "123 Main St"}}]

    docs = store.connect().query_with_projection("users", {"name": 1, "address": {"street": 1}})

    collection.find.assert_called_once_with({}, {"name": 1, "address.street": 1})
    assert docs == [{"_id": 1, "name": "John Doe", "address": {"street": "123 Main St"}}]


def test_query_applies_row_limit() -> None:
    store, _, _, db = _mongo_store(limit=10)
    cursor = db.__getitem__.return_value.find.return_value
    cursor.limit.return_value = [{"name": "a"}]

    assert store.connect().query_with_projection("users", {"name": 1}) == [{"name": "a"}]
    cursor.limit.assert_called_once_with(10)


def test_apply_projection_keeps_id_and_listed_paths() -> None:
    doc = {"_id": 1, "name": "John", "age": 30, "address": {"street": "123", "city": "X"}}

    assert apply_projection(doc, {"name": 1, "address": {"street": 1}}) == {
        "_id": 1,
        "name": "John",
        "address": {"street": "123"},
    }


def test_apply_projection_handles_arrays_and_scalars() -> None:
    doc = {"items": [{"a": 1, "b": 2}, 3, {"b": 4}], "address": "flat"}

    assert apply_projection(doc, {"items": {"a": 1}, "address": {"street": 1}}) == {
        "items": [{"a": 1}, {}],
    }


def test_in_memory_store_serves_collections() -> None:
    store = InMemoryDocumentStore(
        {
            "users": [
                {"_id": 1, "name": "John Doe", "age": 30},
                {"_id": 2, "name": "Jane Doe", "age": 25},
            ],
            "empty": [],
        }
    )

    with store:
        assert store.list_collection_names() == ["users", "empty"]
        assert store.find_sample_document("users") == {"_id": 1, "name": "John Doe", "age": 30}
        assert store.find_sample_document("empty") is None
        assert store.find_sample_document("missing") is None
        assert store.query_with_projection("users", {"name": 1}) == [
            {"_id": 1, "name": "John Doe"},
            {"_id": 2, "name": "Jane Doe"},
        ]
        assert store.query_with_projection("missing", {"name": 1}) == []


def test_in_memory_store_loads_extended_json_file(tmp_path: Path) -> None:
    path = tmp_path / "matches.json"
    path.write_text(
        json.dumps(
            {
                "matches": [
                    {"team1": "PL", "time": {"$date": "2024-06-16T19:00:00Z"}},
                    {"team1": "NL", "time": {"$date": "2024-06-21T16:00:00Z"}},
                ]
            }
        ),
        encoding="utf-8",
    )

    store = InMemoryDocumentStore.from_json_file(str(path), limit=1)

    sample = store.find_sample_document("matches")
    assert sample["team1"] == "PL"
    assert list(sample["time"]) == ["$date"]
    assert len(store.query_with_projection("matches", {"team1": 1})) == 1


def test_in_memory_store_rejects_bad_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(StoreError):
        InMemoryDocumentStore.from_json_file(str(path))

    with pytest.raises(StoreError):
        InMemoryDocumentStore.from_json_file(str(tmp_path / "absent.json"))


def test_store_from_settings_picks_adapter(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('{"users": []}', encoding="utf-8")
    settings = ExplorerSettings(
        mongodb_uri="mongodb://localhost:27017/shop",
        database=None,
        timeout_ms=5000,
        row_limit=0,
        data_file=None,
    )

    mongo = store_from_settings(settings)
    assert isinstance(mongo, MongoDocumentStore)
    assert mongo.limit is None
    assert not mongo.connected

    offline = store_from_settings(
        ExplorerSettings(mongodb_uri="", database=None, timeout_ms=5000, row_limit=5, data_file=str(path))
    )
    assert isinstance(offline, InMemoryDocumentStore)
    assert offline.limit == 5
