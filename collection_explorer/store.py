"""Document store adapters.

Every adapter returns documents as relaxed Extended JSON (see `ejson`), so
the schema and flattening code never has to know about BSON types.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from bson import json_util
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .ejson import normalize_document, normalize_documents
from .errors import StoreError
from .projection import ProjectionTree, to_dotted_projection

logger = logging.getLogger(__name__)

ID_FIELD = '_id'


class DocumentStore(Protocol):
    def list_collection_names(self) -> List[str]: ...

    def find_sample_document(self, collection_name: str) -> Optional[Dict[str, Any]]: ...

    def query_with_projection(self, collection_name: str, projection: ProjectionTree) -> List[Dict[str, Any]]: ...


class MongoDocumentStore:
    """Read-only access to one MongoDB database.

    The client is created by `connect()` and released by `close()`; the store
    can also be used as a context manager.
    """

    def __init__(
        self,
        uri: str,
        database: Optional[str] = None,
        timeout_ms: int = 5000,
        limit: Optional[int] = None,
        client_factory: Callable[..., Any] = MongoClient,
    ):
        self.uri = uri
        self.database_name = database
        self.timeout_ms = timeout_ms
        self.limit = limit
        self._client_factory = client_factory
        self._client = None
        self._db = None

    @property
    def connected(self) -> bool:
        return self._db is not None

    def connect(self) -> "MongoDocumentStore":
        if self._db is not None:
            return self

        client = None
        try:
            client = self._client_factory(self.uri, serverSelectionTimeoutMS=self.timeout_ms)
            if self.database_name:
                db = client[self.database_name]
            else:
                db = client.get_default_database()
        except PyMongoError as exc:
            if client is not None:
                client.close()
            logger.error("Error connecting to database: %s", exc)
            raise StoreError("Failed to connect to database.") from exc

        self._client = client
        self._db = db
        logger.info("Connected to MongoDB database '%s'", db.name)
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("Closed MongoDB connection")
        self._client = None
        self._db = None

    def __enter__(self) -> "MongoDocumentStore":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _database(self):
        if self._db is None:
            raise StoreError("Document store is not connected.")
        return self._db

    def list_collection_names(self) -> List[str]:
        db = self._database()
        try:
            return list(db.list_collection_names())
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc

    def find_sample_document(self, collection_name: str) -> Optional[Dict[str, Any]]:
        db = self._database()
        try:
            doc = db[collection_name].find_one({})
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return normalize_document(doc)

    def query_with_projection(self, collection_name: str, projection: ProjectionTree) -> List[Dict[str, Any]]:
        db = self._database()
        try:
            cursor = db[collection_name].find({}, to_dotted_projection(projection))
            if self.limit:
                cursor = cursor.limit(self.limit)
            return normalize_documents(cursor)
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc


class InMemoryDocumentStore:
    """Collections held in memory, e.g. loaded from a JSON dataset file.

    Projections are applied the way a document database applies them.
    """

    def __init__(self, collections: Optional[Mapping[str, List[Dict[str, Any]]]] = None, limit: Optional[int] = None):
        self._collections: Dict[str, List[Dict[str, Any]]] = {
            name: list(docs) for name, docs in (collections or {}).items()
        }
        self.limit = limit

    @classmethod
    def from_json_file(cls, path: str, limit: Optional[int] = None) -> "InMemoryDocumentStore":
        """Load a file shaped like {"collection": [document, ...], ...}.

        Extended JSON values such as {"$date": ...} are decoded into BSON types.
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json_util.loads(f.read())
        except (OSError, ValueError) as exc:
            raise StoreError(f"Error reading dataset file: {exc}") from exc

        if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
            raise StoreError("Dataset file must map collection names to lists of documents.")
        return cls(data, limit=limit)

    def connect(self) -> "InMemoryDocumentStore":
        return self

    def close(self) -> None:
        pass

    def __enter__(self) -> "InMemoryDocumentStore":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def list_collection_names(self) -> List[str]:
        return list(self._collections)

    def find_sample_document(self, collection_name: str) -> Optional[Dict[str, Any]]:
        docs = self._collections.get(collection_name) or []
        return normalize_document(docs[0]) if docs else None

    def query_with_projection(self, collection_name: str, projection: ProjectionTree) -> List[Dict[str, Any]]:
        docs = self._collections.get(collection_name) or []
        if self.limit:
            docs = docs[:self.limit]
        return normalize_documents(
            apply_projection(doc, projection) for doc in docs if isinstance(doc, dict)
        )


_MISSING = object()


def apply_projection(doc: Dict[str, Any], projection: ProjectionTree, keep_id: bool = True) -> Dict[str, Any]:
    """Keep only the projected paths of `doc`, in document order.

    `_id` is kept at the top level unless the projection mentions it.
    Arrays of subdocuments are projected element by element.
    """
    out: Dict[str, Any] = {}
    for key, value in doc.items():
        if key == ID_FIELD and keep_id and key not in projection:
            out[key] = value
            continue
        if key not in projection:
            continue

        node = projection[key]
        if not isinstance(node, dict):
            if node:
                out[key] = value
            continue

        projected = _project_value(value, node)
        if projected is not _MISSING:
            out[key] = projected
    return out


def _project_value(value: Any, node: ProjectionTree) -> Any:
    if isinstance(value, dict):
        return apply_projection(value, node, keep_id=False)
    if isinstance(value, list):
        # Scalars inside an array vanish under a sub-path projection.
        return [_project_value(item, node) for item in value if isinstance(item, (dict, list))]
    return _MISSING


def store_from_settings(settings):
    """Build (but do not connect) the store selected by `ExplorerSettings`."""
    if settings.uses_data_file:
        return InMemoryDocumentStore.from_json_file(settings.data_file, limit=settings.query_limit)
    return MongoDocumentStore(
        settings.mongodb_uri,
        database=settings.database,
        timeout_ms=settings.timeout_ms,
        limit=settings.query_limit,
    )
