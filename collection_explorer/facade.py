from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from .errors import DocumentTooDeepError, InvalidInputError, SchemaInferenceError, StoreError
from .projection import build_projection
from .schema_inference import Field, infer_fields
from .store import DocumentStore

logger = logging.getLogger(__name__)


def _validate_collection_name(collection_name: Any) -> None:
    if not isinstance(collection_name, str):
        raise InvalidInputError()


def _validate_fields(fields: Any) -> None:
    # A bare string is a sequence too, but not a sequence of field paths.
    if isinstance(fields, (str, bytes)) or not isinstance(fields, Sequence):
        raise InvalidInputError()
    if not all(isinstance(f, str) for f in fields):
        raise InvalidInputError()


class QueryFacade:
    """The three read operations a viewer needs: collections, schema, data.

    Requests are validated before the store is touched. Store failures are
    logged and re-raised as StoreError with a per-operation message.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def collections(self) -> List[Dict[str, str]]:
        try:
            names = self.store.list_collection_names()
        except StoreError as exc:
            logger.error("Error fetching collections: %s", exc)
            raise StoreError("Failed to fetch collections.") from exc
        return [{'name': name} for name in names]

    def schema(self, collection_name: str) -> List[Field]:
        _validate_collection_name(collection_name)
        try:
            sample = self.store.find_sample_document(collection_name)
            if sample is None:
                return []
            return infer_fields(sample)
        except (StoreError, SchemaInferenceError, DocumentTooDeepError) as exc:
            logger.error("Error fetching schema for %s: %s", collection_name, exc)
            raise StoreError("Failed to fetch schema.") from exc

    def data(self, collection_name: str, fields: Sequence[str]) -> List[Dict[str, Any]]:
        _validate_collection_name(collection_name)
        _validate_fields(fields)

        projection = build_projection(fields)
        if not projection:
            return []
        try:
            return list(self.store.query_with_projection(collection_name, projection))
        except StoreError as exc:
            logger.error("Error fetching data from %s: %s", collection_name, exc)
            raise StoreError("Failed to fetch data.") from exc
