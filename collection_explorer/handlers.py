from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import gradio as gr
import pandas as pd

from .errors import ExplorerError
from .facade import QueryFacade
from .flattening import flatten_documents_for_table
from .io_utils import write_rows

logger = logging.getLogger(__name__)

NO_FIELDS_MESSAGE = "This collection has no fields."
NO_DATA_MESSAGE = "No data to display right now. Try again."


@dataclass
class ViewSession:
    """Per-browser-session selection, used to drop stale responses.

    Every collection change bumps `generation`; a response whose ticket no
    longer matches was requested for an older selection.
    """

    collection: Optional[str] = None
    generation: int = 0

    def select(self, collection: Optional[str]) -> int:
        self.collection = collection
        self.generation += 1
        return self.generation

    def ticket(self) -> int:
        return self.generation

    def is_current(self, ticket: int) -> bool:
        return ticket == self.generation


def field_choices(fields) -> List[tuple]:
    return [(f"{field.path} ({field.type.value})", field.path) for field in fields]


def empty_table(columns: Optional[List[str]] = None) -> pd.DataFrame:
    return pd.DataFrame(columns=columns or [])


def document_count_text(count: int) -> str:
    return f"Documents: {count}"


def _unchanged(count: int):
    return tuple(gr.update() for _ in range(count))


def _is_current_response(session: ViewSession, ticket: int, collection: Optional[str]) -> bool:
    return session.is_current(ticket) and session.collection == collection


def load_collections_handler(facade: QueryFacade):
    try:
        names = [c['name'] for c in facade.collections()]
    except ExplorerError as e:
        return gr.update(choices=[], value=None), str(e)
    return gr.update(choices=names, value=None), f"Found {len(names)} collections."


def select_collection_handler(facade: QueryFacade, collection: Optional[str], session: ViewSession):
    """Load the inferred schema for the newly selected collection.

    Returns (field checkbox update, status, table, document count, table state).
    """
    ticket = session.select(collection)
    if not collection:
        return gr.update(choices=[], value=[]), "", empty_table(), "", None

    try:
        fields = facade.schema(collection)
        status = f"Found {len(fields)} fields." if fields else NO_FIELDS_MESSAGE
    except ExplorerError as e:
        fields, status = [], str(e)

    if not session.is_current(ticket):
        logger.debug("Discarding stale schema response for %s", collection)
        return _unchanged(5)

    return gr.update(choices=field_choices(fields), value=[]), status, empty_table(), "", None


def fetch_data_handler(
    facade: QueryFacade,
    collection: Optional[str],
    selected_fields: Optional[List[str]],
    session: ViewSession,
):
    """Query the selected fields and render them as a flat table.

    Returns (table, document count, status, table state).
    """
    if not collection or not selected_fields:
        return gr.update(), gr.update(), "Please select a collection and at least one field", gr.update()

    ticket = session.ticket()
    columns = list(selected_fields)
    try:
        docs = facade.data(collection, columns)
        rows = flatten_documents_for_table(docs, columns)
    except ExplorerError as e:
        if not _is_current_response(session, ticket, collection):
            return _unchanged(4)
        return empty_table(columns), "", str(e), None

    if not _is_current_response(session, ticket, collection):
        logger.debug("Discarding stale data response for %s", collection)
        return _unchanged(4)

    table_state = {'columns': columns, 'rows': rows}
    status = "" if rows else NO_DATA_MESSAGE
    return pd.DataFrame(rows, columns=columns), document_count_text(len(rows)), status, table_state


def export_table_handler(table_state: Optional[Dict[str, Any]], output_format: str, file_name: str):
    if not table_state or not table_state.get('columns'):
        return None, "Fetch data before exporting."

    try:
        path = write_rows(table_state['rows'], table_state['columns'], output_format, file_name)
    except (OSError, ValueError) as e:
        return None, f"Error during export: {str(e)}"
    return path, f"Export successful! Saved to {path}"
