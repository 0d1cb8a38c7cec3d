import atexit
import logging
from functools import partial

import gradio as gr

from collection_explorer.config import load_settings
from collection_explorer.facade import QueryFacade
from collection_explorer.handlers import (
    ViewSession,
    empty_table,
    export_table_handler,
    fetch_data_handler,
    load_collections_handler,
    select_collection_handler,
)
from collection_explorer.store import store_from_settings

logger = logging.getLogger("collection_explorer.app")


def build_demo(facade: QueryFacade) -> gr.Blocks:
    # --- UI Definition ---
    with gr.Blocks(title="Collection Explorer") as demo:
        gr.Markdown("# Collection Explorer")
        gr.Markdown("Pick a collection, choose fields from its inferred schema, and view the documents as a flat table.")

        # State
        session_state = gr.State(ViewSession())
        table_state = gr.State()

        with gr.Row():
            # Left Panel: Collection & Schema
            with gr.Column(scale=1):
                gr.Markdown("### 1. Collection")
                collection_selector = gr.Dropdown(
                    label="Collection",
                    choices=[],
                    value=None,
                    interactive=True,
                )
                refresh_btn = gr.Button("Refresh collections")
                status_msg = gr.Textbox(label="Status", interactive=False)

                gr.Markdown("### 2. Select Fields")
                field_selector = gr.CheckboxGroup(label="Fields", choices=[], value=[])
                fetch_btn = gr.Button("Fetch data", variant="primary")

            # Right Panel: Results
            with gr.Column(scale=2):
                gr.Markdown("### 3. Results for selected fields")
                document_count = gr.Textbox(label="Document Count", interactive=False)
                results_table = gr.Dataframe(value=empty_table(), interactive=False, wrap=True, label="Results")

                gr.Markdown("### 4. Export")
                output_format = gr.Radio(choices=["CSV", "JSON"], value="CSV", label="Output Format")
                output_filename = gr.Textbox(label="Output Filename (optional)", placeholder="output")
                export_btn = gr.Button("Export Data")
                download_output = gr.File(label="Download Result")

        demo.load(
            fn=partial(load_collections_handler, facade),
            inputs=[],
            outputs=[collection_selector, status_msg],
        )

        refresh_btn.click(
            fn=partial(load_collections_handler, facade),
            inputs=[],
            outputs=[collection_selector, status_msg],
        )

        collection_selector.change(
            fn=partial(select_collection_handler, facade),
            inputs=[collection_selector, session_state],
            outputs=[field_selector, status_msg, results_table, document_count, table_state],
            trigger_mode="always_last",
        )

        fetch_btn.click(
            fn=partial(fetch_data_handler, facade),
            inputs=[collection_selector, field_selector, session_state],
            outputs=[results_table, document_count, status_msg, table_state],
        )

        export_btn.click(
            fn=export_table_handler,
            inputs=[table_state, output_format, output_filename],
            outputs=[download_output, status_msg],
        )

    return demo


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    settings = load_settings()
    store = store_from_settings(settings).connect()
    atexit.register(store.close)
    logger.info("Serving collections from %s", type(store).__name__)

    build_demo(QueryFacade(store)).launch()
