"""Core logic for Collection Explorer.

The Gradio UI lives in `app.py`. This package contains:
- pure functions that infer a field list from a sample document, build
  inclusion projections from dot paths and flatten documents into rows
- document store adapters (MongoDB and in-memory)
- the query facade and UI handlers that glue them together
"""
