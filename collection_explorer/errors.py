from __future__ import annotations


class ExplorerError(Exception):
    """Base class for errors surfaced to the caller of a query."""


class InvalidInputError(ExplorerError):
    """Raised when a request has the wrong shape. No store access happens."""

    def __init__(self, message: str = "Invalid input."):
        super().__init__(message)


class StoreError(ExplorerError):
    """Raised when the document store cannot be reached or fails a request."""


class SchemaInferenceError(ExplorerError):
    """Raised when a sample document cannot be turned into a field list."""


class DocumentTooDeepError(ExplorerError, ValueError):
    """Raised when a document nests deeper than MAX_DEPTH."""


class ConfigurationError(ExplorerError):
    """Raised when environment settings are missing or invalid."""
