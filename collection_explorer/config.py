"""Environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_ROW_LIMIT = 1000


@dataclass(frozen=True)
class ExplorerSettings:
    mongodb_uri: str
    database: Optional[str]
    timeout_ms: int
    row_limit: int
    data_file: Optional[str]

    @property
    def uses_data_file(self) -> bool:
        return bool(self.data_file)

    @property
    def query_limit(self) -> Optional[int]:
        """Row cap for data queries; None when unlimited."""
        return self.row_limit or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ExplorerSettings:
    """Read settings from the environment (or the given mapping)."""
    env = os.environ if environ is None else environ

    data_file = _optional(env.get("EXPLORER_DATA_FILE"))
    uri = (env.get("MONGODB_URI") or "").strip()
    if not uri and not data_file:
        raise ConfigurationError(
            "Set MONGODB_URI (or EXPLORER_DATA_FILE for an offline dataset)."
        )

    return ExplorerSettings(
        mongodb_uri=uri,
        database=_optional(env.get("MONGODB_DATABASE")),
        timeout_ms=_non_negative_int(env, "MONGODB_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        row_limit=_non_negative_int(env, "EXPLORER_ROW_LIMIT", DEFAULT_ROW_LIMIT),
        data_file=data_file,
    )


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _non_negative_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _optional(env.get(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'.") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative.")
    return value
