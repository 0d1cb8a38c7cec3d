from __future__ import annotations

import csv
import json
import os
import tempfile
from typing import Any, Dict, List

EXPORT_FORMATS = ('CSV', 'JSON')


def export_file_name(file_name: str, output_format: str) -> str:
    if not file_name or not file_name.strip():
        file_name = "output"
    file_name = os.path.basename(file_name.strip())

    ext = f".{output_format.lower()}"
    if not file_name.lower().endswith(ext):
        file_name += ext
    return file_name


def write_rows(rows: List[Dict[str, Any]], columns: List[str], output_format: str, file_name: str) -> str:
    """Write table rows to a temp file as CSV or JSON and return its path."""
    if output_format not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {output_format}")

    path = os.path.join(tempfile.gettempdir(), export_file_name(file_name, output_format))

    if output_format == "CSV":
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            if rows:
                writer.writerows(rows)
    else:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
    return path
