"""
CSV workbook adapter.

Uses csv.reader. Configurable: delimiter, encoding, quoting. Handles BOM via
utf-8-sig when encoding is utf-8. A CSV file becomes a single-sheet Workbook
whose sheet is named after the file stem.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from review_ingestion.adapters.base import normalize_cell
from review_ingestion.domain.types import Sheet, Workbook
from review_kernel.exceptions import EmptyOrUnreadableFileError

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


class CsvWorkbookAdapter:
    """Read a CSV file as a one-sheet workbook."""

    def load(self, source_path: Path, options: dict[str, Any]) -> Workbook:
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", ",")
        quoting = _get_quoting(options)

        try:
            with source_path.open("r", encoding=encoding, newline="") as f:
                reader = csv.reader(f, delimiter=delimiter, quoting=quoting)
                rows = tuple(tuple(normalize_cell(v) for v in row) for row in reader)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise EmptyOrUnreadableFileError(source_path.name, str(exc)) from exc

        return Workbook(
            source_name=source_path.name,
            sheets=(Sheet(name=source_path.stem, rows=rows),),
        )
