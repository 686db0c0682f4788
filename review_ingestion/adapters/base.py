"""
Workbook adapter protocol.

Contract:
    WorkbookAdapter.load() reads a whole spreadsheet file into a Workbook:
    every sheet, every row, raw cell values (strings stripped, integral floats
    as int, blanks as ""). Header detection is not the adapter's job.

    Unreadable input raises EmptyOrUnreadableFileError.

Architecture: review_ingestion/adapters. File I/O only, no DB imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from review_ingestion.domain.types import Workbook


@runtime_checkable
class WorkbookAdapter(Protocol):
    """Protocol for reading spreadsheet files into a Workbook."""

    def load(self, source_path: Path, options: dict[str, Any]) -> Workbook:
        """Read every sheet of the file."""
        ...


def normalize_cell(value: Any) -> Any:
    """Normalize a raw cell value: None -> "", strings stripped, 3.0 -> 3."""
    if value is None:
        return ""
    if isinstance(value, float):
        if value == int(value):
            return int(value)
        return value
    if isinstance(value, str):
        return value.strip()
    return value
