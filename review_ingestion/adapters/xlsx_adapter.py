"""
XLSX workbook adapter for spreadsheet exports.

Reads every worksheet in order with openpyxl (read-only, cached values rather
than formulas). Rows keep their sheet position, so ``rows[i]`` is sheet row
``i + 1`` even when the top of the sheet is blank.
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from review_ingestion.adapters.base import normalize_cell
from review_ingestion.domain.types import Sheet, Workbook
from review_kernel.exceptions import EmptyOrUnreadableFileError

_MAX_ROWS = 100_000

# Damaged archives, damaged sheet XML and cells openpyxl cannot convert.
# XML parse errors (ElementTree and lxml alike) derive from SyntaxError.
_UNREADABLE = (
    OSError,
    KeyError,
    ValueError,
    TypeError,
    SyntaxError,
    zipfile.BadZipFile,
    InvalidFileException,
)


def _trim_trailing(values: tuple[Any, ...]) -> tuple[Any, ...]:
    """Drop trailing blank cells so ragged rows compare cleanly."""
    end = len(values)
    while end and values[end - 1] == "":
        end -= 1
    return values[:end]


class XlsxWorkbookAdapter:
    """
    Read .xlsx files as a Workbook of every sheet.

    options:
      max_rows: upper bound on rows read per sheet. Default: 100000.
    """

    def load(self, source_path: Path, options: dict[str, Any]) -> Workbook:
        max_rows = int(options.get("max_rows", _MAX_ROWS))
        try:
            wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
            try:
                sheets = []
                for ws in wb.worksheets:
                    rows = tuple(
                        _trim_trailing(tuple(normalize_cell(v) for v in row))
                        for row in ws.iter_rows(min_row=1, max_row=max_rows, values_only=True)
                    )
                    sheets.append(Sheet(name=ws.title, rows=rows))
            finally:
                wb.close()
        except _UNREADABLE as exc:
            raise EmptyOrUnreadableFileError(source_path.name, str(exc)) from exc

        return Workbook(source_name=source_path.name, sheets=tuple(sheets))
