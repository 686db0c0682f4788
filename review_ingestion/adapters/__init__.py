"""Workbook adapters for spreadsheet ingestion (file I/O only, no DB)."""

from review_ingestion.adapters.base import WorkbookAdapter, normalize_cell
from review_ingestion.adapters.csv_adapter import CsvWorkbookAdapter
from review_ingestion.adapters.xlsx_adapter import XlsxWorkbookAdapter

__all__ = [
    "CsvWorkbookAdapter",
    "WorkbookAdapter",
    "XlsxWorkbookAdapter",
    "normalize_cell",
]
