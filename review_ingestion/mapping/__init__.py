"""Header-to-field mapping and account construction (pure)."""

from review_ingestion.mapping.engine import (
    build_account,
    build_accounts,
    build_column_mappings,
    column_keys,
    data_rows,
    map_row,
    stringify,
)

__all__ = [
    "build_account",
    "build_accounts",
    "build_column_mappings",
    "column_keys",
    "data_rows",
    "map_row",
    "stringify",
]
