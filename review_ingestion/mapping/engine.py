"""
Mapping engine: pure transformation from raw sheet rows to canonical accounts.

    header cells --build_column_mappings--> ColumnMapping per column
    sheet row    --source_row-------------> SourceRow (keyed by header text)
    SourceRow    --map_row----------------> MappedRow (keyed by canonical field)
    MappedRow    --build_account----------> GLAccount (defaults, coercion,
                                            ingestion audit entry)

ZERO I/O.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from review_kernel.domain.account import GLAccount, ReviewStatus, StatusCategory
from review_kernel.domain.stages import StageSequence
from review_kernel.domain.workflow_engine import ingestion_entry

from review_ingestion.domain.types import (
    AliasTable,
    CanonicalField,
    ColumnMapping,
    FieldDefaults,
    MappedRow,
    SourceRow,
    is_blank_cell,
    is_blank_row,
)


def _header_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value == int(value):
        value = int(value)
    return " ".join(str(value).split())


def column_keys(header_cells: Sequence[Any]) -> tuple[str, ...]:
    """Row-dict keys for each header cell: blank cells become ``Column_n``, repeats get a suffix."""
    keys: list[str] = []
    for c, cell in enumerate(header_cells):
        key = _header_text(cell) or f"Column_{c + 1}"
        base = key
        cnt = 0
        while key in keys:
            cnt += 1
            key = f"{base}_{cnt}"
        keys.append(key)
    return tuple(keys)


def build_column_mappings(
    header_cells: Sequence[Any],
    aliases: AliasTable,
) -> tuple[ColumnMapping, ...]:
    """Map each header column to a canonical field. Left-most column wins a field."""
    claimed: set[CanonicalField] = set()
    mappings: list[ColumnMapping] = []
    for idx, (cell, key) in enumerate(zip(header_cells, column_keys(header_cells))):
        canonical = aliases.match(cell)
        if canonical in claimed:
            canonical = None
        if canonical is not None:
            claimed.add(canonical)
        mappings.append(
            ColumnMapping(column_index=idx, header=_header_text(cell), key=key, field=canonical)
        )
    return tuple(mappings)


def source_row(row: Sequence[Any], row_number: int, columns: Sequence[ColumnMapping]) -> SourceRow:
    values: dict[str, Any] = {}
    for col in columns:
        value = row[col.column_index] if col.column_index < len(row) else None
        values[col.key] = "" if value is None else value
    return SourceRow(row_number=row_number, values=values)


def data_rows(
    rows: Sequence[Sequence[Any]],
    header_row_index: int,
    columns: Sequence[ColumnMapping],
) -> list[SourceRow]:
    """Rows below the header, numbered as sheet rows (1-based). Blank rows are skipped."""
    result: list[SourceRow] = []
    for idx in range(header_row_index + 1, len(rows)):
        row = tuple(rows[idx])
        if is_blank_row(row):
            continue
        result.append(source_row(row, idx + 1, columns))
    return result


def stringify(value: Any) -> str:
    """Cell value as trimmed text. Integral floats lose their ``.0``."""
    if is_blank_cell(value):
        return ""
    if isinstance(value, float) and value == int(value):
        return str(int(value))
    return str(value).strip()


def map_row(row: SourceRow, columns: Sequence[ColumnMapping]) -> MappedRow:
    """Copy mapped cells under their canonical field; blank values are left out."""
    fields: dict[str, str] = {}
    for col in columns:
        if col.field is None:
            continue
        text = stringify(row.values.get(col.key))
        if text:
            fields[col.field.value] = text
    return MappedRow(row_number=row.row_number, fields=fields, raw=dict(row.values))


def build_account(
    row: MappedRow,
    account_id: int,
    sequence: StageSequence,
    timestamp: datetime,
    defaults: FieldDefaults | None = None,
) -> GLAccount:
    """Canonical account for an accepted row, placed in the first stage."""
    defaults = defaults or FieldDefaults()
    f = row.fields
    status = f.get(CanonicalField.STATUS_CATEGORY.value)
    return GLAccount(
        id=account_id,
        account_number=f[CanonicalField.ACCOUNT_NUMBER.value],
        account_name=f[CanonicalField.ACCOUNT_NAME.value],
        department=f[CanonicalField.DEPARTMENT.value],
        bs_pl=f.get(CanonicalField.BS_PL.value, defaults.bs_pl),
        status_category=StatusCategory.coerce(status) if status else defaults.status_category,
        main_head=f.get(CanonicalField.MAIN_HEAD.value, defaults.main_head),
        sub_head=f.get(CanonicalField.SUB_HEAD.value, defaults.sub_head),
        spoc=f.get(CanonicalField.SPOC.value, defaults.spoc),
        reviewer=f.get(CanonicalField.REVIEWER.value, defaults.reviewer),
        review_status=ReviewStatus.PENDING,
        current_stage=sequence.first,
        mistake_count=0,
        audit_log=(ingestion_entry(sequence, timestamp),),
    )


def build_accounts(
    rows: Sequence[MappedRow],
    first_id: int,
    sequence: StageSequence,
    timestamp: datetime,
    defaults: FieldDefaults | None = None,
) -> list[GLAccount]:
    """Assign consecutive ids from ``first_id`` in input order."""
    return [
        build_account(row, first_id + offset, sequence, timestamp, defaults)
        for offset, row in enumerate(rows)
    ]
