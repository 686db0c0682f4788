"""
Validators for mapped ingestion rows.

Cross-record (batch duplicates) and record-level (required fields) checks
are pure.  System uniqueness takes the set of committed account numbers as
an argument; the import service reads it inside the store lock.

Every validator returns ``(errors, excluded_row_numbers)`` or a single
error; nothing raises, so one bad row never aborts the batch.

Architecture: review_ingestion/domain. ZERO I/O.
"""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Collection, Sequence

from review_ingestion.domain.types import (
    DUPLICATE_ACCOUNT_NUMBER,
    MISSING_REQUIRED_FIELD,
    AliasTable,
    CanonicalField,
    MappedRow,
    UploadError,
)


def missing_required(row: MappedRow, aliases: AliasTable) -> tuple[CanonicalField, ...]:
    return tuple(f for f in aliases.required if not row.fields.get(f.value))


def _row_data(row: MappedRow) -> str:
    return json.dumps(row.raw, default=str, ensure_ascii=False)


# -----------------------------------------------------------------------------
# Cross-record validators (batch context)
# -----------------------------------------------------------------------------


def duplicate_groups(rows: Sequence[MappedRow]) -> dict[str, tuple[int, ...]]:
    """Account number -> row numbers, for numbers that appear more than once."""
    seen: dict[str, list[int]] = defaultdict(list)
    for row in rows:
        if row.account_number:
            seen[row.account_number].append(row.row_number)
    return {number: tuple(nums) for number, nums in seen.items() if len(nums) > 1}


def validate_batch_duplicates(rows: Sequence[MappedRow]) -> tuple[list[UploadError], set[int]]:
    """One error per duplicated account number, reported on its first row.

    Every row of a duplicate group is excluded.
    """
    errors: list[UploadError] = []
    excluded: set[int] = set()
    for number, row_numbers in duplicate_groups(rows).items():
        errors.append(
            UploadError(
                row=row_numbers[0],
                code=DUPLICATE_ACCOUNT_NUMBER,
                message=(
                    f"Duplicate G/L Account Number '{number}' found on rows: "
                    f"{', '.join(str(n) for n in row_numbers)}. These rows were not imported."
                ),
                context_data=f"Account: {number}",
            )
        )
        excluded.update(row_numbers)
    return errors, excluded


# -----------------------------------------------------------------------------
# Record-level validators
# -----------------------------------------------------------------------------


def validate_required_fields(row: MappedRow, aliases: AliasTable) -> UploadError | None:
    missing = missing_required(row, aliases)
    if not missing:
        return None
    labels = ", ".join(aliases.label(f) for f in missing)
    return UploadError(
        row=row.row_number,
        code=MISSING_REQUIRED_FIELD,
        message=f"Missing values in required columns ({labels}).",
        context_data=_row_data(row),
    )


# -----------------------------------------------------------------------------
# System context (committed accounts)
# -----------------------------------------------------------------------------


def validate_system_uniqueness(
    rows: Sequence[MappedRow],
    existing_numbers: Collection[str],
) -> tuple[list[UploadError], set[int]]:
    """Flag rows whose account number is already stored."""
    errors: list[UploadError] = []
    excluded: set[int] = set()
    for row in rows:
        if row.account_number in existing_numbers:
            errors.append(
                UploadError(
                    row=row.row_number,
                    code=DUPLICATE_ACCOUNT_NUMBER,
                    message=(
                        f"G/L Account Number '{row.account_number}' already exists. "
                        "This row was not imported."
                    ),
                    context_data=f"Account: {row.account_number}",
                )
            )
            excluded.add(row.row_number)
    return errors, excluded
