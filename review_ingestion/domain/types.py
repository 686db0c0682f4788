"""
review_ingestion.domain.types -- Pure frozen dataclasses for spreadsheet ingestion.

ZERO I/O. Imports only from review_kernel/domain/ and review_kernel.exceptions.

Shapes:
    Workbook / Sheet        raw cells as read by an adapter, rows in sheet order
    AliasTable              canonical field -> accepted header spellings
    HeaderResolution        where the header row is and what it holds
    ColumnMapping           one header cell and the field it feeds (if any)
    SourceRow / MappedRow   a data row before and after mapping, with its sheet row number
    UploadError             row-level or file-level problem reported to the uploader
    IngestionPreview        parsed batch awaiting confirmation
    IngestionResult         outcome of a confirmed batch
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from review_kernel.domain.account import NOT_APPLICABLE, StatusCategory
from review_kernel.exceptions import IngestionError

# =============================================================================
# Raw workbook
# =============================================================================


@dataclass(frozen=True)
class Sheet:
    """One sheet: ``rows[i]`` is sheet row ``i + 1``."""

    name: str
    rows: tuple[tuple[Any, ...], ...]


@dataclass(frozen=True)
class Workbook:
    source_name: str
    sheets: tuple[Sheet, ...]

    @property
    def is_empty(self) -> bool:
        return all(is_blank_row(row) for sheet in self.sheets for row in sheet.rows)


def is_blank_cell(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_blank_row(row: tuple[Any, ...]) -> bool:
    return all(is_blank_cell(v) for v in row)


# =============================================================================
# Canonical schema and aliases
# =============================================================================


class CanonicalField(str, Enum):
    """Account fields a spreadsheet column can feed."""

    ACCOUNT_NUMBER = "accountNumber"
    ACCOUNT_NAME = "accountName"
    DEPARTMENT = "department"
    BS_PL = "bsPl"
    STATUS_CATEGORY = "statusCategory"
    MAIN_HEAD = "mainHead"
    SUB_HEAD = "subHead"
    SPOC = "spoc"
    REVIEWER = "reviewer"


REQUIRED_FIELDS: tuple[CanonicalField, ...] = (
    CanonicalField.ACCOUNT_NUMBER,
    CanonicalField.ACCOUNT_NAME,
    CanonicalField.DEPARTMENT,
)

DEFAULT_ALIASES: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.ACCOUNT_NUMBER: (
        "G/L Account Number",
        "GL Account Number",
        "GL Account No.",
        "G/L Acct No.",
    ),
    CanonicalField.ACCOUNT_NAME: ("G/L Acct", "GL Acct", "GL Account"),
    CanonicalField.DEPARTMENT: (
        "Responsible Department",
        "Department",
        "Dept",
        "Dept Responsible",
    ),
    CanonicalField.BS_PL: ("BS/PL",),
    CanonicalField.STATUS_CATEGORY: ("Status",),
    CanonicalField.MAIN_HEAD: ("Main Head",),
    CanonicalField.SUB_HEAD: ("Sub head", "Sub Head"),
    CanonicalField.SPOC: ("Departement SPOC", "SPOC"),
    CanonicalField.REVIEWER: ("Departement Reviewer", "Reviewer"),
}

# Column names spreadsheet tools generate for header cells that were blank.
_PLACEHOLDER_RE = re.compile(r"^(__EMPTY(_\d+)?|Unnamed: \d+|Column_\d+)$")


def normalize_header(value: Any) -> str:
    """Trim, collapse inner whitespace and case-fold a header cell for matching."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip().casefold()


def is_placeholder_header(value: Any) -> bool:
    if value is None:
        return False
    return bool(_PLACEHOLDER_RE.match(str(value).strip()))


@dataclass(frozen=True)
class AliasTable:
    """Canonical field -> accepted header spellings. Matching is case-insensitive."""

    aliases: Mapping[CanonicalField, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ALIASES)
    )
    required: tuple[CanonicalField, ...] = REQUIRED_FIELDS

    def __post_init__(self) -> None:
        lookup: dict[str, CanonicalField] = {}
        for canonical, spellings in self.aliases.items():
            for spelling in spellings:
                key = normalize_header(spelling)
                if key and key not in lookup:
                    lookup[key] = canonical
        object.__setattr__(self, "_lookup", lookup)

    def match(self, header: Any) -> CanonicalField | None:
        return self._lookup.get(normalize_header(header))  # type: ignore[attr-defined]

    def label(self, canonical: CanonicalField) -> str:
        """Display name of a field: its first alias."""
        spellings = self.aliases.get(canonical) or (canonical.value,)
        return spellings[0]


@dataclass(frozen=True)
class FieldDefaults:
    """Values for optional fields a row leaves blank."""

    bs_pl: str = "BS"
    status_category: StatusCategory = StatusCategory.ASSETS
    main_head: str = NOT_APPLICABLE
    sub_head: str = NOT_APPLICABLE
    spoc: str = "Unassigned"
    reviewer: str = "Unassigned"


@dataclass(frozen=True)
class HeaderScanSettings:
    """Header heuristic thresholds."""

    max_rows: int = 10
    min_match_ratio: float = 0.5
    preferred_sheet_keyword: str = "summary"


# =============================================================================
# Resolution and rows
# =============================================================================


@dataclass(frozen=True)
class HeaderResolution:
    """Chosen header row. ``header_row_index`` is 0-based within the sheet."""

    sheet_index: int
    sheet_name: str
    header_row_index: int
    header_cells: tuple[Any, ...]
    score: int
    valid_headers: int
    warnings: tuple[str, ...] = ()

    @property
    def header_row_number(self) -> int:
        return self.header_row_index + 1


@dataclass(frozen=True)
class ColumnMapping:
    """One header column. ``field`` is None for ignored columns."""

    column_index: int
    header: str
    key: str
    field: CanonicalField | None = None

    @property
    def is_mapped(self) -> bool:
        return self.field is not None


@dataclass(frozen=True)
class SourceRow:
    """Data row keyed by (deduplicated) header text."""

    row_number: int
    values: dict[str, Any]


@dataclass(frozen=True)
class MappedRow:
    """Data row keyed by canonical field value; blank cells are absent."""

    row_number: int
    fields: dict[str, str]
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def account_number(self) -> str:
        return self.fields.get(CanonicalField.ACCOUNT_NUMBER.value, "")


# =============================================================================
# Errors and outcomes
# =============================================================================

DUPLICATE_ACCOUNT_NUMBER = "DUPLICATE_ACCOUNT_NUMBER"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"


@dataclass(frozen=True)
class UploadError:
    """Problem reported against a spreadsheet row.

    Row 0 is a pre-processing failure (file never opened); row 1 is a
    file-level failure found while reading it.
    """

    row: int
    code: str
    message: str
    context_data: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "code": self.code, "message": self.message, "data": self.context_data}


def upload_error_from_exception(exc: IngestionError) -> UploadError:
    """File-level ingestion failure as the single error of a failed batch."""
    return UploadError(row=exc.row, code=exc.code, message=str(exc), context_data=exc.source_name)


class IngestionOutcome(str, Enum):
    COMPLETED = "completed"  # every data row accepted
    PARTIAL = "partial"  # some rows accepted, some reported
    FAILED = "failed"  # nothing accepted


@dataclass(frozen=True)
class IngestionPreview:
    """Parsed batch awaiting explicit confirmation. Nothing is stored yet."""

    batch_id: UUID
    source_name: str
    resolution: HeaderResolution
    columns: tuple[ColumnMapping, ...]
    candidates: tuple[MappedRow, ...]
    errors: tuple[UploadError, ...] = ()
    warnings: tuple[str, ...] = ()
    sample_rows: tuple[dict[str, Any], ...] = ()
    total_rows: int = 0

    @property
    def sheet_name(self) -> str:
        return self.resolution.sheet_name

    @property
    def header_row_number(self) -> int:
        return self.resolution.header_row_number

    @property
    def mapped_fields(self) -> dict[str, str | None]:
        """Header text -> canonical field name, None for ignored columns."""
        return {c.key: (c.field.value if c.field else None) for c in self.columns}


@dataclass(frozen=True)
class IngestionResult:
    batch_id: UUID | None
    source_name: str
    outcome: IngestionOutcome
    accepted_ids: tuple[int, ...] = ()
    errors: tuple[UploadError, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def accepted_count(self) -> int:
        return len(self.accepted_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "acceptedCount": self.accepted_count,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "outcome": self.outcome.value,
        }


def outcome_for(accepted: int, errors: int) -> IngestionOutcome:
    if accepted == 0 and errors:
        return IngestionOutcome.FAILED
    if errors:
        return IngestionOutcome.PARTIAL
    return IngestionOutcome.COMPLETED
