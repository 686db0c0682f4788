"""
Header resolver: find the real header row in a loosely structured workbook.

Exports are rarely clean: title rows, blank rows and notes sit above the
header, and a workbook may carry several sheets.  For each sheet the first
``max_rows`` rows are candidates.  Per candidate:

    score          cells whose normalized text matches an alias
    valid_headers  cells that are neither blank nor generated placeholders

A candidate qualifies when every required field is matched and
``score / valid_headers > min_match_ratio``.  The highest score wins; on a
tie a sheet whose name contains the preferred keyword beats one that does
not, and otherwise the first candidate seen is kept.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from review_ingestion.domain.types import (
    AliasTable,
    CanonicalField,
    HeaderResolution,
    HeaderScanSettings,
    Workbook,
    is_blank_cell,
    is_placeholder_header,
)
from review_kernel.exceptions import NoQualifyingHeaderFoundError


@dataclass(frozen=True)
class CandidateScore:
    score: int
    valid_headers: int
    matched: frozenset[CanonicalField]

    @property
    def ratio(self) -> float:
        return self.score / self.valid_headers if self.valid_headers else 0.0


def score_row(row: tuple[Any, ...], aliases: AliasTable) -> CandidateScore:
    """Score one candidate row against the alias table."""
    score = 0
    valid = 0
    matched: set[CanonicalField] = set()
    for cell in row:
        if is_blank_cell(cell) or is_placeholder_header(cell):
            continue
        valid += 1
        canonical = aliases.match(cell)
        if canonical is not None:
            score += 1
            matched.add(canonical)
    return CandidateScore(score=score, valid_headers=valid, matched=frozenset(matched))


def qualifies(candidate: CandidateScore, aliases: AliasTable, settings: HeaderScanSettings) -> bool:
    if not set(aliases.required) <= candidate.matched:
        return False
    return candidate.ratio > settings.min_match_ratio


def resolve_header(
    workbook: Workbook,
    aliases: AliasTable | None = None,
    settings: HeaderScanSettings | None = None,
) -> HeaderResolution:
    """Pick the sheet and header row that best match the alias table.

    Raises:
        NoQualifyingHeaderFoundError: no candidate row in any sheet qualifies.
    """
    aliases = aliases or AliasTable()
    settings = settings or HeaderScanSettings()
    keyword = settings.preferred_sheet_keyword.casefold()

    best: tuple[int, int, CandidateScore] | None = None
    for sheet_idx, sheet in enumerate(workbook.sheets):
        preferred = bool(keyword) and keyword in sheet.name.casefold()
        for row_idx, row in enumerate(sheet.rows[: settings.max_rows]):
            candidate = score_row(row, aliases)
            if not qualifies(candidate, aliases, settings):
                continue
            if best is None or candidate.score > best[2].score:
                best = (sheet_idx, row_idx, candidate)
                continue
            if candidate.score == best[2].score and preferred:
                best_name = workbook.sheets[best[0]].name.casefold()
                if keyword not in best_name:
                    best = (sheet_idx, row_idx, candidate)

    if best is None:
        raise NoQualifyingHeaderFoundError(
            workbook.source_name,
            tuple(aliases.label(f) for f in aliases.required),
            settings.max_rows,
        )

    sheet_idx, row_idx, candidate = best
    sheet = workbook.sheets[sheet_idx]
    warnings: tuple[str, ...] = ()
    if len(workbook.sheets) > 1:
        warnings = (
            f"Workbook has {len(workbook.sheets)} sheets; data was read from sheet "
            f"'{sheet.name}' (header on row {row_idx + 1}).",
        )
    return HeaderResolution(
        sheet_index=sheet_idx,
        sheet_name=sheet.name,
        header_row_index=row_idx,
        header_cells=tuple(sheet.rows[row_idx]),
        score=candidate.score,
        valid_headers=candidate.valid_headers,
        warnings=warnings,
    )
