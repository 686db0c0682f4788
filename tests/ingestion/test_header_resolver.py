"""Header row detection over pure Workbook values."""

import pytest

from review_ingestion.domain.header_resolver import qualifies, resolve_header, score_row
from review_ingestion.domain.types import (
    AliasTable,
    CanonicalField,
    HeaderScanSettings,
    Sheet,
    Workbook,
    is_placeholder_header,
    normalize_header,
)
from review_kernel.exceptions import NoQualifyingHeaderFoundError

from tests.helpers import HEADER, account_row


def _workbook(*sheets):
    return Workbook(
        source_name="export.xlsx",
        sheets=tuple(Sheet(name=n, rows=tuple(tuple(r) for r in rows)) for n, rows in sheets),
    )


class TestNormalization:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  G/L   Account  Number ", "g/l account number"),
            ("DEPT", "dept"),
            (None, ""),
            (42, "42"),
        ],
    )
    def test_normalize_header(self, raw, expected):
        assert normalize_header(raw) == expected

    @pytest.mark.parametrize("cell", ["__EMPTY", "__EMPTY_3", "Unnamed: 4", "Column_7"])
    def test_placeholders_recognized(self, cell):
        assert is_placeholder_header(cell)

    @pytest.mark.parametrize("cell", ["Department", "Column 7", "", None, "EMPTY"])
    def test_non_placeholders(self, cell):
        assert not is_placeholder_header(cell)

    def test_alias_match_is_case_insensitive(self):
        aliases = AliasTable()
        assert aliases.match("gl account no.") == CanonicalField.ACCOUNT_NUMBER
        assert aliases.match("DEPT RESPONSIBLE") == CanonicalField.DEPARTMENT
        assert aliases.match("Balance") is None


class TestScoring:
    def test_full_header_scores_every_cell(self):
        candidate = score_row(tuple(HEADER), AliasTable())
        assert candidate.score == len(HEADER)
        assert candidate.valid_headers == len(HEADER)
        assert candidate.ratio == 1.0

    def test_blank_and_placeholder_cells_not_counted(self):
        row = ("G/L Account Number", "", "__EMPTY_1", "G/L Acct", "Dept", None)
        candidate = score_row(row, AliasTable())
        assert candidate.score == 3
        assert candidate.valid_headers == 3

    def test_ratio_must_exceed_minimum(self):
        aliases = AliasTable()
        settings = HeaderScanSettings()
        # 3 of 6 is exactly one half: not enough
        half = score_row(("G/L Account Number", "G/L Acct", "Dept", "A", "B", "C"), aliases)
        assert not qualifies(half, aliases, settings)
        above = score_row(("G/L Account Number", "G/L Acct", "Dept", "A", "B"), aliases)
        assert qualifies(above, aliases, settings)

    def test_missing_required_field_disqualifies(self):
        aliases = AliasTable()
        candidate = score_row(("G/L Account Number", "G/L Acct", "Status", "Main Head"), aliases)
        assert candidate.ratio == 1.0
        assert not qualifies(candidate, aliases, HeaderScanSettings())


class TestResolveHeader:
    def test_header_below_title_and_blank_rows(self):
        wb = _workbook(
            (
                "Sheet1",
                [
                    ["GL Review FY2024"],
                    [],
                    ["", ""],
                    HEADER,
                    account_row("1000-10"),
                ],
            )
        )
        resolution = resolve_header(wb)
        assert resolution.sheet_name == "Sheet1"
        assert resolution.header_row_index == 3
        assert resolution.header_row_number == 4
        assert resolution.score == len(HEADER)
        assert resolution.warnings == ()

    def test_header_outside_scan_window_not_found(self):
        rows = [["note"]] * 10 + [HEADER, account_row("1000-10")]
        with pytest.raises(NoQualifyingHeaderFoundError) as exc_info:
            resolve_header(_workbook(("Sheet1", rows)))
        err = exc_info.value
        assert err.code == "NO_QUALIFYING_HEADER_FOUND"
        assert err.rows_scanned == 10
        assert err.required_fields == ("G/L Account Number", "G/L Acct", "Responsible Department")
        assert err.row == 1

    def test_scan_window_is_configurable(self):
        rows = [["note"]] * 10 + [HEADER, account_row("1000-10")]
        resolution = resolve_header(_workbook(("Sheet1", rows)), settings=HeaderScanSettings(max_rows=12))
        assert resolution.header_row_number == 11

    def test_highest_score_wins_across_sheets(self):
        wb = _workbook(
            ("Summary", [["G/L Account Number", "G/L Acct", "Department"]]),
            ("Detail", [HEADER]),
        )
        resolution = resolve_header(wb)
        assert resolution.sheet_name == "Detail"

    def test_summary_sheet_wins_a_tie(self):
        wb = _workbook(("Detail", [HEADER]), ("GL Summary", [HEADER]))
        resolution = resolve_header(wb)
        assert resolution.sheet_name == "GL Summary"
        assert resolution.sheet_index == 1

    def test_first_candidate_kept_on_plain_tie(self):
        wb = _workbook(("First", [HEADER]), ("Second", [HEADER]))
        assert resolve_header(wb).sheet_name == "First"

    def test_multi_sheet_warning(self):
        wb = _workbook(("Notes", [["hello"]]), ("Data", [["title"], HEADER]))
        resolution = resolve_header(wb)
        assert resolution.warnings == (
            "Workbook has 2 sheets; data was read from sheet 'Data' (header on row 2).",
        )

    def test_custom_alias_table(self):
        aliases = AliasTable(
            aliases={
                CanonicalField.ACCOUNT_NUMBER: ("Konto",),
                CanonicalField.ACCOUNT_NAME: ("Bezeichnung",),
                CanonicalField.DEPARTMENT: ("Abteilung",),
            }
        )
        wb = _workbook(("Sheet1", [["Konto", "Bezeichnung", "Abteilung"]]))
        resolution = resolve_header(wb, aliases)
        assert resolution.score == 3
