"""
Import service: load -> resolve header -> map -> validate -> preview -> confirm.

Orchestrates workbook adapters, the header resolver, the mapping engine and
the domain validators.  Uses structured logging (LogContext,
get_logger("ingestion.*")).

Two steps:
    preview(path)      parse the file and report what would be imported.
                       Nothing is stored.  File-level problems raise
                       IngestionError subclasses.
    confirm(preview)   inside the store lock: drop rows whose account number
                       is already stored, assign ids from max(id) + 1 and add
                       the accounts.  Row-level problems never abort.

``start_preview`` runs the parse on a background worker and returns a
handle that can be cancelled; a cancelled or discarded preview cannot be
confirmed.  The service remembers the most recent ``max_discarded``
discards.  ``upload`` does both steps and folds file-level failures into a
FAILED result.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from review_kernel.domain.clock import Clock, SystemClock
from review_kernel.domain.stages import StageSequence
from review_kernel.exceptions import (
    EmptyOrUnreadableFileError,
    IngestionError,
    PreviewDiscardedError,
    UnsupportedFileTypeError,
)
from review_kernel.logging_config import LogContext, get_logger
from review_kernel.services.account_store import AccountStore

from review_ingestion.adapters.base import WorkbookAdapter
from review_ingestion.adapters.csv_adapter import CsvWorkbookAdapter
from review_ingestion.adapters.xlsx_adapter import XlsxWorkbookAdapter
from review_ingestion.domain.header_resolver import resolve_header
from review_ingestion.domain.types import (
    AliasTable,
    FieldDefaults,
    HeaderScanSettings,
    IngestionOutcome,
    IngestionPreview,
    IngestionResult,
    UploadError,
    Workbook,
    outcome_for,
    upload_error_from_exception,
)
from review_ingestion.domain.validators import (
    validate_batch_duplicates,
    validate_required_fields,
    validate_system_uniqueness,
)
from review_ingestion.mapping.engine import (
    build_accounts,
    build_column_mappings,
    data_rows,
    map_row,
)

logger = get_logger("ingestion.import_service")

ALLOWED_EXTENSIONS = (".xlsx", ".csv")


def _default_adapters() -> dict[str, WorkbookAdapter]:
    return {
        ".csv": CsvWorkbookAdapter(),
        ".xlsx": XlsxWorkbookAdapter(),
    }


def _by_row(errors: list[UploadError]) -> tuple[UploadError, ...]:
    return tuple(sorted(errors, key=lambda e: e.row))


class PreviewHandle:
    """A preview being parsed on the background worker."""

    def __init__(self, service: "ImportService", batch_id: UUID, source_name: str, future: Future):
        self._service = service
        self._future = future
        self.batch_id = batch_id
        self.source_name = source_name

    def cancel(self) -> None:
        """Discard the preview. Parsing stops if it has not started yet."""
        self._service.discard(self.batch_id)
        self._future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._service.is_discarded(self.batch_id)

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> IngestionPreview:
        """Wait for the preview. Raises PreviewDiscardedError once cancelled."""
        if self.cancelled:
            raise PreviewDiscardedError(self.source_name)
        try:
            preview = self._future.result(timeout=timeout)
        except CancelledError:
            raise PreviewDiscardedError(self.source_name) from None
        if self.cancelled:
            raise PreviewDiscardedError(self.source_name)
        return preview


class ImportService:
    """Spreadsheet ingestion into the account store."""

    def __init__(
        self,
        store: AccountStore,
        sequence: StageSequence,
        clock: Clock | None = None,
        adapters: dict[str, WorkbookAdapter] | None = None,
        aliases: AliasTable | None = None,
        scan_settings: HeaderScanSettings | None = None,
        defaults: FieldDefaults | None = None,
        sample_rows: int = 5,
        max_discarded: int = 1024,
    ):
        self._store = store
        self._sequence = sequence
        self._clock = clock or SystemClock()
        self._adapters = adapters if adapters is not None else _default_adapters()
        self._aliases = aliases or AliasTable()
        self._scan = scan_settings or HeaderScanSettings()
        self._defaults = defaults or FieldDefaults()
        self._sample_rows = sample_rows
        self._discarded: OrderedDict[UUID, None] = OrderedDict()
        self._max_discarded = max_discarded
        self._discard_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    @classmethod
    def from_config(cls, store: AccountStore, config: Any, clock: Clock | None = None) -> "ImportService":
        """Build from a ``review_config.ReviewConfiguration``."""
        from review_config.bridges import (
            build_alias_table,
            build_field_defaults,
            build_scan_settings,
            build_stage_sequence,
        )

        return cls(
            store,
            build_stage_sequence(config),
            clock=clock,
            aliases=build_alias_table(config),
            scan_settings=build_scan_settings(config),
            defaults=build_field_defaults(config),
            sample_rows=config.header_scan.sample_rows,
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def check_file_type(self, source_path: Path | str) -> str:
        """Return the lower-cased extension, or raise before the file is opened."""
        path = Path(source_path)
        ext = path.suffix.lower()
        if ext not in ALLOWED_EXTENSIONS or ext not in self._adapters:
            raise UnsupportedFileTypeError(path.name, ALLOWED_EXTENSIONS)
        return ext

    def load_workbook(self, source_path: Path | str, options: dict[str, Any] | None = None) -> Workbook:
        path = Path(source_path)
        ext = self.check_file_type(path)
        return self._adapters[ext].load(path, options or {})

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(
        self,
        source_path: Path | str,
        options: dict[str, Any] | None = None,
        batch_id: UUID | None = None,
    ) -> IngestionPreview:
        """Parse a file into a preview. Raises IngestionError on file-level failure."""
        batch_id = batch_id or uuid4()
        with LogContext.bind(batch_id=str(batch_id)):
            try:
                workbook = self.load_workbook(source_path, options)
                return self.preview_workbook(workbook, batch_id=batch_id)
            except IngestionError as exc:
                logger.warning(
                    "batch_preview_failed",
                    extra={"source_name": exc.source_name, "error_code": exc.code, "detail": str(exc)},
                )
                raise

    def preview_workbook(self, workbook: Workbook, batch_id: UUID | None = None) -> IngestionPreview:
        """Preview an already loaded workbook."""
        batch_id = batch_id or uuid4()
        if workbook.is_empty:
            raise EmptyOrUnreadableFileError(workbook.source_name)

        resolution = resolve_header(workbook, self._aliases, self._scan)
        logger.info(
            "header_resolved",
            extra={
                "sheet_name": resolution.sheet_name,
                "header_row": resolution.header_row_number,
                "score": resolution.score,
                "valid_headers": resolution.valid_headers,
            },
        )

        columns = build_column_mappings(resolution.header_cells, self._aliases)
        sheet = workbook.sheets[resolution.sheet_index]
        rows = data_rows(sheet.rows, resolution.header_row_index, columns)
        if not rows:
            raise EmptyOrUnreadableFileError(workbook.source_name, "No data rows below the header.")

        mapped = [map_row(r, columns) for r in rows]
        errors, excluded = validate_batch_duplicates(mapped)
        candidates = []
        for row in mapped:
            if row.row_number in excluded:
                continue
            missing = validate_required_fields(row, self._aliases)
            if missing is not None:
                errors.append(missing)
                continue
            candidates.append(row)

        for err in errors:
            logger.debug("row_rejected", extra={"row": err.row, "error_code": err.code})

        preview = IngestionPreview(
            batch_id=batch_id,
            source_name=workbook.source_name,
            resolution=resolution,
            columns=columns,
            candidates=tuple(candidates),
            errors=_by_row(errors),
            warnings=resolution.warnings,
            sample_rows=tuple(r.values for r in rows[: self._sample_rows]),
            total_rows=len(rows),
        )
        logger.info(
            "batch_previewed",
            extra={
                "source_name": workbook.source_name,
                "total_rows": preview.total_rows,
                "candidate_rows": len(preview.candidates),
                "error_count": len(preview.errors),
            },
        )
        return preview

    def start_preview(self, source_path: Path | str, options: dict[str, Any] | None = None) -> PreviewHandle:
        """Parse on the background worker. The extension is checked up front."""
        path = Path(source_path)
        self.check_file_type(path)
        batch_id = uuid4()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ingestion-preview")
        future = self._executor.submit(self.preview, path, options, batch_id)
        return PreviewHandle(self, batch_id, path.name, future)

    def discard(self, preview: IngestionPreview | UUID) -> None:
        """Forget a preview; it can no longer be confirmed."""
        batch_id = preview.batch_id if isinstance(preview, IngestionPreview) else preview
        with self._discard_lock:
            self._discarded[batch_id] = None
            self._discarded.move_to_end(batch_id)
            while len(self._discarded) > self._max_discarded:
                self._discarded.popitem(last=False)
        logger.info("batch_discarded", extra={"batch_id": batch_id})

    def is_discarded(self, batch_id: UUID) -> bool:
        with self._discard_lock:
            return batch_id in self._discarded

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def confirm(self, preview: IngestionPreview) -> IngestionResult:
        """Store the preview's accepted rows.

        Ids and account-number uniqueness are evaluated here, under the
        store lock, against what is committed at this moment.
        """
        if self.is_discarded(preview.batch_id):
            raise PreviewDiscardedError(preview.source_name)

        with LogContext.bind(batch_id=str(preview.batch_id)):
            with self._store.mutation() as repo:
                existing = repo.existing_account_numbers()
                system_errors, excluded = validate_system_uniqueness(preview.candidates, existing)
                accepted = [r for r in preview.candidates if r.row_number not in excluded]
                accounts = build_accounts(
                    accepted,
                    repo.max_id() + 1,
                    self._sequence,
                    self._clock.now(),
                    self._defaults,
                )
                repo.add_all(accounts)

            errors = _by_row(list(preview.errors) + system_errors)
            result = IngestionResult(
                batch_id=preview.batch_id,
                source_name=preview.source_name,
                outcome=outcome_for(len(accounts), len(errors)),
                accepted_ids=tuple(a.id for a in accounts),
                errors=errors,
                warnings=preview.warnings,
            )
            logger.info(
                "batch_committed",
                extra={
                    "source_name": preview.source_name,
                    "accepted_count": result.accepted_count,
                    "error_count": len(result.errors),
                    "outcome": result.outcome,
                },
            )
        return result

    def upload(self, source_path: Path | str, options: dict[str, Any] | None = None) -> IngestionResult:
        """Preview and confirm in one call; file-level failures become a FAILED result."""
        try:
            preview = self.preview(source_path, options)
        except IngestionError as exc:
            return IngestionResult(
                batch_id=None,
                source_name=exc.source_name,
                outcome=IngestionOutcome.FAILED,
                errors=(upload_error_from_exception(exc),),
            )
        return self.confirm(preview)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
