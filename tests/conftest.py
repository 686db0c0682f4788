"""
Pytest fixtures for the GL review test suite.

Provides:
- A fresh in-memory SQLite engine per test (tables + append-only listeners)
- Account store, workflow and import services wired to a deterministic clock
- Spreadsheet writers that build real .xlsx / .csv files in tmp_path
"""

import csv
import json
import logging
from io import StringIO
from pathlib import Path

import openpyxl
import pytest

from review_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from review_kernel.domain.clock import DeterministicClock
from review_kernel.domain.stages import Actor, StageSequence, UserDirectory
from review_kernel.domain.workflow_engine import ingestion_entry
from review_kernel.domain.account import GLAccount, ReviewStatus
from review_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from review_kernel.services.account_store import AccountStore
from review_kernel.services.workflow_service import WorkflowService
from review_ingestion.services.import_service import ImportService

from tests.helpers import ALICE, BOB, CHARLIE, DIANA, STAGES


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture review_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, workflow):
            workflow.approve(1, ALICE)
            logs = captured_logs()
            assert any(r["message"] == "workflow_transition" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("review_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database and services
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database for one test."""
    reset_engine()
    eng = init_engine_from_url()
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def stage_sequence() -> StageSequence:
    return StageSequence.from_entries(list(STAGES) + [None])


@pytest.fixture
def users() -> UserDirectory:
    return UserDirectory([ALICE, BOB, CHARLIE, DIANA, Actor("System", "Admin")])


@pytest.fixture
def store(engine) -> AccountStore:
    return AccountStore(get_session_factory())


@pytest.fixture
def workflow(store, stage_sequence, deterministic_clock) -> WorkflowService:
    return WorkflowService(store, stage_sequence, clock=deterministic_clock)


@pytest.fixture
def import_service(store, stage_sequence, deterministic_clock):
    service = ImportService(store, stage_sequence, clock=deterministic_clock)
    yield service
    service.close()


# =============================================================================
# Accounts and spreadsheets
# =============================================================================


@pytest.fixture
def make_account(stage_sequence, deterministic_clock):
    """Build a freshly ingested GLAccount (first stage, Pending)."""

    def _make(account_id: int = 1, number: str | None = None, department: str = "Finance", **overrides):
        fields = dict(
            id=account_id,
            account_number=number or f"1000-{account_id:02d}",
            account_name=f"Account {account_id}",
            department=department,
            review_status=ReviewStatus.PENDING,
            current_stage=stage_sequence.first,
            audit_log=(ingestion_entry(stage_sequence, deterministic_clock.now()),),
        )
        fields.update(overrides)
        return GLAccount(**fields)

    return _make


@pytest.fixture
def seed_accounts(store):
    """Insert accounts directly into the store."""

    def _seed(*accounts: GLAccount) -> None:
        with store.mutation() as repo:
            repo.add_all(accounts)

    return _seed


@pytest.fixture
def write_xlsx(tmp_path):
    """Write a workbook: ``write_xlsx("name.xlsx", {"Sheet": [[...], ...]})``."""

    def _write(name: str, sheets: dict[str, list[list]]) -> Path:
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title=title)
            for r_idx, row in enumerate(rows, start=1):
                for c_idx, value in enumerate(row, start=1):
                    if value is not None:
                        ws.cell(row=r_idx, column=c_idx, value=value)
        path = tmp_path / name
        wb.save(path)
        return path

    return _write


@pytest.fixture
def write_csv(tmp_path):
    """Write a CSV file from a list of rows."""

    def _write(name: str, rows: list[list], encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        with path.open("w", encoding=encoding, newline="") as f:
            writer = csv.writer(f)
            for row in rows:
                writer.writerow(["" if v is None else v for v in row])
        return path

    return _write
