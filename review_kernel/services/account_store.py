"""
review_kernel.services.account_store -- The account collection and its lock.

Responsibility:
    Owns the single mutual-exclusion boundary around the account collection.
    Every read-modify-write (ingestion commit, approve, reject) runs inside
    ``mutation()``, which holds a re-entrant lock for the whole transaction,
    so two batches, or a batch and a transition, never interleave.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Failure modes:
    - AccountNotFoundError for an unknown account id.
    - ImmutabilityViolationError (from db listeners) on audit tampering.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from review_kernel.db.engine import get_session_factory, session_scope
from review_kernel.domain.account import AuditEntry, GLAccount
from review_kernel.exceptions import AccountNotFoundError
from review_kernel.logging_config import get_logger
from review_kernel.models.account import GLAccountModel

logger = get_logger("services.account_store")


class AccountRepository:
    """Session-bound reads and writes of GL accounts. Used inside one transaction."""

    def __init__(self, session: Session):
        self._session = session

    def _model(self, account_id: int) -> GLAccountModel:
        model = self._session.get(
            GLAccountModel,
            account_id,
            options=[selectinload(GLAccountModel.entries)],
        )
        if model is None:
            raise AccountNotFoundError(account_id)
        return model

    def get(self, account_id: int) -> GLAccount:
        return self._model(account_id).to_dto()

    def list_all(self) -> tuple[GLAccount, ...]:
        stmt = (
            select(GLAccountModel)
            .options(selectinload(GLAccountModel.entries))
            .order_by(GLAccountModel.id)
        )
        return tuple(m.to_dto() for m in self._session.scalars(stmt))

    def max_id(self) -> int:
        return self._session.execute(select(func.max(GLAccountModel.id))).scalar() or 0

    def count(self) -> int:
        return self._session.execute(select(func.count(GLAccountModel.id))).scalar() or 0

    def existing_account_numbers(self) -> set[str]:
        rows = self._session.execute(select(GLAccountModel.account_number)).fetchall()
        return {r[0] for r in rows}

    def add_all(self, accounts: Iterable[GLAccount]) -> int:
        count = 0
        for account in accounts:
            self._session.add(GLAccountModel.from_dto(account))
            count += 1
        self._session.flush()
        return count

    def save(self, account: GLAccount) -> None:
        """Persist the review state of an already stored account."""
        self._model(account.id).apply_state(account)
        self._session.flush()


class AccountStore:
    """Thread-safe owner of the account collection."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._factory = session_factory or get_session_factory()
        self._lock = threading.RLock()

    @contextmanager
    def mutation(self) -> Iterator[AccountRepository]:
        """Hold the collection lock for one committed read-modify-write."""
        with self._lock:
            with session_scope(self._factory) as session:
                yield AccountRepository(session)

    def snapshot(self) -> tuple[GLAccount, ...]:
        """Consistent copy of every account, ordered by id."""
        with self.mutation() as repo:
            return repo.list_all()

    def get(self, account_id: int) -> GLAccount:
        with self.mutation() as repo:
            return repo.get(account_id)

    def history(self, account_id: int) -> tuple[AuditEntry, ...]:
        return self.get(account_id).audit_log

    def __len__(self) -> int:
        with self.mutation() as repo:
            return repo.count()
