"""AccountStore persistence and append-only enforcement."""

import pytest
from sqlalchemy import select

from review_kernel.db.engine import session_scope
from review_kernel.domain.account import ReviewStatus
from review_kernel.exceptions import AccountNotFoundError, ImmutabilityViolationError
from review_kernel.models.account import AuditEntryModel, GLAccountModel


class TestStore:
    def test_empty(self, store):
        assert len(store) == 0
        assert store.snapshot() == ()
        with store.mutation() as repo:
            assert repo.max_id() == 0
            assert repo.existing_account_numbers() == set()

    def test_round_trip(self, store, seed_accounts, make_account):
        account = make_account(3, number="4000-01", department="Treasury", spoc="Sam")
        seed_accounts(account)
        assert store.get(3) == account
        assert len(store) == 1

    def test_snapshot_is_ordered_by_id(self, store, seed_accounts, make_account):
        seed_accounts(make_account(9), make_account(2), make_account(5))
        assert [a.id for a in store.snapshot()] == [2, 5, 9]

    def test_max_id_and_numbers(self, store, seed_accounts, make_account):
        seed_accounts(make_account(4, number="A"), make_account(11, number="B"))
        with store.mutation() as repo:
            assert repo.max_id() == 11
            assert repo.existing_account_numbers() == {"A", "B"}

    def test_unknown_account(self, store):
        with pytest.raises(AccountNotFoundError) as exc_info:
            store.get(42)
        assert exc_info.value.account_id == 42

    def test_save_appends_new_entries(self, store, seed_accounts, make_account, deterministic_clock):
        account = make_account(1)
        seed_accounts(account)
        from review_kernel.domain.account import AuditEntry

        entry = AuditEntry(
            timestamp=deterministic_clock.tick(),
            acting_user="Alice",
            acting_role="Checker 1",
            action="Approve - Checker 1",
            from_stage="Checker 1",
            to_stage="Checker 2",
        )
        updated = account.with_transition(
            review_status=ReviewStatus.PENDING, current_stage="Checker 2", entry=entry
        )
        with store.mutation() as repo:
            repo.save(updated)
        assert store.history(1) == updated.audit_log

    def test_failed_mutation_rolls_back(self, store, seed_accounts, make_account):
        with pytest.raises(RuntimeError):
            with store.mutation() as repo:
                repo.add_all([make_account(1)])
                raise RuntimeError("boom")
        assert len(store) == 0


class TestAppendOnly:
    def test_audit_entry_update_blocked(self, store, seed_accounts, make_account):
        seed_accounts(make_account(1))
        with pytest.raises(ImmutabilityViolationError):
            with session_scope() as session:
                entry = session.scalars(select(AuditEntryModel)).first()
                entry.action = "Edited"
                session.flush()

    def test_audit_entry_delete_blocked(self, store, seed_accounts, make_account):
        seed_accounts(make_account(1))
        with pytest.raises(ImmutabilityViolationError):
            with session_scope() as session:
                session.delete(session.scalars(select(AuditEntryModel)).first())
                session.flush()

    def test_account_delete_blocked(self, store, seed_accounts, make_account):
        seed_accounts(make_account(1))
        with pytest.raises(ImmutabilityViolationError):
            with session_scope() as session:
                session.delete(session.get(GLAccountModel, 1))
                session.flush()

    def test_ingested_fields_are_fixed(self, store, seed_accounts, make_account):
        seed_accounts(make_account(1))
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with session_scope() as session:
                session.get(GLAccountModel, 1).account_name = "Renamed"
                session.flush()
        assert "account_name" in exc_info.value.reason
        assert store.get(1).account_name == "Account 1"
