"""Tests for the pure approve/reject transitions."""

import pytest

from review_kernel.domain import workflow_engine
from review_kernel.domain.account import ReviewStatus
from review_kernel.domain.workflow_engine import TransitionOutcome
from review_kernel.exceptions import RejectReasonRequiredError

from tests.helpers import ALICE, BOB, CHARLIE, DIANA


@pytest.fixture
def now(deterministic_clock):
    return deterministic_clock.tick()


class TestIngestionEntry:
    def test_first_entry_records_ingestion(self, make_account):
        entry = make_account().audit_log[0]
        assert entry.acting_user == "System"
        assert entry.acting_role == "Admin"
        assert entry.action == "Data Ingestion"
        assert entry.from_stage == "N/A"
        assert entry.to_stage == "Checker 1"


class TestApprove:
    def test_advances_one_stage(self, make_account, stage_sequence, now):
        result = workflow_engine.approve(make_account(), ALICE, stage_sequence, now)

        assert result.outcome == TransitionOutcome.APPLIED
        assert result.account.current_stage == "Checker 2"
        assert result.account.review_status == ReviewStatus.PENDING
        entry = result.account.audit_log[-1]
        assert entry.action == "Approve - Checker 1"
        assert entry.from_stage == "Checker 1"
        assert entry.to_stage == "Checker 2"
        assert entry.acting_user == "Alice"
        assert entry.timestamp == now

    def test_last_stage_finalizes(self, make_account, stage_sequence, now):
        account = make_account(current_stage="Final Checker")
        result = workflow_engine.approve(account, CHARLIE, stage_sequence, now)

        assert result.applied
        assert result.account.current_stage is None
        assert result.account.review_status == ReviewStatus.FINALIZED
        assert result.account.audit_log[-1].to_stage == "Finalized"

    def test_wrong_role_leaves_account_unchanged(self, make_account, stage_sequence, now):
        account = make_account()
        result = workflow_engine.approve(account, BOB, stage_sequence, now)

        assert result.outcome == TransitionOutcome.WRONG_ACTOR
        assert result.account is account
        assert len(result.account.audit_log) == 1

    def test_role_outside_sequence_is_wrong_actor(self, make_account, stage_sequence, now):
        result = workflow_engine.approve(make_account(), DIANA, stage_sequence, now)
        assert result.outcome == TransitionOutcome.WRONG_ACTOR

    def test_finalized_is_terminal(self, make_account, stage_sequence, now):
        account = make_account(current_stage=None, review_status=ReviewStatus.FINALIZED)
        for actor in (ALICE, BOB, CHARLIE):
            result = workflow_engine.approve(account, actor, stage_sequence, now)
            assert result.outcome == TransitionOutcome.ALREADY_FINALIZED
            assert result.account is account

    def test_mismatch_account_can_be_approved_again(self, make_account, stage_sequence, now):
        account = make_account(review_status=ReviewStatus.MISMATCH, mistake_count=1)
        result = workflow_engine.approve(account, ALICE, stage_sequence, now)
        assert result.account.review_status == ReviewStatus.PENDING
        assert result.account.mistake_count == 1


class TestReject:
    def test_resets_to_first_stage(self, make_account, stage_sequence, now):
        account = make_account(current_stage="Checker 2")
        result = workflow_engine.reject(account, BOB, "  balance mismatch ", stage_sequence, now)

        assert result.applied
        assert result.account.current_stage == "Checker 1"
        assert result.account.review_status == ReviewStatus.MISMATCH
        assert result.account.mistake_count == 1
        entry = result.account.audit_log[-1]
        assert entry.action == "Reject / Mismatch - Checker 2"
        assert entry.from_stage == "Checker 2"
        assert entry.to_stage == "Checker 1"
        assert entry.reason == "balance mismatch"

    def test_reject_from_first_stage_stays_there(self, make_account, stage_sequence, now):
        result = workflow_engine.reject(make_account(), ALICE, "wrong", stage_sequence, now)
        assert result.account.current_stage == "Checker 1"
        assert result.account.mistake_count == 1

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_blank_reason_refused(self, make_account, stage_sequence, now, reason):
        with pytest.raises(RejectReasonRequiredError):
            workflow_engine.reject(make_account(), ALICE, reason, stage_sequence, now)

    def test_wrong_role(self, make_account, stage_sequence, now):
        account = make_account()
        result = workflow_engine.reject(account, CHARLIE, "no", stage_sequence, now)
        assert result.outcome == TransitionOutcome.WRONG_ACTOR
        assert result.account is account

    def test_finalized_cannot_be_rejected(self, make_account, stage_sequence, now):
        account = make_account(current_stage=None, review_status=ReviewStatus.FINALIZED)
        result = workflow_engine.reject(account, CHARLIE, "late", stage_sequence, now)
        assert result.outcome == TransitionOutcome.ALREADY_FINALIZED


class TestScenario:
    def test_checker1_approve_then_checker2_reject(self, make_account, stage_sequence, deterministic_clock):
        account = make_account()

        approved = workflow_engine.approve(account, ALICE, stage_sequence, deterministic_clock.tick())
        assert approved.account.current_stage == "Checker 2"
        assert approved.account.review_status == ReviewStatus.PENDING

        rejected = workflow_engine.reject(
            approved.account, BOB, "mismatch", stage_sequence, deterministic_clock.tick()
        )
        assert rejected.account.current_stage == "Checker 1"
        assert rejected.account.review_status == ReviewStatus.MISMATCH
        assert rejected.account.mistake_count == 1
        assert [e.action for e in rejected.account.audit_log] == [
            "Data Ingestion",
            "Approve - Checker 1",
            "Reject / Mismatch - Checker 2",
        ]

    def test_never_produces_approved_or_rejected(self, make_account, stage_sequence, deterministic_clock):
        account = make_account()
        seen = {account.review_status}
        for actor in (ALICE, BOB):
            account = workflow_engine.approve(account, actor, stage_sequence, deterministic_clock.tick()).account
            seen.add(account.review_status)
        account = workflow_engine.reject(account, CHARLIE, "x", stage_sequence, deterministic_clock.tick()).account
        seen.add(account.review_status)
        assert ReviewStatus.APPROVED not in seen
        assert ReviewStatus.REJECTED not in seen
