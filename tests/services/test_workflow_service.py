"""WorkflowService: persisted transitions, reject prompts and audit history."""

from uuid import uuid4

import pytest

from review_kernel.domain.account import ReviewStatus
from review_kernel.domain.workflow_engine import TransitionOutcome
from review_kernel.exceptions import (
    AccountNotFoundError,
    RejectReasonRequiredError,
    RejectRequestNotFoundError,
)
from review_kernel.services.workflow_service import WorkflowService

from tests.helpers import ALICE, BOB, CHARLIE


@pytest.fixture
def account(seed_accounts, make_account):
    acc = make_account(1)
    seed_accounts(acc)
    return acc


class TestApprove:
    def test_full_chain_is_persisted(self, workflow, store, account):
        for actor in (ALICE, BOB, CHARLIE):
            assert workflow.approve(1, actor).applied

        stored = store.get(1)
        assert stored.review_status == ReviewStatus.FINALIZED
        assert stored.current_stage is None
        assert [e.action for e in stored.audit_log] == [
            "Data Ingestion",
            "Approve - Checker 1",
            "Approve - Checker 2",
            "Approve - Final Checker",
        ]

    def test_wrong_actor_changes_nothing(self, workflow, store, account):
        result = workflow.approve(1, BOB)
        assert result.outcome == TransitionOutcome.WRONG_ACTOR
        assert store.get(1) == account

    def test_finalized_refuses(self, workflow, account):
        for actor in (ALICE, BOB, CHARLIE):
            workflow.approve(1, actor)
        assert workflow.approve(1, CHARLIE).outcome == TransitionOutcome.ALREADY_FINALIZED

    def test_unknown_account(self, workflow, engine):
        with pytest.raises(AccountNotFoundError):
            workflow.approve(99, ALICE)

    def test_timestamps_come_from_clock(self, workflow, store, account, deterministic_clock):
        deterministic_clock.advance(60)
        workflow.approve(1, ALICE)
        assert store.get(1).audit_log[-1].timestamp == deterministic_clock.now()

    def test_logs_transition(self, workflow, account, captured_logs):
        workflow.approve(1, ALICE)
        record = next(r for r in captured_logs() if r["message"] == "workflow_transition")
        assert record["actor"] == "Alice"
        assert record["account_id"] == "1"
        assert record["from_stage"] == "Checker 1"
        assert record["to_stage"] == "Checker 2"

    def test_logs_refusal(self, workflow, account, captured_logs):
        workflow.approve(1, CHARLIE)
        record = next(r for r in captured_logs() if r["message"] == "workflow_transition_refused")
        assert record["level"] == "WARNING"
        assert record["outcome"] == "wrong_actor"


class TestRejectPrompt:
    def test_request_then_submit(self, workflow, store, account):
        workflow.approve(1, ALICE)
        prompt = workflow.request_reject(1)
        assert prompt.stage == "Checker 2"
        assert workflow.pending_rejects() == (prompt,)

        result = workflow.submit_reject(prompt, BOB, "Balance does not tie out")

        assert result.applied
        stored = store.get(1)
        assert stored.current_stage == "Checker 1"
        assert stored.review_status == ReviewStatus.MISMATCH
        assert stored.mistake_count == 1
        assert stored.audit_log[-1].reason == "Balance does not tie out"
        assert workflow.pending_rejects() == ()

    def test_request_changes_nothing(self, workflow, store, account):
        workflow.request_reject(1)
        assert store.get(1) == account

    def test_blank_reason_keeps_prompt_open(self, workflow, store, account):
        prompt = workflow.request_reject(1)
        with pytest.raises(RejectReasonRequiredError):
            workflow.submit_reject(prompt, ALICE, "   ")
        assert workflow.pending_rejects() == (prompt,)
        assert store.get(1).mistake_count == 0

        assert workflow.submit_reject(prompt.token, ALICE, "typo in name").applied

    def test_cancel(self, workflow, store, account):
        prompt = workflow.request_reject(1)
        workflow.cancel_reject(prompt)
        assert workflow.pending_rejects() == ()
        assert store.get(1) == account
        with pytest.raises(RejectRequestNotFoundError):
            workflow.submit_reject(prompt, ALICE, "late")

    def test_prompt_is_single_use(self, workflow, account):
        prompt = workflow.request_reject(1)
        workflow.submit_reject(prompt, ALICE, "first")
        with pytest.raises(RejectRequestNotFoundError):
            workflow.submit_reject(prompt, ALICE, "second")

    def test_unknown_token(self, workflow, account):
        with pytest.raises(RejectRequestNotFoundError):
            workflow.cancel_reject(uuid4())
        with pytest.raises(RejectRequestNotFoundError):
            workflow.submit_reject(uuid4(), ALICE, "reason")

    def test_stale_prompt_is_refused(self, workflow, store, account):
        prompt = workflow.request_reject(1)
        workflow.approve(1, ALICE)

        result = workflow.submit_reject(prompt, ALICE, "too late")

        assert result.outcome == TransitionOutcome.STALE_REQUEST
        stored = store.get(1)
        assert stored.current_stage == "Checker 2"
        assert stored.mistake_count == 0
        assert workflow.pending_rejects() == ()

    def test_wrong_actor_keeps_prompt_open(self, workflow, store, account):
        prompt = workflow.request_reject(1)
        result = workflow.submit_reject(prompt, BOB, "not mine")

        assert result.outcome == TransitionOutcome.WRONG_ACTOR
        assert store.get(1) == account
        assert workflow.pending_rejects() == (prompt,)

        retry = workflow.submit_reject(prompt, ALICE, "real mismatch")
        assert retry.applied
        assert store.get(1).mistake_count == 1
        assert workflow.pending_rejects() == ()

    def test_oldest_prompt_expires_past_limit(self, store, stage_sequence, deterministic_clock, account):
        workflow = WorkflowService(store, stage_sequence, clock=deterministic_clock, max_open_prompts=2)
        first, second, third = (workflow.request_reject(1) for _ in range(3))

        assert workflow.pending_rejects() == (second, third)
        with pytest.raises(RejectRequestNotFoundError):
            workflow.submit_reject(first, ALICE, "expired")
        assert workflow.submit_reject(third, ALICE, "still open").applied

    def test_request_for_unknown_account(self, workflow, engine):
        with pytest.raises(AccountNotFoundError):
            workflow.request_reject(5)


class TestHistory:
    def test_history_in_insertion_order(self, workflow, account):
        workflow.approve(1, ALICE)
        workflow.submit_reject(workflow.request_reject(1), BOB, "wrong head")
        workflow.approve(1, ALICE)

        history = workflow.view_history(1)
        assert [e.action for e in history] == [
            "Data Ingestion",
            "Approve - Checker 1",
            "Reject / Mismatch - Checker 2",
            "Approve - Checker 1",
        ]
        assert [e.timestamp for e in history] == sorted(e.timestamp for e in history)

    def test_mistake_count_accumulates(self, workflow, store, account):
        for _ in range(3):
            workflow.submit_reject(workflow.request_reject(1), ALICE, "again")
        stored = store.get(1)
        assert stored.mistake_count == 3
        assert stored.review_status == ReviewStatus.MISMATCH
        assert len(stored.audit_log) == 4
