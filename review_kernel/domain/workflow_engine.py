"""
Review workflow engine (``review_kernel.domain.workflow_engine``).

Responsibility
--------------
Pure transition functions over ``GLAccount`` snapshots.  Given an account,
an acting user and the injected ``StageSequence``, each function returns a
``TransitionResult`` holding the (possibly unchanged) account.  ZERO I/O;
persistence and locking live in ``review_kernel.services.workflow_service``.

Transitions
-----------
approve:  current_stage -> next entry.  Next == sentinel: FINALIZED and
          current_stage None; otherwise PENDING.
reject:   current_stage -> first stage, MISMATCH, mistake_count + 1.
          A non-blank reason is mandatory.

Both are permitted only when ``actor.role == account.current_stage``; a
mismatch is a no-op reported as ``WRONG_ACTOR``.  A finalized account accepts
no transition (``ALREADY_FINALIZED``).  APPROVED / REJECTED statuses are never
produced here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from review_kernel.domain.account import (
    FINALIZED_LABEL,
    NOT_APPLICABLE,
    AuditEntry,
    GLAccount,
    ReviewStatus,
)
from review_kernel.domain.stages import SYSTEM_ACTOR, Actor, StageSequence
from review_kernel.exceptions import RejectReasonRequiredError

INGESTION_ACTION = "Data Ingestion"


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    WRONG_ACTOR = "wrong_actor"
    ALREADY_FINALIZED = "already_finalized"
    STALE_REQUEST = "stale_request"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one approve/reject attempt.

    ``account`` is the new snapshot when APPLIED and the untouched input
    otherwise, so callers can always render it.
    """

    outcome: TransitionOutcome
    account: GLAccount
    from_stage: str | None = None
    to_stage: str | None = None
    reason: str = ""

    @property
    def applied(self) -> bool:
        return self.outcome == TransitionOutcome.APPLIED


def ingestion_entry(sequence: StageSequence, timestamp: datetime) -> AuditEntry:
    """First audit entry of every account: the system ingested it into stage one."""
    return AuditEntry(
        timestamp=timestamp,
        acting_user=SYSTEM_ACTOR.name,
        acting_role=SYSTEM_ACTOR.role,
        action=INGESTION_ACTION,
        from_stage=NOT_APPLICABLE,
        to_stage=sequence.first,
    )


def _refusal(account: GLAccount, actor: Actor) -> TransitionResult | None:
    if account.is_finalized:
        return TransitionResult(
            outcome=TransitionOutcome.ALREADY_FINALIZED,
            account=account,
            reason="account is finalized",
        )
    if actor.role != account.current_stage:
        return TransitionResult(
            outcome=TransitionOutcome.WRONG_ACTOR,
            account=account,
            from_stage=account.current_stage,
            reason=f"role {actor.role!r} cannot act on stage {account.current_stage!r}",
        )
    return None


def approve(
    account: GLAccount,
    actor: Actor,
    sequence: StageSequence,
    timestamp: datetime,
) -> TransitionResult:
    """Advance the account one stage."""
    refused = _refusal(account, actor)
    if refused is not None:
        return refused

    old_stage = account.current_stage
    next_stage = sequence.next_after(old_stage)
    finalized = next_stage is None
    entry = AuditEntry(
        timestamp=timestamp,
        acting_user=actor.name,
        acting_role=actor.role,
        action=f"Approve - {old_stage}",
        from_stage=old_stage,
        to_stage=FINALIZED_LABEL if finalized else next_stage,
    )
    updated = account.with_transition(
        current_stage=next_stage,
        review_status=ReviewStatus.FINALIZED if finalized else ReviewStatus.PENDING,
        entry=entry,
    )
    return TransitionResult(
        outcome=TransitionOutcome.APPLIED,
        account=updated,
        from_stage=old_stage,
        to_stage=entry.to_stage,
    )


def reject(
    account: GLAccount,
    actor: Actor,
    reason: str,
    sequence: StageSequence,
    timestamp: datetime,
) -> TransitionResult:
    """Send the account back to the first stage as a mismatch."""
    if reason is None or not str(reason).strip():
        raise RejectReasonRequiredError(account.id)
    refused = _refusal(account, actor)
    if refused is not None:
        return refused

    old_stage = account.current_stage
    reason = str(reason).strip()
    entry = AuditEntry(
        timestamp=timestamp,
        acting_user=actor.name,
        acting_role=actor.role,
        action=f"Reject / Mismatch - {old_stage}",
        from_stage=old_stage,
        to_stage=sequence.first,
        reason=reason,
    )
    updated = account.with_transition(
        current_stage=sequence.first,
        review_status=ReviewStatus.MISMATCH,
        entry=entry,
        mistake_count=account.mistake_count + 1,
    )
    return TransitionResult(
        outcome=TransitionOutcome.APPLIED,
        account=updated,
        from_stage=old_stage,
        to_stage=sequence.first,
        reason=reason,
    )
