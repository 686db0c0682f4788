"""
WorkflowService -- approve / reject transitions against the account store.

Responsibility:
    Runs the pure transitions of ``domain.workflow_engine`` inside the
    store's mutation boundary, persists the new snapshot and logs one
    ``workflow_transition`` line per applied transition.

Architecture position:
    Kernel > Services.  Imperative shell around the pure workflow engine.

Rejection flow:
    request_reject(account_id)     -> RejectPrompt (nothing changes yet)
    submit_reject(prompt, actor, reason)
                                   -> TransitionResult; consumes the prompt
                                      unless the actor holds the wrong role
    cancel_reject(prompt)          -> discards the prompt; no state change

    A prompt records the stage the account was in when it was issued.  If
    the account has moved on by the time the reason is submitted, the
    submission is refused as STALE_REQUEST and nothing changes.

    At most ``max_open_prompts`` prompts stay open; opening one more expires
    the oldest.

Failure modes:
    - AccountNotFoundError: unknown account id.
    - RejectRequestNotFoundError: prompt unknown, cancelled or already used.
    - RejectReasonRequiredError: blank reason on submit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from review_kernel.domain import workflow_engine
from review_kernel.domain.account import AuditEntry
from review_kernel.domain.clock import Clock, SystemClock
from review_kernel.domain.stages import Actor, StageSequence
from review_kernel.domain.workflow_engine import TransitionOutcome, TransitionResult
from review_kernel.exceptions import RejectReasonRequiredError, RejectRequestNotFoundError
from review_kernel.logging_config import LogContext, get_logger
from review_kernel.services.account_store import AccountStore

logger = get_logger("services.workflow")


@dataclass(frozen=True)
class RejectPrompt:
    """Outstanding request for a rejection reason."""

    token: UUID
    account_id: int
    stage: str | None
    requested_at: datetime


class WorkflowService:
    """Approve and reject accounts one stage at a time."""

    def __init__(
        self,
        store: AccountStore,
        sequence: StageSequence,
        clock: Clock | None = None,
        max_open_prompts: int = 256,
    ):
        self._store = store
        self._sequence = sequence
        self._clock = clock or SystemClock()
        self._max_open_prompts = max_open_prompts
        self._prompts: dict[UUID, RejectPrompt] = {}

    @property
    def sequence(self) -> StageSequence:
        return self._sequence

    def approve(self, account_id: int, actor: Actor) -> TransitionResult:
        with LogContext.bind(actor=actor.name, account_id=str(account_id)):
            with self._store.mutation() as repo:
                account = repo.get(account_id)
                result = workflow_engine.approve(account, actor, self._sequence, self._clock.now())
                if result.applied:
                    repo.save(result.account)
            self._log(result, "approve", actor)
            return result

    def request_reject(self, account_id: int) -> RejectPrompt:
        """Open a reject prompt for the account's current stage.

        The account must exist; its stage is captured so a later
        submission can detect that someone else moved it in between.
        """
        with self._store.mutation() as repo:
            account = repo.get(account_id)
            prompt = RejectPrompt(
                token=uuid4(),
                account_id=account_id,
                stage=account.current_stage,
                requested_at=self._clock.now(),
            )
            self._prompts[prompt.token] = prompt
            while len(self._prompts) > self._max_open_prompts:
                expired = self._prompts.pop(next(iter(self._prompts)))
                logger.info(
                    "reject_prompt_expired",
                    extra={"account_id": expired.account_id, "token": expired.token},
                )
        logger.debug(
            "reject_prompt_opened",
            extra={"account_id": account_id, "stage": prompt.stage, "token": prompt.token},
        )
        return prompt

    def submit_reject(
        self,
        prompt: RejectPrompt | UUID,
        actor: Actor,
        reason: str,
    ) -> TransitionResult:
        token = prompt.token if isinstance(prompt, RejectPrompt) else prompt
        with LogContext.bind(actor=actor.name):
            with self._store.mutation() as repo:
                pending = self._prompts.get(token)
                if pending is None:
                    raise RejectRequestNotFoundError(str(token))
                if reason is None or not str(reason).strip():
                    # Prompt stays open so the reviewer can supply a reason.
                    raise RejectReasonRequiredError(pending.account_id)
                account = repo.get(pending.account_id)
                if account.current_stage != pending.stage:
                    result = TransitionResult(
                        outcome=TransitionOutcome.STALE_REQUEST,
                        account=account,
                        from_stage=account.current_stage,
                        reason=(
                            f"account moved from {pending.stage!r} to "
                            f"{account.current_stage!r} after the reject was requested"
                        ),
                    )
                else:
                    result = workflow_engine.reject(
                        account, actor, reason, self._sequence, self._clock.now()
                    )
                    if result.applied:
                        repo.save(result.account)
                if result.outcome != TransitionOutcome.WRONG_ACTOR:
                    del self._prompts[token]
            with LogContext.bind(account_id=str(pending.account_id)):
                self._log(result, "reject", actor)
            return result

    def cancel_reject(self, prompt: RejectPrompt | UUID) -> None:
        """Discard a reject prompt. Unknown or already used prompts raise."""
        token = prompt.token if isinstance(prompt, RejectPrompt) else prompt
        with self._store.mutation():
            if self._prompts.pop(token, None) is None:
                raise RejectRequestNotFoundError(str(token))
        logger.debug("reject_prompt_cancelled", extra={"token": token})

    def pending_rejects(self) -> tuple[RejectPrompt, ...]:
        with self._store.mutation():
            return tuple(self._prompts.values())

    def view_history(self, account_id: int) -> tuple[AuditEntry, ...]:
        """Audit log in insertion order, ingestion entry first."""
        return self._store.history(account_id)

    def _log(self, result: TransitionResult, action: str, actor: Actor) -> None:
        if result.applied:
            logger.info(
                "workflow_transition",
                extra={
                    "action": action,
                    "role": actor.role,
                    "from_stage": result.from_stage,
                    "to_stage": result.to_stage,
                    "review_status": result.account.review_status,
                    "mistake_count": result.account.mistake_count,
                },
            )
        else:
            logger.warning(
                "workflow_transition_refused",
                extra={
                    "action": action,
                    "role": actor.role,
                    "outcome": result.outcome,
                    "detail": result.reason,
                },
            )
