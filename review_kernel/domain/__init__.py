"""
review_kernel.domain -- Pure value objects and transition functions.

ZERO I/O. No imports from ``db/``, ``models/`` or ``services/``.
"""

from review_kernel.domain.account import (
    FINALIZED_LABEL,
    AuditEntry,
    GLAccount,
    ReviewStatus,
    StatusCategory,
)
from review_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from review_kernel.domain.stages import FINALIZED, SYSTEM_ACTOR, Actor, StageSequence, UserDirectory
from review_kernel.domain.workflow_engine import TransitionOutcome, TransitionResult

__all__ = [
    "FINALIZED",
    "FINALIZED_LABEL",
    "SYSTEM_ACTOR",
    "Actor",
    "AuditEntry",
    "Clock",
    "DeterministicClock",
    "GLAccount",
    "ReviewStatus",
    "StageSequence",
    "StatusCategory",
    "SystemClock",
    "TransitionOutcome",
    "TransitionResult",
    "UserDirectory",
]
