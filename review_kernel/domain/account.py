"""
GL account domain types (``review_kernel.domain.account``).

Responsibility
--------------
Pure value objects for a reviewed General Ledger account and its audit
trail.  ZERO I/O.

Invariants enforced
-------------------
* ``current_stage is None`` if and only if ``review_status`` is FINALIZED.
* ``audit_log`` holds at least one entry (the ingestion event) and is only
  ever extended; transitions return a new ``GLAccount`` with one more entry.
* ``mistake_count`` is never negative.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

# Label written into audit entries and reports for the finalized sentinel.
FINALIZED_LABEL = "Finalized"
# ``from_stage`` of the ingestion audit entry.
NOT_APPLICABLE = "N/A"


class ReviewStatus(str, Enum):
    """Review status of an account.

    APPROVED and REJECTED are part of the status vocabulary but no workflow
    transition produces them.
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    MISMATCH = "Mismatch"
    FINALIZED = "Finalized"


class StatusCategory(str, Enum):
    """Balance-sheet category of an account."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"

    @classmethod
    def coerce(cls, value: Any) -> "StatusCategory":
        """Match case-insensitively; anything unrecognised becomes ASSETS."""
        text = str(value).strip().lower() if value is not None else ""
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.ASSETS


@dataclass(frozen=True)
class AuditEntry:
    """Immutable record of one ingestion or workflow event."""

    timestamp: datetime
    acting_user: str
    acting_role: str
    action: str
    from_stage: str
    to_stage: str
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "user": self.acting_user,
            "role": self.acting_role,
            "action": self.action,
            "from": self.from_stage,
            "to": self.to_stage,
        }
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class GLAccount:
    """Immutable snapshot of a GL account under review."""

    id: int
    account_number: str
    account_name: str
    department: str
    bs_pl: str = "BS"
    status_category: StatusCategory = StatusCategory.ASSETS
    main_head: str = "N/A"
    sub_head: str = "N/A"
    spoc: str = "Unassigned"
    reviewer: str = "Unassigned"
    review_status: ReviewStatus = ReviewStatus.PENDING
    current_stage: str | None = None
    mistake_count: int = 0
    audit_log: tuple[AuditEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if (self.current_stage is None) != (self.review_status == ReviewStatus.FINALIZED):
            raise ValueError(
                f"Account {self.id}: current_stage={self.current_stage!r} is inconsistent "
                f"with review_status={self.review_status.value}"
            )
        if self.mistake_count < 0:
            raise ValueError(f"Account {self.id}: mistake_count must be non-negative")
        if not self.audit_log:
            raise ValueError(f"Account {self.id}: audit_log must contain the ingestion entry")

    @property
    def is_finalized(self) -> bool:
        return self.current_stage is None

    @property
    def stage_label(self) -> str:
        """Current stage, or "Finalized" when there is none."""
        return self.current_stage if self.current_stage is not None else FINALIZED_LABEL

    def with_transition(
        self,
        *,
        current_stage: str | None,
        review_status: ReviewStatus,
        entry: AuditEntry,
        mistake_count: int | None = None,
    ) -> "GLAccount":
        """Return a copy moved to a new stage with ``entry`` appended."""
        return replace(
            self,
            current_stage=current_stage,
            review_status=review_status,
            mistake_count=self.mistake_count if mistake_count is None else mistake_count,
            audit_log=self.audit_log + (entry,),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-record view for collaborators (reporting, assistant, APIs)."""
        return {
            "id": self.id,
            "accountNumber": self.account_number,
            "accountName": self.account_name,
            "department": self.department,
            "bsPl": self.bs_pl,
            "statusCategory": self.status_category.value,
            "mainHead": self.main_head,
            "subHead": self.sub_head,
            "spoc": self.spoc,
            "reviewer": self.reviewer,
            "reviewStatus": self.review_status.value,
            "currentStage": self.current_stage,
            "mistakeCount": self.mistake_count,
            "auditLog": [e.to_dict() for e in self.audit_log],
        }
