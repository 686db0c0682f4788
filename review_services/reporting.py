"""
Read-only review metrics over an account snapshot.

Everything here is a pure function of a tuple of ``GLAccount`` values, so
callers take a snapshot under the store lock and aggregate outside it.

    summarize              headline counts (total, finalized, pending, mistakes)
    department_priorities  per-department mistake totals graded Critical / Medium / Low
    status_counts          accounts per review status (chart data)
    work_queue             accounts waiting on a given role
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from review_kernel.domain.account import GLAccount, ReviewStatus


class Priority(str, Enum):
    CRITICAL = "Critical"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class PriorityThresholds:
    critical: int = 10
    medium: int = 5

    def grade(self, mistakes: int) -> Priority:
        if mistakes >= self.critical:
            return Priority.CRITICAL
        if mistakes >= self.medium:
            return Priority.MEDIUM
        return Priority.LOW


@dataclass(frozen=True)
class ReviewSummary:
    total: int
    finalized: int
    pending: int
    mistakes: int


@dataclass(frozen=True)
class DepartmentPriority:
    department: str
    total_accounts: int
    mistake_count: int
    priority: Priority


def summarize(accounts: Sequence[GLAccount]) -> ReviewSummary:
    """Pending counts both Pending and Mismatch accounts."""
    return ReviewSummary(
        total=len(accounts),
        finalized=sum(1 for a in accounts if a.review_status == ReviewStatus.FINALIZED),
        pending=sum(
            1 for a in accounts if a.review_status in (ReviewStatus.PENDING, ReviewStatus.MISMATCH)
        ),
        mistakes=sum(a.mistake_count for a in accounts),
    )


def department_priorities(
    accounts: Iterable[GLAccount],
    thresholds: PriorityThresholds | None = None,
) -> list[DepartmentPriority]:
    """Departments ordered by mistake total, highest first.

    Departments with equal totals keep the order they first appear in.
    """
    thresholds = thresholds or PriorityThresholds()
    counts: dict[str, int] = {}
    mistakes: dict[str, int] = {}
    for account in accounts:
        counts[account.department] = counts.get(account.department, 0) + 1
        mistakes[account.department] = mistakes.get(account.department, 0) + account.mistake_count
    rows = [
        DepartmentPriority(
            department=dept,
            total_accounts=counts[dept],
            mistake_count=mistakes[dept],
            priority=thresholds.grade(mistakes[dept]),
        )
        for dept in counts
    ]
    return sorted(rows, key=lambda r: r.mistake_count, reverse=True)


def status_counts(accounts: Iterable[GLAccount]) -> dict[ReviewStatus, int]:
    """Accounts per status; an account with no current stage counts as Finalized."""
    counter: Counter[ReviewStatus] = Counter()
    for account in accounts:
        status = ReviewStatus.FINALIZED if account.current_stage is None else account.review_status
        counter[status] += 1
    return dict(counter)


def work_queue(accounts: Iterable[GLAccount], role: str) -> list[GLAccount]:
    """Accounts whose next action belongs to ``role``, by id."""
    return sorted((a for a in accounts if a.current_stage == role), key=lambda a: a.id)
