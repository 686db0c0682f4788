"""
review_services -- Read-side consumers of the account snapshot.

Responsibility:
    Dashboard metrics and the chat assistant.  Both work on a snapshot
    taken from ``AccountStore.snapshot()`` and never mutate accounts.

Architecture position:
    review_services/ -> review_kernel/ (allowed)
    review_kernel/   -> review_services/ (FORBIDDEN)
"""

from review_services.assistant import AssistantService
from review_services.reporting import (
    DepartmentPriority,
    Priority,
    PriorityThresholds,
    ReviewSummary,
    department_priorities,
    status_counts,
    summarize,
    work_queue,
)

__all__ = [
    "AssistantService",
    "DepartmentPriority",
    "Priority",
    "PriorityThresholds",
    "ReviewSummary",
    "department_priorities",
    "status_counts",
    "summarize",
    "work_queue",
]
