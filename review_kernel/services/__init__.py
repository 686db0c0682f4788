"""Services for the review kernel (write side)."""

from review_kernel.services.account_store import AccountRepository, AccountStore
from review_kernel.services.workflow_service import RejectPrompt, WorkflowService

__all__ = [
    "AccountRepository",
    "AccountStore",
    "RejectPrompt",
    "WorkflowService",
]
