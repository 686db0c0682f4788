"""ORM models for the GL review kernel."""

from review_kernel.models.account import AuditEntryModel, GLAccountModel

__all__ = ["AuditEntryModel", "GLAccountModel"]
