"""
ORM-level append-only enforcement for the review trail.

SQLAlchemy fires mapper/session events before SQL reaches the database; the
listeners here intercept them and raise ImmutabilityViolationError, which
aborts the flush and leaves the database untouched.

    Entity            | Rule
    ------------------|---------------------------------------------------
    AuditEntryModel   | never updated, never deleted
    GLAccountModel    | never deleted; ingested fields never updated
                      | (only review_status, current_stage, mistake_count
                      | change, through the workflow service)

Usage:
    register_immutability_listeners()    # done by db.engine.create_tables()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from review_kernel.exceptions import ImmutabilityViolationError
from review_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_MUTABLE_ACCOUNT_FIELDS = frozenset({"review_status", "current_stage", "mistake_count"})


def _violation(entity_type: str, entity_id: str, operation: str, reason: str) -> ImmutabilityViolationError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            "reason": reason,
        },
    )
    return ImmutabilityViolationError(entity_type, entity_id, reason)


def _check_deletions_before_flush(session, flush_context, instances):
    from review_kernel.models.account import AuditEntryModel, GLAccountModel

    for obj in list(session.deleted):
        if isinstance(obj, AuditEntryModel):
            raise _violation("AuditEntry", str(obj.id), "DELETE", "audit entries are append-only")
        if isinstance(obj, GLAccountModel):
            raise _violation("GLAccount", str(obj.id), "DELETE", "accounts are never deleted")


def _check_audit_entry_update(mapper, connection, target):
    raise _violation("AuditEntry", str(target.id), "UPDATE", "audit entries are append-only")


def _check_account_update(mapper, connection, target):
    state = inspect(target)
    for attr in state.mapper.column_attrs:
        if attr.key in _MUTABLE_ACCOUNT_FIELDS:
            continue
        if state.attrs[attr.key].history.has_changes():
            raise _violation(
                "GLAccount",
                str(target.id),
                "UPDATE",
                f"field {attr.key!r} is fixed at ingestion",
            )


_registered = False


def register_immutability_listeners() -> None:
    """Register the listeners (idempotent)."""
    global _registered
    if _registered:
        return
    from review_kernel.models.account import AuditEntryModel, GLAccountModel

    event.listen(Session, "before_flush", _check_deletions_before_flush)
    event.listen(AuditEntryModel, "before_update", _check_audit_entry_update)
    event.listen(GLAccountModel, "before_update", _check_account_update)
    _registered = True
    logger.debug("immutability_listeners_registered")
