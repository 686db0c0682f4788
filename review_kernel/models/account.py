"""
ORM persistence for reviewed GL accounts and their audit trail.

Contract:
    GLAccountModel holds the mutable review state (status, stage, mistake
    count).  AuditEntryModel rows are append-only: the immutability listeners
    in db/immutability.py block UPDATE and DELETE.  ``seq`` orders entries
    within one account's log, starting at 0 for the ingestion entry.

Architecture: review_kernel/models. Imports from review_kernel.db.base and
domain value objects only.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from review_kernel.db.base import Base, UUIDString
from review_kernel.domain.account import AuditEntry, GLAccount, ReviewStatus, StatusCategory


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class GLAccountModel(Base):
    """One GL account under review. Never deleted."""

    __tablename__ = "gl_accounts"

    __table_args__ = (
        Index("ix_gl_accounts_stage", "current_stage"),
        Index("ix_gl_accounts_department", "department"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    account_number: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    account_name: Mapped[str] = mapped_column(String(500), nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False)
    bs_pl: Mapped[str] = mapped_column(String(50), nullable=False)
    status_category: Mapped[str] = mapped_column(String(20), nullable=False)
    main_head: Mapped[str] = mapped_column(String(200), nullable=False)
    sub_head: Mapped[str] = mapped_column(String(200), nullable=False)
    spoc: Mapped[str] = mapped_column(String(200), nullable=False)
    reviewer: Mapped[str] = mapped_column(String(200), nullable=False)
    review_status: Mapped[str] = mapped_column(String(20), nullable=False)
    current_stage: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mistake_count: Mapped[int] = mapped_column(default=0, nullable=False)

    entries: Mapped[list["AuditEntryModel"]] = relationship(
        "AuditEntryModel",
        back_populates="account",
        order_by="AuditEntryModel.seq",
    )

    def to_dto(self) -> GLAccount:
        return GLAccount(
            id=self.id,
            account_number=self.account_number,
            account_name=self.account_name,
            department=self.department,
            bs_pl=self.bs_pl,
            status_category=StatusCategory(self.status_category),
            main_head=self.main_head,
            sub_head=self.sub_head,
            spoc=self.spoc,
            reviewer=self.reviewer,
            review_status=ReviewStatus(self.review_status),
            current_stage=self.current_stage,
            mistake_count=self.mistake_count,
            audit_log=tuple(e.to_dto() for e in self.entries),
        )

    @classmethod
    def from_dto(cls, dto: GLAccount) -> GLAccountModel:
        model = cls(
            id=dto.id,
            account_number=dto.account_number,
            account_name=dto.account_name,
            department=dto.department,
            bs_pl=dto.bs_pl,
            status_category=dto.status_category.value,
            main_head=dto.main_head,
            sub_head=dto.sub_head,
            spoc=dto.spoc,
            reviewer=dto.reviewer,
            review_status=dto.review_status.value,
            current_stage=dto.current_stage,
            mistake_count=dto.mistake_count,
        )
        model.entries = [AuditEntryModel.from_dto(e, dto.id, seq) for seq, e in enumerate(dto.audit_log)]
        return model

    def apply_state(self, dto: GLAccount) -> None:
        """Copy the mutable review state from ``dto`` and append any new audit entries."""
        self.review_status = dto.review_status.value
        self.current_stage = dto.current_stage
        self.mistake_count = dto.mistake_count
        known = len(self.entries)
        for seq, entry in enumerate(dto.audit_log[known:], start=known):
            self.entries.append(AuditEntryModel.from_dto(entry, self.id, seq))


class AuditEntryModel(Base):
    """Append-only audit entry."""

    __tablename__ = "audit_entries"

    __table_args__ = (
        UniqueConstraint("account_id", "seq", name="uq_audit_entries_account_seq"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)
    account_id: Mapped[int] = mapped_column(ForeignKey("gl_accounts.id"), nullable=False)
    seq: Mapped[int] = mapped_column(nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    acting_user: Mapped[str] = mapped_column(String(200), nullable=False)
    acting_role: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[str] = mapped_column(String(200), nullable=False)
    from_stage: Mapped[str] = mapped_column(String(100), nullable=False)
    to_stage: Mapped[str] = mapped_column(String(100), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    account: Mapped["GLAccountModel"] = relationship("GLAccountModel", back_populates="entries")

    def to_dto(self) -> AuditEntry:
        return AuditEntry(
            timestamp=_as_utc(self.timestamp),
            acting_user=self.acting_user,
            acting_role=self.acting_role,
            action=self.action,
            from_stage=self.from_stage,
            to_stage=self.to_stage,
            reason=self.reason,
        )

    @classmethod
    def from_dto(cls, dto: AuditEntry, account_id: int, seq: int) -> AuditEntryModel:
        return cls(
            id=uuid4(),
            account_id=account_id,
            seq=seq,
            timestamp=dto.timestamp,
            acting_user=dto.acting_user,
            acting_role=dto.acting_role,
            action=dto.action,
            from_stage=dto.from_stage,
            to_stage=dto.to_stage,
            reason=dto.reason,
        )
