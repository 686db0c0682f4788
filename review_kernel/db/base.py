"""
Module: review_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models and the UUID
    column type.  Lowest-level import target within the kernel; MUST NOT import
    from models/, services/ or domain/.

Invariants enforced:
    - datetime maps to DateTime(timezone=True); values read back from backends
      that drop the offset (SQLite) are re-tagged as UTC by the models.
    - int maps to BigInteger so audit sequences never overflow.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as String(36) for cross-database portability."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """Declarative base; models declare their own primary keys."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }
