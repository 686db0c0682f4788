"""Database layer: declarative base, engine/session management, append-only listeners."""

from review_kernel.db.base import Base, UUIDString
from review_kernel.db.engine import (
    DEFAULT_DATABASE_URL,
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "DEFAULT_DATABASE_URL",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
