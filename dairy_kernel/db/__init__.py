"""Database layer - engine, base classes and column types."""

from dairy_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from dairy_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from dairy_kernel.db.types import FixedDecimal, UTCDateTime, as_utc, money_type, quantity_type

__all__ = [
    "Base",
    "FixedDecimal",
    "TrackedBase",
    "UTCDateTime",
    "UUID",
    "UUIDString",
    "as_utc",
    "build_engine",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "money_type",
    "quantity_type",
    "reset_engine",
    "session_scope",
]
