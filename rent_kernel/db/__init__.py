"""Database layer - engine, base classes, and types."""

from rent_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from rent_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
)
from rent_kernel.db.types import Currency, Money, ShortCode, to_money

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "Currency",
    "ShortCode",
    "to_money",
]
