"""Database layer - engine, base classes and column types."""

from hris_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from hris_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from hris_kernel.db.types import Currency, Money, Rate, round_currency, round_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "Rate",
    "Currency",
    "round_money",
    "round_currency",
]
