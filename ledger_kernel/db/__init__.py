"""Database layer - engine, base classes and column types."""

from ledger_kernel.db.base import Base, BigIntegerPK, CreatedAtMixin
from ledger_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_settings,
    init_engine_from_url,
    is_postgres,
    is_sqlite,
    reset_engine,
)
from ledger_kernel.db.pool import CheckoutDeadlineError, DeadlineQueuePool, checkout_budget
from ledger_kernel.db.types import Currency, MinorUnits, Owner

__all__ = [
    "build_engine",
    "init_engine_from_url",
    "init_engine_from_settings",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "is_postgres",
    "is_sqlite",
    "CheckoutDeadlineError",
    "DeadlineQueuePool",
    "checkout_budget",
    "Base",
    "BigIntegerPK",
    "CreatedAtMixin",
    "MinorUnits",
    "Currency",
    "Owner",
]
