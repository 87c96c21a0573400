"""
Module: ledger_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models.  Provides the
    integer primary key convention, the type annotation map, and the
    CreatedAtMixin for row creation timestamps.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, store/, services/, domain/, or outer layers.

Invariants enforced:
    - Integer primary keys: every model gets an auto-increment 64-bit id.
      SQLite only auto-increments an ``INTEGER PRIMARY KEY`` (the rowid
      alias), so the column type carries an INTEGER variant for that dialect.
    - Minor-unit amounts: int maps to BigInteger.  Amounts are signed
      integers in minor currency units; NEVER use float for money.
    - Timestamps: datetime maps to DateTime(timezone=True).
    - The annotated aliases in db/types.py are registered in the map so
      their lengths reach the DDL.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ledger_kernel.db.types import Currency, MinorUnits, Owner

BigIntegerPK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an auto-increment integer assigned by the database.
        - int maps to BigInteger (signed 64-bit minor units).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        int: BigInteger,
        MinorUnits: BigInteger,
        Currency: String(3),
        Owner: String(255),
    }

    id: Mapped[int] = mapped_column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )


class CreatedAtMixin:
    """
    Creation timestamp for append-only rows.

    created_at is set to server NOW() on INSERT and never changes.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
