"""
Module: hris_kernel.db.base
Responsibility: Declarative base for every payroll ORM model: UUID primary
    keys, the Python-type to column-type map, and the audited TrackedBase.
Architecture position: Kernel > DB.  Imports only db/types.py.

Invariants enforced:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on PostgreSQL and SQLite.
    - Decimal and the Money alias map to Numeric(38, 9); contribution and
      tax rates (Rate) to Numeric(12, 9).  No float columns.
    - Every TrackedBase row records the actor that created it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from hris_kernel.db.types import Currency, Money, PayloadHash, Rate, ShortCode


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Root of the payroll schema; owns ``Base.metadata``."""

    type_annotation_map: ClassVar[dict] = {
        PyUUID: UUIDString(),
        Decimal: Numeric(38, 9),
        Money: Numeric(38, 9),
        Rate: Numeric(12, 9),
        Currency: String(3),
        PayloadHash: String(64),
        ShortCode: String(50),
        datetime: DateTime(timezone=True),
        date: Date,
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding who/when audit columns.

    ``updated_at`` and ``updated_by_id`` may change on rows that are
    otherwise sealed (see ``hris_modules.payroll.immutability``); they
    describe the write, not the payroll figures.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[PyUUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)


UUID = PyUUID
