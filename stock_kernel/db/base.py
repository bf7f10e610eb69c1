"""
Module: stock_kernel.db.base
Responsibility: Declarative base and column types for the ledger tables.
Architecture position: Kernel > DB.  Lowest import target inside the kernel;
    every model file imports from here.  MUST NOT import from models/,
    services/, domain/, or outer layers.

Invariants enforced:
    - Every row is keyed by a uuid4 stored as text.
    - Quantities and values are stored as the text of their Decimal and read
      back unchanged; floats are refused at bind time.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character text form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class DecimalString(TypeDecorator):
    """
    Decimal kept as text, so ``Decimal("1050.000")`` reads back with its
    exponent intact on every backend.

    Raises:
        TypeError: When a float is bound.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, float):
            raise TypeError(f"float {value!r} bound to a decimal column; use Decimal")
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(value)


class Base(DeclarativeBase):
    """Declarative base: uuid primary key, exact decimals, aware datetimes."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalString(),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: Integer,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds ``created_at`` / ``updated_at``, both set by the database."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
