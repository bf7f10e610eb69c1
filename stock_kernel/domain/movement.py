"""
Movement -- Immutable stock movement records.

Responsibility:
    Defines the single event type the whole system is built on: a
    receipt or an issue of a product quantity, optionally tied to a lot
    reference, an owner (enterprise) and a sub-owner (client).

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.
    Imported by engines, services and the store.

Invariants enforced:
    - quantity is finite and > 0 (checked in ``__post_init__``).
    - total_value, when present, is a non-negative total cost for the
      receipt, never a unit price.
    - total_value and expiry_date are only carried by receipts.

Failure modes:
    - ValueError from ``__post_init__`` on a non-finite or non-positive
      quantity, or a non-finite or negative total value.  Drafts coming
      from users go through ``stock_kernel.domain.validation`` first and
      get a typed error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class MovementKind(str, Enum):
    """Direction of a stock movement."""

    RECEIPT = "RECEIPT"  # inbound
    ISSUE = "ISSUE"      # outbound


class UnitKind(str, Enum):
    """Unit a movement quantity is expressed in."""

    WEIGHT = "KG"
    COUNT = "COUNT"


@dataclass(frozen=True, slots=True)
class MovementDraft:
    """
    Unvalidated movement fields as entered by a user or an importer.

    Every field is optional here; ``validate_movement`` turns a draft
    into a ``MovementRecord`` or raises ``InvalidMovementError``.
    """

    kind: MovementKind
    movement_date: date
    product: str | None = None
    unit: UnitKind = UnitKind.WEIGHT
    quantity: Decimal | None = None
    lot_ref: str | None = None
    class_code: str | None = None
    owner: str | None = None
    sub_owner: str | None = None
    total_value: Decimal | None = None
    expiry_date: date | None = None


@dataclass(frozen=True, slots=True)
class MovementRecord:
    """
    One immutable movement in the ledger.

    Contract:
        Records are facts.  Engines read them, never mutate them, and
        treat every optional field as explicitly absent (None) rather
        than falsy.

    Guarantees:
        - quantity is a strictly positive Decimal.
        - ``year`` is the four-digit calendar year of ``movement_date``.
    """

    movement_id: str
    kind: MovementKind
    movement_date: date
    product: str
    unit: UnitKind
    quantity: Decimal
    lot_ref: str | None = None
    class_code: str | None = None
    owner: str | None = None
    sub_owner: str | None = None
    total_value: Decimal | None = None
    expiry_date: date | None = None

    def __post_init__(self) -> None:
        if not self.quantity.is_finite() or self.quantity <= 0:
            raise ValueError(f"Movement quantity must be a finite positive number, got {self.quantity}")
        if self.total_value is not None and (
            not self.total_value.is_finite() or self.total_value < 0
        ):
            raise ValueError(f"Movement total value must be finite and non-negative, got {self.total_value}")

    @property
    def is_receipt(self) -> bool:
        return self.kind == MovementKind.RECEIPT

    @property
    def is_issue(self) -> bool:
        return self.kind == MovementKind.ISSUE

    @property
    def year(self) -> str:
        """Calendar year of the movement date, as a string tag."""
        return f"{self.movement_date.year:04d}"

    @property
    def value_or_zero(self) -> Decimal:
        """Total value with the absent-means-zero contract applied."""
        return self.total_value if self.total_value is not None else Decimal("0")
