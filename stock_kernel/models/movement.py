"""
Module: stock_kernel.models.movement
Responsibility: ORM persistence for stock movements (receipts and issues).
    Rows are converted to immutable ``MovementRecord`` value objects before
    they leave the store; engines never see ORM instances.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, domain/, or outer layers.

Invariants enforced:
    - seq is assigned once on insert and never changes.  It is the
      tie-break for movements sharing a date, so ledger snapshots keep
      insertion order inside a day.
    - kind and unit are stored as their enum string values.

Failure modes:
    - IntegrityError on duplicate seq (uq_stock_movement_seq).
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase


class MovementModel(TrackedBase):
    """
    One persisted receipt or issue.

    Guarantees:
        - quantity and total_value round-trip exactly (DecimalString).
        - total_value and expiry_date are NULL for issues.
    """

    __tablename__ = "stock_movements"

    __table_args__ = (
        UniqueConstraint("seq", name="uq_stock_movement_seq"),
        Index("idx_stock_movement_date", "movement_date"),
        Index("idx_stock_movement_lot", "lot_ref"),
    )

    # Insertion order
    seq: Mapped[int] = mapped_column(nullable=False)

    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    movement_date: Mapped[date] = mapped_column(Date, nullable=False)
    product: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(10), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    lot_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    class_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sub_owner: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Receipts only
    total_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MovementModel {self.kind} {self.movement_date} "
            f"{self.product} {self.quantity} lot={self.lot_ref}>"
        )
