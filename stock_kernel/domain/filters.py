"""
Filters -- Selection criteria shared by the engines.

Two different date semantics live side by side and must not be merged:

    - ``OwnershipFilter`` + an upper bound drives the balance aggregator:
      balances are cumulative as of ``date_to``, with no lower bound.
    - ``HistoryCriteria`` drives the movement history: both ``date_from``
      and ``date_to`` apply, plus a lot substring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from stock_kernel.domain.movement import MovementRecord


@dataclass(frozen=True, slots=True)
class OwnershipFilter:
    """
    Owner / sub-owner selection.

    ``None`` selects every value (the "ALL" choice).  A specific name
    never matches a movement whose owner is absent.
    """

    owner: str | None = None
    sub_owner: str | None = None

    def matches(self, record: MovementRecord) -> bool:
        if self.owner is not None and record.owner != self.owner:
            return False
        if self.sub_owner is not None and record.sub_owner != self.sub_owner:
            return False
        return True


@dataclass(frozen=True, slots=True)
class HistoryCriteria:
    """Full filter set for the movement history view."""

    date_to: date
    date_from: date | None = None
    ownership: OwnershipFilter = field(default_factory=OwnershipFilter)
    lot_query: str = ""

    @property
    def normalized_lot_query(self) -> str:
        return self.lot_query.strip().upper()

    def matches(self, record: MovementRecord) -> bool:
        if self.date_from is not None and record.movement_date < self.date_from:
            return False
        if record.movement_date > self.date_to:
            return False
        if not self.ownership.matches(record):
            return False
        query = self.normalized_lot_query
        if query and query not in (record.lot_ref or "").upper():
            return False
        return True
