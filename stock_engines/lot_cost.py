"""
stock_engines.lot_cost -- Weighted-average unit cost per lot.

Responsibility:
    Fold every receipt in the ledger into one cost record per lot:
    cumulative received quantity and value, the derived unit price, and
    the lot's arrival year.  Issues are costed against these records by
    the balance aggregator.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only stock_kernel.domain and the tracer.

Invariants enforced:
    - Weighted average, not FIFO: unit_price is total value over total
      quantity across every receipt of the lot, whatever their dates.
    - The resolver sees the whole ledger.  Callers MUST NOT pre-filter by
      date or ownership, or issues would be costed differently depending
      on the report window.
    - A receipt without a value contributes its quantity at zero cost.
    - arrival_year is fixed by the first receipt seen (FIRST_SEEN) or is
      the minimum over all receipts (EARLIEST).

Failure modes:
    - None for valid records.  unit_price is 0 when the lot quantity is 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from stock_engines.tracer import traced_engine
from stock_kernel.domain.movement import MovementRecord, UnitKind
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.lot_cost")

_ZERO = Decimal("0")


class ArrivalYearPolicy(str, Enum):
    """How a lot's arrival year is chosen when it has several receipts."""

    FIRST_SEEN = "first_seen"  # year of the first receipt in ledger order
    EARLIEST = "earliest"      # smallest receipt year


class LotKey(NamedTuple):
    """Identity of a lot.  The same lot reference under another owner is another lot."""

    lot_ref: str | None
    product: str
    unit: UnitKind
    owner: str | None
    sub_owner: str | None

    @classmethod
    def of(cls, record: MovementRecord) -> LotKey:
        return cls(
            record.lot_ref,
            record.product,
            record.unit,
            record.owner,
            record.sub_owner,
        )


@dataclass(frozen=True, slots=True)
class LotCostRecord:
    """
    Cumulative receipts of one lot.

    Guarantees:
        - total_received_qty >= 0 and total_received_value >= 0.
        - unit_price == total_received_value / total_received_qty, or 0.
    """

    arrival_year: str
    total_received_qty: Decimal = _ZERO
    total_received_value: Decimal = _ZERO

    @property
    def unit_price(self) -> Decimal:
        if self.total_received_qty == 0:
            return _ZERO
        return self.total_received_value / self.total_received_qty


@traced_engine("lot_cost", "1.0", fingerprint_fields=("movements", "policy"))
def resolve_lot_costs(
    *,
    movements: Iterable[MovementRecord],
    policy: ArrivalYearPolicy = ArrivalYearPolicy.FIRST_SEEN,
) -> dict[LotKey, LotCostRecord]:
    """
    Build the lot cost table from every receipt in ``movements``.

    Args:
        movements: The complete, unfiltered ledger, in ledger order.
        policy: Arrival year selection rule.

    Returns:
        Lot key to cost record, in first-seen order.
    """
    table: dict[LotKey, LotCostRecord] = {}
    receipts = 0

    for record in movements:
        if not record.is_receipt:
            continue
        receipts += 1
        key = LotKey.of(record)
        current = table.get(key)
        if current is None:
            current = LotCostRecord(arrival_year=record.year)
        elif policy == ArrivalYearPolicy.EARLIEST and record.year < current.arrival_year:
            current = replace(current, arrival_year=record.year)

        table[key] = replace(
            current,
            total_received_qty=current.total_received_qty + record.quantity,
            total_received_value=current.total_received_value + record.value_or_zero,
        )

    logger.debug(
        "lot_costs_resolved",
        extra={"receipts": receipts, "lots": len(table), "policy": policy.value},
    )
    return table
