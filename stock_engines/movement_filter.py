"""
stock_engines.movement_filter -- Receipts and issues shown in the history.

Responsibility:
    Select the movements of the report window and split them into the
    receipt and issue histories, newest first.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Both date bounds apply here (inclusive), unlike the balance
      aggregator which only honours the upper bound.
    - Lot matching is a case-insensitive substring test.
    - Ordering is by movement date descending; movements sharing a date
      keep their ledger order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from stock_engines.tracer import traced_engine
from stock_kernel.domain.filters import HistoryCriteria
from stock_kernel.domain.movement import MovementRecord
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.movement_filter")


@dataclass(frozen=True, slots=True)
class MovementHistory:
    """Filtered movements split by direction, newest first."""

    receipts: tuple[MovementRecord, ...] = ()
    issues: tuple[MovementRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.receipts) + len(self.issues)


@traced_engine("movement_filter", "1.0", fingerprint_fields=("movements", "criteria"))
def filter_movements(
    *,
    movements: Iterable[MovementRecord],
    criteria: HistoryCriteria,
) -> MovementHistory:
    """Apply ``criteria`` and partition the result into receipts and issues."""
    selected = [record for record in movements if criteria.matches(record)]
    selected.sort(key=lambda r: r.movement_date, reverse=True)

    history = MovementHistory(
        receipts=tuple(r for r in selected if r.is_receipt),
        issues=tuple(r for r in selected if r.is_issue),
    )
    logger.debug(
        "movements_filtered",
        extra={"receipts": len(history.receipts), "issues": len(history.issues)},
    )
    return history
