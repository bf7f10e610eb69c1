"""
stock_engines.balance -- Current stock balances per product bucket.

Responsibility:
    Aggregate movements up to a date into buckets keyed by product, unit,
    ownership, class code and (optionally) arrival year; value each bucket
    with the lot cost table; drop empty buckets; order the result for
    display.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes the output of ``stock_engines.lot_cost``.

Invariants enforced:
    - Cumulative as of ``upper_bound``: there is no lower date bound.  A
      report window's start date only affects the movement history.
    - Balance identity: current_qty == sum(receipts) - sum(issues) for the
      admitted movements of the bucket.
    - An issue is valued at its lot's weighted-average unit price.  An
      issue whose lot has no receipts reduces quantity only.
    - With year separation an issue lands in its lot's arrival year, so a
      2024 issue drawn from a 2023 lot reduces the 2023 bucket.
    - Buckets with abs(current_qty) <= epsilon, or that never received
      anything, are not reported.

Failure modes:
    - None for valid records.  Negative balances (more issued than
      received) are reported as-is when the bucket did receive stock.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import NamedTuple

from stock_engines.lot_cost import LotCostRecord, LotKey
from stock_engines.tracer import traced_engine
from stock_kernel.domain.filters import OwnershipFilter
from stock_kernel.domain.movement import MovementRecord, UnitKind
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.balance")

DEFAULT_EPSILON = Decimal("0.001")

_ZERO = Decimal("0")


class BucketKey(NamedTuple):
    """Grouping key of one balance line.  ``year`` is None without year separation."""

    product: str
    unit: UnitKind
    owner: str | None
    sub_owner: str | None
    class_code: str | None
    year: str | None


@dataclass(frozen=True, slots=True)
class InventoryBucket:
    """
    Balance of one bucket as of the report date.

    Guarantees:
        - sum_received_qty > 0 for every reported bucket.
        - current_value is the received value minus issued quantity times
          the lot unit price.
    """

    key: BucketKey
    current_qty: Decimal
    current_value: Decimal
    sum_received_qty: Decimal

    @property
    def product(self) -> str:
        return self.key.product

    @property
    def unit(self) -> UnitKind:
        return self.key.unit

    @property
    def owner(self) -> str | None:
        return self.key.owner

    @property
    def sub_owner(self) -> str | None:
        return self.key.sub_owner

    @property
    def class_code(self) -> str | None:
        return self.key.class_code

    @property
    def year(self) -> str | None:
        return self.key.year


def collation_key(text: str) -> tuple[str, str]:
    """Locale-style sort key: accents and case ignored, raw text breaks ties."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), text


def _bucket_year(
    record: MovementRecord,
    lot: LotCostRecord | None,
    separate_by_year: bool,
) -> str | None:
    if not separate_by_year:
        return None
    if record.is_receipt:
        return record.year
    # issues follow their lot's arrival year
    return lot.arrival_year if lot is not None else record.year


@traced_engine(
    "balance",
    "1.0",
    fingerprint_fields=(
        "movements",
        "lot_costs",
        "ownership",
        "upper_bound",
        "separate_by_year",
        "epsilon",
    ),
)
def aggregate_balances(
    *,
    movements: Iterable[MovementRecord],
    lot_costs: Mapping[LotKey, LotCostRecord],
    upper_bound: date,
    ownership: OwnershipFilter = OwnershipFilter(),
    separate_by_year: bool = False,
    epsilon: Decimal = DEFAULT_EPSILON,
) -> list[InventoryBucket]:
    """
    Compute the reported buckets, in display order.

    Args:
        movements: The complete ledger.
        lot_costs: Output of ``resolve_lot_costs`` over the same ledger.
        upper_bound: Last movement date included (inclusive).
        ownership: Owner / sub-owner selection.
        separate_by_year: Split buckets by arrival year.
        epsilon: Quantities at or below this magnitude are treated as empty.

    Returns:
        Buckets sorted by ``sort_buckets``.
    """
    qty: dict[BucketKey, Decimal] = {}
    value: dict[BucketKey, Decimal] = {}
    received: dict[BucketKey, Decimal] = {}
    admitted = 0

    for record in movements:
        if record.movement_date > upper_bound:
            continue
        if not ownership.matches(record):
            continue
        admitted += 1

        lot = lot_costs.get(LotKey.of(record))
        key = BucketKey(
            record.product,
            record.unit,
            record.owner,
            record.sub_owner,
            record.class_code,
            _bucket_year(record, lot, separate_by_year),
        )
        if key not in qty:
            qty[key] = _ZERO
            value[key] = _ZERO
            received[key] = _ZERO

        if record.is_receipt:
            qty[key] += record.quantity
            value[key] += record.value_or_zero
            received[key] += record.quantity
        else:
            qty[key] -= record.quantity
            if lot is not None:
                value[key] -= record.quantity * lot.unit_price

    buckets = [
        InventoryBucket(
            key=key,
            current_qty=qty[key],
            current_value=value[key],
            sum_received_qty=received[key],
        )
        for key in qty
        if abs(qty[key]) > epsilon and received[key] > 0
    ]

    logger.info(
        "balances_aggregated",
        extra={
            "admitted": admitted,
            "buckets_total": len(qty),
            "buckets_reported": len(buckets),
            "upper_bound": upper_bound,
            "separate_by_year": separate_by_year,
        },
    )
    return sort_buckets(buckets, separate_by_year=separate_by_year)


def sort_buckets(
    buckets: Iterable[InventoryBucket],
    separate_by_year: bool,
) -> list[InventoryBucket]:
    """
    Display order: weight units first, then newest year first when
    separated by year, then product name.
    """
    ordered = sorted(buckets, key=lambda b: collation_key(b.product))
    if separate_by_year:
        ordered.sort(key=lambda b: b.year or "", reverse=True)
    ordered.sort(key=lambda b: 0 if b.unit == UnitKind.WEIGHT else 1)
    return ordered
