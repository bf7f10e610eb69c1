"""
Stock Report Domain Models (``stock_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for the grouped stock report: owner,
sub-owner and year groups, per-product roll-ups and value totals.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by
``grouping.build_stock_report`` and read by the layout and export code.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All quantities and values use ``Decimal`` -- NEVER ``float``.
* Group order is first-seen order over the sorted bucket list.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from stock_engines.balance import InventoryBucket
from stock_kernel.domain.movement import UnitKind


@dataclass(frozen=True)
class ProductRollup:
    """A product's quantity and value summed over every year of a sub-owner."""

    product: str
    unit: UnitKind
    quantity: Decimal
    value: Decimal


@dataclass(frozen=True)
class YearGroup:
    """Buckets of one arrival year (or the single "ALL" group)."""

    year_key: str
    items: tuple[InventoryBucket, ...]


@dataclass(frozen=True)
class SubOwnerGroup:
    """Buckets of one sub-owner within an owner."""

    name: str
    years: tuple[YearGroup, ...]
    total_value: Decimal
    rollup: tuple[ProductRollup, ...] = ()

    @property
    def has_multiple_years(self) -> bool:
        return len(self.years) > 1

    @property
    def items(self) -> tuple[InventoryBucket, ...]:
        return tuple(item for group in self.years for item in group.items)


@dataclass(frozen=True)
class OwnerGroup:
    """Sub-owner groups of one owner."""

    name: str
    sub_owners: tuple[SubOwnerGroup, ...]
    total_value: Decimal


@dataclass(frozen=True)
class StockReport:
    """Complete grouped stock report."""

    owners: tuple[OwnerGroup, ...]
    grand_total_value: Decimal
    separate_by_year: bool

    @property
    def item_count(self) -> int:
        return sum(
            len(year.items)
            for owner in self.owners
            for sub in owner.sub_owners
            for year in sub.years
        )

    @property
    def is_empty(self) -> bool:
        return not self.owners
