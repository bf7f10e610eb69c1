"""
Stock report grouping (``stock_modules.reporting.grouping``).

Responsibility
--------------
Turn the sorted bucket list into the owner -> sub-owner -> year
hierarchy with value totals, and, when buckets are split by year, a
per-product roll-up for sub-owners holding several years.

Architecture position
---------------------
**Modules layer** -- pure transformation, ZERO I/O.  The single source
of totals for the screen view and for every export.

Invariants enforced
-------------------
* Groups appear in the order their first bucket appears; items inside
  a group keep the aggregator's order.
* sub-owner total == sum of its item values; owner total == sum of its
  sub-owner totals; grand total == sum of owner totals.
* A roll-up exists only with year separation and more than one year
  group for the sub-owner.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from stock_engines.balance import InventoryBucket
from stock_kernel.domain.movement import UnitKind
from stock_kernel.logging_config import get_logger
from stock_modules.reporting.config import ReportLabels
from stock_modules.reporting.models import (
    OwnerGroup,
    ProductRollup,
    StockReport,
    SubOwnerGroup,
    YearGroup,
)

logger = get_logger("modules.reporting.grouping")

_ZERO = Decimal("0")


def _rollup(items: Iterable[InventoryBucket]) -> tuple[ProductRollup, ...]:
    totals: dict[tuple[str, UnitKind], tuple[Decimal, Decimal]] = {}
    for item in items:
        key = (item.product, item.unit)
        qty, value = totals.get(key, (_ZERO, _ZERO))
        totals[key] = (qty + item.current_qty, value + item.current_value)
    return tuple(
        ProductRollup(product=product, unit=unit, quantity=qty, value=value)
        for (product, unit), (qty, value) in totals.items()
    )


def _sub_owner_group(
    name: str,
    years: dict[str, list[InventoryBucket]],
    separate_by_year: bool,
) -> SubOwnerGroup:
    year_groups = tuple(
        YearGroup(year_key=year_key, items=tuple(items))
        for year_key, items in years.items()
    )
    group = SubOwnerGroup(
        name=name,
        years=year_groups,
        total_value=sum(
            (item.current_value for year in year_groups for item in year.items), _ZERO
        ),
    )
    if separate_by_year and group.has_multiple_years:
        group = replace(group, rollup=_rollup(group.items))
    return group


def build_stock_report(
    buckets: Iterable[InventoryBucket],
    separate_by_year: bool,
    labels: ReportLabels | None = None,
) -> StockReport:
    """
    Group ``buckets`` (already in display order) into a StockReport.

    Args:
        buckets: Output of ``aggregate_balances``.
        separate_by_year: Whether the buckets carry a year tag.
        labels: Texts for absent owner / sub-owner and the "ALL" year key.
    """
    labels = labels or ReportLabels()
    nested: dict[str, dict[str, dict[str, list[InventoryBucket]]]] = {}

    for bucket in buckets:
        owner = bucket.owner if bucket.owner is not None else labels.missing_owner
        sub_owner = (
            bucket.sub_owner if bucket.sub_owner is not None else labels.missing_sub_owner
        )
        if separate_by_year and bucket.year is not None:
            year_key = bucket.year
        else:
            year_key = labels.all_years
        nested.setdefault(owner, {}).setdefault(sub_owner, {}).setdefault(
            year_key, []
        ).append(bucket)

    owners = []
    for owner_name, sub_owners in nested.items():
        sub_groups = tuple(
            _sub_owner_group(sub_name, years, separate_by_year)
            for sub_name, years in sub_owners.items()
        )
        owners.append(
            OwnerGroup(
                name=owner_name,
                sub_owners=sub_groups,
                total_value=sum((g.total_value for g in sub_groups), _ZERO),
            )
        )

    report = StockReport(
        owners=tuple(owners),
        grand_total_value=sum((o.total_value for o in owners), _ZERO),
        separate_by_year=separate_by_year,
    )
    logger.info(
        "stock_report_built",
        extra={
            "owners": len(report.owners),
            "items": report.item_count,
            "separate_by_year": separate_by_year,
        },
    )
    return report
