"""
Module: stock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    valuation engines.  This is the import surface for higher layers
    (stock_modules, stock_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain and stock_kernel.logging_config.
    MUST NOT import stock_services or stock_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters by the services.
    - Decimal-only arithmetic: quantities and values use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.
    - Engines never mutate their inputs.

Usage:
    from stock_engines import resolve_lot_costs, aggregate_balances

    lots = resolve_lot_costs(movements=ledger)
    buckets = aggregate_balances(
        movements=ledger, lot_costs=lots, upper_bound=report_date,
    )
"""

from stock_engines.balance import (
    DEFAULT_EPSILON,
    BucketKey,
    InventoryBucket,
    aggregate_balances,
    collation_key,
    sort_buckets,
)
from stock_engines.expiry import (
    ExpiryThresholds,
    ExpiryTier,
    classify_expiry,
    days_until,
)
from stock_engines.lot_cost import (
    ArrivalYearPolicy,
    LotCostRecord,
    LotKey,
    resolve_lot_costs,
)
from stock_engines.movement_filter import MovementHistory, filter_movements
from stock_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "DEFAULT_EPSILON",
    "BucketKey",
    "InventoryBucket",
    "aggregate_balances",
    "collation_key",
    "sort_buckets",
    "ExpiryThresholds",
    "ExpiryTier",
    "classify_expiry",
    "days_until",
    "ArrivalYearPolicy",
    "LotCostRecord",
    "LotKey",
    "resolve_lot_costs",
    "MovementHistory",
    "filter_movements",
    "compute_input_fingerprint",
    "traced_engine",
]
