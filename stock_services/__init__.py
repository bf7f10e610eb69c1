"""Stock services - stateful orchestration over the engines and the ledger."""

from stock_services.snapshot_service import (
    HistoryLine,
    SnapshotService,
    StockFilters,
    StockSnapshot,
    reporting_config_from,
)

__all__ = [
    "HistoryLine",
    "SnapshotService",
    "StockFilters",
    "StockSnapshot",
    "reporting_config_from",
]
