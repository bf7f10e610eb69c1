"""
stock_services.snapshot_service -- Reactive stock snapshot.

Responsibility:
    Hold the report filters, listen to the ledger feed and republish an
    immutable ``StockSnapshot`` (history, balances and grouped report)
    every time the ledger or the applied filters change.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes resolve_lot_costs, filter_movements, aggregate_balances,
    classify_expiry and build_stock_report.  Reads "today" from the
    injected Clock; the engines never do.

Invariants enforced:
    - Every snapshot is recomputed from the complete ledger; nothing is
      carried over from the previous one.
    - The lot cost table is always built from the unfiltered ledger.
    - Until filters are applied (and again after a reset) the snapshot is
      empty: no history, no buckets.
    - Snapshots are frozen; subscribers may keep them.

Failure modes:
    - InvalidConfigurationError if the reporting labels in the
      configuration do not match the report label names.
    - Errors raised by subscriber callbacks propagate to the caller that
      triggered the change.

Usage:
    store = LedgerStore(get_session_factory(), config.lookups.as_mapping())
    service = SnapshotService(store, SystemClock(), config)
    service.update_filters(owner="DAM PECHE SARL")
    service.apply_filters()
    print(service.snapshot.report.grand_total_value)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from stock_config.schema import ReportingSettings, StockConfiguration
from stock_engines.balance import InventoryBucket, aggregate_balances
from stock_engines.expiry import ExpiryThresholds, ExpiryTier, classify_expiry
from stock_engines.lot_cost import ArrivalYearPolicy, resolve_lot_costs
from stock_engines.movement_filter import filter_movements
from stock_kernel.domain.clock import Clock
from stock_kernel.domain.filters import HistoryCriteria, OwnershipFilter
from stock_kernel.domain.movement import MovementRecord
from stock_kernel.exceptions import InvalidConfigurationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.services.ledger_store import LedgerStore
from stock_modules.reporting.config import ReportingConfig
from stock_modules.reporting.grouping import build_stock_report
from stock_modules.reporting.models import StockReport

logger = get_logger("services.snapshot")

SnapshotCallback = Callable[["StockSnapshot"], None]


def reporting_config_from(settings: ReportingSettings) -> ReportingConfig:
    """
    Translate configuration settings into the reporting module's config.

    Raises:
        InvalidConfigurationError: If a label name or value is rejected.
    """
    try:
        return ReportingConfig.from_dict(settings.as_dict())
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError("reporting", str(exc)) from exc


@dataclass(frozen=True)
class StockFilters:
    """
    Report filters.  ``None`` owner / sub-owner means all; a missing
    ``date_from`` means no lower bound for the history.
    """

    date_to: date
    date_from: date | None = None
    owner: str | None = None
    sub_owner: str | None = None
    lot_query: str = ""

    @classmethod
    def month_to_date(cls, today: date) -> StockFilters:
        """First day of the current month through today."""
        return cls(date_from=today.replace(day=1), date_to=today)

    @property
    def ownership(self) -> OwnershipFilter:
        return OwnershipFilter(owner=self.owner, sub_owner=self.sub_owner)

    def history_criteria(self) -> HistoryCriteria:
        return HistoryCriteria(
            date_to=self.date_to,
            date_from=self.date_from,
            ownership=self.ownership,
            lot_query=self.lot_query,
        )


@dataclass(frozen=True)
class HistoryLine:
    """A receipt in the history, with its expiry urgency as of today."""

    movement: MovementRecord
    expiry_tier: ExpiryTier


@dataclass(frozen=True)
class StockSnapshot:
    """Everything the stock view shows, computed in one pass."""

    generated_on: date
    separate_by_year: bool
    filters: StockFilters | None = None
    receipts: tuple[HistoryLine, ...] = ()
    issues: tuple[MovementRecord, ...] = ()
    buckets: tuple[InventoryBucket, ...] = ()
    report: StockReport = field(
        default_factory=lambda: StockReport(
            owners=(), grand_total_value=Decimal("0"), separate_by_year=False
        )
    )

    @property
    def is_applied(self) -> bool:
        return self.filters is not None

    @property
    def receipt_movements(self) -> tuple[MovementRecord, ...]:
        return tuple(line.movement for line in self.receipts)


class SnapshotService:
    """
    Owns the filter state of the stock view and its current snapshot.

    Contract:
        ``update_filters`` edits the pending filters only; nothing is
        recomputed until ``apply_filters``.  ``set_year_separation``
        takes effect immediately.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock,
        config: StockConfiguration | None = None,
    ):
        self._store = store
        self._clock = clock
        self._config = config or StockConfiguration()
        self._reporting = reporting_config_from(self._config.reporting)
        self._thresholds = ExpiryThresholds(
            critical_below_days=self._config.expiry.critical_below_days,
            warning_max_days=self._config.expiry.warning_max_days,
        )
        self._policy = ArrivalYearPolicy(self._config.valuation.arrival_year_policy)

        self._pending = StockFilters.month_to_date(clock.today())
        self._applied: StockFilters | None = None
        self._separate_by_year = False
        self._movements: tuple[MovementRecord, ...] = ()
        self._snapshot = StockSnapshot(generated_on=clock.today(), separate_by_year=False)
        self._subscribers: list[SnapshotCallback] = []

        self._unsubscribe_store = store.subscribe(self._on_ledger)

    @property
    def reporting_config(self) -> ReportingConfig:
        return self._reporting

    @property
    def pending_filters(self) -> StockFilters:
        return self._pending

    @property
    def applied_filters(self) -> StockFilters | None:
        return self._applied

    @property
    def separate_by_year(self) -> bool:
        return self._separate_by_year

    @property
    def snapshot(self) -> StockSnapshot:
        return self._snapshot

    def update_filters(self, **changes) -> StockFilters:
        """Edit the pending filters (owner, sub_owner, lot_query, date_from, date_to)."""
        self._pending = replace(self._pending, **changes)
        return self._pending

    def apply_filters(self, filters: StockFilters | None = None) -> StockSnapshot:
        """Apply ``filters`` (or the pending ones) and recompute."""
        if filters is not None:
            self._pending = filters
        self._applied = self._pending
        logger.info(
            "filters_applied",
            extra={
                "owner": self._applied.owner,
                "sub_owner": self._applied.sub_owner,
                "lot_query": self._applied.lot_query,
                "date_from": self._applied.date_from,
                "date_to": self._applied.date_to,
            },
        )
        return self._refresh()

    def reset_filters(self) -> StockSnapshot:
        """Back to all owners, no lot, no lower bound, up to today; not applied."""
        self._pending = StockFilters(date_to=self._clock.today())
        self._applied = None
        logger.info("filters_reset")
        return self._refresh()

    def set_year_separation(self, enabled: bool) -> StockSnapshot:
        self._separate_by_year = enabled
        return self._refresh()

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Receive the current snapshot now and every new one after."""
        self._subscribers.append(callback)
        callback(self._snapshot)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Stop listening to the ledger."""
        self._unsubscribe_store()

    def _on_ledger(self, movements: tuple[MovementRecord, ...]) -> None:
        self._movements = movements
        self._refresh()

    def _refresh(self) -> StockSnapshot:
        today = self._clock.today()
        if self._applied is None:
            self._snapshot = StockSnapshot(
                generated_on=today,
                separate_by_year=self._separate_by_year,
                report=StockReport(
                    owners=(),
                    grand_total_value=Decimal("0"),
                    separate_by_year=self._separate_by_year,
                ),
            )
        else:
            self._snapshot = self.compute(
                self._movements, self._applied, self._separate_by_year, today
            )
        for callback in list(self._subscribers):
            callback(self._snapshot)
        return self._snapshot

    def compute(
        self,
        movements: Sequence[MovementRecord],
        filters: StockFilters,
        separate_by_year: bool,
        today: date,
    ) -> StockSnapshot:
        """Run the full pipeline over ``movements``; no state is touched."""
        with LogContext.bind(snapshot_id=str(uuid4())):
            lot_costs = resolve_lot_costs(movements=movements, policy=self._policy)
            history = filter_movements(
                movements=movements, criteria=filters.history_criteria()
            )
            buckets = aggregate_balances(
                movements=movements,
                lot_costs=lot_costs,
                upper_bound=filters.date_to,
                ownership=filters.ownership,
                separate_by_year=separate_by_year,
                epsilon=self._config.valuation.epsilon,
            )
            report = build_stock_report(buckets, separate_by_year, self._reporting.labels)

            snapshot = StockSnapshot(
                generated_on=today,
                separate_by_year=separate_by_year,
                filters=filters,
                receipts=tuple(
                    HistoryLine(r, classify_expiry(r.expiry_date, today, self._thresholds))
                    for r in history.receipts
                ),
                issues=history.issues,
                buckets=tuple(buckets),
                report=report,
            )
            logger.info(
                "snapshot_computed",
                extra={
                    "movements": len(movements),
                    "receipts": len(snapshot.receipts),
                    "issues": len(snapshot.issues),
                    "buckets": len(snapshot.buckets),
                    "grand_total_value": report.grand_total_value,
                },
            )
        return snapshot
