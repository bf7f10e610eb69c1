"""
Tests for the movement history filter.

The history honours both date bounds; the balance aggregator only the
upper one.  Both behaviours are pinned here.
"""

from datetime import date
from decimal import Decimal

from stock_engines.balance import aggregate_balances
from stock_engines.lot_cost import resolve_lot_costs
from stock_engines.movement_filter import MovementHistory, filter_movements
from stock_kernel.domain.filters import HistoryCriteria, OwnershipFilter


class TestDateBounds:

    def test_bounds_are_inclusive(self, make_movement):
        movements = [
            make_movement("RECEIPT", date(2024, 1, 1), 1),
            make_movement("RECEIPT", date(2024, 1, 31), 2),
            make_movement("RECEIPT", date(2024, 2, 1), 3),
            make_movement("RECEIPT", date(2023, 12, 31), 4),
        ]

        history = filter_movements(
            movements=movements,
            criteria=HistoryCriteria(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31)),
        )

        assert [r.quantity for r in history.receipts] == [Decimal("2"), Decimal("1")]

    def test_missing_lower_bound_keeps_everything_before_upper(self, make_movement):
        movements = [
            make_movement("ISSUE", date(2015, 3, 1), 1),
            make_movement("ISSUE", date(2024, 1, 31), 2),
        ]

        history = filter_movements(
            movements=movements,
            criteria=HistoryCriteria(date_to=date(2024, 1, 31)),
        )

        assert len(history.issues) == 2

    def test_history_window_does_not_limit_balances(self, make_movement):
        """A receipt before ``date_from`` is absent from the history but still stock."""
        movements = [make_movement("RECEIPT", date(2023, 6, 1), 10, value="100")]
        criteria = HistoryCriteria(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))

        history = filter_movements(movements=movements, criteria=criteria)
        buckets = aggregate_balances(
            movements=movements,
            lot_costs=resolve_lot_costs(movements=movements),
            upper_bound=criteria.date_to,
        )

        assert history.count == 0
        assert buckets[0].current_qty == Decimal("10")


class TestSelection:

    def test_partition_by_direction(self, make_movement):
        movements = [
            make_movement("RECEIPT", date(2024, 1, 1), 10),
            make_movement("ISSUE", date(2024, 1, 2), 3),
        ]

        history = filter_movements(
            movements=movements, criteria=HistoryCriteria(date_to=date(2024, 12, 31))
        )

        assert [r.is_receipt for r in history.receipts] == [True]
        assert [r.is_issue for r in history.issues] == [True]
        assert history.count == 2

    def test_lot_query_is_case_insensitive_substring(self, make_movement):
        movements = [
            make_movement("RECEIPT", date(2024, 1, 1), 1, lot="AB-123"),
            make_movement("RECEIPT", date(2024, 1, 1), 2, lot="XY-999"),
            make_movement("RECEIPT", date(2024, 1, 1), 3, lot=None),
        ]

        history = filter_movements(
            movements=movements,
            criteria=HistoryCriteria(date_to=date(2024, 12, 31), lot_query=" b-12 "),
        )

        assert [r.lot_ref for r in history.receipts] == ["AB-123"]

    def test_empty_lot_query_matches_missing_lot(self, make_movement):
        movements = [make_movement("RECEIPT", date(2024, 1, 1), 3, lot=None)]

        history = filter_movements(
            movements=movements, criteria=HistoryCriteria(date_to=date(2024, 12, 31))
        )

        assert len(history.receipts) == 1

    def test_ownership(self, make_movement):
        movements = [
            make_movement("ISSUE", date(2024, 1, 1), 1, sub_owner="INAKI SL"),
            make_movement("ISSUE", date(2024, 1, 1), 2, sub_owner="HEIPLOEG B.V"),
        ]

        history = filter_movements(
            movements=movements,
            criteria=HistoryCriteria(
                date_to=date(2024, 12, 31),
                ownership=OwnershipFilter(sub_owner="HEIPLOEG B.V"),
            ),
        )

        assert [r.quantity for r in history.issues] == [Decimal("2")]


class TestOrdering:

    def test_newest_first_and_stable_within_a_day(self, make_movement):
        movements = [
            make_movement("RECEIPT", date(2024, 1, 5), 1),
            make_movement("RECEIPT", date(2024, 1, 9), 2),
            make_movement("RECEIPT", date(2024, 1, 5), 3),
        ]

        history = filter_movements(
            movements=movements, criteria=HistoryCriteria(date_to=date(2024, 12, 31))
        )

        assert [r.movement_id for r in history.receipts] == ["m2", "m1", "m3"]

    def test_empty_ledger(self):
        history = filter_movements(
            movements=[], criteria=HistoryCriteria(date_to=date(2024, 12, 31))
        )

        assert history == MovementHistory()
