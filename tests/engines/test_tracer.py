"""Tests for the engine tracer decorator and input fingerprints."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from stock_engines.balance import aggregate_balances
from stock_engines.lot_cost import ArrivalYearPolicy, resolve_lot_costs
from stock_engines.tracer import compute_input_fingerprint, traced_engine


class TestFingerprint:

    def test_deterministic(self):
        kwargs = {"upper_bound": date(2024, 1, 31), "epsilon": Decimal("0.001")}

        first = compute_input_fingerprint(("upper_bound", "epsilon"), kwargs)
        second = compute_input_fingerprint(("upper_bound", "epsilon"), dict(kwargs))

        assert first == second
        assert len(first) == 16

    def test_dict_key_order_does_not_matter(self):
        a = compute_input_fingerprint(("labels",), {"labels": {"a": 1, "b": 2}})
        b = compute_input_fingerprint(("labels",), {"labels": {"b": 2, "a": 1}})

        assert a == b

    def test_changes_with_input(self):
        a = compute_input_fingerprint(("epsilon",), {"epsilon": Decimal("0.001")})
        b = compute_input_fingerprint(("epsilon",), {"epsilon": Decimal("0.01")})

        assert a != b

    def test_missing_field_recorded_as_null(self):
        missing = compute_input_fingerprint(("policy",), {})
        explicit = compute_input_fingerprint(("policy",), {"policy": None})

        assert missing == explicit

    def test_records_fingerprinted_by_content(self, make_movement):
        first = make_movement("RECEIPT", date(2024, 1, 1), 5, value="50")
        copy = replace(first)
        heavier = replace(first, quantity=Decimal("6"))

        def fp(record):
            return compute_input_fingerprint(("movements",), {"movements": [record]})

        assert fp(first) == fp(copy)
        assert fp(first) != fp(heavier)

    def test_enum_uses_its_value(self):
        a = compute_input_fingerprint(("policy",), {"policy": ArrivalYearPolicy.EARLIEST})
        b = compute_input_fingerprint(("policy",), {"policy": "earliest"})

        assert a == b


class TestTracedEngine:

    def test_emits_trace_record(self, captured_logs):
        @traced_engine("sample", "2.1", fingerprint_fields=("value",))
        def double(*, value):
            return value * 2

        assert double(value=21) == 42

        traces = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(("value",), {"value": 21})
        assert trace["duration_ms"] >= 0
        assert trace["logger"] == "stock_kernel.engines.tracer"
        assert trace["result_size"] is None

    def test_result_size(self, captured_logs):
        @traced_engine("listing", "1.0")
        def listing():
            return [1, 2, 3]

        listing()

        trace = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"][0]
        assert trace["result_size"] == 3

    def test_no_fingerprint_fields(self, captured_logs):
        @traced_engine("bare", "1.0")
        def noop():
            return None

        noop()

        trace = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"][0]
        assert trace["input_fingerprint"] == ""

    def test_real_engine_is_traced(self, captured_logs, make_movement):
        resolve_lot_costs(movements=[make_movement("RECEIPT", date(2024, 1, 1), 5)])

        names = [r.get("engine_name") for r in captured_logs()]
        assert "lot_cost" in names

    def test_wrapper_preserves_name(self):
        assert resolve_lot_costs.__name__ == "resolve_lot_costs"


class TestEngineFingerprints:

    @staticmethod
    def _balance_fingerprints(captured_logs):
        return [
            r["input_fingerprint"]
            for r in captured_logs()
            if r.get("engine_name") == "balance"
        ]

    def _run_balance(self, movements):
        aggregate_balances(
            movements=movements,
            lot_costs=resolve_lot_costs(movements=movements),
            upper_bound=date(2024, 12, 31),
        )

    def test_different_ledgers_fingerprint_differently(self, captured_logs, make_movement):
        """Same parameters over another ledger must not look like the same report."""
        ledger_a = [make_movement("RECEIPT", date(2024, 1, 1), 5, value="50")]
        ledger_b = [make_movement("RECEIPT", date(2024, 1, 1), 7, value="50")]

        self._run_balance(ledger_a)
        self._run_balance(ledger_b)

        first, second = self._balance_fingerprints(captured_logs)
        assert first != second

    def test_generator_input_is_collected_once(self, captured_logs, make_movement):
        ledger = [
            make_movement("RECEIPT", date(2024, 1, 1), 5, value="50"),
            make_movement("ISSUE", date(2024, 2, 1), 2),
        ]
        lot_costs = resolve_lot_costs(movements=ledger)

        from_list = aggregate_balances(
            movements=ledger, lot_costs=lot_costs, upper_bound=date(2024, 12, 31)
        )
        from_generator = aggregate_balances(
            movements=(m for m in ledger), lot_costs=lot_costs, upper_bound=date(2024, 12, 31)
        )

        assert from_generator == from_list
        assert from_generator[0].current_qty == Decimal("3")
        first, second = self._balance_fingerprints(captured_logs)
        assert first == second

    def test_direct_fingerprint_of_iterator_refused(self):
        with pytest.raises(TypeError, match="iterator"):
            compute_input_fingerprint(("movements",), {"movements": iter([1, 2])})

    def test_set_order_does_not_matter(self):
        a = compute_input_fingerprint(("lots",), {"lots": {"L1", "L2", "L3"}})
        b = compute_input_fingerprint(("lots",), {"lots": {"L3", "L1", "L2"}})

        assert a == b
