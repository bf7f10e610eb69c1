"""
Tests for the JSON log output and log context (stock_kernel/logging_config.py).

Covers:
- Line shape, extra fields and value rendering
- Context fields merged into lines, and their precedence over extras
- Exception details from kernel errors
- Context binding, nesting and field validation
- Import id on every line of one file import
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from stock_kernel.logging_config import (
    CONTEXT_FIELDS,
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture
def log_stream():
    """A fresh JSON handler on the stock_kernel logger; yields a line reader."""
    reset_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler)

    def lines() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield lines
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestLineFormat:

    def test_core_keys(self, log_stream):
        get_logger("engines.balance").info("balances_aggregated")

        (line,) = log_stream()
        assert line["level"] == "INFO"
        assert line["message"] == "balances_aggregated"
        assert line["logger"] == "stock_kernel.engines.balance"
        assert line["ts"].endswith("+00:00")

    def test_extras_and_value_rendering(self, log_stream):
        row_id = uuid4()
        get_logger("test").info(
            "snapshot_computed",
            extra={
                "buckets": 3,
                "grand_total_value": Decimal("1050.000"),
                "date_to": date(2024, 12, 31),
                "row_id": row_id,
            },
        )

        (line,) = log_stream()
        assert line["buckets"] == 3
        assert line["grand_total_value"] == "1050.000"
        assert line["date_to"] == "2024-12-31"
        assert line["row_id"] == str(row_id)

    def test_below_level_dropped(self, log_stream):
        logger = get_logger("test")
        logger.debug("hidden")
        logger.warning("shown")

        assert [line["message"] for line in log_stream()] == ["shown"]

    def test_plain_exception(self, log_stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").exception("failed")

        (line,) = log_stream()
        assert line["exc_type"] == "ValueError"
        assert line["exc_message"] == "boom"
        assert "exc_code" not in line
        assert "Traceback" in line["traceback"]

    def test_kernel_error_details(self, log_stream):
        from stock_kernel.exceptions import InvalidMovementError

        try:
            raise InvalidMovementError("quantity", "quantity must be positive")
        except InvalidMovementError:
            get_logger("test").error("movement_rejected", exc_info=True)

        (line,) = log_stream()
        assert line["exc_code"] == "INVALID_MOVEMENT"
        assert line["exc_field"] == "quantity"
        assert line["exc_reason"] == "quantity must be positive"


class TestContextOnLines:

    def test_bound_fields_appear(self, log_stream):
        with LogContext.bind(snapshot_id="snap-1", import_id="imp-9"):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = log_stream()
        assert inside["snapshot_id"] == "snap-1"
        assert inside["import_id"] == "imp-9"
        assert not set(CONTEXT_FIELDS) & set(outside)

    def test_context_wins_over_extra(self, log_stream):
        with LogContext.bind(movement_id="mv-1"):
            get_logger("test").info("clash", extra={"movement_id": "mv-2"})

        (line,) = log_stream()
        assert line["movement_id"] == "mv-1"


class TestLogContext:

    def test_set_skips_none(self):
        LogContext.set(correlation_id="c", actor_id=None)
        assert LogContext.get_all() == {"correlation_id": "c"}

    def test_nested_bind_restores_each_level(self):
        LogContext.set(snapshot_id="outer")
        with LogContext.bind(snapshot_id="middle", movement_id="m"):
            with LogContext.bind(snapshot_id="inner"):
                assert LogContext.get_all() == {"snapshot_id": "inner", "movement_id": "m"}
            assert LogContext.get_all() == {"snapshot_id": "middle", "movement_id": "m"}
        assert LogContext.get_all() == {"snapshot_id": "outer"}

    def test_bind_restores_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(import_id="imp"):
                raise RuntimeError("stop")
        assert LogContext.get_all() == {}

    def test_fields_listed_in_declared_order(self):
        LogContext.set(**{name: name.upper() for name in reversed(CONTEXT_FIELDS)})
        assert tuple(LogContext.get_all()) == CONTEXT_FIELDS

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="lot_id"):
            LogContext.set(lot_id="L1")
        with pytest.raises(TypeError):
            with LogContext.bind(warehouse="W1"):
                pass

    def test_clear(self):
        LogContext.set(trace_id="t")
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_is_ignored(self, log_stream):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert len(logging.getLogger("stock_kernel").handlers) == 1

    def test_does_not_propagate(self, log_stream):
        assert logging.getLogger("stock_kernel").propagate is False

    def test_formatter_installed_on_given_handler(self):
        reset_logging()
        handler = logging.StreamHandler(StringIO())
        configure_logging(handler=handler, level=logging.DEBUG)
        try:
            assert isinstance(handler.formatter, StructuredFormatter)
            assert logging.getLogger("stock_kernel").level == logging.DEBUG
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)


class TestImportContext:

    def test_import_lines_share_one_import_id(self, ledger_store, tmp_path, captured_logs):
        from stock_ingestion import import_movements

        source = tmp_path / "movements.csv"
        source.write_text(
            "Kind;Date;Product;Unit;Quantity;Lot;Class-Code;Owner;Sub Owner;Total Value;Expiry Date\n"
            "RECEIPT;2024-06-01;Anchois Frais;KG;10;L1;;DAM PECHE SARL;INAKI SL;100;\n",
            encoding="utf-8",
        )

        import_movements(source, ledger_store, {"delimiter": ";"})

        ids = {r["import_id"] for r in captured_logs() if "import_id" in r}
        assert len(ids) == 1
