"""
Pytest fixtures for the stock valuation test suite.

Provides:
- Structured log capture
- In-memory SQLite ledger (fresh database per test)
- Deterministic clock
- Movement record factory
"""

import itertools
import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from stock_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.domain.movement import MovementKind, MovementRecord, UnitKind
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_kernel.services.ledger_store import LedgerStore

TEST_LOOKUP_SEEDS = {
    "products": ("Anchois Frais", "CALAMARS", "BOBINAS"),
    "owners": ("DAMJIGUEND SARL", "DAM PECHE SARL"),
    "sub_owners": ("INAKI SL", "HEIPLOEG B.V"),
}


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "movement_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database with all tables created."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def ledger_store(session_factory) -> LedgerStore:
    """LedgerStore on the in-memory database with small lookup seeds."""
    return LedgerStore(session_factory, TEST_LOOKUP_SEEDS)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing (2024-06-15 12:00 UTC)."""
    return DeterministicClock()


@pytest.fixture
def make_movement():
    """
    Factory for MovementRecord with sensible defaults.

    Usage::

        receipt = make_movement("RECEIPT", date(2024, 1, 1), 100, value="1000")
    """
    counter = itertools.count(1)

    def _make(
        kind: str,
        movement_date: date,
        quantity,
        *,
        product: str = "ANCHOIS FRAIS",
        unit: UnitKind = UnitKind.WEIGHT,
        lot: str | None = "L1",
        owner: str | None = "DAM PECHE SARL",
        sub_owner: str | None = "INAKI SL",
        class_code: str | None = None,
        value=None,
        expiry: date | None = None,
    ) -> MovementRecord:
        return MovementRecord(
            movement_id=f"m{next(counter)}",
            kind=MovementKind(kind),
            movement_date=movement_date,
            product=product,
            unit=unit,
            quantity=Decimal(str(quantity)),
            lot_ref=lot,
            class_code=class_code,
            owner=owner,
            sub_owner=sub_owner,
            total_value=Decimal(str(value)) if value is not None else None,
            expiry_date=expiry,
        )

    return _make
