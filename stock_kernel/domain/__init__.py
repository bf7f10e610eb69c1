"""
Pure domain layer.

This module contains immutable value objects and domain rules
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (the Clock abstraction is injected, never read directly)
- I/O
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.filters import HistoryCriteria, OwnershipFilter
from stock_kernel.domain.movement import (
    MovementDraft,
    MovementKind,
    MovementRecord,
    UnitKind,
)
from stock_kernel.domain.validation import (
    clean_text,
    normalize_name,
    validate_movement,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "HistoryCriteria",
    "OwnershipFilter",
    "MovementDraft",
    "MovementKind",
    "MovementRecord",
    "UnitKind",
    "clean_text",
    "normalize_name",
    "validate_movement",
]
