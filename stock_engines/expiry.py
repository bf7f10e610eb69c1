"""
stock_engines.expiry -- Expiry urgency of a received lot.

Pure classification: the caller supplies "today".  No clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class ExpiryTier(str, Enum):
    """Urgency shown next to a receipt."""

    CRITICAL = "critical"
    WARNING = "warning"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class ExpiryThresholds:
    """
    Day thresholds.  Fewer than ``critical_below_days`` days left is
    critical; up to ``warning_max_days`` days left (inclusive) is a warning.
    """

    critical_below_days: int = 30
    warning_max_days: int = 45

    def __post_init__(self) -> None:
        if self.warning_max_days < self.critical_below_days:
            raise ValueError(
                f"warning_max_days ({self.warning_max_days}) must be >= "
                f"critical_below_days ({self.critical_below_days})"
            )


def days_until(expiry_date: date, today: date) -> int:
    """Whole days from ``today`` to ``expiry_date``; negative once expired."""
    return (expiry_date - today).days


def classify_expiry(
    expiry_date: date | None,
    today: date,
    thresholds: ExpiryThresholds = ExpiryThresholds(),
) -> ExpiryTier:
    """Classify a receipt's expiry date.  Expired lots are CRITICAL."""
    if expiry_date is None:
        return ExpiryTier.NONE
    remaining = days_until(expiry_date, today)
    if remaining < thresholds.critical_below_days:
        return ExpiryTier.CRITICAL
    if remaining <= thresholds.warning_max_days:
        return ExpiryTier.WARNING
    return ExpiryTier.NONE
