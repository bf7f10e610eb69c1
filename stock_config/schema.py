"""
Configuration Schema (``stock_config.schema``).

Frozen dataclasses for the parsed YAML configuration.  The loader builds
them; everything else only reads them.

Invariants enforced
-------------------
* Every dataclass is ``frozen=True``.
* epsilon is a positive ``Decimal``; day thresholds are ordered.
* ``arrival_year_policy`` is one of ``first_seen`` / ``earliest``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ValuationSettings:
    """Engine parameters."""

    epsilon: Decimal = Decimal("0.001")
    arrival_year_policy: str = "first_seen"


@dataclass(frozen=True)
class ExpirySettings:
    """Expiry tier thresholds, in days."""

    critical_below_days: int = 30
    warning_max_days: int = 45


@dataclass(frozen=True)
class ReportingSettings:
    """Presentation options.  ``labels`` overrides individual report texts."""

    labels: tuple[tuple[str, Any], ...] = ()
    quantity_decimals: int = 2
    value_decimals: int = 3
    csv_delimiter: str = ";"
    show_values: bool = False
    include_history: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "labels": dict(self.labels),
            "quantity_decimals": self.quantity_decimals,
            "value_decimals": self.value_decimals,
            "csv_delimiter": self.csv_delimiter,
            "show_values": self.show_values,
            "include_history": self.include_history,
        }


@dataclass(frozen=True)
class LookupSeeds:
    """Initial contents of the lookup lists."""

    products: tuple[str, ...] = ()
    owners: tuple[str, ...] = ()
    sub_owners: tuple[str, ...] = ()

    def as_mapping(self) -> dict[str, tuple[str, ...]]:
        return {
            "products": self.products,
            "owners": self.owners,
            "sub_owners": self.sub_owners,
        }


@dataclass(frozen=True)
class StockConfiguration:
    """Complete application configuration."""

    valuation: ValuationSettings = field(default_factory=ValuationSettings)
    expiry: ExpirySettings = field(default_factory=ExpirySettings)
    reporting: ReportingSettings = field(default_factory=ReportingSettings)
    lookups: LookupSeeds = field(default_factory=LookupSeeds)
    database_url: str = "sqlite:///stock.db"
    source_path: str | None = None
    checksum: str = ""
