"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the typed
``stock_config.schema`` dataclasses.  The single public entry point for
runtime config is ``stock_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel's
exception hierarchy only; no dependency on engines, modules or services.

Invariants enforced
-------------------
* Every value is type- and range-checked; a bad value raises
  ``InvalidConfigurationError`` naming the dotted key.
* Unknown keys are rejected rather than silently ignored.
* Missing keys fall back to the schema defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or mistyped value  -> ``InvalidConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import (
    ExpirySettings,
    LookupSeeds,
    ReportingSettings,
    StockConfiguration,
    ValuationSettings,
)
from stock_kernel.exceptions import InvalidConfigurationError

ARRIVAL_YEAR_POLICIES = ("first_seen", "earliest")

_TOP_LEVEL_KEYS = frozenset({"database_url", "valuation", "expiry", "reporting", "lookups"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidConfigurationError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError("<root>", "configuration must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str, allowed: set[str]) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfigurationError(name, "must be a mapping")
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise InvalidConfigurationError(f"{name}.{unknown[0]}", "unknown key")
    return section


def _int(key: str, value: Any, minimum: int = 0) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(key, f"expected an integer, got {value!r}")
    if value < minimum:
        raise InvalidConfigurationError(key, f"must be >= {minimum}, got {value}")
    return value


def _bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfigurationError(key, f"expected true/false, got {value!r}")
    return value


def _names(key: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidConfigurationError(key, "expected a list of names")
    return tuple(value)


def parse_valuation(data: dict[str, Any]) -> ValuationSettings:
    section = _section(data, "valuation", {"epsilon", "arrival_year_policy"})
    defaults = ValuationSettings()

    epsilon = defaults.epsilon
    if "epsilon" in section:
        raw = section["epsilon"]
        if isinstance(raw, bool):
            raise InvalidConfigurationError("valuation.epsilon", f"not a number: {raw!r}")
        try:
            epsilon = Decimal(str(raw))
        except InvalidOperation:
            raise InvalidConfigurationError(
                "valuation.epsilon", f"not a number: {raw!r}"
            ) from None
        if not epsilon.is_finite() or epsilon < 0:
            raise InvalidConfigurationError(
                "valuation.epsilon", f"must be a non-negative number, got {raw!r}"
            )

    policy = section.get("arrival_year_policy", defaults.arrival_year_policy)
    if policy not in ARRIVAL_YEAR_POLICIES:
        raise InvalidConfigurationError(
            "valuation.arrival_year_policy",
            f"expected one of {', '.join(ARRIVAL_YEAR_POLICIES)}, got {policy!r}",
        )
    return ValuationSettings(epsilon=epsilon, arrival_year_policy=policy)


def parse_expiry(data: dict[str, Any]) -> ExpirySettings:
    section = _section(data, "expiry", {"critical_below_days", "warning_max_days"})
    defaults = ExpirySettings()
    critical = _int(
        "expiry.critical_below_days",
        section.get("critical_below_days", defaults.critical_below_days),
    )
    warning = _int(
        "expiry.warning_max_days",
        section.get("warning_max_days", defaults.warning_max_days),
    )
    if warning < critical:
        raise InvalidConfigurationError(
            "expiry.warning_max_days",
            f"must be >= critical_below_days ({critical}), got {warning}",
        )
    return ExpirySettings(critical_below_days=critical, warning_max_days=warning)


def parse_reporting(data: dict[str, Any]) -> ReportingSettings:
    section = _section(
        data,
        "reporting",
        {
            "labels",
            "quantity_decimals",
            "value_decimals",
            "csv_delimiter",
            "show_values",
            "include_history",
        },
    )
    defaults = ReportingSettings()

    labels = section.get("labels") or {}
    if not isinstance(labels, dict):
        raise InvalidConfigurationError("reporting.labels", "must be a mapping")
    for name, text in labels.items():
        if name == "csv_columns":
            _names("reporting.labels.csv_columns", text)
        elif not isinstance(text, str):
            raise InvalidConfigurationError(f"reporting.labels.{name}", "expected text")

    delimiter = section.get("csv_delimiter", defaults.csv_delimiter)
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise InvalidConfigurationError(
            "reporting.csv_delimiter", f"expected a single character, got {delimiter!r}"
        )

    return ReportingSettings(
        labels=tuple(
            (name, tuple(text) if isinstance(text, list) else text)
            for name, text in sorted(labels.items())
        ),
        quantity_decimals=_int(
            "reporting.quantity_decimals",
            section.get("quantity_decimals", defaults.quantity_decimals),
        ),
        value_decimals=_int(
            "reporting.value_decimals",
            section.get("value_decimals", defaults.value_decimals),
        ),
        csv_delimiter=delimiter,
        show_values=_bool("reporting.show_values", section.get("show_values", defaults.show_values)),
        include_history=_bool(
            "reporting.include_history",
            section.get("include_history", defaults.include_history),
        ),
    )


def parse_lookups(data: dict[str, Any]) -> LookupSeeds:
    section = _section(data, "lookups", {"products", "owners", "sub_owners"})
    return LookupSeeds(
        products=_names("lookups.products", section.get("products", [])),
        owners=_names("lookups.owners", section.get("owners", [])),
        sub_owners=_names("lookups.sub_owners", section.get("sub_owners", [])),
    )


def parse_configuration(data: dict[str, Any], source_path: str | None = None) -> StockConfiguration:
    """
    Parse a raw configuration mapping.

    Raises:
        InvalidConfigurationError: On any unknown key or bad value.
    """
    unknown = sorted(set(data) - _TOP_LEVEL_KEYS)
    if unknown:
        raise InvalidConfigurationError(unknown[0], "unknown key")

    database_url = data.get("database_url", StockConfiguration().database_url)
    if not isinstance(database_url, str) or not database_url.strip():
        raise InvalidConfigurationError("database_url", "expected a database URL")

    return StockConfiguration(
        valuation=parse_valuation(data),
        expiry=parse_expiry(data),
        reporting=parse_reporting(data),
        lookups=parse_lookups(data),
        database_url=database_url,
        source_path=source_path,
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> StockConfiguration:
    """Load and parse the YAML file at ``path``."""
    return parse_configuration(load_yaml_file(path), source_path=str(path))
