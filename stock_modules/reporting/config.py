"""
Reporting Configuration Schema.

Defines the display labels and number formats shared by the screen
report, the delimited export and the workbook export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from stock_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class ReportLabels:
    """
    Fixed texts of the stock report.

    ``missing_owner`` / ``missing_sub_owner`` stand in for an absent
    owner or sub-owner; ``all_years`` is the single year group used when
    buckets are not separated by year.
    """

    title: str = "STOCK REPORT"
    available_title: str = "STOCK AVAILABLE"
    by_year_suffix: str = "(BY YEAR)"
    receipts_title: str = "RECEIPTS HISTORY"
    issues_title: str = "ISSUES HISTORY"

    missing_owner: str = "-"
    missing_sub_owner: str = "-"
    missing_value: str = "-"
    all_years: str = "ALL"
    rollup_year: str = "TOTAL"

    owner_prefix: str = "OWNER"
    sub_owner_prefix: str = "SUB-OWNER"
    year_prefix: str = "YEAR"
    rollup_prefix: str = "PRODUCT SUMMARY"
    sub_owner_total_prefix: str = "SUB-OWNER TOTAL"
    owner_total_prefix: str = "OWNER TOTAL"
    grand_total: str = "GRAND TOTAL"

    # Delimited export header
    csv_columns: tuple[str, ...] = (
        "PRODUCT",
        "CLASS CODE",
        "OWNER",
        "SUB-OWNER",
        "YEAR",
        "QUANTITY",
        "UNIT",
        "REMAINING VALUE",
    )


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls labels, number precision and export options.
    """

    labels: ReportLabels = field(default_factory=ReportLabels)

    # Decimal places for display
    quantity_decimals: int = 2
    value_decimals: int = 3

    csv_delimiter: str = ";"

    # Show monetary values (and the value totals) in the document report
    show_values: bool = False

    # Append receipts / issues history sheets to the document report
    include_history: bool = False

    def __post_init__(self):
        if self.quantity_decimals < 0:
            raise ValueError("quantity_decimals cannot be negative")
        if self.value_decimals < 0:
            raise ValueError("value_decimals cannot be negative")
        if len(self.csv_delimiter) != 1:
            raise ValueError("csv_delimiter must be a single character")

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if "labels" in data and isinstance(data["labels"], dict):
            labels = dict(data["labels"])
            if "csv_columns" in labels:
                labels["csv_columns"] = tuple(labels["csv_columns"])
            data["labels"] = ReportLabels(**labels)
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
