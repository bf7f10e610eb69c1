"""
Document report layout (``stock_modules.reporting.layout``).

Responsibility
--------------
Flatten a ``StockReport`` into the ordered rows of the printable report
and the movement history into table rows.  Renderers (workbook export,
CLI) only style and place these rows; every number and total comes from
here, already formatted.

Row sequence per owner::

    OWNER_HEADER
      SUB_OWNER_HEADER
      COLUMN_HEADER
        YEAR_HEADER          (year-separated only)
        ITEM ...
      ROLLUP_HEADER          (year-separated, several years)
      ROLLUP ...
      SUB_OWNER_TOTAL        (values shown or year-separated)
    OWNER_TOTAL              (values shown)
    GRAND_TOTAL              (values shown, once at the end)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from stock_kernel.domain.movement import MovementRecord
from stock_modules.reporting.config import ReportingConfig
from stock_modules.reporting.formatting import format_date, format_number
from stock_modules.reporting.models import StockReport


class RowKind(str, Enum):
    OWNER_HEADER = "owner_header"
    SUB_OWNER_HEADER = "sub_owner_header"
    COLUMN_HEADER = "column_header"
    YEAR_HEADER = "year_header"
    ITEM = "item"
    ROLLUP_HEADER = "rollup_header"
    ROLLUP = "rollup"
    SUB_OWNER_TOTAL = "sub_owner_total"
    OWNER_TOTAL = "owner_total"
    GRAND_TOTAL = "grand_total"


@dataclass(frozen=True)
class ReportRow:
    """
    One printable row.  Header rows carry a single spanning cell; total
    rows carry a label cell and, when values are shown, the amount.
    """

    kind: RowKind
    cells: tuple[str, ...]

    @property
    def is_spanning(self) -> bool:
        return len(self.cells) == 1


def report_columns(config: ReportingConfig, separate_by_year: bool) -> tuple[str, ...]:
    columns = ["Product", "Class code", "Sub-owner", "Owner"]
    if separate_by_year:
        columns.append("Year")
    columns += ["Quantity", "Unit"]
    if config.show_values:
        columns.append("Value")
    return tuple(columns)


def build_report_rows(
    report: StockReport,
    config: ReportingConfig | None = None,
) -> tuple[ReportRow, ...]:
    """Lay out ``report`` as the ordered rows of the document report."""
    config = config or ReportingConfig()
    labels = config.labels
    separated = report.separate_by_year
    show_values = config.show_values
    columns = report_columns(config, separated)

    def qty(value) -> str:
        return format_number(value, config.quantity_decimals)

    def money(value) -> str:
        return format_number(value, config.value_decimals)

    rows: list[ReportRow] = []
    for owner in report.owners:
        rows.append(ReportRow(RowKind.OWNER_HEADER, (f"{labels.owner_prefix}: {owner.name}",)))

        for sub in owner.sub_owners:
            rows.append(
                ReportRow(RowKind.SUB_OWNER_HEADER, (f"{labels.sub_owner_prefix}: {sub.name}",))
            )
            rows.append(ReportRow(RowKind.COLUMN_HEADER, columns))

            for year in sub.years:
                if separated and year.year_key != labels.all_years:
                    rows.append(
                        ReportRow(RowKind.YEAR_HEADER, (f"{labels.year_prefix}: {year.year_key}",))
                    )
                for item in year.items:
                    cells = [
                        item.product,
                        item.class_code or labels.missing_value,
                        item.sub_owner or labels.missing_sub_owner,
                        item.owner or labels.missing_owner,
                    ]
                    if separated:
                        cells.append(item.year or labels.missing_value)
                    cells += [qty(item.current_qty), item.unit.value]
                    if show_values:
                        cells.append(money(item.current_value))
                    rows.append(ReportRow(RowKind.ITEM, tuple(cells)))

            if sub.rollup:
                rows.append(
                    ReportRow(RowKind.ROLLUP_HEADER, (f"{labels.rollup_prefix} - {sub.name}",))
                )
                for line in sub.rollup:
                    cells = [line.product, labels.missing_value, sub.name, owner.name]
                    if separated:
                        cells.append(labels.rollup_year)
                    cells += [qty(line.quantity), line.unit.value]
                    if show_values:
                        cells.append(money(line.value))
                    rows.append(ReportRow(RowKind.ROLLUP, tuple(cells)))

            if show_values or separated:
                cells = [f"{labels.sub_owner_total_prefix}: {sub.name}"]
                if show_values:
                    cells.append(money(sub.total_value))
                rows.append(ReportRow(RowKind.SUB_OWNER_TOTAL, tuple(cells)))

        if show_values:
            rows.append(
                ReportRow(
                    RowKind.OWNER_TOTAL,
                    (f"{labels.owner_total_prefix}: {owner.name}", money(owner.total_value)),
                )
            )

    if show_values:
        rows.append(
            ReportRow(RowKind.GRAND_TOTAL, (labels.grand_total, money(report.grand_total_value)))
        )
    return tuple(rows)


def receipt_columns(config: ReportingConfig) -> tuple[str, ...]:
    columns = ("Date", "Product", "Class code", "Qty", "Unit", "Lot", "Owner", "Sub-owner")
    return columns + ("Value",) if config.show_values else columns


def issue_columns() -> tuple[str, ...]:
    return ("Date", "Product", "Class code", "Qty", "Unit", "Lot", "Owner", "Sub-owner")


def build_history_rows(
    movements: Iterable[MovementRecord],
    config: ReportingConfig | None = None,
    with_values: bool = False,
) -> list[tuple[str, ...]]:
    """Table rows for a receipts or issues history, in the given order."""
    config = config or ReportingConfig()
    missing = config.labels.missing_value
    rows = []
    for record in movements:
        cells = [
            format_date(record.movement_date),
            record.product,
            record.class_code or missing,
            format_number(record.quantity, config.quantity_decimals),
            record.unit.value,
            record.lot_ref or missing,
            record.owner or missing,
            record.sub_owner or missing,
        ]
        if with_values:
            cells.append(format_number(record.value_or_zero, config.value_decimals))
        rows.append(tuple(cells))
    return rows
