"""
Report exports (``stock_modules.reporting.export``).

Responsibility
--------------
Write the stock report to a delimited text file (spreadsheet friendly,
UTF-8 with BOM) and to an xlsx workbook laid out like the printed
document report.

Architecture position
---------------------
**Modules layer** -- the only file I/O in reporting.  Reads its rows from
``layout`` and the bucket list; never recomputes balances or totals.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import date
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from stock_engines.balance import InventoryBucket
from stock_kernel.domain.movement import MovementRecord
from stock_kernel.logging_config import get_logger
from stock_modules.reporting.config import ReportingConfig
from stock_modules.reporting.formatting import format_date, format_number
from stock_modules.reporting.layout import (
    RowKind,
    build_history_rows,
    build_report_rows,
    issue_columns,
    receipt_columns,
    report_columns,
)
from stock_modules.reporting.models import StockReport

logger = get_logger("modules.reporting.export")

_BOM = "\ufeff"

# Fill colours per row kind (RGB hex)
_FILLS: dict[RowKind, str] = {
    RowKind.OWNER_HEADER: "1E40AF",
    RowKind.SUB_OWNER_HEADER: "EBF5FF",
    RowKind.COLUMN_HEADER: "F1F5F9",
    RowKind.YEAR_HEADER: "F8FAFC",
    RowKind.ROLLUP_HEADER: "F0F0F0",
    RowKind.SUB_OWNER_TOTAL: "E0E7FF",
    RowKind.OWNER_TOTAL: "DCE6FF",
    RowKind.GRAND_TOTAL: "C7D2FE",
}

_BOLD_KINDS = frozenset(_FILLS) | {RowKind.ROLLUP}


def render_csv(
    buckets: Iterable[InventoryBucket],
    separate_by_year: bool,
    config: ReportingConfig | None = None,
) -> str:
    """
    Delimited export of the bucket list: BOM, title line, header row and
    one row per bucket in display order.
    """
    config = config or ReportingConfig()
    labels = config.labels
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=config.csv_delimiter, lineterminator="\n")

    title = labels.available_title
    if separate_by_year:
        title = f"{title} {labels.by_year_suffix}"
    buffer.write(f"{_BOM}=== {title} ===\n")
    writer.writerow(labels.csv_columns)

    count = 0
    for bucket in buckets:
        writer.writerow(
            [
                bucket.product,
                bucket.class_code or "",
                bucket.owner or "",
                bucket.sub_owner or "",
                bucket.year if separate_by_year and bucket.year else labels.missing_value,
                format_number(bucket.current_qty, config.quantity_decimals),
                bucket.unit.value,
                format_number(bucket.current_value, config.value_decimals),
            ]
        )
        count += 1

    logger.info("csv_rendered", extra={"rows": count})
    return buffer.getvalue()


def write_csv(
    path: str | Path,
    buckets: Iterable[InventoryBucket],
    separate_by_year: bool,
    config: ReportingConfig | None = None,
) -> Path:
    """Write ``render_csv`` output to ``path``."""
    target = Path(path)
    content = render_csv(buckets, separate_by_year, config)
    with target.open("w", encoding="utf-8", newline="") as fh:
        fh.write(content)
    logger.info("csv_exported", extra={"path": str(target)})
    return target


def _append_table(ws, title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    ws.append([title])
    ws.cell(row=ws.max_row, column=1).font = Font(bold=True, size=13)
    ws.append(list(columns))
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(list(row))


_MIN_WIDTH = 10
_MAX_WIDTH = 50


def _fit_columns(ws, width: int) -> None:
    """
    Size the first ``width`` columns to their longest text.

    Titles and merged cells are left out: rows holding a single value
    (sheet and table titles) and any cell inside a merged range.
    """
    merged = {
        (row, column)
        for cell_range in ws.merged_cells.ranges
        for row, column in cell_range.cells
    }
    longest = [0] * width
    for row in ws.iter_rows(max_col=width):
        filled = [cell for cell in row if cell.value not in (None, "")]
        if len(filled) < 2:
            continue
        for cell in filled:
            if (cell.row, cell.column) in merged:
                continue
            index = cell.column - 1
            longest[index] = max(longest[index], len(str(cell.value)))
    for index, length in enumerate(longest, start=1):
        ws.column_dimensions[get_column_letter(index)].width = min(
            max(length + 2, _MIN_WIDTH), _MAX_WIDTH
        )


def build_workbook(
    report: StockReport,
    generated_on: date,
    config: ReportingConfig | None = None,
    receipts: Sequence[MovementRecord] = (),
    issues: Sequence[MovementRecord] = (),
) -> Workbook:
    """
    Document report as a workbook.

    The "Stock" sheet holds the grouped report rows.  With
    ``config.include_history`` the "Receipts" and "Issues" sheets list
    the filtered movements.
    """
    config = config or ReportingConfig()
    labels = config.labels
    width = len(report_columns(config, report.separate_by_year))

    wb = Workbook()
    ws = wb.active
    ws.title = "Stock"
    ws.append([labels.title])
    ws["A1"].font = Font(bold=True, size=16)
    ws.append([f"Generated on: {format_date(generated_on)}"])
    ws.append([])
    ws.append([labels.available_title])
    ws.cell(row=ws.max_row, column=1).font = Font(bold=True, size=14)

    totals = (RowKind.SUB_OWNER_TOTAL, RowKind.OWNER_TOTAL, RowKind.GRAND_TOTAL)
    for row in build_report_rows(report, config):
        values = list(row.cells)
        if row.kind in totals and len(values) == 2 and width > 2:
            # amount sits in the value column
            values = [values[0]] + [None] * (width - 2) + [values[1]]
        ws.append(values)
        current = ws.max_row
        fill = _FILLS.get(row.kind)
        for cell in ws[current]:
            if fill is not None:
                cell.fill = PatternFill("solid", fgColor=fill)
            if row.kind in _BOLD_KINDS:
                cell.font = Font(
                    bold=True,
                    color="FFFFFF" if row.kind == RowKind.OWNER_HEADER else None,
                )
        if row.is_spanning and width > 1:
            ws.merge_cells(start_row=current, start_column=1, end_row=current, end_column=width)
        elif row.kind in totals and width > 2:
            ws.merge_cells(start_row=current, start_column=1, end_row=current, end_column=width - 1)
        if row.kind in totals:
            ws.cell(row=current, column=1).alignment = Alignment(horizontal="right")
    _fit_columns(ws, width)

    if config.include_history:
        receipts_ws = wb.create_sheet("Receipts")
        _append_table(
            receipts_ws,
            labels.receipts_title,
            receipt_columns(config),
            build_history_rows(receipts, config, with_values=config.show_values),
        )
        _fit_columns(receipts_ws, len(receipt_columns(config)))

        issues_ws = wb.create_sheet("Issues")
        _append_table(
            issues_ws,
            labels.issues_title,
            issue_columns(),
            build_history_rows(issues, config),
        )
        _fit_columns(issues_ws, len(issue_columns()))

    return wb


def write_workbook(
    path: str | Path,
    report: StockReport,
    generated_on: date,
    config: ReportingConfig | None = None,
    receipts: Sequence[MovementRecord] = (),
    issues: Sequence[MovementRecord] = (),
) -> Path:
    """Build the workbook and save it to ``path``."""
    target = Path(path)
    wb = build_workbook(report, generated_on, config, receipts, issues)
    wb.save(target)
    logger.info(
        "workbook_exported",
        extra={"path": str(target), "sheets": wb.sheetnames},
    )
    return target
