"""
Stock Reporting Module (``stock_modules.reporting``).

Responsibility
--------------
Read-only presentation of the valuation engines' output: the grouped
owner / sub-owner / year report with totals, number formatting, the
printable row layout and the delimited and workbook exports.

Architecture position
---------------------
**Modules layer** -- pure functions over engine output, plus file
writers in ``export``.  Nothing here touches the ledger.

Invariants enforced
-------------------
* Totals are computed once, in ``grouping``; layout and exports only
  format them.
* Bucket order from the aggregator is preserved everywhere.
"""

from stock_modules.reporting.config import ReportingConfig, ReportLabels
from stock_modules.reporting.export import (
    build_workbook,
    render_csv,
    write_csv,
    write_workbook,
)
from stock_modules.reporting.formatting import (
    export_file_name,
    format_date,
    format_number,
)
from stock_modules.reporting.grouping import build_stock_report
from stock_modules.reporting.layout import (
    ReportRow,
    RowKind,
    build_history_rows,
    build_report_rows,
)
from stock_modules.reporting.models import (
    OwnerGroup,
    ProductRollup,
    StockReport,
    SubOwnerGroup,
    YearGroup,
)

__all__ = [
    "ReportingConfig",
    "ReportLabels",
    "build_workbook",
    "render_csv",
    "write_csv",
    "write_workbook",
    "export_file_name",
    "format_date",
    "format_number",
    "build_stock_report",
    "ReportRow",
    "RowKind",
    "build_history_rows",
    "build_report_rows",
    "OwnerGroup",
    "ProductRollup",
    "StockReport",
    "SubOwnerGroup",
    "YearGroup",
]
