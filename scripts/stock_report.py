#!/usr/bin/env python3
"""
Print the stock report from the movement ledger, optionally exporting it.

Opens the ledger database (SQLite by default, from the configuration),
optionally imports a movement file first, applies the filters and prints
the grouped report.

Usage:
    python3 scripts/stock_report.py
    python3 scripts/stock_report.py --import movements.csv --by-year --show-values
    python3 scripts/stock_report.py --owner "DAM PECHE SARL" --to 2024-12-31 --csv out/
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stock balances and valuation from the movement ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--db", type=str, default=None, help="Database URL (overrides config)")
    parser.add_argument(
        "--import", dest="import_path", type=Path, default=None,
        help="Import movements from a delimited file before reporting",
    )
    parser.add_argument("--delimiter", type=str, default=None, help="Delimiter of the import file")
    parser.add_argument("--from", dest="date_from", type=_date, default=None, help="History start date")
    parser.add_argument("--to", dest="date_to", type=_date, default=None, help="Report date (default: today)")
    parser.add_argument("--owner", type=str, default=None, help="Only this owner")
    parser.add_argument("--sub-owner", type=str, default=None, help="Only this sub-owner")
    parser.add_argument("--lot", type=str, default="", help="Lot reference substring (history)")
    parser.add_argument("--by-year", action="store_true", help="Split balances by arrival year")
    parser.add_argument("--show-values", action="store_true", help="Show values and value totals")
    parser.add_argument("--include-history", action="store_true", help="Print and export the history")
    parser.add_argument("--csv", type=Path, default=None, help="Write the delimited export (file or directory)")
    parser.add_argument("--xlsx", type=Path, default=None, help="Write the workbook export (file or directory)")
    parser.add_argument("--verbose", action="store_true", help="Emit structured logs on stderr")
    return parser


def _target(path: Path, generated_on: date, extension: str) -> Path:
    from stock_modules.reporting.formatting import export_file_name

    if path.is_dir():
        return path / export_file_name(generated_on, extension)
    return path


def print_rows(rows, width: int) -> None:
    for row in rows:
        if row.is_spanning:
            print()
            print(f"  {row.cells[0]}")
        elif len(row.cells) < width:
            print(f"  {row.cells[0]:>60}  {' '.join(row.cells[1:])}")
        else:
            print("  " + " | ".join(f"{cell:<14}" for cell in row.cells))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    import logging
    from dataclasses import replace

    from stock_config import get_active_config
    from stock_ingestion import import_movements
    from stock_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from stock_kernel.domain.clock import SystemClock
    from stock_kernel.exceptions import StockKernelError
    from stock_kernel.logging_config import configure_logging
    from stock_kernel.services.ledger_store import LedgerStore
    from stock_modules.reporting.export import write_csv, write_workbook
    from stock_modules.reporting.layout import build_history_rows, build_report_rows, report_columns
    from stock_services.snapshot_service import SnapshotService, StockFilters

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        logging.disable(logging.CRITICAL)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, StockKernelError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2

    reporting = replace(
        config.reporting,
        show_values=args.show_values or config.reporting.show_values,
        include_history=args.include_history or config.reporting.include_history,
    )
    config = replace(config, reporting=reporting)

    init_engine_from_url(args.db or config.database_url)
    create_tables()
    store = LedgerStore(get_session_factory(), config.lookups.as_mapping())

    if args.import_path is not None:
        options = {"delimiter": args.delimiter or config.reporting.csv_delimiter}
        try:
            records = import_movements(args.import_path, store, options)
        except (OSError, StockKernelError) as exc:
            print(f"  ERROR: import failed: {exc}", file=sys.stderr)
            return 1
        print(f"  Imported {len(records)} movements from {args.import_path}")

    clock = SystemClock()
    service = SnapshotService(store, clock, config)
    service.set_year_separation(args.by_year)
    snapshot = service.apply_filters(
        StockFilters(
            date_to=args.date_to or clock.today(),
            date_from=args.date_from,
            owner=args.owner,
            sub_owner=args.sub_owner,
            lot_query=args.lot,
        )
    )
    report_config = service.reporting_config

    print()
    print(f"  {report_config.labels.title}  (as of {snapshot.filters.date_to.isoformat()})")
    if snapshot.report.is_empty:
        print("\n  No stock on hand.")
    else:
        columns = report_columns(report_config, snapshot.separate_by_year)
        print_rows(build_report_rows(snapshot.report, report_config), len(columns))

    if report_config.include_history:
        print(f"\n  {report_config.labels.receipts_title}")
        for cells in build_history_rows(
            snapshot.receipt_movements, report_config, with_values=report_config.show_values
        ):
            print("  " + " | ".join(cells))
        print(f"\n  {report_config.labels.issues_title}")
        for cells in build_history_rows(snapshot.issues, report_config):
            print("  " + " | ".join(cells))

    if args.csv is not None:
        path = write_csv(
            _target(args.csv, snapshot.generated_on, "csv"),
            snapshot.buckets,
            snapshot.separate_by_year,
            report_config,
        )
        print(f"\n  CSV written to {path}")
    if args.xlsx is not None:
        path = write_workbook(
            _target(args.xlsx, snapshot.generated_on, "xlsx"),
            snapshot.report,
            snapshot.generated_on,
            report_config,
            receipts=snapshot.receipt_movements,
            issues=snapshot.issues,
        )
        print(f"  Workbook written to {path}")

    service.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
