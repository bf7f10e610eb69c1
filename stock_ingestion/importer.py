"""
Movement import: file -> drafts -> validated batch -> ledger.

The whole file is mapped and validated before the first write, so a bad
row leaves the ledger untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from uuid import uuid4

from stock_ingestion.adapters.csv_adapter import CsvSourceAdapter
from stock_ingestion.mapping import map_row
from stock_kernel.domain.movement import MovementDraft, MovementRecord
from stock_kernel.domain.validation import validate_movement
from stock_kernel.exceptions import InvalidMovementError, MovementImportError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.services.ledger_store import LedgerStore

logger = get_logger("ingestion.importer")


def read_drafts(source_path: Path, options: dict[str, Any] | None = None) -> list[MovementDraft]:
    """
    Map and validate every row of ``source_path``.

    Raises:
        MovementImportError: On the first row that cannot be mapped or
            fails the entry rules (row numbers count data rows from 1).
    """
    options = options or {}
    drafts: list[MovementDraft] = []
    for row_number, row in enumerate(CsvSourceAdapter().read(Path(source_path), options), start=1):
        draft = map_row(row, row_number)
        try:
            validate_movement(draft, movement_id=f"row-{row_number}")
        except InvalidMovementError as exc:
            raise MovementImportError(row_number, f"{exc.field}: {exc.reason}") from exc
        drafts.append(draft)
    return drafts


def import_movements(
    source_path: Path | str,
    store: LedgerStore,
    options: dict[str, Any] | None = None,
) -> list[MovementRecord]:
    """Import a delimited file into ``store`` in a single transaction."""
    with LogContext.bind(import_id=str(uuid4())):
        drafts = read_drafts(Path(source_path), options)
        records = store.save_movements(drafts)
        logger.info(
            "movement_file_imported",
            extra={"source": str(source_path), "rows": len(records)},
        )
    return records
