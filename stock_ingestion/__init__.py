"""
stock_ingestion -- Bulk loading of movements from delimited files.

Reads source rows, maps them to movement drafts, validates every row
before anything is written, then stores the batch in one transaction.

Architecture:
    stock_ingestion/ is a top-level package. Nothing in kernel/,
    engines/, or modules/ imports from ingestion.
"""

from stock_ingestion.importer import import_movements
from stock_ingestion.mapping import map_row

__all__ = [
    "import_movements",
    "map_row",
]
