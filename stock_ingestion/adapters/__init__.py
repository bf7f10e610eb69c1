"""Source adapters - file I/O only, no DB or kernel imports."""

from stock_ingestion.adapters.csv_adapter import CsvSourceAdapter, normalize_header

__all__ = [
    "CsvSourceAdapter",
    "normalize_header",
]
