"""
Delimited movement file reader.

Yields one dict per data row, keyed by the normalized header
("Sub Owner" -> "sub_owner", "Class-Code" -> "class_code"), values
trimmed.  Rows whose cells are all empty (spreadsheet exports leave
them at the bottom) are skipped.

Options: ``delimiter`` (default ","), ``encoding`` (default utf-8, a
leading BOM is dropped), ``skip_rows`` (lines before the header).
"""

from __future__ import annotations

import csv
import re
from itertools import islice
from pathlib import Path
from typing import Any, Iterator

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_header(name: str | None) -> str:
    return _SEPARATORS.sub("_", (name or "").strip().lower())


def _encoding(options: dict[str, Any]) -> str:
    encoding = options.get("encoding", "utf-8")
    return "utf-8-sig" if encoding.lower().replace("_", "-") == "utf-8" else encoding


class CsvSourceAdapter:
    """Streams rows of a delimited file; no kernel or database imports."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, str]]:
        delimiter = options.get("delimiter", ",")
        skip_rows = int(options.get("skip_rows", 0))

        with Path(source_path).open("r", encoding=_encoding(options), newline="") as handle:
            lines = islice(handle, skip_rows, None)
            reader = csv.DictReader(lines, delimiter=delimiter)
            for row in reader:
                cleaned = {
                    normalize_header(key): (value or "").strip()
                    for key, value in row.items()
                    if key is not None
                }
                if any(cleaned.values()):
                    yield cleaned
