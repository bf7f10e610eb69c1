"""
Row mapping: one source row -> one MovementDraft.

Recognised columns (headers are matched case-insensitively, spaces and
dashes read as underscores):

    kind          RECEIPT / ISSUE (also IN / OUT)        required
    date          YYYY-MM-DD or DD/MM/YYYY               required
    product, unit (KG / COUNT, "NOMBRE" accepted), quantity, lot,
    class_code, owner, sub_owner, total_value, expiry_date

Numbers accept a decimal comma and space-grouped thousands, the way
the delimited export writes them.  Entry rules (positive quantity,
required lot...) are not checked here; the importer runs the same
validation as the store.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from stock_kernel.domain.movement import MovementDraft, MovementKind, UnitKind
from stock_kernel.exceptions import MovementImportError

_KINDS = {
    "RECEIPT": MovementKind.RECEIPT,
    "IN": MovementKind.RECEIPT,
    "ISSUE": MovementKind.ISSUE,
    "OUT": MovementKind.ISSUE,
}

_UNITS = {
    "KG": UnitKind.WEIGHT,
    "WEIGHT": UnitKind.WEIGHT,
    "COUNT": UnitKind.COUNT,
    "NOMBRE": UnitKind.COUNT,
}

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


def parse_decimal(text: str) -> Decimal:
    """Parse "1 234,5", "1234.5" or "1,234.5" into a Decimal."""
    cleaned = text.replace(" ", "").replace("\u00a0", "").replace("\u202f", "")
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")
    value = Decimal(cleaned)
    if not value.is_finite():
        raise InvalidOperation(text)
    return value


def parse_date(text: str) -> date:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date {text!r}")


def _optional(row: dict[str, Any], key: str) -> str | None:
    value = row.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def map_row(row: dict[str, Any], row_number: int) -> MovementDraft:
    """
    Map a normalized source row to a draft.

    Raises:
        MovementImportError: If kind, unit, a date or a number cannot be read.
    """
    kind_text = (_optional(row, "kind") or "").upper()
    if kind_text not in _KINDS:
        raise MovementImportError(row_number, f"unknown movement kind {kind_text!r}")

    date_text = _optional(row, "date")
    if date_text is None:
        raise MovementImportError(row_number, "date is required")

    unit_text = (_optional(row, "unit") or "KG").upper()
    if unit_text not in _UNITS:
        raise MovementImportError(row_number, f"unknown unit {unit_text!r}")

    try:
        movement_date = parse_date(date_text)
        expiry_text = _optional(row, "expiry_date")
        expiry_date = parse_date(expiry_text) if expiry_text else None
    except ValueError as exc:
        raise MovementImportError(row_number, str(exc)) from exc

    numbers: dict[str, Decimal | None] = {}
    for key in ("quantity", "total_value"):
        text = _optional(row, key)
        try:
            numbers[key] = parse_decimal(text) if text is not None else None
        except InvalidOperation:
            raise MovementImportError(row_number, f"{key} is not a number: {text!r}") from None

    return MovementDraft(
        kind=_KINDS[kind_text],
        movement_date=movement_date,
        product=_optional(row, "product"),
        unit=_UNITS[unit_text],
        quantity=numbers["quantity"],
        lot_ref=_optional(row, "lot"),
        class_code=_optional(row, "class_code"),
        owner=_optional(row, "owner"),
        sub_owner=_optional(row, "sub_owner"),
        total_value=numbers["total_value"],
        expiry_date=expiry_date,
    )
