"""Display formatting for quantities, values and dates."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

# Anything smaller prints as zero
_NEGLIGIBLE = Decimal("0.000001")


def format_number(value: Decimal | int, decimals: int = 2) -> str:
    """
    Fixed-point text with space-grouped thousands and a decimal comma.

    >>> format_number(Decimal("1234567.891"), 2)
    '1 234 567,89'
    """
    amount = Decimal(value)
    if abs(amount) < _NEGLIGIBLE:
        amount = Decimal("0")
    quantized = amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    if quantized.is_zero():
        quantized = abs(quantized)
    text = format(quantized, f",.{decimals}f")
    return text.replace(",", " ").replace(".", ",")


def format_date(value: date | None) -> str:
    """DD/MM/YYYY, or "-" when absent."""
    if value is None:
        return "-"
    return value.strftime("%d/%m/%Y")


def export_file_name(generated_on: date, extension: str) -> str:
    """stock_report_<YYYY-MM-DD>.<ext>"""
    return f"stock_report_{generated_on.isoformat()}.{extension.lstrip('.')}"
