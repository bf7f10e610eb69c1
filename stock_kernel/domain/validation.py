"""
Validation -- Entry rules that turn a draft into a ledger movement.

Responsibility:
    Enforce the rules a movement must satisfy before it reaches the
    ledger, and normalize free-text fields the same way every time.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Called by the ledger store and
    the CSV importer; never by the engines, which assume valid input.

Rules:
    - product is required (after trimming).
    - quantity is required and strictly positive.
    - lot reference is required; it is trimmed and upper-cased.
    - owner, sub-owner and class code are trimmed; blank means absent.
    - total value is kept for receipts only and may not be negative.
    - expiry date is kept for receipts only.

Failure modes:
    - InvalidMovementError carrying the offending field name.
"""

from __future__ import annotations

from decimal import Decimal

from stock_kernel.domain.movement import MovementDraft, MovementKind, MovementRecord
from stock_kernel.exceptions import InvalidMovementError
from stock_kernel.logging_config import get_logger

logger = get_logger("domain.validation")


def clean_text(value: str | None) -> str | None:
    """Trim a free-text value; blank strings become None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_name(value: str) -> str:
    """Canonical form for a lookup list entry (trimmed, upper-cased)."""
    return value.strip().upper()


def _reject(field: str, reason: str) -> InvalidMovementError:
    logger.warning("movement_rejected", extra={"field": field, "reason": reason})
    return InvalidMovementError(field, reason)


def validate_movement(draft: MovementDraft, movement_id: str) -> MovementRecord:
    """Validate ``draft`` and build the immutable record stored under ``movement_id``.

    Raises:
        InvalidMovementError: If any entry rule is violated.
    """
    product = clean_text(draft.product)
    if product is None:
        raise _reject("product", "product is required")

    if draft.quantity is None:
        raise _reject("quantity", "quantity is required")
    quantity = Decimal(draft.quantity)
    if not quantity.is_finite():
        raise _reject("quantity", f"quantity must be a finite number, got {quantity}")
    if quantity <= 0:
        raise _reject("quantity", f"quantity must be positive, got {quantity}")

    lot_ref = clean_text(draft.lot_ref)
    if lot_ref is None:
        raise _reject("lot_ref", "lot reference is required")

    is_receipt = draft.kind == MovementKind.RECEIPT
    total_value: Decimal | None = None
    if is_receipt and draft.total_value is not None:
        total_value = Decimal(draft.total_value)
        if not total_value.is_finite():
            raise _reject("total_value", f"total value must be a finite number, got {total_value}")
        if total_value < 0:
            raise _reject("total_value", f"total value cannot be negative, got {total_value}")

    return MovementRecord(
        movement_id=movement_id,
        kind=draft.kind,
        movement_date=draft.movement_date,
        product=product,
        unit=draft.unit,
        quantity=quantity,
        lot_ref=lot_ref.upper(),
        class_code=clean_text(draft.class_code),
        owner=clean_text(draft.owner),
        sub_owner=clean_text(draft.sub_owner),
        total_value=total_value,
        expiry_date=draft.expiry_date if is_receipt else None,
    )
