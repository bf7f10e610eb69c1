"""Kernel services - the imperative shell around the movement ledger."""

from stock_kernel.services.ledger_store import LOOKUP_LISTS, LedgerStore

__all__ = [
    "LOOKUP_LISTS",
    "LedgerStore",
]
