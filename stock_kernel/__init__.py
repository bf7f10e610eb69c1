"""
Stock Kernel

Movement ledger for a warehouse, with:
- Immutable receipt / issue records
- Entry validation at the store boundary
- Named lookup lists with seeding
- Structured JSON logging
"""

__version__ = "0.1.0"
