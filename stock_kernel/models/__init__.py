"""ORM models for the stock kernel."""

from stock_kernel.models.lookup_entry import LookupEntryModel
from stock_kernel.models.movement import MovementModel


def import_all_models() -> None:
    """Ensure every model module is imported so Base.metadata is complete."""
    from stock_kernel.models import lookup_entry, movement  # noqa: F401


__all__ = [
    "LookupEntryModel",
    "MovementModel",
    "import_all_models",
]
