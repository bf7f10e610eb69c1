"""
Module: stock_kernel.models.lookup_entry
Responsibility: ORM persistence for the named pick lists (products,
    owners, sub-owners) offered when entering movements.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (list_name, entry_key) is unique, so adding the same name twice is
      a no-op rather than a duplicate row.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase


class LookupEntryModel(TrackedBase):
    """A single name in one lookup list."""

    __tablename__ = "lookup_entries"

    __table_args__ = (
        UniqueConstraint("list_name", "entry_key", name="uq_lookup_entry"),
    )

    list_name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Name with "/" replaced, used as the natural key
    entry_key: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<LookupEntryModel {self.list_name}:{self.name}>"
