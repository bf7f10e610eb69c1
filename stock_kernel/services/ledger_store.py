"""
LedgerStore -- persistent movement ledger with change subscriptions.

Responsibility:
    Owns every write to the movement ledger and the lookup lists, and
    pushes complete snapshots to subscribers after each committed change.
    Callers get immutable ``MovementRecord`` tuples, never ORM rows.

Architecture position:
    Kernel > Services -- imperative shell.  Unlike a flush-only service
    the store owns its transactions: each public mutation runs in its own
    ``session_scope`` and subscribers are notified only after commit.

Invariants enforced:
    - Drafts pass ``validate_movement`` before anything is written.
    - Snapshots are ordered by movement date descending, then insertion
      order, and always hold the whole ledger (no server-side filtering).
    - Lookup names added by users are trimmed and upper-cased; adding an
      existing name is a no-op.
    - An empty lookup list is seeded from configuration the first time
      somebody subscribes to it.

Failure modes:
    - InvalidMovementError from validation.
    - MovementNotFoundError when updating or deleting an unknown id.
    - UnknownLookupListError for a list name other than products,
      owners or sub_owners.
    - SQLAlchemy errors propagate after rollback.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from stock_kernel.db.engine import session_scope
from stock_kernel.domain.movement import (
    MovementDraft,
    MovementKind,
    MovementRecord,
    UnitKind,
)
from stock_kernel.domain.validation import normalize_name, validate_movement
from stock_kernel.exceptions import MovementNotFoundError, UnknownLookupListError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.models.lookup_entry import LookupEntryModel
from stock_kernel.models.movement import MovementModel

logger = get_logger("services.ledger_store")

LOOKUP_LISTS: tuple[str, ...] = ("products", "owners", "sub_owners")

LedgerCallback = Callable[[tuple[MovementRecord, ...]], None]
LookupCallback = Callable[[tuple[str, ...]], None]


def _entry_key(name: str) -> str:
    return name.replace("/", "_")


def _to_record(row: MovementModel) -> MovementRecord:
    """Convert an ORM row to the immutable domain record."""
    return MovementRecord(
        movement_id=str(row.id),
        kind=MovementKind(row.kind),
        movement_date=row.movement_date,
        product=row.product,
        unit=UnitKind(row.unit),
        quantity=row.quantity,
        lot_ref=row.lot_ref,
        class_code=row.class_code,
        owner=row.owner,
        sub_owner=row.sub_owner,
        total_value=row.total_value,
        expiry_date=row.expiry_date,
    )


def _apply(row: MovementModel, record: MovementRecord) -> None:
    row.kind = record.kind.value
    row.movement_date = record.movement_date
    row.product = record.product
    row.unit = record.unit.value
    row.quantity = record.quantity
    row.lot_ref = record.lot_ref
    row.class_code = record.class_code
    row.owner = record.owner
    row.sub_owner = record.sub_owner
    row.total_value = record.total_value
    row.expiry_date = record.expiry_date


class LedgerStore:
    """
    Movement ledger and lookup lists backed by SQLAlchemy.

    Contract:
        ``subscribe`` delivers the current snapshot immediately and again
        after every committed mutation.  The returned callable removes
        the subscription.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        lookup_seeds: Mapping[str, Sequence[str]] | None = None,
    ):
        self._session_factory = session_factory
        self._lookup_seeds = {k: tuple(v) for k, v in (lookup_seeds or {}).items()}
        self._subscribers: list[LedgerCallback] = []
        self._lookup_subscribers: dict[str, list[LookupCallback]] = {
            name: [] for name in LOOKUP_LISTS
        }

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[MovementRecord, ...]:
        """Every movement, newest date first, insertion order within a date."""
        with session_scope(self._session_factory) as session:
            stmt = select(MovementModel).order_by(
                MovementModel.movement_date.desc(),
                MovementModel.seq.asc(),
            )
            rows = session.execute(stmt).scalars().all()
            return tuple(_to_record(row) for row in rows)

    def get_movement(self, movement_id: str) -> MovementRecord:
        """
        Raises:
            MovementNotFoundError: If no movement has this id.
        """
        with session_scope(self._session_factory) as session:
            return _to_record(self._get_row(session, movement_id))

    def save_movement(
        self,
        draft: MovementDraft,
        movement_id: str | None = None,
    ) -> MovementRecord:
        """
        Insert a new movement, or replace the fields of an existing one.

        Args:
            draft: Unvalidated movement fields.
            movement_id: Id of the movement to update; None inserts.

        Returns:
            The stored record.

        Raises:
            InvalidMovementError: If the draft fails validation.
            MovementNotFoundError: If ``movement_id`` is unknown.
        """
        with session_scope(self._session_factory) as session:
            record = self._write(session, draft, movement_id)

        self._publish()
        return record

    def save_movements(self, drafts: Iterable[MovementDraft]) -> list[MovementRecord]:
        """Insert several movements in one transaction; all or nothing."""
        with session_scope(self._session_factory) as session:
            records = [self._write(session, draft, None) for draft in drafts]

        logger.info("movements_imported", extra={"count": len(records)})
        self._publish()
        return records

    def delete_movement(self, movement_id: str) -> None:
        """
        Raises:
            MovementNotFoundError: If no movement has this id.
        """
        with session_scope(self._session_factory) as session:
            row = self._get_row(session, movement_id)
            session.delete(row)

        with LogContext.bind(movement_id=movement_id):
            logger.info("movement_deleted")
        self._publish()

    def subscribe(self, callback: LedgerCallback) -> Callable[[], None]:
        """Register for ledger snapshots; returns the unsubscribe callable."""
        self._subscribers.append(callback)
        callback(self.snapshot())

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _write(
        self,
        session: Session,
        draft: MovementDraft,
        movement_id: str | None,
    ) -> MovementRecord:
        if movement_id is not None:
            row = self._get_row(session, movement_id)
            record = validate_movement(draft, movement_id)
            _apply(row, record)
            session.flush()
            with LogContext.bind(movement_id=movement_id):
                logger.info("movement_updated", extra={"kind": record.kind.value})
            return record

        new_id = uuid4()
        record = validate_movement(draft, str(new_id))
        next_seq = session.execute(
            select(func.coalesce(func.max(MovementModel.seq), 0))
        ).scalar_one() + 1
        row = MovementModel(id=new_id, seq=next_seq)
        _apply(row, record)
        session.add(row)
        session.flush()
        with LogContext.bind(movement_id=str(new_id)):
            logger.info(
                "movement_recorded",
                extra={
                    "kind": record.kind.value,
                    "product": record.product,
                    "quantity": record.quantity,
                    "lot_ref": record.lot_ref,
                },
            )
        return record

    @staticmethod
    def _get_row(session: Session, movement_id: str) -> MovementModel:
        try:
            key = UUID(str(movement_id))
        except ValueError:
            raise MovementNotFoundError(movement_id) from None
        row = session.get(MovementModel, key)
        if row is None:
            raise MovementNotFoundError(movement_id)
        return row

    def _publish(self) -> None:
        if not self._subscribers:
            return
        movements = self.snapshot()
        logger.debug(
            "ledger_snapshot_published",
            extra={"movements": len(movements), "subscribers": len(self._subscribers)},
        )
        for callback in list(self._subscribers):
            callback(movements)

    # ------------------------------------------------------------------
    # Lookup lists
    # ------------------------------------------------------------------

    def lookup_names(self, list_name: str) -> tuple[str, ...]:
        """Names in ``list_name``, sorted."""
        self._check_list(list_name)
        with session_scope(self._session_factory) as session:
            stmt = select(LookupEntryModel.name).where(
                LookupEntryModel.list_name == list_name
            )
            return tuple(sorted(session.execute(stmt).scalars().all()))

    def subscribe_lookup(
        self,
        list_name: str,
        callback: LookupCallback,
    ) -> Callable[[], None]:
        """
        Register for a lookup list; seeds the list first if it is empty.

        Raises:
            UnknownLookupListError: For an unknown list name.
        """
        self._check_list(list_name)
        self._seed_if_empty(list_name)
        subscribers = self._lookup_subscribers[list_name]
        subscribers.append(callback)
        callback(self.lookup_names(list_name))

        def unsubscribe() -> None:
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def add_to_list(self, list_name: str, name: str) -> str:
        """
        Add ``name`` (trimmed, upper-cased) to a lookup list.

        Returns:
            The stored name.

        Raises:
            UnknownLookupListError: For an unknown list name.
        """
        self._check_list(list_name)
        stored = normalize_name(name)
        key = _entry_key(stored)
        with session_scope(self._session_factory) as session:
            existing = session.execute(
                select(LookupEntryModel).where(
                    LookupEntryModel.list_name == list_name,
                    LookupEntryModel.entry_key == key,
                )
            ).scalar_one_or_none()
            if existing is None:
                session.add(
                    LookupEntryModel(list_name=list_name, entry_key=key, name=stored)
                )
            else:
                existing.name = stored

        logger.info("lookup_entry_added", extra={"list_name": list_name, "entry": stored})
        self._publish_lookup(list_name)
        return stored

    def _seed_if_empty(self, list_name: str) -> None:
        with session_scope(self._session_factory) as session:
            count = session.execute(
                select(func.count())
                .select_from(LookupEntryModel)
                .where(LookupEntryModel.list_name == list_name)
            ).scalar_one()
            if count:
                return
            seeds = self._lookup_seeds.get(list_name, ())
            seen: set[str] = set()
            for item in seeds:
                key = _entry_key(item)
                if key in seen:
                    continue
                seen.add(key)
                session.add(LookupEntryModel(list_name=list_name, entry_key=key, name=item))

        logger.info("lookup_list_seeded", extra={"list_name": list_name, "entries": len(seen)})

    def _publish_lookup(self, list_name: str) -> None:
        subscribers = self._lookup_subscribers[list_name]
        if not subscribers:
            return
        names = self.lookup_names(list_name)
        for callback in list(subscribers):
            callback(names)

    @staticmethod
    def _check_list(list_name: str) -> None:
        if list_name not in LOOKUP_LISTS:
            raise UnknownLookupListError(list_name)
