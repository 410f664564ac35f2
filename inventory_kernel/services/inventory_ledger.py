"""
InventoryLedger -- per-(storage location, item) quantity counters.

Responsibility:
    The only code that mutates inventory quantities.  Exposes atomic
    decrement/increment with a non-negative invariant and a point read.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by DistributionService (deductions and their reversals) and by
    inventory-adding collaborators (donations, adjustments, test seeding).

Invariants enforced:
    Non-negativity -- ``decrement`` is a single conditional compare-and-set
        statement: ``UPDATE ... SET quantity = quantity - :n WHERE ... AND
        quantity >= :n RETURNING quantity``.  There is no read-then-write
        window.  On PostgreSQL a concurrent decrement of the same row waits
        for the row lock and then re-evaluates the predicate against the
        committed value; on SQLite writers are serialized by BEGIN
        IMMEDIATE.  Two decrements whose sum exceeds the stock cannot both
        succeed.  The CHECK constraint on the table is the backstop.
    Lazy rows -- ``increment`` creates the row on first use inside a
        savepoint.  If a concurrent transaction creates it first, the unique
        constraint fires, the savepoint is rolled back, and the increment is
        retried as an update.

Failure modes:
    - InsufficientQuantityError: decrement would go negative.  No mutation.
    - ItemNotFoundError / StorageLocationNotFoundError: unknown reference.
    - LedgerLockTimeoutError: the row lock was not acquired within the
      configured lock timeout.
    - ValueError: amount is not a positive integer (caller bug).

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from inventory_kernel.exceptions import (
    InsufficientQuantityError,
    ItemNotFoundError,
    LedgerLockTimeoutError,
    StorageLocationNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import InventoryLedgerEntry
from inventory_kernel.models.item import Item
from inventory_kernel.models.organization import StorageLocation
from inventory_kernel.services.base import BaseService

logger = get_logger("services.inventory_ledger")

_LOCK_TIMEOUT_MARKERS = ("lock timeout", "database is locked")


def _require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
        raise ValueError(f"Ledger amount must be a positive integer, got {amount!r}")


class InventoryLedger(BaseService[InventoryLedgerEntry]):
    """
    Atomic quantity counters keyed by (storage_location_id, item_id).

    Guarantees:
        - quantity_of(loc, item) >= 0 after every operation.
        - A failed operation leaves the counter untouched.

    Usage:
        ledger = InventoryLedger(session)
        ledger.increment(location_id, item_id, 20)   # donation
        ledger.decrement(location_id, item_id, 18)   # -> 2
    """

    def _execute_locked(self, stmt, storage_location_id: UUID, item_id: UUID):
        """Execute a ledger statement, mapping lock timeouts to a typed error."""
        try:
            return self.session.execute(stmt)
        except OperationalError as exc:
            message = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
            if any(marker in message for marker in _LOCK_TIMEOUT_MARKERS):
                logger.warning(
                    "ledger_lock_timeout",
                    extra={
                        "storage_location_id": str(storage_location_id),
                        "item_id": str(item_id),
                    },
                )
                raise LedgerLockTimeoutError(str(storage_location_id), str(item_id)) from exc
            raise

    def _require_item(self, item_id: UUID) -> Item:
        item = self.session.get(Item, item_id)
        if item is None:
            raise ItemNotFoundError(str(item_id))
        return item

    def _require_location(self, storage_location_id: UUID) -> StorageLocation:
        location = self.session.get(StorageLocation, storage_location_id)
        if location is None:
            raise StorageLocationNotFoundError(str(storage_location_id))
        return location

    def _add(self, storage_location_id: UUID, item_id: UUID, amount: int) -> int | None:
        """Add to an existing row. Returns the new quantity, or None if no row."""
        stmt = (
            update(InventoryLedgerEntry)
            .where(
                InventoryLedgerEntry.storage_location_id == storage_location_id,
                InventoryLedgerEntry.item_id == item_id,
            )
            .values(quantity=InventoryLedgerEntry.quantity + amount)
            .returning(InventoryLedgerEntry.quantity)
            .execution_options(synchronize_session=False)
        )
        return self._execute_locked(stmt, storage_location_id, item_id).scalar_one_or_none()

    def decrement(self, storage_location_id: UUID, item_id: UUID, amount: int) -> int:
        """
        Atomically lower the counter by ``amount``.

        Preconditions:
            - ``amount`` is a positive integer.
        Postconditions:
            - On success, returns the new quantity (>= 0).
            - On failure, the counter is unchanged.

        Raises:
            InsufficientQuantityError: If current quantity < amount (including
                when the item was never stocked at this location).
            ItemNotFoundError / StorageLocationNotFoundError: Unknown reference.
            LedgerLockTimeoutError: Row lock not acquired in time.
        """
        _require_positive(amount)

        # INVARIANT: non-negativity -- compare-and-set, never read-then-write
        stmt = (
            update(InventoryLedgerEntry)
            .where(
                InventoryLedgerEntry.storage_location_id == storage_location_id,
                InventoryLedgerEntry.item_id == item_id,
                InventoryLedgerEntry.quantity >= amount,
            )
            .values(quantity=InventoryLedgerEntry.quantity - amount)
            .returning(InventoryLedgerEntry.quantity)
            .execution_options(synchronize_session=False)
        )
        new_quantity = self._execute_locked(stmt, storage_location_id, item_id).scalar_one_or_none()

        if new_quantity is None:
            self._require_location(storage_location_id)
            item = self._require_item(item_id)
            available = self.quantity_of(storage_location_id, item_id)
            logger.info(
                "ledger_decrement_refused",
                extra={
                    "storage_location_id": str(storage_location_id),
                    "item_id": str(item_id),
                    "requested": amount,
                    "available": available,
                },
            )
            raise InsufficientQuantityError(item.name, amount, available)

        logger.debug(
            "ledger_decremented",
            extra={
                "storage_location_id": str(storage_location_id),
                "item_id": str(item_id),
                "amount": amount,
                "quantity": new_quantity,
            },
        )
        return new_quantity

    def increment(self, storage_location_id: UUID, item_id: UUID, amount: int) -> int:
        """
        Atomically raise the counter by ``amount``, creating the row if needed.

        Used to reverse a prior deduction and by inventory-adding
        collaborators.

        Raises:
            ItemNotFoundError / StorageLocationNotFoundError: Unknown reference
                (only checked when the row does not exist yet).
            LedgerLockTimeoutError: Row lock not acquired in time.
        """
        _require_positive(amount)

        new_quantity = self._add(storage_location_id, item_id, amount)

        if new_quantity is None:
            self._require_location(storage_location_id)
            self._require_item(item_id)
            # First stock of this item here.  A concurrent creator may win the
            # unique constraint; the savepoint keeps the rest of the
            # transaction intact so we can retry as an update.
            savepoint = self.session.begin_nested()
            try:
                self._execute_locked(
                    insert(InventoryLedgerEntry).values(
                        storage_location_id=storage_location_id,
                        item_id=item_id,
                        quantity=amount,
                    ),
                    storage_location_id,
                    item_id,
                )
                savepoint.commit()
                new_quantity = amount
            except IntegrityError:
                logger.debug(
                    "ledger_row_create_race_retry",
                    extra={
                        "storage_location_id": str(storage_location_id),
                        "item_id": str(item_id),
                    },
                )
                savepoint.rollback()
                new_quantity = self._add(storage_location_id, item_id, amount)
                if new_quantity is None:
                    raise

        logger.debug(
            "ledger_incremented",
            extra={
                "storage_location_id": str(storage_location_id),
                "item_id": str(item_id),
                "amount": amount,
                "quantity": new_quantity,
            },
        )
        return new_quantity

    def quantity_of(self, storage_location_id: UUID, item_id: UUID) -> int:
        """Point read of the counter. 0 when the item was never stocked here."""
        quantity = self.session.execute(
            select(InventoryLedgerEntry.quantity).where(
                InventoryLedgerEntry.storage_location_id == storage_location_id,
                InventoryLedgerEntry.item_id == item_id,
            )
        ).scalar_one_or_none()
        return quantity or 0
