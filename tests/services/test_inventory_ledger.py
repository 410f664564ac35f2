"""
Tests for InventoryLedger.

- decrement never drives a counter negative
- a refused decrement leaves the counter untouched
- increment lazily creates the row
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from inventory_kernel.exceptions import (
    InsufficientQuantityError,
    ItemNotFoundError,
    LedgerLockTimeoutError,
    StorageLocationNotFoundError,
)
from inventory_kernel.services.inventory_ledger import InventoryLedger


class TestDecrement:

    def test_decrement_lowers_quantity(self, ledger, storage_location, items, stock):
        stock(storage_location, items["diapers"], 20)

        assert ledger.decrement(storage_location.id, items["diapers"].id, 18) == 2
        assert ledger.quantity_of(storage_location.id, items["diapers"].id) == 2

    def test_decrement_to_exactly_zero(self, ledger, storage_location, items, stock):
        stock(storage_location, items["diapers"], 5)
        assert ledger.decrement(storage_location.id, items["diapers"].id, 5) == 0

    def test_overdraw_refused_and_unchanged(self, ledger, storage_location, items, stock):
        stock(storage_location, items["diapers"], 3)

        with pytest.raises(InsufficientQuantityError) as exc_info:
            ledger.decrement(storage_location.id, items["diapers"].id, 4)

        assert exc_info.value.item_name == "Diapers"
        assert exc_info.value.requested == 4
        assert exc_info.value.available == 3
        assert exc_info.value.code == "INSUFFICIENT_QUANTITY"
        assert ledger.quantity_of(storage_location.id, items["diapers"].id) == 3

    def test_never_stocked_is_insufficient(self, ledger, storage_location, items):
        with pytest.raises(InsufficientQuantityError) as exc_info:
            ledger.decrement(storage_location.id, items["formula"].id, 1)
        assert exc_info.value.available == 0

    def test_unknown_item(self, ledger, storage_location):
        with pytest.raises(ItemNotFoundError):
            ledger.decrement(storage_location.id, uuid4(), 1)

    def test_unknown_location(self, ledger, items):
        with pytest.raises(StorageLocationNotFoundError):
            ledger.decrement(uuid4(), items["diapers"].id, 1)

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5])
    def test_amount_must_be_positive_integer(self, ledger, storage_location, items, amount):
        with pytest.raises(ValueError):
            ledger.decrement(storage_location.id, items["diapers"].id, amount)


class TestIncrement:

    def test_first_increment_creates_row(self, ledger, storage_location, items):
        assert ledger.quantity_of(storage_location.id, items["wipes"].id) == 0
        assert ledger.increment(storage_location.id, items["wipes"].id, 7) == 7

    def test_increments_accumulate(self, ledger, storage_location, items):
        ledger.increment(storage_location.id, items["wipes"].id, 7)
        assert ledger.increment(storage_location.id, items["wipes"].id, 3) == 10

    def test_unknown_item(self, ledger, storage_location):
        with pytest.raises(ItemNotFoundError):
            ledger.increment(storage_location.id, uuid4(), 1)

    def test_counters_are_per_location(
        self, ledger, storage_location, second_location, items, stock
    ):
        stock(storage_location, items["diapers"], 4)
        stock(second_location, items["diapers"], 6)

        ledger.decrement(storage_location.id, items["diapers"].id, 4)

        assert ledger.quantity_of(storage_location.id, items["diapers"].id) == 0
        assert ledger.quantity_of(second_location.id, items["diapers"].id) == 6


class _LockedSession:
    """Session stand-in whose every statement hits a held lock."""

    def __init__(self, message):
        self.message = message

    def execute(self, stmt):
        raise OperationalError("UPDATE inventory_ledger_entries", {}, Exception(self.message))


class TestLockTimeout:

    @pytest.mark.parametrize(
        "message",
        [
            "canceling statement due to lock timeout",
            "database is locked",
        ],
    )
    def test_lock_timeout_mapped(self, message):
        ledger = InventoryLedger(_LockedSession(message))
        location_id, item_id = uuid4(), uuid4()

        with pytest.raises(LedgerLockTimeoutError) as exc_info:
            ledger.decrement(location_id, item_id, 1)

        assert exc_info.value.code == "LEDGER_LOCK_TIMEOUT"
        assert exc_info.value.storage_location_id == str(location_id)

    def test_other_operational_errors_propagate(self):
        ledger = InventoryLedger(_LockedSession("disk I/O error"))
        with pytest.raises(OperationalError):
            ledger.increment(uuid4(), uuid4(), 1)
