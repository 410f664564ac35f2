"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the request intake layer, the orchestrator, tests) must react to a
rejected distribution without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA (item name, requested/available quantities)

Example:
    try:
        service.create_distribution(request, actor_id)
    except InsufficientQuantityError as e:
        api_response(code=e.code, item=e.item_name, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- DistributionError
    |   +-- InvalidQuantityError
    |   +-- EmptyDistributionError
    |
    +-- InventoryError
    |   +-- InsufficientQuantityError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- StorageLocationNotFoundError
    |   +-- PartnerNotFoundError
    |   +-- DistributionNotFoundError
    |
    +-- ConcurrencyError
        +-- LedgerLockTimeoutError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                    | When Raised
-------------|-------------------------|------------------------------------------
Distribution | INVALID_QUANTITY        | Line item quantity is not an integer >= 1
             | EMPTY_DISTRIBUTION      | No line items with a positive quantity
-------------|-------------------------|------------------------------------------
Inventory    | INSUFFICIENT_QUANTITY   | Decrement would drive the ledger negative
-------------|-------------------------|------------------------------------------
Not found    | NOT_FOUND               | Unknown item, location, partner, or
             |                         | distribution (or one owned by another
             |                         | organization)
-------------|-------------------------|------------------------------------------
Concurrency  | LEDGER_LOCK_TIMEOUT     | Ledger row lock not acquired in time

All of these are terminal for the attempted transaction and leave the ledger
unchanged.  None is fatal to the process.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Distribution input errors


class DistributionError(InventoryKernelError):
    """Base exception for rejected distribution input."""

    code: str = "DISTRIBUTION_ERROR"


class InvalidQuantityError(DistributionError):
    """A line item quantity is not a whole number of at least 1."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, item_name: str, quantity: object):
        self.item_name = item_name
        self.quantity = quantity
        super().__init__(f"Inventory {item_name}'s quantity needs to be at least 1")


class EmptyDistributionError(DistributionError):
    """A distribution must carry at least one line item."""

    code: str = "EMPTY_DISTRIBUTION"

    def __init__(self):
        super().__init__("A distribution needs at least one line item")


# Inventory errors


class InventoryError(InventoryKernelError):
    """Base exception for ledger business-rule violations."""

    code: str = "INVENTORY_ERROR"


class InsufficientQuantityError(InventoryError):
    """Decrement would drive a ledger quantity below zero."""

    code: str = "INSUFFICIENT_QUANTITY"

    def __init__(self, item_name: str, requested: int, available: int):
        self.item_name = item_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested items exceed the available inventory: "
            f"{item_name} (requested {requested}, available {available})"
        )


# Missing references


class NotFoundError(InventoryKernelError):
    """A referenced entity does not exist for this organization."""

    code: str = "NOT_FOUND"

    entity: str = "Record"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"{self.entity} not found: {reference}")


class ItemNotFoundError(NotFoundError):
    entity = "Item"


class StorageLocationNotFoundError(NotFoundError):
    entity = "Storage location"


class PartnerNotFoundError(NotFoundError):
    entity = "Partner"


class DistributionNotFoundError(NotFoundError):
    entity = "Distribution"


# Concurrency errors


class ConcurrencyError(InventoryKernelError):
    """Base exception for lock contention failures."""

    code: str = "CONCURRENCY_ERROR"


class LedgerLockTimeoutError(ConcurrencyError):
    """The ledger row for (storage location, item) stayed locked too long."""

    code: str = "LEDGER_LOCK_TIMEOUT"

    def __init__(self, storage_location_id: str, item_id: str):
        self.storage_location_id = storage_location_id
        self.item_id = item_id
        super().__init__(
            f"Timed out waiting for ledger lock on location {storage_location_id}, "
            f"item {item_id}"
        )
