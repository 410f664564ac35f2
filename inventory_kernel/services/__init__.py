"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.distribution_service import (
    DistributionCommit,
    DistributionService,
)
from inventory_kernel.services.inventory_ledger import InventoryLedger

__all__ = [
    "DistributionCommit",
    "DistributionService",
    "InventoryLedger",
]
