"""Domain models for the inventory kernel."""

from inventory_kernel.models.distribution import Distribution, DistributionLineItem
from inventory_kernel.models.inventory import InventoryLedgerEntry
from inventory_kernel.models.item import Item
from inventory_kernel.models.organization import Organization, Partner, StorageLocation

__all__ = [
    "Distribution",
    "DistributionLineItem",
    "InventoryLedgerEntry",
    "Item",
    "Organization",
    "Partner",
    "StorageLocation",
]
