"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.reference_selector import ItemSelector, PartnerSelector

__all__ = [
    "InventorySelector",
    "ItemSelector",
    "PartnerSelector",
]
