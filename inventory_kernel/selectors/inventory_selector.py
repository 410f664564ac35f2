"""
Module: inventory_kernel.selectors.inventory_selector
Responsibility: Organization-wide aggregation over the inventory ledger.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - The organization total is a pure function of the current ledger rows:
      a SUM over every storage location the organization owns, computed on
      every call and never cached or stored.
    - Read-your-writes: the query runs in the caller's session after
      autoflush, so it reflects the caller's own uncommitted deductions.
      Other transactions' writes become visible only once committed
      (threshold alerts are best-effort, not linearizable).
"""

from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import LocationQuantity
from inventory_kernel.models.inventory import InventoryLedgerEntry
from inventory_kernel.models.organization import StorageLocation
from inventory_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector[InventoryLedgerEntry]):
    """Aggregates ledger rows per organization."""

    def total_on_hand(self, organization_id: UUID, item_id: UUID) -> int:
        """
        Sum of on-hand quantity for ``item_id`` across every storage location
        of ``organization_id``.  0 when the item has no ledger rows.
        """
        total = self.session.execute(
            select(func.coalesce(func.sum(InventoryLedgerEntry.quantity), 0))
            .join(
                StorageLocation,
                StorageLocation.id == InventoryLedgerEntry.storage_location_id,
            )
            .where(
                StorageLocation.organization_id == organization_id,
                InventoryLedgerEntry.item_id == item_id,
            )
        ).scalar_one()
        return int(total)

    def totals_on_hand(
        self, organization_id: UUID, item_ids: list[UUID]
    ) -> dict[UUID, int]:
        """total_on_hand for several items; every requested id is present."""
        return {item_id: self.total_on_hand(organization_id, item_id) for item_id in item_ids}

    def location_quantities(
        self, organization_id: UUID, item_id: UUID
    ) -> list[LocationQuantity]:
        """Per-location breakdown behind total_on_hand, ordered by location name."""
        rows = self.session.execute(
            select(
                StorageLocation.id,
                StorageLocation.name,
                InventoryLedgerEntry.quantity,
            )
            .join(
                StorageLocation,
                StorageLocation.id == InventoryLedgerEntry.storage_location_id,
            )
            .where(
                StorageLocation.organization_id == organization_id,
                InventoryLedgerEntry.item_id == item_id,
            )
            .order_by(StorageLocation.name)
        ).all()
        return [
            LocationQuantity(
                storage_location_id=row[0],
                storage_location_name=row[1],
                quantity=row[2],
            )
            for row in rows
        ]
