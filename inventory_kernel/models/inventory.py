"""
Module: inventory_kernel.models.inventory
Responsibility: ORM persistence for the inventory ledger: one quantity counter
    per (storage location, item).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity is never negative.  Enforced first by the ledger's conditional
      UPDATE (InventoryLedger.decrement) and backed by a CHECK constraint.
    - At most one row per (storage_location_id, item_id)
      (uq_ledger_location_item).

Failure modes:
    - IntegrityError if a write bypasses the ledger service and drives
      quantity below zero, or inserts a duplicate (location, item) row.

Mutation:
    Rows are mutated exclusively through InventoryLedger.  Rows are created
    lazily on the first increment and never deleted by the engine.
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class InventoryLedgerEntry(Base):
    """On-hand quantity of one item at one storage location."""

    __tablename__ = "inventory_ledger_entries"

    __table_args__ = (
        UniqueConstraint(
            "storage_location_id", "item_id", name="uq_ledger_location_item"
        ),
        CheckConstraint("quantity >= 0", name="ck_ledger_quantity_non_negative"),
        Index("idx_ledger_item", "item_id"),
    )

    storage_location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("storage_locations.id"),
        nullable=False,
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryLedgerEntry location={self.storage_location_id} "
            f"item={self.item_id} quantity={self.quantity}>"
        )
