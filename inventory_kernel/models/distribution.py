"""
Module: inventory_kernel.models.distribution
Responsibility: ORM persistence for committed distributions and their line
    items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Only committed distributions are persisted.  A rejected attempt never
      reaches the session.
    - A committed distribution's line items are the authoritative record of
      what was deducted from the ledger.
    - Line item quantity >= 1 (ck_line_item_quantity_positive).  Removal on
      update deletes the row; a zero-quantity row is never stored.
    - position preserves submission order within a distribution.

Mutation:
    Created by DistributionService.create_distribution, mutated only by
    DistributionService.update_distribution, which replaces the whole line
    item set or leaves it untouched.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, TrackedBase, UUIDString


class Distribution(TrackedBase):
    """
    A shipment of items from one storage location to one partner.

    Guarantees:
        - lines are loaded in position order.
        - Deleting a line from ``lines`` deletes its row (delete-orphan).
    """

    __tablename__ = "distributions"

    __table_args__ = (
        Index("idx_distribution_org", "organization_id"),
        Index("idx_distribution_location", "storage_location_id"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    partner_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("partners.id"),
        nullable=False,
    )

    storage_location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("storage_locations.id"),
        nullable=False,
    )

    # May be past, today, or future
    issued_at: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    reminder_email_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    lines: Mapped[list["DistributionLineItem"]] = relationship(
        back_populates="distribution",
        cascade="all, delete-orphan",
        order_by="DistributionLineItem.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Distribution {self.id} issued_at={self.issued_at}>"


class DistributionLineItem(Base):
    """One (item, quantity) entry within a distribution."""

    __tablename__ = "distribution_line_items"

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_line_item_quantity_positive"),
        Index("idx_line_item_distribution", "distribution_id"),
    )

    distribution_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("distributions.id", ondelete="CASCADE"),
        nullable=False,
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        nullable=False,
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    distribution: Mapped["Distribution"] = relationship(
        back_populates="lines",
    )

    def __repr__(self) -> str:
        return f"<DistributionLineItem item={self.item_id} quantity={self.quantity}>"
