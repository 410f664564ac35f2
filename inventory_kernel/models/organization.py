"""
Module: inventory_kernel.models.organization
Responsibility: ORM persistence for the organization-scoped reference data the
    engine reads but never manages: organizations, their storage locations,
    and the partner agencies they distribute to.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Every storage location and partner belongs to exactly one organization.
      The organization-wide aggregate sums ledger rows over exactly the
      locations carrying that organization_id.

Non-goals:
    - Partner lifecycle, approval, and user management live in external
      collaborators.  ``Partner.send_reminders`` is the only partner field
      the engine reads (the partner preference store).
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class Organization(Base):
    """A distribution bank that owns items, storage locations and partners."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Organization {self.name}>"


class StorageLocation(Base):
    """
    A place where an organization holds inventory.

    Owns zero or more InventoryLedgerEntry rows, one per item stocked here.
    """

    __tablename__ = "storage_locations"

    __table_args__ = (
        Index("idx_storage_location_org", "organization_id"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StorageLocation {self.name}>"


class Partner(Base):
    """
    A partner agency that receives distributions.

    Guarantees:
        - send_reminders defaults to False; reminders are opt-in.
    """

    __tablename__ = "partners"

    __table_args__ = (
        Index("idx_partner_org", "organization_id"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Partner preference: reminder and distribution notices
    send_reminders: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Partner {self.name}>"
