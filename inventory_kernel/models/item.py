"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for distributable items and their on-hand
    thresholds.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Item names are unique within an organization, case-insensitively
      (functional unique index on lower(name)).
    - minimum_quantity is a whole number >= 0 and defaults to 0.
    - recommended_quantity is either unset (NULL) or a whole number >= 0.
      NULL means "no recommended level", never zero.

Failure modes:
    - IntegrityError on a duplicate name within an organization or a
      negative threshold.

Non-goals:
    - Item CRUD belongs to the item-management collaborator.  The engine
      only reads items.
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class Item(Base):
    """
    A kind of physical good an organization distributes.

    Guarantees:
        - minimum_quantity is never NULL (default 0, which can never be
          breached since on-hand totals are never negative).
        - recommended_quantity may be NULL (unset).
    """

    __tablename__ = "items"

    __table_args__ = (
        CheckConstraint("minimum_quantity >= 0", name="ck_item_minimum_non_negative"),
        CheckConstraint(
            "recommended_quantity IS NULL OR recommended_quantity >= 0",
            name="ck_item_recommended_non_negative",
        ),
        Index("idx_item_org", "organization_id"),
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

    minimum_quantity: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    recommended_quantity: Mapped[int | None] = mapped_column(
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Item {self.name}>"


Index(
    "uq_item_org_name_ci",
    Item.organization_id,
    func.lower(Item.name),
    unique=True,
)
