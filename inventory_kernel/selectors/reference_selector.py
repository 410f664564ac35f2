"""
Module: inventory_kernel.selectors.reference_selector
Responsibility: Read-only lookups of the reference data the engine consumes
    but never manages: item thresholds and partner reminder preferences.
Architecture position: Kernel > Selectors.  Read-only.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import ItemThreshold
from inventory_kernel.exceptions import PartnerNotFoundError
from inventory_kernel.models.item import Item
from inventory_kernel.models.organization import Partner
from inventory_kernel.selectors.base import BaseSelector


class ItemSelector(BaseSelector[Item]):
    """Item threshold configuration."""

    def thresholds(self, item_ids: Iterable[UUID]) -> list[ItemThreshold]:
        """
        Threshold DTOs in the order of ``item_ids``.  Unknown ids are skipped.
        """
        ordered = list(dict.fromkeys(item_ids))
        if not ordered:
            return []
        items = {
            item.id: item
            for item in self.session.execute(
                select(Item).where(Item.id.in_(ordered))
            ).scalars()
        }
        return [
            ItemThreshold(
                item_id=items[item_id].id,
                name=items[item_id].name,
                minimum_quantity=items[item_id].minimum_quantity,
                recommended_quantity=items[item_id].recommended_quantity,
            )
            for item_id in ordered
            if item_id in items
        ]


class PartnerSelector(BaseSelector[Partner]):
    """The partner preference store."""

    def reminders_enabled(self, partner_id: UUID) -> bool:
        """
        Whether the partner wants reminder and distribution notices.

        Raises:
            PartnerNotFoundError: Unknown partner.
        """
        enabled = self.session.execute(
            select(Partner.send_reminders).where(Partner.id == partner_id)
        ).scalar_one_or_none()
        if enabled is None:
            raise PartnerNotFoundError(str(partner_id))
        return bool(enabled)
