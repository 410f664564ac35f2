"""
Threshold classification.

Responsibility:
    Classify each touched item's organization-wide on-hand total against its
    minimum and recommended levels, and compose the alert strings shown to
    the user after a commit.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The totals are
    supplied by the caller (inventory_services.threshold_service), which reads
    them through the InventorySelector after the commit has been flushed.

Rules:
    - total < minimum_quantity (strictly)      -> below minimum
    - else total < recommended_quantity        -> below recommended
    - An unset level (None) skips that check.  Never raises.
    - An item lands in at most one list; minimum wins.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from inventory_kernel.domain.dtos import ItemThreshold

MINIMUM_ALERT_TEMPLATE = (
    "The following items have fallen below the minimum on hand quantity, "
    "bank-wide: {names}"
)
RECOMMENDED_ALERT_TEMPLATE = (
    "The following items have fallen below the recommended on hand quantity, "
    "bank-wide: {names}"
)


class ThresholdLevel(str, Enum):
    MINIMUM = "minimum"
    RECOMMENDED = "recommended"


@dataclass(frozen=True)
class ThresholdBreach:
    item_id: UUID
    name: str
    level: ThresholdLevel
    total_on_hand: int
    threshold: int


@dataclass(frozen=True)
class ThresholdReport:
    breaches: tuple[ThresholdBreach, ...] = ()

    def _names(self, level: ThresholdLevel) -> tuple[str, ...]:
        return tuple(b.name for b in self.breaches if b.level == level)

    @property
    def below_minimum(self) -> tuple[str, ...]:
        return self._names(ThresholdLevel.MINIMUM)

    @property
    def below_recommended(self) -> tuple[str, ...]:
        return self._names(ThresholdLevel.RECOMMENDED)

    @property
    def has_alerts(self) -> bool:
        return bool(self.breaches)

    def alerts(self) -> tuple[str, ...]:
        """Zero, one or two alert strings, minimum first."""
        messages = []
        if self.below_minimum:
            messages.append(
                MINIMUM_ALERT_TEMPLATE.format(names=", ".join(self.below_minimum))
            )
        if self.below_recommended:
            messages.append(
                RECOMMENDED_ALERT_TEMPLATE.format(
                    names=", ".join(self.below_recommended)
                )
            )
        return tuple(messages)


def classify_item(item: ItemThreshold, total_on_hand: int) -> ThresholdBreach | None:
    """Return the breach for one item, or None when it is at or above its levels."""
    if item.minimum_quantity is not None and total_on_hand < item.minimum_quantity:
        return ThresholdBreach(
            item_id=item.item_id,
            name=item.name,
            level=ThresholdLevel.MINIMUM,
            total_on_hand=total_on_hand,
            threshold=item.minimum_quantity,
        )
    if (
        item.recommended_quantity is not None
        and total_on_hand < item.recommended_quantity
    ):
        return ThresholdBreach(
            item_id=item.item_id,
            name=item.name,
            level=ThresholdLevel.RECOMMENDED,
            total_on_hand=total_on_hand,
            threshold=item.recommended_quantity,
        )
    return None


def classify_thresholds(
    items: Sequence[ItemThreshold],
    totals: Mapping[UUID, int],
) -> ThresholdReport:
    """
    Classify every item against its levels.

    Args:
        items: Touched items, in the order their names should appear.
            Repeated items are classified once.
        totals: Organization-wide on-hand total per item id.  A missing
            entry counts as 0 (no ledger rows at all).
    """
    seen: set[UUID] = set()
    breaches: list[ThresholdBreach] = []
    for item in items:
        if item.item_id in seen:
            continue
        seen.add(item.item_id)
        breach = classify_item(item, totals.get(item.item_id, 0))
        if breach is not None:
            breaches.append(breach)
    return ThresholdReport(breaches=tuple(breaches))
