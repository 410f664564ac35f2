"""
ThresholdEvaluator -- post-commit threshold check for touched items.

Responsibility:
    Loads each touched item's threshold configuration and its current
    organization-wide on-hand total, then hands both to the pure classifier
    in inventory_kernel.domain.thresholds.

Architecture position:
    Services -- stateful wrapper over the kernel selectors and domain.
    Runs in the orchestrator's session, after the distribution commit, so
    the totals include the transaction's own deductions.

Failure modes:
    - Never raises for missing configuration.  Items that no longer exist
      are skipped by ItemSelector.thresholds().
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.thresholds import ThresholdReport, classify_thresholds
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.reference_selector import ItemSelector

logger = get_logger("services.thresholds")


class ThresholdEvaluator:
    """Builds a ThresholdReport for a set of touched items."""

    def __init__(self, session: Session):
        self._items = ItemSelector(session)
        self._inventory = InventorySelector(session)

    def evaluate(
        self,
        organization_id: UUID,
        item_ids: Iterable[UUID],
    ) -> ThresholdReport:
        thresholds = self._items.thresholds(item_ids)
        totals = self._inventory.totals_on_hand(
            organization_id, [t.item_id for t in thresholds]
        )
        report = classify_thresholds(thresholds, totals)

        for breach in report.breaches:
            logger.warning(
                "threshold_breach_detected",
                extra={
                    "item_id": str(breach.item_id),
                    "item_name": breach.name,
                    "threshold_level": breach.level.value,
                    "total_on_hand": breach.total_on_hand,
                    "threshold": breach.threshold,
                },
            )
        logger.debug(
            "thresholds_evaluated",
            extra={
                "items_checked": len(thresholds),
                "breach_count": len(report.breaches),
            },
        )
        return report
