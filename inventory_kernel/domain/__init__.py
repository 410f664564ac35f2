"""
Pure domain layer for the inventory kernel.

Everything in this package is free of ORM and I/O dependencies: DTOs, the
clock abstraction, the line-item diff, threshold classification and the
notification policy.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    DistributionInfo,
    DistributionRequest,
    DistributionUpdateRequest,
    ItemThreshold,
    LineItemInfo,
    LineItemSpec,
    LocationQuantity,
    TransactionState,
)
from inventory_kernel.domain.line_item_diff import (
    LineItemDiff,
    RemovedLine,
    UpdatedLine,
    consolidate_line_items,
    diff_line_items,
)
from inventory_kernel.domain.notification_policy import (
    ChangeNotice,
    PartnerNotice,
    ReminderRequest,
    build_change_notice,
    build_created_notice,
    build_reminder,
    should_schedule_reminder,
)
from inventory_kernel.domain.thresholds import (
    ThresholdBreach,
    ThresholdLevel,
    ThresholdReport,
    classify_thresholds,
)

__all__ = [
    "ChangeNotice",
    "Clock",
    "DeterministicClock",
    "DistributionInfo",
    "DistributionRequest",
    "DistributionUpdateRequest",
    "ItemThreshold",
    "LineItemDiff",
    "LineItemInfo",
    "LineItemSpec",
    "LocationQuantity",
    "PartnerNotice",
    "ReminderRequest",
    "RemovedLine",
    "SystemClock",
    "ThresholdBreach",
    "ThresholdLevel",
    "ThresholdReport",
    "TransactionState",
    "UpdatedLine",
    "build_change_notice",
    "build_created_notice",
    "build_reminder",
    "classify_thresholds",
    "consolidate_line_items",
    "diff_line_items",
    "should_schedule_reminder",
]
