"""
inventory_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the inventory kernel: the distribution
    unit of work, post-commit threshold evaluation and notification
    dispatch.

Architecture position:
    Services -- sits above inventory_kernel and inventory_config.

        inventory_services/ -> inventory_kernel/  (allowed)
        inventory_services/ -> inventory_config/  (allowed)
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.distribution_orchestrator import (
    DistributionOrchestrator,
    DistributionOutcome,
    DistributionStatus,
)
from inventory_services.notification_dispatcher import (
    LoggingDispatcher,
    NotificationDispatcher,
    RecordingDispatcher,
)
from inventory_services.threshold_service import ThresholdEvaluator

__all__ = [
    "DistributionOrchestrator",
    "DistributionOutcome",
    "DistributionStatus",
    "LoggingDispatcher",
    "NotificationDispatcher",
    "RecordingDispatcher",
    "ThresholdEvaluator",
]
