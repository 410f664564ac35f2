"""
DistributionOrchestrator -- the entry point for distribution create/update.

Responsibility:
    Owns the unit of work around DistributionService and runs everything
    that happens after a commit: threshold evaluation, the synchronous
    change notice, and the fire-and-forget reminder and partner notice.
    Turns business failures into a REJECTED outcome the intake layer can
    show to the user.

Architecture position:
    Services -- imperative shell over the kernel.  The only place that calls
    ``session.commit()`` / ``session.rollback()`` for a distribution.

Flow:
    create(request, actor_id) / update(distribution_id, request, actor_id)
      1. Bind log context (correlation_id, actor_id, organization/distribution)
      2. DistributionService create/update (flush only)
      3. Commit (when auto_commit=True)
      4. ThresholdEvaluator over the touched items
      5. Change notice (update, non-empty diff) -- synchronous
      6. Reminder / created notice -- enqueued
      7. DistributionOutcome

Invariants enforced:
    - A rejected attempt is rolled back and dispatches nothing.
    - Post-commit reads run in the same session after commit, so totals
      include this transaction's deductions.
    - A committed distribution is reported as COMMITTED even when threshold
      alerts are raised or a notification cannot be handed off.

Failure modes:
    - InventoryKernelError subclasses: rollback, REJECTED outcome.
    - Anything else before the commit: rollback, logged with traceback,
      re-raised.
    - Dispatcher errors after the commit: logged with traceback and listed
      in ``outcome.notification_failures``; the distribution stays committed.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_config.schema import EngineConfig, NotificationConfig
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    DistributionInfo,
    DistributionRequest,
    DistributionUpdateRequest,
)
from inventory_kernel.domain.notification_policy import (
    ChangeNotice,
    PartnerNotice,
    ReminderRequest,
    build_change_notice,
    build_created_notice,
    build_reminder,
)
from inventory_kernel.exceptions import DistributionError, InventoryKernelError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.reference_selector import PartnerSelector
from inventory_kernel.services.distribution_service import (
    DistributionCommit,
    DistributionService,
)
from inventory_services.notification_dispatcher import NotificationDispatcher
from inventory_services.threshold_service import ThresholdEvaluator

logger = get_logger("services.distribution_orchestrator")

SAVE_FAILED_PREFIX = "Sorry, we weren't able to save the distribution. \n "
UPDATE_FAILED_PREFIX = "Sorry, we weren't able to update the distribution. \n "
VALIDATION_FAILED = "Validation failed: "


class DistributionStatus(str, Enum):
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DistributionOutcome:
    """Result of a create or update attempt, as reported to the caller."""

    status: DistributionStatus
    distribution_id: UUID | None = None
    distribution: DistributionInfo | None = None
    alerts: tuple[str, ...] = ()
    error_code: str | None = None
    item_name: str | None = None
    message: str | None = None
    reminder: ReminderRequest | None = None
    change_notice: ChangeNotice | None = None
    created_notice: PartnerNotice | None = None
    notification_failures: tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == DistributionStatus.COMMITTED


def rejection_message(exc: InventoryKernelError, *, update: bool = False) -> str:
    """User-facing text for a rejected attempt."""
    prefix = UPDATE_FAILED_PREFIX if update else SAVE_FAILED_PREFIX
    if isinstance(exc, DistributionError):
        return f"{prefix}{VALIDATION_FAILED}{exc}"
    return f"{prefix}{exc}"


class DistributionOrchestrator:
    """
    Drives distribution transactions end to end.

    Guarantees:
        - Commit on success, rollback on failure (when auto_commit=True).
        - Notifications are dispatched only after a successful commit.

    Non-goals:
        - Does NOT deliver mail; that is the dispatcher's job.
        - Does NOT render alerts; the caller displays ``outcome.alerts``.
    """

    def __init__(
        self,
        session: Session,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._dispatcher = dispatcher
        self._clock = clock or SystemClock()
        self._notifications = config.notifications if config else NotificationConfig()
        self._auto_commit = auto_commit
        self._service = DistributionService(session)
        self._thresholds = ThresholdEvaluator(session)
        self._partners = PartnerSelector(session)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, request: DistributionRequest, actor_id: UUID) -> DistributionOutcome:
        """
        Create a distribution.

        Postconditions:
            - COMMITTED: the distribution and its ledger deductions are
              committed; alerts list any threshold breaches.
            - REJECTED: nothing was persisted and nothing dispatched.

        Raises:
            Exception: Re-raises any unexpected exception after rollback.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor_id),
            organization_id=str(request.organization_id),
            storage_location_id=str(request.storage_location_id),
        ):
            return self._run(
                "create",
                lambda: self._service.create_distribution(request, actor_id),
                line_count=len(request.line_items),
            )

    def update(
        self,
        distribution_id: UUID,
        request: DistributionUpdateRequest,
        actor_id: UUID,
    ) -> DistributionOutcome:
        """
        Replace a distribution's line items (and optionally header fields).

        Thresholds are re-evaluated for the union of old and new items, so
        an item that was removed from the distribution (and had its stock
        returned) is reported too.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor_id),
            distribution_id=str(distribution_id),
        ):
            return self._run(
                "update",
                lambda: self._service.update_distribution(distribution_id, request, actor_id),
                line_count=len(request.line_items),
            )

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        attempt: Callable[[], DistributionCommit],
        line_count: int,
    ) -> DistributionOutcome:
        logger.info(
            "distribution_started",
            extra={"operation": operation, "line_count": line_count},
        )
        t0 = time.monotonic()
        commit = None
        try:
            commit = attempt()
            if self._auto_commit:
                self._session.commit()
        except InventoryKernelError as exc:
            if self._auto_commit:
                self._session.rollback()
            outcome = self._rejected(exc, update=operation == "update")
        except Exception:
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            if self._auto_commit:
                self._session.rollback()
            logger.error(
                "distribution_failed",
                extra={"operation": operation, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise

        if commit is not None:
            with LogContext.bind(
                distribution_id=str(commit.distribution.id),
                organization_id=str(commit.distribution.organization_id),
            ):
                outcome = self._after_commit(commit)

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info(
            "distribution_completed",
            extra={
                "operation": operation,
                "status": outcome.status.value,
                "duration_ms": duration_ms,
                "alert_count": len(outcome.alerts),
                "error_code": outcome.error_code,
                "notification_failures": list(outcome.notification_failures),
            },
        )
        return outcome

    def _dispatch(self, kind: str, send: Callable[[], None]) -> bool:
        """Hand one notification to the dispatcher; the commit stands either way."""
        try:
            send()
        except Exception:
            logger.error(
                "notification_dispatch_failed",
                extra={"notification": kind},
                exc_info=True,
            )
            return False
        return True

    def _rejected(self, exc: InventoryKernelError, *, update: bool) -> DistributionOutcome:
        logger.warning(
            "distribution_rejected_by_validation",
            extra={
                "error_code": exc.code,
                "item_name": getattr(exc, "item_name", None),
            },
        )
        return DistributionOutcome(
            status=DistributionStatus.REJECTED,
            error_code=exc.code,
            item_name=getattr(exc, "item_name", None),
            message=rejection_message(exc, update=update),
        )

    def _after_commit(self, commit: DistributionCommit) -> DistributionOutcome:
        info = commit.distribution
        report = self._thresholds.evaluate(info.organization_id, commit.touched_item_ids)
        failures: list[str] = []

        change_notice = None
        if commit.diff is not None:
            change_notice = build_change_notice(
                info.organization_id,
                info.id,
                commit.diff,
                subject=self._notifications.change_notice_subject,
            )
            if change_notice is not None and not self._dispatch(
                "change_notice", lambda: self._dispatcher.send_change_notice(change_notice)
            ):
                failures.append("change_notice")

        partner_send = self._partners.reminders_enabled(info.partner_id)
        reminder = build_reminder(
            info.id,
            info.reminder_email_enabled,
            partner_send,
            info.issued_at,
            self._clock.today(),
            lead_days=self._notifications.reminder_lead_days,
        )
        if reminder is not None and not self._dispatch(
            "reminder", lambda: self._dispatcher.enqueue_reminder(reminder)
        ):
            failures.append("reminder")

        created_notice = None
        if not commit.is_update:
            created_notice = build_created_notice(
                info.organization_id,
                info.id,
                partner_send,
                subject=self._notifications.created_notice_subject,
            )
            if created_notice is not None and not self._dispatch(
                "created_notice",
                lambda: self._dispatcher.enqueue_partner_notice(created_notice),
            ):
                failures.append("created_notice")

        logger.info(
            "post_commit_evaluated",
            extra={
                "alert_count": len(report.alerts()),
                "reminder_scheduled": reminder is not None,
                "change_notice_sent": change_notice is not None and "change_notice" not in failures,
                "created_notice_enqueued": created_notice is not None,
            },
        )
        return DistributionOutcome(
            status=DistributionStatus.COMMITTED,
            distribution_id=info.id,
            distribution=info,
            alerts=report.alerts(),
            reminder=reminder,
            change_notice=change_notice,
            created_notice=created_notice,
            notification_failures=tuple(failures),
        )
