"""
Notification dispatch collaborators.

Responsibility:
    The boundary between the engine's notification decisions and whatever
    delivers mail.  The orchestrator hands fully built requests to a
    NotificationDispatcher after the commit; it never talks to a mailer or
    job queue directly.

Contract:
    enqueue_reminder        fire-and-forget, keyed by distribution id
    enqueue_partner_notice  fire-and-forget
    send_change_notice      synchronous; returns once the notice is handed off

Implementations:
    RecordingDispatcher  keeps everything in memory (tests, local runs)
    LoggingDispatcher    emits one structured log line per notification
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from inventory_kernel.domain.notification_policy import (
    ChangeNotice,
    PartnerNotice,
    ReminderRequest,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.notifications")


class NotificationDispatcher(ABC):
    """Delivery collaborator for partner notifications."""

    @abstractmethod
    def enqueue_reminder(self, reminder: ReminderRequest) -> None:
        ...

    @abstractmethod
    def enqueue_partner_notice(self, notice: PartnerNotice) -> None:
        ...

    @abstractmethod
    def send_change_notice(self, notice: ChangeNotice) -> None:
        ...


class RecordingDispatcher(NotificationDispatcher):
    """In-memory dispatcher.  Notifications are kept in arrival order."""

    def __init__(self) -> None:
        self.reminders: list[ReminderRequest] = []
        self.partner_notices: list[PartnerNotice] = []
        self.change_notices: list[ChangeNotice] = []

    def enqueue_reminder(self, reminder: ReminderRequest) -> None:
        self.reminders.append(reminder)

    def enqueue_partner_notice(self, notice: PartnerNotice) -> None:
        self.partner_notices.append(notice)

    def send_change_notice(self, notice: ChangeNotice) -> None:
        self.change_notices.append(notice)

    @property
    def dispatched_count(self) -> int:
        return len(self.reminders) + len(self.partner_notices) + len(self.change_notices)


class LoggingDispatcher(NotificationDispatcher):
    """Writes each notification as a structured log event."""

    def enqueue_reminder(self, reminder: ReminderRequest) -> None:
        logger.info(
            "reminder_enqueued",
            extra={
                "distribution_id": str(reminder.distribution_id),
                "issued_at": reminder.issued_at.isoformat(),
                "deliver_on": reminder.deliver_on.isoformat(),
                "action": reminder.action,
            },
        )

    def enqueue_partner_notice(self, notice: PartnerNotice) -> None:
        logger.info(
            "partner_notice_enqueued",
            extra={
                "distribution_id": str(notice.distribution_id),
                "organization_id": str(notice.organization_id),
                "subject": notice.subject,
            },
        )

    def send_change_notice(self, notice: ChangeNotice) -> None:
        logger.info(
            "change_notice_sent",
            extra={
                "distribution_id": str(notice.distribution_id),
                "organization_id": str(notice.organization_id),
                "subject": notice.subject,
                "changes": notice.payload,
            },
        )
