"""
Notification Policy.

Responsibility:
    Decide, after a commit, which partner notifications a distribution needs
    and build their payloads.  Delivery is someone else's job: the policy ends
    at "schedule this, with this payload".

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  "Today" is passed in
    by the caller (from an injected Clock).

Decisions:
    Reminder        reminder_email_enabled AND partner.send_reminders AND
                    issued_at > today.  Same-day and past dates never
                    schedule.  Evaluated fresh on every commit; there is no
                    reschedule or cancel of an earlier reminder.
    Created notice  create path only, when partner.send_reminders.
    Change notice   update path only, when the line-item diff is non-empty.
                    Delivered synchronously by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from inventory_kernel.domain.line_item_diff import LineItemDiff

REMINDER_MAILER_ACTION = "reminder_email"
DEFAULT_CHANGE_NOTICE_SUBJECT = "Your Distribution Has Changed"
DEFAULT_CREATED_NOTICE_SUBJECT = "Your Distribution"


@dataclass(frozen=True)
class ReminderRequest:
    """Fire-and-forget reminder job keyed by distribution id."""

    distribution_id: UUID
    issued_at: date
    deliver_on: date
    action: str = REMINDER_MAILER_ACTION


@dataclass(frozen=True)
class PartnerNotice:
    """Asynchronous partner mail (distribution created)."""

    organization_id: UUID
    distribution_id: UUID
    subject: str


@dataclass(frozen=True)
class ChangeNotice:
    """Synchronous partner mail describing what changed on update."""

    organization_id: UUID
    distribution_id: UUID
    subject: str
    changes: LineItemDiff

    @property
    def payload(self) -> dict[str, list[dict[str, Any]]]:
        return self.changes.to_payload()


def should_schedule_reminder(
    reminder_email_enabled: bool,
    partner_send_reminders: bool,
    issued_at: date,
    today: date,
) -> bool:
    """True iff all three reminder conditions hold at the time of this commit."""
    return bool(reminder_email_enabled) and bool(partner_send_reminders) and issued_at > today


def build_reminder(
    distribution_id: UUID,
    reminder_email_enabled: bool,
    partner_send_reminders: bool,
    issued_at: date,
    today: date,
    lead_days: int = 1,
) -> ReminderRequest | None:
    """
    Build the reminder job, or None when no reminder is due.

    deliver_on is ``lead_days`` before issued_at, but never before today.
    """
    if not should_schedule_reminder(
        reminder_email_enabled, partner_send_reminders, issued_at, today
    ):
        return None
    deliver_on = max(today, issued_at - timedelta(days=lead_days))
    return ReminderRequest(
        distribution_id=distribution_id,
        issued_at=issued_at,
        deliver_on=deliver_on,
    )


def build_created_notice(
    organization_id: UUID,
    distribution_id: UUID,
    partner_send_reminders: bool,
    subject: str = DEFAULT_CREATED_NOTICE_SUBJECT,
) -> PartnerNotice | None:
    if not partner_send_reminders:
        return None
    return PartnerNotice(
        organization_id=organization_id,
        distribution_id=distribution_id,
        subject=subject,
    )


def build_change_notice(
    organization_id: UUID,
    distribution_id: UUID,
    diff: LineItemDiff,
    subject: str = DEFAULT_CHANGE_NOTICE_SUBJECT,
) -> ChangeNotice | None:
    """Change notice for an update, or None when nothing pre-existing changed."""
    if diff.is_empty:
        return None
    return ChangeNotice(
        organization_id=organization_id,
        distribution_id=distribution_id,
        subject=subject,
        changes=diff,
    )
