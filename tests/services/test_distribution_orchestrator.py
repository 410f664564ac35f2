"""
End-to-end tests for DistributionOrchestrator.

Covers the post-commit pipeline: threshold alerts, change notice, reminder
and created notice, and the rejection path (rolled back, nothing
dispatched).
"""

from datetime import date, timedelta

import pytest

from inventory_config.schema import DatabaseConfig, EngineConfig, NotificationConfig
from inventory_kernel.domain.dtos import DistributionRequest, DistributionUpdateRequest
from inventory_kernel.models import Distribution
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_services.distribution_orchestrator import (
    DistributionOrchestrator,
    DistributionStatus,
)
from inventory_services.notification_dispatcher import LoggingDispatcher, RecordingDispatcher


@pytest.fixture
def orchestrator(session, dispatcher, deterministic_clock) -> DistributionOrchestrator:
    return DistributionOrchestrator(session, dispatcher, clock=deterministic_clock)


@pytest.fixture
def make_request(organization, partner, storage_location, today):
    def _make(*lines, partner_=None, **kwargs):
        return DistributionRequest(
            organization_id=organization.id,
            partner_id=(partner_ or partner).id,
            storage_location_id=storage_location.id,
            issued_at=kwargs.pop("issued_at", today),
            line_items=lines,
            **kwargs,
        )

    return _make


class TestCreateScenarios:

    def test_minimum_alert_scenario(
        self, orchestrator, make_request, storage_location, items, stock, test_actor_id
    ):
        """20 on hand, minimum 5, distribute 18 -> success plus minimum alert."""
        diapers = items["diapers"]
        stock(storage_location, diapers, 20)

        outcome = orchestrator.create(make_request((diapers.id, 18)), test_actor_id)

        assert outcome.is_success
        assert outcome.status == DistributionStatus.COMMITTED
        assert outcome.alerts == (
            "The following items have fallen below the minimum on hand quantity, "
            "bank-wide: Diapers",
        )

    def test_total_spans_locations(
        self, orchestrator, make_request, storage_location, second_location, items, stock,
        test_actor_id,
    ):
        """Stock elsewhere in the organization keeps the total above minimum."""
        diapers = items["diapers"]
        stock(storage_location, diapers, 20)
        stock(second_location, diapers, 10)

        outcome = orchestrator.create(make_request((diapers.id, 18)), test_actor_id)

        assert outcome.is_success
        assert outcome.alerts == ()

    def test_recommended_alert(
        self, orchestrator, make_request, storage_location, items, stock, test_actor_id
    ):
        wipes = items["wipes"]
        stock(storage_location, wipes, 60)

        outcome = orchestrator.create(make_request((wipes.id, 20)), test_actor_id)

        assert outcome.alerts == (
            "The following items have fallen below the recommended on hand quantity, "
            "bank-wide: Wipes",
        )

    def test_invalid_quantity_rejection(
        self, session, orchestrator, dispatcher, make_request, storage_location, items,
        stock, test_actor_id,
    ):
        stock(storage_location, items["diapers"], 20)

        outcome = orchestrator.create(make_request((items["diapers"].id, 0)), test_actor_id)

        assert not outcome.is_success
        assert outcome.status == DistributionStatus.REJECTED
        assert outcome.error_code == "INVALID_QUANTITY"
        assert outcome.item_name == "Diapers"
        assert outcome.message == (
            "Sorry, we weren't able to save the distribution. \n "
            "Validation failed: Inventory Diapers's quantity needs to be at least 1"
        )
        assert dispatcher.dispatched_count == 0
        assert session.query(Distribution).count() == 0

    def test_insufficient_rejection_restores_ledger(
        self, session, orchestrator, dispatcher, make_request, storage_location, items,
        stock, test_actor_id, create_partner,
    ):
        opted_in = create_partner("Opted In", send_reminders=True)
        diapers, wipes = items["diapers"], items["wipes"]
        stock(storage_location, diapers, 10)
        stock(storage_location, wipes, 1)
        session.commit()

        outcome = orchestrator.create(
            make_request((diapers.id, 5), (wipes.id, 2), partner_=opted_in),
            test_actor_id,
        )

        assert outcome.error_code == "INSUFFICIENT_QUANTITY"
        assert outcome.item_name == "Wipes"
        assert outcome.message.startswith("Sorry, we weren't able to save the distribution. \n ")
        selector = InventorySelector(session)
        assert selector.total_on_hand(storage_location.organization_id, diapers.id) == 10
        assert dispatcher.dispatched_count == 0


class TestCreateNotifications:

    def test_future_distribution_schedules_reminder(
        self, orchestrator, dispatcher, make_request, storage_location, items, stock,
        test_actor_id, create_partner, today,
    ):
        opted_in = create_partner("Opted In", send_reminders=True)
        stock(storage_location, items["formula"], 5)
        issued_at = today + timedelta(days=3)

        outcome = orchestrator.create(
            make_request(
                (items["formula"].id, 1),
                partner_=opted_in,
                issued_at=issued_at,
                reminder_email_enabled=True,
            ),
            test_actor_id,
        )

        assert outcome.reminder is not None
        assert outcome.reminder.deliver_on == issued_at - timedelta(days=1)
        assert dispatcher.reminders == [outcome.reminder]
        assert dispatcher.partner_notices == [outcome.created_notice]
        assert outcome.created_notice.subject == "Your Distribution"

    def test_same_day_never_reminds(
        self, orchestrator, dispatcher, make_request, storage_location, items, stock,
        test_actor_id, create_partner,
    ):
        opted_in = create_partner("Opted In", send_reminders=True)
        stock(storage_location, items["formula"], 5)

        outcome = orchestrator.create(
            make_request((items["formula"].id, 1), partner_=opted_in, reminder_email_enabled=True),
            test_actor_id,
        )

        assert outcome.reminder is None
        assert dispatcher.reminders == []

    def test_partner_opted_out_gets_nothing(
        self, orchestrator, dispatcher, make_request, storage_location, items, stock,
        test_actor_id, today,
    ):
        stock(storage_location, items["formula"], 5)

        outcome = orchestrator.create(
            make_request(
                (items["formula"].id, 1),
                issued_at=today + timedelta(days=3),
                reminder_email_enabled=True,
            ),
            test_actor_id,
        )

        assert outcome.is_success
        assert dispatcher.dispatched_count == 0

    def test_configured_lead_days_and_subjects(
        self, session, dispatcher, deterministic_clock, make_request, storage_location,
        items, stock, test_actor_id, create_partner, today,
    ):
        config = EngineConfig(
            database=DatabaseConfig(url="sqlite://"),
            notifications=NotificationConfig(
                reminder_lead_days=2, created_notice_subject="Heads up"
            ),
        )
        orchestrator = DistributionOrchestrator(
            session, dispatcher, clock=deterministic_clock, config=config
        )
        opted_in = create_partner("Opted In", send_reminders=True)
        stock(storage_location, items["formula"], 5)
        issued_at = today + timedelta(days=5)

        outcome = orchestrator.create(
            make_request(
                (items["formula"].id, 1),
                partner_=opted_in,
                issued_at=issued_at,
                reminder_email_enabled=True,
            ),
            test_actor_id,
        )

        assert outcome.reminder.deliver_on == issued_at - timedelta(days=2)
        assert outcome.created_notice.subject == "Heads up"


class TestUpdate:

    @pytest.fixture
    def committed(self, orchestrator, make_request, storage_location, items, stock, test_actor_id):
        stock(storage_location, items["diapers"], 20)
        stock(storage_location, items["wipes"], 100)
        outcome = orchestrator.create(
            make_request((items["diapers"].id, 5), (items["wipes"].id, 3)),
            test_actor_id,
        )
        assert outcome.is_success
        return outcome

    def test_change_notice_sent(
        self, orchestrator, dispatcher, committed, items, test_actor_id
    ):
        outcome = orchestrator.update(
            committed.distribution_id,
            DistributionUpdateRequest(line_items=[(items["diapers"].id, 7)]),
            test_actor_id,
        )

        assert outcome.is_success
        assert dispatcher.change_notices == [outcome.change_notice]
        assert outcome.change_notice.subject == "Your Distribution Has Changed"
        assert outcome.change_notice.payload == {
            "removed": [{"name": "Wipes", "quantity": 3}],
            "updated": [{"name": "Diapers", "old_quantity": 5, "new_quantity": 7}],
        }
        assert outcome.created_notice is None

    def test_no_change_notice_for_additions_only(
        self, orchestrator, dispatcher, committed, storage_location, items, stock,
        test_actor_id,
    ):
        stock(storage_location, items["formula"], 3)

        outcome = orchestrator.update(
            committed.distribution_id,
            DistributionUpdateRequest(
                line_items=[
                    (items["diapers"].id, 5),
                    (items["wipes"].id, 3),
                    (items["formula"].id, 1),
                ]
            ),
            test_actor_id,
        )

        assert outcome.is_success
        assert outcome.change_notice is None
        assert dispatcher.change_notices == []

    def test_removed_item_is_reevaluated(
        self, orchestrator, committed, items, test_actor_id
    ):
        """Wipes removed: its stock returns to 100, above recommended 50."""
        outcome = orchestrator.update(
            committed.distribution_id,
            DistributionUpdateRequest(line_items=[(items["diapers"].id, 16)]),
            test_actor_id,
        )

        assert outcome.alerts == (
            "The following items have fallen below the minimum on hand quantity, "
            "bank-wide: Diapers",
        )

    def test_rejected_update_message(
        self, orchestrator, dispatcher, committed, items, test_actor_id
    ):
        outcome = orchestrator.update(
            committed.distribution_id,
            DistributionUpdateRequest(line_items=[(items["diapers"].id, 500)]),
            test_actor_id,
        )

        assert outcome.status == DistributionStatus.REJECTED
        assert outcome.message.startswith(
            "Sorry, we weren't able to update the distribution. \n "
        )
        assert dispatcher.change_notices == []


class UnreachableQueueDispatcher(RecordingDispatcher):
    """Records change notices but cannot reach the job queue."""

    def enqueue_reminder(self, reminder):
        raise ConnectionError("queue down")

    def enqueue_partner_notice(self, notice):
        raise ConnectionError("queue down")


class MailerDownDispatcher(RecordingDispatcher):

    def send_change_notice(self, notice):
        raise ConnectionError("smtp refused")


class TestDispatchFailures:

    def test_enqueue_failure_keeps_commit(
        self, session, deterministic_clock, make_request, storage_location, items,
        stock, test_actor_id, create_partner, today, captured_logs,
    ):
        orchestrator = DistributionOrchestrator(
            session, UnreachableQueueDispatcher(), clock=deterministic_clock
        )
        opted_in = create_partner("Opted In", send_reminders=True)
        stock(storage_location, items["diapers"], 20)

        outcome = orchestrator.create(
            make_request(
                (items["diapers"].id, 18),
                partner_=opted_in,
                issued_at=today + timedelta(days=3),
                reminder_email_enabled=True,
            ),
            test_actor_id,
        )

        assert outcome.status == DistributionStatus.COMMITTED
        assert outcome.notification_failures == ("reminder", "created_notice")
        assert len(outcome.alerts) == 1
        assert session.query(Distribution).count() == 1
        assert InventorySelector(session).total_on_hand(
            outcome.distribution.organization_id, items["diapers"].id
        ) == 2

        records = captured_logs()
        failed = [r for r in records if r["message"] == "notification_dispatch_failed"]
        assert [r["notification"] for r in failed] == ["reminder", "created_notice"]
        assert all(r["exc_type"] == "ConnectionError" for r in failed)
        assert not any(r["message"] == "distribution_failed" for r in records)

    def test_change_notice_failure_reported_not_raised(
        self, session, deterministic_clock, make_request, storage_location, items,
        stock, test_actor_id,
    ):
        dispatcher = MailerDownDispatcher()
        orchestrator = DistributionOrchestrator(
            session, dispatcher, clock=deterministic_clock
        )
        stock(storage_location, items["diapers"], 20)
        created = orchestrator.create(make_request((items["diapers"].id, 5)), test_actor_id)

        outcome = orchestrator.update(
            created.distribution_id,
            DistributionUpdateRequest(line_items=[(items["diapers"].id, 2)]),
            test_actor_id,
        )

        assert outcome.is_success
        assert outcome.change_notice is not None
        assert outcome.notification_failures == ("change_notice",)
        assert dispatcher.change_notices == []
        assert session.get(Distribution, created.distribution_id).lines[0].quantity == 2


class TestLoggingDispatcher:

    def test_change_notice_logged(
        self, session, deterministic_clock, make_request, storage_location, items, stock,
        test_actor_id, captured_logs,
    ):
        orchestrator = DistributionOrchestrator(
            session, LoggingDispatcher(), clock=deterministic_clock
        )
        stock(storage_location, items["diapers"], 20)
        created = orchestrator.create(make_request((items["diapers"].id, 5)), test_actor_id)

        orchestrator.update(
            created.distribution_id,
            DistributionUpdateRequest(line_items=[(items["diapers"].id, 2)]),
            test_actor_id,
        )

        records = [r for r in captured_logs() if r["message"] == "change_notice_sent"]
        assert len(records) == 1
        assert records[0]["changes"]["updated"] == [
            {"name": "Diapers", "old_quantity": 5, "new_quantity": 2}
        ]
        assert records[0]["distribution_id"] == str(created.distribution_id)
