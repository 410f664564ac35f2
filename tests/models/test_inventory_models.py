"""
Database constraint tests for the inventory models.

The database is the backstop for invariants the services also enforce:
non-negative ledger quantities, one ledger row per (location, item),
case-insensitive item names and positive line item quantities.
"""

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from inventory_kernel.models import (
    Distribution,
    DistributionLineItem,
    InventoryLedgerEntry,
    Item,
)


class TestItemConstraints:

    def test_name_unique_case_insensitive(self, session, organization, create_item):
        create_item("Diapers")
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.add(Item(organization_id=organization.id, name="DIAPERS"))

    def test_same_name_allowed_in_other_organization(self, session, create_item):
        from inventory_kernel.models import Organization

        other = Organization(name="Other Bank")
        session.add(other)
        session.flush()

        create_item("Diapers")
        twin = create_item("Diapers", org=other)
        assert twin.id is not None

    def test_minimum_defaults_to_zero_and_recommended_unset(self, session, organization):
        item = Item(organization_id=organization.id, name="Socks")
        session.add(item)
        session.flush()

        assert item.minimum_quantity == 0
        assert item.recommended_quantity is None

    def test_negative_threshold_rejected(self, session, organization):
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.add(
                    Item(organization_id=organization.id, name="Bad", minimum_quantity=-1)
                )


class TestLedgerConstraints:

    def test_negative_quantity_rejected(self, session, storage_location, items):
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.add(
                    InventoryLedgerEntry(
                        storage_location_id=storage_location.id,
                        item_id=items["diapers"].id,
                        quantity=-1,
                    )
                )

    def test_one_row_per_location_item(self, session, storage_location, items, stock):
        stock(storage_location, items["diapers"], 1)
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.add(
                    InventoryLedgerEntry(
                        storage_location_id=storage_location.id,
                        item_id=items["diapers"].id,
                        quantity=1,
                    )
                )


class TestDistributionModel:

    def _distribution(self, organization, partner, storage_location, actor_id):
        return Distribution(
            organization_id=organization.id,
            partner_id=partner.id,
            storage_location_id=storage_location.id,
            issued_at=date(2024, 1, 5),
            created_by_id=actor_id,
        )

    def test_lines_ordered_by_position(
        self, session, organization, partner, storage_location, items, test_actor_id
    ):
        distribution = self._distribution(organization, partner, storage_location, test_actor_id)
        distribution.lines = [
            DistributionLineItem(item_id=items["wipes"].id, quantity=2, position=1),
            DistributionLineItem(item_id=items["diapers"].id, quantity=1, position=0),
        ]
        session.add(distribution)
        session.flush()
        session.expire(distribution)

        assert [line.item_id for line in distribution.lines] == [
            items["diapers"].id,
            items["wipes"].id,
        ]
        assert distribution.reminder_email_enabled is False

    def test_zero_quantity_line_rejected(
        self, session, organization, partner, storage_location, items, test_actor_id
    ):
        distribution = self._distribution(organization, partner, storage_location, test_actor_id)
        distribution.lines = [DistributionLineItem(item_id=items["wipes"].id, quantity=0)]
        with pytest.raises(IntegrityError):
            with session.begin_nested():
                session.add(distribution)

    def test_removed_line_is_deleted(
        self, session, organization, partner, storage_location, items, test_actor_id
    ):
        distribution = self._distribution(organization, partner, storage_location, test_actor_id)
        distribution.lines = [DistributionLineItem(item_id=items["wipes"].id, quantity=2)]
        session.add(distribution)
        session.flush()

        distribution.lines = []
        session.flush()

        assert session.query(DistributionLineItem).filter_by(
            distribution_id=distribution.id
        ).count() == 0
