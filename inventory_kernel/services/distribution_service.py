"""
DistributionService -- the distribution create/update transaction.

Responsibility:
    Validates a requested distribution, applies its ledger deltas through
    InventoryLedger as one all-or-nothing unit, and persists the committed
    distribution.  On update it reconciles the stored line items against the
    new set and computes the change diff.

Architecture position:
    Kernel > Services -- imperative shell.  Called by
    inventory_services.DistributionOrchestrator, which owns the session
    transaction and runs post-commit evaluation (thresholds, notifications).

State machine (per attempt):
    DRAFT -> VALIDATING -> {REJECTED | COMMITTING -> COMMITTED}
    COMMITTING -> REJECTED when a decrement fails; compensations have run.

Invariants enforced:
    All-or-nothing multi-line commit -- every successful ledger operation
        records its inverse in a compensation list.  If a later decrement
        raises InsufficientQuantityError, the compensations are replayed in
        reverse before the error propagates, so the ledger equals its state
        before the attempt even if the caller never rolls back.
    Rejected attempts are never persisted -- the Distribution row is added
        to the session only after every ledger delta has succeeded.
    Whole replacement on update -- the stored line item set is either
        replaced by the new one or left untouched.

Failure modes:
    - InvalidQuantityError: a quantity is not an integer >= 1 (>= 0 on update).
    - EmptyDistributionError: create with no line items.
    - InsufficientQuantityError: a deduction would overdraw the ledger.
    - ItemNotFoundError / StorageLocationNotFoundError / PartnerNotFoundError /
      DistributionNotFoundError: unknown reference or one owned by another
      organization.
    - LedgerLockTimeoutError and database errors propagate without
      compensation; the caller's rollback undoes the attempt.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import (
    VALID_TRANSITIONS,
    DistributionInfo,
    DistributionRequest,
    DistributionUpdateRequest,
    LineItemSpec,
    TransactionState,
)
from inventory_kernel.domain.line_item_diff import (
    LineItemDiff,
    consolidate_line_items,
    diff_line_items,
)
from inventory_kernel.exceptions import (
    DistributionNotFoundError,
    EmptyDistributionError,
    InsufficientQuantityError,
    InvalidQuantityError,
    InventoryKernelError,
    ItemNotFoundError,
    PartnerNotFoundError,
    StorageLocationNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.distribution import Distribution, DistributionLineItem
from inventory_kernel.models.item import Item
from inventory_kernel.models.organization import Partner, StorageLocation
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.inventory_ledger import InventoryLedger

logger = get_logger("services.distribution")

LedgerKey = tuple[UUID, UUID]  # (storage_location_id, item_id)


@dataclass(frozen=True)
class DistributionCommit:
    """Result of a committed create or update."""

    distribution: DistributionInfo
    touched_item_ids: tuple[UUID, ...]
    previous: DistributionInfo | None = None
    diff: LineItemDiff | None = None

    @property
    def is_update(self) -> bool:
        return self.previous is not None


@dataclass(frozen=True)
class _Compensation:
    """Inverse of one applied ledger operation."""

    storage_location_id: UUID
    item_id: UUID
    amount: int
    restore_by_increment: bool


class _TransactionTracker:
    """Enforces and logs the per-attempt state machine."""

    def __init__(self, operation: str):
        self.operation = operation
        self.state = TransactionState.DRAFT

    def advance(self, new_state: TransactionState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal distribution transition {self.state.value} -> {new_state.value}"
            )
        logger.debug(
            "distribution_state_changed",
            extra={
                "operation": self.operation,
                "from_state": self.state.value,
                "to_state": new_state.value,
            },
        )
        self.state = new_state


class DistributionService(BaseService[Distribution]):
    """
    Create and update distributions against the inventory ledger.

    Guarantees:
        - Nothing is persisted and the ledger is unchanged when a validation,
          not-found or InsufficientQuantityError is raised.  A lock timeout
          relies on the caller's rollback.
        - Flush only; the caller commits.
    """

    def __init__(self, session, ledger: InventoryLedger | None = None):
        super().__init__(session)
        self._ledger = ledger or InventoryLedger(session)

    # ------------------------------------------------------------------
    # Reference loading
    # ------------------------------------------------------------------

    def _load_location(self, organization_id: UUID, storage_location_id: UUID) -> StorageLocation:
        location = self.session.get(StorageLocation, storage_location_id)
        if location is None or location.organization_id != organization_id:
            raise StorageLocationNotFoundError(str(storage_location_id))
        return location

    def _load_partner(self, organization_id: UUID, partner_id: UUID) -> Partner:
        partner = self.session.get(Partner, partner_id)
        if partner is None or partner.organization_id != organization_id:
            raise PartnerNotFoundError(str(partner_id))
        return partner

    def _load_items(self, organization_id: UUID, item_ids: Sequence[UUID]) -> dict[UUID, Item]:
        wanted = list(dict.fromkeys(item_ids))
        if not wanted:
            return {}
        found = {
            item.id: item
            for item in self.session.execute(
                select(Item).where(
                    Item.id.in_(wanted),
                    Item.organization_id == organization_id,
                )
            ).scalars()
        }
        for item_id in wanted:
            if item_id not in found:
                raise ItemNotFoundError(str(item_id))
        return found

    def _load_distribution(self, distribution_id: UUID) -> Distribution:
        # Row lock serializes concurrent updates of the same distribution
        distribution = self.session.execute(
            select(Distribution)
            .where(Distribution.id == distribution_id)
            .with_for_update()
        ).scalar_one_or_none()
        if distribution is None:
            raise DistributionNotFoundError(str(distribution_id))
        return distribution

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_quantities(
        lines: Sequence[LineItemSpec],
        items: dict[UUID, Item],
        minimum: int,
    ) -> dict[UUID, int]:
        """
        Check every submitted quantity, then merge duplicate lines.

        Returns item_id -> consolidated quantity, positive quantities only,
        in first-seen order.
        """
        for line in lines:
            quantity = line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < minimum:
                raise InvalidQuantityError(items[line.item_id].name, quantity)
        merged = consolidate_line_items((line.item_id, line.quantity) for line in lines)
        return {item_id: quantity for item_id, quantity in merged.items() if quantity > 0}

    # ------------------------------------------------------------------
    # Ledger application
    # ------------------------------------------------------------------

    def _apply_deltas(self, deltas: dict[LedgerKey, int]) -> None:
        """
        Apply net ledger deltas as one unit.

        Positive delta = take more stock (decrement), negative = give stock
        back (increment).  Decrements run first so that a refusal has the
        fewest operations to undo.
        """
        compensations: list[_Compensation] = []
        try:
            for (location_id, item_id), delta in deltas.items():
                if delta > 0:
                    self._ledger.decrement(location_id, item_id, delta)
                    compensations.append(_Compensation(location_id, item_id, delta, True))
            for (location_id, item_id), delta in deltas.items():
                if delta < 0:
                    self._ledger.increment(location_id, item_id, -delta)
                    compensations.append(_Compensation(location_id, item_id, -delta, False))
        except InsufficientQuantityError:
            self._compensate(compensations)
            raise

    def _compensate(self, compensations: list[_Compensation]) -> None:
        for comp in reversed(compensations):
            if comp.restore_by_increment:
                self._ledger.increment(comp.storage_location_id, comp.item_id, comp.amount)
            else:
                self._ledger.decrement(comp.storage_location_id, comp.item_id, comp.amount)
        if compensations:
            logger.info(
                "ledger_compensated",
                extra={"operations_reversed": len(compensations)},
            )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_distribution(
        self,
        request: DistributionRequest,
        actor_id: UUID,
    ) -> DistributionCommit:
        """
        Validate, deduct and persist a new distribution.

        Preconditions:
            - ``request.line_items`` quantities are integers >= 1.
        Postconditions:
            - On success, the ledger at request.storage_location_id is lowered
              by every line quantity and the distribution is flushed.
            - On a rejection other than a lock timeout, the ledger is unchanged and nothing
              was added to the session.

        Returns:
            DistributionCommit with touched_item_ids = the line item ids.
        """
        tracker = _TransactionTracker("create")
        tracker.advance(TransactionState.VALIDATING)
        try:
            if not request.line_items:
                raise EmptyDistributionError()
            self._load_location(request.organization_id, request.storage_location_id)
            self._load_partner(request.organization_id, request.partner_id)
            items = self._load_items(
                request.organization_id, [line.item_id for line in request.line_items]
            )
            quantities = self._validate_quantities(request.line_items, items, minimum=1)

            tracker.advance(TransactionState.COMMITTING)
            self._apply_deltas(
                {
                    (request.storage_location_id, item_id): quantity
                    for item_id, quantity in quantities.items()
                }
            )
        except InventoryKernelError as exc:
            tracker.advance(TransactionState.REJECTED)
            logger.info(
                "distribution_rejected",
                extra={"operation": "create", "error_code": exc.code},
            )
            raise

        distribution = Distribution(
            organization_id=request.organization_id,
            partner_id=request.partner_id,
            storage_location_id=request.storage_location_id,
            issued_at=request.issued_at,
            reminder_email_enabled=request.reminder_email_enabled,
            created_by_id=actor_id,
        )
        distribution.lines = [
            DistributionLineItem(item_id=item_id, quantity=quantity, position=position)
            for position, (item_id, quantity) in enumerate(quantities.items())
        ]
        self.session.add(distribution)
        self.session.flush()
        tracker.advance(TransactionState.COMMITTED)

        names = {item_id: item.name for item_id, item in items.items()}
        logger.info(
            "distribution_committed",
            extra={
                "operation": "create",
                "distribution_id": str(distribution.id),
                "line_count": len(quantities),
                "total_quantity": sum(quantities.values()),
            },
        )
        return DistributionCommit(
            distribution=DistributionInfo.from_model(distribution, names),
            touched_item_ids=tuple(quantities),
        )

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_distribution(
        self,
        distribution_id: UUID,
        request: DistributionUpdateRequest,
        actor_id: UUID,
    ) -> DistributionCommit:
        """
        Replace a committed distribution's line items and reconcile the ledger.

        The net delta per (storage location, item) is new - old, where old
        lines count against the stored location and new lines against the
        requested one.  Moving a distribution to another location therefore
        returns stock to the old location and takes it from the new one.

        Postconditions:
            - On success, line items are replaced, header fields updated, and
              ``diff`` describes removed/updated pre-existing lines.
            - On a rejection other than a lock timeout, the distribution and ledger are
              exactly as before the call.

        Returns:
            DistributionCommit with touched_item_ids = new items followed by
            items only present before.
        """
        tracker = _TransactionTracker("update")
        tracker.advance(TransactionState.VALIDATING)
        try:
            distribution = self._load_distribution(distribution_id)
            organization_id = distribution.organization_id
            old_location_id = distribution.storage_location_id
            new_location_id = request.storage_location_id or old_location_id
            if new_location_id != old_location_id:
                self._load_location(organization_id, new_location_id)

            old_quantities = consolidate_line_items(
                (line.item_id, line.quantity) for line in distribution.lines
            )
            items = self._load_items(
                organization_id,
                [line.item_id for line in request.line_items] + list(old_quantities),
            )
            names = {item_id: item.name for item_id, item in items.items()}
            previous = DistributionInfo.from_model(distribution, names)

            new_quantities = self._validate_quantities(request.line_items, items, minimum=0)

            deltas: dict[LedgerKey, int] = {}
            for item_id, quantity in old_quantities.items():
                key = (old_location_id, item_id)
                deltas[key] = deltas.get(key, 0) - quantity
            for item_id, quantity in new_quantities.items():
                key = (new_location_id, item_id)
                deltas[key] = deltas.get(key, 0) + quantity
            deltas = {key: delta for key, delta in deltas.items() if delta != 0}

            tracker.advance(TransactionState.COMMITTING)
            self._apply_deltas(deltas)
        except InventoryKernelError as exc:
            tracker.advance(TransactionState.REJECTED)
            logger.info(
                "distribution_rejected",
                extra={
                    "operation": "update",
                    "distribution_id": str(distribution_id),
                    "error_code": exc.code,
                },
            )
            raise

        distribution.lines = [
            DistributionLineItem(item_id=item_id, quantity=quantity, position=position)
            for position, (item_id, quantity) in enumerate(new_quantities.items())
        ]
        distribution.storage_location_id = new_location_id
        if request.issued_at is not None:
            distribution.issued_at = request.issued_at
        if request.reminder_email_enabled is not None:
            distribution.reminder_email_enabled = request.reminder_email_enabled
        distribution.updated_by_id = actor_id
        self.session.flush()
        tracker.advance(TransactionState.COMMITTED)

        diff = diff_line_items(old_quantities, new_quantities, names)
        touched = tuple(dict.fromkeys([*new_quantities, *old_quantities]))

        logger.info(
            "distribution_committed",
            extra={
                "operation": "update",
                "distribution_id": str(distribution.id),
                "line_count": len(new_quantities),
                "ledger_keys_changed": len(deltas),
                "removed_count": len(diff.removed),
                "updated_count": len(diff.updated),
            },
        )
        return DistributionCommit(
            distribution=DistributionInfo.from_model(distribution, names),
            touched_item_ids=touched,
            previous=previous,
            diff=diff,
        )
