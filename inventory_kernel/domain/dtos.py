"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the distribution
    pipeline: request DTOs (input from the intake layer), info DTOs (what a
    committed distribution looks like), and the transaction state machine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  Services convert ORM rows into these DTOs at
    the boundary; domain logic never sees an ORM entity.

Data flow:
    DistributionRequest -> (validate, commit) -> DistributionInfo
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from inventory_kernel.models.distribution import Distribution as DistributionModel


class TransactionState(str, Enum):
    """Lifecycle of one create/update attempt.

    DRAFT -> VALIDATING -> {REJECTED | COMMITTING -> COMMITTED}

    COMMITTING can also fall back to REJECTED when a ledger decrement fails;
    the compensations have already run by the time the state is recorded.
    """

    DRAFT = "draft"
    VALIDATING = "validating"
    REJECTED = "rejected"
    COMMITTING = "committing"
    COMMITTED = "committed"


VALID_TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
    TransactionState.DRAFT: frozenset({TransactionState.VALIDATING}),
    TransactionState.VALIDATING: frozenset(
        {TransactionState.REJECTED, TransactionState.COMMITTING}
    ),
    TransactionState.COMMITTING: frozenset(
        {TransactionState.REJECTED, TransactionState.COMMITTED}
    ),
    TransactionState.REJECTED: frozenset(),
    TransactionState.COMMITTED: frozenset(),
}


@dataclass(frozen=True)
class LineItemSpec:
    """One requested (item, quantity) pair, as submitted.

    quantity is deliberately unvalidated here; the transaction's validating
    step decides whether it is acceptable.
    """

    item_id: UUID
    quantity: object


def _as_line_items(lines) -> tuple[LineItemSpec, ...]:
    return tuple(
        line if isinstance(line, LineItemSpec) else LineItemSpec(*line)
        for line in lines
    )


@dataclass(frozen=True)
class DistributionRequest:
    """Input for the create path.

    line_items accepts LineItemSpec instances or (item_id, quantity) pairs
    and is normalized to a tuple of LineItemSpec.
    """

    organization_id: UUID
    partner_id: UUID
    storage_location_id: UUID
    issued_at: date
    line_items: tuple[LineItemSpec, ...] = ()
    reminder_email_enabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_items", _as_line_items(self.line_items))


@dataclass(frozen=True)
class DistributionUpdateRequest:
    """Input for the update path.

    The line item set always replaces the stored one.  Header fields left as
    None keep their stored value.  A quantity of 0 means "remove this item".
    """

    line_items: tuple[LineItemSpec, ...] = ()
    storage_location_id: UUID | None = None
    issued_at: date | None = None
    reminder_email_enabled: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_items", _as_line_items(self.line_items))


@dataclass(frozen=True)
class LineItemInfo:
    item_id: UUID
    item_name: str
    quantity: int


@dataclass(frozen=True)
class DistributionInfo:
    """Immutable view of a committed distribution."""

    id: UUID
    organization_id: UUID
    partner_id: UUID
    storage_location_id: UUID
    issued_at: date
    reminder_email_enabled: bool
    line_items: tuple[LineItemInfo, ...] = field(default_factory=tuple)

    @property
    def item_ids(self) -> tuple[UUID, ...]:
        return tuple(line.item_id for line in self.line_items)

    @classmethod
    def from_model(
        cls, model: DistributionModel, item_names: Mapping[UUID, str]
    ) -> DistributionInfo:
        """Boundary converter, only called from services and selectors."""
        return cls(
            id=model.id,
            organization_id=model.organization_id,
            partner_id=model.partner_id,
            storage_location_id=model.storage_location_id,
            issued_at=model.issued_at,
            reminder_email_enabled=model.reminder_email_enabled,
            line_items=tuple(
                LineItemInfo(
                    item_id=line.item_id,
                    item_name=item_names.get(line.item_id, str(line.item_id)),
                    quantity=line.quantity,
                )
                for line in model.lines
            ),
        )

    def quantity_of(self, item_id: UUID) -> int:
        """Quantity distributed for ``item_id`` (0 when not present)."""
        for line in self.line_items:
            if line.item_id == item_id:
                return line.quantity
        return 0


@dataclass(frozen=True)
class ItemThreshold:
    """An item's configured on-hand levels.  None means unset."""

    item_id: UUID
    name: str
    minimum_quantity: int | None
    recommended_quantity: int | None


@dataclass(frozen=True)
class LocationQuantity:
    storage_location_id: UUID
    storage_location_name: str
    quantity: int
