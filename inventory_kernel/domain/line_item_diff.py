"""
Line-Item Diff Engine.

Responsibility:
    Given the line items a distribution had before an update and the ones it
    has after, produce the minimal change notice: which pre-existing lines
    were removed and which had their quantity changed.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Rules:
    - removed: present in old with quantity > 0, absent or 0 in new.
    - updated: present in both with different positive quantities.
    - Unchanged lines are not reported.  Lines new to the distribution are
      not a "change" either: partners are told about differences relative to
      what they were already promised.
    - Order follows first appearance in the old set.  Only lines present in
      the old set can be removed or updated, so the new set never
      contributes entries.
    - Duplicate lines for one item are consolidated (quantities summed)
      before comparison.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class RemovedLine:
    item_id: UUID
    name: str
    quantity: int


@dataclass(frozen=True)
class UpdatedLine:
    item_id: UUID
    name: str
    old_quantity: int
    new_quantity: int


@dataclass(frozen=True)
class LineItemDiff:
    removed: tuple[RemovedLine, ...] = ()
    updated: tuple[UpdatedLine, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.removed and not self.updated

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        """Structured payload handed to the mailer collaborator."""
        return {
            "removed": [
                {"name": line.name, "quantity": line.quantity}
                for line in self.removed
            ],
            "updated": [
                {
                    "name": line.name,
                    "old_quantity": line.old_quantity,
                    "new_quantity": line.new_quantity,
                }
                for line in self.updated
            ],
        }


def consolidate_line_items(
    lines: Iterable[tuple[UUID, int]] | Mapping[UUID, int],
) -> dict[UUID, int]:
    """Merge duplicate lines for the same item, keeping first-seen order."""
    if isinstance(lines, Mapping):
        lines = lines.items()
    merged: dict[UUID, int] = {}
    for item_id, quantity in lines:
        merged[item_id] = merged.get(item_id, 0) + quantity
    return merged


def diff_line_items(
    old_items: Iterable[tuple[UUID, int]] | Mapping[UUID, int],
    new_items: Iterable[tuple[UUID, int]] | Mapping[UUID, int],
    item_names: Mapping[UUID, str],
) -> LineItemDiff:
    """
    Compute removed and updated lines between two states of a distribution.

    Args:
        old_items: (item_id, quantity) pairs before the update.
        new_items: (item_id, quantity) pairs after the update.
        item_names: Display names; the item id is used when a name is missing.

    Returns:
        LineItemDiff with removed and updated entries in old-set order.
    """
    old = consolidate_line_items(old_items)
    new = consolidate_line_items(new_items)

    removed: list[RemovedLine] = []
    updated: list[UpdatedLine] = []

    for item_id, old_quantity in old.items():
        if old_quantity <= 0:
            continue
        name = item_names.get(item_id, str(item_id))
        new_quantity = new.get(item_id, 0)
        if new_quantity <= 0:
            removed.append(RemovedLine(item_id, name, old_quantity))
        elif new_quantity != old_quantity:
            updated.append(UpdatedLine(item_id, name, old_quantity, new_quantity))

    return LineItemDiff(removed=tuple(removed), updated=tuple(updated))
