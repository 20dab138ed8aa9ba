"""
Staged transaction ledger.

In-memory, ordered line items for one purchase or trade session, before
anything is committed to inventory. Insertion order is display order.

INVARIANTS:
- No two items share a non-empty barcode (compared trimmed, case-insensitive)
- Every item has a line_id that is never reused
- Totals are recomputed from current items on every read
- No operation raises; bad input degrades to a no-op or to zero
"""

import logging
import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from cardintake.models.line_item import (
    LINE_ITEM_FIELDS,
    LINE_ITEM_TEXT_FIELDS,
    LineItem,
    coerce_quantity,
)

logger = logging.getLogger(__name__)


def normalize_barcode(barcode: Any) -> str:
    """Barcode comparison key: trimmed and lower-cased, "" when absent."""
    if not isinstance(barcode, str):
        return ""
    return barcode.strip().lower()


def new_line_id() -> str:
    return uuid.uuid4().hex


def _known_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Known, assignable fields; None for a text field is dropped."""
    return {
        k: v
        for k, v in fields.items()
        if k in LINE_ITEM_FIELDS
        and k != "line_id"
        and not (v is None and k in LINE_ITEM_TEXT_FIELDS)
    }


@dataclass
class StagedLedger:
    """Ordered line items staged for a single purchase or trade."""

    _items: list[LineItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(list(self._items))

    @property
    def items(self) -> list[LineItem]:
        """Snapshot of the staged items in insertion order."""
        return list(self._items)

    def get(self, line_id: str) -> LineItem | None:
        for item in self._items:
            if item.line_id == line_id:
                return item
        return None

    def has_barcode(self, barcode: str | None, exclude_line_id: str | None = None) -> bool:
        """Check whether a barcode is already staged (optionally ignoring one line)."""
        key = normalize_barcode(barcode)
        if not key:
            return False
        return any(
            normalize_barcode(item.barcode_id) == key and item.line_id != exclude_line_id
            for item in self._items
        )

    def add(self, item: LineItem | Mapping[str, Any]) -> LineItem | None:
        """
        Stage a new line item.

        A barcode already present in the ledger makes this a no-op: each
        physical barcode is one unique card, so the existing entry is left
        untouched and its quantity is not incremented.

        Args:
            item: LineItem or mapping of line item fields (unknown keys ignored)

        Returns:
            The staged item with its new line_id, or None for a duplicate barcode
        """
        if isinstance(item, LineItem):
            staged = replace(item)
        elif isinstance(item, Mapping):
            staged = LineItem(**_known_fields(item))
        else:
            logger.debug("Ignoring non line item %r", item)
            return None

        if self.has_barcode(staged.barcode_id):
            logger.debug("Barcode %s already staged, ignoring add", staged.barcode_id)
            return None

        staged.line_id = new_line_id()
        if not staged.quantity:
            staged.quantity = 1
        self._items.append(staged)
        return staged

    def update(
        self, line_id: str, fields: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> bool:
        """
        Merge fields into the item with line_id.

        Unknown fields and None for a text field are ignored, and line_id
        itself cannot be changed. An update that would give the item a barcode
        already staged elsewhere is rejected as a whole.

        Returns:
            True if the item was updated
        """
        item = self.get(line_id)
        if item is None:
            return False

        changes = _known_fields({**(fields or {}), **kwargs})
        if "barcode_id" in changes and self.has_barcode(
            changes["barcode_id"], exclude_line_id=line_id
        ):
            logger.debug("Barcode %s already staged, rejecting update", changes["barcode_id"])
            return False

        for name, value in changes.items():
            setattr(item, name, value)
        return True

    def remove(self, line_id: str) -> bool:
        """Remove the item with line_id. Returns True if something was removed."""
        before = len(self._items)
        self._items = [item for item in self._items if item.line_id != line_id]
        return len(self._items) != before

    def increment(self, line_id: str) -> bool:
        """Add one to the item's quantity."""
        item = self.get(line_id)
        if item is None:
            return False
        item.quantity = max(coerce_quantity(item.quantity), 1) + 1
        return True

    def decrement(self, line_id: str) -> bool:
        """
        Subtract one from the item's quantity.

        A barcoded item that would reach zero is removed. Items without a
        barcode stay at one and must be deleted explicitly.

        Returns:
            True if the item changed or was removed
        """
        item = self.get(line_id)
        if item is None:
            return False
        quantity = coerce_quantity(item.quantity)
        if quantity > 1:
            item.quantity = quantity - 1
            return True
        if normalize_barcode(item.barcode_id):
            return self.remove(line_id)
        return False

    def clear(self) -> None:
        self._items = []

    @property
    def total_quantity(self) -> int:
        """Sum of quantities across staged items."""
        return sum(item.count() for item in self._items)

    @property
    def total_cost(self) -> float:
        """Sum of purchase_price x quantity across staged items."""
        return sum((item.price() * item.count() for item in self._items), 0.0)
